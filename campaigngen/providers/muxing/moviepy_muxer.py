"""
MoviePy muxing backend.

Video segments are trimmed or looped to their slot, stills are held for
it, everything is cover-cropped to the output resolution, and the
narration is overlaid from t=0.
"""
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from .base import BaseMuxer, TimelineClip, AudioTrack

logger = logging.getLogger(__name__)


def resize_to_fill(clip, target_width: int, target_height: int):
    """
    Resize clip to fill target dimensions, cropping if necessary.
    Maintains aspect ratio and centers the frame.
    """
    orig_width, orig_height = clip.size

    scale = max(target_width / orig_width, target_height / orig_height)
    new_width = int(round(orig_width * scale))
    new_height = int(round(orig_height * scale))
    clip = clip.resized(new_size=(new_width, new_height))

    x1 = int(new_width / 2 - target_width / 2)
    y1 = int(new_height / 2 - target_height / 2)

    return clip.cropped(x1=x1, y1=y1, width=target_width, height=target_height)


class MoviePyMuxer(BaseMuxer):
    """
    Assemble with MoviePy and encode H.264/AAC.

    `ffmpeg_path` pins the binary MoviePy uses. MoviePy resolves it through
    imageio-ffmpeg when first imported, so the muxer must be built before
    anything imports moviepy.
    """

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        codec: str = "libx264",
        audio_codec: str = "aac",
        preset: str = "medium",
        threads: int = 4,
    ):
        if ffmpeg_path:
            os.environ["IMAGEIO_FFMPEG_EXE"] = ffmpeg_path
            logger.info(f"[MOVIEPY] Using ffmpeg at {ffmpeg_path}")
        self.ffmpeg_path = ffmpeg_path
        self.codec = codec
        self.audio_codec = audio_codec
        self.preset = preset
        self.threads = threads

    @property
    def name(self) -> str:
        return "moviepy"

    def _load_clip(self, item: TimelineClip):
        from moviepy import ImageClip, VideoFileClip, vfx

        if item.media.is_image:
            return ImageClip(str(item.media.path)).with_duration(item.duration)

        clip = VideoFileClip(str(item.media.path), audio=False)
        if clip.duration >= item.duration:
            return clip.subclipped(0, item.duration)
        # Short generations loop to fill their slot
        return clip.with_effects([vfx.Loop(duration=item.duration)])

    def mux(
        self,
        clips: List[TimelineClip],
        audio: Optional[AudioTrack],
        output_path: Path,
        resolution: Tuple[int, int],
        fps: int = 30,
    ) -> Path:
        from moviepy import AudioFileClip, concatenate_videoclips

        if not clips:
            raise ValueError("No clips to assemble")

        width, height = resolution
        loaded = []
        narration = None
        video = None

        logger.info(f"[MOVIEPY] Assembling {len(clips)} clips at {width}x{height}")

        try:
            for item in clips:
                clip = resize_to_fill(self._load_clip(item), width, height)
                loaded.append(clip)

            video = concatenate_videoclips(loaded, method="compose")

            if audio is not None:
                narration = AudioFileClip(str(audio.media.path))
                end = min(audio.duration, narration.duration, video.duration)
                video = video.with_audio(narration.subclipped(0, end))

            output_path.parent.mkdir(parents=True, exist_ok=True)
            video.write_videofile(
                str(output_path),
                fps=fps,
                codec=self.codec,
                audio_codec=self.audio_codec,
                audio_bitrate="192k",
                preset=self.preset,
                threads=self.threads,
                logger=None,
            )
        finally:
            if video is not None:
                video.close()
            if narration is not None:
                narration.close()
            for clip in loaded:
                clip.close()

        logger.info(f"[MOVIEPY] Video written: {output_path}")
        return output_path
