"""
Assembler.

Lays the succeeded scene visuals back to back in ordinal order (failed
ordinals leave no gap), overlays narration from t=0, and hands the
timeline to the muxing backend.

Audio rule: narration longer than the visuals is cut at the visual
end; shorter narration leaves the tail silent. Nothing is stretched
or padded.
"""
import asyncio
import logging
import uuid
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from campaigngen.providers.media import MediaPayload
from campaigngen.providers.muxing import AudioTrack, BaseMuxer, TimelineClip

from .exceptions import AssemblyFailedError
from .models import AspectRatio, AssembledCampaign, NarrationAsset, NarrativeAnalysis, SceneAsset

logger = logging.getLogger(__name__)


def build_timeline(assets: Sequence[SceneAsset]) -> List[TimelineClip]:
    """Succeeded assets in ascending ordinal order, each at its target duration."""
    clips = []
    cursor = 0.0
    for asset in sorted(assets, key=lambda a: a.ordinal):
        if not asset.succeeded or asset.media is None:
            continue
        clips.append(TimelineClip(ordinal=asset.ordinal, media=asset.media, start=cursor, duration=asset.duration))
        cursor += asset.duration
    return clips


def audio_window(narration_duration: float, visual_duration: float) -> float:
    """Seconds of narration that make it into the output."""
    return max(0.0, min(narration_duration, visual_duration))


def resolution_for(aspect_ratio) -> Tuple[int, int]:
    return AspectRatio(aspect_ratio).resolution


class Assembler:
    """Builds the final campaign video through a muxing backend."""

    def __init__(self, muxer: BaseMuxer, output_dir: Optional[Path] = None, timeout: float = 600.0, fps: int = 30):
        if output_dir is None:
            from campaigngen.config import config
            output_dir = config.paths.media_dir
        self.muxer = muxer
        self.output_dir = Path(output_dir)
        self.timeout = timeout
        self.fps = fps

    async def assemble(
        self,
        assets: Sequence[SceneAsset],
        narration: NarrationAsset,
        analysis: NarrativeAnalysis,
        aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE,
    ) -> AssembledCampaign:
        """
        Mux the surviving scenes with the narration.

        Raises:
            AssemblyFailedError: nothing to assemble, no narration, or muxer failure
        """
        clips = build_timeline(assets)
        if not clips:
            raise AssemblyFailedError("No succeeded scenes to assemble")
        if not narration.succeeded:
            raise AssemblyFailedError("Narration is missing")

        visual_duration = clips[-1].end
        audio_duration = audio_window(narration.duration, visual_duration)
        failed = sum(1 for asset in assets if not asset.succeeded)
        aspect_ratio = AspectRatio(aspect_ratio)
        resolution = aspect_ratio.resolution
        output_path = self.output_dir / f"campaign_{uuid.uuid4().hex[:12]}.mp4"

        if narration.duration > visual_duration:
            logger.info(f"[ASSEMBLER] Narration {narration.duration:.1f}s truncated to {visual_duration:.1f}s")

        logger.info(
            f"[ASSEMBLER] {len(clips)} clips ({failed} failed scenes skipped), "
            f"{visual_duration:.1f}s at {resolution[0]}x{resolution[1]} via {self.muxer.name}"
        )

        try:
            await asyncio.wait_for(
                asyncio.to_thread(
                    self.muxer.mux,
                    clips,
                    AudioTrack(media=narration.media, duration=audio_duration),
                    output_path,
                    resolution,
                    self.fps,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise AssemblyFailedError(f"Assembly timed out after {self.timeout:.0f}s", cause=e) from e
        except Exception as e:
            raise AssemblyFailedError(f"Muxing failed: {e}", cause=e) from e

        used = {clip.ordinal for clip in clips}
        return AssembledCampaign(
            video=MediaPayload(path=output_path, mime_type="video/mp4", provider=self.muxer.name,
                               duration=visual_duration),
            audio=narration.media,
            analysis=analysis,
            scenes=tuple(asset for asset in sorted(assets, key=lambda a: a.ordinal) if asset.ordinal in used),
            failed_segment_count=failed,
            visual_duration=visual_duration,
            audio_duration=audio_duration,
            aspect_ratio=aspect_ratio,
        )
