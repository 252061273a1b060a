"""
Opaque media handles returned by providers.
"""
import uuid
import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

import aiofiles

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaPayload:
    """A generated media file on local disk."""
    path: Path
    mime_type: str
    provider: str
    duration: Optional[float] = None

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_audio(self) -> bool:
        return self.mime_type.startswith("audio/")

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "mime_type": self.mime_type,
            "provider": self.provider,
            "duration": self.duration,
        }


EXTENSIONS = {
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "audio/wav": ".wav",
    "audio/mpeg": ".mp3",
}


def extension_for(mime_type: str) -> str:
    return EXTENSIONS.get(mime_type.split(";")[0].strip(), ".bin")


def probe_audio_duration(path: Path) -> float:
    """Duration of an audio file in seconds."""
    if path.suffix.lower() == ".wav":
        import wave
        with wave.open(str(path), "rb") as wav:
            return wav.getnframes() / float(wav.getframerate())

    from moviepy import AudioFileClip
    clip = AudioFileClip(str(path))
    try:
        return float(clip.duration)
    finally:
        clip.close()


async def save_payload(
    data: bytes,
    mime_type: str,
    provider: str,
    output_dir: Path,
    duration: Optional[float] = None,
) -> MediaPayload:
    """Write provider bytes to a uniquely named file and wrap it."""
    output_dir.mkdir(parents=True, exist_ok=True)
    mime_type = mime_type.split(";")[0].strip()
    path = output_dir / f"{provider}_{uuid.uuid4().hex}{extension_for(mime_type)}"

    async with aiofiles.open(path, "wb") as f:
        await f.write(data)

    logger.debug(f"[{provider.upper()}] Saved {len(data) / 1024:.1f} KB to {path}")
    return MediaPayload(path=path, mime_type=mime_type, provider=provider, duration=duration)
