"""
Local voice provider for development without API keys.
Writes a silent WAV sized from the script's word count.
"""
import struct
import uuid
from pathlib import Path
from typing import Optional

from .base import BaseVoiceProvider
from ..media import MediaPayload


class LocalVoiceProvider(BaseVoiceProvider):
    """Silent narration placeholder."""

    SAMPLE_RATE = 24000
    CHANNELS = 1
    BITS_PER_SAMPLE = 16
    WORDS_PER_SECOND = 2.5

    def __init__(self, output_dir: Optional[Path] = None):
        if output_dir is None:
            from campaigngen.config import config
            output_dir = config.paths.media_dir
        self._output_dir = output_dir

    @property
    def name(self) -> str:
        return "local"

    @property
    def is_available(self) -> bool:
        return True

    async def synthesize(self, text: str) -> MediaPayload:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        duration = self.estimate_duration(text)
        output_path = self._output_dir / f"{self.name}_{uuid.uuid4().hex}.wav"
        self._write_silent_wav(output_path, duration)
        return MediaPayload(
            path=output_path,
            mime_type="audio/wav",
            provider=self.name,
            duration=duration,
        )

    def estimate_duration(self, text: str) -> float:
        if not text or not text.strip():
            return 1.0
        duration = len(text.split()) / self.WORDS_PER_SECOND
        return max(1.0, min(duration, 300.0))

    def _write_silent_wav(self, output_path: Path, duration: float) -> None:
        num_samples = int(self.SAMPLE_RATE * duration)
        bytes_per_sample = self.BITS_PER_SAMPLE // 8
        data_size = num_samples * self.CHANNELS * bytes_per_sample

        with open(output_path, "wb") as f:
            f.write(b"RIFF")
            f.write(struct.pack("<I", 36 + data_size))
            f.write(b"WAVE")

            f.write(b"fmt ")
            f.write(struct.pack("<I", 16))
            f.write(struct.pack("<H", 1))
            f.write(struct.pack("<H", self.CHANNELS))
            f.write(struct.pack("<I", self.SAMPLE_RATE))
            f.write(struct.pack("<I", self.SAMPLE_RATE * self.CHANNELS * bytes_per_sample))
            f.write(struct.pack("<H", self.CHANNELS * bytes_per_sample))
            f.write(struct.pack("<H", self.BITS_PER_SAMPLE))

            f.write(b"data")
            f.write(struct.pack("<I", data_size))
            f.write(b"\x00" * data_size)
