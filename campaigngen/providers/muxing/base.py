"""
Base class for video assembly (muxing) backends.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ..media import MediaPayload


@dataclass(frozen=True)
class TimelineClip:
    """One visual placed on the output timeline."""
    ordinal: int
    media: MediaPayload
    start: float
    duration: float

    @property
    def end(self) -> float:
        return self.start + self.duration


@dataclass(frozen=True)
class AudioTrack:
    """Narration laid from t=0 for `duration` seconds."""
    media: MediaPayload
    duration: float


class BaseMuxer(ABC):
    """Abstract base class for muxing backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name."""
        pass

    @abstractmethod
    def mux(
        self,
        clips: List[TimelineClip],
        audio: Optional[AudioTrack],
        output_path: Path,
        resolution: Tuple[int, int],
        fps: int = 30,
    ) -> Path:
        """
        Render clips back to back with the audio track overlaid.
        Blocking; callers run it off the event loop.

        Returns:
            Path of the written video

        Raises:
            Exception on any encoder failure
        """
        pass
