"""
Base class for narration (text-to-speech) providers.
"""
from abc import ABC, abstractmethod

from ..media import MediaPayload


class BaseVoiceProvider(ABC):
    """Abstract base class for voice/TTS providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        pass

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is available."""
        pass

    @abstractmethod
    async def synthesize(self, text: str) -> MediaPayload:
        """
        Synthesize speech from text.

        Args:
            text: Full narration script

        Returns:
            MediaPayload for the audio file, with duration set
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass
