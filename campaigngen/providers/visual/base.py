"""
Base class for visual (image / video synthesis) providers.
"""
from abc import ABC, abstractmethod

from ..media import MediaPayload


class BaseVisualProvider(ABC):
    """Abstract base class for scene visual providers."""

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
    async def generate(self, prompt: str, duration: float, aspect_ratio: str = "16:9") -> MediaPayload:
        """
        Synthesize one visual asset.

        Args:
            prompt: Scene prompt, already merged with the style anchor
            duration: Target scene length in seconds
            aspect_ratio: '16:9', '9:16' or '1:1'

        Returns:
            MediaPayload pointing at the generated file

        Raises:
            ProviderError subclasses on any failure
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass
