"""
Voice provider factory.

Narration runs against exactly one provider per run; there is no
fallback wrapper here.
"""
from typing import Literal, Optional

from .base import BaseVoiceProvider
from .gemini_tts import GeminiTTSProvider
from .elevenlabs import ElevenLabsProvider
from .edge import EdgeVoiceProvider
from .local import LocalVoiceProvider


ProviderType = Literal["gemini", "elevenlabs", "edge", "local"]


class VoiceProviderFactory:
    """Factory for the narration provider."""

    _providers = {
        "gemini": GeminiTTSProvider,
        "elevenlabs": ElevenLabsProvider,
        "edge": EdgeVoiceProvider,
        "local": LocalVoiceProvider,
    }

    @classmethod
    def create(cls, provider: ProviderType) -> BaseVoiceProvider:
        if provider not in cls._providers:
            raise ValueError(
                f"Unknown narration provider: {provider} "
                f"(expected one of {', '.join(cls._providers)})"
            )
        return cls._providers[provider]()


def get_voice_provider(provider: Optional[str] = None) -> BaseVoiceProvider:
    """Get the configured narration provider."""
    if provider is None:
        from campaigngen.config import config
        provider = config.pipeline.narration_provider
    return VoiceProviderFactory.create(provider)
