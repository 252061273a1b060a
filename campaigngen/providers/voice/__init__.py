"""
Voice/TTS providers.
"""
from .base import BaseVoiceProvider
from .gemini_tts import GeminiTTSProvider
from .elevenlabs import ElevenLabsProvider
from .edge import EdgeVoiceProvider
from .local import LocalVoiceProvider
from .factory import VoiceProviderFactory, get_voice_provider

__all__ = [
    "BaseVoiceProvider",
    "GeminiTTSProvider",
    "ElevenLabsProvider",
    "EdgeVoiceProvider",
    "LocalVoiceProvider",
    "VoiceProviderFactory",
    "get_voice_provider",
]
