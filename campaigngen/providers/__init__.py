"""
Providers Layer.

Narrow request/response contracts for the generative backends the
campaign pipeline coordinates:
- Reasoning (narrative analysis)
- Visual synthesis (video / image per scene)
- Voice (narration)
- Muxing (final assembly)
"""
from .exceptions import (
    ProviderError,
    ProviderUnavailable,
    ProviderQuotaError,
    ProviderTransientError,
    ProviderLoadingError,
    ProviderTimeoutError,
    ProviderContentPolicyError,
    ProviderResponseError,
)
from .media import MediaPayload, save_payload

from .reasoning import (
    BaseReasoningProvider,
    GroundingSource,
    ReasoningResponse,
    GeminiReasoningProvider,
)

from .visual import (
    BaseVisualProvider,
    HuggingFaceVideoProvider,
    SoraVideoProvider,
    KieImageProvider,
    VisualProviderFactory,
    get_visual_chain,
)

from .voice import (
    BaseVoiceProvider,
    GeminiTTSProvider,
    ElevenLabsProvider,
    EdgeVoiceProvider,
    LocalVoiceProvider,
    VoiceProviderFactory,
    get_voice_provider,
)

from .muxing import BaseMuxer, TimelineClip, AudioTrack, MoviePyMuxer

__all__ = [
    # Exceptions
    "ProviderError",
    "ProviderUnavailable",
    "ProviderQuotaError",
    "ProviderTransientError",
    "ProviderLoadingError",
    "ProviderTimeoutError",
    "ProviderContentPolicyError",
    "ProviderResponseError",

    # Media
    "MediaPayload",
    "save_payload",

    # Reasoning
    "BaseReasoningProvider",
    "GroundingSource",
    "ReasoningResponse",
    "GeminiReasoningProvider",

    # Visual
    "BaseVisualProvider",
    "HuggingFaceVideoProvider",
    "SoraVideoProvider",
    "KieImageProvider",
    "VisualProviderFactory",
    "get_visual_chain",

    # Voice
    "BaseVoiceProvider",
    "GeminiTTSProvider",
    "ElevenLabsProvider",
    "EdgeVoiceProvider",
    "LocalVoiceProvider",
    "VoiceProviderFactory",
    "get_voice_provider",

    # Muxing
    "BaseMuxer",
    "TimelineClip",
    "AudioTrack",
    "MoviePyMuxer",
]
