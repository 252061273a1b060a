"""
Reasoning providers.
"""
from .base import BaseReasoningProvider, GroundingSource, ReasoningResponse
from .gemini import GeminiReasoningProvider

__all__ = [
    "BaseReasoningProvider",
    "GroundingSource",
    "ReasoningResponse",
    "GeminiReasoningProvider",
]
