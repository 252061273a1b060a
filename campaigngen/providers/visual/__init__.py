"""
Visual (image/video synthesis) providers.
"""
from .base import BaseVisualProvider
from .huggingface import HuggingFaceVideoProvider
from .sora import SoraVideoProvider
from .kie import KieImageProvider
from .factory import VisualProviderFactory, get_visual_chain

__all__ = [
    "BaseVisualProvider",
    "HuggingFaceVideoProvider",
    "SoraVideoProvider",
    "KieImageProvider",
    "VisualProviderFactory",
    "get_visual_chain",
]
