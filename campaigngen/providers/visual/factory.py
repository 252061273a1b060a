"""
Visual provider factory.
"""
import logging
from typing import List, Optional, Sequence

from .base import BaseVisualProvider
from .huggingface import HuggingFaceVideoProvider
from .sora import SoraVideoProvider
from .kie import KieImageProvider

logger = logging.getLogger(__name__)


class VisualProviderFactory:
    """Builds the ordered provider chain for scene synthesis."""

    _providers = {
        "huggingface": HuggingFaceVideoProvider,
        "sora": SoraVideoProvider,
        "kie": KieImageProvider,
    }

    @classmethod
    def create(cls, provider: str) -> BaseVisualProvider:
        if provider not in cls._providers:
            raise ValueError(
                f"Unknown visual provider: {provider} "
                f"(expected one of {', '.join(cls._providers)})"
            )
        return cls._providers[provider]()

    @classmethod
    def build_chain(cls, names: Sequence[str], skip_unavailable: bool = True) -> List[BaseVisualProvider]:
        """
        Instantiate providers in chain order.
        Providers without credentials are dropped when skip_unavailable is set.
        """
        chain = []
        for name in names:
            provider = cls.create(name)
            if skip_unavailable and not provider.is_available:
                logger.warning(f"[FACTORY] Visual provider '{name}' not configured, leaving it out of the chain")
                continue
            chain.append(provider)
        return chain


def get_visual_chain(names: Optional[Sequence[str]] = None) -> List[BaseVisualProvider]:
    """Get the configured visual provider chain."""
    if names is None:
        from campaigngen.config import config
        names = config.pipeline.visual_chain
    return VisualProviderFactory.build_chain(names)
