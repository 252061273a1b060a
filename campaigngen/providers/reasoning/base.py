"""
Base class for reasoning (narrative analysis) providers.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class GroundingSource:
    """Citation returned alongside a grounded answer."""
    uri: str
    title: str = "Market Insight"

    def to_dict(self) -> dict:
        return {"uri": self.uri, "title": self.title}


@dataclass
class ReasoningResponse:
    """Parsed JSON answer plus any citation metadata."""
    data: Dict[str, Any]
    sources: List[GroundingSource] = field(default_factory=list)


class BaseReasoningProvider(ABC):
    """Abstract base class for reasoning providers."""

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
    async def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> ReasoningResponse:
        """
        Run one schema-constrained generation.

        Args:
            prompt: Full instruction text
            schema: Response schema the answer must satisfy

        Returns:
            ReasoningResponse with the decoded JSON object

        Raises:
            ProviderError subclasses on any failure
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass
