"""
Provider Fallback Policy.

Pure decisions, no I/O:
- classify(error) sorts a provider failure into transient / quota / permanent
- next_provider(chain, exhausted) picks the first provider not yet exhausted

The exhausted set itself belongs to the run (ExhaustedProviders), so
concurrent runs never see each other's fallback decisions.
"""
import asyncio
import logging
import threading
from enum import Enum
from typing import Iterable, Optional, Sequence, Set

from campaigngen.providers.exceptions import (
    ProviderQuotaError,
    ProviderTransientError,
    ProviderUnavailable,
)

logger = logging.getLogger(__name__)


class ErrorClass(str, Enum):
    TRANSIENT = "transient"
    QUOTA_EXHAUSTED = "quota_exhausted"
    PERMANENT = "permanent"

    @property
    def retry_same_provider(self) -> bool:
        return self is ErrorClass.TRANSIENT

    @property
    def exhausts_provider(self) -> bool:
        return self is ErrorClass.QUOTA_EXHAUSTED


def classify(error: BaseException) -> ErrorClass:
    """
    Classify a provider failure.

    Timeouts and loading signals are transient. Quota, billing, rate
    limit and authorization failures exhaust the provider. Anything
    else, including safety rejections and malformed payloads, is
    permanent: no provider in the chain can fix it.
    """
    if isinstance(error, (asyncio.TimeoutError, ProviderTransientError)):
        return ErrorClass.TRANSIENT
    if isinstance(error, (ProviderQuotaError, ProviderUnavailable)):
        return ErrorClass.QUOTA_EXHAUSTED
    return ErrorClass.PERMANENT


def next_provider(chain: Sequence, exhausted: Iterable[str]):
    """First provider in chain order whose name is not exhausted, or None."""
    exhausted = set(exhausted)
    for provider in chain:
        if getattr(provider, "name", provider) not in exhausted:
            return provider
    return None


class ExhaustedProviders:
    """Run-scoped set of providers that hit quota or authorization limits."""

    def __init__(self, names: Optional[Iterable[str]] = None):
        self._names: Set[str] = set(names or ())
        self._lock = threading.Lock()

    def mark(self, name: str, reason: str = "") -> bool:
        """Mark a provider exhausted. Returns False if it already was."""
        with self._lock:
            if name in self._names:
                return False
            self._names.add(name)
        logger.warning(f"[FALLBACK] Provider '{name}' exhausted for this run: {reason}")
        return True

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __iter__(self):
        with self._lock:
            return iter(set(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def snapshot(self) -> Set[str]:
        with self._lock:
            return set(self._names)
