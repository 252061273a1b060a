"""
Provider exceptions.

The subclass tells the fallback policy how to treat a failure:
loading/timeout/server errors are transient, quota and authorization
errors exhaust the provider for the run, everything else is permanent.
"""
from typing import Optional


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{provider}] {message}")


class ProviderUnavailable(ProviderError):
    """Provider is not available (missing API key, rejected credentials)."""

    def __init__(self, provider: str, reason: str = "unavailable", status_code: Optional[int] = None):
        super().__init__(provider, f"Provider unavailable: {reason}", status_code)
        self.reason = reason


class ProviderQuotaError(ProviderError):
    """Billing, quota or rate limit exhausted."""
    pass


class ProviderTransientError(ProviderError):
    """Temporary failure worth one more attempt against the same provider."""
    pass


class ProviderLoadingError(ProviderTransientError):
    """Model is still loading (cold start)."""

    def __init__(self, provider: str, estimated_time: Optional[float] = None, status_code: Optional[int] = 503):
        message = "Model is loading"
        if estimated_time is not None:
            message += f" (estimated {estimated_time:.0f}s)"
        super().__init__(provider, message, status_code)
        self.estimated_time = estimated_time


class ProviderTimeoutError(ProviderTransientError):
    """Provider call exceeded its timeout."""

    def __init__(self, provider: str, timeout: float):
        super().__init__(provider, f"Timed out after {timeout:.0f}s")
        self.timeout = timeout


class ProviderContentPolicyError(ProviderError):
    """Prompt rejected by a safety filter."""
    pass


class ProviderResponseError(ProviderError):
    """Provider answered but the payload was unusable."""
    pass
