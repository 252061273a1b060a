"""
HTTP error mapping shared by provider clients.

Turns an httpx response or transport failure into the provider
exception class the fallback policy understands.
"""
import logging
from typing import Optional, Set

import httpx

from .exceptions import (
    ProviderError,
    ProviderUnavailable,
    ProviderQuotaError,
    ProviderTransientError,
    ProviderLoadingError,
    ProviderContentPolicyError,
)

logger = logging.getLogger(__name__)

# Substrings matched against a provider's own failure message
# (task status fields), never against arbitrary response bodies.
BILLING_KEYWORDS = [
    "billing", "quota", "insufficient_funds",
    "insufficient balance", "resource_exhausted",
]

# Exact values of a JSON error-code field that mean the account is out of quota.
QUOTA_ERROR_CODES = {
    "resource_exhausted", "insufficient_quota",
    "insufficient_funds", "billing_hard_limit_reached",
}

SAFETY_KEYWORDS = [
    "safety", "blocked", "content policy", "content_policy",
    "responsible ai", "prohibited", "nsfw",
]


def is_billing_error(text: str) -> bool:
    """Check if a provider failure message reads like a billing/quota problem."""
    lowered = text.lower()
    return any(kw in lowered for kw in BILLING_KEYWORDS)


def is_safety_error(text: str) -> bool:
    """Check if error text reads like a safety filter rejection."""
    lowered = text.lower()
    return any(kw in lowered for kw in SAFETY_KEYWORDS)


def _json_body(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return None


def _loading_estimate(response: httpx.Response) -> Optional[float]:
    body = _json_body(response)
    if isinstance(body, dict) and "estimated_time" in body:
        try:
            return float(body["estimated_time"])
        except (TypeError, ValueError):
            return None
    return None


def _error_codes(response: httpx.Response) -> Set[str]:
    """
    Collect error-code fields from a JSON error body.
    Handles the Google shape {"error": {"status": ...}}, the OpenAI-style
    {"error": {"code"|"type": ...}} and flat {"code": ...} bodies.
    """
    body = _json_body(response)
    if not isinstance(body, dict):
        return set()

    fields = [body]
    if isinstance(body.get("error"), dict):
        fields.append(body["error"])

    codes = set()
    for field in fields:
        for key in ("status", "code", "type"):
            value = field.get(key)
            if isinstance(value, str):
                codes.add(value.lower())
    return codes


def error_from_response(provider: str, response: httpx.Response) -> ProviderError:
    """Classify a non-success HTTP response."""
    status = response.status_code
    text = response.text[:500]

    if status == 503:
        estimate = _loading_estimate(response)
        if estimate is not None or "loading" in text.lower():
            return ProviderLoadingError(provider, estimated_time=estimate, status_code=status)
        return ProviderTransientError(provider, f"Service unavailable: {text}", status)

    if status in (401, 403):
        return ProviderUnavailable(provider, f"authorization rejected ({status})", status)

    if status in (402, 429):
        return ProviderQuotaError(provider, f"Quota exhausted ({status}): {text}", status)

    if is_safety_error(text):
        return ProviderContentPolicyError(provider, f"Content blocked: {text}", status)

    if _error_codes(response) & QUOTA_ERROR_CODES:
        return ProviderQuotaError(provider, f"Quota exhausted ({status}): {text}", status)

    if status == 408 or status >= 500:
        return ProviderTransientError(provider, f"Server error {status}: {text}", status)

    return ProviderError(provider, f"Request rejected ({status}): {text}", status)


def raise_for_provider_status(provider: str, response: httpx.Response) -> None:
    """Raise the classified provider error for non-2xx responses."""
    if response.is_success:
        return

    error = error_from_response(provider, response)
    logger.warning(f"[{provider.upper()}] {type(error).__name__}: {error.message[:200]}")
    raise error


def error_from_transport(provider: str, exc: httpx.HTTPError) -> ProviderError:
    """Network-level failures are transient."""
    return ProviderTransientError(provider, f"Transport error: {exc}")
