"""
Gemini reasoning provider.

Calls generateContent with a JSON response schema and Google Search
grounding, and returns the parsed object plus grounding citations.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import BaseReasoningProvider, GroundingSource, ReasoningResponse
from ..exceptions import ProviderUnavailable, ProviderResponseError, ProviderContentPolicyError
from ..http import raise_for_provider_status, error_from_transport

logger = logging.getLogger(__name__)


class GeminiReasoningProvider(BaseReasoningProvider):
    """Google Gemini structured-output provider."""

    API_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        use_search: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ):
        from campaigngen.config import config
        self._api_key = api_key or config.ai.google_api_key or ""
        self.model = model or config.ai.reasoning_model
        self.use_search = use_search
        self.client = client or httpx.AsyncClient(timeout=120.0)

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    async def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> ReasoningResponse:
        if not self.is_available:
            raise ProviderUnavailable(self.name, "Missing GOOGLE_API_KEY")

        body: Dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        if self.use_search:
            body["tools"] = [{"google_search": {}}]

        logger.info(f"[GEMINI] Structured generation with {self.model}")

        try:
            response = await self.client.post(
                f"{self.API_URL}/{self.model}:generateContent",
                params={"key": self._api_key},
                json=body,
            )
        except httpx.HTTPError as e:
            raise error_from_transport(self.name, e) from e

        raise_for_provider_status(self.name, response)
        result = response.json()

        candidates = result.get("candidates") or []
        if not candidates:
            feedback = result.get("promptFeedback", {})
            if feedback.get("blockReason"):
                raise ProviderContentPolicyError(self.name, f"Prompt blocked: {feedback['blockReason']}")
            raise ProviderResponseError(self.name, "No candidates in response")

        candidate = candidates[0]
        text = "".join(
            part.get("text", "")
            for part in candidate.get("content", {}).get("parts", [])
        )

        try:
            data = json.loads(text or "{}")
        except json.JSONDecodeError as e:
            raise ProviderResponseError(self.name, f"Response is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProviderResponseError(self.name, "Response JSON is not an object")

        return ReasoningResponse(data=data, sources=self._extract_sources(candidate))

    def _extract_sources(self, candidate: Dict[str, Any]) -> List[GroundingSource]:
        chunks = candidate.get("groundingMetadata", {}).get("groundingChunks") or []
        sources = []
        for chunk in chunks:
            web = chunk.get("web") or {}
            uri = web.get("uri") or ""
            if uri:
                sources.append(GroundingSource(uri=uri, title=web.get("title") or "Market Insight"))
        return sources

    async def close(self) -> None:
        await self.client.aclose()
