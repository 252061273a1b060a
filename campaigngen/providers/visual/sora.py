"""
Sora 2 video provider.

Task-based API:
1. Create task -> get task id
2. Poll for completion
3. Download video
"""
import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx

from .base import BaseVisualProvider
from ..exceptions import (
    ProviderError,
    ProviderUnavailable,
    ProviderQuotaError,
    ProviderContentPolicyError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from ..http import raise_for_provider_status, error_from_transport, is_billing_error, is_safety_error
from ..media import MediaPayload, save_payload

logger = logging.getLogger(__name__)


class SoraVideoProvider(BaseVisualProvider):
    """Sora 2 generation through the task gateway."""

    BASE_URL = "https://freesoragenerator.com"
    MODEL = "sora-2"
    CLIP_SECONDS = 10.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        output_dir: Optional[Path] = None,
        poll_interval: float = 5.0,
        max_polls: int = 60,
        client: Optional[httpx.AsyncClient] = None,
    ):
        from campaigngen.config import config
        self._api_key = api_key or config.ai.sora_api_key or ""
        self.output_dir = output_dir or config.paths.media_dir
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.client = client or httpx.AsyncClient(timeout=60.0)

    @property
    def name(self) -> str:
        return "sora"

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _error_from_message(self, message: str) -> ProviderError:
        if is_safety_error(message):
            return ProviderContentPolicyError(self.name, f"Content blocked: {message}")
        if is_billing_error(message):
            return ProviderQuotaError(self.name, f"Billing error: {message}")
        return ProviderError(self.name, message)

    async def generate(self, prompt: str, duration: float, aspect_ratio: str = "16:9") -> MediaPayload:
        if not self.is_available:
            raise ProviderUnavailable(self.name, "Missing SORA_API_KEY")

        logger.info(f"[SORA] Starting generation: {prompt[:80]}...")

        try:
            response = await self.client.post(
                f"{self.BASE_URL}/api/v1/video/sora-video",
                headers=self._get_headers(),
                json={
                    "model": self.MODEL,
                    "prompt": prompt,
                    "aspectRatio": aspect_ratio,
                    "isPublic": False,
                },
            )
            raise_for_provider_status(self.name, response)
            created = response.json()

            if created.get("code") != 0:
                raise self._error_from_message(created.get("message") or "Task creation failed")

            task_id = (created.get("data") or {}).get("id")
            if not task_id:
                raise ProviderResponseError(self.name, f"No task id in response: {created}")

            logger.info(f"[SORA] Task created: {task_id}")
            video_url = await self._poll_for_completion(task_id)

            download = await self.client.get(video_url)
            raise_for_provider_status(self.name, download)
        except httpx.HTTPError as e:
            raise error_from_transport(self.name, e) from e

        return await save_payload(
            download.content,
            download.headers.get("content-type", "video/mp4"),
            self.name,
            self.output_dir,
            duration=self.CLIP_SECONDS,
        )

    async def _poll_for_completion(self, task_id: str) -> str:
        """Poll until the task succeeds and return the result URL."""
        for attempt in range(1, self.max_polls + 1):
            await asyncio.sleep(self.poll_interval)

            response = await self.client.post(
                f"{self.BASE_URL}/api/video-generations/check-result",
                headers=self._get_headers(),
                json={"taskId": task_id},
            )
            if not response.is_success:
                logger.warning(f"[SORA] Check failed: {response.status_code}")
                continue

            result = response.json()
            if result.get("code") != 0:
                logger.warning(f"[SORA] Check error: {result.get('message')}")
                continue

            data = result.get("data") or {}
            status = data.get("status")
            logger.debug(f"[SORA] Task {task_id}: {status} {data.get('progress', 0)}% (poll {attempt})")

            if status == "succeeded" and data.get("result_url"):
                return data["result_url"]

            if status == "failed":
                raise self._error_from_message(data.get("failure_reason") or "Video generation failed")

        raise ProviderTimeoutError(self.name, self.poll_interval * self.max_polls)

    async def close(self) -> None:
        await self.client.aclose()
