"""
Kie.ai image provider (Nano Banana model).

Produces a still frame for a scene; the assembler holds it for the
scene's target duration. Last link in the default chain.
"""
import json
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

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


class KieImageProvider(BaseVisualProvider):
    """Kie.ai task API: create task, poll recordInfo, download image."""

    BASE_URL = "https://api.kie.ai"
    MODEL = "google/nano-banana"

    def __init__(
        self,
        api_key: Optional[str] = None,
        output_dir: Optional[Path] = None,
        poll_interval: float = 3.0,
        max_wait: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        from campaigngen.config import config
        self._api_key = api_key or config.ai.kie_api_key or ""
        self.output_dir = output_dir or config.paths.media_dir
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.client = client or httpx.AsyncClient(timeout=60.0)

    @property
    def name(self) -> str:
        return "kie"

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _error_from_message(self, message: str) -> ProviderError:
        if is_safety_error(message) or "content" in message.lower():
            return ProviderContentPolicyError(self.name, f"Content blocked: {message}")
        if is_billing_error(message):
            return ProviderQuotaError(self.name, f"Billing error: {message}")
        return ProviderError(self.name, message)

    async def generate(self, prompt: str, duration: float, aspect_ratio: str = "16:9") -> MediaPayload:
        if not self.is_available:
            raise ProviderUnavailable(self.name, "Missing KIE_API_KEY")

        logger.info(f"[KIE] Generating image: {prompt[:80]}...")

        try:
            response = await self.client.post(
                f"{self.BASE_URL}/api/v1/playground/createTask",
                headers=self._get_headers(),
                json={
                    "model": self.MODEL,
                    "input": {
                        "prompt": f"{prompt}, cinematic composition, high quality",
                        "output_format": "png",
                        "image_size": aspect_ratio,
                    },
                },
            )
            raise_for_provider_status(self.name, response)
            result = response.json()

            if result.get("code") != 200:
                raise self._error_from_message(result.get("msg") or "Unknown error")

            task_id = (result.get("data") or {}).get("taskId")
            if not task_id:
                raise ProviderResponseError(self.name, f"No task ID in response: {result}")

            logger.info(f"[KIE] Task created: {task_id}")
            image_url = await self._poll_for_completion(task_id)

            download = await self.client.get(image_url)
            raise_for_provider_status(self.name, download)
        except httpx.HTTPError as e:
            raise error_from_transport(self.name, e) from e

        return await save_payload(
            download.content,
            download.headers.get("content-type", "image/png"),
            self.name,
            self.output_dir,
            duration=duration,
        )

    async def _poll_for_completion(self, task_id: str) -> str:
        """Poll for task completion and return image URL."""
        polls = max(1, int(self.max_wait / self.poll_interval)) if self.poll_interval else 1

        for attempt in range(polls):
            response = await self.client.get(
                f"{self.BASE_URL}/api/v1/playground/recordInfo",
                headers={"Authorization": f"Bearer {self._api_key}"},
                params={"taskId": task_id},
            )
            raise_for_provider_status(self.name, response)
            result = response.json()

            if result.get("code") != 200:
                raise ProviderResponseError(self.name, f"Query error: {result.get('msg')}")

            data = result.get("data") or {}
            state = (data.get("state") or "").lower()

            if state in ("completed", "success"):
                image_url = self._extract_url(data)
                if image_url:
                    return image_url
                raise ProviderResponseError(self.name, "Completed but no image URL found")

            if state == "failed":
                raise self._error_from_message(data.get("failMsg") or data.get("error") or "Image generation failed")

            logger.debug(f"[KIE] Polling task {task_id}: {state} (attempt {attempt + 1})")
            await asyncio.sleep(self.poll_interval)

        raise ProviderTimeoutError(self.name, self.max_wait)

    @staticmethod
    def _extract_url(data: Dict[str, Any]) -> Optional[str]:
        result_json = data.get("resultJson")
        if result_json:
            try:
                urls = json.loads(result_json).get("resultUrls") or []
                if urls:
                    return urls[0]
            except (json.JSONDecodeError, TypeError, AttributeError):
                pass

        output = data.get("output")
        if isinstance(output, dict):
            return output.get("imageUrl") or output.get("image_url")
        if isinstance(output, list) and output:
            return output[0].get("url") or output[0].get("imageUrl")
        return data.get("imageUrl") or data.get("image_url")

    async def close(self) -> None:
        await self.client.aclose()
