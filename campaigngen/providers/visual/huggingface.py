"""
Hugging Face Inference API video provider.

A cold model answers 503 with an estimated_time; that surfaces as
ProviderLoadingError so the segment synthesizer can back off and retry.
"""
import logging
from pathlib import Path
from typing import Optional

import httpx

from .base import BaseVisualProvider
from ..exceptions import ProviderUnavailable, ProviderResponseError
from ..http import raise_for_provider_status, error_from_transport
from ..media import MediaPayload, save_payload

logger = logging.getLogger(__name__)


class HuggingFaceVideoProvider(BaseVisualProvider):
    """Text-to-video through the hosted inference endpoint."""

    API_URL = "https://api-inference.huggingface.co/models"
    FPS = 30
    MAX_FRAMES = 240

    def __init__(
        self,
        token: Optional[str] = None,
        model: Optional[str] = None,
        output_dir: Optional[Path] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        from campaigngen.config import config
        self._token = token or config.ai.huggingface_token or ""
        self.model = model or config.ai.huggingface_video_model
        self.output_dir = output_dir or config.paths.media_dir
        self.client = client or httpx.AsyncClient(timeout=300.0)

    @property
    def name(self) -> str:
        return "huggingface"

    @property
    def is_available(self) -> bool:
        return bool(self._token)

    async def generate(self, prompt: str, duration: float, aspect_ratio: str = "16:9") -> MediaPayload:
        if not self.is_available:
            raise ProviderUnavailable(self.name, "Missing HUGGINGFACE_TOKEN")

        num_frames = min(int(duration * self.FPS), self.MAX_FRAMES)
        logger.info(f"[HUGGINGFACE] {self.model}: {num_frames} frames, prompt={prompt[:80]}...")

        try:
            response = await self.client.post(
                f"{self.API_URL}/{self.model}",
                headers={"Authorization": f"Bearer {self._token}"},
                json={
                    "inputs": prompt,
                    "parameters": {
                        "num_frames": num_frames,
                        "guidance_scale": 7.5,
                        "num_inference_steps": 50,
                    },
                },
            )
        except httpx.HTTPError as e:
            raise error_from_transport(self.name, e) from e

        raise_for_provider_status(self.name, response)

        mime_type = response.headers.get("content-type", "video/mp4")
        if not (mime_type.startswith("video/") or mime_type.startswith("image/")):
            raise ProviderResponseError(self.name, f"Unexpected payload type: {mime_type}")
        if not response.content:
            raise ProviderResponseError(self.name, "Empty payload")

        return await save_payload(
            response.content,
            mime_type,
            self.name,
            self.output_dir,
            duration=num_frames / self.FPS,
        )

    async def close(self) -> None:
        await self.client.aclose()
