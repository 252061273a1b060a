"""
ElevenLabs voice provider.
"""
import os
import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

import httpx

from .base import BaseVoiceProvider
from ..exceptions import ProviderUnavailable, ProviderResponseError
from ..http import raise_for_provider_status, error_from_transport
from ..media import MediaPayload, save_payload, probe_audio_duration

logger = logging.getLogger(__name__)


class ElevenLabsProvider(BaseVoiceProvider):
    """ElevenLabs TTS API provider."""

    ENV_KEY = "ELEVENLABS_API_KEY"
    API_URL = "https://api.elevenlabs.io/v1/text-to-speech"
    DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"
    MODEL_ID = "eleven_multilingual_v2"

    def __init__(
        self,
        api_key: Optional[str] = None,
        voice_id: Optional[str] = None,
        output_dir: Optional[Path] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        from campaigngen.config import config
        self._api_key = api_key or config.ai.elevenlabs_api_key or os.environ.get(self.ENV_KEY)
        self.voice_id = voice_id or os.environ.get("ELEVENLABS_VOICE_ID", self.DEFAULT_VOICE_ID)
        self.output_dir = output_dir or config.paths.media_dir
        self.client = client or httpx.AsyncClient(timeout=120.0)

    @property
    def name(self) -> str:
        return "elevenlabs"

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    async def synthesize(self, text: str) -> MediaPayload:
        if not self.is_available:
            raise ProviderUnavailable(self.name, f"Missing {self.ENV_KEY}")

        logger.info(f"[ELEVENLABS] Voiceover with voice {self.voice_id}: {len(text.split())} words")

        try:
            response = await self.client.post(
                f"{self.API_URL}/{self.voice_id}",
                headers={"xi-api-key": self._api_key, "Accept": "audio/mpeg"},
                json={"text": text, "model_id": self.MODEL_ID},
            )
        except httpx.HTTPError as e:
            raise error_from_transport(self.name, e) from e

        raise_for_provider_status(self.name, response)
        if not response.content:
            raise ProviderResponseError(self.name, "Empty audio payload")

        payload = await save_payload(response.content, "audio/mpeg", self.name, self.output_dir)
        duration = await asyncio.to_thread(probe_audio_duration, payload.path)
        return replace(payload, duration=duration)

    async def close(self) -> None:
        await self.client.aclose()
