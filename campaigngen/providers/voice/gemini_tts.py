"""
Gemini TTS voice provider.

The API returns base64 16-bit PCM at 24 kHz; it is wrapped into a
WAV container before being handed on.
"""
import io
import base64
import wave
import logging
from pathlib import Path
from typing import Optional

import httpx

from .base import BaseVoiceProvider
from ..exceptions import ProviderUnavailable, ProviderResponseError
from ..http import raise_for_provider_status, error_from_transport
from ..media import MediaPayload, save_payload

logger = logging.getLogger(__name__)


NARRATOR_DIRECTION = "Professional, authoritative, high-end commercial narrator: "


def pcm_to_wav(pcm: bytes, sample_rate: int = 24000, channels: int = 1, sample_width: int = 2) -> bytes:
    """Wrap raw PCM frames in a WAV header."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sample_width)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


class GeminiTTSProvider(BaseVoiceProvider):
    """Gemini speech generation with a prebuilt voice."""

    API_URL = "https://generativelanguage.googleapis.com/v1beta/models"
    SAMPLE_RATE = 24000

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        voice: Optional[str] = None,
        output_dir: Optional[Path] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        from campaigngen.config import config
        self._api_key = api_key or config.ai.google_api_key or ""
        self.model = model or config.ai.tts_model
        self.voice = voice or config.ai.tts_voice
        self.output_dir = output_dir or config.paths.media_dir
        self.client = client or httpx.AsyncClient(timeout=120.0)

    @property
    def name(self) -> str:
        return "gemini_tts"

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    async def synthesize(self, text: str) -> MediaPayload:
        if not self.is_available:
            raise ProviderUnavailable(self.name, "Missing GOOGLE_API_KEY")

        logger.info(f"[GEMINI_TTS] Voiceover with {self.voice}: {len(text.split())} words")

        try:
            response = await self.client.post(
                f"{self.API_URL}/{self.model}:generateContent",
                params={"key": self._api_key},
                json={
                    "contents": [{"parts": [{"text": f"{NARRATOR_DIRECTION}{text}"}]}],
                    "generationConfig": {
                        "responseModalities": ["AUDIO"],
                        "speechConfig": {
                            "voiceConfig": {
                                "prebuiltVoiceConfig": {"voiceName": self.voice},
                            },
                        },
                    },
                },
            )
        except httpx.HTTPError as e:
            raise error_from_transport(self.name, e) from e

        raise_for_provider_status(self.name, response)
        result = response.json()

        try:
            inline = result["candidates"][0]["content"]["parts"][0]["inlineData"]
            pcm = base64.b64decode(inline["data"])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderResponseError(self.name, "Audio generation failed: no audio data") from e

        if not pcm:
            raise ProviderResponseError(self.name, "Audio generation failed: empty audio")

        duration = len(pcm) / (self.SAMPLE_RATE * 2)
        return await save_payload(
            pcm_to_wav(pcm, self.SAMPLE_RATE),
            "audio/wav",
            self.name,
            self.output_dir,
            duration=duration,
        )

    async def close(self) -> None:
        await self.client.aclose()
