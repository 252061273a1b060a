"""
edge-tts voice provider.
Free neural voices; no API key required.
"""
import uuid
import asyncio
import logging
from pathlib import Path
from typing import Optional

import aiofiles

from .base import BaseVoiceProvider
from ..exceptions import ProviderResponseError, ProviderTransientError
from ..media import MediaPayload, probe_audio_duration

logger = logging.getLogger(__name__)


class EdgeVoiceProvider(BaseVoiceProvider):
    """Microsoft Edge read-aloud voices through edge-tts."""

    DEFAULT_VOICE = "en-US-GuyNeural"

    def __init__(
        self,
        voice: str = DEFAULT_VOICE,
        rate: str = "+0%",
        output_dir: Optional[Path] = None,
    ):
        from campaigngen.config import config
        self.voice = voice
        self.rate = rate
        self.output_dir = output_dir or config.paths.media_dir

    @property
    def name(self) -> str:
        return "edge"

    @property
    def is_available(self) -> bool:
        return True

    async def synthesize(self, text: str) -> MediaPayload:
        import edge_tts
        from edge_tts.exceptions import NoAudioReceived, WebSocketError

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / f"{self.name}_{uuid.uuid4().hex}.mp3"
        communicate = edge_tts.Communicate(text, self.voice, rate=self.rate)

        logger.info(f"[EDGE_TTS] Voiceover with {self.voice}: {len(text.split())} words")

        # Last boundary event gives the spoken length without probing the file
        end_time = 0.0
        try:
            async with aiofiles.open(output_path, "wb") as audio_file:
                async for chunk in communicate.stream():
                    if chunk["type"] == "audio":
                        await audio_file.write(chunk["data"])
                    elif chunk["type"] in ("WordBoundary", "SentenceBoundary"):
                        end_time = (chunk["offset"] + chunk["duration"]) / 10_000_000
        except NoAudioReceived as e:
            raise ProviderResponseError(self.name, "No audio received") from e
        except WebSocketError as e:
            raise ProviderTransientError(self.name, f"Websocket error: {e}") from e

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise ProviderResponseError(self.name, "Empty audio file")

        if not end_time:
            end_time = await asyncio.to_thread(probe_audio_duration, output_path)

        return MediaPayload(
            path=output_path,
            mime_type="audio/mpeg",
            provider=self.name,
            duration=end_time,
        )
