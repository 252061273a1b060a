"""
Narration Synthesizer.

One provider, one attempt, one audio track for the whole script.
"""
import asyncio
import logging

from campaigngen.providers.media import probe_audio_duration
from campaigngen.providers.voice import BaseVoiceProvider

from .exceptions import NarrationFailedError
from .models import NarrationAsset

logger = logging.getLogger(__name__)


class NarrationSynthesizer:
    def __init__(self, provider: BaseVoiceProvider, timeout: float = 120.0):
        self.provider = provider
        self.timeout = timeout

    async def synthesize(self, script: str) -> NarrationAsset:
        """
        Synthesize the full script.

        Raises:
            NarrationFailedError: empty script, provider error or timeout
        """
        if not script or not script.strip():
            raise NarrationFailedError("Narration script is empty")

        logger.info(f"[NARRATION] Synthesizing {len(script.split())} words with {self.provider.name}")

        try:
            media = await asyncio.wait_for(self.provider.synthesize(script.strip()), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise NarrationFailedError(f"Narration timed out after {self.timeout:.0f}s", cause=e) from e
        except Exception as e:
            raise NarrationFailedError(f"Narration failed: {e}", cause=e) from e

        duration = media.duration
        if duration is None:
            try:
                duration = await asyncio.to_thread(probe_audio_duration, media.path)
            except Exception as e:
                raise NarrationFailedError(f"Could not read narration duration: {e}", cause=e) from e

        if duration <= 0:
            raise NarrationFailedError("Narration audio is empty")

        logger.info(f"[NARRATION] Audio ready: {media.path} ({duration:.1f}s)")
        return NarrationAsset(media=media, duration=duration)
