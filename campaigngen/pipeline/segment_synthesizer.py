"""
Segment Synthesizer.

Produces one SceneAsset per SceneDescriptor through the ordered visual
provider chain:

- the Visual DNA is merged into every scene prompt
- transient failures (loading, timeout, 5xx) wait a fixed backoff and
  retry once on the same provider, then fall through to the next one
- quota/authorization failures mark the provider exhausted for the
  whole run; every later scene skips it
- permanent failures fail the scene outright
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from campaigngen.providers.media import MediaPayload
from campaigngen.providers.visual import BaseVisualProvider

from .fallback import ErrorClass, ExhaustedProviders, classify, next_provider
from .models import SceneAsset, SceneDescriptor

logger = logging.getLogger(__name__)

CONTINUITY_DIRECTION = (
    "Movie-grade quality, strict continuity, anamorphic lens flares, "
    "high-end commercial lighting. Always keep the subjects and environment "
    "consistent with previous frames."
)

SleepFunc = Callable[[float], Awaitable[None]]


def merge_visual_dna(prompt: str, visual_dna: str) -> str:
    """Scene prompt followed by the shared style anchor."""
    prompt = prompt.strip().rstrip(".")
    return f"{prompt}. Visual Style: {visual_dna.strip()}. {CONTINUITY_DIRECTION}"


def _describe(error: BaseException) -> str:
    if isinstance(error, asyncio.TimeoutError):
        return "timed out"
    return str(error) or error.__class__.__name__


class SegmentSynthesizer:
    """Runs scene synthesis against a provider chain."""

    def __init__(
        self,
        chain: Sequence[BaseVisualProvider],
        loading_backoff: float = 20.0,
        timeout: float = 300.0,
        concurrency: int = 1,
        sleep: Optional[SleepFunc] = None,
    ):
        if not chain:
            raise ValueError("Segment synthesis needs at least one visual provider")
        self.chain = list(chain)
        self.loading_backoff = loading_backoff
        self.timeout = timeout
        self.concurrency = max(1, concurrency)
        self._sleep = sleep or asyncio.sleep

    async def _call(self, provider: BaseVisualProvider, prompt: str, descriptor: SceneDescriptor,
                    aspect_ratio: str) -> MediaPayload:
        return await asyncio.wait_for(
            provider.generate(prompt, descriptor.duration, aspect_ratio),
            timeout=self.timeout,
        )

    async def _attempt(self, provider: BaseVisualProvider, prompt: str, descriptor: SceneDescriptor,
                       aspect_ratio: str, asset: SceneAsset):
        """One call, plus a single same-provider retry after a transient error."""
        asset.attempts.append(provider.name)
        try:
            return await self._call(provider, prompt, descriptor, aspect_ratio), None
        except Exception as e:
            if classify(e) is not ErrorClass.TRANSIENT:
                return None, e
            logger.warning(
                f"[SEGMENTS] Scene {descriptor.ordinal}: {provider.name} {_describe(e)}, "
                f"retrying in {self.loading_backoff:.0f}s"
            )

        await self._sleep(self.loading_backoff)
        asset.attempts.append(provider.name)
        try:
            return await self._call(provider, prompt, descriptor, aspect_ratio), None
        except Exception as e:
            return None, e

    async def synthesize(
        self,
        descriptor: SceneDescriptor,
        visual_dna: str,
        exhausted: ExhaustedProviders,
        aspect_ratio: str = "16:9",
    ) -> SceneAsset:
        """
        Synthesize one scene. Never raises for provider failures; the
        returned asset carries status and last error instead.
        """
        asset = SceneAsset(ordinal=descriptor.ordinal, duration=descriptor.duration)
        prompt = merge_visual_dna(descriptor.prompt, visual_dna)
        passed_over = set()
        last_error: Optional[str] = None

        while True:
            provider = next_provider(self.chain, exhausted.snapshot() | passed_over)
            if provider is None:
                break

            media, error = await self._attempt(provider, prompt, descriptor, aspect_ratio, asset)
            if error is None:
                asset.mark_succeeded(media, provider.name)
                logger.info(f"[SEGMENTS] Scene {descriptor.ordinal} done via {provider.name}")
                return asset

            error_class = classify(error)
            last_error = f"{provider.name}: {_describe(error)}"

            if error_class is ErrorClass.TRANSIENT:
                # Still failing after the retry; next provider for this scene only
                logger.warning(f"[SEGMENTS] Scene {descriptor.ordinal}: {last_error}, falling through")
                passed_over.add(provider.name)
            elif error_class is ErrorClass.QUOTA_EXHAUSTED:
                exhausted.mark(provider.name, _describe(error))
            else:
                logger.error(f"[SEGMENTS] Scene {descriptor.ordinal} failed permanently: {last_error}")
                asset.mark_failed(last_error)
                return asset

        asset.mark_failed(last_error or "No visual provider left in the chain")
        logger.error(f"[SEGMENTS] Scene {descriptor.ordinal} exhausted the provider chain: {asset.error}")
        return asset

    async def synthesize_all(
        self,
        scenes: Sequence[SceneDescriptor],
        visual_dna: str,
        exhausted: ExhaustedProviders,
        aspect_ratio: str = "16:9",
    ) -> List[SceneAsset]:
        """Synthesize every scene with bounded concurrency, returned in ordinal order."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(descriptor: SceneDescriptor) -> SceneAsset:
            async with semaphore:
                return await self.synthesize(descriptor, visual_dna, exhausted, aspect_ratio)

        ordered = sorted(scenes, key=lambda s: s.ordinal)
        logger.info(
            f"[SEGMENTS] Synthesizing {len(ordered)} scenes "
            f"(chain: {' -> '.join(p.name for p in self.chain)}, concurrency {self.concurrency})"
        )
        assets = await asyncio.gather(*(run(descriptor) for descriptor in ordered))

        assets = sorted(assets, key=lambda a: a.ordinal)
        succeeded = sum(1 for a in assets if a.succeeded)
        logger.info(f"[SEGMENTS] {succeeded}/{len(assets)} scenes succeeded")
        return assets
