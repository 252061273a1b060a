"""
Pipeline Orchestrator.

Drives one campaign run through

    ANALYZING -> SYNTHESIZING_SEGMENTS -> SYNTHESIZING_NARRATION -> ASSEMBLING -> COMPLETED

with FAILED reachable from any state, wrapped in the credit
reserve/commit/release contract:
- no provider is called before the reservation succeeds
- credits are committed only after assembly succeeds
- every failure path (including cancellation) releases the reservation
"""
import logging
from typing import Optional

from campaigngen.config import PipelineConfig
from campaigngen.credits import CreditError, CreditLedger, InsufficientCreditsError, get_credit_ledger

from .assembler import Assembler
from .exceptions import (
    AllSegmentsFailedError,
    CreditReservationError,
    CreditSettlementError,
    InvalidAnalysisError,
    PipelineCancelledError,
    PipelineError,
    TierNotEligibleError,
)
from .fallback import ExhaustedProviders
from .models import CampaignRequest, NarrativeAnalysis, PipelinePhase, PipelineResult
from .narration_synthesizer import NarrationSynthesizer
from .narrative_analyzer import NarrativeAnalyzer
from .progress import CancellationToken, ProgressCallback, ProgressReporter
from .segment_synthesizer import SegmentSynthesizer
from .subject import BaseSubjectResolver, StaticSubjectResolver, SubjectInfo, WebPageSubjectResolver

logger = logging.getLogger(__name__)


class CampaignOrchestrator:
    """Runs the generative campaign pipeline for one request at a time."""

    def __init__(
        self,
        analyzer: NarrativeAnalyzer,
        segments: SegmentSynthesizer,
        narration: NarrationSynthesizer,
        assembler: Assembler,
        ledger: Optional[CreditLedger] = None,
        subject_resolver: Optional[BaseSubjectResolver] = None,
        settings: Optional[PipelineConfig] = None,
    ):
        if settings is None:
            from campaigngen.config import config
            settings = config.pipeline
        self.analyzer = analyzer
        self.segments = segments
        self.narration = narration
        self.assembler = assembler
        self.ledger = ledger or get_credit_ledger()
        self.subject_resolver = subject_resolver or StaticSubjectResolver()
        self.settings = settings

    @classmethod
    def from_config(cls, app_config=None) -> "CampaignOrchestrator":
        """Wire the configured providers, muxer and ledger."""
        from campaigngen.providers.muxing import MoviePyMuxer
        from campaigngen.providers.reasoning import GeminiReasoningProvider
        from campaigngen.providers.visual import get_visual_chain
        from campaigngen.providers.voice import get_voice_provider

        if app_config is None:
            from campaigngen.config import config as app_config

        settings = app_config.pipeline
        return cls(
            analyzer=NarrativeAnalyzer(GeminiReasoningProvider(), timeout=settings.analysis_timeout_seconds),
            segments=SegmentSynthesizer(
                get_visual_chain(settings.visual_chain),
                loading_backoff=settings.loading_backoff_seconds,
                timeout=settings.segment_timeout_seconds,
                concurrency=settings.segment_concurrency,
            ),
            narration=NarrationSynthesizer(
                get_voice_provider(settings.narration_provider),
                timeout=settings.narration_timeout_seconds,
            ),
            assembler=Assembler(
                MoviePyMuxer(ffmpeg_path=app_config.paths.ffmpeg_path),
                output_dir=app_config.paths.media_dir,
                timeout=settings.assembly_timeout_seconds,
            ),
            ledger=get_credit_ledger(),
            subject_resolver=WebPageSubjectResolver(),
            settings=settings,
        )

    # =========================================================================
    # Run
    # =========================================================================

    async def run(
        self,
        request: CampaignRequest,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PipelineResult:
        """
        Execute one campaign run.

        Never raises for pipeline failures: the returned PipelineResult
        carries either the AssembledCampaign or the typed PipelineError.
        """
        progress = ProgressReporter(on_progress)
        reservation_id: Optional[str] = None
        committed = False

        logger.info(
            f"[ORCHESTRATOR] Run for account={request.account_id} tier={request.account_tier} "
            f"privileged={request.is_privileged} channel={request.channel} ratio={request.aspect_ratio.value}"
        )

        try:
            self._check_tier(request)
            if not request.is_privileged and self.settings.credit_cost > 0:
                reservation_id = self._reserve(request)

            self._checkpoint(cancel_token, PipelinePhase.ANALYZING)
            progress.advance(PipelinePhase.ANALYZING)
            analysis = await self._analyze(request)

            self._checkpoint(cancel_token, PipelinePhase.SYNTHESIZING_SEGMENTS)
            progress.advance(PipelinePhase.SYNTHESIZING_SEGMENTS)
            exhausted = ExhaustedProviders()
            assets = await self.segments.synthesize_all(
                analysis.scenes, analysis.visual_dna, exhausted, request.aspect_ratio.value
            )
            succeeded = [asset for asset in assets if asset.succeeded]
            if not succeeded:
                last_error = next((a.error for a in reversed(assets) if a.error), None)
                raise AllSegmentsFailedError(len(assets), last_error)
            if len(exhausted):
                logger.warning(f"[ORCHESTRATOR] Exhausted providers this run: {sorted(exhausted.snapshot())}")

            self._checkpoint(cancel_token, PipelinePhase.SYNTHESIZING_NARRATION)
            progress.advance(PipelinePhase.SYNTHESIZING_NARRATION)
            narration = await self.narration.synthesize(analysis.script)

            self._checkpoint(cancel_token, PipelinePhase.ASSEMBLING)
            progress.advance(PipelinePhase.ASSEMBLING)
            campaign = await self.assembler.assemble(assets, narration, analysis, request.aspect_ratio)

            if reservation_id is not None:
                self._commit(reservation_id)
                committed = True

            progress.advance(PipelinePhase.COMPLETED)
            logger.info(
                f"[ORCHESTRATOR] Completed: {len(campaign.scenes)} scenes, "
                f"{campaign.failed_segment_count} failed, video={campaign.video.path}"
            )
            return PipelineResult(
                phase=PipelinePhase.COMPLETED,
                campaign=campaign,
                reservation_id=reservation_id,
                phases=progress.history,
            )

        except PipelineError as e:
            logger.error(f"[ORCHESTRATOR] Failed [{e.code.value}]: {e.message}")
            progress.advance(PipelinePhase.FAILED)
            return PipelineResult(
                phase=PipelinePhase.FAILED,
                error=e,
                reservation_id=reservation_id,
                phases=progress.history,
            )

        finally:
            if reservation_id is not None and not committed:
                self._release(reservation_id)

    # =========================================================================
    # Stages
    # =========================================================================

    def _check_tier(self, request: CampaignRequest) -> None:
        if request.is_privileged:
            return
        if request.account_tier.lower() not in self.settings.eligible_tiers:
            raise TierNotEligibleError(request.account_tier)

    def _reserve(self, request: CampaignRequest) -> str:
        try:
            return self.ledger.reserve(request.account_id, self.settings.credit_cost)
        except InsufficientCreditsError as e:
            raise CreditReservationError(request.account_id, e.required, e.available, cause=e) from e

    def _commit(self, reservation_id: str) -> None:
        try:
            self.ledger.commit(reservation_id)
        except CreditError as e:
            raise CreditSettlementError(reservation_id, cause=e) from e

    def _release(self, reservation_id: str) -> None:
        try:
            self.ledger.release(reservation_id)
        except CreditError as e:
            logger.error(f"[ORCHESTRATOR] Could not release {reservation_id}: {e.message}")

    @staticmethod
    def _checkpoint(cancel_token: Optional[CancellationToken], next_phase: PipelinePhase) -> None:
        if cancel_token is not None and cancel_token.cancelled:
            raise PipelineCancelledError(next_phase.value)

    async def _resolve_subject(self, request: CampaignRequest) -> SubjectInfo:
        reference = request.subject_ref.strip() or self.settings.platform_url
        if request.subject_name:
            return SubjectInfo(
                reference=reference,
                name=request.subject_name,
                description=request.subject_description or "",
            )
        return await self.subject_resolver.resolve(reference)

    async def _analyze(self, request: CampaignRequest) -> NarrativeAnalysis:
        scene_count = self.settings.scene_count
        try:
            subject = await self._resolve_subject(request)
            analysis = await self.analyzer.analyze(subject, request.channel, scene_count)
        except PipelineError:
            raise
        except Exception as e:
            raise InvalidAnalysisError(f"Analysis failed: {e}", cause=e) from e

        if len(analysis.scenes) != scene_count:
            raise InvalidAnalysisError(f"Expected {scene_count} scenes, got {len(analysis.scenes)}")
        return analysis

    async def close(self) -> None:
        """Close provider network clients."""
        await self.analyzer.provider.close()
        for provider in self.segments.chain:
            await provider.close()
        await self.narration.provider.close()
        await self.subject_resolver.close()
