"""
Tests for the pipeline orchestrator: state machine, partial failure,
sticky fallback and the credit contract.
"""
import pytest

from campaigngen.pipeline import (
    CancellationToken,
    ErrorCode,
    PipelinePhase,
)
from campaigngen.providers.exceptions import (
    ProviderContentPolicyError,
    ProviderQuotaError,
    ProviderResponseError,
)

HAPPY_PATH = [
    PipelinePhase.ANALYZING,
    PipelinePhase.SYNTHESIZING_SEGMENTS,
    PipelinePhase.SYNTHESIZING_NARRATION,
    PipelinePhase.ASSEMBLING,
    PipelinePhase.COMPLETED,
]


def _phases_by_state(ledger, account_id):
    return [t.phase.value for t in ledger.get_history(account_id)]


class TestScenarios:
    """End-to-end runs over provider doubles."""

    @pytest.mark.asyncio
    async def test_all_segments_succeed(self, make_orchestrator, make_request, make_visual, ledger, funded_account):
        primary = make_visual("primary")
        orchestrator = make_orchestrator(chain=[primary, make_visual("secondary")])
        seen = []

        result = await orchestrator.run(make_request(), on_progress=seen.append)

        assert result.ok
        assert result.phase is PipelinePhase.COMPLETED
        assert seen == HAPPY_PATH
        assert result.phases == HAPPY_PATH
        campaign = result.campaign
        assert len(campaign.scenes) == 5
        assert campaign.failed_segment_count == 0
        assert {a.provider for a in campaign.scenes} == {"primary"}
        assert campaign.sources[0].uri == "https://example.com/report"
        assert campaign.aspect_ratio.value == "9:16"

        history = ledger.get_history(funded_account)
        assert len(history) == 1
        assert history[0].phase.value == "committed"
        assert history[0].cost == 200
        assert ledger.get_balance(funded_account) == 800

    @pytest.mark.asyncio
    async def test_quota_on_two_scenes_uses_fallback(self, make_orchestrator, make_request, make_visual, ledger, funded_account):
        primary = make_visual("primary", errors={
            "scene-1": [ProviderQuotaError("primary", "Quota exhausted (429)", 429)],
            "scene-3": [ProviderQuotaError("primary", "Quota exhausted (429)", 429)],
        })
        secondary = make_visual("secondary")
        orchestrator = make_orchestrator(chain=[primary, secondary])

        result = await orchestrator.run(make_request())

        assert result.ok
        campaign = result.campaign
        assert len(campaign.scenes) == 5
        assert campaign.failed_segment_count == 0
        assert [a.provider for a in campaign.scenes][:2] == ["primary", "secondary"]
        assert {a.provider for a in campaign.scenes} == {"primary", "secondary"}
        assert _phases_by_state(ledger, funded_account) == ["committed"]

    @pytest.mark.asyncio
    async def test_all_segments_permanent_failure(self, make_orchestrator, make_request, make_visual, make_muxer,
                                                  ledger, funded_account):
        primary = make_visual("primary", always=ProviderContentPolicyError("primary", "Content blocked", 400))
        muxer = make_muxer()
        orchestrator = make_orchestrator(chain=[primary, make_visual("secondary")], muxer=muxer)
        seen = []

        result = await orchestrator.run(make_request(), on_progress=seen.append)

        assert not result.ok
        assert result.phase is PipelinePhase.FAILED
        assert result.error.code is ErrorCode.ALL_SEGMENTS_FAILED
        assert result.campaign is None
        assert muxer.calls == []
        assert seen == [PipelinePhase.ANALYZING, PipelinePhase.SYNTHESIZING_SEGMENTS, PipelinePhase.FAILED]
        assert _phases_by_state(ledger, funded_account) == ["released"]
        assert ledger.get_balance(funded_account) == 1000

    @pytest.mark.asyncio
    async def test_analysis_with_four_scenes(self, make_orchestrator, make_request, make_reasoning, make_visual,
                                             analysis_data, ledger, funded_account):
        primary = make_visual("primary")
        orchestrator = make_orchestrator(reasoning=make_reasoning(data=analysis_data(4)), chain=[primary])

        result = await orchestrator.run(make_request())

        assert result.error.code is ErrorCode.INVALID_ANALYSIS
        assert primary.calls == []
        assert _phases_by_state(ledger, funded_account) == ["released"]
        assert ledger.get_balance(funded_account) == 1000


class TestPartialFailure:
    """Minimum-viability gate and partial assembly."""

    @pytest.mark.asyncio
    async def test_k_of_n_assembled_in_order(self, make_orchestrator, make_request, make_visual, ledger, funded_account):
        primary = make_visual("primary", errors={
            "scene-1": [ProviderContentPolicyError("primary", "blocked")],
            "scene-4": [ProviderResponseError("primary", "No video URL")],
        })
        orchestrator = make_orchestrator(chain=[primary])

        result = await orchestrator.run(make_request())

        assert result.ok
        assert [a.ordinal for a in result.campaign.scenes] == [0, 2, 3]
        assert result.campaign.failed_segment_count == 2
        assert _phases_by_state(ledger, funded_account) == ["committed"]

    @pytest.mark.asyncio
    async def test_single_survivor_is_enough(self, make_orchestrator, make_request, make_visual, funded_account):
        errors = {f"scene-{i}": [ProviderContentPolicyError("primary", "blocked")] for i in (0, 1, 3, 4)}
        orchestrator = make_orchestrator(chain=[make_visual("primary", errors=errors)])

        result = await orchestrator.run(make_request())

        assert result.ok
        assert [a.ordinal for a in result.campaign.scenes] == [2]
        assert result.campaign.failed_segment_count == 4


class TestStickyFallback:
    @pytest.mark.asyncio
    async def test_quota_on_scene_one_skips_primary_for_rest(self, make_orchestrator, make_request, make_visual,
                                                             funded_account):
        primary = make_visual("primary", errors={"scene-0": [ProviderQuotaError("primary", "429", 429)]})
        secondary = make_visual("secondary")
        orchestrator = make_orchestrator(chain=[primary, secondary])

        result = await orchestrator.run(make_request())

        assert result.ok
        assert primary.scenes_called() == ["scene-0"]
        assert {a.provider for a in result.campaign.scenes} == {"secondary"}

    @pytest.mark.asyncio
    async def test_exhaustion_does_not_leak_between_runs(self, make_orchestrator, make_request, make_visual, ledger,
                                                         funded_account):
        primary = make_visual("primary", errors={"scene-0": [ProviderQuotaError("primary", "429", 429)]})
        secondary = make_visual("secondary")
        orchestrator = make_orchestrator(chain=[primary, secondary])

        await orchestrator.run(make_request())
        second = await orchestrator.run(make_request())

        assert second.ok
        assert {a.provider for a in second.campaign.scenes} == {"primary"}


class TestFatalStages:
    @pytest.mark.asyncio
    async def test_narration_failure_releases(self, make_orchestrator, make_request, make_voice, make_muxer, ledger,
                                              funded_account):
        muxer = make_muxer()
        orchestrator = make_orchestrator(
            voice=make_voice(error=ProviderQuotaError("voice", "quota", 429)),
            muxer=muxer,
        )
        seen = []

        result = await orchestrator.run(make_request(), on_progress=seen.append)

        assert result.error.code is ErrorCode.NARRATION_FAILED
        assert seen[-2:] == [PipelinePhase.SYNTHESIZING_NARRATION, PipelinePhase.FAILED]
        assert muxer.calls == []
        assert _phases_by_state(ledger, funded_account) == ["released"]

    @pytest.mark.asyncio
    async def test_narration_attempted_once(self, make_orchestrator, make_request, make_voice, funded_account):
        voice = make_voice(error=RuntimeError("tts down"))
        orchestrator = make_orchestrator(voice=voice)

        await orchestrator.run(make_request())

        assert len(voice.texts) == 1

    @pytest.mark.asyncio
    async def test_assembly_failure_releases(self, make_orchestrator, make_request, make_muxer, ledger, funded_account):
        orchestrator = make_orchestrator(muxer=make_muxer(error=OSError("disk full")))

        result = await orchestrator.run(make_request())

        assert result.error.code is ErrorCode.ASSEMBLY_FAILED
        assert result.campaign is None
        assert _phases_by_state(ledger, funded_account) == ["released"]
        assert ledger.get_balance(funded_account) == 1000

    @pytest.mark.asyncio
    async def test_unwrap_raises_typed_error(self, make_orchestrator, make_request, make_muxer, funded_account):
        from campaigngen.pipeline import AssemblyFailedError

        orchestrator = make_orchestrator(muxer=make_muxer(error=OSError("disk full")))
        result = await orchestrator.run(make_request())

        with pytest.raises(AssemblyFailedError):
            result.unwrap()


class TestCreditContract:
    @pytest.mark.asyncio
    async def test_insufficient_credits_calls_no_provider(self, make_orchestrator, make_request, make_reasoning,
                                                          make_visual, ledger):
        ledger.add_credits("poor", 150)
        reasoning = make_reasoning()
        primary = make_visual("primary")
        orchestrator = make_orchestrator(reasoning=reasoning, chain=[primary])
        seen = []

        result = await orchestrator.run(make_request(account_id="poor"), on_progress=seen.append)

        assert result.error.code is ErrorCode.INSUFFICIENT_CREDITS
        assert result.error.to_dict()["required"] == 200
        assert result.error.to_dict()["available"] == 150
        assert reasoning.prompts == []
        assert primary.calls == []
        assert seen == [PipelinePhase.FAILED]
        assert ledger.get_history("poor") == []

    @pytest.mark.asyncio
    async def test_privileged_run_creates_no_transaction(self, make_orchestrator, make_request, ledger):
        orchestrator = make_orchestrator()

        result = await orchestrator.run(make_request(account_id="admin", account_tier="free", is_privileged=True))

        assert result.ok
        assert result.reservation_id is None
        assert ledger.get_history("admin") == []

    @pytest.mark.asyncio
    async def test_privileged_failure_creates_no_transaction(self, make_orchestrator, make_request, make_muxer, ledger):
        orchestrator = make_orchestrator(muxer=make_muxer(error=RuntimeError("boom")))

        result = await orchestrator.run(make_request(account_id="admin", is_privileged=True))

        assert not result.ok
        assert ledger.get_history("admin") == []

    @pytest.mark.asyncio
    async def test_ineligible_tier_rejected_before_reservation(self, make_orchestrator, make_request, make_reasoning,
                                                               ledger, funded_account):
        reasoning = make_reasoning()
        orchestrator = make_orchestrator(reasoning=reasoning)

        result = await orchestrator.run(make_request(account_tier="free"))

        assert result.error.code is ErrorCode.TIER_NOT_ELIGIBLE
        assert reasoning.prompts == []
        assert ledger.get_history(funded_account) == []
        assert ledger.get_balance(funded_account) == 1000

    @pytest.mark.asyncio
    async def test_completed_means_one_commit_failed_means_none(self, make_orchestrator, make_request, make_muxer,
                                                                ledger, funded_account):
        ok = await make_orchestrator().run(make_request())
        failed = await make_orchestrator(muxer=make_muxer(error=RuntimeError("boom"))).run(make_request())

        assert ok.ok and not failed.ok
        ok_txn = ledger.get_transaction(ok.reservation_id)
        failed_txn = ledger.get_transaction(failed.reservation_id)
        assert ok_txn.phase.value == "committed"
        assert failed_txn.phase.value == "released"
        assert ledger.get_balance(funded_account) == 800

    @pytest.mark.asyncio
    async def test_commit_failure_is_typed_and_released(self, make_orchestrator, make_request, ledger, funded_account,
                                                        monkeypatch):
        from campaigngen.credits import CreditError

        def refuse(reservation_id):
            raise CreditError("ledger offline")

        monkeypatch.setattr(ledger, "commit", refuse)
        orchestrator = make_orchestrator()
        seen = []

        result = await orchestrator.run(make_request(), on_progress=seen.append)

        assert result.phase is PipelinePhase.FAILED
        assert result.error.code is ErrorCode.LEDGER_FAILED
        assert isinstance(result.error.cause, CreditError)
        assert seen == HAPPY_PATH[:-1] + [PipelinePhase.FAILED]
        assert ledger.get_transaction(result.reservation_id).phase.value == "released"
        assert ledger.get_balance(funded_account) == 1000


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_before_start(self, make_orchestrator, make_request, make_reasoning, ledger, funded_account):
        reasoning = make_reasoning()
        token = CancellationToken()
        token.cancel()

        result = await make_orchestrator(reasoning=reasoning).run(make_request(), cancel_token=token)

        assert result.error.code is ErrorCode.CANCELLED
        assert reasoning.prompts == []
        assert _phases_by_state(ledger, funded_account) == ["released"]

    @pytest.mark.asyncio
    async def test_cancel_between_stages(self, make_orchestrator, make_request, make_visual, make_voice, ledger,
                                         funded_account):
        token = CancellationToken()
        voice = make_voice()

        def on_progress(phase):
            if phase is PipelinePhase.SYNTHESIZING_SEGMENTS:
                token.cancel()

        primary = make_visual("primary")
        orchestrator = make_orchestrator(chain=[primary], voice=voice)

        result = await orchestrator.run(make_request(), on_progress=on_progress, cancel_token=token)

        # The in-flight segment stage completes; the next boundary stops the run
        assert len(primary.calls) == 5
        assert voice.texts == []
        assert result.error.code is ErrorCode.CANCELLED
        assert result.phases[-1] is PipelinePhase.FAILED
        assert _phases_by_state(ledger, funded_account) == ["released"]


class TestSubjects:
    @pytest.mark.asyncio
    async def test_privileged_without_subject_promotes_platform(self, make_orchestrator, make_request, make_reasoning):
        reasoning = make_reasoning()
        orchestrator = make_orchestrator(reasoning=reasoning)

        result = await orchestrator.run(make_request(subject_ref="", subject_name=None, is_privileged=True))

        assert result.ok
        assert "https://www.eventnexus.eu" in reasoning.prompts[0]

    def test_unprivileged_request_needs_subject(self, make_request):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            make_request(subject_ref="")

    def test_request_is_immutable(self, make_request):
        from pydantic import ValidationError

        request = make_request()
        with pytest.raises(ValidationError):
            request.channel = "tiktok"
