"""
Tests for the narrative analyzer.
"""
import asyncio

import pytest

from campaigngen.pipeline import InvalidAnalysisError, NarrativeAnalyzer, NarrativePhase, SubjectInfo
from campaigngen.pipeline.narrative_analyzer import build_prompt, build_schema
from campaigngen.providers.exceptions import ProviderQuotaError


SUBJECT = SubjectInfo(reference="https://www.eventnexus.eu", name="EventNexus", description="Event marketplace")


class TestAnalyze:
    """Tests for NarrativeAnalyzer.analyze."""

    @pytest.mark.asyncio
    async def test_returns_validated_analysis(self, make_reasoning):
        provider = make_reasoning()
        analyzer = NarrativeAnalyzer(provider)

        analysis = await analyzer.analyze(SUBJECT, "instagram", 5)

        assert analysis.brand_name == "Nexus Nights"
        assert analysis.visual_dna == "Neon-lit cyber industrial with orange accents"
        assert len(analysis.scenes) == 5
        assert [s.ordinal for s in analysis.scenes] == [0, 1, 2, 3, 4]
        assert [s.phase for s in analysis.scenes] == [
            NarrativePhase.HOOK,
            NarrativePhase.CONTRAST,
            NarrativePhase.DISCOVERY,
            NarrativePhase.IMPACT,
            NarrativePhase.LEGACY,
        ]
        assert analysis.social_copy.hashtags == ("#events", "#nightlife")
        assert analysis.sources[0].uri == "https://example.com/report"
        assert analysis.total_duration == pytest.approx(60.0)

    @pytest.mark.asyncio
    async def test_single_call_with_count_constrained_schema(self, make_reasoning):
        provider = make_reasoning()
        await NarrativeAnalyzer(provider).analyze(SUBJECT, "facebook", 5)

        assert len(provider.prompts) == 1
        scenes_schema = provider.schemas[0]["properties"]["scenes"]
        assert scenes_schema["minItems"] == 5
        assert scenes_schema["maxItems"] == 5
        assert "EventNexus" in provider.prompts[0]
        assert "Target Platform: facebook" in provider.prompts[0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("returned", [4, 6])
    async def test_scene_count_mismatch_is_invalid(self, make_reasoning, analysis_data, returned):
        provider = make_reasoning(data=analysis_data(returned))

        with pytest.raises(InvalidAnalysisError) as exc_info:
            await NarrativeAnalyzer(provider).analyze(SUBJECT, "instagram", 5)

        assert exc_info.value.code.value == "INVALID_ANALYSIS"
        assert f"got {returned}" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_fields_are_invalid(self, make_reasoning, analysis_data):
        data = analysis_data(5)
        del data["visualSignature"]
        provider = make_reasoning(data=data)

        with pytest.raises(InvalidAnalysisError):
            await NarrativeAnalyzer(provider).analyze(SUBJECT, "instagram", 5)

    @pytest.mark.asyncio
    async def test_empty_scene_prompt_is_invalid(self, make_reasoning, analysis_data):
        data = analysis_data(5)
        data["scenes"][2]["prompt"] = ""
        provider = make_reasoning(data=data)

        with pytest.raises(InvalidAnalysisError):
            await NarrativeAnalyzer(provider).analyze(SUBJECT, "instagram", 5)

    @pytest.mark.asyncio
    async def test_provider_error_is_not_retried(self, make_reasoning):
        provider = make_reasoning(error=ProviderQuotaError("gemini", "Quota exhausted (429)", 429))

        with pytest.raises(InvalidAnalysisError) as exc_info:
            await NarrativeAnalyzer(provider).analyze(SUBJECT, "instagram", 5)

        assert len(provider.prompts) == 1
        assert isinstance(exc_info.value.cause, ProviderQuotaError)

    @pytest.mark.asyncio
    async def test_timeout_is_fatal(self, make_reasoning):
        provider = make_reasoning()

        async def slow(prompt, schema):
            await asyncio.sleep(1)

        provider.generate_structured = slow

        with pytest.raises(InvalidAnalysisError) as exc_info:
            await NarrativeAnalyzer(provider, timeout=0.01).analyze(SUBJECT, "instagram", 5)
        assert "timed out" in exc_info.value.message


class TestParse:
    """Tests for NarrativeAnalyzer.parse."""

    def test_missing_durations_split_runtime(self, analysis_data):
        data = analysis_data(4)
        for scene in data["scenes"]:
            del scene["duration"]

        analysis = NarrativeAnalyzer.parse(data, 4)

        assert [s.duration for s in analysis.scenes] == [15.0, 15.0, 15.0, 15.0]
        assert [s.phase.value for s in analysis.scenes] == ["hook", "build", "climax", "cta"]

    def test_non_positive_duration_is_invalid(self, analysis_data):
        data = analysis_data(5)
        data["scenes"][0]["duration"] = 0
        with pytest.raises(InvalidAnalysisError):
            NarrativeAnalyzer.parse(data, 5)


class TestPromptAndSchema:
    def test_five_scene_storyboard_in_prompt(self):
        prompt = build_prompt(SUBJECT, "tiktok", 5)
        assert "Scene 1 (Hook)" in prompt
        assert "Scene 5 (Legacy)" in prompt
        assert "exactly 5 entries" in prompt

    def test_schema_requires_all_sections(self):
        schema = build_schema(3)
        assert set(schema["required"]) == {
            "brandName", "coreEssence", "visualSignature", "painPoints", "script", "scenes", "socialCopy",
        }
        assert schema["properties"]["scenes"]["maxItems"] == 3
