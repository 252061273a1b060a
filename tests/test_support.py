"""
Tests for subject resolvers, progress reporting and the local voice provider.
"""
import wave

import httpx
import pytest

from campaigngen.pipeline import (
    PipelinePhase,
    ProgressReporter,
    StaticSubjectResolver,
    WebPageSubjectResolver,
)


class TestStaticSubjectResolver:
    @pytest.mark.asyncio
    async def test_known_subject(self):
        resolver = StaticSubjectResolver()
        resolver.add("evt_1", "Harbour Jazz Night", "Live jazz on the pier")

        info = await resolver.resolve("evt_1")

        assert info.name == "Harbour Jazz Night"
        assert info.describe() == "Harbour Jazz Night - Live jazz on the pier"

    @pytest.mark.asyncio
    async def test_unknown_subject_resolves_to_itself(self):
        info = await StaticSubjectResolver().resolve("evt_404")
        assert info.name == "evt_404"
        assert info.description == ""


class TestWebPageSubjectResolver:
    def _resolver(self, handler):
        return WebPageSubjectResolver(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    @pytest.mark.asyncio
    async def test_reads_title_and_description(self):
        html = (
            "<html><head><title>EventNexus | Events near you</title>"
            '<meta name="description" content="Find and book events."></head><body></body></html>'
        )
        resolver = self._resolver(lambda request: httpx.Response(200, text=html))

        info = await resolver.resolve("https://www.eventnexus.eu")

        assert info.name == "EventNexus | Events near you"
        assert info.description == "Find and book events."
        assert info.is_url

    @pytest.mark.asyncio
    async def test_open_graph_tags_fill_missing_title_and_description(self):
        html = (
            '<html><head><meta property="og:title" content="Harbour Jazz Night">'
            '<meta property="og:description" content="Live jazz on the pier."></head></html>'
        )
        resolver = self._resolver(lambda request: httpx.Response(200, text=html))

        info = await resolver.resolve("https://www.eventnexus.eu/e/42")

        assert info.name == "Harbour Jazz Night"
        assert info.description == "Live jazz on the pier."

    def test_extract_page_meta_prefers_named_description(self):
        from campaigngen.pipeline.subject import extract_page_meta

        html = (
            "<title> EventNexus </title>"
            '<meta property="og:description" content="og text">'
            '<meta name="description" content="named text">'
        )

        assert extract_page_meta(html) == ("EventNexus", "named text")

    @pytest.mark.asyncio
    async def test_fetch_failure_degrades_to_url(self):
        resolver = self._resolver(lambda request: httpx.Response(500, text="down"))

        info = await resolver.resolve("https://www.eventnexus.eu")

        assert info.name == "https://www.eventnexus.eu"

    @pytest.mark.asyncio
    async def test_non_url_is_not_fetched(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, text="")

        info = await self._resolver(handler).resolve("evt_1")

        assert info.name == "evt_1"
        assert calls == []


class TestProgressReporter:
    def test_forward_only_once_each(self):
        seen = []
        progress = ProgressReporter(seen.append)

        progress.advance(PipelinePhase.ANALYZING)
        progress.advance(PipelinePhase.ANALYZING)
        progress.advance(PipelinePhase.SYNTHESIZING_SEGMENTS)
        progress.advance(PipelinePhase.ANALYZING)

        assert seen == [PipelinePhase.ANALYZING, PipelinePhase.SYNTHESIZING_SEGMENTS]

    def test_failed_is_terminal(self):
        seen = []
        progress = ProgressReporter(seen.append)

        progress.advance(PipelinePhase.ANALYZING)
        progress.advance(PipelinePhase.FAILED)
        progress.advance(PipelinePhase.FAILED)
        progress.advance(PipelinePhase.ASSEMBLING)

        assert seen == [PipelinePhase.ANALYZING, PipelinePhase.FAILED]

    def test_callback_errors_do_not_break_reporting(self):
        def boom(phase):
            raise RuntimeError("ui gone")

        progress = ProgressReporter(boom)

        assert progress.advance(PipelinePhase.ANALYZING) is True
        assert progress.current is PipelinePhase.ANALYZING


class TestLocalVoiceProvider:
    @pytest.mark.asyncio
    async def test_silent_wav_sized_from_words(self, temp_dir):
        from campaigngen.providers.voice import LocalVoiceProvider

        provider = LocalVoiceProvider(output_dir=temp_dir)
        payload = await provider.synthesize(" ".join(["word"] * 25))

        assert payload.duration == pytest.approx(10.0)
        with wave.open(str(payload.path), "rb") as wav:
            assert wav.getframerate() == 24000
            assert wav.getnframes() == 240000

    def test_factory_rejects_unknown_provider(self):
        from campaigngen.providers.voice import VoiceProviderFactory

        with pytest.raises(ValueError):
            VoiceProviderFactory.create("nope")
