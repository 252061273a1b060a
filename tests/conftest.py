"""
Pytest configuration and fixtures for campaigngen tests.
"""
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from unittest.mock import AsyncMock

# Set test environment before importing campaigngen modules
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["DEBUG"] = "true"
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="campaigngen-test-"))

from campaigngen.config import PipelineConfig
from campaigngen.credits import CreditLedger
from campaigngen.persistence import InMemoryLedgerRepository
from campaigngen.providers.media import MediaPayload
from campaigngen.providers.muxing import BaseMuxer
from campaigngen.providers.reasoning import BaseReasoningProvider, GroundingSource, ReasoningResponse
from campaigngen.providers.visual import BaseVisualProvider
from campaigngen.providers.voice import BaseVoiceProvider


def make_analysis_data(scene_count: int = 5, duration: float = 12.0) -> dict:
    """Raw reasoning payload with `scene_count` scenes."""
    return {
        "brandName": "Nexus Nights",
        "coreEssence": "Unforgettable nights, zero friction.",
        "visualSignature": "Neon-lit cyber industrial with orange accents",
        "painPoints": ["Sold-out shows", "Scattered listings"],
        "script": "Every city has a pulse. Find yours tonight with Nexus Nights.",
        "scenes": [
            {"prompt": f"scene-{i} wide shot of the crowd", "duration": duration}
            for i in range(scene_count)
        ],
        "socialCopy": {
            "headline": "Your night starts here",
            "body": "Discover the events everyone will talk about tomorrow.",
            "cta": "Get tickets",
            "hashtags": ["#events", "#nightlife"],
        },
    }


class FakeReasoningProvider(BaseReasoningProvider):
    def __init__(self, data: Optional[dict] = None, sources=None, error: Optional[BaseException] = None):
        self.data = data if data is not None else make_analysis_data()
        self.sources = list(sources or [GroundingSource(uri="https://example.com/report", title="Report")])
        self.error = error
        self.prompts: List[str] = []
        self.schemas: List[dict] = []

    @property
    def name(self) -> str:
        return "fake-reasoning"

    @property
    def is_available(self) -> bool:
        return True

    async def generate_structured(self, prompt, schema):
        self.prompts.append(prompt)
        self.schemas.append(schema)
        if self.error is not None:
            raise self.error
        return ReasoningResponse(data=self.data, sources=self.sources)


class FakeVisualProvider(BaseVisualProvider):
    """
    Visual provider double.

    `errors` maps a scene marker found in the prompt (e.g. "scene-2") to
    exceptions raised on successive calls; once the list is used up the
    call succeeds. `always` is raised for every call.
    """

    def __init__(self, name: str, output_dir: Path, errors: Optional[Dict[str, list]] = None,
                 always: Optional[BaseException] = None):
        self._name = name
        self.output_dir = output_dir
        self.errors = {key: list(value) for key, value in (errors or {}).items()}
        self.always = always
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return True

    async def generate(self, prompt, duration, aspect_ratio="16:9"):
        self.calls.append(prompt)
        if self.always is not None:
            raise self.always
        for marker, queue in self.errors.items():
            if marker in prompt and queue:
                raise queue.pop(0)
        path = self.output_dir / f"{self._name}_{len(self.calls)}.mp4"
        path.write_bytes(b"video")
        return MediaPayload(path=path, mime_type="video/mp4", provider=self._name, duration=duration)

    def scenes_called(self) -> List[str]:
        return [prompt.split(" ", 1)[0] for prompt in self.calls]


class FakeVoiceProvider(BaseVoiceProvider):
    def __init__(self, output_dir: Path, duration: float = 30.0, error: Optional[BaseException] = None):
        self.output_dir = output_dir
        self.duration = duration
        self.error = error
        self.texts: List[str] = []

    @property
    def name(self) -> str:
        return "fake-voice"

    @property
    def is_available(self) -> bool:
        return True

    async def synthesize(self, text):
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        path = self.output_dir / "narration.wav"
        path.write_bytes(b"audio")
        return MediaPayload(path=path, mime_type="audio/wav", provider=self.name, duration=self.duration)


class FakeMuxer(BaseMuxer):
    def __init__(self, error: Optional[BaseException] = None):
        self.error = error
        self.calls = []

    @property
    def name(self) -> str:
        return "fake-muxer"

    def mux(self, clips, audio, output_path, resolution, fps=30):
        self.calls.append({
            "clips": list(clips),
            "audio": audio,
            "output_path": output_path,
            "resolution": resolution,
        })
        if self.error is not None:
            raise self.error
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"mp4")
        return output_path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def ledger():
    """Credit ledger over a fresh in-memory repository."""
    return CreditLedger(InMemoryLedgerRepository())


@pytest.fixture
def funded_account(ledger):
    ledger.add_credits("acct-1", 1000)
    return "acct-1"


@pytest.fixture
def settings():
    return PipelineConfig(
        scene_count=5,
        credit_cost=200,
        visual_chain=["primary", "secondary"],
        narration_provider="local",
        loading_backoff_seconds=0.0,
        segment_timeout_seconds=5.0,
        analysis_timeout_seconds=5.0,
        narration_timeout_seconds=5.0,
        assembly_timeout_seconds=5.0,
    )


@pytest.fixture
def fake_sleep():
    return AsyncMock()


@pytest.fixture
def make_visual(temp_dir):
    """Factory for visual provider doubles writing into temp_dir."""
    def _make(name: str, errors: Optional[Dict[str, list]] = None, always: Optional[BaseException] = None):
        return FakeVisualProvider(name, temp_dir, errors=errors, always=always)
    return _make


@pytest.fixture
def make_reasoning():
    def _make(data: Optional[dict] = None, sources=None, error: Optional[BaseException] = None):
        return FakeReasoningProvider(data=data, sources=sources, error=error)
    return _make


@pytest.fixture
def make_voice(temp_dir):
    def _make(duration: float = 30.0, error: Optional[BaseException] = None):
        return FakeVoiceProvider(temp_dir, duration=duration, error=error)
    return _make


@pytest.fixture
def make_muxer():
    def _make(error: Optional[BaseException] = None):
        return FakeMuxer(error=error)
    return _make


@pytest.fixture
def analysis_data():
    """Factory for raw reasoning payloads."""
    return make_analysis_data


@pytest.fixture
def make_orchestrator(temp_dir, ledger, settings, fake_sleep):
    """
    Build a CampaignOrchestrator over doubles.

    Anything not passed gets a succeeding default: one reasoning provider
    returning five scenes, a single 'primary' visual provider, 30s of
    narration and a muxer that writes a placeholder file.
    """
    from campaigngen.pipeline import (
        Assembler,
        CampaignOrchestrator,
        NarrationSynthesizer,
        NarrativeAnalyzer,
        SegmentSynthesizer,
    )

    def _make(reasoning=None, chain=None, voice=None, muxer=None, pipeline_settings=None, concurrency=1):
        pipeline_settings = pipeline_settings or settings
        reasoning = reasoning or FakeReasoningProvider()
        chain = chain or [FakeVisualProvider("primary", temp_dir)]
        voice = voice or FakeVoiceProvider(temp_dir)
        muxer = muxer or FakeMuxer()

        return CampaignOrchestrator(
            analyzer=NarrativeAnalyzer(reasoning, timeout=pipeline_settings.analysis_timeout_seconds),
            segments=SegmentSynthesizer(
                chain,
                loading_backoff=pipeline_settings.loading_backoff_seconds,
                timeout=pipeline_settings.segment_timeout_seconds,
                concurrency=concurrency,
                sleep=fake_sleep,
            ),
            narration=NarrationSynthesizer(voice, timeout=pipeline_settings.narration_timeout_seconds),
            assembler=Assembler(muxer, output_dir=temp_dir / "out", timeout=pipeline_settings.assembly_timeout_seconds),
            ledger=ledger,
            settings=pipeline_settings,
        )
    return _make


@pytest.fixture
def make_request():
    from campaigngen.pipeline import CampaignRequest

    def _make(**overrides):
        values = {
            "subject_ref": "evt_123",
            "subject_name": "Nexus Nights Festival",
            "channel": "instagram",
            "aspect_ratio": "9:16",
            "account_id": "acct-1",
            "account_tier": "pro",
            "is_privileged": False,
        }
        values.update(overrides)
        return CampaignRequest(**values)
    return _make
