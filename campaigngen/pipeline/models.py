"""
Campaign pipeline data model.

CampaignRequest -> NarrativeAnalysis -> N SceneAsset -> NarrationAsset
-> AssembledCampaign. Everything except SceneAsset is immutable once
produced; SceneAsset is only mutated by the segment synthesizer.
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from campaigngen.providers.media import MediaPayload
from campaigngen.providers.reasoning import GroundingSource

from .exceptions import PipelineError


class AspectRatio(str, Enum):
    """Supported output aspect ratios."""
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    SQUARE = "1:1"

    @property
    def resolution(self) -> Tuple[int, int]:
        """Output (width, height) for this ratio."""
        resolutions = {
            AspectRatio.LANDSCAPE: (1280, 720),
            AspectRatio.PORTRAIT: (720, 1280),
            AspectRatio.SQUARE: (1080, 1080),
        }
        return resolutions[self]


class CampaignRequest(BaseModel):
    """Immutable input for one pipeline invocation."""
    model_config = ConfigDict(frozen=True)

    subject_ref: str = Field(default="", description="Event id or platform URL")
    channel: str = Field(default="facebook", min_length=1)
    aspect_ratio: AspectRatio = Field(default=AspectRatio.LANDSCAPE)
    account_id: str = Field(..., min_length=1)
    account_tier: str = Field(default="free")
    is_privileged: bool = Field(default=False)
    subject_name: Optional[str] = Field(default=None, description="Display name supplied by the caller")
    subject_description: Optional[str] = Field(default=None)

    @model_validator(mode="after")
    def _subject_required(self) -> "CampaignRequest":
        # Privileged runs may omit the subject and promote the platform itself
        if not self.subject_ref.strip() and not self.is_privileged:
            raise ValueError("subject_ref is required")
        return self


class NarrativePhase(str, Enum):
    """Storyboard position of a scene."""
    HOOK = "hook"
    CONTRAST = "contrast"
    DISCOVERY = "discovery"
    IMPACT = "impact"
    LEGACY = "legacy"
    BUILD = "build"
    CLIMAX = "climax"
    CTA = "cta"


FIVE_SCENE_ARC = [
    NarrativePhase.HOOK,
    NarrativePhase.CONTRAST,
    NarrativePhase.DISCOVERY,
    NarrativePhase.IMPACT,
    NarrativePhase.LEGACY,
]


def storyboard_phases(scene_count: int) -> List[NarrativePhase]:
    """Phase tag expected at each ordinal for a given scene count."""
    if scene_count == len(FIVE_SCENE_ARC):
        return list(FIVE_SCENE_ARC)
    if scene_count == 1:
        return [NarrativePhase.HOOK]
    if scene_count == 2:
        return [NarrativePhase.HOOK, NarrativePhase.CTA]
    middle = [NarrativePhase.BUILD] * (scene_count - 3)
    return [NarrativePhase.HOOK, *middle, NarrativePhase.CLIMAX, NarrativePhase.CTA]


@dataclass(frozen=True)
class SceneDescriptor:
    """One storyboard scene as produced by the analyzer."""
    ordinal: int
    duration: float
    prompt: str
    phase: NarrativePhase

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ordinal": self.ordinal,
            "duration": self.duration,
            "prompt": self.prompt,
            "phase": self.phase.value,
        }


@dataclass(frozen=True)
class SocialCopy:
    """Post copy delivered with the video."""
    headline: str
    body: str
    cta: str
    hashtags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headline": self.headline,
            "body": self.body,
            "cta": self.cta,
            "hashtags": list(self.hashtags),
        }


@dataclass(frozen=True)
class NarrativeAnalysis:
    """Structured campaign narrative. Read-only after analysis."""
    brand_name: str
    core_essence: str
    visual_dna: str
    script: str
    scenes: Tuple[SceneDescriptor, ...]
    social_copy: SocialCopy
    pain_points: Tuple[str, ...] = ()
    sources: Tuple[GroundingSource, ...] = ()

    @property
    def total_duration(self) -> float:
        return sum(scene.duration for scene in self.scenes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "brand_name": self.brand_name,
            "core_essence": self.core_essence,
            "visual_dna": self.visual_dna,
            "script": self.script,
            "scenes": [scene.to_dict() for scene in self.scenes],
            "social_copy": self.social_copy.to_dict(),
            "pain_points": list(self.pain_points),
            "sources": [source.to_dict() for source in self.sources],
        }


class SceneStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class SceneAsset:
    """Synthesis result for one scene, matched to its descriptor by ordinal."""
    ordinal: int
    duration: float
    status: SceneStatus = SceneStatus.PENDING
    media: Optional[MediaPayload] = None
    provider: Optional[str] = None
    error: Optional[str] = None
    attempts: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status is SceneStatus.SUCCEEDED

    def mark_succeeded(self, media: MediaPayload, provider: str) -> None:
        self.status = SceneStatus.SUCCEEDED
        self.media = media
        self.provider = provider
        self.error = None

    def mark_failed(self, error: str) -> None:
        self.status = SceneStatus.FAILED
        self.media = None
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ordinal": self.ordinal,
            "duration": self.duration,
            "status": self.status.value,
            "media": self.media.to_dict() if self.media else None,
            "provider": self.provider,
            "error": self.error,
            "attempts": list(self.attempts),
        }


@dataclass(frozen=True)
class NarrationAsset:
    """Single audio track for the whole script, or the failure detail."""
    media: Optional[MediaPayload] = None
    duration: float = 0.0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.media is not None and self.error is None


@dataclass(frozen=True)
class AssembledCampaign:
    """Terminal artifact of a successful run."""
    video: MediaPayload
    audio: MediaPayload
    analysis: NarrativeAnalysis
    scenes: Tuple[SceneAsset, ...]
    failed_segment_count: int
    visual_duration: float
    audio_duration: float
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE

    @property
    def sources(self) -> Tuple[GroundingSource, ...]:
        return self.analysis.sources

    def to_dict(self) -> Dict[str, Any]:
        return {
            "video": self.video.to_dict(),
            "audio": self.audio.to_dict(),
            "analysis": self.analysis.to_dict(),
            "scenes": [scene.to_dict() for scene in self.scenes],
            "failed_segment_count": self.failed_segment_count,
            "visual_duration": self.visual_duration,
            "audio_duration": self.audio_duration,
            "aspect_ratio": self.aspect_ratio.value,
        }


class PipelinePhase(str, Enum):
    """Orchestrator states, in forward order."""
    ANALYZING = "analyzing"
    SYNTHESIZING_SEGMENTS = "synthesizing_segments"
    SYNTHESIZING_NARRATION = "synthesizing_narration"
    ASSEMBLING = "assembling"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return list(PipelinePhase).index(self)

    @property
    def is_terminal(self) -> bool:
        return self in (PipelinePhase.COMPLETED, PipelinePhase.FAILED)


@dataclass
class PipelineResult:
    """Outcome of one run: the campaign or the typed error, never both."""
    phase: PipelinePhase
    campaign: Optional[AssembledCampaign] = None
    error: Optional[PipelineError] = None
    reservation_id: Optional[str] = None
    phases: List[PipelinePhase] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.phase is PipelinePhase.COMPLETED and self.campaign is not None

    def unwrap(self) -> AssembledCampaign:
        """Return the campaign or raise the pipeline error."""
        if self.error is not None:
            raise self.error
        if self.campaign is None:
            raise RuntimeError(f"Pipeline ended in {self.phase.value} without a campaign")
        return self.campaign

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "ok": self.ok,
            "campaign": self.campaign.to_dict() if self.campaign else None,
            "error": self.error.to_dict() if self.error else None,
            "reservation_id": self.reservation_id,
        }
