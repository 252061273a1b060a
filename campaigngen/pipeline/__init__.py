"""
Generative Campaign Pipeline.
Event or platform URL in, narrated promotional video out.
"""
from .models import (
    AspectRatio,
    CampaignRequest,
    NarrativePhase,
    SceneDescriptor,
    SocialCopy,
    NarrativeAnalysis,
    SceneStatus,
    SceneAsset,
    NarrationAsset,
    AssembledCampaign,
    PipelinePhase,
    PipelineResult,
    MediaPayload,
    storyboard_phases,
)
from .exceptions import (
    ErrorCode,
    PipelineError,
    CreditReservationError,
    CreditSettlementError,
    TierNotEligibleError,
    InvalidAnalysisError,
    AllSegmentsFailedError,
    NarrationFailedError,
    AssemblyFailedError,
    PipelineCancelledError,
)
from .fallback import ErrorClass, ExhaustedProviders, classify, next_provider
from .subject import SubjectInfo, BaseSubjectResolver, StaticSubjectResolver, WebPageSubjectResolver
from .narrative_analyzer import NarrativeAnalyzer
from .segment_synthesizer import SegmentSynthesizer, merge_visual_dna
from .narration_synthesizer import NarrationSynthesizer
from .assembler import Assembler, build_timeline, audio_window, resolution_for
from .progress import ProgressReporter, CancellationToken
from .orchestrator import CampaignOrchestrator

__all__ = [
    # Models
    "AspectRatio",
    "CampaignRequest",
    "NarrativePhase",
    "SceneDescriptor",
    "SocialCopy",
    "NarrativeAnalysis",
    "SceneStatus",
    "SceneAsset",
    "NarrationAsset",
    "AssembledCampaign",
    "PipelinePhase",
    "PipelineResult",
    "MediaPayload",
    "storyboard_phases",

    # Errors
    "ErrorCode",
    "PipelineError",
    "CreditReservationError",
    "CreditSettlementError",
    "TierNotEligibleError",
    "InvalidAnalysisError",
    "AllSegmentsFailedError",
    "NarrationFailedError",
    "AssemblyFailedError",
    "PipelineCancelledError",

    # Fallback policy
    "ErrorClass",
    "ExhaustedProviders",
    "classify",
    "next_provider",

    # Stages
    "SubjectInfo",
    "BaseSubjectResolver",
    "StaticSubjectResolver",
    "WebPageSubjectResolver",
    "NarrativeAnalyzer",
    "SegmentSynthesizer",
    "merge_visual_dna",
    "NarrationSynthesizer",
    "Assembler",
    "build_timeline",
    "audio_window",
    "resolution_for",
    "ProgressReporter",
    "CancellationToken",
    "CampaignOrchestrator",
]
