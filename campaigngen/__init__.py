"""
campaigngen - Generative campaign pipeline.
"""
from .pipeline import (
    CampaignOrchestrator,
    CampaignRequest,
    AspectRatio,
    AssembledCampaign,
    PipelinePhase,
    PipelineResult,
    PipelineError,
    CancellationToken,
)

__version__ = "0.1.0"

__all__ = [
    "CampaignOrchestrator",
    "CampaignRequest",
    "AspectRatio",
    "AssembledCampaign",
    "PipelinePhase",
    "PipelineResult",
    "PipelineError",
    "CancellationToken",
]
