"""
Narrative Analyzer.

One schema-constrained call to the reasoning provider produces the
whole campaign narrative: style anchor (Visual DNA), script, exactly N
scene prompts and social copy. No retries here; anything malformed or
off-count is an InvalidAnalysisError for the orchestrator.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from campaigngen.providers.exceptions import ProviderError
from campaigngen.providers.reasoning import BaseReasoningProvider

from .exceptions import InvalidAnalysisError
from .models import NarrativeAnalysis, SceneDescriptor, SocialCopy, storyboard_phases
from .subject import SubjectInfo

logger = logging.getLogger(__name__)

TARGET_RUNTIME_SECONDS = 60.0

PHASE_GUIDANCE = {
    "hook": "Cinematic metaphor of the core benefit.",
    "contrast": "The world without this solution (moody but consistent style).",
    "discovery": "The moment of discovery/interface interaction.",
    "impact": "Dynamic, high-energy demonstration.",
    "legacy": "Clean, premium brand reveal with CTA.",
    "build": "Rising momentum that deepens the story.",
    "climax": "Peak emotional payoff of the story.",
    "cta": "Clean, premium brand reveal with a clear call to action.",
}


class _ScenePayload(BaseModel):
    prompt: str = Field(..., min_length=1)
    duration: Optional[float] = Field(default=None, gt=0)


class _SocialCopyPayload(BaseModel):
    headline: str
    body: str
    cta: str
    hashtags: List[str] = Field(default_factory=list)


class _AnalysisPayload(BaseModel):
    brandName: str = Field(..., min_length=1)
    coreEssence: str = Field(..., min_length=1)
    visualSignature: str = Field(..., min_length=1)
    painPoints: List[str] = Field(default_factory=list)
    script: str = Field(..., min_length=1)
    scenes: List[_ScenePayload]
    socialCopy: _SocialCopyPayload


def build_schema(scene_count: int) -> Dict[str, Any]:
    """Response schema requiring exactly `scene_count` scenes."""
    return {
        "type": "OBJECT",
        "properties": {
            "brandName": {"type": "STRING"},
            "coreEssence": {"type": "STRING"},
            "visualSignature": {
                "type": "STRING",
                "description": "Detailed visual style guide for AI image/video consistency",
            },
            "painPoints": {"type": "ARRAY", "items": {"type": "STRING"}},
            "script": {"type": "STRING"},
            "scenes": {
                "type": "ARRAY",
                "minItems": scene_count,
                "maxItems": scene_count,
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "prompt": {"type": "STRING"},
                        "duration": {"type": "NUMBER"},
                    },
                    "required": ["prompt", "duration"],
                },
            },
            "socialCopy": {
                "type": "OBJECT",
                "properties": {
                    "headline": {"type": "STRING"},
                    "body": {"type": "STRING"},
                    "cta": {"type": "STRING"},
                    "hashtags": {"type": "ARRAY", "items": {"type": "STRING"}},
                },
                "required": ["headline", "body", "cta", "hashtags"],
            },
        },
        "required": ["brandName", "coreEssence", "visualSignature", "painPoints", "script", "scenes", "socialCopy"],
    }


def build_prompt(subject: SubjectInfo, channel: str, scene_count: int) -> str:
    phases = storyboard_phases(scene_count)
    seconds = TARGET_RUNTIME_SECONDS / scene_count
    storyboard = "\n".join(
        f"        - Scene {i} ({phase.value.title()}): {PHASE_GUIDANCE[phase.value]}"
        for i, phase in enumerate(phases, start=1)
    )

    return f"""
      Perform an elite "Brand DNA & {TARGET_RUNTIME_SECONDS:.0f}s Narrative Architecture" analysis for: {subject.describe()}.
      Target Platform: {channel}.

      STRICT REQUIREMENTS:
      1. LANGUAGE: English only.
      2. DURATION: {TARGET_RUNTIME_SECONDS:.0f}-second epic story arc, about {seconds:.0f}s per scene.
      3. VISUAL ANCHORING: Define a consistent "Visual Signature" (lighting, colors, textures) used in ALL frames.
      4. STORY COHERENCE: Every scene must lead logically to the next.

      Output Schema:
      - visualSignature: A detailed description of the lighting, colors, and textures to be used in ALL video frames.
      - coreEssence: The deepest value prop.
      - script: Narration for the full video.
      - scenes: exactly {scene_count} entries, in order:
{storyboard}

      Respond strictly in JSON format.
    """


class NarrativeAnalyzer:
    """Produces a validated NarrativeAnalysis from one reasoning call."""

    def __init__(self, provider: BaseReasoningProvider, timeout: float = 120.0):
        self.provider = provider
        self.timeout = timeout

    async def analyze(self, subject: SubjectInfo, channel: str, scene_count: int) -> NarrativeAnalysis:
        prompt = build_prompt(subject, channel, scene_count)
        logger.info(f"[ANALYZER] Analyzing '{subject.name}' for {channel} ({scene_count} scenes, {self.provider.name})")

        try:
            response = await asyncio.wait_for(
                self.provider.generate_structured(prompt, build_schema(scene_count)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise InvalidAnalysisError(f"Analysis timed out after {self.timeout:.0f}s", cause=e) from e
        except ProviderError as e:
            raise InvalidAnalysisError(f"Analysis provider failed: {e}", cause=e) from e

        analysis = self.parse(response.data, scene_count, response.sources)
        logger.info(
            f"[ANALYZER] Brand '{analysis.brand_name}', {len(analysis.scenes)} scenes, "
            f"{analysis.total_duration:.1f}s, {len(analysis.sources)} sources"
        )
        return analysis

    @staticmethod
    def parse(data: Dict[str, Any], scene_count: int, sources=()) -> NarrativeAnalysis:
        """Validate a raw payload. Scene count must match exactly."""
        try:
            payload = _AnalysisPayload.model_validate(data)
        except ValidationError as e:
            raise InvalidAnalysisError(f"Malformed analysis: {e.error_count()} validation errors", cause=e) from e

        if len(payload.scenes) != scene_count:
            raise InvalidAnalysisError(
                f"Expected {scene_count} scenes, got {len(payload.scenes)}"
            )

        default_duration = TARGET_RUNTIME_SECONDS / scene_count
        phases = storyboard_phases(scene_count)
        scenes = tuple(
            SceneDescriptor(
                ordinal=i,
                duration=scene.duration or default_duration,
                prompt=scene.prompt.strip(),
                phase=phases[i],
            )
            for i, scene in enumerate(payload.scenes)
        )

        copy = payload.socialCopy
        return NarrativeAnalysis(
            brand_name=payload.brandName,
            core_essence=payload.coreEssence,
            visual_dna=payload.visualSignature.strip(),
            script=payload.script.strip(),
            scenes=scenes,
            social_copy=SocialCopy(
                headline=copy.headline,
                body=copy.body,
                cta=copy.cta,
                hashtags=tuple(copy.hashtags),
            ),
            pain_points=tuple(payload.painPoints),
            sources=tuple(sources),
        )
