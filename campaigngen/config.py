"""
Application Configuration - Environment Variable Management.
Loads and validates campaign pipeline configuration from .env file.
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv
import imageio_ffmpeg

logger = logging.getLogger(__name__)

# Load .env from project root
PROJECT_ROOT = Path(__file__).parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
    logger.info(f"Loaded environment from {ENV_FILE}")


def _configured(value: Optional[str]) -> bool:
    return bool(value and not value.startswith("PASTE_"))


def _split_list(value: str) -> List[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


@dataclass
class AIConfig:
    """AI provider configuration."""
    google_api_key: Optional[str] = None  # Gemini reasoning + TTS
    huggingface_token: Optional[str] = None
    sora_api_key: Optional[str] = None
    kie_api_key: Optional[str] = None
    elevenlabs_api_key: Optional[str] = None
    reasoning_model: str = "gemini-3-pro-preview"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    tts_voice: str = "Charon"
    huggingface_video_model: str = "Kevin-thu/StoryMem"

    @property
    def has_google(self) -> bool:
        return _configured(self.google_api_key)

    @property
    def has_huggingface(self) -> bool:
        return _configured(self.huggingface_token)

    @property
    def has_sora(self) -> bool:
        return _configured(self.sora_api_key)

    @property
    def has_kie(self) -> bool:
        return _configured(self.kie_api_key)

    @property
    def has_elevenlabs(self) -> bool:
        return _configured(self.elevenlabs_api_key)

    @property
    def has_any_visual(self) -> bool:
        return self.has_huggingface or self.has_sora or self.has_kie


@dataclass
class PipelineConfig:
    """Generative campaign pipeline settings."""
    scene_count: int = 5
    credit_cost: int = 200
    visual_chain: List[str] = field(default_factory=lambda: ["huggingface", "sora", "kie"])
    narration_provider: str = "gemini"
    loading_backoff_seconds: float = 20.0
    segment_timeout_seconds: float = 300.0
    analysis_timeout_seconds: float = 120.0
    narration_timeout_seconds: float = 120.0
    assembly_timeout_seconds: float = 600.0
    segment_concurrency: int = 1
    eligible_tiers: List[str] = field(default_factory=lambda: ["pro", "premium", "enterprise"])
    platform_url: str = "https://www.eventnexus.eu"

    def __post_init__(self):
        if self.scene_count < 1:
            raise ValueError("scene_count must be at least 1")
        if self.credit_cost < 0:
            raise ValueError("credit_cost must not be negative")
        if self.segment_concurrency < 1:
            raise ValueError("segment_concurrency must be at least 1")
        if not self.visual_chain:
            raise ValueError("visual_chain must name at least one provider")

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build pipeline settings from CAMPAIGN_* environment variables."""
        return cls(
            scene_count=int(os.getenv("CAMPAIGN_SCENE_COUNT", "5")),
            credit_cost=int(os.getenv("CAMPAIGN_CREDIT_COST", "200")),
            visual_chain=_split_list(os.getenv("CAMPAIGN_VISUAL_CHAIN", "huggingface,sora,kie")),
            narration_provider=os.getenv("CAMPAIGN_NARRATION_PROVIDER", "gemini").lower(),
            loading_backoff_seconds=float(os.getenv("CAMPAIGN_LOADING_BACKOFF_SECONDS", "20")),
            segment_timeout_seconds=float(os.getenv("CAMPAIGN_SEGMENT_TIMEOUT_SECONDS", "300")),
            analysis_timeout_seconds=float(os.getenv("CAMPAIGN_ANALYSIS_TIMEOUT_SECONDS", "120")),
            narration_timeout_seconds=float(os.getenv("CAMPAIGN_NARRATION_TIMEOUT_SECONDS", "120")),
            assembly_timeout_seconds=float(os.getenv("CAMPAIGN_ASSEMBLY_TIMEOUT_SECONDS", "600")),
            segment_concurrency=int(os.getenv("CAMPAIGN_SEGMENT_CONCURRENCY", "1")),
            eligible_tiers=_split_list(os.getenv("CAMPAIGN_ELIGIBLE_TIERS", "pro,premium,enterprise")),
            platform_url=os.getenv("CAMPAIGN_PLATFORM_URL", "https://www.eventnexus.eu"),
        )


@dataclass
class PathsConfig:
    """File system paths configuration."""
    data_dir: Path
    media_dir: Path
    ffmpeg_path: str

    @classmethod
    def detect(cls) -> "PathsConfig":
        """Auto-detect paths based on environment and system."""
        data_dir = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))
        data_dir.mkdir(parents=True, exist_ok=True)

        # Provider payloads and assembled campaigns land here
        media_dir = Path(os.getenv("MEDIA_DIR", str(data_dir / "media")))
        media_dir.mkdir(parents=True, exist_ok=True)

        return cls(
            data_dir=data_dir,
            media_dir=media_dir,
            ffmpeg_path=cls._find_ffmpeg(),
        )

    @staticmethod
    def _find_ffmpeg() -> str:
        """Find FFmpeg executable."""
        env_path = os.getenv("FFMPEG_PATH")
        if env_path and os.path.exists(env_path):
            return env_path

        for path in ("/usr/bin/ffmpeg", "/usr/local/bin/ffmpeg", "/opt/homebrew/bin/ffmpeg"):
            if os.path.exists(path):
                return path

        # bundled binary may be absent on unsupported platforms
        try:
            return imageio_ffmpeg.get_ffmpeg_exe()
        except RuntimeError:
            return "ffmpeg"


@dataclass
class AppConfig:
    """Main Application Configuration."""
    ai: AIConfig
    pipeline: PipelineConfig
    paths: PathsConfig
    storage_backend: str = "sqlite"
    database_path: str = "data/campaigns.db"
    debug: bool = False

    def validate(self) -> dict:
        """Validate configuration and return status."""
        return {
            "ai": {
                "google_configured": self.ai.has_google,
                "huggingface_configured": self.ai.has_huggingface,
                "sora_configured": self.ai.has_sora,
                "kie_configured": self.ai.has_kie,
                "elevenlabs_configured": self.ai.has_elevenlabs,
            },
            "pipeline": {
                "scene_count": self.pipeline.scene_count,
                "credit_cost": self.pipeline.credit_cost,
                "visual_chain": list(self.pipeline.visual_chain),
                "narration_provider": self.pipeline.narration_provider,
            },
            "database": {
                "backend": self.storage_backend,
                "path": self.database_path,
            },
            "ready_for_campaigns": self.ai.has_google and self.ai.has_any_visual,
        }

    def log_status(self):
        """Log configuration status (without exposing keys)."""
        status = self.validate()

        logger.info("=" * 50)
        logger.info("Configuration Status:")
        logger.info(f"  Gemini API: {'OK' if status['ai']['google_configured'] else 'NOT CONFIGURED'}")
        logger.info(f"  Hugging Face: {'OK' if status['ai']['huggingface_configured'] else 'NOT CONFIGURED'}")
        logger.info(f"  Sora API: {'OK' if status['ai']['sora_configured'] else 'NOT CONFIGURED'}")
        logger.info(f"  Kie Image API: {'OK' if status['ai']['kie_configured'] else 'NOT CONFIGURED'}")
        logger.info(f"  ElevenLabs: {'OK' if status['ai']['elevenlabs_configured'] else 'NOT CONFIGURED'}")
        logger.info(f"  Visual chain: {' -> '.join(self.pipeline.visual_chain)}")
        logger.info(f"  Narration: {self.pipeline.narration_provider}")
        logger.info(f"  Database: {status['database']['backend']}")
        logger.info(f"  Media Dir: {self.paths.media_dir}")
        logger.info(f"  FFmpeg: {self.paths.ffmpeg_path}")
        logger.info("=" * 50)

        if not status["ready_for_campaigns"]:
            logger.warning("Campaign pipeline needs a Gemini key and at least one visual provider")


def load_config() -> AppConfig:
    """Load configuration from environment variables."""
    ai_config = AIConfig(
        google_api_key=os.getenv("GOOGLE_API_KEY"),
        huggingface_token=os.getenv("HUGGINGFACE_TOKEN"),
        sora_api_key=os.getenv("SORA_API_KEY"),
        kie_api_key=os.getenv("KIE_API_KEY"),
        elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY"),
        reasoning_model=os.getenv("GEMINI_REASONING_MODEL", "gemini-3-pro-preview"),
        tts_model=os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts"),
        tts_voice=os.getenv("GEMINI_TTS_VOICE", "Charon"),
        huggingface_video_model=os.getenv("HUGGINGFACE_VIDEO_MODEL", "Kevin-thu/StoryMem"),
    )

    return AppConfig(
        ai=ai_config,
        pipeline=PipelineConfig.from_env(),
        paths=PathsConfig.detect(),
        storage_backend=os.getenv("STORAGE_BACKEND", "sqlite").lower(),
        database_path=os.getenv("DATABASE_PATH", "data/campaigns.db"),
        debug=os.getenv("DEBUG", "false").lower() == "true",
    )


# Global config instance
config = load_config()
