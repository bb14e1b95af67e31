from __future__ import annotations
"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """MotionRelay application settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "MotionRelay"
    DEBUG: bool = False

    # --- Redis (Celery broker + batch progress channel) ---
    REDIS_URL: str = "redis://localhost:6379/0"

    # --- Media Volume (local blob store) ---
    MEDIA_VOLUME: str = "media_volume"
    MEDIA_BASE_URL: str = "/media"

    # --- Platform-level provider keys (shared, not BYOK) ---
    RUNWAY_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    POLLINATIONS_API_KEY: str = ""

    # --- Polling ---
    VIDEO_POLL_INTERVAL: float = 5.0
    VIDEO_MAX_WAIT: float = 600.0  # absolute ceiling per job, seconds

    # --- Scene dispatch ---
    SCENE_CONCURRENCY: int = 3

    # --- Free tier (Pollinations) ---
    FREE_TIER_MODELS: str = "seedance,grok-video"  # comma-separated, in priority order
    FREE_TIER_MIN_BYTES: int = 1000
    FREE_TIER_TIMEOUT: float = 300.0

    # --- Hugging Face inference ---
    HF_VIDEO_MODEL: str = "Lightricks/LTX-Video-0.9.8-13B-distilled"
    HF_LOADING_WAIT: float = 30.0
    HF_MAX_LOADING_RETRIES: int = 3

    # --- Artifact ingestion ---
    PERSIST_REMOTE_ARTIFACTS: bool = True
    ARTIFACT_DOWNLOAD_TIMEOUT: float = 120.0

    # --- Vendor endpoints ---
    RUNWAY_API_BASE: str = "https://api.dev.runwayml.com/v1"
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    REPLICATE_API_BASE: str = "https://api.replicate.com/v1"
    FAL_QUEUE_BASE: str = "https://queue.fal.run"
    LUMA_API_BASE: str = "https://api.lumalabs.ai/dream-machine/v1"
    HF_INFERENCE_BASE: str = "https://api-inference.huggingface.co/models"
    POLLINATIONS_VIDEO_BASE: str = "https://gen.pollinations.ai/video"

    @property
    def free_tier_models(self) -> list[str]:
        return [m.strip() for m in self.FREE_TIER_MODELS.split(",") if m.strip()]

    @property
    def platform_keys(self) -> dict[str, str]:
        """Shared keys keyed by provider id; empty values are dropped."""
        keys = {
            "runway": self.RUNWAY_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "pollinations": self.POLLINATIONS_API_KEY,
        }
        return {k: v for k, v in keys.items() if v}

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()
