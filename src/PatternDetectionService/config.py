from pydantic_settings import BaseSettings
from functools import lru_cache

from models.technicals import DetectionConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # General
    app_name: str = "Chart Pattern Detection Service"
    debug: bool = False

    # Detection defaults, e.g. CP_DETECTION__HARMONIC_TOLERANCE=0.05
    detection: DetectionConfig = DetectionConfig()

    model_config = {"env_file": ".env", "env_prefix": "CP_", "env_nested_delimiter": "__"}

    def detection_config(self, **overrides) -> DetectionConfig:
        """Detection defaults with per-request overrides applied."""
        if not overrides:
            return self.detection
        return self.detection.model_copy(update=overrides)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
