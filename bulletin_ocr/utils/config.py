"""Configuration management for the bulletin OCR system.

Loads and validates YAML configuration with sensible defaults for the
Mistral client, document encoding, and extraction strategies. Credentials
are never read from the YAML file, only from the environment.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class MistralConfig(BaseModel):
    """Configuration for the Mistral chat-completions API."""

    api_url: str = "https://api.mistral.ai/v1/chat/completions"
    api_key_env: str = "MISTRAL_API_KEY"
    vision_model: str = "pixtral-12b-2409"
    text_model: str = "mistral-large-latest"
    temperature: float = 0.1
    max_tokens: int = 4000
    timeout_seconds: float = 60.0
    connect_timeout_seconds: float = 10.0

    def resolve_api_key(self) -> str | None:
        """Read the API key from the configured environment variable.

        Returns:
            The key, or ``None`` when the variable is unset or blank.
        """
        value = os.environ.get(self.api_key_env, "").strip()
        return value or None


class DocumentConfig(BaseModel):
    """Configuration for turning uploaded documents into model inputs."""

    pdf_dpi: int = 200
    max_pages: int = 4
    jpeg_quality: int = 90


class ExtractionConfig(BaseModel):
    """Configuration for the extraction strategy chain."""

    strategies: list[str] = Field(default_factory=lambda: ["vision", "text"])
    context_before: int = 50
    context_after: int = 100


class AppConfig(BaseModel):
    """Top-level application configuration."""

    mistral: MistralConfig = Field(default_factory=MistralConfig)
    document: DocumentConfig = Field(default_factory=DocumentConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
