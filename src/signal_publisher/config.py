"""Configuration management."""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from signal_publisher.core.policy import MAX_POST_LENGTH

logger = logging.getLogger(__name__)


@dataclass
class GitHubConfig:
    """GitHub activity source settings."""
    owner: str = ""
    repo: str = ""
    commit_limit: int = 5
    issue_limit: int = 5
    timeout: float = 30.0


@dataclass
class GenerationConfig:
    """Text generation settings."""
    provider: str = "huggingface"
    huggingface_model: str = "mistralai/Mistral-7B-Instruct-v0.2"
    huggingface_health_model: str = "gpt2"
    anthropic_model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 500
    temperature: float = 0.7
    top_p: float = 0.9
    request_delay: float = 2.0
    timeout: float = 30.0
    max_retries: int = 2
    initial_retry_delay: float = 2.0


@dataclass
class EnrichmentConfig:
    """Context lookup settings."""
    enabled: bool = True
    timeout: float = 5.0
    request_delay: float = 0.1
    max_keywords: int = 3
    max_context_length: int = 500


@dataclass
class ImagesConfig:
    """Stock image settings."""
    enabled: bool = True
    timeout: float = 10.0
    request_delay: float = 1.0


@dataclass
class PublishingConfig:
    """Publishing destination settings."""
    timeout: float = 15.0
    max_length: int = MAX_POST_LENGTH


@dataclass
class PipelineConfig:
    """Pipeline run settings."""
    workflow_name: str = "signal-pipeline"
    confidence_threshold: float = 0.5
    schedule_interval: float = 86400.0


@dataclass
class PathsConfig:
    """Path settings."""
    state_file: Path = Path("state.json")


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Settings:
    """Application settings."""

    # Secrets (from environment only)
    github_token: Optional[str] = None
    huggingface_token: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    unsplash_access_key: Optional[str] = None
    pexels_api_key: Optional[str] = None
    linkedin_access_token: Optional[str] = None
    linkedin_person_urn: Optional[str] = None
    linkedin_auto_publish: bool = False

    # Config sections
    github: GitHubConfig = field(default_factory=GitHubConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    images: ImagesConfig = field(default_factory=ImagesConfig)
    publishing: PublishingConfig = field(default_factory=PublishingConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def state_file(self) -> Path:
        return self.paths.state_file

    @property
    def confidence_threshold(self) -> float:
        return self.pipeline.confidence_threshold


SECTIONS = ("github", "generation", "enrichment", "images", "publishing", "pipeline", "paths", "logging")


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _apply_section(section: Any, values: dict) -> None:
    known = {f.name for f in fields(section)}
    for key, value in values.items():
        if key not in known:
            logger.warning("Ignoring unknown config key %s.%s", type(section).__name__, key)
            continue
        if isinstance(getattr(section, key), Path):
            value = Path(value)
        setattr(section, key, value)


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(
        github_token=os.getenv("GITHUB_TOKEN"),
        huggingface_token=os.getenv("HUGGINGFACE_TOKEN"),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
        unsplash_access_key=os.getenv("UNSPLASH_ACCESS_KEY"),
        pexels_api_key=os.getenv("PEXELS_API_KEY"),
        linkedin_access_token=os.getenv("LINKEDIN_ACCESS_TOKEN"),
        linkedin_person_urn=os.getenv("LINKEDIN_PERSON_URN"),
        linkedin_auto_publish=os.getenv("LINKEDIN_AUTO_PUBLISH") == "true",
    )

    for name in SECTIONS:
        if isinstance(config.get(name), dict):
            _apply_section(getattr(settings, name), config[name])

    # Repository coordinates may also come from the environment.
    if os.getenv("GITHUB_OWNER"):
        settings.github.owner = os.environ["GITHUB_OWNER"]
    if os.getenv("GITHUB_REPO"):
        settings.github.repo = os.environ["GITHUB_REPO"]

    return settings
