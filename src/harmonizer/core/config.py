"""Configuration management with environment overrides."""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/harmonizer.yaml"


class GitHubConfig(BaseModel):
    """Source-control access and default repository."""
    token: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    base_branch: str = Field(default="main")
    api_url: str = Field(default="https://api.github.com")
    timeout: float = Field(default=30.0, gt=0)


class ModelConfig(BaseModel):
    """Language-model provider settings."""
    provider: Literal["openai", "anthropic"] = "openai"
    model: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    max_tokens: int = Field(default=8192, gt=0)

    def api_key(self) -> Optional[str]:
        """Return the credential for the selected provider."""
        if self.provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key


class LimitsConfig(BaseModel):
    """Volume bounds for collection and prompting."""
    max_file_bytes: int = Field(default=120_000, gt=0)
    max_content_chars: int = Field(default=7_000, gt=0)
    max_files_in_prompt: int = Field(default=12, gt=0)


class ApplyConfig(BaseModel):
    """Branch, pull request and manifest defaults for apply runs."""
    branch_prefix: str = Field(default="harmonizer")
    pr_title: str = Field(default="Harmonizer automatic PR")
    default_note: str = Field(default="Harmonizer run")
    default_caller: str = Field(default="harmonizer")
    write_manifest: bool = Field(default=False)


class HarmonizerConfig(BaseModel):
    """Application configuration."""
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    apply: ApplyConfig = Field(default_factory=ApplyConfig)


# Environment variable -> (section, key)
_ENV_OVERRIDES = {
    "GITHUB_TOKEN": ("github", "token"),
    "GITHUB_OWNER": ("github", "owner"),
    "GITHUB_REPO": ("github", "repo"),
    "BASE_BRANCH": ("github", "base_branch"),
    "GITHUB_API_URL": ("github", "api_url"),
    "OPENAI_API_KEY": ("model", "openai_api_key"),
    "ANTHROPIC_API_KEY": ("model", "anthropic_api_key"),
    "HARMONIZER_LLM_PROVIDER": ("model", "provider"),
    "HARMONIZER_MODEL": ("model", "model"),
}


def load_config(config_path: Optional[str] = None) -> HarmonizerConfig:
    """Load configuration from file with environment overrides.

    Args:
        config_path: Path to a YAML config file (default: HARMONIZER_CONFIG
            or configs/harmonizer.yaml). A missing file is not an error.

    Returns:
        Loaded configuration
    """
    if config_path is None:
        config_path = os.getenv("HARMONIZER_CONFIG", DEFAULT_CONFIG_PATH)

    config_dict: dict = {}

    if Path(config_path).exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f) or {}
        logger.debug("Loaded configuration from %s", config_path)

    for env_name, (section, key) in _ENV_OVERRIDES.items():
        if value := os.getenv(env_name):
            config_dict.setdefault(section, {})[key] = value

    return HarmonizerConfig(**config_dict)
