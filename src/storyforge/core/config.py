"""
storyforge.core.config - Configuration Management
===================================================

This module provides the configuration system for StoryForge. Configuration
can be loaded from multiple sources with the following priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with STORYFORGE_)
    3. YAML configuration file (storyforge.yaml)
    4. Default values defined in the models below

Architecture Context:
    Configuration flows DOWN through the system. The top-level
    StoryForgeConfig is created once and handed to the facade, which uses
    each section to build one collaborator:

        StoryForgeConfig
            ├── StorageConfig   → BlobStore (memory / filesystem)
            ├── LLMConfig       → LLM Provider (mock / openai)
            ├── TemplateConfig  → TemplateProvider (package / directory)
            └── environment     → default label stamped on new versions

Usage:
    # Load from environment variables:
    config = StoryForgeConfig()

    # Load from YAML file:
    config = load_config("storyforge.yaml")

    # Explicit overrides:
    config = StoryForgeConfig(environment="prod", llm=LLMConfig(provider="openai"))

Environment Variables:
    STORYFORGE_ENVIRONMENT=prod
    STORYFORGE_LOG_LEVEL=DEBUG
    STORYFORGE_STORAGE__BACKEND=filesystem
    STORYFORGE_STORAGE__ROOT_DIR=/var/lib/storyforge
    STORYFORGE_LLM__PROVIDER=openai
    STORYFORGE_LLM__API_KEY=sk-...
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, EnvSettingsSource

from storyforge.core.exceptions import ConfigurationError


# =============================================================================
# Storage Configuration
# =============================================================================
# Selects the object store that holds version blobs and current pointers.
# The in-memory backend is for tests and local experiments; the filesystem
# backend keeps the same key layout on disk.
# =============================================================================
class StorageConfig(BaseModel):
    """Configuration for the blob storage backend.

    Attributes:
        backend: Which BlobStore implementation to use.
        root_dir: Directory that holds all blobs when backend="filesystem".
            Blob keys become relative paths under this directory.
    """

    backend: Literal["memory", "filesystem"] = Field(
        default="memory",
        description="Blob storage backend: 'memory' or 'filesystem'",
    )
    root_dir: str = Field(
        default=".storyforge",
        description="Root directory for the filesystem backend",
    )


# =============================================================================
# LLM Configuration
# =============================================================================
class LLMConfig(BaseModel):
    """Configuration for the completion engine (LLM provider).

    Supported Providers:
        - "openai": OpenAI-compatible chat completions over HTTP
        - "mock":   Mock provider for testing (returns queued responses)

    Attributes:
        provider: Which LLM service to use.
        model: The specific model to use within the provider.
        api_key: API authentication key. Not needed for the mock provider.
        api_base_url: Base URL of the OpenAI-compatible API.
        temperature: Sampling temperature.
        max_tokens: Maximum number of tokens per completion.
        timeout_seconds: Per-call timeout enforced by the HTTP client. This is
            the only timeout a proposal call has.
    """

    provider: str = Field(
        default="mock",
        description="LLM provider name: 'openai' or 'mock'",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier within the provider",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for authentication (None for mock provider)",
    )
    api_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL for OpenAI-compatible APIs",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="LLM temperature: 0.0=deterministic, 1.0=creative",
    )
    max_tokens: int = Field(
        default=2048,
        ge=1,
        le=128000,
        description="Maximum tokens per LLM response",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="HTTP timeout for a single completion call",
    )


# =============================================================================
# Template Configuration
# =============================================================================
class TemplateConfig(BaseModel):
    """Configuration for prompt template loading.

    Attributes:
        directory: Directory containing "<template_id>.txt" files. When None,
            the templates bundled with the package are used.
    """

    directory: Optional[str] = Field(
        default=None,
        description="Template directory (None = bundled package templates)",
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   STORYFORGE_ENVIRONMENT        → config.environment
#   STORYFORGE_STORAGE__BACKEND   → config.storage.backend
#   STORYFORGE_LLM__PROVIDER      → config.llm.provider
#   STORYFORGE_TEMPLATES__DIRECTORY → config.templates.directory
# =============================================================================
class StoryForgeConfig(BaseSettings):
    """Top-level configuration for StoryForge.

    Attributes:
        environment: Deployment environment label. Stamped on new versions
            when the request context does not name one.
        log_level: Python logging level name.
        storage: Blob storage configuration (see StorageConfig).
        llm: Completion engine configuration (see LLMConfig).
        templates: Prompt template configuration (see TemplateConfig).

    Example:
        >>> config = StoryForgeConfig(
        ...     environment="dev",
        ...     storage=StorageConfig(backend="filesystem", root_dir="/tmp/sf"),
        ... )
    """

    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment label",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Blob storage configuration",
    )
    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM provider configuration",
    )
    templates: TemplateConfig = Field(
        default_factory=TemplateConfig,
        description="Prompt template configuration",
    )

    model_config = {
        "env_prefix": "STORYFORGE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> StoryForgeConfig:
    """Load StoryForge configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'storyforge.yaml' in the current directory. If that doesn't
            exist either, uses pure defaults + environment variables.

    Returns:
        A fully validated StoryForgeConfig instance.

    Raises:
        ConfigurationError: If the YAML file exists but is not a mapping or
            cannot be parsed.
        FileNotFoundError: If an explicit path is provided but doesn't exist.
    """
    if path is None:
        default_path = Path("storyforge.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {path}. "
                f"Create one from storyforge.yaml.example or use environment variables."
            )

        with open(config_path) as f:
            try:
                raw_data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    message=f"Invalid YAML in configuration file: {path}",
                    error_code="INVALID_CONFIG_FILE",
                    details={"path": str(config_path), "error": str(exc)},
                ) from exc

        if raw_data is None:
            raw_data = {}
        if not isinstance(raw_data, dict):
            raise ConfigurationError(
                message=f"Configuration file must contain a mapping: {path}",
                error_code="INVALID_CONFIG_FILE",
                details={"path": str(config_path)},
            )
        yaml_data = raw_data

    # Init kwargs outrank env vars in pydantic-settings, so fold env back on top
    env_data = EnvSettingsSource(StoryForgeConfig)()
    return StoryForgeConfig(**_deep_merge(yaml_data, env_data))


def get_default_config() -> StoryForgeConfig:
    """Create a StoryForgeConfig with defaults (overridden by any set env vars)."""
    return StoryForgeConfig()


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
