"""Application configuration and state."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import platformdirs
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from rebasekit.core.base import BaseConfig, BaseState
from rebasekit.core.log import Logger
from rebasekit.core.yaml_settings import YamlWithIncludesSettingsSource


class GitConfig(BaseConfig):
    """Version-control tool settings."""

    remote: str = Field(
        default="origin",
        description="Remote the rebase target is fetched from",
    )
    executable: str = Field(
        default="git",
        description="git executable name or path",
    )


class LLMConfig(BaseConfig):
    """Inference provider and model selection."""

    model: str = Field(
        description=(
            "Default model for the conflict resolver. "
            "Format: 'provider:model' (e.g., openai:gpt-4o, "
            "groq:moonshotai/kimi-k2-instruct)"
        )
    )
    api_key: str | None = Field(
        default=None,
        description=(
            "API key for the provider. If unset the provider reads its "
            "own environment variable (OPENAI_API_KEY, GROQ_API_KEY, ...)"
        ),
    )
    base_url: str | None = Field(
        default=None,
        description="Override API base URL for OpenAI-compatible endpoints",
    )


class ResolverConfig(BaseConfig):
    """Limits for the resolution workflows."""

    git_timeout: float = Field(
        default=60,
        description="Seconds allowed for each git invocation",
    )
    inference_timeout: float = Field(
        default=60,
        description="Seconds allowed for each inference call",
    )
    max_retries: int = Field(
        default=3,
        description="Conflict batches the automatic loop may work through",
    )


class Config(BaseConfig):
    """Configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default_factory=Logger,
        description="Logger configuration and runtime instance",
    )
    git: GitConfig = Field(default_factory=GitConfig)
    llm: LLMConfig = Field(description="Inference provider settings")
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir("rebasekit",
                                                     appauthor=False))
        ),
        description="Root directory for log files",
    )
    modes: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Inference modes: settings and prompt templates",
    )

    def configure_logging(self, repo_name: str):
        """Install the configured logger as the global singleton."""
        from rebasekit.core.log import setup_logger

        self.logger = setup_logger(
            log_root=self.log_root,
            repo_name=repo_name,
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
            logfire=self.logger.logfire,
        )
        return self.logger


class Runtime(BaseState):
    """State mutated while a command runs."""

    repo_path: Path | None = Field(
        default=None, description="Repository the command operates on"
    )
    status: str = Field(
        default="pending",
        description="Command status: pending, running, complete, failed",
    )


class State(BaseSettings):
    """Configuration plus runtime state; flows through every command.

    Sources, highest priority first: init/CLI arguments, YAML files
    (package defaults < user config < ./rebasekit.yaml < --include),
    .env, environment variables (REBASEKIT_CONFIG__LLM__MODEL=...).
    """

    config: Config = Field(
        description="Application configuration (from YAML/env/CLI)"
    )
    runtime: Runtime = Field(default_factory=Runtime)
    include: list[str] | None = Field(
        default=None,
        description="Additional YAML files to deep-merge over the defaults",
    )

    model_config = SettingsConfigDict(
        yaml_file="rebasekit.yaml",
        env_file=".env",
        env_prefix="REBASEKIT_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )


__all__ = [
    "State",
    "Config",
    "GitConfig",
    "LLMConfig",
    "ResolverConfig",
    "Runtime",
]
