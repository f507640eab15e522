"""Harness configuration settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from common.exceptions import ConfigError
from common.models.experiment import ExperimentConfig, OrchestratorKind, default_experiment
from common.utils import deep_merge, load_yaml


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Data storage (relative run_root / output_path are resolved against it)
    data_path: Path = Field(default=Path("."))

    # Load generator
    wrk_binary: str = "wrk2/wrk"

    # Orchestrator CLIs
    use_sudo: bool = False  # prefix docker commands with sudo

    # Default experiment file (YAML)
    experiment_file: Optional[Path] = None

    # Logging
    verbose: bool = False
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_prefix = "SNB_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.verbose else self.log_level.upper()

    def resolve(self, path: Path) -> Path:
        """Resolve a config path against the data directory."""
        path = Path(path).expanduser()
        if path.is_absolute():
            return path
        return self.data_path / path


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def init_settings(**kwargs) -> Settings:
    """Initialize settings with custom values."""
    global _settings
    _settings = Settings(**kwargs)
    return _settings


def load_experiment(
    path: Optional[Path] = None,
    overrides: Optional[dict] = None,
) -> ExperimentConfig:
    """Load an experiment from YAML, falling back to the built-in defaults.

    The YAML may set ``orchestrator.kind`` without listing workloads, in
    which case the default workloads for that orchestrator are used.
    """
    data: dict = {}
    if path is not None:
        try:
            data = load_yaml(path)
        except FileNotFoundError as e:
            raise ConfigError(f"Experiment file not found: {path}") from e
        except Exception as e:
            raise ConfigError(f"Failed to read experiment file {path}: {e}") from e

    if overrides:
        data = deep_merge(data, overrides)

    try:
        kind = OrchestratorKind(data.get("orchestrator", {}).get("kind", OrchestratorKind.SWARM.value))
        base = default_experiment(kind).model_dump(mode="json")
        return ExperimentConfig(**deep_merge(base, data))
    except Exception as e:
        raise ConfigError(f"Invalid experiment configuration: {e}") from e
