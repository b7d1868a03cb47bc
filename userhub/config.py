"""Configuration management for the user directory service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class ServiceConfig:
    """Runtime settings for the HTTP service."""

    database_path: Path
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    busy_timeout: float = 5.0

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "ServiceConfig":
        """Create a :class:`ServiceConfig` from raw dictionary data."""

        raw_db_path = data.get("database_path")
        if raw_db_path:
            candidate = Path(str(raw_db_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        log_level = str(data.get("log_level", "INFO")).strip().upper()
        if log_level not in _LOG_LEVELS:
            raise ValueError(f"Unsupported log level '{log_level}'")

        port = int(data.get("port", 8000))
        if not 1 <= port <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {port}")

        return ServiceConfig(
            database_path=database_path,
            host=str(data.get("host", "0.0.0.0")),
            port=port,
            log_level=log_level,
            busy_timeout=float(data.get("busy_timeout", 5.0)),
        )

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> "ServiceConfig":
        env = os.environ if environ is None else environ
        config = self
        if env.get("USERHUB_DB_PATH"):
            config = replace(config, database_path=resolve_database_path(env["USERHUB_DB_PATH"]))
        if env.get("USERHUB_HOST"):
            config = replace(config, host=env["USERHUB_HOST"].strip())
        if env.get("USERHUB_PORT"):
            config = replace(config, port=int(env["USERHUB_PORT"]))
        if env.get("USERHUB_LOG_LEVEL"):
            level = env["USERHUB_LOG_LEVEL"].strip().upper()
            if level not in _LOG_LEVELS:
                raise ValueError(f"Unsupported log level '{level}'")
            config = replace(config, log_level=level)
        return config


def load_service_config(config_path: Path) -> ServiceConfig:
    """Load service settings from a YAML file, falling back to defaults."""

    if not config_path.exists():
        return ServiceConfig.from_dict({})

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")

    section = raw.get("service", raw)
    if not isinstance(section, dict):
        raise ValueError("The 'service' section must be a mapping")

    return ServiceConfig.from_dict(section, base_path=config_path.parent)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "service.yaml").resolve(strict=False)
    return candidate


def load_config(config_path: Optional[str] = None) -> ServiceConfig:
    """Load the YAML configuration and apply ``USERHUB_*`` overrides."""

    path = resolve_config_path(config_path or os.getenv("USERHUB_CONFIG"))
    return load_service_config(path).with_env_overrides()


__all__ = ["ServiceConfig", "load_config", "load_service_config", "resolve_config_path"]
