"""Configuration management for the registration service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import yaml

from .database import resolve_database_path

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the API, the web form and the CLI."""

    database_path: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    api_base_url: Optional[str] = None
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))

    @property
    def resolved_api_base_url(self) -> str:
        """Base URL the web form uses to reach the users API."""
        if self.api_base_url:
            return self.api_base_url.strip().rstrip("/")
        host = self.host
        if host in {"0.0.0.0", "::", ""}:
            host = "127.0.0.1"
        return f"http://{host}:{self.port}/api"

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""
        raw_db_path = data.get("database_path")
        if raw_db_path:
            candidate = Path(str(raw_db_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        try:
            port = int(data.get("port", DEFAULT_PORT))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid port in configuration: {data.get('port')!r}") from exc

        api_base_url = data.get("api_base_url")
        return Settings(
            database_path=database_path,
            host=str(data.get("host") or DEFAULT_HOST),
            port=port,
            api_base_url=str(api_base_url) if api_base_url else None,
            cors_origins=_parse_origins(data.get("cors_origins")),
        )


def _parse_origins(value: object) -> Tuple[str, ...]:
    if value is None:
        return ("*",)
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value]
    else:
        raise ValueError("cors_origins must be a string or a list of strings")
    origins = tuple(item for item in items if item)
    return origins or ("*",)


def load_config_file(config_path: Path) -> Dict[str, object]:
    """Load raw settings from a YAML file."""
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")
    section = raw.get("registration", raw)
    if not isinstance(section, dict):
        raise ValueError("The 'registration' section must be a mapping")
    return dict(section)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Resolve settings from an optional YAML file, overridden by environment variables."""

    env = os.environ if environ is None else environ

    config_file = env.get("REGISTRATION_CONFIG")
    if config_file:
        config_path = Path(config_file).expanduser().resolve(strict=False)
        settings = Settings.from_dict(load_config_file(config_path), base_path=config_path.parent)
    else:
        settings = Settings.from_dict({})

    overrides: Dict[str, object] = {}
    if env.get("REGISTRATION_DB_PATH"):
        overrides["database_path"] = resolve_database_path(env["REGISTRATION_DB_PATH"])
    if env.get("REGISTRATION_HOST"):
        overrides["host"] = env["REGISTRATION_HOST"].strip()
    if env.get("REGISTRATION_PORT"):
        try:
            overrides["port"] = int(env["REGISTRATION_PORT"])
        except ValueError as exc:
            raise ValueError(f"REGISTRATION_PORT must be an integer, got {env['REGISTRATION_PORT']!r}") from exc
    if env.get("REGISTRATION_API_URL"):
        overrides["api_base_url"] = env["REGISTRATION_API_URL"].strip()
    if env.get("REGISTRATION_CORS_ORIGINS") is not None:
        overrides["cors_origins"] = _parse_origins(env["REGISTRATION_CORS_ORIGINS"])

    if overrides:
        settings = replace(settings, **overrides)
    return settings


__all__ = ["DEFAULT_HOST", "DEFAULT_PORT", "Settings", "load_config_file", "load_settings"]
