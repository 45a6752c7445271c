"""Configuration helpers for the furniture estimator."""
from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

from furniture_estimator.resources import default_app_settings_json

if TYPE_CHECKING:  # pragma: no cover - for static type checkers only
    from furniture_estimator.pricing.rate_defaults import RateTable

DEFAULT_VERSION = 1
APP_SETTINGS_ENV_VAR = "FURNITURE_ESTIMATOR_SETTINGS"
LOG_LEVEL_ENV_VAR = "FURNITURE_ESTIMATOR_LOG_LEVEL"
STRICT_ENV_VAR = "FURNITURE_ESTIMATOR_STRICT"
LOGGER_NAME = "furniture_estimator"

_APP_SETTINGS_CACHE: dict[str, Any] | None = None


def get_logger(*names: str) -> logging.Logger:
    """Return a logger under the shared estimator namespace."""

    if not names:
        return logging.getLogger(LOGGER_NAME)
    qualified = ".".join((LOGGER_NAME, *names))
    return logging.getLogger(qualified)


logger = get_logger("config")


def configure_logging(level: int | str = logging.INFO, *, force: bool = False) -> None:
    """Initialise a basic logging configuration if none is present."""

    if isinstance(level, str):
        level = getattr(logging, level.strip().upper(), logging.INFO)

    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=force,
    )


def _env_flag(name: str, *, default: bool = False) -> bool:
    """Return a boolean from the environment with tolerant parsing."""

    raw = os.getenv(name)
    if raw is None:
        return default

    normalized = raw.strip().lower()
    if not normalized:
        return default

    truthy = {"1", "true", "yes", "on"}
    falsy = {"0", "false", "no", "off"}

    if normalized in truthy:
        return True
    if normalized in falsy:
        return False

    try:
        return bool(int(normalized))
    except ValueError:
        return default


class ConfigError(RuntimeError):
    """Raised when configuration data cannot be loaded or validated."""


@dataclass(frozen=True)
class AppEnvironment:
    """Runtime configuration extracted from environment variables."""

    log_level: str = "INFO"
    strict_formulas: bool = False
    settings_path: Path | None = None

    @classmethod
    def from_env(cls) -> "AppEnvironment":
        settings_raw = os.getenv(APP_SETTINGS_ENV_VAR)
        return cls(
            log_level=(os.getenv(LOG_LEVEL_ENV_VAR) or "INFO").strip().upper(),
            strict_formulas=_env_flag(STRICT_ENV_VAR, default=False),
            settings_path=Path(settings_raw).expanduser() if settings_raw else None,
        )


@dataclass(frozen=True)
class EstimationParams:
    """Labor and overhead knobs used by the product cost estimate."""

    hourly_rate: float = 50.0
    overhead_rate: float = 0.20

    def __post_init__(self) -> None:
        if self.hourly_rate < 0:
            raise ConfigError(f"hourly_rate must be non-negative, got {self.hourly_rate!r}")
        if self.overhead_rate < 0:
            raise ConfigError(f"overhead_rate must be non-negative, got {self.overhead_rate!r}")


def describe_runtime_environment() -> dict[str, str]:
    """Return a snapshot of runtime configuration for the CLI."""

    env = AppEnvironment.from_env()
    params = load_default_params()
    return {
        "log_level": env.log_level,
        "strict_formulas": str(env.strict_formulas),
        "settings_path": str(env.settings_path or ""),
        "hourly_rate": f"{params.hourly_rate:g}",
        "overhead_rate": f"{params.overhead_rate:g}",
    }


def _load_json_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Malformed JSON in {path.name}: {exc}") from exc

    if not isinstance(raw, Mapping):
        raise ConfigError(f"Configuration root must be an object in {path.name}")

    return dict(raw)


def _merge_mappings(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if key in base and isinstance(base[key], Mapping) and isinstance(value, Mapping):
            base[key] = _merge_mappings(dict(base[key]), value)
        else:
            base[key] = value
    return base


def _load_app_settings_raw() -> dict[str, Any]:
    base = _load_json_mapping(default_app_settings_json())

    override_raw = os.getenv(APP_SETTINGS_ENV_VAR)
    if override_raw:
        override_path = Path(override_raw).expanduser()
        if override_path.exists():
            try:
                override = _load_json_mapping(override_path)
            except ConfigError as exc:
                raise ConfigError(f"Failed to load override settings: {exc}") from exc
            base = _merge_mappings(base, override)
        else:
            logger.warning("Override settings path does not exist: %s", override_path)

    return base


def load_app_settings(*, reload: bool = False) -> dict[str, Any]:
    """Return the merged application settings, applying optional overrides."""

    global _APP_SETTINGS_CACHE
    if reload or _APP_SETTINGS_CACHE is None:
        _APP_SETTINGS_CACHE = _load_app_settings_raw()

    return copy.deepcopy(_APP_SETTINGS_CACHE)


def load_named_config(name: str, version: int = DEFAULT_VERSION) -> dict[str, Any]:
    """Load a named configuration bundle from the merged application settings."""

    if version != DEFAULT_VERSION:
        raise ConfigError(
            f"Unsupported version requested: {version!r}; expected {DEFAULT_VERSION}"
        )

    settings = load_app_settings()
    pricing_defaults = settings.get("pricing_defaults")
    if not isinstance(pricing_defaults, Mapping):
        raise ConfigError("'pricing_defaults' section missing from app settings")

    section = pricing_defaults.get(name)
    if not isinstance(section, Mapping):
        raise ConfigError(f"Missing configuration section in app settings: {name}")

    return dict(section)


def load_default_params() -> EstimationParams:
    """Return the labor/overhead parameters from the merged settings."""

    section = load_named_config("params")
    try:
        return EstimationParams(
            hourly_rate=float(section.get("hourly_rate", EstimationParams.hourly_rate)),
            overhead_rate=float(section.get("overhead_rate", EstimationParams.overhead_rate)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid estimation parameters: {exc}") from exc


@lru_cache(maxsize=1)
def _rate_defaults_module():
    from furniture_estimator.pricing import rate_defaults as _rate_defaults

    return _rate_defaults


def load_default_rates() -> "RateTable":
    """Return the shared rate table with any configured overrides applied."""

    overrides = load_app_settings().get("rate_overrides") or {}
    if not isinstance(overrides, Mapping):
        raise ConfigError("'rate_overrides' must be an object")

    table = _rate_defaults_module().RateTable()
    try:
        return table.with_overrides(
            materials=overrides.get("materials") or {},
            equipment=overrides.get("equipment") or {},
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid rate overrides: {exc}") from exc


def save_named_config(
    data: Mapping[str, Any],
    path: str | Path,
    *,
    version: int = DEFAULT_VERSION,
    indent: int = 2,
) -> Path:
    """Persist configuration data with version metadata as JSON."""

    destination = Path(path)
    payload: dict[str, Any] = {"version": version, "data": dict(data)}
    destination.write_text(json.dumps(payload, indent=indent, sort_keys=True), encoding="utf-8")
    return destination


__all__ = [
    "APP_SETTINGS_ENV_VAR",
    "AppEnvironment",
    "ConfigError",
    "DEFAULT_VERSION",
    "EstimationParams",
    "LOGGER_NAME",
    "configure_logging",
    "describe_runtime_environment",
    "get_logger",
    "load_app_settings",
    "load_default_params",
    "load_default_rates",
    "load_named_config",
    "logger",
    "save_named_config",
]
