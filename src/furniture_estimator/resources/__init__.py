"""Utilities for accessing packaged resource files."""

from __future__ import annotations

from pathlib import Path

RESOURCE_ROOT = Path(__file__).resolve().parent


def resource_path(*parts: str) -> Path:
    """Return the path to a resource stored alongside the package.

    Raises :class:`FileNotFoundError` when the resource is missing.
    """

    path = RESOURCE_ROOT.joinpath(*parts)
    if not path.exists():
        raise FileNotFoundError(f"Resource not found: {path}")
    return path


def default_app_settings_json() -> Path:
    """Return the packaged application settings JSON file."""

    return resource_path("app_settings.json")


__all__ = ["RESOURCE_ROOT", "default_app_settings_json", "resource_path"]
