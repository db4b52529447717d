"""Well-known path helpers for ibmpkg."""

import os
from pathlib import Path

DEFAULT_REGISTRY_PATH = "/var/ibm/InstallationManager/installed.xml"


def get_config_dir() -> Path:
    """Return XDG-compliant config directory: ~/.config/ibmpkg"""
    return Path.home() / ".config" / "ibmpkg"


def get_config_path() -> Path:
    """Return path to the desired-state config file.

    Priority:
    1. IBMPKG_CONFIG environment variable (if set)
    2. ~/.config/ibmpkg/packages.yaml (default XDG location)
    """
    if "IBMPKG_CONFIG" in os.environ:
        return Path(os.environ["IBMPKG_CONFIG"])
    return get_config_dir() / "packages.yaml"


def get_registry_path(configured: str | None = None) -> Path:
    """Return path to the Installation Manager registry.

    Priority:
    1. ``configured`` (the config file's ``registry`` key or a CLI option)
    2. IBMPKG_REGISTRY environment variable (if set)
    3. /var/ibm/InstallationManager/installed.xml
    """
    if configured:
        return Path(configured)
    if "IBMPKG_REGISTRY" in os.environ:
        return Path(os.environ["IBMPKG_REGISTRY"])
    return Path(DEFAULT_REGISTRY_PATH)
