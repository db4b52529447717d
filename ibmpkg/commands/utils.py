"""Shared utility functions for commands."""

from pathlib import Path

from ibmpkg.config import Config, DesiredPackageSpec, load_config
from ibmpkg.errors import ConfigError
from ibmpkg.paths import get_config_path, get_registry_path


def load_desired_state(config_path: str | None) -> Config:
    """Load the config named on the command line, or the default one."""
    path = Path(config_path) if config_path else get_config_path()
    return load_config(path)


def resolve_registry(option: str | None, config: Config | None = None) -> Path:
    """The --registry option wins over the config's registry key."""
    return get_registry_path(option or (config.registry if config else None))


def select_packages(config: Config, name: str | None) -> list[DesiredPackageSpec]:
    """Filter packages by name, or return them all.

    Raises:
        ConfigError: If ``name`` is given and matches no package
    """
    if not name:
        return list(config.packages)
    spec = config.find(name)
    if spec is None:
        raise ConfigError(f"package '{name}' not found in configuration")
    return [spec]
