"""Reconcile IBM Installation Manager packages against a desired state."""

import logging
import sys

from .config import (
    ENSURE_ABSENT,
    ENSURE_PRESENT,
    Config,
    DesiredPackageSpec,
    load_config,
    validate_config,
)
from .errors import (
    ConfigError,
    IbmPkgError,
    InstallerFailed,
    InstallerToolNotFound,
    OwnershipChangeFailed,
    ProcessTerminationFailed,
    RegistryMalformed,
    RegistryUnavailable,
    format_error,
    format_field_error,
    format_suggestion,
)
from .execution import CommandResult, run_command
from .installer import Installer, build_install_args, build_uninstall_args
from .processes import parse_process_table, stop_blocking_processes
from .provider import ApplyResult, PackageProvider
from .reconcile import (
    Action,
    Prefetch,
    ReconciliationResult,
    State,
    prefetch,
    reconcile,
    reconcile_all,
    render_plan,
)
from .registry import (
    InstalledPackageRecord,
    RegistryIssue,
    RegistryScan,
    load_registry,
    locate_installer_tool,
)
from .versions import compare_versions, is_version_satisfied

_debug_enabled = False


def set_debug(enabled: bool):
    """Enable or disable debug mode globally."""
    global _debug_enabled
    _debug_enabled = enabled


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return _debug_enabled


def setup_logging(debug: bool = False) -> None:
    """Send log records to stderr; DEBUG with --debug, WARNING otherwise."""
    set_debug(debug)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


__all__ = [
    "set_debug",
    "is_debug",
    "setup_logging",
    "ENSURE_PRESENT",
    "ENSURE_ABSENT",
    "Config",
    "DesiredPackageSpec",
    "load_config",
    "validate_config",
    "IbmPkgError",
    "ConfigError",
    "RegistryUnavailable",
    "RegistryMalformed",
    "InstallerToolNotFound",
    "ProcessTerminationFailed",
    "InstallerFailed",
    "OwnershipChangeFailed",
    "format_error",
    "format_field_error",
    "format_suggestion",
    "CommandResult",
    "run_command",
    "Installer",
    "build_install_args",
    "build_uninstall_args",
    "parse_process_table",
    "stop_blocking_processes",
    "ApplyResult",
    "PackageProvider",
    "State",
    "Action",
    "ReconciliationResult",
    "Prefetch",
    "reconcile",
    "reconcile_all",
    "prefetch",
    "render_plan",
    "InstalledPackageRecord",
    "RegistryIssue",
    "RegistryScan",
    "load_registry",
    "locate_installer_tool",
    "compare_versions",
    "is_version_satisfied",
]
