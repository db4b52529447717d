"""Error types and formatting utilities for consistent error messages.

This module defines the exception taxonomy raised across ibmpkg and the
helper functions used to format every user-facing error message.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors use structured format: '<entity> field '<field>' <issue>'
- Use present tense: 'must be', 'is required'
- Raw tool output is appended verbatim; it is the only diagnostic the
  installer and OS tools give us
- Include actionable hints where helpful
"""


class IbmPkgError(Exception):
    """Base class for all errors raised by ibmpkg."""


class ConfigError(IbmPkgError):
    """Raised when config loading or validation fails."""


class RegistryUnavailable(IbmPkgError):
    """Raised when the Installation Manager registry cannot be opened or read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"registry '{path}' is unavailable: {reason}")


class RegistryMalformed(IbmPkgError):
    """Raised when the registry, or a single entry in it, has the wrong shape."""

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)


class InstallerToolNotFound(IbmPkgError):
    """Raised when imcl cannot be located and no explicit path was given."""


class ProcessTerminationFailed(IbmPkgError):
    """Raised when processes blocking a target path could not be killed."""

    def __init__(self, target_path: str, pids: list[int], output: str):
        self.target_path = target_path
        self.pids = list(pids)
        self.output = output
        pid_list = " ".join(str(pid) for pid in self.pids)
        if not self.pids:
            super().__init__(
                f"could not list processes to find those using {target_path}: {output}"
            )
            return
        super().__init__(
            f"could not kill PID(s) {pid_list}. All processes using "
            f"{target_path} must be stopped before installing to it. "
            f"Output of 'kill {pid_list}': {output}"
        )


class InstallerFailed(IbmPkgError):
    """Raised when imcl exits non-zero."""

    def __init__(self, action: str, returncode: int, output: str):
        self.action = action
        self.returncode = returncode
        self.output = output
        super().__init__(f"imcl {action} failed (exit {returncode}): {output}")


class OwnershipChangeFailed(IbmPkgError):
    """Raised when the post-install ownership change fails."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"could not change ownership of {path}: {reason}")


def format_error(message: str) -> str:
    return f"Error: {message}"


def format_field_error(entity: str, field: str, issue: str) -> str:
    """E.g. ``Package 'was85' field 'version' is required``."""
    return f"{entity} field '{field}' {issue}"


def format_suggestion(message: str, suggestion: str) -> str:
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
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
]
