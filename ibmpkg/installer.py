"""imcl command construction and execution."""

import logging
import os
import shutil
from typing import Protocol

from .config import DesiredPackageSpec
from .errors import ConfigError, InstallerFailed, OwnershipChangeFailed, format_field_error
from .execution import CommandResult, run_command

_logging = logging.getLogger(__name__)


def build_install_args(spec: DesiredPackageSpec) -> list[str]:
    """Return imcl arguments that install ``spec``.

    A response file holds everything imcl needs (paths, versions,
    repositories), so nothing else from the spec is passed with it.
    Otherwise caller-supplied options come last so they can override ours.
    """
    if spec.response_file_path:
        return ["input", spec.response_file_path]

    return [
        "install", f"{spec.package_id}_{spec.version}",
        "-repositories", str(spec.repository_url),
        "-installationDirectory", str(spec.target_path),
        "-acceptLicense",
    ] + list(spec.extra_options)


def build_uninstall_args(spec: DesiredPackageSpec) -> list[str]:
    for field_name in ("package_id", "version", "target_path"):
        if not getattr(spec, field_name):
            raise ConfigError(
                format_field_error(f"Package '{spec.name}'", field_name, "is required to uninstall")
            )
    return [
        "uninstall", f"{spec.package_id}_{spec.version}",
        "-s",
        "-installationDirectory", spec.target_path,
    ]


class InstallerRunner(Protocol):
    def run(self, args: list[str], user: str | None = None) -> CommandResult: ...


class OwnershipChanger(Protocol):
    def change_owner(self, path: str, owner: str | None, group: str | None) -> None: ...


class ImclRunner:
    """Runs the imcl binary found in the registry (or given explicitly)."""

    def __init__(self, imcl_path: str):
        self.imcl_path = imcl_path

    def run(self, args: list[str], user: str | None = None) -> CommandResult:
        return run_command([self.imcl_path] + args, user=user)


def _raise_walk_error(error: OSError) -> None:
    raise error


class ChownOwnershipChanger:
    """Recursively changes owner and group, like ``chown -R``."""

    def change_owner(self, path: str, owner: str | None, group: str | None) -> None:
        try:
            shutil.chown(path, user=owner, group=group)
            for root, dirs, files in os.walk(path, onerror=_raise_walk_error):
                for name in dirs + files:
                    entry = os.path.join(root, name)
                    # Links are left alone so targets outside the tree are untouched
                    if not os.path.islink(entry):
                        shutil.chown(entry, user=owner, group=group)
        except LookupError as e:
            raise OwnershipChangeFailed(path, str(e)) from e
        except OSError as e:
            raise OwnershipChangeFailed(path, e.strerror or str(e)) from e


class Installer:
    """Installs and uninstalls packages with imcl."""

    def __init__(self, runner: InstallerRunner, ownership: OwnershipChanger | None = None):
        self.runner = runner
        self.ownership = ownership or ChownOwnershipChanger()

    def _execute(self, action: str, spec: DesiredPackageSpec, args: list[str]) -> str:
        result = self.runner.run(args, user=spec.installer_user)
        if not result.ok:
            _logging.error(f"imcl {action} of {spec.name} failed: {result.output}")
            raise InstallerFailed(action, result.returncode, result.output)
        return result.output

    def install(self, spec: DesiredPackageSpec) -> str:
        """Install ``spec`` and return imcl's output.

        Raises:
            InstallerFailed: If imcl exits non-zero
        """
        return self._execute("install", spec, build_install_args(spec))

    def uninstall(self, spec: DesiredPackageSpec) -> str:
        return self._execute("uninstall", spec, build_uninstall_args(spec))

    def fix_ownership(self, spec: DesiredPackageSpec) -> None:
        """Apply the spec's owner/group to its target path, if requested.

        Raises:
            OwnershipChangeFailed: If the change could not be made
        """
        if not spec.manage_ownership or not spec.target_path:
            return
        _logging.debug(
            f"Changing ownership of {spec.target_path} to "
            f"{spec.owner or ''}:{spec.group or ''}"
        )
        self.ownership.change_owner(spec.target_path, spec.owner, spec.group)


__all__ = [
    "InstallerRunner",
    "OwnershipChanger",
    "ImclRunner",
    "ChownOwnershipChanger",
    "Installer",
    "build_install_args",
    "build_uninstall_args",
]
