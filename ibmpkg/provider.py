"""One reconciliation pass: read the registry, decide, and act.

Only basic management is supported: a package can be checked for and
installed or uninstalled. Updating isn't done here; for products like
WebSphere it involves stopping services and unpacking fix packs by hand.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import DesiredPackageSpec
from .errors import IbmPkgError, OwnershipChangeFailed
from .installer import ChownOwnershipChanger, ImclRunner, Installer, InstallerRunner, OwnershipChanger
from .processes import KillSignalSender, ProcessLister, PsProcessLister, SignalSender, stop_blocking_processes
from .reconcile import Action, Prefetch, ReconciliationResult, prefetch
from .registry import InstalledPackageRecord, RegistryScan, load_registry, locate_installer_tool

_logging = logging.getLogger(__name__)

STATUS_UNCHANGED = "unchanged"
STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"
STATUS_DRY_RUN = "dry-run"


@dataclass
class ApplyResult:
    name: str
    action: Action
    status: str
    output: str = ""
    killed: list[int] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.status == STATUS_FAILED


class PackageProvider:
    """Manages IBM packages through the registry and imcl.

    The OS-facing pieces (process listing, kill, imcl, chown) are injected;
    by default they are the real command-line tools.
    """

    def __init__(
        self,
        registry_path: str | Path,
        imcl_path: str | None = None,
        lister: ProcessLister | None = None,
        sender: SignalSender | None = None,
        runner: InstallerRunner | None = None,
        ownership: OwnershipChanger | None = None,
    ):
        self.registry_path = registry_path
        self.imcl_path = imcl_path
        self.lister = lister or PsProcessLister()
        self.sender = sender or KillSignalSender()
        self.ownership = ownership or ChownOwnershipChanger()
        self._runner = runner
        self._scan: RegistryScan | None = None

    def scan(self) -> RegistryScan:
        """Read the registry, once per provider."""
        if self._scan is None:
            self._scan = load_registry(self.registry_path)
        return self._scan

    def instances(self) -> list[InstalledPackageRecord]:
        """Every installed package, each one a present resource."""
        return list(self.scan().records)

    def prefetch(self, specs: list[DesiredPackageSpec]) -> Prefetch:
        return prefetch(specs, self.scan())

    def installer(self) -> Installer:
        if self._runner is None:
            if self.imcl_path:
                imcl = self.imcl_path
            else:
                imcl = locate_installer_tool(self.scan())
            _logging.debug(f"Using imcl at {imcl}")
            self._runner = ImclRunner(imcl)
        return Installer(self._runner, self.ownership)

    def _stop_processes(self, spec: DesiredPackageSpec) -> list[int]:
        if not spec.target_path:
            _logging.warning(
                f"{spec.name}: no target_path known, cannot stop processes using it"
            )
            return []
        return stop_blocking_processes(spec.target_path, self.lister, self.sender)

    def create(self, spec: DesiredPackageSpec) -> ApplyResult:
        """Stop blocking processes, install, then fix ownership.

        Raises:
            ProcessTerminationFailed, InstallerToolNotFound, InstallerFailed
        """
        installer = self.installer()
        killed = self._stop_processes(spec)
        output = installer.install(spec)
        result = ApplyResult(
            name=spec.name or "", action=Action.INSTALL, status=STATUS_SUCCESS,
            output=output, killed=killed,
        )
        try:
            installer.fix_ownership(spec)
        except OwnershipChangeFailed as e:
            _logging.warning(f"{spec.name}: {e}")
            result.warnings.append(str(e))
        return result

    def destroy(
        self, spec: DesiredPackageSpec, record: InstalledPackageRecord | None = None
    ) -> ApplyResult:
        """Stop blocking processes and uninstall.

        The installed version is removed when a matching record is known, so
        a spec with a lower floor than what is on disk still removes it.
        """
        if record is not None and record.version != spec.version:
            spec = dataclasses.replace(spec, version=record.version)
        installer = self.installer()
        killed = self._stop_processes(spec)
        output = installer.uninstall(spec)
        return ApplyResult(
            name=spec.name or "", action=Action.UNINSTALL, status=STATUS_SUCCESS,
            output=output, killed=killed,
        )

    def apply(
        self,
        spec: DesiredPackageSpec,
        result: ReconciliationResult,
        dry_run: bool = False,
    ) -> ApplyResult:
        """Carry out the required action for one spec.

        Failures are reported on the result rather than raised, so one
        failing package does not stop the others.
        """
        name = spec.name or ""
        action = result.required_action
        if action == Action.NONE:
            return ApplyResult(name=name, action=action, status=STATUS_UNCHANGED)
        if dry_run:
            return ApplyResult(name=name, action=action, status=STATUS_DRY_RUN)

        try:
            if action == Action.INSTALL:
                return self.create(spec)
            return self.destroy(spec, result.matched_record)
        except IbmPkgError as e:
            _logging.error(f"{name}: {action.value} failed: {e}")
            return ApplyResult(name=name, action=action, status=STATUS_FAILED, output=str(e))

    def apply_all(
        self, specs: list[DesiredPackageSpec], dry_run: bool = False
    ) -> list[ApplyResult]:
        fetched = self.prefetch(specs)
        return [
            self.apply(spec, fetched.results[spec.name or ""], dry_run=dry_run)
            for spec in specs
        ]


__all__ = [
    "ApplyResult",
    "PackageProvider",
    "STATUS_UNCHANGED",
    "STATUS_SUCCESS",
    "STATUS_FAILED",
    "STATUS_DRY_RUN",
]
