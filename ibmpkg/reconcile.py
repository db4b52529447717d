"""Reconciliation of desired package specs against registry records.

A spec's version is a floor, not a pin: if the target path has the
requested version or a newer one, the spec is satisfied. Upgrading is out
of scope, so a lower version at the target path is reported but never
uninstalled automatically.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .config import ENSURE_ABSENT, DesiredPackageSpec
from .errors import ConfigError
from .registry import InstalledPackageRecord, RegistryScan, RegistrySource, load_registry
from .versions import compare_versions, version_key

_logging = logging.getLogger(__name__)


class State(Enum):
    PRESENT = "present"
    ABSENT = "absent"


class Action(Enum):
    NONE = "none"
    INSTALL = "install"
    UNINSTALL = "uninstall"


@dataclass(frozen=True)
class ReconciliationResult:
    current_state: State
    required_action: Action
    matched_record: InstalledPackageRecord | None = None
    # Same package at the same path below the requested version
    lower_records: tuple[InstalledPackageRecord, ...] = ()

    @property
    def changes_needed(self) -> bool:
        return self.required_action != Action.NONE


def _normalize_path(path: str) -> str:
    return os.path.normpath(path)


RecordIndex = dict[tuple[str, str], list[InstalledPackageRecord]]


def index_records(records: Iterable[InstalledPackageRecord]) -> RecordIndex:
    """Group records by (package_id, install_path)."""
    index: RecordIndex = {}
    for record in records:
        key = (record.package_id, _normalize_path(record.install_path))
        index.setdefault(key, []).append(record)
    return index


def _reconcile_indexed(spec: DesiredPackageSpec, index: RecordIndex) -> ReconciliationResult:
    candidates: list[InstalledPackageRecord] = []
    if spec.package_id and spec.version and spec.target_path:
        candidates = index.get((spec.package_id, _normalize_path(spec.target_path)), [])

    minimum = spec.version or ""
    satisfying = [r for r in candidates if compare_versions(r.version, minimum) >= 0]
    lower = tuple(r for r in candidates if compare_versions(r.version, minimum) < 0)
    matched = max(satisfying, key=lambda r: version_key(r.version)) if satisfying else None

    if lower and matched is None:
        _logging.warning(
            f"{spec.name}: {', '.join(r.version for r in lower)} installed at "
            f"{spec.target_path} is older than {spec.version}; not upgrading"
        )

    state = State.PRESENT if matched else State.ABSENT
    if spec.ensure == ENSURE_ABSENT:
        action = Action.UNINSTALL if matched else Action.NONE
    else:
        action = Action.NONE if matched else Action.INSTALL

    _logging.debug(
        f"{spec.name}: state={state.value} action={action.value}"
        + (f" matched={matched.key}" if matched else "")
    )
    return ReconciliationResult(
        current_state=state,
        required_action=action,
        matched_record=matched,
        lower_records=lower,
    )


def reconcile(
    spec: DesiredPackageSpec, records: Iterable[InstalledPackageRecord]
) -> ReconciliationResult:
    """Decide the action needed to bring one spec to its desired state.

    A spec is present when a record has the same package id, the same
    target path, and a version equal to or greater than the spec's version.
    If several records qualify, the greatest version is matched.
    """
    return _reconcile_indexed(spec, index_records(records))


def reconcile_all(
    specs: Iterable[DesiredPackageSpec], records: Iterable[InstalledPackageRecord]
) -> dict[str, ReconciliationResult]:
    """Reconcile every spec against one set of records, keyed by spec name.

    Raises:
        ConfigError: If two specs share a name
    """
    index = index_records(records)
    results: dict[str, ReconciliationResult] = {}
    for spec in specs:
        name = spec.name or ""
        if name in results:
            raise ConfigError(f"duplicate package name '{name}'")
        results[name] = _reconcile_indexed(spec, index)
    return results


@dataclass
class Prefetch:
    """Registry read once for a batch of specs, with each spec's result."""
    scan: RegistryScan
    results: dict[str, ReconciliationResult] = field(default_factory=dict)

    @property
    def pending(self) -> list[str]:
        return [name for name, result in self.results.items() if result.changes_needed]


def prefetch(
    specs: Iterable[DesiredPackageSpec], source: RegistrySource | RegistryScan
) -> Prefetch:
    """Load the registry once and reconcile every spec against it."""
    scan = source if isinstance(source, RegistryScan) else load_registry(source)
    return Prefetch(scan=scan, results=reconcile_all(specs, scan.records))


def render_plan(specs: Iterable[DesiredPackageSpec], fetched: Prefetch) -> str:
    lines = ["Reconciliation Plan", ""]

    if fetched.scan.issues:
        lines.append("⚠️  Registry entries skipped:")
        for issue in fetched.scan.issues:
            lines.append(f"   • {issue}")
        lines.append("")

    icons = {Action.NONE: "✅", Action.INSTALL: "🟢", Action.UNINSTALL: "🔴"}
    lines.append("Packages:")
    for i, spec in enumerate(specs, 1):
        result = fetched.results[spec.name or ""]
        icon = icons[result.required_action]
        lines.append(
            f"  {i}. {icon} {spec.name}: {result.current_state.value}, "
            f"action: {result.required_action.value}"
        )
        if result.matched_record:
            lines.append(f"     installed: {result.matched_record.version}")
        for record in result.lower_records:
            lines.append(f"     ⚠️  older version installed: {record.version}")

    return "\n".join(lines)


__all__ = [
    "State",
    "Action",
    "ReconciliationResult",
    "Prefetch",
    "index_records",
    "reconcile",
    "reconcile_all",
    "prefetch",
    "render_plan",
]
