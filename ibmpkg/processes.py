"""Stopping processes that would block an install.

Installation Manager refuses to touch a target while anything holds files
open in it, and won't stop those processes for you. There's no clear way to
say "stop everything that matters", so we look for every process whose
command line mentions the target directory and kill it.
"""

import logging
import os
from dataclasses import dataclass
from typing import Collection, Protocol

from .errors import ProcessTerminationFailed
from .execution import CommandResult, run_command

PS_COMMAND = ["ps", "-ef"]
KILL_COMMAND = "kill"

_logging = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessEntry:
    pid: int
    command_line: str


def parse_process_table(text: str) -> list[ProcessEntry]:
    """Parse a ``ps -ef`` style listing into process entries.

    Each line is whitespace separated; the second field is the pid and the
    text after it is kept as the command line. Lines whose second field is
    not a number (the header) are skipped.

    Examples:
        >>> parse_process_table("root  42  1  0 10:00 ?  00:00:01 /opt/App/bin/java")
        [ProcessEntry(pid=42, command_line='1  0 10:00 ?  00:00:01 /opt/App/bin/java')]
    """
    entries = []
    for line in text.splitlines():
        fields = line.strip().split(None, 2)
        if len(fields) < 2 or not fields[1].isdigit():
            continue
        entries.append(
            ProcessEntry(pid=int(fields[1]), command_line=fields[2] if len(fields) > 2 else "")
        )
    return entries


def find_blocking_processes(
    entries: list[ProcessEntry], target_path: str, exclude: Collection[int] = ()
) -> list[int]:
    """Return pids whose command line contains ``target_path``, minus ``exclude``."""
    return [
        entry.pid for entry in entries
        if target_path in entry.command_line and entry.pid not in exclude
    ]


class ProcessLister(Protocol):
    def snapshot(self) -> CommandResult: ...


class SignalSender(Protocol):
    def terminate(self, pids: list[int]) -> CommandResult: ...


class PsProcessLister:
    """Captures the process table with ``ps -ef``."""

    def __init__(self, command: list[str] | None = None):
        self.command = command or PS_COMMAND

    def snapshot(self) -> CommandResult:
        return run_command(self.command)


class KillSignalSender:
    """Sends the default termination signal with ``kill``."""

    def terminate(self, pids: list[int]) -> CommandResult:
        return run_command([KILL_COMMAND] + [str(pid) for pid in pids])


def stop_blocking_processes(
    target_path: str, lister: ProcessLister, sender: SignalSender
) -> list[int]:
    """Kill every process whose command line references ``target_path``.

    Returns:
        The pids that were signalled (empty when nothing matched)

    Raises:
        ProcessTerminationFailed: If listing or signalling failed; carries
            the pids and the raw tool output
    """
    _logging.debug(f"Looking for processes that match {target_path}")
    listing = lister.snapshot()
    if not listing.ok:
        _logging.error(f"Process listing failed: {listing.output}")
        raise ProcessTerminationFailed(target_path, [], listing.output)

    entries = parse_process_table(listing.output)
    # Never signal ourselves or whatever launched us
    pids = find_blocking_processes(entries, target_path, {os.getpid(), os.getppid()})
    for entry in entries:
        if entry.pid in pids:
            _logging.debug(f"Process matched: {entry.pid} {entry.command_line}")

    if not pids:
        return []

    _logging.info(f"Killing PID(s) {' '.join(str(p) for p in pids)} using {target_path}")
    result = sender.terminate(pids)
    if not result.ok:
        _logging.error(f"kill failed for {pids}: {result.output}")
        raise ProcessTerminationFailed(target_path, pids, result.output)
    return pids


__all__ = [
    "ProcessEntry",
    "ProcessLister",
    "SignalSender",
    "PsProcessLister",
    "KillSignalSender",
    "parse_process_table",
    "find_blocking_processes",
    "stop_blocking_processes",
]
