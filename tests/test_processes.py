"""Tests for stopping processes that block an install."""

from unittest.mock import patch

import pytest

from ibmpkg.errors import ProcessTerminationFailed
from ibmpkg.execution import CommandResult
from ibmpkg.processes import (
    KillSignalSender,
    ProcessEntry,
    PsProcessLister,
    find_blocking_processes,
    parse_process_table,
    stop_blocking_processes,
)

from .conftest import PS_OUTPUT, FakeProcessLister, FakeSignalSender


class TestParseProcessTable:
    def test_skips_header(self):
        entries = parse_process_table(PS_OUTPUT)
        assert [e.pid for e in entries] == [1, 4242, 4300, 5000]

    def test_keeps_command_text(self):
        entries = parse_process_table(PS_OUTPUT)
        assert "/opt/IBM/WebSphere/AppServer/bin/nodeagent.sh" in entries[2].command_line

    def test_blank_and_short_lines(self):
        assert parse_process_table("\n   \nroot\n") == []

    def test_pid_only(self):
        assert parse_process_table("root 12") == [ProcessEntry(pid=12, command_line="")]


def test_find_blocking_processes():
    entries = parse_process_table(PS_OUTPUT)
    assert find_blocking_processes(entries, "/opt/IBM/WebSphere/AppServer") == [4242, 4300]
    assert find_blocking_processes(entries, "/opt/App") == []


def test_find_blocking_processes_excludes_pids():
    entries = parse_process_table(PS_OUTPUT)
    assert find_blocking_processes(entries, "/opt/IBM/WebSphere/AppServer", {4300}) == [4242]


class TestStopBlockingProcesses:
    def test_kills_matches_in_one_batch(self, lister, sender):
        pids = stop_blocking_processes("/opt/IBM/WebSphere/AppServer", lister, sender)

        assert pids == [4242, 4300]
        assert sender.killed == [[4242, 4300]]

    def test_skips_own_process_and_parent(self, lister, sender):
        with patch("ibmpkg.processes.os.getpid", return_value=4300), patch(
            "ibmpkg.processes.os.getppid", return_value=4242
        ):
            pids = stop_blocking_processes("/opt/IBM/WebSphere/AppServer", lister, sender)

        assert pids == []
        assert sender.killed == []

    def test_no_match_is_success(self, lister, sender):
        assert stop_blocking_processes("/opt/App", lister, sender) == []
        assert sender.killed == []

    def test_path_with_regex_characters(self, sender):
        lister = FakeProcessLister("u 77 1 0 0 ? 0 /opt/app+1.0/bin/run\n")
        assert stop_blocking_processes("/opt/app+1.0", lister, sender) == [77]

    def test_kill_failure(self, lister):
        sender = FakeSignalSender(output="kill: (4242) - Operation not permitted", returncode=1)

        with pytest.raises(ProcessTerminationFailed) as exc_info:
            stop_blocking_processes("/opt/IBM/WebSphere/AppServer", lister, sender)

        error = exc_info.value
        assert error.pids == [4242, 4300]
        assert error.output == "kill: (4242) - Operation not permitted"
        assert "Operation not permitted" in str(error)

    def test_listing_failure(self, sender):
        lister = FakeProcessLister(output="ps: not found", returncode=127)

        with pytest.raises(ProcessTerminationFailed, match="could not list processes"):
            stop_blocking_processes("/opt/App", lister, sender)
        assert sender.killed == []


class TestAdapters:
    def test_ps_lister(self):
        with patch(
            "ibmpkg.processes.run_command", return_value=CommandResult("out", 0)
        ) as run:
            assert PsProcessLister().snapshot().output == "out"
        run.assert_called_once_with(["ps", "-ef"])

    def test_kill_sender(self):
        with patch(
            "ibmpkg.processes.run_command", return_value=CommandResult("", 0)
        ) as run:
            KillSignalSender().terminate([10, 20])
        run.assert_called_once_with(["kill", "10", "20"])
