"""Pytest fixtures and utilities for ibmpkg tests."""

import logging
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from ibmpkg.execution import CommandResult

SAMPLE_REGISTRY = """<?xml version='1.0' encoding='UTF-8'?>
<installInfo>
  <location id='IBM Installation Manager' kind='IM' path='/opt/IBM/InstallationManager/eclipse'>
    <package id='com.ibm.cic.agent' version='1.6.2000.20130301_2248'>
      <data>
        <property name='agent.sourceRepositoryLocation' value='/mnt/im/repo'/>
      </data>
    </package>
  </location>
  <location id='IBM WebSphere Application Server V8.5' path='/opt/IBM/WebSphere/AppServer'>
    <package id='com.ibm.websphere.ND.v85' version='8.5.5000.20130514_1044'>
      <data>
        <property name='agent.sourceRepositoryLocation' value='/vagrant/ibm/was'/>
      </data>
    </package>
    <package id='com.ibm.websphere.IBMJAVA.v70' version='7.0.4001.20130510_2103'>
      <data>
        <property name='agent.sourceRepositoryLocation' value='/vagrant/ibm/java'/>
      </data>
    </package>
  </location>
</installInfo>
"""

PS_OUTPUT = """UID        PID  PPID  C STIME TTY          TIME CMD
root         1     0  0 Jan01 ?        00:00:05 /sbin/init
wasadmin  4242     1  2 Jan01 ?        01:02:03 /opt/IBM/WebSphere/AppServer/java/bin/java -Dserver.root=/opt/IBM/WebSphere/AppServer
wasadmin  4300     1  0 Jan01 ?        00:00:10 /opt/IBM/WebSphere/AppServer/bin/nodeagent.sh
root      5000     1  0 Jan01 ?        00:00:01 /usr/sbin/sshd -D
"""


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop handlers setup_logging() bound to a CliRunner stream."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def registry_file(temp_dir: Path) -> Path:
    """Write the sample installed.xml and return its path."""
    path = temp_dir / "installed.xml"
    path.write_text(SAMPLE_REGISTRY, encoding="utf-8")
    return path


class FakeProcessLister:
    """Returns a canned process table."""

    def __init__(self, output: str = PS_OUTPUT, returncode: int = 0):
        self.result = CommandResult(output=output, returncode=returncode)
        self.calls = 0

    def snapshot(self) -> CommandResult:
        self.calls += 1
        return self.result


class FakeSignalSender:
    """Records the pids it was asked to kill."""

    def __init__(self, output: str = "", returncode: int = 0):
        self.result = CommandResult(output=output, returncode=returncode)
        self.killed: list[list[int]] = []

    def terminate(self, pids: list[int]) -> CommandResult:
        self.killed.append(list(pids))
        return self.result


class FakeInstallerRunner:
    """Records imcl invocations and returns a fixed result."""

    def __init__(self, output: str = "Installed.", returncode: int = 0):
        self.result = CommandResult(output=output, returncode=returncode)
        self.calls: list[tuple[list[str], str | None]] = []

    def run(self, args: list[str], user: str | None = None) -> CommandResult:
        self.calls.append((list(args), user))
        return self.result


class FakeOwnershipChanger:
    """Records ownership changes, optionally failing."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[str, str | None, str | None]] = []

    def change_owner(self, path: str, owner: str | None, group: str | None) -> None:
        self.calls.append((path, owner, group))
        if self.error:
            raise self.error


@pytest.fixture
def lister() -> FakeProcessLister:
    return FakeProcessLister()


@pytest.fixture
def sender() -> FakeSignalSender:
    return FakeSignalSender()


@pytest.fixture
def runner() -> FakeInstallerRunner:
    return FakeInstallerRunner()


@pytest.fixture
def ownership() -> FakeOwnershipChanger:
    return FakeOwnershipChanger()
