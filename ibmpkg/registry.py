"""Reader for the IBM Installation Manager registry (installed.xml).

Installation Manager keeps an XML file listing every installed package,
its location, and the repository it came from. That file is much more
useful than querying ``imcl`` (and faster), so it is the source of truth
for what is installed:

    <installInfo>
      <location id='IBM Installation Manager' path='/opt/IBM/InstallationManager/eclipse'>
        <package id='com.ibm.cic.agent' version='1.6.2000.20130301_2248'>
          <data>
            <property name='agent.sourceRepositoryLocation' value='/mnt/im'/>
          </data>
        </package>
      </location>
    </installInfo>

A single Installation Manager may hold the exact same package and version
at several locations, so a record's identity includes its path.
"""

import logging
import os
import xml.etree.ElementTree as ET
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator, Union

from .config import make_key
from .errors import InstallerToolNotFound, RegistryMalformed, RegistryUnavailable

INSTALLATION_MANAGER_ID = "IBM Installation Manager"
IMCL_RELATIVE_PATH = os.path.join("tools", "imcl")
REPOSITORY_PROPERTY = "agent.sourceRepositoryLocation"
REPOSITORY_CONFIG = "repository.config"

_logging = logging.getLogger(__name__)

RegistrySource = Union[str, Path, BinaryIO]


@dataclass(frozen=True)
class InstalledPackageRecord:
    product_name: str
    install_path: str
    package_id: str
    version: str
    repository_url: str

    @property
    def key(self) -> str:
        return make_key(self.package_id, self.version, self.install_path)


@dataclass(frozen=True)
class RegistryIssue:
    """A registry entry that could not be turned into a record."""
    location: str | None
    message: str
    key: str | None = None

    def to_error(self) -> RegistryMalformed:
        return RegistryMalformed(self.message, key=self.key)

    def __str__(self) -> str:
        where = self.key or self.location or "registry"
        return f"{where}: {self.message}"


@dataclass
class RegistryScan:
    """Result of one registry read: the well-formed records plus issues."""
    records: list[InstalledPackageRecord] = field(default_factory=list)
    issues: list[RegistryIssue] = field(default_factory=list)
    locations: dict[str, str] = field(default_factory=dict)
    source: str | None = None

    def __iter__(self) -> Iterator[InstalledPackageRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


@contextmanager
def open_registry(path: str | Path) -> Iterator[BinaryIO]:
    """Open the registry file, translating I/O failures to RegistryUnavailable."""
    try:
        handle = open(path, "rb")
    except OSError as e:
        raise RegistryUnavailable(str(path), e.strerror or str(e)) from e
    try:
        yield handle
    finally:
        handle.close()


def _source_name(source: RegistrySource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", "<stream>")


def _parse_tree(source: RegistrySource) -> ET.Element:
    name = _source_name(source)
    if isinstance(source, (str, Path)):
        with open_registry(source) as handle:
            return _parse_tree(handle)

    try:
        root = ET.parse(source).getroot()
    except ET.ParseError as e:
        raise RegistryMalformed(f"registry '{name}' is not valid XML: {e}") from e
    except OSError as e:
        raise RegistryUnavailable(name, e.strerror or str(e)) from e

    if root.tag != "installInfo":
        raise RegistryMalformed(
            f"registry '{name}' root element is '{root.tag}', expected 'installInfo'"
        )
    return root


def _repository_base(package: ET.Element) -> str | None:
    for element in package.iter():
        if element.get("name") == REPOSITORY_PROPERTY:
            return element.get("value") or None
    return None


def _parse_package(
    package: ET.Element, product_name: str, path: str
) -> InstalledPackageRecord:
    package_id = package.get("id")
    version = package.get("version")
    if not package_id or not version:
        missing = "id" if not package_id else "version"
        raise RegistryMalformed(
            f"package in location '{product_name}' has no '{missing}' attribute"
        )

    key = make_key(package_id, version, path)
    repository = _repository_base(package)
    if repository is None:
        raise RegistryMalformed(f"package has no {REPOSITORY_PROPERTY} entry", key=key)

    return InstalledPackageRecord(
        product_name=product_name,
        install_path=path,
        package_id=package_id,
        version=version,
        repository_url=f"{repository}/{REPOSITORY_CONFIG}",
    )


def load_registry(source: RegistrySource) -> RegistryScan:
    """Parse the registry into installed-package records.

    Args:
        source: Path to installed.xml, or a binary stream with its contents

    Returns:
        RegistryScan with one record per well-formed ``package`` element and
        one issue per malformed location or package

    Raises:
        RegistryUnavailable: If the source cannot be opened or read
        RegistryMalformed: If the document is not an installInfo registry
    """
    root = _parse_tree(source)
    scan = RegistryScan(source=_source_name(source))

    for location in root.findall("location"):
        product_name = location.get("id")
        path = location.get("path")
        if not product_name or not path:
            scan.issues.append(
                RegistryIssue(
                    location=product_name or path,
                    message="location is missing its 'id' or 'path' attribute",
                )
            )
            continue
        scan.locations[product_name] = path

        for package in location.findall("package"):
            try:
                scan.records.append(_parse_package(package, product_name, path))
            except RegistryMalformed as e:
                _logging.warning(f"Skipping malformed registry entry: {e}")
                scan.issues.append(
                    RegistryIssue(location=product_name, message=str(e), key=e.key)
                )

    _logging.debug(
        f"Loaded {len(scan.records)} package(s) from {scan.source} "
        f"({len(scan.issues)} issue(s))"
    )
    return scan


def locate_installer_tool(
    source: RegistrySource | RegistryScan, explicit_path: str | None = None
) -> str:
    """Return the path to imcl.

    imcl is rarely on PATH. An explicit path always wins; otherwise the
    Installation Manager's own location in the registry is used.

    Raises:
        InstallerToolNotFound: If no explicit path was given and the registry
            has no Installation Manager location
    """
    if explicit_path:
        return explicit_path

    if isinstance(source, RegistryScan):
        locations = source.locations
    else:
        locations = load_registry(source).locations

    im_path = locations.get(INSTALLATION_MANAGER_ID)
    if not im_path:
        raise InstallerToolNotFound(
            f"no '{INSTALLATION_MANAGER_ID}' location in the registry"
        )
    return os.path.join(im_path, IMCL_RELATIVE_PATH)


__all__ = [
    "INSTALLATION_MANAGER_ID",
    "InstalledPackageRecord",
    "RegistryIssue",
    "RegistryScan",
    "open_registry",
    "load_registry",
    "locate_installer_tool",
]
