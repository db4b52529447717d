"""Desired-state configuration loading and validation."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import ConfigError

ENSURE_PRESENT = "present"
ENSURE_ABSENT = "absent"
ENSURE_VALUES = (ENSURE_PRESENT, ENSURE_ABSENT)

# Fields that together describe an install without a response file
FULL_FIELDS = ("package_id", "version", "repository_url", "target_path")


def make_key(package_id: str, version: str, path: str) -> str:
    """Return the identity of a package installed at a path."""
    return f"{package_id}_{version}_{path}"


@dataclass
class DesiredPackageSpec:
    """Desired state of one IBM package at one installation directory.

    Either ``response_file_path`` is set, or all of ``package_id``,
    ``version``, ``repository_url`` and ``target_path`` are. A response
    file spec may still carry ``package_id``, ``version`` and
    ``target_path`` so the registry can be checked for it.
    """
    package_id: str | None = None
    version: str | None = None
    target_path: str | None = None
    repository_url: str | None = None
    response_file_path: str | None = None
    extra_options: list[str] = field(default_factory=list)
    owner: str | None = None
    group: str | None = None
    installer_user: str | None = None
    ensure: str = ENSURE_PRESENT
    name: str | None = None

    def __post_init__(self):
        for field_name in FULL_FIELDS + (
            "response_file_path", "owner", "group", "installer_user", "name"
        ):
            value = getattr(self, field_name)
            if value is not None and (not isinstance(value, str) or not value):
                raise ValueError(f"{field_name} must be a non-empty string")

        if not isinstance(self.extra_options, list) or not all(
            isinstance(opt, str) for opt in self.extra_options
        ):
            raise ValueError("extra_options must be a list of strings")

        if self.ensure not in ENSURE_VALUES:
            raise ValueError(
                f"ensure must be one of {', '.join(ENSURE_VALUES)}, got '{self.ensure}'"
            )

        full = all(getattr(self, f) for f in FULL_FIELDS)
        if self.response_file_path and full:
            raise ValueError(
                "response_file_path cannot be combined with repository_url; "
                "the response file already names the repository"
            )
        if not self.response_file_path and not full:
            missing = [f for f in FULL_FIELDS if not getattr(self, f)]
            raise ValueError(
                f"{', '.join(missing)} required when no response_file_path is given"
            )

        if self.name is None:
            if self.package_id and self.version and self.target_path:
                self.name = make_key(self.package_id, self.version, self.target_path)
            else:
                self.name = self.response_file_path

    @property
    def uses_response_file(self) -> bool:
        return self.response_file_path is not None

    @property
    def is_identifiable(self) -> bool:
        """True when the spec can be matched against registry records."""
        return bool(self.package_id and self.version and self.target_path)

    @property
    def manage_ownership(self) -> bool:
        return bool(self.owner or self.group)


@dataclass
class Config:
    """Root configuration: registry location, imcl location and packages."""
    packages: list[DesiredPackageSpec] = field(default_factory=list)
    registry: str | None = None
    imcl_path: str | None = None

    def __post_init__(self):
        if not isinstance(self.packages, list):
            raise ValueError("packages must be a list")
        for i, spec in enumerate(self.packages):
            if not isinstance(spec, DesiredPackageSpec):
                raise ValueError(f"packages[{i}] must be a DesiredPackageSpec instance")

    def find(self, name: str) -> DesiredPackageSpec | None:
        return next((p for p in self.packages if p.name == name), None)


_SPEC_STRING_FIELDS = FULL_FIELDS + (
    "response_file_path", "owner", "group", "installer_user", "ensure", "name"
)


def validate_config(data: dict) -> Config:
    """Validate and convert a raw dict to a Config dataclass.

    Args:
        data: Raw dict from yaml.safe_load()

    Returns:
        Config object with validated DesiredPackageSpec instances

    Raises:
        ConfigError: If validation fails, naming the offending field path
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping, got {type(data).__name__}")

    if "packages" not in data:
        raise ConfigError("Missing required field: packages")

    for key in ("registry", "imcl_path"):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise ConfigError(
                f"{key} must be a string or null, got {type(value).__name__}"
            )

    packages_data = data["packages"]
    if not isinstance(packages_data, list):
        raise ConfigError(
            f"packages must be a list, got {type(packages_data).__name__}"
        )

    packages = []
    seen_names = set()
    for i, pkg in enumerate(packages_data):
        if not isinstance(pkg, dict):
            raise ConfigError(
                f"packages[{i}] must be a mapping, got {type(pkg).__name__}"
            )

        unknown = sorted(set(pkg) - set(_SPEC_STRING_FIELDS) - {"extra_options"})
        if unknown:
            raise ConfigError(f"packages[{i}] has unknown field(s): {', '.join(unknown)}")

        for field_name in _SPEC_STRING_FIELDS:
            value = pkg.get(field_name)
            if value is None:
                continue
            # YAML reads 1.10 as the float 1.1; the original text is gone
            if field_name == "version" and not isinstance(value, str):
                raise ConfigError(
                    f"packages[{i}].version must be a quoted string, "
                    f"got {type(value).__name__} {value!r}"
                )
            if not isinstance(value, str):
                raise ConfigError(
                    f"packages[{i}].{field_name} must be a string, "
                    f"got {type(value).__name__}"
                )

        options = pkg.get("extra_options") or []
        if not isinstance(options, list):
            raise ConfigError(
                f"packages[{i}].extra_options must be a list, "
                f"got {type(options).__name__}"
            )

        try:
            spec = DesiredPackageSpec(
                package_id=pkg.get("package_id"),
                version=pkg.get("version"),
                target_path=pkg.get("target_path"),
                repository_url=pkg.get("repository_url"),
                response_file_path=pkg.get("response_file_path"),
                extra_options=[str(opt) for opt in options],
                owner=pkg.get("owner"),
                group=pkg.get("group"),
                installer_user=pkg.get("installer_user"),
                ensure=pkg.get("ensure") or ENSURE_PRESENT,
                name=pkg.get("name"),
            )
        except ValueError as e:
            raise ConfigError(f"packages[{i}]: {e}")

        if spec.name in seen_names:
            raise ConfigError(f"packages[{i}]: duplicate package name '{spec.name}'")
        seen_names.add(spec.name)
        packages.append(spec)

    return Config(
        packages=packages,
        registry=data.get("registry"),
        imcl_path=data.get("imcl_path"),
    )


def _format_syntax_error(error: yaml.YAMLError) -> str:
    mark = getattr(error, "problem_mark", None)
    problem = getattr(error, "problem", None) or str(error)
    if mark is None:
        return f"Config syntax error: {problem}"
    return (
        f"Config syntax error at line {mark.line + 1}, col {mark.column + 1}: {problem}"
    )


def load_config(path_or_text: Path | str) -> Config:
    """Load and validate a YAML desired-state config.

    Args:
        path_or_text: Either a Path to a YAML file, or a string containing YAML

    Returns:
        Validated Config

    Raises:
        ConfigError: If the file cannot be read, has syntax errors or
            fails validation.
        TypeError: If path_or_text is neither Path nor str.
    """
    if isinstance(path_or_text, Path):
        try:
            text = path_or_text.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {path_or_text}")
        except PermissionError:
            raise ConfigError(f"Permission denied reading config file: {path_or_text}")
        except UnicodeDecodeError:
            raise ConfigError(f"Config file is not valid UTF-8: {path_or_text}")
        except OSError as e:
            raise ConfigError(f"Error reading config file {path_or_text}: {e}")
    elif isinstance(path_or_text, str):
        text = path_or_text
    else:
        raise TypeError(
            f"path_or_text must be Path or str, got {type(path_or_text).__name__}"
        )

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(_format_syntax_error(e)) from e

    return validate_config(data)


__all__ = [
    "ENSURE_PRESENT",
    "ENSURE_ABSENT",
    "DesiredPackageSpec",
    "Config",
    "make_key",
    "validate_config",
    "load_config",
]
