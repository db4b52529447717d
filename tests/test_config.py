"""Tests for desired-state configuration."""

import pytest

from ibmpkg.config import (
    Config,
    DesiredPackageSpec,
    load_config,
    validate_config,
)
from ibmpkg.errors import ConfigError


def _full(**overrides) -> dict:
    data = {
        "package_id": "com.ibm.websphere.ND.v85",
        "version": "8.5.5000.20130514_1044",
        "target_path": "/opt/IBM/WebSphere/AppServer",
        "repository_url": "/vagrant/ibm/was/repository.config",
    }
    data.update(overrides)
    return data


class TestDesiredPackageSpec:
    def test_full_fields(self):
        spec = DesiredPackageSpec(**_full())
        assert spec.name == (
            "com.ibm.websphere.ND.v85_8.5.5000.20130514_1044_/opt/IBM/WebSphere/AppServer"
        )
        assert spec.ensure == "present"
        assert not spec.uses_response_file
        assert spec.is_identifiable

    def test_response_file_only(self):
        spec = DesiredPackageSpec(response_file_path="/tmp/was.xml")
        assert spec.uses_response_file
        assert spec.name == "/tmp/was.xml"
        assert not spec.is_identifiable

    def test_response_file_with_identity_hints(self):
        spec = DesiredPackageSpec(
            response_file_path="/tmp/was.xml",
            package_id="com.ibm.websphere.ND.v85",
            version="8.5",
            target_path="/opt/was",
        )
        assert spec.is_identifiable

    def test_response_file_with_all_fields_rejected(self):
        with pytest.raises(ValueError, match="response_file_path cannot be combined"):
            DesiredPackageSpec(response_file_path="/tmp/was.xml", **_full())

    def test_missing_fields_listed(self):
        with pytest.raises(ValueError, match="repository_url, target_path required"):
            DesiredPackageSpec(package_id="p", version="1")

    def test_nothing_given(self):
        with pytest.raises(ValueError, match="required when no response_file_path"):
            DesiredPackageSpec()

    def test_empty_string_rejected(self):
        with pytest.raises(ValueError, match="owner must be a non-empty string"):
            DesiredPackageSpec(owner="", **_full())

    def test_bad_ensure(self):
        with pytest.raises(ValueError, match="ensure must be one of"):
            DesiredPackageSpec(ensure="latest", **_full())

    def test_extra_options_must_be_strings(self):
        with pytest.raises(ValueError, match="extra_options"):
            DesiredPackageSpec(extra_options=["-x", 3], **_full())  # type: ignore[list-item]

    def test_manage_ownership(self):
        assert not DesiredPackageSpec(**_full()).manage_ownership
        assert DesiredPackageSpec(group="was", **_full()).manage_ownership


class TestValidateConfig:
    def test_valid(self):
        config = validate_config(
            {
                "registry": "/tmp/installed.xml",
                "packages": [_full(name="was", extra_options=["-showVerboseProgress"])],
            }
        )
        assert isinstance(config, Config)
        assert config.registry == "/tmp/installed.xml"
        assert config.imcl_path is None
        assert config.find("was").extra_options == ["-showVerboseProgress"]
        assert config.find("nope") is None

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="Config must be a mapping"):
            validate_config(["packages"])  # type: ignore[arg-type]

    def test_packages_required(self):
        with pytest.raises(ConfigError, match="Missing required field: packages"):
            validate_config({})

    def test_error_names_index(self):
        with pytest.raises(ConfigError, match=r"packages\[1\]"):
            validate_config({"packages": [_full(), {"package_id": "x"}]})

    def test_non_string_field(self):
        with pytest.raises(ConfigError, match=r"packages\[0\].owner must be a string"):
            validate_config({"packages": [_full(owner=["root"])]})

    def test_unknown_field(self):
        with pytest.raises(ConfigError, match="unknown field"):
            validate_config({"packages": [_full(package="typo")]})

    def test_numeric_version_rejected(self):
        with pytest.raises(
            ConfigError, match=r"packages\[0\].version must be a quoted string"
        ):
            validate_config({"packages": [_full(version=8.5)]})

    def test_duplicate_names(self):
        with pytest.raises(ConfigError, match="duplicate package name"):
            validate_config({"packages": [_full(), _full()]})


class TestLoadConfig:
    def test_from_text(self):
        config = load_config(
            """
packages:
  - name: was85
    ensure: absent
    package_id: com.ibm.websphere.ND.v85
    version: 8.5.5000.20130514_1044
    target_path: /opt/IBM/WebSphere/AppServer
    repository_url: /vagrant/ibm/was/repository.config
"""
        )
        assert config.packages[0].name == "was85"
        assert config.packages[0].ensure == "absent"

    def test_unquoted_float_version_rejected(self):
        text = """
packages:
  - package_id: com.ibm.example
    version: 1.10
    target_path: /opt/IBM/Example
    repository_url: /repo
"""
        with pytest.raises(ConfigError, match="must be a quoted string") as exc_info:
            load_config(text)
        assert "1.1" in str(exc_info.value)

    def test_quoted_version_kept_verbatim(self):
        text = """
packages:
  - package_id: com.ibm.example
    version: "1.10"
    target_path: /opt/IBM/Example
    repository_url: /repo
"""
        assert load_config(text).packages[0].version == "1.10"

    def test_from_path(self, temp_dir):
        path = temp_dir / "packages.yaml"
        path.write_text("packages: []\nimcl_path: /opt/imcl\n", encoding="utf-8")
        config = load_config(path)
        assert config.packages == []
        assert config.imcl_path == "/opt/imcl"

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config(temp_dir / "nope.yaml")

    def test_syntax_error_has_position(self):
        with pytest.raises(ConfigError, match=r"line \d+, col \d+"):
            load_config("packages: [\n  - a: b\n")

    def test_bad_type(self):
        with pytest.raises(TypeError):
            load_config(42)  # type: ignore[arg-type]
