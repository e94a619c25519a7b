"""
Tests for the settings loader.
"""

from pathlib import Path

import pytest

from stackmatch.core.config.loader import CONFIG_ENV_VAR, Settings, config_path, load_settings
from stackmatch.core.errors import ConfigError, InvalidMappingError
from stackmatch.core.models.package import PackageManagerType


@pytest.fixture(autouse=True)
def _no_env_config(monkeypatch, tmp_path):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yml"
    path.write_text(text)
    return path


class TestLoadSettings:
    def test_defaults_without_file(self):
        settings = load_settings()
        assert settings.command_timeout == 600.0
        assert settings.sudo is False
        assert settings.package_manager is None
        assert settings.journal_path.name == "installations.json"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_env_var_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "nope.yml"))
        with pytest.raises(ConfigError):
            load_settings()

    def test_full_file(self, tmp_path):
        path = _write(tmp_path, """
journal_path: ~/journal.json
command_timeout: 30
sudo: true
package_manager: dnf
package_mappings:
  - name: ripgrep
    packages: {apt: ripgrep, winget: BurntSushi.ripgrep.MSVC}
""")
        settings = load_settings(path)
        assert settings.journal_path == Path.home() / "journal.json"
        assert settings.command_timeout == 30
        assert settings.sudo is True
        assert settings.package_manager == PackageManagerType.DNF
        assert settings.mapping_table().get_package_name("ripgrep", PackageManagerType.WINGET) == "BurntSushi.ripgrep.MSVC"

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "sudo: true\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_settings().sudo is True
        assert config_path() == (path, True)

    def test_empty_file(self, tmp_path):
        assert load_settings(_write(tmp_path, "")) == Settings()

    def test_bad_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(_write(tmp_path, "sudo: [unclosed\n"))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(_write(tmp_path, "- a\n- b\n"))

    @pytest.mark.parametrize("text", [
        "command_timeout: 0\n",
        "command_timeout: -5\n",
        "package_manager: emerge\n",
        "package_mappings: [{packages: {apt: x}}]\n",
    ])
    def test_invalid_values(self, tmp_path, text):
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings(_write(tmp_path, text))


class TestMappingTable:
    def test_includes_defaults(self):
        assert Settings().mapping_table().get_package_name("docker", PackageManagerType.APT) == "docker.io"

    def test_mapping_without_entries_is_rejected(self):
        settings = Settings.model_validate({"package_mappings": [{"name": "x"}]})
        with pytest.raises(InvalidMappingError):
            settings.mapping_table()

    def test_declared_duplicate_is_shadowed_with_warning(self, caplog):
        settings = Settings.model_validate({
            "package_mappings": [{"name": "NodeJS", "packages": {"apt": "nodejs-lts"}}],
        })
        with caplog.at_level("WARNING", logger="stackmatch.core.config.loader"):
            table = settings.mapping_table()

        assert table.get_package_name("nodejs", PackageManagerType.APT) == "nodejs"
        assert "shadowed" in caplog.text
        assert "NodeJS" in caplog.text

    def test_new_name_does_not_warn(self, caplog):
        settings = Settings.model_validate({
            "package_mappings": [{"name": "ripgrep", "packages": {"apt": "ripgrep"}}],
        })
        with caplog.at_level("WARNING", logger="stackmatch.core.config.loader"):
            settings.mapping_table()
        assert caplog.text == ""
