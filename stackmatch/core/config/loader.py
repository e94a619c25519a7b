"""
Configuration loader: reads the stackmatch settings file.

Settings live in a YAML file (``~/.config/stackmatch/config.yml`` by
default). The file is optional; every key has a default::

    journal_path: ~/.stackmatch/installations.json
    command_timeout: 600
    sudo: true
    package_manager: apt          # skip detection
    package_mappings:
      - name: ripgrep
        packages: {apt: ripgrep, homebrew: ripgrep, winget: BurntSushi.ripgrep.MSVC}
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from stackmatch.core.errors import ConfigError
from stackmatch.core.models.package import PackageManagerType
from stackmatch.core.persistence.journal_file import default_journal_path
from stackmatch.core.services.installer.data.mappings import PackageMapping, PackageMappingTable

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "STACKMATCH_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/stackmatch/config.yml")


class Settings(BaseModel):
    """Runtime settings, passed explicitly to the components that need them."""

    journal_path: Path = Field(default_factory=default_journal_path)
    command_timeout: float | None = 600.0
    sudo: bool = False
    package_manager: PackageManagerType | None = None
    package_mappings: list[PackageMapping] = Field(default_factory=list)

    @field_validator("journal_path")
    @classmethod
    def _expand_user(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("command_timeout")
    @classmethod
    def _positive_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("command_timeout must be positive")
        return v

    def mapping_table(self) -> PackageMappingTable:
        """Default mappings plus the ones declared in the settings file.

        Declared mappings are appended after the defaults and lookups
        take the first match, so a declared name that is already in the
        table (e.g. ``nodejs``) has no effect and is reported as a warning.

        Raises:
            InvalidMappingError: A declared mapping has no name or no entries.
        """
        table = PackageMappingTable()
        for mapping in self.package_mappings:
            known = {m.name.lower() for m in table.all_mappings()}
            if mapping.name.lower() in known:
                logger.warning(
                    "Package mapping %r from settings is shadowed by an earlier mapping and ignored",
                    mapping.name,
                )
            table.add_package_mapping(mapping)
        return table


def config_path(path: Path | None = None) -> tuple[Path, bool]:
    """Settings file to read and whether it was asked for explicitly."""
    if path is not None:
        return Path(path), True
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env), True
    return DEFAULT_CONFIG_PATH.expanduser(), False


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit settings file. Falls back to ``$STACKMATCH_CONFIG``,
            then the default location.

    Returns:
        Validated Settings. Defaults when the default file does not exist.

    Raises:
        ConfigError: Explicitly requested file missing, unreadable YAML,
            or values that fail validation.
    """
    path, explicit = config_path(path)

    if not path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        logger.debug("No settings file at %s, using defaults", path)
        return Settings()

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.info(
        "Loaded settings from %s (%d extra mappings)", path, len(settings.package_mappings)
    )
    return settings
