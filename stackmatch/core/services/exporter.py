"""
Environment export/import: snapshot files and replay planning.

A snapshot is ``EnvironmentData`` as indented JSON. Replaying one
turns its tools and languages back into logical package names that
the orchestrator can install on another machine.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from stackmatch.core.errors import SnapshotError
from stackmatch.core.models.environment import EnvironmentData
from stackmatch.core.services.installer.domain.version import coerce_version
from stackmatch.core.services.scanner import INSTALLED

logger = logging.getLogger(__name__)

# Scanner display name → logical package name
LOGICAL_NAMES: dict[str, str] = {
    "Git": "git",
    "Docker": "docker",
    "yarn": "yarn",
    "pnpm": "pnpm",
    "Go": "golang",
    "Node.js": "nodejs",
    "Python": "python3",
    "Python 3": "python3",
}


def write_environment(data: EnvironmentData, path: Path) -> None:
    """Write a snapshot file, replacing any existing one.

    Raises:
        SnapshotError: The file could not be written.
    """
    content = json.dumps(data.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"Cannot write {path}: {e}") from e
    logger.info("Environment written to %s", path)


def read_environment(path: Path) -> EnvironmentData:
    """Read a snapshot file.

    Raises:
        SnapshotError: Missing file, invalid JSON, or not a snapshot.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"Cannot read {path}: {e}") from e

    try:
        return EnvironmentData.model_validate(json.loads(raw))
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Invalid JSON in {path}: {e}") from e
    except ValidationError as e:
        raise SnapshotError(f"Not an environment snapshot: {path}\n{e}") from e


def packages_from_environment(
    env: EnvironmentData,
    match_versions: bool = False,
) -> tuple[list[str], dict[str, str]]:
    """Logical packages to install to reproduce a snapshot.

    Package managers and editors are not replayed. With
    ``match_versions`` each package whose version was recorded is
    pinned to that exact version.

    Returns:
        (unversioned packages, {package: constraint}).
    """
    plain: list[str] = []
    versioned: dict[str, str] = {}
    seen: set[str] = set()

    for source in (env.configured_languages, env.tools):
        for display_name, version in source.items():
            pkg = LOGICAL_NAMES.get(display_name)
            if pkg is None:
                logger.debug("No package for scanned item %s, skipping", display_name)
                continue
            if pkg in seen:
                continue
            seen.add(pkg)

            if match_versions and version != INSTALLED and coerce_version(version):
                versioned[pkg] = version
            else:
                plain.append(pkg)

    return plain, versioned
