"""
Environment scanner: what is installed on this machine.

Read-only probes: each known executable is looked up on PATH and, if
present, asked for its version. Executables that exist but print
nothing parsable are recorded as ``"Installed"``.
"""

from __future__ import annotations

import logging
import os
import platform
import re
import socket
from pathlib import Path

from stackmatch import __version__
from stackmatch.adapters.shell.command import CommandRunner
from stackmatch.core.errors import CommandFailedError
from stackmatch.core.models.environment import EnvironmentData, SystemInfo

logger = logging.getLogger(__name__)

INSTALLED = "Installed"

# Probes are short; a hung --version must not stall the scan
_PROBE_TIMEOUT = 10.0

_VERSION = r"(\d+(?:\.\d+)+)"

# display name → (command, version regex)
Probe = tuple[list[str], str]

TOOL_PROBES: dict[str, Probe] = {
    "Git":    (["git", "--version"],    rf"git version {_VERSION}"),
    "Docker": (["docker", "--version"], rf"Docker version {_VERSION}"),
    "npm":    (["npm", "--version"],    _VERSION),
    "yarn":   (["yarn", "--version"],   _VERSION),
    "pnpm":   (["pnpm", "--version"],   _VERSION),
}

LANGUAGE_PROBES: dict[str, Probe] = {
    "Go":       (["go", "version"],          rf"go version go{_VERSION}"),
    "Node.js":  (["node", "--version"],      rf"v?{_VERSION}"),
    "Python":   (["python", "--version"],    rf"Python {_VERSION}"),
    "Python 3": (["python3", "--version"],   rf"Python {_VERSION}"),
}

EDITOR_PROBES: dict[str, Probe] = {
    "VS Code": (["code", "--version"], _VERSION),
}

_PIP_PROBES: dict[str, Probe] = {
    "pip":  (["pip", "--version"],  rf"pip {_VERSION}"),
    "pip3": (["pip3", "--version"], rf"pip {_VERSION}"),
}

PACKAGE_MANAGER_PROBES: dict[str, dict[str, Probe]] = {
    "darwin": {
        "Homebrew": (["brew", "--version"], rf"Homebrew {_VERSION}"),
    },
    "windows": {
        "Chocolatey": (["choco", "--version"], _VERSION),
        "Scoop":      (["scoop", "--version"], _VERSION),
        "Winget":     (["winget", "--version"], rf"v?{_VERSION}"),
    },
    "linux": {
        "apt-get": (["apt-get", "--version"], rf"apt {_VERSION}"),
        "dnf":     (["dnf", "--version"],     _VERSION),
        "yum":     (["yum", "--version"],     _VERSION),
        "pacman":  (["pacman", "--version"],  rf"Pacman v{_VERSION}"),
        "snap":    (["snap", "--version"],    rf"snap\s+{_VERSION}"),
    },
}

CONFIG_FILES: tuple[str, ...] = (
    ".gitconfig",
    ".npmrc",
    ".zshrc",
    ".bashrc",
    ".bash_profile",
    ".profile",
)

_ARCH_ALIASES = {"x86_64": "amd64", "amd64": "amd64", "aarch64": "arm64", "arm64": "arm64"}


def probe_version(runner: CommandRunner, cmd: list[str], pattern: str) -> str | None:
    """Version of an executable, ``INSTALLED`` if unparsable, None if absent."""
    if runner.which(cmd[0]) is None:
        return None

    try:
        output = runner.run(cmd, timeout=_PROBE_TIMEOUT).output
    except CommandFailedError as e:
        # Some tools exit non-zero for --version but still print it
        logger.debug("%s exited with an error: %s", " ".join(cmd), e)
        output = e.output

    match = re.search(pattern, output)
    return match.group(1) if match else INSTALLED


def _scan(runner: CommandRunner, probes: dict[str, Probe]) -> dict[str, str]:
    found: dict[str, str] = {}
    for name, (cmd, pattern) in probes.items():
        version = probe_version(runner, cmd, pattern)
        if version is not None:
            logger.info("Found %s %s", name, version)
            found[name] = version
    return found


def detect_system_info(os_name: str | None = None) -> SystemInfo:
    os_name = os_name or platform.system().lower()
    machine = platform.machine().lower()

    if os_name == "windows":
        shell = os.environ.get("COMSPEC", "cmd.exe")
    else:
        shell = os.environ.get("SHELL", "/bin/sh")

    return SystemInfo(
        os=os_name,
        arch=_ARCH_ALIASES.get(machine, machine),
        shell=shell,
        hostname=socket.gethostname(),
    )


def detect_config_files(home: Path | None = None) -> list[str]:
    """Well-known dotfiles present in the home directory."""
    home = home or Path.home()
    return [str(home / name) for name in CONFIG_FILES if (home / name).is_file()]


def scan_environment(
    runner: CommandRunner | None = None,
    *,
    os_name: str | None = None,
    home: Path | None = None,
) -> EnvironmentData:
    """Scan the machine into an ``EnvironmentData`` snapshot."""
    runner = runner or CommandRunner()
    system = detect_system_info(os_name)

    managers = dict(_PIP_PROBES)
    managers.update(PACKAGE_MANAGER_PROBES.get(system.os, PACKAGE_MANAGER_PROBES["linux"]))

    data = EnvironmentData(
        stackmatch_version=__version__,
        system=system,
        tools=_scan(runner, TOOL_PROBES),
        package_managers=_scan(runner, managers),
        code_editors=_scan(runner, EDITOR_PROBES),
        configured_languages=_scan(runner, LANGUAGE_PROBES),
        config_files=detect_config_files(home),
    )
    logger.info(
        "Scan complete: %d tools, %d languages, %d package managers",
        len(data.tools), len(data.configured_languages), len(data.package_managers),
    )
    return data
