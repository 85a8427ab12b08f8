"""CLI path policy.

This module centralizes the path decisions of the CLI: where OpenClaw keeps
its state on the host, where the workspace is, where generated artifacts go,
and how host paths map into the container. The core (tree builder, browser,
compiler) receives paths from here instead of looking them up itself.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

APP_DIR_NAME = ".openclaw"

WORKSPACE_ENV_VAR = "OPENCLAW_WORKSPACE_DIR"

# ===== CONTAINER SIDE =====

CONTAINER_HOME = "/home/node"
CONTAINER_APP_DIR = f"{CONTAINER_HOME}/{APP_DIR_NAME}"
CONTAINER_WORKSPACE = f"{CONTAINER_APP_DIR}/workspace"

# OpenClaw directories the gateway writes to at runtime
RUNTIME_DIRS = (
    "memory",
    "logs",
    "canvas",
    "media",
    "cron",
    "agents",
    "subagents",
    "telegram",
    "delivery-queue",
    "devices",
    "identity",
)

# ===== CLI STATE =====


def get_cli_home() -> Path:
    """Directory for clawignore's own settings and logs."""
    return Path.home() / ".config" / "clawignore"


# ===== HOST LAYOUT =====


@dataclass(frozen=True)
class OpenClawLayout:
    """Host-side locations of an OpenClaw installation.

    Attributes:
        home: Host home directory (replaced by CONTAINER_HOME in configs)
        root: OpenClaw state directory; generated artifacts are written here
        workspace: Agent workspace directory
    """

    home: Path
    root: Path
    workspace: Path

    @classmethod
    def default(cls, home: Path | None = None) -> OpenClawLayout:
        home = home or Path.home()
        root = home / APP_DIR_NAME
        return cls(home=home, root=root, workspace=root / "workspace")

    @classmethod
    def for_workspace(cls, workspace: Path, home: Path | None = None) -> OpenClawLayout:
        """Derive the layout from a discovered workspace (``<root>/workspace``)."""
        workspace = Path(workspace)
        root = workspace.parent if workspace.name == "workspace" else workspace
        return cls(home=home or Path.home(), root=root, workspace=workspace)

    @property
    def config_file(self) -> Path:
        return self.root / "openclaw.json"

    @property
    def docker_config_file(self) -> Path:
        return self.root / "openclaw.docker.json"

    @property
    def credentials_dir(self) -> Path:
        return self.root / "credentials"

    @property
    def ignore_file(self) -> Path:
        return self.root / ".clawignore"

    @property
    def compose_file(self) -> Path:
        return self.root / "docker-compose.yml"

    @property
    def env_file(self) -> Path:
        return self.root / ".env"

    @property
    def sessions_dir(self) -> Path:
        return self.root / "agents" / "main" / "sessions"


def discover_workspace(home: Path | None = None, environ: Mapping[str, str] | None = None) -> Path | None:
    """Find the OpenClaw workspace directory.

    Checks the conventional locations first and consults
    ``OPENCLAW_WORKSPACE_DIR`` only when none of them exist.

    Returns:
        The workspace path, or None if nothing was found
    """
    home = home or Path.home()
    environ = os.environ if environ is None else environ

    candidates = [
        home / "openclaw" / "workspace",
        home / APP_DIR_NAME / "workspace",
        home / "openclaw",
        home / APP_DIR_NAME,
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate

    override = environ.get(WORKSPACE_ENV_VAR)
    if override and Path(override).exists():
        return Path(override)

    return None


def find_compose_file(home: Path | None = None, cwd: Path | None = None) -> Path | None:
    """Locate an existing docker-compose file for OpenClaw."""
    home = home or Path.home()
    cwd = cwd or Path.cwd()

    candidates = []
    for base in (home / "openclaw", home / APP_DIR_NAME, cwd):
        candidates.append(base / "docker-compose.yml")
        candidates.append(base / "docker-compose.yaml")

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None
