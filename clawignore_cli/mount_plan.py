"""Compiler that turns a selection into a Docker mount plan.

The plan lists which host directories are bind-mounted into the OpenClaw
container, the environment the gateway needs, the ignore list, and the
OpenClaw config rewritten for container paths. Baseline mounts (config,
credentials, runtime state, ignore file, workspace root) always come first.

``compile_mount_plan`` only reads; ``write_mount_plan`` renders and writes
the artifacts into the OpenClaw root.
"""

from __future__ import annotations

import json
import logging
import os
import re
import secrets
import stat
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigReadError
from .ignore_file import IgnoreList
from .ignore_file import write_ignore_file
from .paths import APP_DIR_NAME
from .paths import CONTAINER_APP_DIR
from .paths import CONTAINER_HOME
from .paths import CONTAINER_WORKSPACE
from .paths import RUNTIME_DIRS
from .paths import OpenClawLayout
from .selection import is_covered
from .selection import path_segments
from .settings import DockerSettings
from .utils.fs import atomic_write_text

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32

GATEWAY_CONTAINER_PORT = 18789
BRIDGE_CONTAINER_PORT = 18790

COMPOSE_HEADER = """# Generated by clawignore
#
# Only folders NOT in .clawignore are mounted.
# To update, run: clawignore setup

"""

ENV_HEADER = """# Generated by clawignore
# OpenClaw Docker configuration

"""

MINIMAL_CONFIG: dict[str, Any] = {"agents": {"defaults": {"workspace": CONTAINER_WORKSPACE}}}

_TOKEN_LINE = re.compile(r"^OPENCLAW_GATEWAY_TOKEN=(.+)$", re.MULTILINE)


@dataclass(frozen=True)
class VolumeMount:
    """One bind mount, rendered as ``host:container[:ro]``."""

    host: str
    container: str
    read_only: bool = False

    def render(self) -> str:
        suffix = ":ro" if self.read_only else ""
        return f"{self.host}:{self.container}{suffix}"


@dataclass(frozen=True)
class SkippedMount:
    """A candidate path that was not mounted, and why."""

    path: str
    reason: str


@dataclass(frozen=True)
class MountPlan:
    """Everything needed to write the Docker artifacts.

    Attributes:
        volume_mounts: Baseline mounts followed by user directories
        environment: ``.env`` variables, in file order
        ignore_list: Denied paths as written to ``.clawignore``
        rewritten_config: OpenClaw config with host home paths replaced
        paths_to_mount: Host directories mounted into the workspace
        skipped: Candidates dropped after the denied filter
        gateway_token: 64 hex characters
        config_fallback_reason: Set when an unparsable config was replaced
            by the minimal default
    """

    volume_mounts: tuple[VolumeMount, ...]
    environment: dict[str, str]
    ignore_list: IgnoreList
    rewritten_config: str
    paths_to_mount: tuple[str, ...]
    gateway_token: str
    skipped: tuple[SkippedMount, ...] = ()
    config_fallback_reason: str | None = None
    denied_paths: tuple[str, ...] = ()

    @property
    def volume_specs(self) -> list[str]:
        return [mount.render() for mount in self.volume_mounts]


@dataclass(frozen=True)
class WrittenArtifacts:
    compose_file: Path
    env_file: Path
    ignore_file: Path
    docker_config_file: Path

    def all(self) -> list[Path]:
        return [self.compose_file, self.env_file, self.ignore_file, self.docker_config_file]


def generate_token() -> str:
    """Random gateway token: 64 lowercase hex characters."""
    return secrets.token_hex(TOKEN_BYTES)


def filter_denied(all_paths: Iterable[str], denied_paths: Iterable[str]) -> list[str]:
    """Paths not equal to or below any denied path, in input order, without duplicates."""
    denied = list(denied_paths)
    seen: set[tuple[str, ...]] = set()
    result = []
    for path in all_paths:
        segments = path_segments(path)
        if segments in seen:
            continue
        seen.add(segments)
        if not is_covered(path, denied):
            result.append(path)
    return result


def baseline_mounts(layout: OpenClawLayout) -> list[VolumeMount]:
    """Mounts every OpenClaw container needs, independent of the selection."""
    root = layout.root
    mounts = [
        VolumeMount(str(layout.docker_config_file), f"{CONTAINER_APP_DIR}/openclaw.json", read_only=True),
        VolumeMount(str(layout.credentials_dir), f"{CONTAINER_APP_DIR}/credentials", read_only=True),
    ]
    for name in RUNTIME_DIRS:
        mounts.append(VolumeMount(str(root / name), f"{CONTAINER_APP_DIR}/{name}"))
    mounts.append(VolumeMount(str(layout.ignore_file), f"{CONTAINER_APP_DIR}/.clawignore", read_only=True))
    mounts.append(VolumeMount(str(layout.workspace), CONTAINER_WORKSPACE))
    return mounts


def workspace_mounts(candidates: Iterable[str]) -> tuple[list[VolumeMount], list[SkippedMount]]:
    """Mount each candidate directory at ``workspace/<basename>``.

    Only directories are mounted; files cannot be overlaid on the workspace
    mount by every Docker file sharing backend.
    """
    mounts: list[VolumeMount] = []
    skipped: list[SkippedMount] = []
    taken: dict[str, str] = {}

    for source in candidates:
        name = os.path.basename(os.path.normpath(source))

        if name == APP_DIR_NAME:
            skipped.append(SkippedMount(source, "OpenClaw state directory is mounted separately"))
            continue

        try:
            mode = os.stat(source).st_mode
        except FileNotFoundError:
            skipped.append(SkippedMount(source, "does not exist"))
            continue
        except OSError as e:
            skipped.append(SkippedMount(source, f"cannot stat: {e}"))
            continue
        if not stat.S_ISDIR(mode):
            skipped.append(SkippedMount(source, "not a directory"))
            continue

        container = f"{CONTAINER_WORKSPACE}/{name}"
        if container in taken:
            skipped.append(SkippedMount(source, f"container path {container} already used by {taken[container]}"))
            continue

        taken[container] = source
        mounts.append(VolumeMount(source, container))

    return mounts, skipped


def rewrite_config(layout: OpenClawLayout, *, strict: bool = False) -> tuple[str, str | None]:
    """Read ``openclaw.json`` and replace the host home path with the container home.

    Returns:
        (config text, fallback reason or None)

    Raises:
        ConfigReadError: If ``strict`` and the file exists but is not valid JSON
    """
    minimal = json.dumps(MINIMAL_CONFIG, indent=2) + "\n"
    path = layout.config_file

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info(f"No OpenClaw config at {path}, using minimal config")
        return minimal, None
    except (OSError, UnicodeDecodeError) as e:
        if strict:
            raise ConfigReadError(path, str(e)) from e
        logger.warning(f"Could not read {path}, using minimal config: {e}")
        return minimal, f"unreadable: {e}"

    try:
        json.loads(content)
    except json.JSONDecodeError as e:
        if strict:
            raise ConfigReadError(path, str(e)) from e
        logger.warning(f"Invalid JSON in {path}, using minimal config: {e}")
        return minimal, f"invalid JSON: {e}"

    return content.replace(str(layout.home), CONTAINER_HOME), None


def build_environment(layout: OpenClawLayout, token: str, docker: DockerSettings) -> dict[str, str]:
    return {
        "OPENCLAW_CONFIG_DIR": str(layout.root),
        "OPENCLAW_WORKSPACE_DIR": str(layout.workspace),
        "OPENCLAW_GATEWAY_PORT": str(docker.gateway_port),
        "OPENCLAW_BRIDGE_PORT": str(docker.bridge_port),
        "OPENCLAW_GATEWAY_BIND": docker.gateway_bind,
        "OPENCLAW_GATEWAY_TOKEN": token,
    }


def compile_mount_plan(
    all_paths: Iterable[str],
    denied_paths: Iterable[str],
    layout: OpenClawLayout,
    *,
    gateway_token: str | None = None,
    strict_config: bool = False,
    docker: DockerSettings | None = None,
) -> MountPlan:
    """Compile the selection into a mount plan.

    Args:
        all_paths: Candidate top-level paths (browser ``all_paths``)
        denied_paths: Paths the user hid (browser ``denied_paths``)
        layout: Host layout of the OpenClaw installation
        gateway_token: Reuse this token instead of generating one; with a
            fixed token the plan is the same on every run
        strict_config: Raise instead of falling back on a broken config
        docker: Port and bind settings for the environment

    Returns:
        MountPlan

    Raises:
        ConfigReadError: Only when ``strict_config`` is set
    """
    docker = docker or DockerSettings()
    denied = list(denied_paths)
    token = gateway_token or generate_token()

    candidates = filter_denied(all_paths, denied)
    user_mounts, skipped = workspace_mounts(candidates)
    for skip in skipped:
        logger.info(f"Not mounting {skip.path}: {skip.reason}")

    rewritten, fallback_reason = rewrite_config(layout, strict=strict_config)

    plan = MountPlan(
        volume_mounts=tuple(baseline_mounts(layout) + user_mounts),
        environment=build_environment(layout, token, docker),
        ignore_list=IgnoreList.of(denied),
        rewritten_config=rewritten,
        paths_to_mount=tuple(mount.host for mount in user_mounts),
        gateway_token=token,
        skipped=tuple(skipped),
        config_fallback_reason=fallback_reason,
        denied_paths=tuple(denied),
    )
    logger.info(
        f"Compiled mount plan: {len(plan.paths_to_mount)} directories mounted, "
        f"{len(plan.ignore_list)} denied, {len(plan.skipped)} skipped"
    )
    return plan


def _service(docker: DockerSettings, name: str, volumes: list[str], environment: dict[str, str]) -> dict[str, Any]:
    return {
        "image": docker.image,
        "container_name": name,
        "environment": environment,
        "volumes": volumes,
    }


def render_compose(plan: MountPlan, docker: DockerSettings | None = None) -> str:
    """Render ``docker-compose.yml`` with the gateway and CLI services."""
    docker = docker or DockerSettings()
    volumes = plan.volume_specs
    environment = {
        "HOME": CONTAINER_HOME,
        "TERM": "xterm-256color",
        "OPENCLAW_GATEWAY_TOKEN": "${OPENCLAW_GATEWAY_TOKEN}",
        "OPENCLAW_WORKSPACE_DIR": CONTAINER_WORKSPACE,
    }

    gateway = _service(docker, "openclaw-gateway", volumes, dict(environment))
    gateway.update(
        {
            "ports": [
                f"${{OPENCLAW_GATEWAY_PORT:-{docker.gateway_port}}}:{GATEWAY_CONTAINER_PORT}",
                f"${{OPENCLAW_BRIDGE_PORT:-{docker.bridge_port}}}:{BRIDGE_CONTAINER_PORT}",
            ],
            "init": True,
            "restart": "unless-stopped",
            "command": [
                "node",
                "dist/index.js",
                "gateway",
                "--bind",
                f"${{OPENCLAW_GATEWAY_BIND:-{docker.gateway_bind}}}",
                "--port",
                str(GATEWAY_CONTAINER_PORT),
            ],
        }
    )

    cli = _service(docker, "openclaw-cli", volumes, {**environment, "BROWSER": "echo"})
    cli.update(
        {
            "stdin_open": True,
            "tty": True,
            "init": True,
            "profiles": ["cli"],
            "entrypoint": ["node", "dist/index.js"],
        }
    )

    document = {"services": {"openclaw-gateway": gateway, "openclaw-cli": cli}}
    return COMPOSE_HEADER + yaml.safe_dump(document, sort_keys=False, default_flow_style=False, width=1000)


def render_env_file(plan: MountPlan) -> str:
    return ENV_HEADER + "".join(f"{key}={value}\n" for key, value in plan.environment.items())


def write_mount_plan(plan: MountPlan, layout: OpenClawLayout, docker: DockerSettings | None = None) -> WrittenArtifacts:
    """Write the plan's artifacts into the OpenClaw root.

    Each file is written atomically. A failure stops at the failing file;
    files written before it stay on disk. The ignore file is replaced so it
    lists exactly the plan's denied paths.

    Raises:
        ArtifactWriteError: If any artifact cannot be written
    """
    artifacts = WrittenArtifacts(
        compose_file=layout.compose_file,
        env_file=layout.env_file,
        ignore_file=layout.ignore_file,
        docker_config_file=layout.docker_config_file,
    )

    atomic_write_text(artifacts.compose_file, render_compose(plan, docker))
    atomic_write_text(artifacts.env_file, render_env_file(plan))
    write_ignore_file(artifacts.ignore_file, plan.ignore_list.patterns, merge=False)
    atomic_write_text(artifacts.docker_config_file, plan.rewritten_config)

    logger.info(f"Wrote mount plan artifacts to {layout.root}")
    return artifacts


def read_env_token(env_file: Path) -> str | None:
    """Return the gateway token recorded in an existing ``.env`` file."""
    try:
        content = Path(env_file).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {env_file}: {e}")
        return None

    match = _TOKEN_LINE.search(content)
    return match.group(1).strip() if match else None
