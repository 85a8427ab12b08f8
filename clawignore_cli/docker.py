"""Docker runtime check and OpenClaw container lifecycle.

All calls go through the ``docker`` command line; nothing here talks to the
Docker API directly. Probes never raise: a missing binary or a failing
command is reported through the returned values.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import re
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

import yaml

from .utils.fs import atomic_write_text

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 15
LIFECYCLE_TIMEOUT = 120

# Compose service names the quick-mode annotator recognizes
GATEWAY_SERVICE_NAMES = ("gateway", "openclaw", "claw", "openclaw-gateway")

CONTAINER_NAME_HINTS = ("openclaw", "claw", "gateway")

LAUNCHD_LABELS = (
    "ai.openclaw.gateway",
    "com.openclaw.gateway",
    "com.clawdbot.gateway",
    "bot.molt.gateway",
)

NATIVE_GATEWAY_PATTERN = re.compile(r"openclaw-gateway|openclaw serve|node.*openclaw")

CLAWIGNORE_JSON_NAME = ".clawignore.json"


@dataclass(frozen=True)
class RuntimeStatus:
    """What the Docker check found.

    Attributes:
        installed: ``docker --version`` succeeded
        running: ``docker info`` succeeded (daemon reachable)
        service_running: A container whose name looks like OpenClaw is up
    """

    installed: bool = False
    running: bool = False
    service_running: bool = False


def _run(args: list[str], *, cwd: Path | None = None, timeout: int = PROBE_TIMEOUT) -> tuple[bool, str]:
    """Run a command and return (success, stdout)."""
    try:
        result = subprocess.run(args, cwd=cwd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError:
        return False, ""
    except subprocess.TimeoutExpired:
        logger.warning(f"Timed out: {' '.join(args)}")
        return False, ""
    except OSError as e:
        logger.warning(f"Could not run {args[0]}: {e}")
        return False, ""

    if result.returncode != 0:
        logger.debug(f"{' '.join(args)} exited with {result.returncode}: {result.stderr.strip()}")
    return result.returncode == 0, result.stdout


def check_docker() -> RuntimeStatus:
    """Probe the Docker installation, daemon and running containers."""
    installed, _ = _run(["docker", "--version"])
    if not installed:
        return RuntimeStatus()

    running, _ = _run(["docker", "info"])
    if not running:
        return RuntimeStatus(installed=True)

    ok, names = _run(["docker", "ps", "--format", "{{.Names}}"])
    lowered = names.lower() if ok else ""
    service_running = any(hint in lowered for hint in CONTAINER_NAME_HINTS)
    status = RuntimeStatus(installed=True, running=True, service_running=service_running)
    logger.info(f"Docker status: {status}")
    return status


def compose_up(project_dir: Path) -> bool:
    """Start the generated compose project in the background."""
    ok, _ = _run(["docker", "compose", "up", "-d"], cwd=project_dir, timeout=LIFECYCLE_TIMEOUT)
    if ok:
        logger.info(f"Started compose project in {project_dir}")
    return ok


def restart_gateway(compose_file: Path | None) -> bool:
    """Restart the gateway, preferring the compose project when one is known."""
    if compose_file is not None:
        project_dir = compose_file.parent
        for command in (["docker", "compose", "restart"], ["docker-compose", "restart"]):
            ok, _ = _run(command, cwd=project_dir, timeout=LIFECYCLE_TIMEOUT)
            if ok:
                return True
        return False

    for container in ("openclaw-gateway", "gateway"):
        ok, _ = _run(["docker", "restart", container], timeout=LIFECYCLE_TIMEOUT)
        if ok:
            return True
    return False


def _unload_launchd_services(home: Path) -> bool:
    launch_agents = home / "Library" / "LaunchAgents"
    unloaded = False
    for label in LAUNCHD_LABELS:
        plist = launch_agents / f"{label}.plist"
        if plist.exists():
            ok, _ = _run(["launchctl", "unload", str(plist)])
            unloaded = unloaded or ok
    for label in LAUNCHD_LABELS:
        _run(["launchctl", "stop", label])
    return unloaded


def find_native_gateway_pids() -> list[int]:
    """PIDs of OpenClaw gateway processes running outside Docker."""
    ok, output = _run(["ps", "-eo", "pid=,args="])
    if not ok:
        return []

    own_pid = os.getpid()
    pids = []
    for line in output.splitlines():
        pid_text, _, args = line.strip().partition(" ")
        if not pid_text.isdigit() or "docker" in args:
            continue
        if NATIVE_GATEWAY_PATTERN.search(args) and int(pid_text) != own_pid:
            pids.append(int(pid_text))
    return pids


def stop_native_gateway(home: Path | None = None, settle_seconds: float = 1.5) -> tuple[bool, int]:
    """Stop a gateway running natively so the container can take its ports.

    Returns:
        (launchd service unloaded, number of processes signalled)
    """
    home = home or Path.home()
    unloaded = platform.system() == "Darwin" and _unload_launchd_services(home)
    if unloaded:
        time.sleep(settle_seconds)

    signalled = 0
    for pid in find_native_gateway_pids():
        try:
            os.kill(pid, signal.SIGTERM)
            signalled += 1
        except ProcessLookupError:
            continue
        except PermissionError as e:
            logger.warning(f"Cannot stop process {pid}: {e}")
    if signalled:
        time.sleep(settle_seconds)

    logger.info(f"Native gateway stop: launchd unloaded={unloaded}, processes signalled={signalled}")
    return unloaded, signalled


def annotate_compose(compose_file: Path, workspace: Path, patterns: list[str]) -> bool:
    """Label the gateway service of an existing compose file and write ``.clawignore.json``.

    Returns:
        False when the compose file has no recognizable gateway service or
        workspace volume; True once both files are written

    Raises:
        ArtifactWriteError: If either file cannot be written
    """
    try:
        compose = yaml.safe_load(compose_file.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read {compose_file}: {e}")
        return False

    services = compose.get("services") if isinstance(compose, dict) else None
    if not isinstance(services, dict):
        return False

    gateway = next((services[name] for name in GATEWAY_SERVICE_NAMES if isinstance(services.get(name), dict)), None)
    if gateway is None:
        logger.info(f"No gateway service in {compose_file}")
        return False

    volumes = gateway.get("volumes") or []
    if not any(isinstance(v, str) and ("/workspace" in v or "OPENCLAW_WORKSPACE" in v) for v in volumes):
        logger.info(f"No workspace volume in {compose_file}")
        return False

    labels = gateway.setdefault("labels", {})
    labels["clawignore.enabled"] = "true"
    labels["clawignore.patterns"] = str(len(patterns))

    atomic_write_text(workspace / CLAWIGNORE_JSON_NAME, json.dumps({"patterns": patterns, "version": 1}, indent=2))
    atomic_write_text(compose_file, yaml.safe_dump(compose, sort_keys=False, default_flow_style=False))
    logger.info(f"Annotated {compose_file} with {len(patterns)} patterns")
    return True
