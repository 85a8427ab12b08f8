"""Workspace scanner for quick mode.

Walks a workspace and reports files that look sensitive. High-confidence
patterns are reported on the name alone; medium-confidence patterns are
reported only when the file content looks like it holds credentials.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Literal

from .sensitivity import DEFAULT_CONTENT_SCAN_BYTES
from .sensitivity import Category
from .sensitivity import file_contains_secrets
from .sensitivity import match_secondary_pattern

logger = logging.getLogger(__name__)

Confidence = Literal["high", "medium"]

# "dir/**" matches anything below a directory of that name; other patterns
# match the trailing segments of the relative path.
HIGH_CONFIDENCE_PATTERNS: tuple[tuple[str, str, Category], ...] = (
    (".env", "Environment variables file", "secrets"),
    (".env.local", "Local environment file", "secrets"),
    (".env.production", "Production environment file", "secrets"),
    (".env.*", "Environment variables file", "secrets"),
    ("*.pem", "PEM certificate/key file", "keys"),
    ("*.key", "Private key file", "keys"),
    ("*.p12", "PKCS#12 certificate file", "keys"),
    ("*.pfx", "PFX certificate file", "keys"),
    ("id_rsa", "SSH private key", "keys"),
    ("id_rsa.*", "SSH key file", "keys"),
    ("id_ed25519", "SSH private key", "keys"),
    ("id_ecdsa", "SSH private key", "keys"),
    (".ssh/*", "SSH directory", "keys"),
    ("secrets/**", "Secrets directory", "secrets"),
    ("credentials.json", "Credentials file", "credentials"),
    ("serviceAccountKey*.json", "Service account key", "credentials"),
    (".aws/credentials", "AWS credentials", "credentials"),
    (".aws/config", "AWS config", "credentials"),
    (".gcp/**", "GCP config directory", "credentials"),
    ("terraform.tfvars", "Terraform variables", "config"),
    ("*.tfvars", "Terraform variables", "config"),
    (".npmrc", "NPM config (may contain tokens)", "credentials"),
    (".pypirc", "PyPI config (may contain tokens)", "credentials"),
    (".docker/config.json", "Docker config", "credentials"),
    ("kubeconfig", "Kubernetes config", "credentials"),
    (".kube/config", "Kubernetes config", "credentials"),
)

EXCLUDED_DIRS = frozenset({"node_modules", ".git", "dist", "build"})
EXCLUDED_FILES = frozenset({"package-lock.json", "yarn.lock", "pnpm-lock.yaml"})
EXCLUDED_SUFFIXES = (".log",)

CATEGORY_ICONS = {
    "secrets": "🔴",
    "credentials": "🔴",
    "keys": "🔴",
    "config": "🟡",
    "data": "🟡",
}


@dataclass(frozen=True)
class SensitiveFile:
    path: str
    relative_path: str
    reason: str
    category: Category
    confidence: Confidence


def matches_pattern(relative_path: str, pattern: str) -> bool:
    parts = relative_path.split("/")
    if pattern.endswith("/**"):
        directory = pattern[:-3]
        return any(fnmatchcase(part, directory) for part in parts[:-1])

    depth = pattern.count("/") + 1
    if len(parts) < depth:
        return False
    return fnmatchcase("/".join(parts[-depth:]), pattern)


def iter_workspace_files(workspace: Path) -> Iterator[tuple[Path, str]]:
    """Yield (absolute path, relative posix path) for every scannable file."""
    for dirpath, dirnames, filenames in os.walk(workspace, onerror=lambda e: logger.debug(f"Skipping: {e}")):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        for filename in sorted(filenames):
            if filename in EXCLUDED_FILES or filename.endswith(EXCLUDED_SUFFIXES):
                continue
            absolute = Path(dirpath) / filename
            yield absolute, absolute.relative_to(workspace).as_posix()


def _high_confidence_match(relative_path: str) -> tuple[str, Category] | None:
    for pattern, reason, category in HIGH_CONFIDENCE_PATTERNS:
        if matches_pattern(relative_path, pattern):
            return reason, category
    return None


def scan_for_sensitive_files(
    workspace: str | Path, max_bytes: int = DEFAULT_CONTENT_SCAN_BYTES
) -> list[SensitiveFile]:
    """Scan ``workspace`` for sensitive files.

    Returns:
        Matches sorted by confidence (high first), then category, then path
    """
    workspace = Path(workspace)
    found: list[SensitiveFile] = []
    seen: set[str] = set()

    for absolute, relative in iter_workspace_files(workspace):
        key = str(absolute)
        if key in seen:
            continue

        high = _high_confidence_match(relative)
        if high is not None:
            seen.add(key)
            found.append(SensitiveFile(key, relative, high[0], high[1], "high"))
            continue

        medium = match_secondary_pattern(relative)
        if medium is not None and file_contains_secrets(absolute, max_bytes=max_bytes):
            seen.add(key)
            found.append(SensitiveFile(key, relative, medium[0], medium[1], "medium"))

    found.sort(key=lambda f: (f.confidence != "high", f.category, f.relative_path))
    logger.info(f"Scanned {workspace}: {len(found)} sensitive files")
    return found


def group_by_category(files: list[SensitiveFile]) -> dict[str, list[SensitiveFile]]:
    groups: dict[str, list[SensitiveFile]] = {}
    for file in files:
        groups.setdefault(file.category, []).append(file)
    return groups


def category_icon(category: str) -> str:
    return CATEGORY_ICONS.get(category, "⚪")
