"""Sensitivity classification for filesystem entries.

Contract:
- Inputs: an entry name and its full path
- Outputs: Classification(sensitive, reason, category)
- Side effects: None for ``classify``; ``file_contains_secrets`` reads at
  most ``max_bytes`` of a file and never raises

Rules are evaluated in a fixed order and the first match supplies the
reported reason. Whether an entry is sensitive does not depend on the order.
"""

from __future__ import annotations

import codecs
import logging
import re
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

Category = Literal["secrets", "credentials", "keys", "config", "data"]

# Well-known sensitive names, matched case-insensitively against the whole name
SENSITIVE_NAMES: dict[str, tuple[str, Category]] = {
    ".env": ("Environment variables may contain secrets", "secrets"),
    ".env.local": ("Environment variables may contain secrets", "secrets"),
    ".env.development": ("Environment variables may contain secrets", "secrets"),
    ".env.production": ("Environment variables may contain secrets", "secrets"),
    ".env.staging": ("Environment variables may contain secrets", "secrets"),
    ".ssh": ("SSH keys and credentials", "keys"),
    ".aws": ("AWS credentials", "credentials"),
    ".gcp": ("Google Cloud credentials", "credentials"),
    ".azure": ("Azure credentials", "credentials"),
    ".kube": ("Kubernetes credentials", "credentials"),
    ".docker": ("Docker credentials", "credentials"),
    ".npmrc": ("NPM authentication tokens", "credentials"),
    ".pypirc": ("PyPI authentication", "credentials"),
    ".netrc": ("Network credentials", "credentials"),
    ".gitconfig": ("Git configuration", "config"),
    ".bash_history": ("Command history may contain secrets", "secrets"),
    ".zsh_history": ("Command history may contain secrets", "secrets"),
    "secrets": ("Secrets directory", "secrets"),
    "private": ("Private data", "secrets"),
    "credentials": ("Credentials store", "credentials"),
    ".credentials": ("Credentials store", "credentials"),
    "passwords": ("Password store", "secrets"),
    ".passwords": ("Password store", "secrets"),
}

ENV_FILE_PREFIX = ".env"

SENSITIVE_EXTENSIONS: dict[str, str] = {
    ".pem": "Private key file",
    ".key": "Private key file",
    ".p12": "Certificate with private key",
    ".pfx": "Certificate with private key",
    ".jks": "Java keystore",
    ".keystore": "Java keystore",
}

# Substrings of the lowercased name; shared with the ignore-list categorizer
SENSITIVE_KEYWORDS: dict[str, tuple[str, Category]] = {
    "secret": ('Contains "secret" in name', "secrets"),
    "credential": ('Contains "credential" in name', "credentials"),
    "password": ('Contains "password" in name', "secrets"),
    "private_key": ("May contain private keys", "keys"),
    "privatekey": ("May contain private keys", "keys"),
    "api_key": ("May contain API keys", "credentials"),
    "apikey": ("May contain API keys", "credentials"),
    "token": ("May contain authentication tokens", "credentials"),
}

# Names that only *might* hold secrets; escalated by content inspection
SECONDARY_PATTERNS: tuple[tuple[str, str, Category], ...] = (
    ("config.json", "Config file (may contain secrets)", "config"),
    ("config/*.json", "Config file (may contain secrets)", "config"),
    ("settings.json", "Settings file (may contain secrets)", "config"),
    ("*secret*", 'File with "secret" in name', "secrets"),
    ("*password*", 'File with "password" in name', "secrets"),
    ("*credential*", 'File with "credential" in name', "credentials"),
    ("*.sqlite", "SQLite database", "data"),
    ("*.db", "Database file", "data"),
)

SECRET_CONTENT_KEYWORDS = (
    "API_KEY",
    "APIKEY",
    "API_SECRET",
    "SECRET_KEY",
    "PRIVATE_KEY",
    "ACCESS_TOKEN",
    "AUTH_TOKEN",
    "PASSWORD",
    "DB_PASSWORD",
    "DATABASE_URL",
    "STRIPE_KEY",
    "STRIPE_SECRET",
    "AWS_ACCESS_KEY",
    "AWS_SECRET",
    "GITHUB_TOKEN",
    "NPM_TOKEN",
    "SLACK_TOKEN",
    "DISCORD_TOKEN",
    "TWILIO_",
    "SENDGRID_",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
)

# Long opaque value after an assignment, e.g. ``key = "sk_live_..."``
EMBEDDED_TOKEN_PATTERN = re.compile(r"[=:]\s*['\"]?[a-zA-Z0-9_-]{32,}['\"]?")

DEFAULT_CONTENT_SCAN_BYTES = 64 * 1024


@dataclass(frozen=True)
class Classification:
    """Result of classifying one filesystem entry."""

    sensitive: bool
    reason: str = ""
    category: Category | None = None


NOT_SENSITIVE = Classification(sensitive=False)


def classify(name: str, full_path: str | Path = "") -> Classification:
    """Classify an entry as sensitive or not.

    Args:
        name: Base name of the entry
        full_path: Absolute path of the entry (accepted for symmetry with the
            secondary matcher; the rules only look at the name)

    Returns:
        Classification with the reason of the first matching rule
    """
    lower = name.lower()

    if lower in SENSITIVE_NAMES:
        reason, category = SENSITIVE_NAMES[lower]
        return Classification(True, reason, category)

    if lower == ENV_FILE_PREFIX or lower.startswith(ENV_FILE_PREFIX + "."):
        return Classification(True, "Environment variables may contain secrets", "secrets")

    for extension, reason in SENSITIVE_EXTENSIONS.items():
        if lower.endswith(extension):
            return Classification(True, reason, "keys")

    for keyword, (reason, category) in SENSITIVE_KEYWORDS.items():
        if keyword in lower:
            return Classification(True, reason, category)

    if lower.startswith("id_") and ".pub" not in lower:
        return Classification(True, "SSH keys and credentials", "keys")

    if lower.startswith("serviceaccountkey") and lower.endswith(".json"):
        return Classification(True, "Service account credentials", "credentials")

    return NOT_SENSITIVE


def match_secondary_pattern(relative_path: str) -> tuple[str, Category] | None:
    """Return (reason, category) when a path matches a medium-confidence pattern.

    Patterns without a slash match the base name; patterns with a slash match
    the trailing segments of the relative path.
    """
    normalized = relative_path.replace("\\", "/")
    parts = normalized.split("/")
    name = parts[-1]
    for pattern, reason, category in SECONDARY_PATTERNS:
        depth = pattern.count("/") + 1
        candidate = name if depth == 1 else "/".join(parts[-depth:])
        if len(parts) >= depth and fnmatch(candidate.lower(), pattern.lower()):
            return reason, category
    return None


def file_contains_secrets(path: str | Path, max_bytes: int = DEFAULT_CONTENT_SCAN_BYTES) -> bool:
    """Scan the head of a file for credential-like content.

    Fails open: unreadable or binary files are reported as not containing
    secrets.
    """
    try:
        with open(path, "rb") as f:
            head = f.read(max_bytes)
    except OSError:
        return False

    if b"\x00" in head:
        return False

    try:
        # a multi-byte character may be cut at the read limit
        content = codecs.getincrementaldecoder("utf-8")().decode(head, final=False)
    except UnicodeDecodeError:
        return False

    upper = content.upper()
    if any(keyword in upper for keyword in SECRET_CONTENT_KEYWORDS):
        return True

    return EMBEDDED_TOKEN_PATTERN.search(content) is not None


def classify_with_content(
    name: str,
    full_path: str | Path,
    relative_path: str | None = None,
    max_bytes: int = DEFAULT_CONTENT_SCAN_BYTES,
) -> Classification:
    """Classify by name, escalating secondary matches by inspecting content."""
    result = classify(name, full_path)
    if result.sensitive:
        return result

    secondary = match_secondary_pattern(relative_path or name)
    if secondary is None:
        return result

    if file_contains_secrets(full_path, max_bytes=max_bytes):
        reason, category = secondary
        logger.debug(f"Content escalation for {full_path}: {reason}")
        return Classification(True, reason, category)

    return result
