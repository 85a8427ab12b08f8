"""Reader and writer for the ``.clawignore`` file.

Format: UTF-8 text, one glob pattern or literal path per line. Blank lines
and lines starting with ``#`` are ignored. The writer groups patterns under
fixed category headers and can merge with what is already on disk.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .utils.fs import atomic_write_text

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = ".clawignore"

HEADER = """# Clawignore - Files hidden from OpenClaw AI agent
# Uses .gitignore syntax
#
# Files listed here will not be mounted into the Docker container,
# making them completely inaccessible to the AI agent.

"""

CATEGORY_ORDER = ("secrets", "credentials", "keys", "config", "data", "custom")

CATEGORY_COMMENTS = {
    "secrets": "# Secrets & environment variables",
    "credentials": "# Credentials & auth tokens",
    "keys": "# Private keys & certificates",
    "config": "# Configuration files",
    "data": "# Data files",
    "custom": "# Custom patterns",
}

# Checked in order; the first family with a matching keyword wins
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("secrets", (".env", "secret", "password", "history")),
    ("credentials", ("credential", ".aws", ".gcp", ".azure", ".npmrc", ".pypirc", ".netrc", "kube", "token", "api_key", "apikey", "serviceaccount")),
    ("keys", (".pem", ".key", ".p12", ".pfx", ".jks", ".keystore", "id_rsa", "id_ed25519", "id_ecdsa", ".ssh", "private_key", "privatekey")),
    ("config", ("config", ".tfvars", "settings")),
    ("data", (".db", ".sqlite", ".xlsx", ".csv", "data")),
)


def parse_patterns(text: str) -> set[str]:
    """Return the patterns of an ignore file, skipping comments and blanks."""
    patterns = set()
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        patterns.add(stripped)
    return patterns


def categorize_pattern(pattern: str) -> str:
    """Pick a category from the last path segment of ``pattern``.

    Only the last segment is inspected so that directory names higher up
    (for example a home directory called ``data-lab``) do not decide the
    category of everything below them.
    """
    segment = pattern.rstrip("/").rsplit("/", 1)[-1].lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in segment for keyword in keywords):
            return category
    return "custom"


def group_patterns(patterns: Iterable[str]) -> dict[str, list[str]]:
    """Group patterns by category; each group is sorted."""
    groups: dict[str, list[str]] = {category: [] for category in CATEGORY_ORDER}
    for pattern in set(patterns):
        groups[categorize_pattern(pattern)].append(pattern)
    for members in groups.values():
        members.sort()
    return groups


def render_ignore_file(grouped: dict[str, list[str]]) -> str:
    """Render grouped patterns as ignore-file text, skipping empty categories."""
    sections = []
    for category in CATEGORY_ORDER:
        members = grouped.get(category) or []
        if not members:
            continue
        sections.append("\n".join([CATEGORY_COMMENTS[category], *members]))

    content = HEADER + "\n\n".join(sections)
    return content.rstrip("\n") + "\n"


@dataclass(frozen=True)
class IgnoreList:
    """Normalized set of denied patterns."""

    patterns: frozenset[str] = frozenset()

    @classmethod
    def of(cls, patterns: Iterable[str]) -> IgnoreList:
        return cls(frozenset(p.strip() for p in patterns if p and p.strip()))

    def merged(self, other: Iterable[str]) -> IgnoreList:
        return IgnoreList.of(set(self.patterns) | set(other))

    def grouped(self) -> dict[str, list[str]]:
        return group_patterns(self.patterns)

    def render(self) -> str:
        return render_ignore_file(self.grouped())

    def __len__(self) -> int:
        return len(self.patterns)


def read_ignore_file(path: Path) -> set[str]:
    """Read patterns from ``path``; a missing or unreadable file yields none."""
    try:
        return parse_patterns(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return set()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {path}: {e}")
        return set()


def write_ignore_file(path: Path, patterns: Iterable[str], merge: bool = True) -> IgnoreList:
    """Write patterns to ``path``.

    With ``merge`` the patterns already on disk are kept (set union);
    without it the file is replaced.

    Raises:
        ArtifactWriteError: If the file cannot be written
    """
    ignore_list = IgnoreList.of(patterns)
    if merge:
        ignore_list = ignore_list.merged(read_ignore_file(path))
    atomic_write_text(Path(path), ignore_list.render())
    logger.info(f"Wrote {len(ignore_list)} patterns to {path}")
    return ignore_list


def append_patterns(path: Path, patterns: Iterable[str]) -> list[str]:
    """Append patterns not yet present under an "Added by clawignore" section.

    Existing content, including hand-written comments, is kept as is.

    Returns:
        The patterns that were actually added
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        content = HEADER

    existing = parse_patterns(content)
    added = []
    for pattern in patterns:
        pattern = pattern.strip()
        if pattern and pattern not in existing and pattern not in added:
            added.append(pattern)

    if not added:
        return []

    content = content.rstrip() + "\n\n# Added by clawignore\n" + "".join(f"{p}\n" for p in added)
    atomic_write_text(path, content)
    return added
