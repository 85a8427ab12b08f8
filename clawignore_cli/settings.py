"""Settings for clawignore.

Two scopes, merged in this order (later overrides earlier):
- User global (~/.config/clawignore/settings.yaml)
- Project (./clawignore.yaml)

The merged mapping is validated into ``ClawignoreSettings``. Command-line
options override whatever the files say.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .paths import get_cli_home
from .sensitivity import DEFAULT_CONTENT_SCAN_BYTES
from .tree import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

PROJECT_SETTINGS_NAME = "clawignore.yaml"


class BrowserSettings(BaseModel):
    """Tree browser configuration."""

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, le=10, description="Levels below the root to walk")


class ReviewSettings(BaseModel):
    """Sensitive-file review configuration."""

    preselect_sensitive: bool = Field(default=True, description="Review items start out marked for hiding")
    deny_unreviewed_sensitive: bool = Field(
        default=True, description="Hide sensitive entries when the review phase is skipped"
    )


class ScanSettings(BaseModel):
    """Workspace scanner configuration."""

    content_scan_kb: int = Field(
        default=DEFAULT_CONTENT_SCAN_BYTES // 1024, ge=1, description="Bytes (KiB) read when checking file content"
    )

    @property
    def content_scan_bytes(self) -> int:
        return self.content_scan_kb * 1024


class DockerSettings(BaseModel):
    """Generated compose/.env configuration."""

    image: str = Field(default="alpine/openclaw:latest", description="Gateway and CLI image")
    gateway_port: int = Field(default=18789, ge=1, le=65535)
    bridge_port: int = Field(default=18790, ge=1, le=65535)
    gateway_bind: str = Field(default="lan", description="Gateway bind mode")


class ClawignoreSettings(BaseModel):
    """Complete settings."""

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    review: ReviewSettings = Field(default_factory=ReviewSettings)
    scan: ScanSettings = Field(default_factory=ScanSettings)
    docker: DockerSettings = Field(default_factory=DockerSettings)


class SettingsPaths:
    """Locations of the settings files."""

    def __init__(self, user_file: Path | None = None, project_file: Path | None = None):
        self.user_file = user_file or get_cli_home() / "settings.yaml"
        self.project_file = project_file or Path.cwd() / PROJECT_SETTINGS_NAME


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries; ``overlay`` takes precedence."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def read_settings_file(path: Path) -> dict[str, Any] | None:
    """Read one YAML settings file.

    Returns:
        Settings dict, or None if the file is missing or unusable
    """
    if not path.exists():
        return None

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to read settings from {path}: {e}")
        return None

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path}: expected a mapping at the top level")
        return None
    return data


def load_settings(paths: SettingsPaths | None = None) -> ClawignoreSettings:
    """Load and validate settings; invalid settings fall back to defaults."""
    paths = paths or SettingsPaths()

    merged: dict[str, Any] = {}
    for path in (paths.user_file, paths.project_file):
        data = read_settings_file(path)
        if data:
            merged = deep_merge(merged, data)

    try:
        return ClawignoreSettings.model_validate(merged)
    except ValidationError as e:
        logger.warning(f"Invalid settings, using defaults: {e}")
        return ClawignoreSettings()
