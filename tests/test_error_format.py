"""Tests for error message formatting utilities."""

import subprocess

from clawignore_cli.errors import ArtifactWriteError
from clawignore_cli.utils.error_format import escape_markup
from clawignore_cli.utils.error_format import format_error_message


class TestFormatErrorMessage:
    def test_message_with_type(self):
        assert format_error_message(ValueError("invalid input")) == "ValueError: invalid input"

    def test_message_without_type(self):
        assert format_error_message(ValueError("invalid input"), include_type=False) == "invalid input"

    def test_type_already_in_message(self):
        assert format_error_message(ValueError("ValueError: bad")) == "ValueError: bad"

    def test_artifact_write_error(self):
        e = ArtifactWriteError("/tmp/x", PermissionError("denied"))
        assert format_error_message(e) == "ArtifactWriteError: Failed to write /tmp/x: denied"

    def test_empty_permission_error(self):
        assert format_error_message(PermissionError()) == (
            "PermissionError: Permission denied. Check ownership of the OpenClaw directory."
        )

    def test_empty_timeout(self):
        assert format_error_message(TimeoutError()) == "TimeoutError: Operation timed out."

    def test_unknown_empty_exception(self):
        assert format_error_message(RuntimeError()) == "RuntimeError: (no additional details)"

    def test_timeout_expired_has_message(self):
        e = subprocess.TimeoutExpired(cmd="docker info", timeout=15)
        assert "docker info" in format_error_message(e)


class TestEscapeMarkup:
    def test_brackets(self):
        assert escape_markup("[red]x[/red]") == "\\[red]x\\[/red]"

    def test_path(self, tmp_path):
        assert escape_markup(tmp_path) == str(tmp_path)
