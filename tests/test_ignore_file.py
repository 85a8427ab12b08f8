"""Tests for reading, categorizing and writing .clawignore files."""

import pytest

from clawignore_cli.errors import ArtifactWriteError
from clawignore_cli.ignore_file import HEADER
from clawignore_cli.ignore_file import IgnoreList
from clawignore_cli.ignore_file import append_patterns
from clawignore_cli.ignore_file import categorize_pattern
from clawignore_cli.ignore_file import group_patterns
from clawignore_cli.ignore_file import parse_patterns
from clawignore_cli.ignore_file import read_ignore_file
from clawignore_cli.ignore_file import write_ignore_file


class TestParse:
    def test_skips_comments_and_blanks(self):
        text = "# header\n\n  .env  \n*.pem\n   # indented comment\n"
        assert parse_patterns(text) == {".env", "*.pem"}

    def test_missing_file(self, tmp_path):
        assert read_ignore_file(tmp_path / ".clawignore") == set()


class TestCategorize:
    @pytest.mark.parametrize(
        "pattern, category",
        [
            ("/home/u/project/.env", "secrets"),
            ("secrets.txt", "secrets"),
            ("credentials.json", "credentials"),
            ("/home/u/.aws", "credentials"),
            ("/home/u/.ssh", "keys"),
            ("server.pem", "keys"),
            ("app/config.json", "config"),
            ("app.db", "data"),
            ("/home/u/Documents", "custom"),
        ],
    )
    def test_category(self, pattern, category):
        assert categorize_pattern(pattern) == category

    def test_only_last_segment_counts(self):
        assert categorize_pattern("/home/data-lab/photos") == "custom"

    def test_trailing_slash(self):
        assert categorize_pattern("keys/.ssh/") == "keys"

    def test_groups_are_sorted(self):
        groups = group_patterns(["b.pem", "a.pem", "notes"])
        assert groups["keys"] == ["a.pem", "b.pem"]
        assert groups["custom"] == ["notes"]


class TestRender:
    def test_categories_in_fixed_order(self):
        text = IgnoreList.of(["notes", ".env", "id_rsa"]).render()
        assert text.startswith(HEADER)
        secrets = text.index("# Secrets & environment variables")
        keys = text.index("# Private keys & certificates")
        custom = text.index("# Custom patterns")
        assert secrets < keys < custom
        assert "# Data files" not in text
        assert text.endswith("notes\n")

    def test_empty_list_is_header_only(self):
        assert IgnoreList().render() == HEADER.rstrip("\n") + "\n"

    def test_blank_patterns_dropped(self):
        assert len(IgnoreList.of(["", "  ", ".env"])) == 1


class TestWrite:
    def test_merges_with_existing(self, tmp_path):
        path = tmp_path / ".clawignore"
        path.write_text("# mine\nold-secret.txt\n")
        result = write_ignore_file(path, [".env"])
        assert result.patterns == {".env", "old-secret.txt"}
        assert read_ignore_file(path) == {".env", "old-secret.txt"}

    def test_replace_without_merge(self, tmp_path):
        path = tmp_path / ".clawignore"
        path.write_text("old-secret.txt\n")
        write_ignore_file(path, [".env"], merge=False)
        assert read_ignore_file(path) == {".env"}

    def test_rewrite_is_stable(self, tmp_path):
        path = tmp_path / ".clawignore"
        write_ignore_file(path, ["b", "a", ".env"])
        first = path.read_text()
        write_ignore_file(path, ["a"])
        assert path.read_text() == first

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / ".clawignore"
        write_ignore_file(path, [".env"])
        assert path.exists()

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(ArtifactWriteError) as exc_info:
            write_ignore_file(blocker / ".clawignore", [".env"])
        assert exc_info.value.path == blocker / ".clawignore"


class TestAppend:
    def test_keeps_existing_content(self, tmp_path):
        path = tmp_path / ".clawignore"
        path.write_text("# hand written\n.env\n")
        added = append_patterns(path, [".env", "*.pem", "*.pem"])
        assert added == ["*.pem"]
        text = path.read_text()
        assert text.startswith("# hand written\n.env\n")
        assert text.endswith("# Added by clawignore\n*.pem\n")

    def test_nothing_new(self, tmp_path):
        path = tmp_path / ".clawignore"
        path.write_text(".env\n")
        assert append_patterns(path, [".env"]) == []
        assert path.read_text() == ".env\n"

    def test_new_file_gets_header(self, tmp_path):
        path = tmp_path / ".clawignore"
        append_patterns(path, ["secrets/"])
        assert path.read_text().startswith("# Clawignore")
        assert read_ignore_file(path) == {"secrets/"}
