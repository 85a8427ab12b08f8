"""Tests for the interactive wizard steps."""

from unittest.mock import patch

import pytest

from clawignore_cli.browser import BrowseResult
from clawignore_cli.errors import TerminalUnavailableError
from clawignore_cli.scanner import SensitiveFile
from clawignore_cli.settings import ReviewSettings
from clawignore_cli.tree import TreeBuilder
from clawignore_cli.wizard import WizardCancelled
from clawignore_cli.wizard import docker_help_steps
from clawignore_cli.wizard import prompt_add_files
from clawignore_cli.wizard import relative_pattern
from clawignore_cli.wizard import run_wizard
from clawignore_cli.wizard import select_hidden_paths
from clawignore_cli.wizard import show_docker_help

NO_TERMINAL = TerminalUnavailableError("stdin is not a terminal")


def sensitive(relative, category="secrets", confidence="high"):
    return SensitiveFile(f"/ws/{relative}", relative, "reason", category, confidence)


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "ws"
    (root / "docs").mkdir(parents=True)
    (root / ".env").write_text("TOKEN=x\n")
    return root


class TestSelectHiddenPaths:
    def test_uses_browser_result(self, sample_home, scripted_prompter):
        expected = BrowseResult(denied_paths=["/x"], all_paths=["/x", "/y"])
        with patch("clawignore_cli.wizard.browse_and_select", return_value=expected) as browse:
            result = select_hidden_paths([], str(sample_home), scripted_prompter(), skip_review=True)
        assert result is expected
        assert browse.call_args.kwargs["skip_review"] is True

    def test_falls_back_without_terminal(self, sample_home, scripted_prompter):
        tree = TreeBuilder(sample_home).build()
        prompter = scripted_prompter(texts=[""])
        with patch("clawignore_cli.wizard.browse_and_select", side_effect=NO_TERMINAL):
            result = select_hidden_paths(tree, str(sample_home), prompter)
        assert result.denied_paths == [
            str(sample_home / ".ssh"),
            str(sample_home / "project" / ".env"),
            str(sample_home / "secrets.txt"),
        ]

    def test_fallback_without_preselection(self, sample_home, scripted_prompter):
        tree = TreeBuilder(sample_home).build()
        review = ReviewSettings(preselect_sensitive=False, deny_unreviewed_sensitive=False)
        with patch("clawignore_cli.wizard.browse_and_select", side_effect=NO_TERMINAL):
            result = select_hidden_paths(tree, str(sample_home), scripted_prompter(texts=[""]), review)
        assert result.denied_paths == []


class TestRunWizard:
    FILES = [sensitive(".env"), sensitive("config/app.json", "config", "medium")]

    def test_block_all(self, tmp_path, scripted_prompter):
        prompter = scripted_prompter(choices=["all"], confirms=[False])
        assert run_wizard(self.FILES, tmp_path, prompter) == [".env", "config/app.json"]

    def test_choose_preselects_high_confidence(self, tmp_path, scripted_prompter):
        prompter = scripted_prompter(choices=["choose"], multiselects=[["config/app.json"]], confirms=[False])
        with patch.object(prompter, "multiselect", wraps=prompter.multiselect) as multiselect:
            assert run_wizard(self.FILES, tmp_path, prompter) == ["config/app.json"]
        assert multiselect.call_args.kwargs["initial"] == {".env"}

    def test_skip_and_type_patterns(self, tmp_path, scripted_prompter):
        prompter = scripted_prompter(choices=["skip", "type"], confirms=[True], texts=["secrets/", "", "DONE"])
        assert run_wizard(self.FILES, tmp_path, prompter) == ["secrets/"]

    def test_cancelled_choice(self, tmp_path, scripted_prompter):
        with pytest.raises(WizardCancelled):
            run_wizard(self.FILES, tmp_path, scripted_prompter(choices=[None]))

    def test_cancelled_multiselect(self, tmp_path, scripted_prompter):
        with pytest.raises(WizardCancelled):
            run_wizard(self.FILES, tmp_path, scripted_prompter(choices=["choose"], multiselects=[None]))

    def test_nothing_detected(self, tmp_path, scripted_prompter):
        assert run_wizard([], tmp_path, scripted_prompter(confirms=[False])) == []

    def test_typed_patterns_stop_on_cancel(self, tmp_path, scripted_prompter):
        prompter = scripted_prompter(confirms=[True], choices=["type"], texts=["*.xlsx", None])
        assert run_wizard([], tmp_path, prompter) == ["*.xlsx"]


class TestPromptAddFiles:
    def test_browse_workspace(self, workspace, scripted_prompter):
        # candidates: 1 docs, 2 .env (sensitive, pre-hidden)
        prompter = scripted_prompter(choices=["browse"], texts=["1", ""])
        with patch("clawignore_cli.wizard.browse_and_select", side_effect=NO_TERMINAL):
            assert prompt_add_files(workspace, prompter) == [".env", "docs/"]

    def test_browse_cancelled(self, workspace, scripted_prompter):
        prompter = scripted_prompter(choices=["browse"], texts=[None])
        with patch("clawignore_cli.wizard.browse_and_select", side_effect=NO_TERMINAL):
            assert prompt_add_files(workspace, prompter) == []

    def test_relative_pattern(self, workspace, tmp_path):
        assert relative_pattern(workspace / "docs", workspace) == "docs/"
        assert relative_pattern(workspace / ".env", workspace) == ".env"
        assert relative_pattern(tmp_path / "elsewhere.txt", workspace) == str(tmp_path / "elsewhere.txt")


class TestDockerHelp:
    def test_install_steps_per_platform(self):
        steps = docker_help_steps("not_installed", "Darwin")
        assert steps[0][1] == "https://docs.docker.com/desktop/install/mac-install/"
        assert steps[-1] == ("Run this setup again:", "clawignore setup")

    def test_unknown_platform_uses_linux(self):
        assert docker_help_steps("not_running", "Plan9") == docker_help_steps("not_running", "Linux")

    def test_open_docs(self, scripted_prompter):
        with patch("clawignore_cli.wizard.click.launch") as launch:
            show_docker_help("not_installed", scripted_prompter(confirms=[True]), "Linux")
        launch.assert_called_once_with("https://docs.docker.com/get-docker/")

    def test_decline_docs(self, scripted_prompter):
        with patch("clawignore_cli.wizard.click.launch") as launch:
            show_docker_help("not_running", scripted_prompter(confirms=[False]), "Windows")
        launch.assert_not_called()
