"""Tests for compiling and writing the Docker mount plan."""

import json

import pytest
import yaml

from clawignore_cli.errors import ArtifactWriteError
from clawignore_cli.errors import ConfigReadError
from clawignore_cli.ignore_file import CATEGORY_COMMENTS
from clawignore_cli.ignore_file import read_ignore_file
from clawignore_cli.mount_plan import baseline_mounts
from clawignore_cli.mount_plan import compile_mount_plan
from clawignore_cli.mount_plan import filter_denied
from clawignore_cli.mount_plan import generate_token
from clawignore_cli.mount_plan import read_env_token
from clawignore_cli.mount_plan import render_compose
from clawignore_cli.mount_plan import write_mount_plan
from clawignore_cli.paths import OpenClawLayout
from clawignore_cli.settings import DockerSettings

TOKEN = "ab" * 32


@pytest.fixture
def layout(sample_home):
    layout = OpenClawLayout.default(sample_home)
    layout.workspace.mkdir(parents=True)
    return layout


def top_level(home, *names):
    return [str(home / name) for name in names]


class TestFilterDenied:
    def test_segment_wise(self):
        assert filter_denied(["/h/D", "/h/Dx", "/h/D/a"], ["/h/D"]) == ["/h/Dx"]

    def test_keeps_order_and_drops_duplicates(self):
        assert filter_denied(["/b", "/a", "/b/"], []) == ["/b", "/a"]


class TestCompile:
    def test_baseline_mounts_come_first(self, layout):
        baseline = baseline_mounts(layout)
        assert len(baseline) == 15
        assert baseline[0].render() == f"{layout.docker_config_file}:/home/node/.openclaw/openclaw.json:ro"
        assert baseline[1].read_only
        assert baseline[-2].render() == f"{layout.ignore_file}:/home/node/.openclaw/.clawignore:ro"
        assert baseline[-1].render() == f"{layout.workspace}:/home/node/.openclaw/workspace"
        assert all(not m.read_only for m in baseline[2:-2])

    def test_denied_directory_is_not_mounted(self, sample_home, layout):
        plan = compile_mount_plan(
            top_level(sample_home, ".ssh", "Documents", "project", "secrets.txt"),
            [str(sample_home / ".ssh")],
            layout,
            gateway_token=TOKEN,
        )
        assert plan.paths_to_mount == (str(sample_home / "Documents"), str(sample_home / "project"))
        assert plan.volume_specs[-2:] == [
            f"{sample_home / 'Documents'}:/home/node/.openclaw/workspace/Documents",
            f"{sample_home / 'project'}:/home/node/.openclaw/workspace/project",
        ]
        assert plan.ignore_list.patterns == {str(sample_home / ".ssh")}
        assert not any(".ssh" in spec for spec in plan.volume_specs)
        assert [s.reason for s in plan.skipped] == ["not a directory"]

    def test_no_mounted_path_is_under_a_denied_path(self, sample_home, layout):
        denied = [str(sample_home / "project"), str(sample_home / "Documents")]
        plan = compile_mount_plan(top_level(sample_home, "Documents", "project"), denied, layout, gateway_token=TOKEN)
        assert plan.paths_to_mount == ()
        assert len(plan.volume_mounts) == 15

    def test_state_directory_and_missing_paths_skipped(self, sample_home, layout):
        plan = compile_mount_plan(
            top_level(sample_home, ".openclaw", "gone"), [], layout, gateway_token=TOKEN
        )
        reasons = {s.path: s.reason for s in plan.skipped}
        assert reasons[str(sample_home / ".openclaw")] == "OpenClaw state directory is mounted separately"
        assert reasons[str(sample_home / "gone")] == "does not exist"

    def test_basename_collision_keeps_first(self, tmp_path, layout):
        first = tmp_path / "a" / "notes"
        second = tmp_path / "b" / "notes"
        first.mkdir(parents=True)
        second.mkdir(parents=True)
        plan = compile_mount_plan([str(first), str(second)], [], layout, gateway_token=TOKEN)
        assert plan.paths_to_mount == (str(first),)
        assert plan.skipped[0].path == str(second)
        assert "already used by" in plan.skipped[0].reason

    def test_fixed_token_is_deterministic(self, sample_home, layout):
        args = (top_level(sample_home, "Documents", "project"), [str(sample_home / ".ssh")], layout)
        assert compile_mount_plan(*args, gateway_token=TOKEN) == compile_mount_plan(*args, gateway_token=TOKEN)

    def test_generated_token(self, layout):
        token = generate_token()
        assert len(token) == 64
        assert int(token, 16) >= 0
        plan = compile_mount_plan([], [], layout)
        assert len(plan.gateway_token) == 64
        assert plan.environment["OPENCLAW_GATEWAY_TOKEN"] == plan.gateway_token

    def test_environment(self, layout):
        docker = DockerSettings(gateway_port=20000)
        plan = compile_mount_plan([], [], layout, gateway_token=TOKEN, docker=docker)
        assert plan.environment == {
            "OPENCLAW_CONFIG_DIR": str(layout.root),
            "OPENCLAW_WORKSPACE_DIR": str(layout.workspace),
            "OPENCLAW_GATEWAY_PORT": "20000",
            "OPENCLAW_BRIDGE_PORT": "18790",
            "OPENCLAW_GATEWAY_BIND": "lan",
            "OPENCLAW_GATEWAY_TOKEN": TOKEN,
        }


class TestConfigRewrite:
    def test_home_paths_replaced(self, layout):
        layout.config_file.write_text(json.dumps({"agents": {"defaults": {"workspace": f"{layout.home}/.openclaw/workspace"}}}))
        plan = compile_mount_plan([], [], layout, gateway_token=TOKEN)
        assert json.loads(plan.rewritten_config)["agents"]["defaults"]["workspace"] == "/home/node/.openclaw/workspace"
        assert str(layout.home) not in plan.rewritten_config
        assert plan.config_fallback_reason is None

    def test_missing_config_uses_minimal(self, layout):
        plan = compile_mount_plan([], [], layout, gateway_token=TOKEN)
        assert json.loads(plan.rewritten_config) == {"agents": {"defaults": {"workspace": "/home/node/.openclaw/workspace"}}}
        assert plan.config_fallback_reason is None

    def test_invalid_config_falls_back(self, layout):
        layout.config_file.write_text("{not json")
        plan = compile_mount_plan([], [], layout, gateway_token=TOKEN)
        assert plan.config_fallback_reason.startswith("invalid JSON")
        assert "agents" in json.loads(plan.rewritten_config)

    def test_invalid_config_strict(self, layout):
        layout.config_file.write_text("{not json")
        with pytest.raises(ConfigReadError) as exc_info:
            compile_mount_plan([], [], layout, gateway_token=TOKEN, strict_config=True)
        assert exc_info.value.path == layout.config_file


class TestWrite:
    def test_writes_all_artifacts(self, sample_home, layout):
        plan = compile_mount_plan(
            top_level(sample_home, ".ssh", "Documents"), [str(sample_home / ".ssh")], layout, gateway_token=TOKEN
        )
        artifacts = write_mount_plan(plan, layout)

        assert all(path.exists() for path in artifacts.all())
        compose = yaml.safe_load(artifacts.compose_file.read_text())
        gateway = compose["services"]["openclaw-gateway"]
        assert gateway["volumes"] == plan.volume_specs
        assert gateway["ports"] == ["${OPENCLAW_GATEWAY_PORT:-18789}:18789", "${OPENCLAW_BRIDGE_PORT:-18790}:18790"]
        assert compose["services"]["openclaw-cli"]["profiles"] == ["cli"]
        assert artifacts.compose_file.read_text().startswith("# Generated by clawignore")

        assert read_env_token(artifacts.env_file) == TOKEN
        assert read_ignore_file(artifacts.ignore_file) == {str(sample_home / ".ssh")}
        assert json.loads(artifacts.docker_config_file.read_text())

    def test_denied_ssh_listed_under_keys_header(self, sample_home, layout):
        plan = compile_mount_plan(
            top_level(sample_home, "Documents", ".ssh", "project"), [str(sample_home / ".ssh")], layout, gateway_token=TOKEN
        )
        write_mount_plan(plan, layout)
        text = layout.ignore_file.read_text()
        assert f"# Private keys & certificates\n{sample_home / '.ssh'}\n" in text
        assert "# Custom patterns" not in text

    def test_empty_selection_writes_baseline_only(self, layout):
        plan = compile_mount_plan([], [], layout, gateway_token=TOKEN)
        write_mount_plan(plan, layout)
        assert len(plan.volume_mounts) == 15
        text = layout.ignore_file.read_text()
        assert not any(comment in text for comment in CATEGORY_COMMENTS.values())
        assert read_ignore_file(layout.ignore_file) == set()

    def test_ignore_file_matches_latest_plan(self, sample_home, layout):
        paths = top_level(sample_home, "Documents", "project")
        first = compile_mount_plan(paths, [str(sample_home / "Documents")], layout, gateway_token=TOKEN)
        write_mount_plan(first, layout)
        assert read_ignore_file(layout.ignore_file) == {str(sample_home / "Documents")}

        second = compile_mount_plan(paths, [], layout, gateway_token=TOKEN)
        write_mount_plan(second, layout)
        assert read_ignore_file(layout.ignore_file) == set(second.ignore_list.patterns) == set()
        volumes = yaml.safe_load(layout.compose_file.read_text())["services"]["openclaw-gateway"]["volumes"]
        assert f"{sample_home / 'Documents'}:/home/node/.openclaw/workspace/Documents" in volumes

    def test_stale_ignore_file_is_replaced(self, sample_home, layout):
        layout.ignore_file.write_text("*.pem\n")
        plan = compile_mount_plan([], [str(sample_home / ".ssh")], layout, gateway_token=TOKEN)
        write_mount_plan(plan, layout)
        assert read_ignore_file(layout.ignore_file) == {str(sample_home / ".ssh")}

    def test_rewrite_is_stable(self, sample_home, layout):
        plan = compile_mount_plan(top_level(sample_home, "Documents"), [], layout, gateway_token=TOKEN)
        write_mount_plan(plan, layout)
        first = layout.compose_file.read_text()
        write_mount_plan(plan, layout)
        assert layout.compose_file.read_text() == first

    def test_write_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        layout = OpenClawLayout(home=tmp_path, root=blocker / ".openclaw", workspace=blocker / ".openclaw" / "workspace")
        plan = compile_mount_plan([], [], layout, gateway_token=TOKEN)
        with pytest.raises(ArtifactWriteError) as exc_info:
            write_mount_plan(plan, layout)
        assert exc_info.value.path == layout.compose_file

    def test_custom_image(self, layout):
        plan = compile_mount_plan([], [], layout, gateway_token=TOKEN)
        compose = yaml.safe_load(render_compose(plan, DockerSettings(image="example/openclaw:dev")))
        assert compose["services"]["openclaw-gateway"]["image"] == "example/openclaw:dev"


class TestReadEnvToken:
    def test_missing_file(self, tmp_path):
        assert read_env_token(tmp_path / ".env") is None

    def test_no_token_line(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("OPENCLAW_GATEWAY_PORT=18789\n")
        assert read_env_token(path) is None

    def test_token_line(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("# comment\nOPENCLAW_GATEWAY_TOKEN=abc123\n")
        assert read_env_token(path) == "abc123"
