"""Tests for the CLI interface."""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from ccm.cli import cli, mask_secret

from helpers import BAR, FOO, read_json, snapshot, write_json


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, paths):
    """Run the CLI against the isolated paths fixture."""

    def _invoke(*args, input=None):
        return runner.invoke(
            cli,
            [
                "--config-dir",
                str(paths.config_dir),
                "--settings",
                str(paths.settings_path),
                *args,
            ],
            input=input,
        )

    return _invoke


class TestVersion:
    def test_version_flag(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "ccm" in result.output


class TestAdd:
    def test_prompts_and_writes(self, invoke, paths):
        answers = "https://api.example.com\nsk-secret\nopus\n\n60000\n1\n"
        result = invoke("add", "work", "--env", "EXTRA=yes", "--env", "broken", input=answers)

        assert result.exit_code == 0, result.output
        assert "created" in result.output
        assert "Ignoring invalid env format 'broken'" in result.output
        assert read_json(paths.profile_path("work")) == {
            "env": {
                "ANTHROPIC_BASE_URL": "https://api.example.com",
                "ANTHROPIC_AUTH_TOKEN": "sk-secret",
                "ANTHROPIC_MODEL": "opus",
                "API_TIMEOUT_MS": "60000",
                "CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC": "1",
                "EXTRA": "yes",
            }
        }

    def test_duplicate_fails_before_prompting(self, invoke, seeded):
        result = invoke("add", "bar")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_empty_token_rejected(self, invoke, paths):
        result = invoke("add", "work", input="https://x\n \n\n\n\n\n")
        assert result.exit_code == 1
        assert "ANTHROPIC_AUTH_TOKEN" in result.output
        assert not paths.profile_path("work").exists()


class TestList:
    def test_marks_current(self, invoke, seeded):
        result = invoke("list")
        assert result.exit_code == 0
        assert "bar" in result.output
        assert "(current)" in result.output
        assert "foo" in result.output

    def test_ls_alias(self, invoke, seeded):
        assert invoke("ls").output == invoke("list").output

    def test_empty(self, invoke):
        result = invoke("list")
        assert "No profiles yet" in result.output

    def test_dangling_pointer_warned(self, invoke, seeded):
        seeded.current_file.write_text("ghost\n")
        result = invoke("list")
        assert result.exit_code == 0
        assert "'ghost' no longer exists" in result.output


class TestShow:
    def test_masks_token(self, invoke, paths):
        write_json(paths.profile_path("work"), {
            "env": {"ANTHROPIC_BASE_URL": "https://x", "ANTHROPIC_AUTH_TOKEN": "sk-0123456789"}
        })
        result = invoke("show", "work")
        assert result.exit_code == 0
        assert "sk-0123456789" not in result.output
        assert mask_secret("sk-0123456789") in result.output

    def test_reveal(self, invoke, seeded):
        result = invoke("show", "foo", "--reveal")
        assert '"sk-foo"' in result.output

    def test_missing(self, invoke, paths):
        result = invoke("show", "ghost")
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_rejects_path_like_name(self, invoke, seeded):
        write_json(seeded.config_dir / "outside.json", FOO)
        result = invoke("show", "../outside", "--reveal")
        assert result.exit_code == 1
        assert "sk-foo" not in result.output


class TestCurrent:
    def test_prints_name(self, invoke, seeded):
        assert invoke("current").output.strip() == "bar"

    def test_none(self, invoke):
        assert "No profile is currently active" in invoke("current").output


class TestRemove:
    def test_refuses_active(self, invoke, seeded):
        result = invoke("remove", "bar")
        assert result.exit_code == 1
        assert "currently active" in result.output
        assert seeded.profile_path("bar").exists()

    def test_rm_alias(self, invoke, seeded):
        result = invoke("rm", "foo")
        assert result.exit_code == 0
        assert not seeded.profile_path("foo").exists()


class TestRename:
    def test_renames(self, invoke, seeded):
        result = invoke("rename", "bar", "baz")
        assert result.exit_code == 0
        assert seeded.current_file.read_text().strip() == "baz"


class TestEdit:
    @patch("ccm.cli.click.edit")
    def test_validates_after_editing(self, mock_edit, invoke, seeded):
        def corrupt(filename):
            with open(filename, "w") as f:
                f.write("{oops")

        mock_edit.side_effect = corrupt
        result = invoke("edit", "foo")
        assert result.exit_code == 1
        assert "Malformed" in result.output

    @patch("ccm.cli.click.edit")
    def test_ok(self, mock_edit, invoke, seeded):
        result = invoke("edit", "foo")
        assert result.exit_code == 0
        mock_edit.assert_called_once_with(filename=str(seeded.profile_path("foo")))


class TestSwitch:
    def test_no_conflict(self, invoke, seeded):
        result = invoke("switch", "foo")
        assert result.exit_code == 0
        assert "Switched Claude settings to profile 'foo'" in result.output
        assert "mismatch" not in result.output
        assert read_json(seeded.settings_path) == FOO

    def test_swc_alias(self, invoke, seeded):
        assert invoke("swc", "foo").exit_code == 0

    def test_missing_profile(self, invoke, seeded):
        result = invoke("switch", "ghost")
        assert result.exit_code == 1
        assert "'ghost' does not exist" in result.output

    def test_conflict_absorb(self, invoke, drifted):
        result = invoke("switch", "foo", input="2\n")

        assert result.exit_code == 0, result.output
        assert "Configuration mismatch detected!" in result.output
        assert "ANTHROPIC_AUTH_TOKEN" in result.output
        assert "Profile 'bar' updated" in result.output

        bar = read_json(drifted.profile_path("bar"))
        assert bar["env"]["ANTHROPIC_AUTH_TOKEN"] == "sk-bar-MODIFIED"
        assert bar["env"]["API_TIMEOUT_MS"] == "60000"
        assert read_json(drifted.settings_path) == FOO
        assert drifted.current_file.read_text().strip() == "foo"

    def test_conflict_direct(self, invoke, drifted):
        result = invoke("switch", "foo", input="1\n")
        assert result.exit_code == 0
        assert read_json(drifted.profile_path("bar")) == BAR
        assert read_json(drifted.settings_path) == FOO

    @pytest.mark.parametrize("choice", ["3\n", "9\n", "\n"])
    def test_conflict_cancel(self, invoke, drifted, choice):
        before = snapshot(drifted)
        result = invoke("switch", "foo", input=choice)
        assert result.exit_code == 0
        assert "cancelled" in result.output
        assert snapshot(drifted) == before

    def test_undecodable_settings(self, invoke, seeded):
        seeded.settings_path.write_bytes(b"\xff\xfe{}")
        result = invoke("switch", "foo")
        assert result.exit_code == 1
        assert "Malformed" in result.output
        assert "Traceback" not in result.output


class TestSync:
    def test_in_sync(self, invoke, seeded):
        result = invoke("sync")
        assert "already in sync" in result.output

    def test_syncs(self, invoke, drifted):
        result = invoke("sync")
        assert result.exit_code == 0
        assert "API_TIMEOUT_MS" in result.output
        assert "Synced current profile 'bar'" in result.output
        assert read_json(drifted.profile_path("bar")) == read_json(drifted.settings_path)

    def test_nothing_to_sync(self, invoke):
        result = invoke("sync")
        assert result.exit_code == 0
        assert "Nothing to sync" in result.output


class TestImportCurrent:
    def test_imports(self, invoke, paths):
        write_json(paths.settings_path, FOO)
        result = invoke("import-current", "work")
        assert result.exit_code == 0
        assert read_json(paths.profile_path("work")) == FOO
        assert paths.current_file.read_text().strip() == "work"

    def test_no_settings(self, invoke):
        result = invoke("import-current", "work")
        assert result.exit_code == 1
        assert "No Claude settings found" in result.output


class TestRun:
    def test_requires_current(self, invoke):
        result = invoke("run")
        assert result.exit_code == 1
        assert "No profile is currently active" in result.output

    @patch("ccm.cli.subprocess.run")
    @patch("ccm.cli.shutil.which")
    def test_launches_claude(self, mock_which, mock_run, invoke, seeded):
        mock_which.return_value = "/usr/bin/claude"
        mock_run.return_value = MagicMock(returncode=0)

        result = invoke("run", "--resume")

        assert result.exit_code == 0
        mock_run.assert_called_once_with(["/usr/bin/claude", "--resume"])

    @patch("ccm.cli.shutil.which")
    def test_missing_binary(self, mock_which, invoke, seeded):
        mock_which.return_value = None
        result = invoke("run")
        assert result.exit_code == 1
        assert "not found in PATH" in result.output


class TestProjectMode:
    def test_switch_merges_into_local_settings(self, invoke, seeded, project_dir):
        local = project_dir / ".claude" / "settings.local.json"
        write_json(local, {"permissions": {"allow": ["Bash"]}})

        result = invoke("switch", "--project", "foo")

        assert result.exit_code == 0, result.output
        assert "for project" in result.output
        assert read_json(local) == {"permissions": {"allow": ["Bash"]}, **FOO}
        assert read_json(seeded.settings_path) == BAR
        assert seeded.current_file.read_text().strip() == "bar"

    def test_list_marks_project_profile(self, invoke, seeded, project_dir):
        invoke("switch", "-p", "foo")
        result = invoke("list")
        assert "(current)" in result.output
        assert "(current project)" in result.output

    def test_remove_refuses_project_profile(self, invoke, seeded, project_dir):
        invoke("switch", "-p", "foo")
        result = invoke("remove", "foo")
        assert result.exit_code == 1
        assert "this project" in result.output
        assert seeded.profile_path("foo").exists()

    def test_clear_project(self, invoke, seeded, project_dir):
        local = project_dir / ".claude" / "settings.local.json"
        write_json(local, {"permissions": {"allow": ["Bash"]}})
        invoke("switch", "-p", "foo")

        result = invoke("clear-project")

        assert result.exit_code == 0, result.output
        assert "Using the global profile" in result.output
        assert read_json(local) == {"permissions": {"allow": ["Bash"]}}
        assert "(current project)" not in invoke("list").output

    def test_clear_project_removes_empty_file(self, invoke, seeded, project_dir):
        invoke("switch", "-p", "foo")
        result = invoke("clear-project")
        assert "no remaining settings" in result.output
        assert not (project_dir / ".claude" / "settings.local.json").exists()

    def test_clear_project_without_mapping(self, invoke, seeded, project_dir):
        result = invoke("clear-project")
        assert result.exit_code == 0
        assert "No project-specific profile" in result.output
