"""Shared test fixtures."""

import pytest

from ccm.config import Paths

from helpers import BAR, FOO, write_json


@pytest.fixture
def paths(tmp_path):
    """Isolated config dir and settings file under tmp_path."""
    return Paths(
        config_dir=tmp_path / "ccm",
        settings_path=tmp_path / "claude" / "settings.json",
    )


@pytest.fixture
def seeded(paths):
    """Profiles bar and foo, bar active, settings.json matching bar."""
    write_json(paths.profile_path("bar"), BAR)
    write_json(paths.profile_path("foo"), FOO)
    paths.current_file.write_text("bar\n")
    write_json(paths.settings_path, BAR)
    return paths


@pytest.fixture
def drifted(seeded):
    """Like seeded, but settings.json was edited after switching to bar."""
    write_json(
        seeded.settings_path,
        {
            "env": {
                "ANTHROPIC_BASE_URL": "https://api.bar.com/v1",
                "ANTHROPIC_AUTH_TOKEN": "sk-bar-MODIFIED",
                "API_TIMEOUT_MS": "60000",
            }
        },
    )
    return seeded


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """An empty project directory that is also the working directory."""
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project
