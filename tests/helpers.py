"""Sample profiles and file helpers shared by the tests."""

import json


BAR = {
    "env": {
        "ANTHROPIC_BASE_URL": "https://api.bar.com/v1",
        "ANTHROPIC_AUTH_TOKEN": "sk-bar",
    }
}

FOO = {
    "env": {
        "ANTHROPIC_BASE_URL": "https://api.foo.com/v1",
        "ANTHROPIC_AUTH_TOKEN": "sk-foo",
    }
}


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")


def read_json(path):
    return json.loads(path.read_text())


def snapshot(paths):
    """Raw bytes of every file ccm manages."""
    files = sorted(paths.config_dir.rglob("*")) + [paths.settings_path]
    return {str(f): f.read_bytes() for f in files if f.is_file()}
