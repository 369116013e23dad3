"""Tests for the confwatch CLI entry point (confwatch = confwatch.cli:main)."""

import json
import subprocess
import sys

import pytest

from confwatch import __version__
from confwatch.cli import main


def test_main_version_exits_zero_and_prints_version(capsys):
    assert main(["version"]) == 0
    out, _ = capsys.readouterr()
    assert out.strip() == __version__


def test_main_help_lists_commands(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])
    assert exc_info.value.code == 0
    out, _ = capsys.readouterr()
    assert "watch" in out
    assert "check" in out


def test_check_prints_decoded_json(config_file, capsys):
    assert main(["check", str(config_file)]) == 0
    out, _ = capsys.readouterr()
    assert json.loads(out) == {"Name": "Nic"}


def test_check_yaml_with_env(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("WHO", "Erik")
    path = tmp_path / "config.yaml"
    path.write_text("Name: ${WHO}\n", encoding="utf-8")
    assert main(["check", str(path), "--expand-env"]) == 0
    out, _ = capsys.readouterr()
    assert json.loads(out) == {"Name": "Erik"}


def test_check_invalid_file_exits_one(tmp_path, capsys):
    path = tmp_path / "config.json"
    path.write_text("{", encoding="utf-8")
    assert main(["check", str(path)]) == 1
    _, err = capsys.readouterr()
    assert "Error" in err


def test_watch_prints_loaded_value_and_exits_after_duration(config_file, capsys):
    assert main(["watch", str(config_file), "--print", "--interval", "0.01", "--duration", "0.05"]) == 0
    out, _ = capsys.readouterr()
    assert json.loads(out) == {"Name": "Nic"}


def test_watch_invalid_file_exits_one(tmp_path, capsys):
    path = tmp_path / "config.json"
    path.write_text("{", encoding="utf-8")
    assert main(["watch", str(path), "--duration", "0.01"]) == 1
    _, err = capsys.readouterr()
    assert "Error" in err


def test_watch_with_settings_file(config_file, tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("CONFWATCH_STRATEGY", raising=False)
    monkeypatch.delenv("CONFWATCH_INTERVAL", raising=False)
    settings = tmp_path / "watch.yaml"
    settings.write_text(f"path: {config_file.name}\ninterval: 0.01\n", encoding="utf-8")
    assert main(["watch", "--settings", str(settings), "--print", "--duration", "0.05"]) == 0
    out, _ = capsys.readouterr()
    assert json.loads(out) == {"Name": "Nic"}


def test_module_main_version_via_subprocess():
    """Running python -m confwatch.cli version exits 0 and prints version."""
    result = subprocess.run(
        [sys.executable, "-m", "confwatch.cli", "version"],
        capture_output=True,
        text=True,
        timeout=10,
    )
    assert result.returncode == 0
    assert __version__ in result.stdout
