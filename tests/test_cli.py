from __future__ import annotations

import argparse
import json
from pathlib import Path

import pytest

from desktop_bundler import cli
from desktop_bundler.configuration import Environment


def _write_config(tmp_path: Path, **extra) -> Path:
    path = tmp_path / "bundler.json"
    payload = {"app_name": "Foo", "cache_path": str(tmp_path / "cache"), "input_path": str(tmp_path), **extra}
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_flags_add_environments_and_ldflags(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "host_environment", lambda: Environment("linux", "arm64"))
    config = _write_config(tmp_path, environments=[{"os": "darwin", "arch": "amd64"}], ldflags={"X": ["a=1"]})
    parser_ns = ["bundle", "-c", str(config), "-w", "-l", "-o", "dist", "--ldflags", "X:b=2", "--ldflags", "s"]

    captured = {}

    class Recorder:
        def __init__(self, cfg, logger):
            captured["cfg"] = cfg
            self.environments = cfg.environments

        def bundle(self) -> None:
            captured["bundled"] = True

    monkeypatch.setattr(cli, "Bundler", Recorder)

    assert cli.main(parser_ns) == 0

    cfg = captured["cfg"]
    assert captured["bundled"] is True
    assert cfg.output_path == "dist"
    assert cfg.environments == (
        Environment("darwin", "amd64"),
        Environment("linux", "arm64"),
        Environment("windows", "arm64"),
    )
    assert cfg.ldflags == {"X": ("a=1", "b=2"), "s": ()}


def test_defaults_to_host_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "host_environment", lambda: Environment("linux", "amd64"))
    monkeypatch.chdir(tmp_path)
    _write_config(tmp_path)

    ns = argparse.Namespace(
        config=None, output=None, astilectron=None, darwin=False, linux=False, windows=False, ldflags=[]
    )

    cfg = cli.build_configuration(ns)

    assert cfg.environments == (Environment("linux", "amd64"),)


def test_invalid_os_reports_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = _write_config(tmp_path, environments=[{"os": "beos", "arch": "x86"}])

    assert cli.main(["bundle", "-c", str(config)]) == 1

    assert "OS beos is invalid" in capsys.readouterr().err


def test_clear_cache(tmp_path: Path) -> None:
    config = _write_config(tmp_path, environments=[{"os": "linux", "arch": "amd64"}])
    (tmp_path / "cache").mkdir()

    assert cli.main(["clear-cache", "-c", str(config), "-q"]) == 0

    assert not (tmp_path / "cache").exists()


def test_missing_config_file(tmp_path: Path) -> None:
    assert cli.main(["bundle", "-c", str(tmp_path / "absent.json")]) == 1


def test_clear_cache_with_shallow_input_path(tmp_path: Path) -> None:
    config = _write_config(tmp_path, input_path="/app")
    (tmp_path / "cache").mkdir()

    assert cli.main(["clear-cache", "-c", str(config), "-q"]) == 0

    assert not (tmp_path / "cache").exists()


def test_astilectron_flag_overrides_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = _write_config(tmp_path, astilectron_path="/from/config", environments=[{"os": "linux", "arch": "amd64"}])

    captured = {}

    class Recorder:
        def __init__(self, cfg, logger):
            captured["cfg"] = cfg
            self.environments = cfg.environments

        def bind_data(self, env: Environment) -> None:
            captured.setdefault("bound", []).append(env)

    monkeypatch.setattr(cli, "Bundler", Recorder)

    assert cli.main(["bind-data", "-c", str(config), "-a", "/src/astilectron"]) == 0

    assert captured["cfg"].astilectron_path == "/src/astilectron"
    assert captured["bound"] == [Environment("linux", "amd64")]


def test_astilectron_path_read_from_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "host_environment", lambda: Environment("linux", "amd64"))
    config = _write_config(tmp_path, astilectron_path="/from/config")

    ns = argparse.Namespace(
        config=config, output=None, astilectron=None, darwin=False, linux=False, windows=False, ldflags=[]
    )

    assert cli.build_configuration(ns).astilectron_path == "/from/config"


def test_empty_ldflag_values_report_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = _write_config(tmp_path)

    assert cli.main(["bundle", "-c", str(config), "--ldflags", "X:"]) == 1

    assert "ldflag 'X:' has no values" in capsys.readouterr().err
