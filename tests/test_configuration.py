from __future__ import annotations

import json
from pathlib import Path

import pytest

from desktop_bundler.configuration import (
    Environment,
    host_environment,
    load_configuration,
    validate_environment,
)
from desktop_bundler.errors import ConfigurationError, InvalidOSError


EXAMPLE = Path(__file__).resolve().parent.parent / "examples" / "hello" / "bundler.json"


def test_load_example_configuration() -> None:
    cfg = load_configuration(EXAMPLE)

    assert cfg.app_name == "Hello"
    assert cfg.environments == (
        Environment("darwin", "amd64"),
        Environment("linux", "amd64"),
        Environment("windows", "amd64"),
    )
    assert cfg.icon_path_darwin == "resources/icon.icns"
    assert cfg.output_path == "output"
    assert cfg.cache_path is None
    assert cfg.ldflags == {"X": ("main.Version=0.1.0",)}


def test_aliases_for_icon_paths(tmp_path: Path) -> None:
    path = tmp_path / "bundler.json"
    path.write_text(
        json.dumps({"app_name": "Foo", "app_icon_darwin_path": "a.icns", "app_icon_default_path": "a.ico"}),
        encoding="utf-8",
    )

    cfg = load_configuration(path)

    assert cfg.icon_path_darwin == "a.icns"
    assert cfg.icon_path_windows == "a.ico"
    assert cfg.environments == ()


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        "[]",
        json.dumps({"app_name": ""}),
        json.dumps({"app_name": "Foo", "environments": [{"os": "linux"}]}),
        json.dumps({"app_name": "Foo", "cache_path": 3}),
    ],
)
def test_malformed_configuration(tmp_path: Path, payload: str) -> None:
    path = tmp_path / "bundler.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_configuration(path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="opening file"):
        load_configuration(tmp_path / "bundler.json")


def test_validate_environment() -> None:
    for os_name in ("darwin", "linux", "windows"):
        validate_environment(Environment(os_name, "amd64"))
    with pytest.raises(InvalidOSError, match="OS freebsd is invalid"):
        validate_environment(Environment("freebsd", "amd64"))


def test_host_environment_uses_go_names() -> None:
    env = host_environment()

    assert env.os not in ("win32", "linux2")
    assert env.arch not in ("x86_64", "aarch64")
