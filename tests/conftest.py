from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import pytest
import requests

from desktop_bundler import build


class DummyResponse:
    def __init__(self, status_code: int, body: bytes) -> None:
        self.status_code = status_code
        self._body = body

    def __enter__(self) -> "DummyResponse":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def iter_content(self, chunk_size: int = 1) -> list[bytes]:
        return [self._body[i : i + chunk_size] for i in range(0, len(self._body), chunk_size)]


class DummySession:
    def __init__(self, status_code: int = 200, body: bytes = b"PK\x03\x04archive") -> None:
        self.status_code = status_code
        self.body = body
        self.calls: list[str] = []

    def get(self, url: str, stream: bool = False, timeout: float | None = None) -> DummyResponse:
        self.calls.append(url)
        return DummyResponse(self.status_code, self.body)


class FakeRunner:
    """Stands in for ``subprocess.run``: writes the ``-o`` target of every call."""

    def __init__(self, returncode: int = 0, output: bytes = b"", fail_at: int | None = None) -> None:
        self.returncode = returncode
        self.output = output
        self.fail_at = fail_at
        self.calls: list[dict[str, Any]] = []

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        self.calls.append({"cmd": list(cmd), **kwargs})
        returncode = self.returncode
        if self.fail_at is not None and len(self.calls) - 1 == self.fail_at:
            returncode = 1
        if returncode == 0 and "-o" in cmd:
            out = Path(cmd[cmd.index("-o") + 1])
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_bytes(b"\x7fELF fake binary")
        return subprocess.CompletedProcess(cmd, returncode, stdout=self.output)


@pytest.fixture
def session() -> DummySession:
    return DummySession()


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr(build.subprocess, "run", fake)
    return fake


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "src" / "github.com" / "acme" / "foo"
    root.mkdir(parents=True)
    (root / "main.go").write_text("package main\n", encoding="utf-8")
    return root
