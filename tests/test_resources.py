from __future__ import annotations

import gzip
import logging
import re
from pathlib import Path

import pytest

from desktop_bundler import resources
from desktop_bundler.errors import FilesystemError
from desktop_bundler.resources import bind_directory


LOGGER = logging.getLogger("desktop_bundler")


def test_missing_directory_is_noop(tmp_path: Path) -> None:
    out = tmp_path / "bind.go"

    result = bind_directory(src_dir=tmp_path / "resources", output_path=out, prefix=tmp_path, logger=LOGGER)

    assert result is None
    assert not out.exists()


def test_file_instead_of_directory_is_noop(tmp_path: Path) -> None:
    (tmp_path / "resources").write_text("not a dir", encoding="utf-8")

    result = bind_directory(
        src_dir=tmp_path / "resources", output_path=tmp_path / "bind.go", prefix=tmp_path, logger=LOGGER
    )

    assert result is None


def test_binds_raw_files_by_relative_path(tmp_path: Path) -> None:
    res = tmp_path / "resources"
    (res / "app").mkdir(parents=True)
    (res / "app" / "index.html").write_bytes(b"<h1>")
    (res / "icon.png").write_bytes(b"\x00\xff")
    out = tmp_path / "bind.go"

    assert bind_directory(src_dir=res, output_path=out, prefix=tmp_path, compress=False, logger=LOGGER) == out

    text = out.read_text(encoding="utf-8")
    assert text.startswith("// Code generated by desktop-bundler. DO NOT EDIT.")
    assert "package main" in text
    assert '\t"resources/app/index.html": []byte("\\x3c\\x68\\x31\\x3e"),\n' in text
    assert '\t"resources/icon.png": []byte("\\x00\\xff"),\n' in text
    assert text.index("resources/app/index.html") < text.index("resources/icon.png")
    assert "func Asset(name string) ([]byte, error)" in text
    assert "func AssetNames() []string" in text
    assert "compress/gzip" not in text


def test_rebinding_regenerates_output(tmp_path: Path) -> None:
    res = tmp_path / "resources"
    res.mkdir()
    (res / "a.txt").write_bytes(b"a")
    out = tmp_path / "bind.go"
    bind_directory(src_dir=res, output_path=out, prefix=tmp_path, logger=LOGGER)

    (res / "a.txt").unlink()
    (res / "b.txt").write_bytes(b"b")
    bind_directory(src_dir=res, output_path=out, prefix=tmp_path, logger=LOGGER)

    text = out.read_text(encoding="utf-8")
    assert "resources/a.txt" not in text
    assert "resources/b.txt" in text


def test_symbol_prefixes_accessors(tmp_path: Path) -> None:
    vendor = tmp_path / "vendor"
    vendor.mkdir()
    (vendor / "electron.zip").write_bytes(b"PK")
    out = tmp_path / "bind_vendor.go"

    bind_directory(src_dir=vendor, output_path=out, prefix=tmp_path, symbol="Vendor", logger=LOGGER)

    text = out.read_text(encoding="utf-8")
    assert "var _vendorBindata = map[string][]byte{" in text
    assert '"vendor/electron.zip"' in text
    assert "func VendorAsset(name string)" in text
    assert "func VendorAssetNames() []string" in text


def _embedded(text: str, name: str) -> bytes:
    match = re.search(rf'\t"{re.escape(name)}": \[\]byte\("([^"]*)"\),\n', text)
    assert match is not None
    return bytes.fromhex(match.group(1).replace("\\x", ""))


def test_compressed_content_gunzips_to_original(tmp_path: Path) -> None:
    res = tmp_path / "resources"
    res.mkdir()
    payload = b"<html>" + b"hello " * 4096 + b"</html>"
    (res / "index.html").write_bytes(payload)
    (res / "empty.txt").write_bytes(b"")
    out = tmp_path / "bind.go"

    bind_directory(src_dir=res, output_path=out, prefix=tmp_path, logger=LOGGER)

    text = out.read_text(encoding="utf-8")
    for package in ('"bytes"', '"compress/gzip"', '"io"'):
        assert package in text
    assert "gzip.NewReader(bytes.NewReader(b))" in text

    embedded = _embedded(text, "resources/index.html")
    assert len(embedded) < len(payload)
    assert gzip.decompress(embedded) == payload
    assert gzip.decompress(_embedded(text, "resources/empty.txt")) == b""


def test_listing_failure_is_a_filesystem_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    res = tmp_path / "resources"
    res.mkdir()

    def unreadable(root: Path) -> list[Path]:
        raise PermissionError(13, "Permission denied", str(root))

    monkeypatch.setattr(resources, "list_files", unreadable)

    with pytest.raises(FilesystemError, match="binding .*resources into .*bind.go failed"):
        bind_directory(src_dir=res, output_path=tmp_path / "bind.go", prefix=tmp_path, logger=LOGGER)

    assert not (tmp_path / "bind.go").exists()
