"""Resource binding.

Turns a directory tree into a generated Go source file that embeds the bytes of
every file, keyed by its path relative to a prefix directory. The compiled
binary then needs no external resource files at runtime.

Content is gzip-compressed by default; the generated accessor decompresses it
on every call.
"""

import logging
import pathlib
import time
import zlib

from desktop_bundler.errors import FilesystemError


_HEADER: str = """// Code generated by desktop-bundler. DO NOT EDIT.

package {package}

import (
\t"fmt"
\t"sort"
)

"""

_GZIP_HEADER: str = """// Code generated by desktop-bundler. DO NOT EDIT.

package {package}

import (
\t"bytes"
\t"compress/gzip"
\t"fmt"
\t"io"
\t"sort"
)

"""

_ASSET: str = """
// {asset_func} returns the embedded content of the named file.
func {asset_func}(name string) ([]byte, error) {{
\tif b, ok := {table}[name]; ok {{
\t\treturn b, nil
\t}}
\treturn nil, fmt.Errorf("{asset_func} %s not found", name)
}}
"""

_GZIP_ASSET: str = """
// {asset_func} returns the decompressed content of the named file.
func {asset_func}(name string) ([]byte, error) {{
\tb, ok := {table}[name]
\tif !ok {{
\t\treturn nil, fmt.Errorf("{asset_func} %s not found", name)
\t}}
\tr, err := gzip.NewReader(bytes.NewReader(b))
\tif err != nil {{
\t\treturn nil, fmt.Errorf("{asset_func} %s: %w", name, err)
\t}}
\tdefer r.Close()
\treturn io.ReadAll(r)
}}
"""

_ASSET_NAMES: str = """
// {names_func} returns the sorted names of the embedded files.
func {names_func}() []string {{
\tnames := make([]string, 0, len({table}))
\tfor name := range {table} {{
\t\tnames = append(names, name)
\t}}
\tsort.Strings(names)
\treturn names
}}
"""

_ESCAPES: tuple[str, ...] = tuple(f"\\x{b:02x}" for b in range(256))

_READ_SIZE: int = 64 * 1024

# wbits 16 + MAX_WBITS selects the gzip container (zero mtime, no file name).
_GZIP_WBITS: int = 16 + zlib.MAX_WBITS


def list_files(root: pathlib.Path) -> list[pathlib.Path]:
    """Recursively list regular files under ``root``, sorted."""

    paths: list[pathlib.Path] = []
    for p in root.rglob("*"):
        if p.is_file() is True:
            paths.append(p)
    return sorted(paths)


def bind_directory(
    *,
    src_dir: pathlib.Path,
    output_path: pathlib.Path,
    prefix: pathlib.Path,
    package: str = "main",
    symbol: str = "",
    compress: bool = True,
    logger: logging.Logger,
) -> pathlib.Path | None:
    """Embed ``src_dir`` into a generated Go source file.

    A missing ``src_dir`` (or one that is not a directory) is a silent no-op.
    Otherwise ``output_path`` is always rewritten from scratch.

    :param src_dir: Directory to embed.
    :param output_path: Generated ``.go`` file.
    :param prefix: Directory that asset names are made relative to.
    :param package: Go package of the generated file.
    :param symbol: Prefix for the generated accessors (``""`` gives
        ``Asset``/``AssetNames``, ``"Vendor"`` gives ``VendorAsset``/...).
    :param compress: Gzip each file's content and decompress it in the accessor.
    :param logger: Logger for progress output.
    :returns: ``output_path``, or ``None`` when there was nothing to bind.
    :raises FilesystemError: If reading or writing fails.
    """

    if src_dir.is_dir() is False:
        if logger.isEnabledFor(logging.DEBUG) is True:
            logger.debug(f"desktop-bundler: {src_dir} is not a directory, skipping binding")
        return None

    t0: float = time.perf_counter()
    table: str = f"_{symbol[:1].lower()}{symbol[1:]}Bindata" if len(symbol) > 0 else "_bindata"
    header: str = _GZIP_HEADER if compress is True else _HEADER
    asset: str = _GZIP_ASSET if compress is True else _ASSET
    files: list[pathlib.Path] = []
    total: int = 0
    embedded: int = 0

    try:
        files = list_files(src_dir)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8", newline="\n") as out:
            out.write(header.format(package=package))
            out.write(f"var {table} = map[string][]byte{{\n")
            for p in files:
                name: str = p.relative_to(prefix).as_posix()
                out.write(f'\t"{_go_escape_name(name)}": []byte("')
                read, written = _write_escaped(p, out, compress=compress)
                total += read
                embedded += written
                out.write('"),\n')
            out.write("}\n")
            out.write(asset.format(asset_func=f"{symbol}Asset", table=table))
            out.write(_ASSET_NAMES.format(names_func=f"{symbol}AssetNames", table=table))
    except OSError as e:
        raise FilesystemError(f"binding {src_dir} into {output_path} failed") from e
    t1: float = time.perf_counter()

    logger.info(
        f"desktop-bundler: bound {src_dir.name} ({len(files)} files, {total / (1024 * 1024):.1f} MiB) "
        f"into {output_path.name} in {t1 - t0:.2f}s"
    )
    if compress is True and logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"desktop-bundler: {output_path.name} embeds {embedded} compressed bytes for {total} bytes")
    return output_path


def _write_escaped(path: pathlib.Path, out, *, compress: bool) -> tuple[int, int]:
    """Stream a file's bytes as ``\\xNN`` escapes, optionally gzipped.

    :param path: File to embed.
    :param out: Text stream to write to.
    :param compress: Gzip the content before escaping it.
    :returns: Bytes read and bytes embedded.
    """

    compressor = zlib.compressobj(zlib.Z_BEST_COMPRESSION, zlib.DEFLATED, _GZIP_WBITS) if compress is True else None
    read: int = 0
    written: int = 0
    with open(path, "rb") as f:
        while True:
            chunk: bytes = f.read(_READ_SIZE)
            if len(chunk) == 0:
                break
            read += len(chunk)
            if compressor is not None:
                chunk = compressor.compress(chunk)
            out.write("".join(_ESCAPES[b] for b in chunk))
            written += len(chunk)
    if compressor is not None:
        tail: bytes = compressor.flush()
        out.write("".join(_ESCAPES[b] for b in tail))
        written += len(tail)
    return read, written


def _go_escape_name(name: str) -> str:
    return name.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
