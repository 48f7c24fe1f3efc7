"""Vendor provisioning.

Two binary archives must be present in the project's ``vendor/`` directory
before compiling:

- the core runtime (astilectron), OS-independent;
- the engine (Electron), specific to the target OS and architecture.

Archives are downloaded once into a cache directory. Presence of the cache
file is the only cache-hit signal; there is no checksum or expiry. The vendor
directory itself is recreated from empty for every environment.
"""

import logging
import pathlib
import time
import zipfile

import requests

from desktop_bundler import fsops
from desktop_bundler.configuration import Environment
from desktop_bundler.errors import BundleError, DownloadError, FilesystemError


CORE_VERSION: str = "0.6.0"
ENGINE_VERSION: str = "1.6.5"

CORE_ZIP_NAME: str = "astilectron.zip"
ENGINE_ZIP_NAME: str = "electron.zip"

_CHUNK_SIZE: int = 1024 * 1024


def core_download_url(version: str = CORE_VERSION) -> str:
    return f"https://github.com/asticode/astilectron/archive/v{version}.zip"


def engine_download_url(*, os_name: str, arch: str, version: str = ENGINE_VERSION) -> str:
    """Build the Electron release URL for a Go ``(GOOS, GOARCH)`` pair.

    :param os_name: Go OS name.
    :param arch: Go arch name.
    :param version: Electron version.
    :returns: Download URL.
    """

    os_map: dict[str, str] = {"darwin": "darwin", "linux": "linux", "windows": "win32"}
    arch_map: dict[str, str] = {"amd64": "x64", "386": "ia32", "arm": "armv7l", "arm64": "arm64"}
    electron_os: str = os_map.get(os_name, os_name)
    electron_arch: str = arch_map.get(arch, arch)
    return (
        f"https://github.com/electron/electron/releases/download/v{version}/"
        f"electron-v{version}-{electron_os}-{electron_arch}.zip"
    )


def core_cache_path(cache_dir: pathlib.Path, version: str = CORE_VERSION) -> pathlib.Path:
    return cache_dir / f"astilectron-{version}.zip"


def engine_cache_path(
    cache_dir: pathlib.Path, *, os_name: str, arch: str, version: str = ENGINE_VERSION
) -> pathlib.Path:
    return cache_dir / f"electron-{os_name}-{arch}-{version}.zip"


def download(
    *,
    url: str,
    dst: pathlib.Path,
    session: requests.Session,
    logger: logging.Logger,
) -> None:
    """Download ``url`` into ``dst`` with a blocking, streamed GET.

    The body is written to a ``.part`` sibling and renamed into place once
    complete, so an interrupted transfer never leaves a file at ``dst``.

    :param url: Source URL.
    :param dst: Destination file.
    :param session: HTTP session.
    :param logger: Logger for progress output.
    :raises DownloadError: On any non-success transfer.
    """

    logger.info(f"desktop-bundler: downloading {url}")
    tmp: pathlib.Path = dst.with_name(dst.name + ".part")
    t0: float = time.perf_counter()
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        with session.get(url, stream=True) as response:
            response.raise_for_status()
            with open(tmp, "wb") as f:
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        tmp.replace(dst)
    except requests.RequestException as e:
        tmp.unlink(missing_ok=True)
        raise DownloadError(f"downloading {url} into {dst} failed: {e}") from e
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise DownloadError(f"writing {url} into {dst} failed") from e
    t1: float = time.perf_counter()

    size: int = dst.stat().st_size
    logger.info(f"desktop-bundler: downloaded {dst.name} ({size / (1024 * 1024):.1f} MiB) in {t1 - t0:.2f}s")


def provision_vendor_zip(
    *,
    download_url: str,
    cache_path: pathlib.Path,
    vendor_path: pathlib.Path,
    session: requests.Session,
    logger: logging.Logger,
) -> None:
    """Make sure ``cache_path`` exists (download if absent), then copy it to ``vendor_path``.

    :param download_url: Where to fetch the archive from on a cache miss.
    :param cache_path: Cached archive path.
    :param vendor_path: Destination inside the vendor directory.
    :param session: HTTP session.
    :param logger: Logger for progress output.
    :raises DownloadError: If the download fails.
    :raises FilesystemError: If the copy fails.
    """

    if cache_path.exists() is False:
        logger.info(f"desktop-bundler: cache miss for {cache_path.name}")
        download(url=download_url, dst=cache_path, session=session, logger=logger)
    else:
        logger.info(f"desktop-bundler: cache hit for {cache_path.name}")
        if logger.isEnabledFor(logging.DEBUG) is True:
            logger.debug(f"desktop-bundler: {cache_path} already exists, skipping download of {download_url}")

    fsops.copy_file(cache_path, vendor_path, logger=logger)


def stage_local_core(*, src: pathlib.Path, vendor_path: pathlib.Path, logger: logging.Logger) -> None:
    """Stage a local astilectron copy as the core archive.

    A directory is zipped under its own name (the layout of a GitHub source
    archive); a file is copied as is. The cache is not involved.

    :param src: Local checkout directory or archive.
    :param vendor_path: Destination inside the vendor directory.
    :param logger: Logger for progress output.
    :raises FilesystemError: If ``src`` is missing or cannot be read.
    """

    logger.info(f"desktop-bundler: using local astilectron {src}")
    if src.is_dir() is False:
        fsops.copy_file(src, vendor_path, logger=logger)
        return

    try:
        with zipfile.ZipFile(vendor_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            paths: list[pathlib.Path] = []
            for p in src.rglob("*"):
                if p.is_file() is True:
                    paths.append(p)
            for p in sorted(paths):
                zf.write(p, arcname=f"{src.name}/{p.relative_to(src).as_posix()}")
    except OSError as e:
        raise FilesystemError(f"zipping {src} into {vendor_path} failed") from e


def provision_vendor(
    *,
    env: Environment,
    vendor_dir: pathlib.Path,
    cache_dir: pathlib.Path,
    session: requests.Session,
    logger: logging.Logger,
    core_path: pathlib.Path | None = None,
) -> None:
    """Recreate ``vendor_dir`` and stage the core and engine archives into it.

    :param env: Target environment (selects the engine archive).
    :param vendor_dir: Vendor working directory.
    :param cache_dir: Archive cache directory.
    :param session: HTTP session.
    :param core_path: Optional local astilectron checkout (directory) or
        archive used instead of the downloaded core archive.
    :param logger: Logger for progress output.
    :raises BundleError: If any step fails.
    """

    fsops.reset_dir(vendor_dir, logger=logger)

    try:
        if core_path is not None:
            stage_local_core(src=core_path, vendor_path=vendor_dir / CORE_ZIP_NAME, logger=logger)
        else:
            provision_vendor_zip(
                download_url=core_download_url(),
                cache_path=core_cache_path(cache_dir),
                vendor_path=vendor_dir / CORE_ZIP_NAME,
                session=session,
                logger=logger,
            )
    except BundleError as e:
        raise type(e)(f"provisioning astilectron vendor failed: {e}") from e

    try:
        provision_vendor_zip(
            download_url=engine_download_url(os_name=env.os, arch=env.arch),
            cache_path=engine_cache_path(cache_dir, os_name=env.os, arch=env.arch),
            vendor_path=vendor_dir / ENGINE_ZIP_NAME,
            session=session,
            logger=logger,
        )
    except BundleError as e:
        raise type(e)(f"provisioning electron vendor for OS {env.os} and arch {env.arch} failed: {e}") from e
