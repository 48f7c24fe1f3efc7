"""Filesystem helpers that wrap ``OSError`` into :class:`FilesystemError`."""

import logging
import os
import pathlib
import shutil

from desktop_bundler.errors import FilesystemError


def make_dirs(path: pathlib.Path, *, logger: logging.Logger) -> None:
    """Create a directory and its parents (no-op if present).

    :param path: Directory to create.
    :param logger: Logger for debug output.
    :raises FilesystemError: If creation fails.
    """

    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"desktop-bundler: creating {path}")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"mkdirall {path} failed") from e


def remove_tree(path: pathlib.Path, *, logger: logging.Logger) -> None:
    """Remove a file or directory tree (no-op if absent).

    :param path: Path to remove.
    :param logger: Logger for debug output.
    :raises FilesystemError: If removal fails.
    """

    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"desktop-bundler: removing {path}")
    try:
        if path.is_dir() is True and path.is_symlink() is False:
            shutil.rmtree(path)
        elif path.exists() is True or path.is_symlink() is True:
            path.unlink()
    except OSError as e:
        raise FilesystemError(f"removing {path} failed") from e


def reset_dir(path: pathlib.Path, *, logger: logging.Logger) -> None:
    """Remove a directory and recreate it empty."""

    remove_tree(path, logger=logger)
    make_dirs(path, logger=logger)


def copy_file(src: pathlib.Path, dst: pathlib.Path, *, logger: logging.Logger) -> None:
    """Copy a file, creating the destination's parent directory.

    :param src: Source file.
    :param dst: Destination file.
    :param logger: Logger for debug output.
    :raises FilesystemError: If the copy fails.
    """

    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"desktop-bundler: copying {src} to {dst}")
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
    except OSError as e:
        raise FilesystemError(f"copying {src} to {dst} failed") from e


def move(src: pathlib.Path, dst: pathlib.Path, *, logger: logging.Logger) -> None:
    """Move a file, replacing any existing destination.

    :param src: Source path.
    :param dst: Destination path.
    :param logger: Logger for debug output.
    :raises FilesystemError: If the move fails.
    """

    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"desktop-bundler: moving {src} to {dst}")
    try:
        shutil.move(os.fspath(src), os.fspath(dst))
    except OSError as e:
        raise FilesystemError(f"moving {src} to {dst} failed") from e


def make_executable(path: pathlib.Path, *, logger: logging.Logger) -> None:
    """Mark a file executable (``0o755``).

    :param path: File to chmod.
    :param logger: Logger for debug output.
    :raises FilesystemError: If chmod fails.
    """

    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"desktop-bundler: chmoding {path}")
    try:
        path.chmod(0o755)
    except OSError as e:
        raise FilesystemError(f"chmoding {path} failed") from e
