"""Go toolchain invocation."""

import logging
import os
import pathlib
import subprocess
from typing import Mapping

from desktop_bundler.configuration import Environment
from desktop_bundler.errors import BuildError, ConfigurationError
from desktop_bundler.ldflags import LDFlags


def build_path(path: pathlib.Path | str, *, source_root: pathlib.Path | str | None = None) -> str:
    """Derive the Go import path to build from a project directory.

    When ``source_root`` (``$GOPATH/src``) contains ``path``, it is stripped
    first. The import path is the last three remaining segments joined with
    ``/`` (``host/owner/repo``).

    :param path: Absolute project directory.
    :param source_root: Optional toolchain source root.
    :returns: Import path such as ``github.com/owner/app``.
    :raises ConfigurationError: If fewer than three segments remain.
    """

    p: pathlib.PurePath = pathlib.PurePath(path)
    if source_root is not None:
        root: pathlib.PurePath = pathlib.PurePath(source_root)
        if p.is_relative_to(root) is True:
            p = p.relative_to(root)

    parts: list[str] = [s for s in p.parts if s != p.anchor and s not in ("", "/", "\\")]
    if len(parts) < 3:
        raise ConfigurationError(f"{path} is not a valid build path: expected at least 3 segments, got {len(parts)}")
    return "/".join(parts[-3:])


def run_command(
    cmd: list[str],
    *,
    env: Mapping[str, str] | None = None,
    cwd: pathlib.Path | None = None,
    logger: logging.Logger,
) -> str:
    """Run an external tool, capturing stdout and stderr together.

    :param cmd: Command and arguments.
    :param env: Optional full environment for the child.
    :param cwd: Optional working directory.
    :param logger: Logger for debug output.
    :returns: Combined output.
    :raises BuildError: If the tool is missing or exits non-zero; the message
        carries the captured output verbatim.
    """

    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"desktop-bundler: executing {' '.join(cmd)}")

    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as e:
        raise BuildError(f"executing {cmd[0]} failed: {e}") from e

    output: str = proc.stdout.decode("utf-8", errors="replace") if proc.stdout else ""
    if proc.returncode != 0:
        raise BuildError(f"{' '.join(cmd)} failed (exit={proc.returncode}): {output}")
    return output


def build_env(env: Environment, base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Child environment for cross-compiling to ``env``.

    :param env: Target environment.
    :param base: Environment to extend (defaults to ``os.environ``).
    :returns: Environment with ``GOOS``/``GOARCH`` set.
    """

    child: dict[str, str] = dict(os.environ if base is None else base)
    child["GOOS"] = env.os
    child["GOARCH"] = env.arch
    return child


def build_binary(
    *,
    build_path: str,
    env: Environment,
    ldflags: LDFlags,
    output_path: pathlib.Path,
    input_path: pathlib.Path,
    base_env: Mapping[str, str] | None = None,
    logger: logging.Logger,
) -> None:
    """Compile the app for one environment with ``go build``.

    :param build_path: Import path to build.
    :param env: Target environment.
    :param ldflags: Linker flags.
    :param output_path: Where the raw binary is written.
    :param input_path: Project directory (the child's working directory).
    :param base_env: Environment to extend (defaults to ``os.environ``).
    :param logger: Logger for progress output.
    :raises BuildError: If the compiler fails.
    """

    logger.info(f"desktop-bundler: building for os {env.os} and arch {env.arch}")
    cmd: list[str] = ["go", "build", "-ldflags", ldflags.render(), "-o", str(output_path), build_path]
    output: str = run_command(cmd, env=build_env(env, base_env), cwd=input_path, logger=logger)
    if len(output) > 0 and logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"desktop-bundler: go build output:\n{output}")
