"""Command line interface for desktop-bundler."""

import argparse
import dataclasses
import logging
import pathlib
import sys

from desktop_bundler.bundler import Bundler
from desktop_bundler.configuration import Configuration, Environment, host_environment, load_configuration
from desktop_bundler.errors import BundleError
from desktop_bundler.ldflags import LDFlags


def _configure_logging(*, verbose: int, quiet: int) -> logging.Logger:
    """Configure the desktop-bundler logger.

    :param verbose: Verbosity count (0+).
    :param quiet: Quietness count (0+).
    :returns: Configured logger.
    """

    level: int = logging.INFO
    if quiet >= 2:
        level = logging.ERROR
    elif quiet >= 1:
        level = logging.WARNING
    elif verbose >= 1:
        level = logging.DEBUG

    logger: logging.Logger = logging.getLogger("desktop_bundler")
    logger.setLevel(level)
    logger.propagate = False

    handler: logging.Handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def _add_common_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=None,
        help="Path to the configuration file (defaults to ./bundler.json).",
    )
    p.add_argument(
        "-a",
        "--astilectron",
        type=str,
        default=None,
        help="Use a local astilectron checkout or archive instead of downloading it.",
    )
    p.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Override the configured output path.",
    )
    p.add_argument("-d", "--darwin", action="store_true", help="Add darwin/<host arch> to the environments.")
    p.add_argument("-l", "--linux", action="store_true", help="Add linux/<host arch> to the environments.")
    p.add_argument("-w", "--windows", action="store_true", help="Add windows/<host arch> to the environments.")
    p.add_argument(
        "--ldflags",
        action="append",
        default=[],
        metavar="KEY[:V1,V2]",
        help="Extra linker flag, e.g. 'X:main.Version=1.0' or 's'. Repeatable.",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable verbose logging. Pass multiple times for more detail.",
    )
    p.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Reduce logging. Pass multiple times to suppress more output.",
    )


def build_configuration(ns: argparse.Namespace) -> Configuration:
    """Load the configuration file and apply command-line overrides.

    :param ns: Parsed arguments.
    :returns: Final configuration.
    :raises ConfigurationError: If the file cannot be loaded.
    """

    config_path: pathlib.Path = ns.config if ns.config is not None else pathlib.Path.cwd() / "bundler.json"
    cfg: Configuration = load_configuration(config_path)

    if ns.output is not None:
        cfg = dataclasses.replace(cfg, output_path=ns.output)
    if ns.astilectron is not None:
        cfg = dataclasses.replace(cfg, astilectron_path=ns.astilectron)

    host_arch: str = host_environment().arch
    environments: list[Environment] = list(cfg.environments)
    for flag, os_name in ((ns.darwin, "darwin"), (ns.linux, "linux"), (ns.windows, "windows")):
        if flag is True:
            environments.append(Environment(os=os_name, arch=host_arch))
    if len(environments) == 0:
        environments.append(host_environment())

    ldflags: LDFlags = LDFlags.from_mapping(cfg.ldflags)
    for spec in ns.ldflags:
        ldflags.set(spec)

    return dataclasses.replace(
        cfg,
        environments=tuple(environments),
        ldflags={k: tuple(v) for k, v in ldflags.items()},
    )


def main(argv: list[str] | None = None) -> int:
    """Run the desktop-bundler CLI.

    :param argv: Optional argv list (excluding program name).
    :returns: Exit code.
    """

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="desktop-bundler",
        description="Bundle a Go + Electron app into OS-native packages.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_bundle = subparsers.add_parser("bundle", help="Build and package every environment.")
    _add_common_arguments(p_bundle)
    p_bind = subparsers.add_parser("bind-data", help="Provision vendor/ and regenerate embedded sources only.")
    _add_common_arguments(p_bind)
    p_clear = subparsers.add_parser("clear-cache", help="Remove the vendor archive cache.")
    _add_common_arguments(p_clear)

    ns = parser.parse_args(argv)
    logger: logging.Logger = _configure_logging(verbose=ns.verbose, quiet=ns.quiet)

    try:
        bundler: Bundler = Bundler(build_configuration(ns), logger=logger)
        if ns.command == "bundle":
            bundler.bundle()
        elif ns.command == "bind-data":
            for env in bundler.environments:
                bundler.bind_data(env)
        elif ns.command == "clear-cache":
            bundler.clear_cache()
        else:
            raise AssertionError(f"Unhandled command: {ns.command}")
    except BundleError as e:
        logger.error(f"desktop-bundler: {ns.command} failed: {e}")
        return 1
    return 0
