"""Bundle orchestration.

:class:`Bundler` resolves a :class:`~desktop_bundler.configuration.Configuration`
into absolute paths once, then drives the whole sequence:

- reset the cache and output roots;
- bind ``resources/`` into ``bind.go`` (once per run);
- for each environment, in order: validate the OS, recreate
  ``<output>/<os>-<arch>``, provision ``vendor/`` and bind it into
  ``bind_vendor.go``, link the Windows icon, build ldflags, ``go build``,
  finalize.

The first failure aborts the run. Environments already finished stay on disk.
"""

import datetime
import logging
import os
import pathlib
import tempfile
import time
from typing import Mapping

import requests

from desktop_bundler import fsops
from desktop_bundler.build import build_binary, build_path
from desktop_bundler.configuration import Configuration, Environment, validate_environment
from desktop_bundler.errors import BundleError, ConfigurationError
from desktop_bundler.finalize import FinalizeContext, finalize, prepare_windows
from desktop_bundler.ldflags import LDFlags
from desktop_bundler.resources import bind_directory
from desktop_bundler.vendor import provision_vendor


RESOURCES_BIND_NAME: str = "bind.go"
VENDOR_BIND_NAME: str = "bind_vendor.go"


class Bundler:
    """Bundles a Go + Electron app for every configured environment.

    :param configuration: Bundle configuration.
    :param session: Optional HTTP session used for vendor downloads.
    :param environ: Optional process environment (defaults to ``os.environ``);
        ``GOPATH`` is read from it and it is the base of the compiler's environment.
    :param logger: Optional logger for progress output.
    :raises InvalidOSError: If an environment names an unsupported OS.
    :raises ConfigurationError: If a path cannot be resolved.
    """

    def __init__(
        self,
        configuration: Configuration,
        *,
        session: requests.Session | None = None,
        environ: Mapping[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if logger is None:
            logger = logging.getLogger("desktop_bundler")
        self._logger: logging.Logger = logger
        self._session: requests.Session = session if session is not None else requests.Session()
        self._environ: dict[str, str] = dict(os.environ if environ is None else environ)

        if len(configuration.app_name) == 0:
            raise ConfigurationError("app name must not be empty")
        for env in configuration.environments:
            validate_environment(env)

        self.app_name: str = configuration.app_name
        self.environments: tuple[Environment, ...] = tuple(configuration.environments)
        self.extra_ldflags: dict[str, tuple[str, ...]] = dict(configuration.ldflags)

        cwd: pathlib.Path = pathlib.Path.cwd()
        self.cache_path: pathlib.Path = _resolve(
            configuration.cache_path, default=pathlib.Path(tempfile.gettempdir()) / "desktop-bundler"
        )
        self.input_path: pathlib.Path = _resolve(configuration.input_path, default=cwd)
        self.output_path: pathlib.Path = _resolve(configuration.output_path, default=cwd)
        self.icon_path_darwin: pathlib.Path | None = _resolve_optional(configuration.icon_path_darwin)
        self.icon_path_windows: pathlib.Path | None = _resolve_optional(configuration.icon_path_windows)
        self.astilectron_path: pathlib.Path | None = _resolve_optional(configuration.astilectron_path)

        gopath: str | None = self._environ.get("GOPATH")
        self.source_root: pathlib.Path | None = pathlib.Path(gopath) / "src" if gopath else None

        self.resources_path: pathlib.Path = self.input_path / "resources"
        self.vendor_path: pathlib.Path = self.input_path / "vendor"

    def build_path(self) -> str:
        """Import path handed to ``go build``.

        :raises ConfigurationError: If the input path is too shallow.
        """

        return build_path(self.input_path, source_root=self.source_root)

    def environment_path(self, env: Environment) -> pathlib.Path:
        """Staging directory for one environment."""

        return self.output_path / f"{env.os}-{env.arch}"

    def clear_cache(self) -> None:
        """Remove the vendor archive cache.

        :raises FilesystemError: If removal fails.
        """

        self._logger.info(f"desktop-bundler: clearing cache {self.cache_path}")
        fsops.remove_tree(self.cache_path, logger=self._logger)

    def reset(self) -> None:
        for path in (self.cache_path, self.output_path):
            fsops.make_dirs(path, logger=self._logger)

    def bind_resources(self) -> pathlib.Path | None:
        """Embed ``resources/`` into ``bind.go``; no-op without a resources directory."""

        return bind_directory(
            src_dir=self.resources_path,
            output_path=self.input_path / RESOURCES_BIND_NAME,
            prefix=self.input_path,
            logger=self._logger,
        )

    def provision_vendor(self, env: Environment) -> None:
        """Recreate ``vendor/`` for ``env`` and embed it into ``bind_vendor.go``.

        :raises BundleError: If provisioning or binding fails.
        """

        try:
            provision_vendor(
                env=env,
                vendor_dir=self.vendor_path,
                cache_dir=self.cache_path,
                session=self._session,
                logger=self._logger,
                core_path=self.astilectron_path,
            )
        except BundleError as e:
            raise type(e)(f"provisioning the vendor failed: {e}") from e

        bind_directory(
            src_dir=self.vendor_path,
            output_path=self.input_path / VENDOR_BIND_NAME,
            prefix=self.input_path,
            symbol="Vendor",
            logger=self._logger,
        )

    def bind_data(self, env: Environment) -> None:
        """Regenerate both embedded sources for ``env`` without compiling."""

        validate_environment(env)
        self.reset()
        self.provision_vendor(env)
        self.bind_resources()

    def ldflags(self, env: Environment, *, built_at: datetime.datetime | None = None) -> LDFlags:
        """Linker flags for one environment.

        :param env: Target environment.
        :param built_at: Build timestamp (defaults to now).
        :returns: Fresh :class:`LDFlags`.
        """

        if built_at is None:
            built_at = datetime.datetime.now().astimezone()
        flags: LDFlags = LDFlags()
        flags.add(
            "X",
            f'"main.AppName={self.app_name}"',
            f'"main.BuiltAt={built_at.strftime("%Y-%m-%d %H:%M:%S %z")}"',
        )
        if env.os == "windows":
            flags.add("H", "windowsgui")
        flags.merge(self.extra_ldflags)
        return flags

    def bundle(self) -> None:
        """Bundle the app for every configured environment.

        :raises BundleError: On the first failing step.
        """

        t0: float = time.perf_counter()
        logger: logging.Logger = self._logger
        logger.info(f"desktop-bundler: app={self.app_name}")
        logger.info(f"desktop-bundler: input={self.input_path}")
        logger.info(f"desktop-bundler: output={self.output_path}")
        logger.info(f"desktop-bundler: cache={self.cache_path}")

        try:
            self.reset()
        except BundleError as e:
            raise type(e)(f"resetting bundler failed: {e}") from e

        try:
            self.bind_resources()
        except BundleError as e:
            raise type(e)(f"binding resources failed: {e}") from e

        for env in self.environments:
            logger.info(f"desktop-bundler: bundling for environment {env}")
            try:
                self.bundle_environment(env)
            except BundleError as e:
                raise type(e)(f"bundling for environment {env} failed: {e}") from e

        t1: float = time.perf_counter()
        logger.info(f"desktop-bundler: done in {t1 - t0:.2f}s")

    def bundle_environment(self, env: Environment) -> pathlib.Path:
        """Provision, build and finalize one environment.

        :param env: Target environment.
        :returns: Path of the final artifact.
        :raises BundleError: If any step fails.
        """

        validate_environment(env)
        import_path: str = self.build_path()
        t0: float = time.perf_counter()

        environment_path: pathlib.Path = self.environment_path(env)
        fsops.reset_dir(environment_path, logger=self._logger)

        self.provision_vendor(env)

        if env.os == "windows":
            prepare_windows(
                icon_path=self.icon_path_windows,
                input_path=self.input_path,
                arch=env.arch,
                logger=self._logger,
            )

        binary_path: pathlib.Path = environment_path / "binary"
        build_binary(
            build_path=import_path,
            env=env,
            ldflags=self.ldflags(env),
            output_path=binary_path,
            input_path=self.input_path,
            base_env=self._environ,
            logger=self._logger,
        )

        artifact: pathlib.Path = finalize(
            env.os,
            FinalizeContext(
                app_name=self.app_name,
                environment_path=environment_path,
                binary_path=binary_path,
                icon_path_darwin=self.icon_path_darwin,
            ),
            logger=self._logger,
        )
        t1: float = time.perf_counter()
        self._logger.info(f"desktop-bundler: bundled {env} in {t1 - t0:.2f}s")
        return artifact


def _resolve(value: str | None, *, default: pathlib.Path) -> pathlib.Path:
    if value is None or len(value) == 0:
        return default.absolute()
    return pathlib.Path(value).expanduser().absolute()


def _resolve_optional(value: str | None) -> pathlib.Path | None:
    if value is None or len(value) == 0:
        return None
    return pathlib.Path(value).expanduser().absolute()
