"""Platform finalizers.

A finalizer rearranges the raw ``binary`` produced by ``go build`` into the
native bundle shape of the target OS:

- darwin: ``<App>.app/Contents/{MacOS/<App>, Info.plist, Resources/<App>.icns}``
- linux: ``<App>``
- windows: ``<App>.exe`` (the icon is linked in beforehand, see
  :func:`prepare_windows`)
"""

from dataclasses import dataclass
import logging
import pathlib
from typing import Callable
from xml.sax.saxutils import escape

from desktop_bundler import fsops
from desktop_bundler.build import run_command
from desktop_bundler.errors import BuildError, FilesystemError, UnsupportedPlatformError


_INFO_PLIST_TEMPLATE: str = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
\t<dict>
{{ICON}}\t\t<key>CFBundleDisplayName</key>
\t\t<string>{{APP_NAME}}</string>
\t\t<key>CFBundleExecutable</key>
\t\t<string>{{APP_NAME}}</string>
\t\t<key>CFBundleName</key>
\t\t<string>{{APP_NAME}}</string>
\t\t<key>CFBundleIdentifier</key>
\t\t<string>com.{{APP_NAME}}</string>
\t</dict>
</plist>
"""


@dataclass(frozen=True, slots=True)
class FinalizeContext:
    """Inputs shared by every finalizer.

    :ivar app_name: App name.
    :ivar environment_path: ``<output>/<os>-<arch>`` directory.
    :ivar binary_path: Raw compiled binary.
    :ivar icon_path_darwin: Optional ``.icns`` icon.
    """

    app_name: str
    environment_path: pathlib.Path
    binary_path: pathlib.Path
    icon_path_darwin: pathlib.Path | None = None


def render_info_plist(*, app_name: str, icon_file: str | None) -> str:
    """Render ``Info.plist`` for an app.

    :param app_name: App name.
    :param icon_file: Icon file name inside ``Contents/Resources``, if any.
    :returns: Plist XML.
    """

    icon: str = ""
    if icon_file is not None:
        icon = f"\t\t<key>CFBundleIconFile</key>\n\t\t<string>{escape(icon_file)}</string>\n"
    plist: str = _INFO_PLIST_TEMPLATE.replace("{{ICON}}", icon)
    return plist.replace("{{APP_NAME}}", escape(app_name))


def finalize_darwin(ctx: FinalizeContext, *, logger: logging.Logger) -> pathlib.Path:
    """Build ``<App>.app`` around the raw binary.

    :returns: Path of the ``.app`` directory.
    """

    app_path: pathlib.Path = ctx.environment_path / f"{ctx.app_name}.app"
    contents_path: pathlib.Path = app_path / "Contents"
    macos_path: pathlib.Path = contents_path / "MacOS"
    fsops.make_dirs(macos_path, logger=logger)

    binary_path: pathlib.Path = macos_path / ctx.app_name
    fsops.move(ctx.binary_path, binary_path, logger=logger)
    fsops.make_executable(binary_path, logger=logger)

    icon_file: str | None = None
    if ctx.icon_path_darwin is not None:
        resources_path: pathlib.Path = contents_path / "Resources"
        fsops.make_dirs(resources_path, logger=logger)
        icon_file = ctx.app_name + ctx.icon_path_darwin.suffix
        fsops.copy_file(ctx.icon_path_darwin, resources_path / icon_file, logger=logger)

    plist_path: pathlib.Path = contents_path / "Info.plist"
    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"desktop-bundler: adding Info.plist to {plist_path}")
    try:
        plist_path.write_text(render_info_plist(app_name=ctx.app_name, icon_file=icon_file), encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"adding Info.plist to {plist_path} failed") from e
    return app_path


def finalize_linux(ctx: FinalizeContext, *, logger: logging.Logger) -> pathlib.Path:
    """Rename the binary to the app name. No .desktop entry is produced."""

    dst: pathlib.Path = ctx.environment_path / ctx.app_name
    fsops.move(ctx.binary_path, dst, logger=logger)
    return dst


def finalize_windows(ctx: FinalizeContext, *, logger: logging.Logger) -> pathlib.Path:
    dst: pathlib.Path = ctx.environment_path / f"{ctx.app_name}.exe"
    fsops.move(ctx.binary_path, dst, logger=logger)
    return dst


FINALIZERS: dict[str, Callable[..., pathlib.Path]] = {
    "darwin": finalize_darwin,
    "linux": finalize_linux,
    "windows": finalize_windows,
}


def finalize(os_name: str, ctx: FinalizeContext, *, logger: logging.Logger) -> pathlib.Path:
    """Dispatch to the finalizer for ``os_name``.

    :param os_name: Target OS.
    :param ctx: Finalizer inputs.
    :param logger: Logger for progress output.
    :returns: Path of the final artifact.
    :raises UnsupportedPlatformError: If no finalizer handles ``os_name``.
    """

    handler: Callable[..., pathlib.Path] | None = FINALIZERS.get(os_name)
    if handler is None:
        raise UnsupportedPlatformError(f"OS {os_name} is not yet implemented")
    artifact: pathlib.Path = handler(ctx, logger=logger)
    logger.info(f"desktop-bundler: wrote {artifact}")
    return artifact


def windows_syso_path(input_path: pathlib.Path, arch: str) -> pathlib.Path:
    # The _windows_<arch> suffix restricts the object to matching builds.
    return input_path / f"rsrc_windows_{arch}.syso"


def prepare_windows(
    *,
    icon_path: pathlib.Path | None,
    input_path: pathlib.Path,
    arch: str,
    logger: logging.Logger,
) -> pathlib.Path | None:
    """Compile a ``.ico`` into a ``.syso`` resource object picked up by ``go build``.

    :param icon_path: Optional ``.ico`` file; nothing happens without one.
    :param input_path: Project directory receiving the ``.syso``.
    :param arch: Target Go arch.
    :param logger: Logger for progress output.
    :returns: The ``.syso`` path, or ``None``.
    :raises BuildError: If ``rsrc`` fails.
    """

    if icon_path is None:
        return None

    syso: pathlib.Path = windows_syso_path(input_path, arch)
    logger.info(f"desktop-bundler: running rsrc for icon {icon_path}")
    try:
        run_command(
            ["rsrc", "-arch", arch, "-ico", str(icon_path), "-o", str(syso)],
            logger=logger,
        )
    except BuildError as e:
        raise BuildError(f"running rsrc for icon {icon_path} into {syso} failed: {e}") from e
    return syso
