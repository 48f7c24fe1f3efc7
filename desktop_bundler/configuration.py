"""Bundle configuration.

The configuration is a plain, immutable value. It is either built in code or
loaded from a ``bundler.json`` document:

.. code-block:: json

    {
      "app_name": "Foo",
      "icon_path_darwin": "resources/icon.icns",
      "icon_path_windows": "resources/icon.ico",
      "environments": [{"os": "darwin", "arch": "amd64"}]
    }
"""

from dataclasses import dataclass, field
import json
import pathlib
import platform
import sys

from desktop_bundler.errors import ConfigurationError, InvalidOSError


SUPPORTED_OS: tuple[str, ...] = ("darwin", "linux", "windows")


@dataclass(frozen=True, slots=True)
class Environment:
    """A target to build and package for.

    :ivar os: Go ``GOOS`` value (``darwin``, ``linux`` or ``windows``).
    :ivar arch: Go ``GOARCH`` value (e.g. ``amd64``).
    """

    os: str
    arch: str

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


@dataclass(frozen=True, slots=True)
class Configuration:
    """Bundle configuration.

    :ivar app_name: App name, used for bundle names and injected as ``main.AppName``.
    :ivar environments: Ordered target environments.
    :ivar icon_path_darwin: Optional ``.icns`` icon copied into the ``.app``.
    :ivar icon_path_windows: Optional ``.ico`` icon compiled into the ``.exe``.
    :ivar cache_path: Optional vendor cache directory.
    :ivar input_path: Optional project directory (defaults to the cwd).
    :ivar output_path: Optional output directory (defaults to the cwd).
    :ivar ldflags: Extra linker flags merged into every build.
    :ivar astilectron_path: Optional local astilectron checkout or archive used
        instead of downloading the core archive.
    """

    app_name: str
    environments: tuple[Environment, ...] = ()
    icon_path_darwin: str | None = None
    icon_path_windows: str | None = None
    cache_path: str | None = None
    input_path: str | None = None
    output_path: str | None = None
    ldflags: dict[str, tuple[str, ...]] = field(default_factory=dict)
    astilectron_path: str | None = None


def validate_environment(env: Environment) -> None:
    """Check that an environment targets a supported OS.

    :param env: Environment to validate.
    :raises InvalidOSError: If ``env.os`` is not supported.
    """

    if env.os not in SUPPORTED_OS:
        raise InvalidOSError(f"OS {env.os} is invalid")


def host_environment() -> Environment:
    """Return the environment matching the current host, in Go naming."""

    os_name: str = sys.platform
    if os_name.startswith("linux") is True:
        os_name = "linux"
    elif os_name == "win32":
        os_name = "windows"

    machine: str = platform.machine().lower()
    arch_map: dict[str, str] = {
        "x86_64": "amd64",
        "amd64": "amd64",
        "aarch64": "arm64",
        "arm64": "arm64",
        "i386": "386",
        "i686": "386",
        "x86": "386",
        "armv7l": "arm",
    }
    return Environment(os=os_name, arch=arch_map.get(machine, machine))


def load_configuration(path: pathlib.Path) -> Configuration:
    """Load a configuration from a JSON document.

    :param path: Path to ``bundler.json``.
    :returns: Parsed configuration.
    :raises ConfigurationError: If the file cannot be read or is malformed.
    """

    try:
        text: str = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"opening file {path} failed") from e

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"unmarshaling configuration {path} failed: {e}") from e

    if isinstance(raw, dict) is False:
        raise ConfigurationError(f"configuration {path} must be a JSON object")
    return configuration_from_dict(raw)


def configuration_from_dict(raw: dict) -> Configuration:
    """Build a :class:`Configuration` from decoded JSON.

    :param raw: Decoded JSON object.
    :returns: Configuration.
    :raises ConfigurationError: If a field has the wrong shape.
    """

    app_name = raw.get("app_name")
    if isinstance(app_name, str) is False or len(app_name) == 0:
        raise ConfigurationError("configuration is missing a non-empty 'app_name'")

    environments: list[Environment] = []
    for item in raw.get("environments") or []:
        if isinstance(item, dict) is False or "os" not in item or "arch" not in item:
            raise ConfigurationError(f"invalid environment entry: {item!r}")
        environments.append(Environment(os=str(item["os"]), arch=str(item["arch"])))

    ldflags: dict[str, tuple[str, ...]] = {}
    raw_ldflags = raw.get("ldflags") or {}
    if isinstance(raw_ldflags, dict) is False:
        raise ConfigurationError("'ldflags' must map flag keys to lists of values")
    for key, values in raw_ldflags.items():
        if isinstance(values, str) is True:
            values = [values]
        ldflags[str(key)] = tuple(str(v) for v in values)

    return Configuration(
        app_name=app_name,
        environments=tuple(environments),
        icon_path_darwin=_optional_str(raw, "icon_path_darwin", "app_icon_darwin_path"),
        icon_path_windows=_optional_str(raw, "icon_path_windows", "app_icon_default_path"),
        cache_path=_optional_str(raw, "cache_path"),
        input_path=_optional_str(raw, "input_path"),
        output_path=_optional_str(raw, "output_path"),
        ldflags=ldflags,
        astilectron_path=_optional_str(raw, "astilectron_path"),
    )


def _optional_str(raw: dict, *keys: str) -> str | None:
    """Return the first non-empty string found under ``keys``.

    :param raw: Decoded JSON object.
    :param keys: Candidate keys, in priority order.
    :returns: The value, or ``None``.
    :raises ConfigurationError: If a present value is not a string.
    """

    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) is False:
            raise ConfigurationError(f"{key!r} must be a string, got {value!r}")
        if len(value) > 0:
            return value
    return None
