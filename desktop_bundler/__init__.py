"""desktop-bundler.

A build utility that packages a Go + Electron desktop application into
OS-native bundles (macOS ``.app``, Windows ``.exe``, Linux binary) for one or
more ``(os, arch)`` targets.
"""

__all__: list[str] = ["__version__"]

__version__: str = "0.1.0"
