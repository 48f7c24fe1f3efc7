"""Go linker flags (``go build -ldflags``)."""

from typing import Iterable, Mapping

from desktop_bundler.errors import ConfigurationError


class LDFlags(dict[str, list[str]]):
    """Mapping of linker flag keys to ordered value lists.

    Each value under key ``K`` renders as ``-K value``; a key with no values
    renders as a bare ``-K`` (e.g. ``-s``). Values under one key keep their
    insertion order. The order across distinct keys is not part of the contract.
    """

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "LDFlags":
        flags: LDFlags = cls()
        flags.merge(mapping)
        return flags

    def add(self, key: str, *values: str) -> None:
        """Append values under ``key`` (creating the key if needed)."""

        self.setdefault(key, []).extend(values)

    def merge(self, other: Mapping[str, Iterable[str]]) -> None:
        for key, values in other.items():
            self.add(key, *values)

    def set(self, spec: str) -> None:
        """Parse a command-line style flag spec.

        ``X:main.foo=1,main.bar=2`` appends two values under ``X``; a bare
        ``s`` registers a value-less key.

        :param spec: Flag spec.
        :raises ConfigurationError: If a ``key:`` spec carries no values.
        """

        key, sep, rest = spec.partition(":")
        if len(sep) == 0:
            self.add(key)
            return
        values: list[str] = [v for v in rest.split(",") if len(v) > 0]
        if len(values) == 0:
            raise ConfigurationError(f"ldflag {spec!r} has no values")
        self.add(key, *values)

    def render(self) -> str:
        """Render the flags as one space-joined token stream."""

        tokens: list[str] = []
        for key, values in self.items():
            if len(values) == 0:
                tokens.append(f"-{key}")
                continue
            for value in values:
                tokens.append(f"-{key} {value}")
        return " ".join(tokens)

    def __str__(self) -> str:
        return self.render()
