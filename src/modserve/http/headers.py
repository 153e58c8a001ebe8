"""Case-insensitive, read-only request headers."""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Request headers as a read-only mapping keyed by lower-case name.

    Built from the ASGI ``(name, value)`` byte pairs. Names are decoded
    and lower-cased once; a repeated header keeps its first value.
    """

    __slots__ = ("_pairs", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        self._pairs: dict[str, str] = {}
        for name, value in raw:
            self._pairs.setdefault(name.decode("latin-1").lower(), value.decode("latin-1"))

    def __getitem__(self, key: str) -> str:
        return self._pairs[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._pairs

    def __iter__(self) -> Iterator[str]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"Headers({self._pairs!r})"

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """The byte pairs exactly as the server delivered them."""
        return self._raw
