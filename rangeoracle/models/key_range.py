from __future__ import annotations

import msgspec


def strinc(key: bytes) -> bytes:
    """
    Return the first key that sorts after every key prefixed by ``key``.

    Trailing 0xff bytes are stripped before the last byte is incremented,
    so ``strinc(b"a\\xff") == b"b"``.
    """
    stripped = key.rstrip(b"\xff")
    if len(stripped) == 0:
        raise ValueError(
            f"Key {key!r} must contain at least one byte not equal to 0xff"
        )

    return stripped[:-1] + bytes([stripped[-1] + 1])


def with_suffix(key: bytes, suffix: bytes | str) -> bytes:
    if isinstance(suffix, str):
        suffix = suffix.encode()

    return key + suffix


def printable(key: bytes) -> str:
    return "".join(
        chr(byte) if 32 <= byte < 127 and byte != 92 else f"\\x{byte:02x}"
        for byte in key
    )


class KeyRange(msgspec.Struct, frozen=True, order=True):
    """Half-open interval ``[begin, end)`` of byte-string keys."""

    begin: bytes
    end: bytes

    def __post_init__(self):
        if self.begin >= self.end:
            raise ValueError(
                f"Invalid key range [{printable(self.begin)} - {printable(self.end)}): begin must sort before end"
            )

    @classmethod
    def from_prefix(cls, prefix: bytes | str) -> KeyRange:
        if isinstance(prefix, str):
            prefix = prefix.encode()

        return cls(prefix, strinc(prefix))

    def contains_key(self, key: bytes) -> bool:
        return self.begin <= key < self.end

    def contains(self, other: KeyRange) -> bool:
        return self.begin <= other.begin and other.end <= self.end

    def intersects(self, other: KeyRange) -> bool:
        return self.begin < other.end and other.begin < self.end

    def intersection(self, other: KeyRange) -> KeyRange | None:
        if not self.intersects(other):
            return None

        return KeyRange(
            max(self.begin, other.begin),
            min(self.end, other.end),
        )

    def printable(self) -> str:
        return f"[{printable(self.begin)} - {printable(self.end)})"

    def __str__(self) -> str:
        return self.printable()


def prefix_range(prefix: bytes | str) -> KeyRange:
    return KeyRange.from_prefix(prefix)
