from __future__ import annotations

from typing import Iterable, Iterator, Sequence

from .key_range import KeyRange


def sort_ranges(ranges: Iterable[KeyRange]) -> list[KeyRange]:
    return sorted(ranges)


def is_contiguous(ranges: Sequence[KeyRange]) -> bool:
    return all(
        ranges[idx].end == ranges[idx + 1].begin
        for idx in range(len(ranges) - 1)
    )


def has_overlap(ranges: Sequence[KeyRange]) -> bool:
    ordered = sort_ranges(ranges)
    return any(
        ordered[idx].end > ordered[idx + 1].begin
        for idx in range(len(ordered) - 1)
    )


def covers(ranges: Sequence[KeyRange], target: KeyRange) -> bool:
    """
    True when ``ranges`` (in the order given) form a gap-free chain that
    spans ``target`` edge to edge.
    """
    if len(ranges) == 0:
        return False

    return (
        ranges[0].begin <= target.begin
        and ranges[-1].end >= target.end
        and is_contiguous(ranges)
    )


def partition(key_range: KeyRange, boundaries: Sequence[bytes]) -> list[KeyRange]:
    """
    Split ``key_range`` at the given interior ``boundaries``.

    Boundaries must be strictly increasing and lie strictly inside the range.
    """
    keys = [key_range.begin, *boundaries, key_range.end]
    return [
        KeyRange(keys[idx], keys[idx + 1]) for idx in range(len(keys) - 1)
    ]


class RangeSet:
    """An unordered, de-duplicated collection of key ranges."""

    def __init__(self, ranges: Iterable[KeyRange] | None = None) -> None:
        self._ranges: set[KeyRange] = set(ranges or ())

    def add(self, key_range: KeyRange) -> None:
        self._ranges.add(key_range)

    def discard(self, key_range: KeyRange) -> None:
        self._ranges.discard(key_range)

    def overlapping(self, key_range: KeyRange) -> list[KeyRange]:
        return sort_ranges(
            existing for existing in self._ranges if existing.intersects(key_range)
        )

    def __contains__(self, key_range: KeyRange) -> bool:
        return key_range in self._ranges

    def __len__(self) -> int:
        return len(self._ranges)

    def __iter__(self) -> Iterator[KeyRange]:
        return iter(sort_ranges(self._ranges))
