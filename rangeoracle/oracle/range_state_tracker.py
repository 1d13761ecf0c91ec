"""
Range State Tracker - the oracle's belief about which ranges are active.

Ordering rules that keep the tracked state from lagging the service in a
way that produces false failures:

- a range is added to the active set only after the service confirmed
  its activation
- a range leaves the active set before its deactivation is requested, and
  joins the inactive set only after the service confirmed it

The active and inactive collections follow a single-writer discipline:
the WorkloadDriver mutates them while it runs, and the check phase reads
them only after the driver task has been cancelled.
"""

import random

from rangeoracle.errors import ensure
from rangeoracle.models import KeyRange, prefix_range


CLIENT_KEY_OFFSET = 10_000_000


class RangeStateTracker:

    def __init__(
        self,
        rng: random.Random,
        sequential: bool = True,
        sequential_gap: int = 1,
        client_id: int = 0,
    ) -> None:
        if sequential_gap < 1:
            raise ValueError("sequential_gap must be at least 1")

        # Clients replaying one seed must still draw distinct identities.
        self._random = random.Random(f"{rng.getrandbits(64)}:{client_id}")
        self.sequential = sequential
        self.sequential_gap = sequential_gap
        self.next_key = CLIENT_KEY_OFFSET * client_id

        self._active_ranges: list[KeyRange] = []
        self._inactive_ranges: list[KeyRange] = []

    @property
    def active_ranges(self) -> tuple[KeyRange, ...]:
        return tuple(self._active_ranges)

    @property
    def inactive_ranges(self) -> tuple[KeyRange, ...]:
        return tuple(self._inactive_ranges)

    @property
    def active_count(self) -> int:
        return len(self._active_ranges)

    @property
    def inactive_count(self) -> int:
        return len(self._inactive_ranges)

    def new_range_identity(self) -> bytes:
        if self.sequential:
            self.next_key += self.sequential_gap
            return f"{self.next_key:08x}".encode()

        return f"{self._random.getrandbits(128):032x}".encode()

    def new_range(self, prefix: bytes) -> KeyRange:
        return prefix_range(prefix + self.new_range_identity())

    def record_activated(self, key_range: KeyRange) -> None:
        self._active_ranges.append(key_range)

    def take_random_active(self) -> KeyRange:
        ensure(
            len(self._active_ranges) > 0,
            "Cannot pick an active range to deactivate: none are tracked",
        )

        idx = self._random.randrange(len(self._active_ranges))
        ensure(
            0 <= idx < len(self._active_ranges),
            "Random active range selection out of bounds",
            index=idx,
            active_ranges=len(self._active_ranges),
        )

        # Swap with the last element and pop, order is irrelevant.
        self._active_ranges[idx], self._active_ranges[-1] = (
            self._active_ranges[-1],
            self._active_ranges[idx],
        )

        return self._active_ranges.pop()

    def record_deactivated(self, key_range: KeyRange) -> None:
        ensure(
            key_range not in self._active_ranges,
            "Range recorded inactive while still tracked active",
            key_range=key_range,
        )
        self._inactive_ranges.append(key_range)
