import random

import pytest

from rangeoracle.errors import InvariantViolation
from rangeoracle.models import KeyRange
from rangeoracle.oracle import RangeStateTracker


class TestRangeIdentities:
    def test_sequential_identities_follow_gap(self, rng: random.Random):
        tracker = RangeStateTracker(rng, sequential=True, sequential_gap=2)

        assert tracker.new_range_identity() == b"00000002"
        assert tracker.new_range_identity() == b"00000004"

    def test_client_offset(self, rng: random.Random):
        """Each client draws identities from its own block."""
        tracker = RangeStateTracker(rng, client_id=3)

        assert tracker.new_range_identity() == f"{30_000_001:08x}".encode()

    def test_random_identities_are_hex(self, rng: random.Random):
        tracker = RangeStateTracker(rng, sequential=False)
        identity = tracker.new_range_identity()

        assert len(identity) == 32
        int(identity, 16)

    def test_clients_sharing_a_seed_draw_distinct_identities(self):
        """Replaying one seed on several clients never reuses a random identity."""
        trackers = [
            RangeStateTracker(random.Random(2024), sequential=False, client_id=client_id)
            for client_id in (0, 1)
        ]

        first, second = [
            {tracker.new_range_identity() for _ in range(50)}
            for tracker in trackers
        ]

        assert len(first) == 50
        assert first.isdisjoint(second)

    def test_same_seed_and_client_replays_identities(self):
        first = RangeStateTracker(random.Random(7), sequential=False, client_id=2)
        second = RangeStateTracker(random.Random(7), sequential=False, client_id=2)

        assert [first.new_range_identity() for _ in range(5)] == [
            second.new_range_identity() for _ in range(5)
        ]

    def test_new_range_covers_prefixed_keys(self, tracker: RangeStateTracker):
        key_range = tracker.new_range(b"R_")

        assert key_range == KeyRange(b"R_00000001", b"R_00000002")

    def test_gap_must_be_positive(self, rng: random.Random):
        with pytest.raises(ValueError):
            RangeStateTracker(rng, sequential_gap=0)


class TestTrackedState:
    def test_take_random_active_removes_range(self, tracker: RangeStateTracker):
        ranges = [tracker.new_range(b"R_") for _ in range(5)]
        for key_range in ranges:
            tracker.record_activated(key_range)

        taken = tracker.take_random_active()

        assert taken in ranges
        assert taken not in tracker.active_ranges
        assert tracker.active_count == 4

    def test_take_random_active_when_empty(self, tracker: RangeStateTracker):
        with pytest.raises(InvariantViolation):
            tracker.take_random_active()

    def test_record_deactivated(self, tracker: RangeStateTracker):
        key_range = tracker.new_range(b"R_")
        tracker.record_activated(key_range)

        tracker.record_deactivated(tracker.take_random_active())

        assert tracker.active_ranges == ()
        assert tracker.inactive_ranges == (key_range,)

    def test_active_range_cannot_be_recorded_inactive(self, tracker: RangeStateTracker):
        """A range is never in both collections."""
        key_range = tracker.new_range(b"R_")
        tracker.record_activated(key_range)

        with pytest.raises(InvariantViolation):
            tracker.record_deactivated(key_range)
