import msgspec
import pytest

from rangeoracle.models import KeyRange, prefix_range, printable, strinc, with_suffix


class TestStrinc:
    def test_increments_last_byte(self):
        """The last byte is incremented."""
        assert strinc(b"abc") == b"abd"

    def test_strips_trailing_ff(self):
        """Trailing 0xff bytes are dropped before incrementing."""
        assert strinc(b"a\xff") == b"b"
        assert strinc(b"a\x00\xff\xff") == b"a\x01"

    def test_all_ff_raises(self):
        with pytest.raises(ValueError):
            strinc(b"\xff\xff")

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            strinc(b"")


class TestKeyRange:
    def test_begin_must_sort_before_end(self):
        """Empty and inverted ranges are rejected."""
        with pytest.raises(ValueError):
            KeyRange(b"b", b"b")

        with pytest.raises(ValueError):
            KeyRange(b"b", b"a")

    def test_prefix_range(self):
        key_range = prefix_range(b"R_0001")

        assert key_range.begin == b"R_0001"
        assert key_range.end == b"R_0002"
        assert KeyRange.from_prefix("R_0001") == key_range

    def test_contains_and_contains_key(self):
        outer = KeyRange(b"a", b"d")

        assert outer.contains(KeyRange(b"a", b"d"))
        assert outer.contains(KeyRange(b"b", b"c"))
        assert not outer.contains(KeyRange(b"c", b"e"))

        assert outer.contains_key(b"a")
        assert outer.contains_key(b"c\xff")
        assert not outer.contains_key(b"d")

    def test_adjacent_ranges_do_not_intersect(self):
        """Half-open ranges sharing an edge are disjoint."""
        left = KeyRange(b"a", b"b")
        right = KeyRange(b"b", b"c")

        assert not left.intersects(right)
        assert left.intersection(right) is None

    def test_intersection(self):
        first = KeyRange(b"a", b"c")
        second = KeyRange(b"b", b"d")

        assert first.intersects(second)
        assert first.intersection(second) == KeyRange(b"b", b"c")

    def test_ordering_is_lexicographic(self):
        ranges = [
            KeyRange(b"b", b"c"),
            KeyRange(b"a", b"z"),
            KeyRange(b"a", b"b"),
        ]

        assert sorted(ranges) == [
            KeyRange(b"a", b"b"),
            KeyRange(b"a", b"z"),
            KeyRange(b"b", b"c"),
        ]

    def test_frozen_and_hashable(self):
        key_range = KeyRange(b"a", b"b")

        with pytest.raises(AttributeError):
            key_range.begin = b"0"

        assert len({key_range, KeyRange(b"a", b"b")}) == 1

    def test_printable_escapes_binary(self):
        key_range = KeyRange(b"K\x00", b"K\x01")

        assert key_range.printable() == "[K\\x00 - K\\x01)"
        assert str(key_range) == key_range.printable()
        assert printable(b"a\\b") == "a\\x5cb"

    def test_with_suffix(self):
        assert with_suffix(b"K", "AF") == b"KAF"
        assert with_suffix(b"K", b"\x00") == b"K\x00"

    def test_encodes_with_msgspec(self):
        key_range = KeyRange(b"a", b"b")
        encoded = msgspec.json.encode(key_range)

        assert msgspec.json.decode(encoded, type=KeyRange) == key_range
