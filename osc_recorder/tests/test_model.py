"""
Tests for the argument variant and event model.
"""

import pytest

from osc_recorder.model import (
    ArgKind,
    RecordedEvent,
    SessionSummary,
    kind_of,
    normalize_arg,
)


class TestKindOf:
    """Classification into ArgKind."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (5, ArgKind.INTEGER),
            (-3, ArgKind.INTEGER),
            (3.2, ArgKind.FLOAT),
            (1.0, ArgKind.FLOAT),
            ("x", ArgKind.STRING),
            ("", ArgKind.STRING),
            (True, ArgKind.BOOLEAN),
            (False, ArgKind.BOOLEAN),
            ([1, "a"], ArgKind.LIST),
            (None, ArgKind.NULL),
            (b"blob", ArgKind.OTHER),
            ((1, 2), ArgKind.OTHER),
            ({"a": 1}, ArgKind.OTHER),
        ],
    )
    def test_kinds(self, value, expected):
        assert kind_of(value) is expected

    def test_bool_is_not_numeric(self):
        """bool subclasses int but is never classified as a number."""
        assert not kind_of(True).is_numeric
        assert kind_of(1).is_numeric
        assert kind_of(1.5).is_numeric


class TestNormalizeArg:
    """Mapping transport values into the variant."""

    def test_variant_values_pass_through(self):
        for value in (1, 2.5, "s", True, None):
            assert normalize_arg(value) == value

    def test_bytes_decode_as_text(self):
        assert normalize_arg(b"hello") == "hello"

    def test_invalid_utf8_is_replaced(self):
        assert normalize_arg(b"\xff") == "\ufffd"

    def test_tuple_becomes_list(self):
        """MIDI packets and timetags arrive as tuples."""
        assert normalize_arg((0, 144, 60, 100)) == [0, 144, 60, 100]

    def test_nested_list_is_normalized(self):
        assert normalize_arg([1, [b"a", (2, 3)]]) == [1, ["a", [2, 3]]]

    def test_unknown_falls_back_to_str(self):
        class Thing:
            def __str__(self):
                return "thing"

        assert normalize_arg(Thing()) == "thing"


class TestRecordedEvent:

    def test_to_dict_shape(self):
        event = RecordedEvent(time=0.5, address="/a", data=[1, "x"])
        assert event.to_dict() == {"time": 0.5, "address": "/a", "data": [1, "x"]}

    def test_immutable(self):
        event = RecordedEvent(time=0.0, address="/a")
        with pytest.raises(AttributeError):
            event.time = 1.0

    def test_default_data_is_null(self):
        assert RecordedEvent(time=0.0, address="/a").data is None


def test_summary_unique_addresses_sorted():
    summary = SessionSummary(message_count=3, address_counts={"/b": 1, "/a": 2})
    assert summary.unique_addresses == ["/a", "/b"]
