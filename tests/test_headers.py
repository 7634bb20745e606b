"""
Unit tests for HeaderBag.

Tests case-insensitive lookup, multi-value storage and that every
change returns a new bag.
"""

import pytest

from http_message.exceptions import ValidationError
from http_message.headers import HeaderBag, display_name, normalize_values


class TestHelpers:
    """Test the header helper functions."""

    def test_display_name(self) -> None:
        """Test title-casing each hyphen-delimited segment."""
        assert display_name("content-type") == "Content-Type"
        assert display_name("X-CONTENT-TYPE-OPTIONS") == "X-Content-Type-Options"
        assert display_name("etag") == "Etag"

    def test_normalize_values(self) -> None:
        """Test wrapping scalars and stringifying items."""
        assert normalize_values("text/html") == ["text/html"]
        assert normalize_values(42) == ["42"]
        assert normalize_values(["a", 1]) == ["a", "1"]

    @pytest.mark.parametrize("value", [b"hi", bytearray(b"hi"), [b"hi"], ["a", None]])
    def test_normalize_values_rejects_non_text(self, value) -> None:
        """Test that bytes and other non-text values are rejected."""
        with pytest.raises(ValidationError):
            normalize_values(value)

    def test_bag_rejects_bytes(self) -> None:
        """Test that bytes never reach the stored values."""
        with pytest.raises(ValidationError):
            HeaderBag().add("X-Token", b"hi")
        with pytest.raises(ValidationError):
            HeaderBag({"X-Token": b"hi"})


class TestHeaderBag:
    """Test HeaderBag functionality."""

    def test_case_insensitive_lookup(self) -> None:
        """Test that any spelling of a name finds the same header."""
        bag = HeaderBag({"Content-Type": "application/json"})
        assert "content-type" in bag
        assert "CONTENT-TYPE" in bag
        assert bag.get("Content-type") == ["application/json"]

    def test_names_stored_lowercase(self) -> None:
        """Test that stored keys are lowercase and display keys title-cased."""
        bag = HeaderBag({"X-Request-ID": "abc"})
        assert list(bag) == ["x-request-id"]
        assert bag.display() == {"X-Request-Id": ["abc"]}

    def test_constructor_merges_spellings(self) -> None:
        """Test that differently cased names are merged in order."""
        bag = HeaderBag({"Accept": "text/html", "ACCEPT": ["application/json"]})
        assert bag.get("accept") == ["text/html", "application/json"]
        assert len(bag) == 1

    def test_add_keeps_duplicates(self) -> None:
        """Test that values are appended and never deduplicated."""
        bag = HeaderBag().add("Accept", "a").add("accept", ["a", "b"])
        assert bag.get("Accept") == ["a", "a", "b"]
        assert bag.line("Accept") == "a, a, b"

    def test_replace(self) -> None:
        """Test replacing all values of a header."""
        bag = HeaderBag({"Accept": ["a", "b"]}).replace("ACCEPT", "c")
        assert bag.get("accept") == ["c"]

    def test_remove(self) -> None:
        """Test removing present and absent headers."""
        bag = HeaderBag({"Accept": "a"})
        assert "accept" not in bag.remove("Accept")
        assert bag.remove("Missing") is bag

    def test_changes_return_new_bag(self) -> None:
        """Test that the original bag never changes."""
        bag = HeaderBag({"Accept": "a"})
        bag.add("Accept", "b")
        bag.replace("Accept", "c")
        bag.remove("Accept")
        assert bag.get("Accept") == ["a"]

    def test_get_returns_copy(self) -> None:
        """Test that mutating the returned list does not leak back."""
        bag = HeaderBag({"Accept": "a"})
        bag.get("Accept").append("b")
        assert bag.get("Accept") == ["a"]

    def test_absent_header(self) -> None:
        """Test lookups of a missing header."""
        bag = HeaderBag()
        assert bag.get("Accept") == []
        assert bag.line("Accept") == ""
        assert 42 not in bag

    def test_items_order_and_equality(self) -> None:
        """Test insertion order of items and value equality."""
        bag = HeaderBag().add("B", "1").add("A", "2")
        assert bag.items() == [("b", ["1"]), ("a", ["2"])]
        assert bag == HeaderBag({"b": "1", "a": "2"})
        assert bag != HeaderBag({"b": "1"})
