"""
Header storage for http_message.

HeaderBag maps lowercase header names to ordered lists of values.
It never changes after construction: replace/add/remove return a
new bag and share the untouched value lists with the original.
"""

from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .exceptions import ValidationError

HeaderValue = Union[str, int, Iterable[Union[str, int]]]


def display_name(name: str) -> str:
    """Title-case each "-" delimited segment of a header name."""
    return "-".join(part[:1].upper() + part[1:] for part in name.lower().split("-"))


def normalize_values(value: HeaderValue) -> List[str]:
    """Wrap a scalar header value in a list and stringify every item."""
    if isinstance(value, (str, int)):
        value = [value]
    elif isinstance(value, (bytes, bytearray)):
        raise ValidationError("Header values must be strings or integers, got bytes")

    values = []
    for item in value:
        if not isinstance(item, (str, int)):
            raise ValidationError(
                f"Header values must be strings or integers, got {type(item).__name__}"
            )
        values.append(str(item))
    return values


class HeaderBag:
    """Case-insensitive, multi-valued, copy-on-write header store."""

    def __init__(self, headers: Optional[Mapping[str, HeaderValue]] = None) -> None:
        self._headers: Dict[str, List[str]] = {}
        if headers:
            for name, value in headers.items():
                self._headers.setdefault(name.lower(), []).extend(normalize_values(value))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._headers

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderBag):
            return NotImplemented
        return self._headers == other._headers

    def __repr__(self) -> str:
        return f"HeaderBag({self._headers!r})"

    def get(self, name: str) -> List[str]:
        """Get a copy of the values for name (empty list if absent)."""
        return list(self._headers.get(name.lower(), ()))

    def line(self, name: str, separator: str = ", ") -> str:
        """Get the values for name joined by separator ("" if absent)."""
        return separator.join(self._headers.get(name.lower(), ()))

    def items(self) -> List[Tuple[str, List[str]]]:
        """Get (lowercase name, values) pairs in insertion order."""
        return [(name, list(values)) for name, values in self._headers.items()]

    def display(self) -> Dict[str, List[str]]:
        """Get a copy of the headers keyed by their title-cased names."""
        return {display_name(name): list(values) for name, values in self._headers.items()}

    def replace(self, name: str, value: HeaderValue) -> "HeaderBag":
        """Return a new bag where name holds only the given value(s)."""
        that = self._copy()
        that._headers[name.lower()] = normalize_values(value)
        return that

    def add(self, name: str, value: HeaderValue) -> "HeaderBag":
        """Return a new bag with the given value(s) appended to name."""
        key = name.lower()
        that = self._copy()
        that._headers[key] = that._headers.get(key, []) + normalize_values(value)
        return that

    def remove(self, name: str) -> "HeaderBag":
        """Return a new bag without name (or this bag if name is absent)."""
        key = name.lower()
        if key not in self._headers:
            return self
        that = self._copy()
        del that._headers[key]
        return that

    def _copy(self) -> "HeaderBag":
        that = HeaderBag()
        # Value lists are never mutated in place, so they can be shared
        that._headers = dict(self._headers)
        return that
