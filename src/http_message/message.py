"""
Base HTTP message for http_message.

Message holds the protocol version, headers and body shared by
requests and responses. All classes are immutable to ensure thread
safety and simplify reasoning: every with_* method clones the
message, changes the clone and returns it.
"""

import copy
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from typing_extensions import Self

from .headers import HeaderBag, HeaderValue
from .streams import Stream


class Message(ABC):
    """
    Immutable HTTP message.

    Header names are case-insensitive. They are stored lowercase and
    only title-cased when read through the headers property.
    """

    DEFAULT_PROTOCOL_VERSION = "1.1"

    def __init__(self) -> None:
        self._protocol_version = self.DEFAULT_PROTOCOL_VERSION
        self._headers = HeaderBag()
        self._body: Optional[Stream] = None

    def _clone(self) -> Self:
        return copy.copy(self)

    @property
    def protocol_version(self) -> str:
        return self._protocol_version

    def with_protocol_version(self, version: str) -> Self:
        """Create a new message with a different protocol version."""
        that = self._clone()
        that._protocol_version = version
        return that

    @property
    def headers(self) -> Dict[str, List[str]]:
        """Get a copy of all headers keyed by their title-cased names."""
        return self._headers.display()

    def has_header(self, name: str) -> bool:
        """Check if a header exists (case-insensitive)."""
        return name in self._headers

    def get_header(self, name: str) -> List[str]:
        """Get the values of a header (case-insensitive), [] if absent."""
        return self._headers.get(name)

    def get_header_line(self, name: str) -> str:
        """Get the values of a header joined by ", ", "" if absent."""
        return self._headers.line(name)

    def with_header(self, name: str, value: HeaderValue) -> Self:
        """Create a new message where the header holds only value."""
        that = self._clone()
        that._headers = self._headers.replace(name, value)
        return that

    def with_added_header(self, name: str, value: HeaderValue) -> Self:
        """Create a new message with value appended to the header."""
        that = self._clone()
        that._headers = self._headers.add(name, value)
        return that

    def without_header(self, name: str) -> Self:
        """Create a new message without the header."""
        that = self._clone()
        that._headers = self._headers.remove(name)
        return that

    @property
    def body(self) -> Stream:
        """Get the message body, an empty stream if none was set."""
        if self._body is None:
            self._body = Stream()
        return self._body

    def with_body(self, body: Stream) -> Self:
        """
        Create a new message with a different body.

        Content-Length is set from the size of the body when it is
        known; otherwise the message switches to chunked transfer
        encoding.
        """
        that = self._clone()
        that._body = body

        if body.size is None:
            return that.with_header("Transfer-Encoding", "chunked").without_header("Content-Length")
        return that.with_header("Content-Length", str(body.size)).without_header("Transfer-Encoding")

    def header_lines(self) -> List[Tuple[str, str]]:
        """
        Get the header lines written on the wire.

        Returns:
            (lowercase name, value) pairs in insertion order, one pair
            per header name with its values joined by ", "
        """
        return [(name, ", ".join(values)) for name, values in self._headers.items()]

    @abstractmethod
    def start_line(self) -> str:
        """Get the request line or status line, without CRLF."""
        pass

    def __bytes__(self) -> bytes:
        """Serialize the message as HTTP/1.x wire text."""
        head = self.start_line() + "\r\n"
        for name, value in self.header_lines():
            head += f"{name}: {value}\r\n"
        return (head + "\r\n").encode("utf-8") + bytes(self.body)

    def __str__(self) -> str:
        return bytes(self).decode("utf-8", errors="replace")
