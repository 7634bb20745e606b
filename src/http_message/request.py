"""
Outgoing, client-side HTTP request for http_message.
"""

import re
from typing import List, Optional, Tuple, Union

from typing_extensions import Self

from .exceptions import ValidationError
from .message import Message
from .uri import Uri

# RFC 7230 token
METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+\Z")


def filter_method(method: str) -> str:
    """Validate an HTTP method against the RFC 7230 token grammar."""
    if not isinstance(method, str) or not METHOD_RE.match(method):
        raise ValidationError(f'HTTP method {method!r} must be compliant with the "RFC 7230" standard')
    return method


class Request(Message):
    """
    Immutable HTTP request.

    The request keeps a reference to its Uri and derives the Host
    header from it on construction (HTTP/1.1) and in with_uri.
    """

    def __init__(self, method: str = "GET", uri: Union[Uri, str, None] = None) -> None:
        """
        Initialize Request.

        Args:
            method: HTTP method, an RFC 7230 token
            uri: Uri instance or URI string; an empty Uri if omitted
        """
        super().__init__()
        self._method = filter_method(method)
        self._uri = self._coerce_uri(uri)
        self._request_target = ""

        if self._protocol_version == "1.1":
            self._headers = self._headers.replace("Host", self._host_header())

    @staticmethod
    def _coerce_uri(uri: Union[Uri, str, None]) -> Uri:
        if uri is None:
            return Uri()
        if isinstance(uri, str):
            return Uri(uri)
        return uri

    @property
    def request_target(self) -> str:
        """
        Get the request target.

        An explicitly set target wins; otherwise the target is the
        path and query of the URI, or "/" when both are empty.
        """
        if self._request_target:
            return self._request_target

        target = self._uri.path
        if self._uri.query != "":
            target += f"?{self._uri.query}"
        return target or "/"

    def with_request_target(self, request_target: str) -> Self:
        that = self._clone()
        that._request_target = request_target
        return that

    @property
    def method(self) -> str:
        return self._method

    def with_method(self, method: str) -> Self:
        that = self._clone()
        that._method = filter_method(method)
        return that

    @property
    def uri(self) -> Uri:
        return self._uri

    def with_uri(self, uri: Union[Uri, str], preserve_host: bool = False) -> Self:
        """
        Create a new request with a different URI.

        Args:
            uri: The new Uri (or URI string)
            preserve_host: Keep an existing Host header unchanged

        Returns:
            New request; Host is re-derived from the URI unless preserved
        """
        that = self._clone()
        that._uri = self._coerce_uri(uri)

        if preserve_host and that.has_header("Host"):
            return that
        return that.with_header("Host", that._host_header())

    def _host_header(self) -> str:
        host = self._uri.host
        if host != "" and self._uri.port is not None:
            host += f":{self._uri.port}"
        return host

    def start_line(self) -> str:
        return f"{self._method} {self.request_target} HTTP/{self._protocol_version}"

    def header_lines(self) -> List[Tuple[str, str]]:
        lines = []
        for name, values in self._headers.items():
            separator = "; " if name == "cookie" else ", "
            lines.append((name, separator.join(values)))
        return lines

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._method} {str(self._uri)!r}>"
