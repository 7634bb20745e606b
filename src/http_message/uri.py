"""
URI value object for http_message.

This module implements RFC 3986 parsing, validation, normalization
and serialization of URIs. Uri instances are immutable; every
with_* method returns a new instance and leaves the receiver intact.
"""

import copy
import ipaddress
import re
from typing import Dict, Mapping, Optional, Pattern, Tuple
from urllib.parse import quote, urlsplit

from .exceptions import ValidationError

# RFC 3986 character classes
UNRESERVED = r"A-Za-z0-9\-._~"
SUB_DELIMS = r"!$&'()*+,;="
PCHAR = UNRESERVED + SUB_DELIMS + r":@"
PATH_CHARS = PCHAR + r"/"
QUERY_CHARS = PCHAR + r"/?"

SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+\-.]*\Z")
IPV_FUTURE_RE = re.compile(r"^[vV][A-Fa-f0-9]+\.[" + UNRESERVED + SUB_DELIMS + r":]+\Z")
IPV4_PREFIX_RE = re.compile(r"^([0-9]|[1-9][0-9]|1[0-9]{2}|2[0-4][0-9]|25[0-5])\.")
REG_NAME_RE = re.compile(r"^(?:[" + UNRESERVED + SUB_DELIMS + r"]|%[A-Fa-f0-9]{2})*\Z")
PATH_RE = re.compile(r"^(?:[" + PATH_CHARS + r"]|%[A-Fa-f0-9]{2}|%)*\Z")
QUERY_RE = re.compile(r"^(?:[" + QUERY_CHARS + r"]|%[A-Fa-f0-9]{2}|%)*\Z")
CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")

_encoder_cache: Dict[str, Pattern[str]] = {}


def encode_invalid_runs(text: str, allowed: str) -> str:
    """
    Percent-encode every run of characters outside a character class.

    A "%" that does not start a valid percent-encoded octet is treated
    as disallowed, so already encoded text is left untouched.

    Args:
        text: The text to encode
        allowed: Regex character class body of allowed characters
            (without "%", which is always handled separately)

    Returns:
        The encoded text
    """
    pattern = _encoder_cache.get(allowed)
    if pattern is None:
        pattern = re.compile(r"(?:[^" + allowed + r"%]+|%(?![A-Fa-f0-9]{2}))")
        _encoder_cache[allowed] = pattern

    return pattern.sub(lambda match: quote(match.group(0), safe=""), text)


class Uri:
    """
    Immutable RFC 3986 URI.

    Components are validated and normalized on the way in: scheme and
    host are lowercased, the default port of the scheme is dropped, and
    path, query and fragment are percent-encoded where needed.
    """

    DEFAULT_PORTS: Dict[str, int] = {"http": 80, "https": 443}

    def __init__(self, uri: str = "") -> None:
        self._scheme = ""
        self._user_info = ""
        self._host = ""
        self._port: Optional[int] = None
        self._path = ""
        self._query = ""
        self._fragment = ""

        if uri == "":
            return

        scheme, user_info, host, port, path, query, fragment = self._split(uri)

        self._scheme = self.filter_scheme(scheme)
        self._user_info = user_info
        self._host = self.filter_host(host)
        self._port = self.filter_port(port)
        self._path = self.filter_path(path)
        self._query = self.filter_query(query)
        self._fragment = self.filter_fragment(fragment)

    @staticmethod
    def _split(uri: str) -> Tuple[str, str, str, Optional[int], str, str, str]:
        # urlsplit silently drops tab, CR and LF and strips leading C0 characters
        if uri != uri.strip() or CONTROL_CHARS_RE.search(uri):
            raise ValidationError("URL is malformed")

        try:
            parts = urlsplit(uri)
        except ValueError as e:
            raise ValidationError("URL is malformed", e) from e

        user_info, _, host_port = parts.netloc.rpartition("@")
        user, _, password = user_info.partition(":")
        if password:
            user = f"{user}:{password}"

        if host_port.startswith("["):
            end = host_port.find("]")
            if end == -1:
                raise ValidationError("URL is malformed")
            host, rest = host_port[:end + 1], host_port[end + 1:]
            if rest and not rest.startswith(":"):
                raise ValidationError("URL is malformed")
            port_text = rest[1:]
        else:
            host, _, port_text = host_port.partition(":")

        port: Optional[int] = None
        if port_text:
            if not (port_text.isascii() and port_text.isdigit()):
                raise ValidationError("URL is malformed")
            port = int(port_text)

        return parts.scheme, user, host, port, parts.path, parts.query, parts.fragment

    @classmethod
    def from_environ(cls, server: Mapping[str, str]) -> "Uri":
        """
        Build the URI of the current request from server parameters.

        Args:
            server: CGI-style server parameters (HTTPS, SERVER_NAME,
                SERVER_ADDR, SERVER_PORT, REQUEST_URI, QUERY_STRING)

        Returns:
            New Uri instance
        """
        https = server.get("HTTPS") or ""
        is_secure = https != "" and https.lower() != "off"
        scheme = "https" if is_secure else "http"

        host = server.get("SERVER_NAME") or server.get("SERVER_ADDR") or "127.0.0.1"

        server_port = server.get("SERVER_PORT")
        if server_port:
            try:
                port = int(server_port)
            except ValueError as e:
                raise ValidationError(f"Invalid server port {server_port!r}", e) from e
        else:
            port = 443 if is_secure else 80

        path = "/"
        request_uri = server.get("REQUEST_URI")
        if request_uri:
            path = request_uri.split("?", 1)[0]

        query = server.get("QUERY_STRING") or ""

        return (
            cls()
            .with_scheme(scheme)
            .with_host(host)
            .with_port(port)
            .with_path(path)
            .with_query(query)
        )

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def authority(self) -> str:
        """Get the "[user-info@]host[:port]" component, empty without a host."""
        authority = self._host
        if authority != "":
            if self._user_info != "":
                authority = f"{self._user_info}@{authority}"
            if self._port is not None:
                authority = f"{authority}:{self._port}"
        return authority

    @property
    def user_info(self) -> str:
        return self._user_info

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> Optional[int]:
        return self._port

    @property
    def path(self) -> str:
        return self._path

    @property
    def query(self) -> str:
        return self._query

    @property
    def fragment(self) -> str:
        return self._fragment

    def with_scheme(self, scheme: str) -> "Uri":
        """Return a copy with the given scheme; a now-default port is dropped."""
        that = copy.copy(self)
        that._scheme = self.filter_scheme(scheme)
        if that._is_standard_port(that._scheme, that._port):
            that._port = None
        return that

    def with_user_info(self, user: str, password: Optional[str] = None) -> "Uri":
        that = copy.copy(self)
        that._user_info = f"{user}:{password}" if password else user
        return that

    def with_host(self, host: str) -> "Uri":
        that = copy.copy(self)
        that._host = self.filter_host(host)
        return that

    def with_port(self, port: Optional[int]) -> "Uri":
        that = copy.copy(self)
        that._port = self.filter_port(port)
        return that

    def with_path(self, path: str) -> "Uri":
        that = copy.copy(self)
        that._path = self.filter_path(path)
        return that

    def with_query(self, query: str) -> "Uri":
        that = copy.copy(self)
        that._query = self.filter_query(query)
        return that

    def with_fragment(self, fragment: str) -> "Uri":
        that = copy.copy(self)
        that._fragment = self.filter_fragment(fragment)
        return that

    def __str__(self) -> str:
        uri = ""
        if self._scheme != "":
            uri += f"{self._scheme}:"

        authority = self.authority
        if authority != "":
            uri += f"//{authority}"

        path = self._path
        if authority != "" and not path.startswith("/"):
            uri += "/" + path
        elif authority == "" and path.startswith("//"):
            # Keep the path from being read back as an authority
            uri += "/" + path.lstrip("/")
        else:
            uri += path

        if self._query != "":
            uri += f"?{self._query}"

        if self._fragment != "":
            uri += f"#{self._fragment}"

        return uri

    def __repr__(self) -> str:
        return f"Uri({str(self)!r})"

    def _components(self) -> Tuple[str, str, str, Optional[int], str, str, str]:
        return (
            self._scheme,
            self._user_info,
            self._host,
            self._port,
            self._path,
            self._query,
            self._fragment,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Uri):
            return NotImplemented
        return self._components() == other._components()

    def __hash__(self) -> int:
        return hash(self._components())

    def filter_scheme(self, scheme: str) -> str:
        if scheme == "":
            return scheme
        if not SCHEME_RE.match(scheme):
            raise ValidationError(f'Scheme {scheme!r} must be compliant with the "RFC 3986" standard')
        return scheme.lower()

    def filter_host(self, host: str) -> str:
        if host == "":
            return host

        if len(host) > 2 and host.startswith("[") and host.endswith("]"):
            literal = host[1:-1]
            if literal[:1] in ("v", "V"):
                if not IPV_FUTURE_RE.match(literal):
                    raise ValidationError(
                        'IP address must be compliant with the "IPvFuture" of the "RFC 3986" standard'
                    )
            elif not self._is_ipv6(literal):
                raise ValidationError(
                    'IP address must be compliant with the "IPv6address" of the "RFC 3986" standard'
                )
        elif IPV4_PREFIX_RE.match(host):
            try:
                ipaddress.IPv4Address(host)
            except ValueError as e:
                raise ValidationError(
                    'IP address must be compliant with the "IPv4address" of the "RFC 3986" standard',
                    e,
                ) from e
        elif not REG_NAME_RE.match(host):
            raise ValidationError(f'Host {host!r} must be compliant with the "RFC 3986" standard')

        return host.lower()

    @staticmethod
    def _is_ipv6(literal: str) -> bool:
        # Zone identifiers are not part of the RFC 3986 IPv6address rule
        if "%" in literal:
            return False
        try:
            ipaddress.IPv6Address(literal)
        except ValueError:
            return False
        return True

    def filter_port(self, port: Optional[int]) -> Optional[int]:
        if port is None:
            return None
        if isinstance(port, bool) or not isinstance(port, int):
            raise ValidationError(f"Port must be an integer, got {type(port).__name__}")
        if port < 1 or port > 65535:
            raise ValidationError("TCP or UDP port must be between 1 and 65535")
        return None if self._is_standard_port(self._scheme, port) else port

    def filter_path(self, path: str) -> str:
        if self._scheme == "" and path.startswith(":"):
            raise ValidationError("Path of a URI without a scheme cannot begin with a colon")

        authority = self.authority
        if authority == "" and path.startswith("//"):
            raise ValidationError("Path of a URI without an authority cannot begin with two slashes")

        if authority != "" and path != "" and not path.startswith("/"):
            raise ValidationError("Path of a URI with an authority must be empty or begin with a slash")

        if path in ("", "/"):
            return path

        if not PATH_RE.match(path):
            raise ValidationError(f'Path {path!r} must be compliant with the "RFC 3986" standard')
        return encode_invalid_runs(path, PATH_CHARS)

    def filter_query(self, query: str) -> str:
        if query == "":
            return query
        if not QUERY_RE.match(query):
            raise ValidationError(f'Query {query!r} must be compliant with the "RFC 3986" standard')
        return encode_invalid_runs(query, QUERY_CHARS)

    def filter_fragment(self, fragment: str) -> str:
        if fragment == "":
            return fragment
        return encode_invalid_runs(fragment, QUERY_CHARS)

    def _is_standard_port(self, scheme: str, port: Optional[int]) -> bool:
        return port is not None and self.DEFAULT_PORTS.get(scheme) == port
