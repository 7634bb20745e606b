"""
Request environment snapshot for http_message.

ServerEnvironment gathers everything a server knows about the
current request (server parameters, query, form and cookie
parameters, uploaded file descriptors and the raw input) into one
immutable value passed to ServerRequest.from_environ.
"""

import logging
from dataclasses import dataclass, field
from http.cookies import CookieError, SimpleCookie
from typing import Any, BinaryIO, Dict, Mapping, Union
from urllib.parse import parse_qsl, quote

from .exceptions import ValidationError
from .streams import Stream

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class ServerEnvironment:
    """
    Immutable snapshot of a request's environment.

    The server mapping uses CGI names (REQUEST_METHOD, SERVER_PROTOCOL,
    HTTPS, SERVER_NAME, SERVER_PORT, REQUEST_URI, QUERY_STRING, HTTP_*).
    """

    server: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    post: Mapping[str, Any] = field(default_factory=dict)
    cookies: Mapping[str, Any] = field(default_factory=dict)
    files: Mapping[str, Any] = field(default_factory=dict)
    input: Union[bytes, BinaryIO, Stream] = b""

    def __post_init__(self) -> None:
        """Validate environment data after initialization."""
        for name in ("server", "query", "post", "cookies", "files"):
            if not isinstance(getattr(self, name), Mapping):
                raise ValidationError(f"{name} must be a mapping")

        if not isinstance(self.input, (bytes, Stream)) and not hasattr(self.input, "read"):
            raise ValidationError("input must be bytes, a binary file object or a Stream")

    @classmethod
    def from_wsgi(cls, environ: Mapping[str, Any]) -> "ServerEnvironment":
        """
        Create an environment snapshot from a WSGI environ.

        Args:
            environ: The WSGI environ of the current request

        Returns:
            New ServerEnvironment; multipart bodies are not parsed, so
            files is always empty
        """
        server: Dict[str, str] = {
            key: value for key, value in environ.items() if isinstance(value, str)
        }

        query_string = server.get("QUERY_STRING", "")
        path = server.get("SCRIPT_NAME", "") + server.get("PATH_INFO", "")
        # WSGI carries the raw path bytes as latin-1 text
        request_uri = quote(path.encode("latin-1")) or "/"
        if query_string:
            request_uri += f"?{query_string}"
        server.setdefault("REQUEST_URI", request_uri)

        if environ.get("wsgi.url_scheme") == "https":
            server.setdefault("HTTPS", "on")

        body = cls._read_input(environ)

        post: Dict[str, str] = {}
        content_type = server.get("CONTENT_TYPE", "")
        if content_type.split(";", 1)[0].strip().lower() == FORM_CONTENT_TYPE:
            post = dict(parse_qsl(body.decode("latin-1"), keep_blank_values=True))

        return cls(
            server=server,
            query=dict(parse_qsl(query_string, keep_blank_values=True)),
            post=post,
            cookies=cls._parse_cookies(server.get("HTTP_COOKIE", "")),
            input=body,
        )

    @staticmethod
    def _read_input(environ: Mapping[str, Any]) -> bytes:
        stream = environ.get("wsgi.input")
        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError as e:
            raise ValidationError(f"Invalid CONTENT_LENGTH {environ.get('CONTENT_LENGTH')!r}", e) from e

        if stream is None or length <= 0:
            return b""
        return stream.read(length)

    @staticmethod
    def _parse_cookies(header: str) -> Dict[str, str]:
        if not header:
            return {}

        cookie: SimpleCookie = SimpleCookie()
        try:
            cookie.load(header)
        except CookieError as e:
            logger.warning(f"Ignoring unparsable cookie header: {e}")
            return {}
        return {name: morsel.value for name, morsel in cookie.items()}
