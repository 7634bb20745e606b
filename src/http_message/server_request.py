"""
Incoming, server-side HTTP request for http_message.

ServerRequest extends Request with the data a server derives from
its environment: server, cookie and query parameters, uploaded
files, the parsed body and application-defined attributes.
"""

import logging
import re
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from typing_extensions import Self

from .exceptions import ValidationError
from .request import Request
from .streams import Stream
from .uploaded_file import FileTree, UploadedFile, normalize_files
from .uri import Uri

if TYPE_CHECKING:
    from .environment import ServerEnvironment  # Forward reference

logger = logging.getLogger(__name__)

PROTOCOL_VERSION_RE = re.compile(r"^[0-9]\.[0-9]\Z")

_SCALAR_TYPES = (str, bytes, bytearray, int, float, complex, bool)


def filter_parsed_body(data: Any) -> Any:
    """Accept None, a mapping, a list or a non-scalar object."""
    if data is not None and isinstance(data, _SCALAR_TYPES):
        raise ValidationError(
            f"Invalid parsed body! Parsed body must be a mapping or an object, got {type(data).__name__}"
        )
    return data


def filter_uploaded_files(files: Any) -> Any:
    """
    Validate an uploaded files tree and copy its containers.

    Internal nodes are mappings or lists, leaves must be UploadedFile.

    Raises:
        ValidationError: If any leaf is not an UploadedFile
    """
    if isinstance(files, Mapping):
        return {name: filter_uploaded_files(node) for name, node in files.items()}
    if isinstance(files, (list, tuple)):
        return [filter_uploaded_files(node) for node in files]
    if isinstance(files, UploadedFile):
        return files
    raise ValidationError(
        "Invalid structure of uploaded files tree, each uploaded file must be an instance of UploadedFile"
    )


def _frozen(params: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(params or {}))


class ServerRequest(Request):
    """Immutable server-side HTTP request."""

    def __init__(
        self,
        method: str = "GET",
        uri: Union[Uri, str, None] = None,
        server_params: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Initialize ServerRequest.

        Args:
            method: HTTP method
            uri: Uri instance or URI string
            server_params: Server parameters (CGI-style environment)
        """
        self._server_params = _frozen(server_params)
        self._cookie_params = _frozen(None)
        self._query_params = _frozen(None)
        self._uploaded_files: FileTree = {}
        self._parsed_body: Any = None
        self._attributes = _frozen(None)
        super().__init__(method, uri)

    @classmethod
    def from_environ(cls, environment: "ServerEnvironment") -> "ServerRequest":
        """
        Create a server request from an environment snapshot.

        The method comes from the "_method" form override, then
        REQUEST_METHOD, then defaults to GET. Every HTTP_* server
        parameter becomes a header.

        Args:
            environment: The environment snapshot of the current request

        Returns:
            New ServerRequest instance

        Raises:
            ValidationError: If an HTTP/1.1 request has no Host header
        """
        server = environment.server
        method = environment.post.get("_method") or server.get("REQUEST_METHOD") or "GET"

        protocol_version = cls.DEFAULT_PROTOCOL_VERSION
        server_protocol = server.get("SERVER_PROTOCOL") or ""
        _, _, version = server_protocol.partition("/")
        if PROTOCOL_VERSION_RE.match(version):
            protocol_version = version

        request = (
            cls(method, Uri.from_environ(server), server)
            .without_header("Host")
            .with_protocol_version(protocol_version)
            .with_query_params(environment.query)
            .with_parsed_body(dict(environment.post))
            .with_cookie_params(environment.cookies)
            .with_uploaded_files(normalize_files(environment.files))
        )

        for key, value in server.items():
            if not key.startswith("HTTP_") or not isinstance(value, str):
                continue
            name = key[5:].replace("_", "-")
            request = request.with_added_header(name, [part.strip() for part in value.split(",")])

        if protocol_version == "1.1" and not request.has_header("Host"):
            raise ValidationError('Invalid request! "HTTP/1.1" request must contain a "Host" header')

        logger.debug(f"Created server request {request.method} {request.request_target}")
        body = environment.input
        return request.with_body(body if isinstance(body, Stream) else Stream(body))

    @property
    def server_params(self) -> Mapping[str, Any]:
        return self._server_params

    @property
    def cookie_params(self) -> Mapping[str, Any]:
        return self._cookie_params

    def with_cookie_params(self, cookies: Mapping[str, Any]) -> Self:
        that = self._clone()
        that._cookie_params = _frozen(cookies)
        return that

    @property
    def query_params(self) -> Mapping[str, Any]:
        return self._query_params

    def with_query_params(self, query: Mapping[str, Any]) -> Self:
        that = self._clone()
        that._query_params = _frozen(query)
        return that

    @property
    def uploaded_files(self) -> FileTree:
        return filter_uploaded_files(self._uploaded_files)

    def with_uploaded_files(self, uploaded_files: Any) -> Self:
        if not isinstance(uploaded_files, (Mapping, list, tuple)):
            raise ValidationError("Uploaded files must be given as a mapping or a list")
        that = self._clone()
        that._uploaded_files = filter_uploaded_files(uploaded_files)
        return that

    @property
    def parsed_body(self) -> Any:
        return self._parsed_body

    def with_parsed_body(self, data: Any) -> Self:
        that = self._clone()
        that._parsed_body = filter_parsed_body(data)
        return that

    @property
    def attributes(self) -> Mapping[str, Any]:
        return self._attributes

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> Self:
        that = self._clone()
        that._attributes = MappingProxyType({**self._attributes, name: value})
        return that

    def without_attribute(self, name: str) -> Self:
        that = self._clone()
        if name in self._attributes:
            that._attributes = MappingProxyType(
                {key: value for key, value in self._attributes.items() if key != name}
            )
        return that
