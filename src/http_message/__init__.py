"""
http_message - Immutable HTTP message library

Value objects for HTTP requests, responses, URIs, streams and
uploaded files, with conversion to and from h11 events.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .uri import Uri
from .headers import HeaderBag
from .message import Message
from .request import Request
from .response import Response
from .server_request import ServerRequest
from .environment import ServerEnvironment
from .streams import Stream
from .uploaded_file import UploadContext, UploadError, UploadedFile, normalize_files
from .exceptions import HTTPMessageError, ValidationError, ResourceStateError, IOOperationError
from .http11 import (
    to_h11_request,
    to_h11_response,
    to_h11_events,
    from_h11_request,
    from_h11_response,
)

__all__ = [
    "Uri",
    "HeaderBag",
    "Message",
    "Request",
    "Response",
    "ServerRequest",
    "ServerEnvironment",
    "Stream",
    "UploadContext",
    "UploadError",
    "UploadedFile",
    "normalize_files",
    "HTTPMessageError",
    "ValidationError",
    "ResourceStateError",
    "IOOperationError",
    "to_h11_request",
    "to_h11_response",
    "to_h11_events",
    "from_h11_request",
    "from_h11_response",
]
