"""
h11 interop for http_message.

Converts requests and responses to the events an h11.Connection
sends, and builds messages back from the events it receives. The
conversion is purely in memory; no I/O happens here.
"""

import logging
from typing import List, Sequence, Tuple, Type, TypeVar, Union

import h11

from .exceptions import ValidationError
from .message import Message
from .request import Request
from .response import Response
from .streams import Stream
from .uri import Uri

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=Request)
MessageT = TypeVar("MessageT", bound=Message)

HeadEvent = Union[h11.Request, h11.Response, h11.InformationalResponse]
Body = Union[bytes, Stream, None]


def _encode_headers(message: Message) -> List[Tuple[bytes, bytes]]:
    try:
        return [
            (name.encode("ascii"), value.encode("latin-1"))
            for name, value in message.header_lines()
        ]
    except UnicodeEncodeError as e:
        raise ValidationError("Header can not be encoded for the wire", e) from e


def _decode_headers(headers: Sequence[Tuple[bytes, bytes]]) -> List[Tuple[str, str]]:
    return [(name.decode("ascii"), value.decode("latin-1")) for name, value in headers]


def _apply_headers(message: MessageT, headers: Sequence[Tuple[bytes, bytes]]) -> MessageT:
    seen = set()
    for name, value in _decode_headers(headers):
        if name in seen:
            message = message.with_added_header(name, value)
        else:
            message = message.with_header(name, value)
            seen.add(name)
    return message


def _apply_body(message: MessageT, body: Body) -> MessageT:
    if body is None:
        return message
    return message.with_body(body if isinstance(body, Stream) else Stream(body))


def to_h11_request(request: Request) -> h11.Request:
    """
    Convert a request to an h11.Request event.

    Raises:
        ValidationError: If h11 rejects the request head (for example an
            HTTP/1.1 request with an empty Host header)
    """
    try:
        return h11.Request(
            method=request.method,
            target=request.request_target,
            headers=_encode_headers(request),
            http_version=request.protocol_version,
        )
    except h11.LocalProtocolError as e:
        raise ValidationError(f"h11 rejected request {request.method} {request.request_target}", e) from e


def to_h11_response(response: Response) -> Union[h11.Response, h11.InformationalResponse]:
    """
    Convert a response to an h11 event.

    1xx responses become h11.InformationalResponse, everything else
    h11.Response.

    Raises:
        ValidationError: If h11 rejects the response head
    """
    event_type: Type[Union[h11.Response, h11.InformationalResponse]] = h11.Response
    if response.status_code < 200:
        event_type = h11.InformationalResponse

    try:
        return event_type(
            status_code=response.status_code,
            headers=_encode_headers(response),
            http_version=response.protocol_version,
            reason=response.reason_phrase,
        )
    except h11.LocalProtocolError as e:
        raise ValidationError(f"h11 rejected response {response.status_code}", e) from e


def to_h11_events(message: Message) -> List[h11.Event]:
    """
    Convert a whole message to the events h11.Connection.send expects.

    Returns:
        The head event, an h11.Data event when the body is not empty,
        then h11.EndOfMessage. Informational responses only yield their
        head event.
    """
    head: HeadEvent
    if isinstance(message, Request):
        head = to_h11_request(message)
    elif isinstance(message, Response):
        head = to_h11_response(message)
    else:
        raise ValidationError(f"Can not convert {type(message).__name__} to h11 events")

    if isinstance(head, h11.InformationalResponse):
        return [head]

    events: List[h11.Event] = [head]
    data = bytes(message.body)
    if data:
        events.append(h11.Data(data=data))
    events.append(h11.EndOfMessage())

    logger.debug(f"Converted {type(message).__name__} to {len(events)} h11 events")
    return events


def from_h11_request(
    event: h11.Request,
    body: Body = None,
    request_class: Type[RequestT] = Request,  # type: ignore[assignment]
) -> RequestT:
    """
    Build a request from a received h11.Request event.

    Origin-form and absolute-form targets are parsed into the Uri; any
    other target form ("*", authority-form) is kept as the explicit
    request target with an empty Uri. Received headers replace the
    synthesized Host header.

    Args:
        event: The received request head
        body: The received body, as bytes or a Stream
        request_class: Request or a subclass such as ServerRequest

    Raises:
        ValidationError: If the method or target is invalid
    """
    method = event.method.decode("ascii")
    target = event.target.decode("ascii")

    uri = Uri(target) if target.startswith("/") or "://" in target else Uri()
    request = (
        request_class(method, uri)
        .without_header("Host")
        .with_protocol_version(event.http_version.decode("ascii"))
        .with_request_target(target)
    )
    request = _apply_body(_apply_headers(request, event.headers), body)

    logger.debug(f"Built {request_class.__name__} {method} {target} from h11 event")
    return request


def from_h11_response(
    event: Union[h11.Response, h11.InformationalResponse],
    body: Body = None,
) -> Response:
    """
    Build a response from a received h11 response event.

    Only the received headers are kept; the security headers a new
    Response carries by default are dropped.

    Raises:
        ValidationError: If the status code is invalid
    """
    response = Response(event.status_code, event.reason.decode("latin-1"))
    for name, _ in Response.DEFAULT_HEADERS:
        response = response.without_header(name)

    response = response.with_protocol_version(event.http_version.decode("ascii"))
    response = _apply_body(_apply_headers(response, event.headers), body)

    logger.debug(f"Built response {response.status_code} from h11 event")
    return response
