"""
Outgoing, server-side HTTP response for http_message.
"""

from typing import Dict, List, Tuple

from typing_extensions import Self

from .exceptions import ValidationError
from .message import Message

REASON_PHRASES: Dict[int, str] = {
    # Informational
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",
    103: "Early Hints",
    # Successful
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",
    208: "Already Reported",
    226: "IM Used",
    # Redirection
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    # Client Error
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    421: "Misdirected Request",
    422: "Unprocessable Entity",
    423: "Locked",
    424: "Failed Dependency",
    425: "Too Early",
    426: "Upgrade Required",
    428: "Precondition Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    451: "Unavailable For Legal Reasons",
    # Server Error
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    508: "Loop Detected",
    510: "Not Extended",
    511: "Network Authentication Required",
}


def filter_status_code(code: int) -> int:
    """Validate a status code: 100-599, and never the unused 306."""
    if isinstance(code, bool) or not isinstance(code, int):
        raise ValidationError(f"Invalid status code! Status code must be an integer, got {code!r}")
    if code == 306:
        raise ValidationError("Invalid status code! Status code 306 is unused.")
    if code < 100 or code > 599:
        raise ValidationError("Invalid status code! Status code must be between 100 and 599.")
    return code


class Response(Message):
    """
    Immutable HTTP response.

    New responses carry the DEFAULT_HEADERS security headers. Set the
    class attribute to an empty tuple in a subclass to opt out.
    """

    REASON_PHRASES = REASON_PHRASES

    DEFAULT_HEADERS: Tuple[Tuple[str, str], ...] = (
        (
            "Content-Security-Policy",
            "default-src 'self'; frame-ancestors 'self'; form-action 'self';",
        ),
        ("X-Content-Type-Options", "nosniff"),
    )

    def __init__(self, status_code: int = 200, reason_phrase: str = "") -> None:
        """
        Initialize Response.

        Args:
            status_code: HTTP status code
            reason_phrase: Reason phrase; looked up from the status code
                when empty
        """
        super().__init__()
        self._status_code = filter_status_code(status_code)
        self._reason_phrase = reason_phrase or self.REASON_PHRASES.get(self._status_code, "")

        for name, value in self.DEFAULT_HEADERS:
            self._headers = self._headers.add(name, value)

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def reason_phrase(self) -> str:
        return self._reason_phrase

    def with_status(self, code: int, reason_phrase: str = "") -> Self:
        """
        Create a new response with a different status.

        Args:
            code: HTTP status code
            reason_phrase: Reason phrase; the standard phrase for code
                (or "" for an unknown code) when empty
        """
        that = self._clone()
        that._status_code = filter_status_code(code)
        that._reason_phrase = reason_phrase or self.REASON_PHRASES.get(code, "")
        return that

    def start_line(self) -> str:
        return f"HTTP/{self._protocol_version} {self._status_code} {self._reason_phrase}"

    def header_lines(self) -> List[Tuple[str, str]]:
        lines = []
        for name, values in self._headers.items():
            if name == "set-cookie":
                lines.extend((name, value) for value in values)
            else:
                lines.append((name, ", ".join(values)))
        return lines

    def __repr__(self) -> str:
        return f"<Response [{self._status_code} {self._reason_phrase}]>"
