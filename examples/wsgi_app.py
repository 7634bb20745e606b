"""
WSGI application example using http_message.

This example demonstrates how to turn a WSGI environ into a
ServerRequest, build an immutable Response and hand it back to
the WSGI server.
"""

import logging
from wsgiref.simple_server import make_server

from http_message import Response, ServerEnvironment, ServerRequest, Stream

# Configure logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)


def handle(request: ServerRequest) -> Response:
    """Answer every request with a short plain text summary."""
    name = request.query_params.get("name", "world")
    visits = int(request.cookie_params.get("visits", "0")) + 1

    body = f"Hello, {name}! {request.method} {request.request_target} (visit {visits})\n"
    return (
        Response(200)
        .with_header("Content-Type", "text/plain; charset=utf-8")
        .with_added_header("Set-Cookie", f"visits={visits}; Path=/")
        .with_body(Stream(body))
    )


def application(environ, start_response):
    """WSGI entry point."""
    request = ServerRequest.from_environ(ServerEnvironment.from_wsgi(environ))
    response = handle(request)
    logger.info(f"{request.method} {request.uri} -> {response.status_code}")

    status = f"{response.status_code} {response.reason_phrase}"
    start_response(status, [(name.title(), value) for name, value in response.header_lines()])
    return [bytes(response.body)]


if __name__ == "__main__":
    with make_server("127.0.0.1", 8000, application) as server:
        logger.info("Serving on http://127.0.0.1:8000/?name=you")
        server.serve_forever()
