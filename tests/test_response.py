"""
Unit tests for Response.

Tests status codes, reason phrases, the default security headers
and wire serialization.
"""

import pytest

from http_message.exceptions import ValidationError
from http_message.response import REASON_PHRASES, Response, filter_status_code

CSP = "default-src 'self'; frame-ancestors 'self'; form-action 'self';"


class TestResponseStatus:
    """Test status code and reason phrase handling."""

    def test_defaults(self) -> None:
        """Test a response created without arguments."""
        response = Response()
        assert response.status_code == 200
        assert response.reason_phrase == "OK"

    def test_reason_phrase_lookup(self) -> None:
        """Test the phrase derived from the status code."""
        assert Response().with_status(404, "").reason_phrase == "Not Found"
        assert Response(418).reason_phrase == ""

    def test_custom_reason_phrase(self) -> None:
        """Test an explicit reason phrase."""
        response = Response().with_status(401, "Not authorized")
        assert response.status_code == 401
        assert response.reason_phrase == "Not authorized"

    @pytest.mark.parametrize("code", [100, 200, 599])
    def test_valid_boundaries(self, code: int) -> None:
        """Test accepted status codes."""
        assert Response().with_status(code).status_code == code

    @pytest.mark.parametrize("code", [99, 600, 306, True, "200", 200.0])
    def test_invalid_codes(self, code) -> None:
        """Test rejected status codes."""
        with pytest.raises(ValidationError):
            filter_status_code(code)
        with pytest.raises(ValidationError):
            Response().with_status(code)

    def test_with_status_keeps_receiver(self) -> None:
        """Test immutability of with_status."""
        response = Response()
        response.with_status(500)
        assert response.status_code == 200

    def test_reason_phrases_table(self) -> None:
        """Test a few entries of the phrase table."""
        assert REASON_PHRASES[201] == "Created"
        assert REASON_PHRASES[503] == "Service Unavailable"
        assert 306 not in REASON_PHRASES


class TestResponseSecurityHeaders:
    """
    Test the security headers of new responses.

    New responses carry Content-Security-Policy and
    X-Content-Type-Options. They are really applied to the constructed
    object, not computed and discarded.
    """

    def test_constructed_response_carries_security_headers(self) -> None:
        """Test that both security headers are present after construction."""
        response = Response()
        assert response.get_header_line("Content-Security-Policy") == CSP
        assert response.get_header_line("X-Content-Type-Options") == "nosniff"

    def test_security_headers_can_be_removed(self) -> None:
        """Test that the headers behave like any other header."""
        response = Response().without_header("Content-Security-Policy")
        assert not response.has_header("Content-Security-Policy")
        assert response.has_header("X-Content-Type-Options")

    def test_subclass_opt_out(self) -> None:
        """Test overriding DEFAULT_HEADERS in a subclass."""
        class PlainResponse(Response):
            DEFAULT_HEADERS = ()

        assert PlainResponse().headers == {}


class TestResponseToString:
    """Test wire serialization of responses."""

    def test_default_response(self) -> None:
        """Test the wire text of a new response."""
        assert str(Response()) == (
            "HTTP/1.1 200 OK\r\n"
            f"content-security-policy: {CSP}\r\n"
            "x-content-type-options: nosniff\r\n"
            "\r\n"
        )

    def test_with_body(self, sample_stream) -> None:
        """Test the wire text of a response with a body."""
        response = Response(404).with_body(sample_stream(b"test"))
        assert bytes(response).endswith(b"content-length: 4\r\n\r\ntest")
        assert bytes(response).startswith(b"HTTP/1.1 404 Not Found\r\n")

    def test_set_cookie_one_line_per_value(self) -> None:
        """Test that Set-Cookie values are never joined."""
        response = Response().with_header("Set-Cookie", ["a=1; Path=/", "b=2"])
        text = str(response)
        assert "set-cookie: a=1; Path=/\r\n" in text
        assert "set-cookie: b=2\r\n" in text

    def test_repr(self) -> None:
        """Test the debug representation."""
        assert repr(Response(404)) == "<Response [404 Not Found]>"
