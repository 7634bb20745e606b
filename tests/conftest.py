"""
Pytest configuration for http_message tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import io

import pytest

from http_message.streams import Stream
from http_message.uri import Uri


@pytest.fixture
def sample_uri() -> Uri:
    """URI with every component set."""
    return Uri("http://hostname:9090/path?arg=value#anchor")


@pytest.fixture
def sample_stream():
    """Create an in-memory stream with the given contents."""
    def _create_stream(content: bytes = b"test") -> Stream:
        return Stream(content)
    return _create_stream


@pytest.fixture
def sample_server_params():
    """CGI-style server parameters of a GET request."""
    return {
        "REQUEST_METHOD": "GET",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "SERVER_NAME": "example.com",
        "SERVER_PORT": "8080",
        "REQUEST_URI": "/search?q=python",
        "QUERY_STRING": "q=python",
        "HTTP_HOST": "example.com:8080",
        "HTTP_ACCEPT": "text/html, application/json",
    }


@pytest.fixture
def sample_wsgi_environ():
    """WSGI environ of a form POST."""
    body = b"name=Jane+Doe&role=admin"
    return {
        "REQUEST_METHOD": "POST",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "SERVER_NAME": "example.com",
        "SERVER_PORT": "443",
        "SCRIPT_NAME": "",
        "PATH_INFO": "/users",
        "QUERY_STRING": "page=2",
        "CONTENT_TYPE": "application/x-www-form-urlencoded",
        "CONTENT_LENGTH": str(len(body)),
        "HTTP_HOST": "example.com",
        "HTTP_COOKIE": "session=abc123; theme=dark",
        "wsgi.url_scheme": "https",
        "wsgi.input": io.BytesIO(body),
    }


@pytest.fixture
def upload_file(tmp_path):
    """Create a file standing in for a server-side upload temp file."""
    def _create_file(content: bytes = b"uploaded content", name: str = "upload.tmp") -> str:
        path = tmp_path / name
        path.write_bytes(content)
        return str(path)
    return _create_file
