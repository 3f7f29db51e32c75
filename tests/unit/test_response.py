"""
Unit tests for HTTP response parsing.
"""

import pytest

from conftest import chunked_response, fixed_response
from tasmota.errors import MalformedResponseError
from tasmota.http.response import HTTPResponse, ResponseParser, parse_response
from tasmota.http.status_codes import HTTPStatus, reason_phrase


class TestResponseParser:
    """Tests for ResponseParser class."""

    def test_fixed_length(self, power_response: bytes):
        """Test that content is exactly Content-Length bytes."""
        response = ResponseParser().parse(power_response)

        assert response.status_code == 200
        assert response.content == b'{"POWER":"ON"}'
        assert len(response.content) == int(response.headers["content-length"])
        assert response.complete is True

    def test_header_excludes_body(self, power_response: bytes):
        """Test that header text runs up to and including the empty line."""
        response = parse_response(power_response)

        assert response.header.startswith("HTTP/1.1 200 OK\r\n")
        assert response.header.endswith("\r\n\r\n")
        assert "POWER" not in response.header

    def test_content_is_everything_after_header(self):
        """Test that content runs to the last received byte."""
        data = b'HTTP/1.1 200 OK\r\nContent-Length: 13\r\n\r\n{"Power":"ON"}'
        response = parse_response(data)

        assert response.content == b'{"Power":"ON"}'
        assert response.complete is True
        assert response.json() == {"Power": "ON"}

    def test_chunked(self, modules_response: bytes):
        """Test that chunked content is dechunked."""
        response = parse_response(modules_response)

        assert response.content == b'{"Modules":{"0":"Generic","1":"Sonoff"}}'
        assert response.complete is True

    def test_chunked_wins_over_content_length(self):
        """Test that chunked framing takes precedence."""
        data = (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Length: 3\r\n"
            b"Transfer-Encoding: chunked\r\n"
            b"\r\n"
            b"5\r\nhello\r\n0\r\n\r\n"
        )
        assert parse_response(data).content == b"hello"

    def test_error_status_is_not_an_exception(self):
        """Test that 4xx/5xx come back as normal responses."""
        response = parse_response(fixed_response(b"nope", status="404 Not Found"))

        assert response.status_code == 404
        assert response.reason == "Not Found"
        assert response.ok is False
        assert response.content == b"nope"

    def test_missing_terminator(self):
        """Test that a header without terminator is malformed."""
        with pytest.raises(MalformedResponseError):
            parse_response(b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n")

    def test_missing_status_line(self):
        """Test that a non-HTTP/1.1 answer is malformed."""
        with pytest.raises(MalformedResponseError, match="status line"):
            parse_response(b"ICY 200 OK\r\nContent-Length: 0\r\n\r\n")

    def test_missing_framing(self):
        """Test that a response without any framing information is malformed."""
        with pytest.raises(MalformedResponseError, match="Content-Length"):
            parse_response(b"HTTP/1.1 200 OK\r\nServer: x\r\n\r\n{}")

    def test_short_fixed_body_is_incomplete(self):
        """Test that a truncated fixed-length body is flagged incomplete."""
        data = fixed_response(b'{"POWER":"ON"}')[:-3]
        response = parse_response(data, complete=False)

        assert response.complete is False
        assert response.content == b'{"POWER":"O'

    def test_truncated_chunked_keeps_whole_chunks(self):
        """Test that a truncated chunked body keeps only fully received chunks."""
        data = chunked_response(b"abc", b"def")
        truncated = data[:data.index(b"def") + 1]

        response = parse_response(truncated, complete=False)
        assert response.content == b"abc"
        assert response.complete is False

        with pytest.raises(MalformedResponseError):
            parse_response(truncated, complete=True)


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_headers_lowercased(self, power_response: bytes):
        """Test header access by any case."""
        response = parse_response(power_response)

        assert response.headers["content-type"] == "application/json"
        assert "x-missing" not in response.headers

    def test_repeated_headers_joined(self):
        """Test that repeated header fields are joined."""
        response = HTTPResponse(
            status_code=200,
            header="HTTP/1.1 200 OK\r\nVia: a\r\nVia: b\r\n\r\n",
        )
        assert response.headers["via"] == "a, b"

    def test_json(self, power_response: bytes):
        """Test JSON decoding of the content."""
        assert parse_response(power_response).json() == {"POWER": "ON"}

    def test_json_invalid(self):
        """Test that invalid JSON content raises MalformedResponseError."""
        with pytest.raises(MalformedResponseError):
            HTTPResponse(status_code=200, content=b"{not json").json()

    def test_equality_ignores_header_cache(self):
        """Test that parsing headers doesn't change equality."""
        a = HTTPResponse(status_code=200, header="HTTP/1.1 200 OK\r\n\r\n")
        b = HTTPResponse(status_code=200, header="HTTP/1.1 200 OK\r\n\r\n")
        a.headers
        assert a == b


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_phrases(self):
        """Test reason phrases."""
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.SERVICE_UNAVAILABLE.phrase == "Service Unavailable"

    def test_unknown_code(self):
        """Test that unlisted codes have an Unknown phrase."""
        assert reason_phrase(299) == "Unknown"

