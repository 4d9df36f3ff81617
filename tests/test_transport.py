"""Tests for the requests-backed transport."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from urllib3._collections import HTTPHeaderDict

from httpwrap.parser import parse_http_response
from httpwrap.transport import (
    ERR_COULDNT_CONNECT,
    ERR_FAILED,
    ERR_OPERATION_TIMEDOUT,
    ERR_PEER_FAILED_VERIFICATION,
    ERR_URL_MALFORMAT,
    error_code,
    header_dict,
    requests_transport,
)

OPTIONS = {
    "connect_timeout": 5,
    "timeout": 30,
    "follow_location": True,
    "header": False,
    "verify": True,
    "ca_info": None,
}


def _mock_response(status_code=200, reason="OK", text="hello", headers=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.reason = reason
    resp.text = text
    resp.raw.version = 11
    resp.raw.headers = headers if headers is not None else HTTPHeaderDict()
    return resp


class TestHeaderDict:
    """Tests for header-line conversion."""

    def test_splits_on_first_colon(self):
        assert header_dict(["Cookie: a=b:c"]) == {"Cookie": "a=b:c"}

    def test_skips_lines_without_colon(self):
        assert header_dict(["garbage", "A: 1"]) == {"A": "1"}


class TestErrorCode:
    """Tests for exception to error-number mapping."""

    @pytest.mark.parametrize(
        "exc, code",
        [
            (requests.exceptions.ConnectTimeout(), ERR_OPERATION_TIMEDOUT),
            (requests.exceptions.ReadTimeout(), ERR_OPERATION_TIMEDOUT),
            (requests.exceptions.SSLError(), ERR_PEER_FAILED_VERIFICATION),
            (requests.exceptions.ConnectionError(), ERR_COULDNT_CONNECT),
            (requests.exceptions.MissingSchema(), ERR_URL_MALFORMAT),
            (requests.exceptions.RequestException(), ERR_FAILED),
        ],
    )
    def test_mapping(self, exc, code):
        assert error_code(exc) == code


class TestRequestsTransport:
    """Tests for requests_transport."""

    @patch("httpwrap.transport.requests.request")
    def test_body_only(self, mock_request):
        mock_request.return_value = _mock_response(text="hello")
        raw, errno, errmsg = requests_transport(
            "http://x", "GET", [], None, OPTIONS
        )
        assert (raw, errno, errmsg) == ("hello", 0, None)
        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "http://x"
        assert kwargs["timeout"] == (5, 30)
        assert kwargs["allow_redirects"] is True
        assert kwargs["verify"] is True

    @patch("httpwrap.transport.requests.request")
    def test_sends_headers_and_body(self, mock_request):
        mock_request.return_value = _mock_response()
        requests_transport("http://x", "POST", ["X-A: 1"], "a=1", OPTIONS)
        kwargs = mock_request.call_args.kwargs
        assert kwargs["headers"] == {"X-A": "1"}
        assert kwargs["data"] == "a=1"

    @patch("httpwrap.transport.requests.request")
    def test_ca_bundle_used_for_verify(self, mock_request):
        mock_request.return_value = _mock_response()
        options = dict(OPTIONS, ca_info="/tmp/ca.pem")
        requests_transport("https://x", "GET", [], None, options)
        assert mock_request.call_args.kwargs["verify"] == "/tmp/ca.pem"

    @patch("httpwrap.transport.requests.request")
    def test_insecure_disables_verify(self, mock_request):
        mock_request.return_value = _mock_response()
        options = dict(OPTIONS, verify=False, ca_info="/tmp/ca.pem")
        requests_transport("https://x", "GET", [], None, options)
        assert mock_request.call_args.kwargs["verify"] is False

    @patch("httpwrap.transport.requests.request")
    def test_header_capture_builds_parsable_stream(self, mock_request):
        headers = HTTPHeaderDict()
        headers.add("Content-Type", "text/plain")
        headers.add("Set-Cookie", "a=1")
        headers.add("Set-Cookie", "b=2")
        mock_request.return_value = _mock_response(
            status_code=404, reason="Not Found", text="missing", headers=headers
        )
        options = dict(OPTIONS, header=True)
        raw, errno, _ = requests_transport("http://x", "GET", [], None, options)
        assert errno == 0
        assert raw.startswith("HTTP/1.1 404 Not Found\r\n")

        parsed = parse_http_response(raw)
        assert parsed.status_code == 404
        assert parsed.headers == (
            "Content-Type: text/plain",
            "Set-Cookie: a=1",
            "Set-Cookie: b=2",
        )
        assert parsed.body == "missing"

    @patch("httpwrap.transport.requests.request")
    def test_transport_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError(
            "Connection refused"
        )
        raw, errno, errmsg = requests_transport(
            "http://x", "GET", [], None, OPTIONS
        )
        assert raw is None
        assert errno == ERR_COULDNT_CONNECT
        assert "Connection refused" in errmsg
