"""HTTP transport backed by the requests library.

The engine only sees a callable with the signature
``(url, method, headers, body, options) -> (raw, errno, errmsg)``.
"""

from __future__ import annotations

import logging

import requests
import urllib3

logger = logging.getLogger(__name__)

# curl-style error numbers
ERR_UNSUPPORTED_PROTOCOL = 1
ERR_FAILED = 2
ERR_URL_MALFORMAT = 3
ERR_COULDNT_CONNECT = 7
ERR_OPERATION_TIMEDOUT = 28
ERR_TOO_MANY_REDIRECTS = 47
ERR_RECV_ERROR = 56
ERR_PEER_FAILED_VERIFICATION = 60

# First match wins, so subclasses come before their bases.
ERROR_CODES = (
    (requests.exceptions.Timeout, ERR_OPERATION_TIMEDOUT),
    (requests.exceptions.SSLError, ERR_PEER_FAILED_VERIFICATION),
    (requests.exceptions.TooManyRedirects, ERR_TOO_MANY_REDIRECTS),
    (requests.exceptions.InvalidSchema, ERR_UNSUPPORTED_PROTOCOL),
    (requests.exceptions.MissingSchema, ERR_URL_MALFORMAT),
    (requests.exceptions.InvalidURL, ERR_URL_MALFORMAT),
    (requests.exceptions.ConnectionError, ERR_COULDNT_CONNECT),
    (requests.exceptions.ChunkedEncodingError, ERR_RECV_ERROR),
    (requests.exceptions.ContentDecodingError, ERR_RECV_ERROR),
)


def error_code(exc: requests.exceptions.RequestException) -> int:
    """Map a requests exception to a curl-style error number."""
    for exc_type, code in ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    return ERR_FAILED


def header_dict(lines: list[str]) -> dict[str, str]:
    """Convert raw ``Name: value`` lines into the mapping requests expects.

    Lines without a colon are skipped. A repeated name keeps its last value.
    """
    headers: dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition(":")
        if not sep or not key.strip():
            logger.warning("Skipping malformed header line: %r", line)
            continue
        headers[key.strip()] = value.strip()
    return headers


def format_status_line(response: requests.Response) -> str:
    """Build ``HTTP/<x.y> <code> <reason>`` for a received response."""
    version = getattr(response.raw, "version", None) or 11
    line = f"HTTP/{version // 10}.{version % 10} {response.status_code}"
    if response.reason:
        line = f"{line} {response.reason}"
    return line


def format_raw_response(response: requests.Response) -> str:
    """Rebuild the header+body stream of a response, CRLF-delimited.

    Repeated header fields stay on separate lines.
    """
    lines = [format_status_line(response)]
    for key, value in response.raw.headers.iteritems():
        lines.append(f"{key}: {value}")
    lines.append("")
    lines.append(response.text)
    return "\r\n".join(lines)


def requests_transport(
    url: str,
    method: str,
    headers: list[str],
    body: str | None,
    options: dict,
) -> tuple[str | None, int, str | None]:
    """Perform one HTTP request.

    Args:
        url: The fully-built URL, query string included.
        method: The upper-cased HTTP method.
        headers: Raw ``Name: value`` header lines to send.
        body: The encoded request body, or None.
        options: Transport options (see ``engine.DEFAULT_OPTIONS``).

    Returns:
        A tuple of (raw, errno, errmsg). ``raw`` is the body text, or the
        status line, headers and body when ``options["header"]`` is set.
        On failure ``raw`` is None and errno is non-zero.
    """
    verify = options.get("verify", True)
    if verify and options.get("ca_info"):
        verify = options["ca_info"]
    if not verify:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    logger.debug("%s %s (%d header lines)", method, url, len(headers))
    try:
        response = requests.request(
            method=method,
            url=url,
            headers=header_dict(headers),
            data=body,
            timeout=(options["connect_timeout"], options["timeout"]),
            allow_redirects=bool(options["follow_location"]),
            verify=verify,
        )
    except requests.exceptions.RequestException as exc:
        code = error_code(exc)
        logger.warning("%s %s failed (%d): %s", method, url, code, exc)
        return None, code, str(exc)

    logger.debug("%s %s -> %d", method, url, response.status_code)
    if options.get("header"):
        return format_raw_response(response), 0, None
    return response.text, 0, None
