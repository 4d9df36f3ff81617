"""httpwrap — a minimal HTTP client wrapper with a raw response parser."""

from httpwrap.engine import ERR_INVALID_METHOD, HttpClient
from httpwrap.parser import (
    MALFORMED_STATUS_LINE,
    MalformedStatusLine,
    ParsedResponse,
    parse_http_response,
)

__version__ = "1.0.0"

__all__ = [
    "ERR_INVALID_METHOD",
    "HttpClient",
    "MALFORMED_STATUS_LINE",
    "MalformedStatusLine",
    "ParsedResponse",
    "parse_http_response",
]
