"""Raw HTTP response parsing.

Splits a combined header+body response stream, as produced by the
transport when header capture is enabled, into status code, header lines
and body.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

CRLF = "\r\n"

# Searched, not anchored: "HTTP/1.1 200 OK" and "HTTP/1.0\t404" both match,
# "HTTP/2 200" does not.
STATUS_LINE_RE = re.compile(r"HTTP/(\d\.\d)\s(\d\d\d)")


class ParsedResponse:
    """Status code, raw header lines and body of a parsed response."""

    __slots__ = ("status_code", "headers", "body")

    ok = True

    def __init__(
        self,
        status_code: int,
        headers: tuple[str, ...],
        body: str | bytes,
    ) -> None:
        object.__setattr__(self, "status_code", status_code)
        object.__setattr__(self, "headers", tuple(headers))
        object.__setattr__(self, "body", body)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other) -> bool:
        if not isinstance(other, ParsedResponse):
            return NotImplemented
        return (
            self.status_code == other.status_code
            and self.headers == other.headers
            and self.body == other.body
        )

    def __hash__(self) -> int:
        return hash((self.status_code, self.headers, self.body))

    def __repr__(self) -> str:
        return (
            f"ParsedResponse(status_code={self.status_code!r}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body=<{len(self.body)} "
            f"{'bytes' if isinstance(self.body, bytes) else 'chars'}>)"
        )

    def header_values(self, name: str) -> list[str]:
        """Return the values of every header line called ``name``.

        Names compare case-insensitively. Order and duplicates follow the
        raw header lines.
        """
        wanted = name.strip().lower()
        values = []
        for line in self.headers:
            key, sep, value = line.partition(":")
            if sep and key.strip().lower() == wanted:
                values.append(value.strip())
        return values


class MalformedStatusLine:
    """Returned by :func:`parse_http_response` when line 0 is not a status line.

    Carries no detail. It is falsy so callers can write ``if not result``.
    """

    __slots__ = ()

    ok = False

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MALFORMED_STATUS_LINE"


MALFORMED_STATUS_LINE = MalformedStatusLine()


def parse_http_response(raw: str | bytes) -> ParsedResponse | MalformedStatusLine:
    """Parse a raw HTTP/1.x response into its components.

    Handles:
      - Status line ``HTTP/<d>.<d> <ddd> [reason]`` (the only validation)
      - Header lines kept verbatim, in order, duplicates preserved
      - Missing blank separator line (everything is headers, body empty)
      - CRLF inside the body, restored exactly

    ``bytes`` input keeps a ``bytes`` body; its header lines are decoded as
    ISO-8859-1.

    Args:
        raw: The full response, CRLF-delimited.

    Returns:
        A ParsedResponse, or MALFORMED_STATUS_LINE if line 0 does not
        match the status-line pattern.
    """
    is_bytes = isinstance(raw, bytes)
    delimiter = CRLF.encode("ascii") if is_bytes else CRLF
    empty = b"" if is_bytes else ""

    lines = raw.split(delimiter)
    status_line = lines[0].decode("iso-8859-1") if is_bytes else lines[0]

    match = STATUS_LINE_RE.search(status_line)
    if match is None:
        logger.debug("Rejected status line: %r", status_line[:80])
        return MALFORMED_STATUS_LINE

    status_code = int(match.group(2))
    rest = lines[1:]

    if empty in rest:
        separator = rest.index(empty)
        header_lines, body_lines = rest[:separator], rest[separator + 1:]
    else:
        header_lines, body_lines = rest, []

    if is_bytes:
        headers = tuple(line.decode("iso-8859-1") for line in header_lines)
    else:
        headers = tuple(header_lines)
    body = delimiter.join(body_lines)

    logger.debug(
        "Parsed response: status=%d headers=%d body=%d",
        status_code,
        len(headers),
        len(body),
    )
    return ParsedResponse(status_code=status_code, headers=headers, body=body)


def load_response_file(filepath: str) -> bytes:
    """Read and return the raw bytes of a saved response file.

    Read in binary mode so CRLF delimiters and non-text bodies survive.

    Raises:
        FileNotFoundError: If the file does not exist.
        IOError: If the file cannot be read.
    """
    with open(filepath, "rb") as fh:
        return fh.read()
