"""Request building and execution.

Assembles a request from a loosely-typed input mapping, merges header
lines and transport options, hands the request to the transport and
returns a normalized ``(code, message, body)`` tuple.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from urllib.parse import urlencode

from requests import certs

from httpwrap.transport import requests_transport

logger = logging.getLogger(__name__)

ERR_INVALID_METHOD = -1

CONNECT_TIMEOUT = 5
TIMEOUT = 30

JSON_CONTENT_TYPE = "Content-Type: application/json;charset=UTF-8"

DEFAULT_OPTIONS = {
    "connect_timeout": CONNECT_TIMEOUT,
    "timeout": TIMEOUT,
    "follow_location": True,
    "header": False,
    "verify": True,
    "ca_info": None,
}

HEADER_OPTION = "http_header"


def build_query(value) -> str:
    """Encode a query mapping (or pass a string through).

    Sequence values expand to repeated keys.
    """
    if value is None:
        return ""
    if isinstance(value, Mapping):
        return urlencode(value, doseq=True)
    return str(value)


def merge_query(url: str, query: str) -> str:
    """Append an encoded query string to ``url``.

    No ``?`` yet starts the query, a trailing ``&`` is reused, anything
    else gets a ``&`` separator.
    """
    if not query:
        return url
    if "?" not in url:
        return f"{url}?{query}"
    if url.endswith("&"):
        return f"{url}{query}"
    return f"{url}&{query}"


def merge_headers(*groups) -> list[str]:
    """Concatenate header-line lists, dropping exact duplicates.

    The first occurrence of a line keeps its position.
    """
    merged: list[str] = []
    for group in groups:
        for line in group or ():
            if line not in merged:
                merged.append(line)
    return merged


class HttpClient:
    """Thin request builder over a pluggable transport."""

    method = "GET"
    valid_methods = ("GET", "POST")

    def __init__(self, transport=requests_transport) -> None:
        self.transport = transport
        self.headers: list[str] = []

    def add_header(self, line: str) -> None:
        """Append a raw ``Name: value`` line sent with every request."""
        self.headers.append(line)

    def clear_headers(self) -> None:
        self.headers = []

    def build_options(self, url: str, overrides: Mapping | None) -> dict:
        """Merge defaults, client headers and caller overrides.

        Raises:
            ValueError: If ``overrides`` names an unknown option.
        """
        overrides = dict(overrides or {})
        options = dict(DEFAULT_OPTIONS)
        if url.startswith("https://"):
            options["ca_info"] = certs.where()

        headers = self.headers
        if HEADER_OPTION in overrides:
            headers = merge_headers(headers, overrides.pop(HEADER_OPTION))
        if headers:
            options["header"] = True
        options[HEADER_OPTION] = list(headers)

        unknown = set(overrides) - set(DEFAULT_OPTIONS)
        if unknown:
            raise ValueError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        options.update(overrides)
        return options

    def request(
        self, input_: Mapping, options: Mapping | None = None
    ) -> tuple[int, str | None, str | None]:
        """Send a request described by ``input_``.

        Args:
            input_: Mapping with keys
                url     (str)          required
                method  (str)          optional, defaults to ``self.method``
                query   (mapping|str)  optional query string
                data    (mapping|str)  optional POST body
            options: Overrides for ``DEFAULT_OPTIONS``. ``http_header`` is
                merged with the client's header lines instead of replacing
                them.

        Returns:
            A tuple of (code, message, body). ``code`` is 0 on success,
            ``ERR_INVALID_METHOD`` for unsupported methods, otherwise the
            transport's error number.

        Raises:
            ValueError: If ``url`` is missing or an option is unknown.
        """
        url = input_.get("url")
        if not url:
            raise ValueError("Missing request url")

        method = input_.get("method")
        if method is None:
            method = self.method
        method = method.upper()
        if method not in self.valid_methods:
            logger.warning("Rejected request method: %s", method)
            return ERR_INVALID_METHOD, "Invalid request method", None

        url = merge_query(url, build_query(input_.get("query")))

        data = input_.get("data")
        if isinstance(data, Mapping):
            data = urlencode(data, doseq=True)
        body = data if method == "POST" else None

        transport_options = self.build_options(url, options)
        headers = transport_options.pop(HEADER_OPTION)

        raw, errno, errmsg = self.transport(
            url, method, headers, body, transport_options
        )
        if errno:
            return errno, errmsg, None
        return 0, None, raw

    def post_json(
        self, url: str, json_body, options: Mapping | None = None
    ) -> tuple[int, str | None, str | None]:
        """POST a JSON document with header capture enabled.

        Non-string bodies are serialized with ``json.dumps``. ``options``
        override the JSON defaults; its ``http_header`` lines are added
        after the JSON content type.
        """
        if not isinstance(json_body, (str, bytes)):
            json_body = json.dumps(json_body)

        merged = {"header": True}
        merged.update(options or {})
        merged[HEADER_OPTION] = merge_headers(
            [JSON_CONTENT_TYPE], (options or {}).get(HEADER_OPTION)
        )
        return self.request(
            {"url": url, "method": "POST", "data": json_body}, merged
        )
