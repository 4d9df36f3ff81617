"""Command-line interface.

Two sub-commands: ``request`` sends a GET/POST through the client and
``parse`` splits a saved raw response file.
"""

import argparse
import logging
import os
import sys

from httpwrap import __version__
from httpwrap.engine import CONNECT_TIMEOUT, TIMEOUT


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the httpwrap CLI."""
    parser = argparse.ArgumentParser(
        prog="httpwrap",
        description=(
            "httpwrap v{ver} — send a simple HTTP request and print the "
            "normalized result, or parse a saved raw HTTP response."
        ).format(ver=__version__),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  httpwrap request GET https://example.com -q page=2\n"
            "  httpwrap request POST https://example.com/api "
            "-H 'X-Token: abc' -d 'a=1&b=2'\n"
            "  httpwrap request POST https://example.com/api "
            "--json '{\"ok\": true}'\n"
            "  httpwrap parse response.txt\n"
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    request = commands.add_parser("request", help="Send an HTTP request.")
    request.add_argument("method", help="HTTP method (GET or POST).")
    request.add_argument("url", help="Target URL.")
    request.add_argument(
        "-q",
        "--query",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query string pair; may be repeated.",
    )
    request.add_argument(
        "-d",
        "--data",
        default=None,
        help="Raw request body (sent with POST only).",
    )
    request.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Extra header line; may be repeated. Enables header capture.",
    )
    request.add_argument(
        "--json",
        default=None,
        dest="json_body",
        help="POST this JSON document with a JSON content type.",
    )
    request.add_argument(
        "-i",
        "--include",
        action="store_true",
        help="Capture response headers and parse them.",
    )
    request.add_argument(
        "--connect-timeout",
        type=float,
        default=CONNECT_TIMEOUT,
        help=f"Seconds to wait for a connection (default: {CONNECT_TIMEOUT}).",
    )
    request.add_argument(
        "--timeout",
        type=float,
        default=TIMEOUT,
        help=f"Seconds to wait for the response (default: {TIMEOUT}).",
    )
    request.add_argument(
        "--no-follow",
        action="store_false",
        dest="follow_location",
        help="Do not follow redirects.",
    )
    request.add_argument(
        "-k",
        "--insecure",
        action="store_true",
        help="Skip TLS certificate verification.",
    )
    request.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )

    parse = commands.add_parser("parse", help="Parse a saved raw response.")
    parse.add_argument("response_file", help="Path to a raw HTTP response.")
    parse.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )

    return parser


def parse_query_pairs(pairs: list[str]) -> dict[str, list[str]]:
    """Turn ``KEY=VALUE`` strings into a query mapping.

    Raises:
        ValueError: If a pair has no ``=`` or an empty key.
    """
    query: dict[str, list[str]] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Malformed query pair: {pair!r}")
        query.setdefault(key, []).append(value)
    return query


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments.

    Raises:
        SystemExit: If an argument is unusable.
    """
    if args.command == "parse":
        if not os.path.isfile(args.response_file):
            print(
                f"Error: Response file not found: '{args.response_file}'",
                file=sys.stderr,
            )
            sys.exit(1)
        if not os.access(args.response_file, os.R_OK):
            print(
                f"Error: Response file is not readable: '{args.response_file}'",
                file=sys.stderr,
            )
            sys.exit(1)
        return

    if not args.url.strip():
        print("Error: URL cannot be empty.", file=sys.stderr)
        sys.exit(1)

    try:
        parse_query_pairs(args.query)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.json_body is not None and args.method.upper() != "POST":
        print(
            f"Error: --json requires the POST method, got '{args.method}'.",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.connect_timeout <= 0 or args.timeout <= 0:
        print("Error: Timeouts must be positive.", file=sys.stderr)
        sys.exit(1)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr, at DEBUG level when ``verbose`` is set."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and validate command-line arguments.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).

    Returns:
        Parsed and validated argument namespace.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(args)
    configure_logging(args.verbose)
    return args
