"""httpwrap — Main entry point.

Ties together the CLI, the request engine and the response parser.
"""

import sys

from httpwrap.cli import parse_cli, parse_query_pairs
from httpwrap.engine import HttpClient, build_query, merge_query
from httpwrap.parser import load_response_file, parse_http_response


def print_parsed(parsed) -> None:
    """Print the status code, header lines and body of a parsed response.

    Bytes bodies are decoded as UTF-8, undecodable bytes replaced.
    """
    body = parsed.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    print(f"Status : {parsed.status_code}")
    print(f"Headers: {len(parsed.headers)}")
    for line in parsed.headers:
        print(f"    {line}")
    print()
    print(body)


def run_parse(args) -> int:
    try:
        raw = load_response_file(args.response_file)
    except (FileNotFoundError, IOError) as exc:
        print(f"Error reading response file: {exc}", file=sys.stderr)
        return 2

    parsed = parse_http_response(raw)
    if not parsed:
        print("Error: not an HTTP response (malformed status line)", file=sys.stderr)
        return 2
    print_parsed(parsed)
    return 0


def run_request(args) -> int:
    client = HttpClient()
    for line in args.header:
        client.add_header(line)

    options = {
        "connect_timeout": args.connect_timeout,
        "timeout": args.timeout,
        "follow_location": args.follow_location,
    }
    if args.include:
        options["header"] = True
    if args.insecure:
        options["verify"] = False

    query = parse_query_pairs(args.query)
    if args.json_body is not None:
        url = merge_query(args.url, build_query(query))
        code, message, body = client.post_json(url, args.json_body, options)
    else:
        code, message, body = client.request(
            {
                "url": args.url,
                "method": args.method,
                "query": query,
                "data": args.data,
            },
            options,
        )

    if code:
        print(f"Error {code}: {message}", file=sys.stderr)
        return 2

    if not (args.include or args.header or args.json_body is not None):
        print(body)
        return 0

    parsed = parse_http_response(body)
    if not parsed:
        print("Error: malformed status line in response", file=sys.stderr)
        return 2
    print_parsed(parsed)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the httpwrap tool.

    Args:
        argv: Optional argument list (defaults to sys.argv).

    Returns:
        Exit code (0 = success, 2 = error).
    """
    args = parse_cli(argv)
    if args.command == "parse":
        return run_parse(args)
    return run_request(args)


if __name__ == "__main__":
    sys.exit(main())
