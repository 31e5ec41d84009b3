"""Command line interface for the minifier benchmark."""
from __future__ import annotations

import argparse
import functools
import logging
import re
import time
from typing import Dict, List

from . import measure as measure_mod
from .paths import PORT
from .render import render
from .run import run
from .schemas import ExperimentConfiguration
from .server import WebServer, serve

logger = logging.getLogger(__name__)


def regex_arg(value: str) -> re.Pattern:
    try:
        return re.compile(value)
    except re.error as exc:
        raise argparse.ArgumentTypeError(f"invalid regex {value!r}: {exc}") from None


def remap_arg(value: str) -> tuple:
    src, sep, dst = value.partition("=")
    if not sep or not src or not dst:
        raise argparse.ArgumentTypeError(f"expected SRC=DST, got {value!r}")
    return src, dst


def add_global_options(parser: argparse.ArgumentParser, default) -> None:
    parser.add_argument(
        "--toolFilter",
        dest="tool_filter",
        type=regex_arg,
        default=default(None),
        help="regex to match tools (tool-variant) to run",
    )
    parser.add_argument(
        "--inputFilter",
        dest="input_filter",
        type=regex_arg,
        default=default(None),
        help="regex to match inputs to run",
    )
    parser.add_argument(
        "--skip-tests",
        dest="skip_tests",
        action="store_true",
        default=default(False),
        help="skip running tests",
    )
    parser.add_argument(
        "--no-audit",
        dest="no_audit",
        action="store_true",
        default=default(False),
        help="skip the browser performance audit",
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        default=default(False),
        help="show the browser window during audits",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="js-min-bench",
        description="Benchmark JavaScript minifiers: size, compressed size, build time and runtime.",
    )
    add_global_options(parser, lambda value: value)

    # Options may also follow the subcommand; SUPPRESS keeps the subparser
    # from overwriting values given before it.
    shared = argparse.ArgumentParser(add_help=False)
    add_global_options(shared, lambda value: argparse.SUPPRESS)

    commands = parser.add_subparsers(dest="command", required=True)

    run_parser = commands.add_parser("run", parents=[shared], help="Run tests.")
    run_parser.add_argument("args", nargs="*", help=argparse.SUPPRESS)

    serve_parser = commands.add_parser(
        "serve", parents=[shared], help="Serve the given framework/compiler combo."
    )
    serve_parser.add_argument("tool", nargs="?", default="raw")
    serve_parser.add_argument("framework", nargs="?", default="react")
    serve_parser.add_argument("--root", help="serve this directory instead of the experiment webroot")
    serve_parser.add_argument(
        "--remap",
        type=remap_arg,
        action="append",
        default=[],
        metavar="SRC=DST",
        help="serve file DST for request path SRC",
    )
    serve_parser.add_argument("--port", type=int, default=PORT)

    commands.add_parser("render", parents=[shared], help="Render results.json to HTML.")
    commands.add_parser("measure", parents=[shared], help="Take a performance measurement.")
    return parser


def cmd_run(args: argparse.Namespace) -> int:
    audit = None if args.no_audit else functools.partial(measure_mod.measure, headless=not args.headful)
    return run(
        input_filter=args.input_filter,
        tool_filter=args.tool_filter,
        skip_tests=args.skip_tests,
        audit=audit,
    )


def cmd_serve(args: argparse.Namespace) -> int:
    if args.root is not None or args.remap:
        server = WebServer(args.root or "")
        remaps: Dict[str, str] = dict(args.remap)
        server.remaps.update(remaps)
        server.start(args.port)
        logger.info("Serving %s at: %s", args.root or ".", server.url)
    else:
        configuration = ExperimentConfiguration(framework=args.framework, tool=args.tool)
        server = serve(configuration, port=args.port)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Stopping server")
    finally:
        server.stop()
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    render()
    return 0


def cmd_measure(args: argparse.Namespace) -> int:
    audits = measure_mod.measure(headless=not args.headful)
    for audit in audits:
        print(f"{audit['id']:<28} {audit['displayValue']}")
    return 0


COMMANDS = {
    "run": cmd_run,
    "serve": cmd_serve,
    "render": cmd_render,
    "measure": cmd_measure,
}


def main(argv: List[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    parser = build_parser()
    args = parser.parse_args(argv)
    return COMMANDS[args.command](args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
