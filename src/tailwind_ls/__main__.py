from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .acquisition import NodeClassNamesAcquirer, TailwindLSError
from .config import load_config
from .index import build_index
from .lsp.server import create_server

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
DEFAULT_PORT = 2088


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tailwind-ls",
        description="Language server offering Tailwind utility-class completion",
    )
    transport = parser.add_argument_group("transport")
    transport.add_argument("--tcp", action="store_true", help="Listen on a TCP socket rather than stdio")
    transport.add_argument("--host", default="127.0.0.1", help="Address to bind with --tcp")
    transport.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to bind with --tcp")
    transport.add_argument("--stdio", action="store_true", help="Use stdio (the default; accepted for editor clients)")

    logs = parser.add_argument_group("logging")
    logs.add_argument("--log-level", default="WARNING", type=str.upper, help="DEBUG, INFO, WARNING or ERROR")
    logs.add_argument("--log-file", type=Path, help="Write logs to this file instead of stderr")

    parser.add_argument(
        "--check",
        metavar="DIR",
        type=Path,
        help="Load the class names for a workspace, print a summary and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.check is not None and args.tcp:
        parser.error("--check cannot be combined with --tcp")
    setup_logging(args.log_level, args.log_file)

    if args.check is not None:
        sys.exit(check_workspace(args.check))

    server = create_server()
    if args.tcp:
        server.start_tcp(args.host, args.port)
    else:
        server.start_io()


def setup_logging(level_name: str, log_file: Path | None = None) -> None:
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    # stdout carries the protocol stream under stdio, so logs never go there
    handler = logging.FileHandler(log_file, encoding="utf-8") if log_file else logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def check_workspace(root: Path) -> int:
    """Run one acquisition for ``root`` and report the result; returns a process exit code."""
    if not root.is_dir():
        print(f"Not a directory: {root}", file=sys.stderr)
        return 2

    config, warnings = load_config(root.resolve())
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)

    try:
        data = asyncio.run(NodeClassNamesAcquirer(config)())
    except TailwindLSError as exc:
        print(f"{root}: {exc}", file=sys.stderr)
        return 1

    index = build_index(data.class_names, data.config.separator, data.config.screens)
    groups = sum(1 for node in index.root.values() if node.is_group)
    print(f"{root}: {len(index.root)} root classes ({groups} groups), separator {index.separator!r}")
    return 0


if __name__ == "__main__":
    main()
