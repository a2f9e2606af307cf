"""Command-line entry point: ``python -m github_projects_mcp`` or ``github-projects-mcp``.

Without flags the MCP server is served over stdio. ``--test`` lists tools and
resources without touching GitHub and exits.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from github_projects_mcp import __version__
from github_projects_mcp.server import run_server, test_server


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-projects-mcp",
        description="MCP server for GitHub Projects (v2).",
    )
    parser.add_argument("--test", action="store_true", help="run the offline self-check and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    entry = test_server if args.test else run_server
    try:
        asyncio.run(entry())
    except KeyboardInterrupt:
        print("\nServer stopped by user", file=sys.stderr)


if __name__ == "__main__":
    main()
