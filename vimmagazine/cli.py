"""Command-line entry point for vim-magazine-tools.

Usage:
  vimmagazine-tools patchlist
  vimmagazine-tools scriptlist
  vimmagazine-tools githubissuelist vim-jp issues
  vimmagazine-tools scriptjson > scripts-2017-05.json
  vimmagazine-tools scriptranking scripts-2017-04.json scripts-2017-05.json
  vimmagazine-tools generate --update state.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from vimmagazine.commands import (
    cmd_generate,
    cmd_githubissuelist,
    cmd_patchlist,
    cmd_scriptjson,
    cmd_scriptlist,
    cmd_scriptranking,
)
from vimmagazine.core.config import load_settings, split_owner_repo
from vimmagazine.core.http import FetchError, HttpFetcher
from vimmagazine.core.state import CheckpointError

LOGGER = logging.getLogger(__name__)

COMMANDS = (
    "patchlist",
    "scriptlist",
    "githubissuelist",
    "scriptjson",
    "scriptranking",
    "generate",
)
USAGE = "vimmagazine-tools " + "|".join(COMMANDS)


def build_global_parser() -> argparse.ArgumentParser:
    """Options accepted before the command name."""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (logs go to stderr).",
    )
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vimmagazine-tools",
        description="Collect Vim patches, scripts and issues into a markdown digest.",
        parents=[build_global_parser()],
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("patchlist", help="List Vim patches with their commits.")
    sub.add_parser("scriptlist", help="List every script of the script directory.")

    issues = sub.add_parser("githubissuelist", help="List all issues of a GitHub repository.")
    issues.add_argument("owner")
    issues.add_argument("repo")

    sub.add_parser("scriptjson", help="Print a download snapshot of all scripts as JSON.")

    ranking = sub.add_parser("scriptranking", help="Rank scripts by downloads between snapshots.")
    ranking.add_argument("old_file", type=Path)
    ranking.add_argument("cur_file", type=Path)

    generate = sub.add_parser("generate", help="Render the digest since the checkpoint.")
    generate.add_argument(
        "--update",
        action="store_true",
        help="Overwrite the checkpoint file with this run's state.",
    )
    generate.add_argument(
        "--issues-repo",
        default=None,
        metavar="OWNER/REPO",
        help="Issue tracker summarized in the digest (default: VIMMAGAZINE_ISSUES_REPO).",
    )
    generate.add_argument("state_file", type=Path)
    return parser


def _first_command(argv: list[str]) -> str | None:
    _, rest = build_global_parser().parse_known_args(argv)
    return next((arg for arg in rest if not arg.startswith("-")), None)


def dispatch(args: argparse.Namespace, fetcher: HttpFetcher, out: TextIO) -> None:
    if args.command == "patchlist":
        cmd_patchlist(fetcher, out)
    elif args.command == "scriptlist":
        cmd_scriptlist(fetcher, out)
    elif args.command == "githubissuelist":
        cmd_githubissuelist(fetcher, out, args.owner, args.repo)
    elif args.command == "scriptjson":
        cmd_scriptjson(fetcher, out)
    elif args.command == "scriptranking":
        cmd_scriptranking(out, args.old_file, args.cur_file)
    elif args.command == "generate":
        cmd_generate(
            fetcher,
            out,
            args.state_file,
            update=args.update,
            issues_repo=args.issues_repo,
        )


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    out = out or sys.stdout

    command = _first_command(argv)
    if command is None and not {"-h", "--help"} & set(argv):
        out.write(USAGE + "\n")
        return 0
    if command is not None and command not in COMMANDS:
        out.write("Error: no such command\n")
        out.write(USAGE + "\n")
        return 0

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        settings = load_settings()
        if args.command == "generate" and args.issues_repo:
            split_owner_repo(args.issues_repo)
    except ValueError as exc:
        LOGGER.error("configuration failed: %s", exc)
        return 1

    try:
        with HttpFetcher(settings) as fetcher:
            dispatch(args, fetcher, out)
    except FetchError as exc:
        LOGGER.error("%s failed: %s", exc.source, exc)
        return 1
    except CheckpointError as exc:
        LOGGER.error("checkpoint failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
