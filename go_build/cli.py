#!/usr/bin/env python3
"""go-build command line interface."""

from __future__ import annotations

import argparse
import sys

from go_build.commands import build, rewrite, test
from go_build.core import logging
from go_build.core.exceptions import GoBuildPluginError
from go_build.core.runner import CommandRunner, RunnerError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="go-build",
        description="Build, compress and test Go functions of a serverless service",
    )
    parser.add_argument(
        "--service",
        "-s",
        default=".",
        help="serverless.yml or the directory containing it (default: current directory)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print commands without executing side effects",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    build.register_parser(subparsers)
    test.register_parser(subparsers)
    rewrite.register_parser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    runner = CommandRunner(dry_run=bool(args.dry_run), printer=logging.output)

    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    try:
        return int(args.func(args, runner))
    except (GoBuildPluginError, RunnerError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
