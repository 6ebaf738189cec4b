"""CLI parser for the build command."""

from __future__ import annotations

import argparse

from go_build.core import logging
from go_build.core.runner import CommandRunner
from go_build.core.service import load_service
from go_build.plugin import GoBuildPlugin


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "build",
        help="Builds your go files needed for deployment",
    )
    parser.add_argument(
        "--local",
        "-l",
        action="store_true",
        help=(
            "Not yet active: build for the local machine "
            "(otherwise defaults to AWS deployment)"
        ),
    )
    parser.add_argument(
        "--function",
        "-f",
        help="Build go executable for the one function given only",
    )
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner) -> int:
    service = load_service(args.service)
    plugin = GoBuildPlugin(
        service,
        {"function": args.function, "local": args.local},
        runner=runner,
    )
    logging.info(f"Using service: {logging.highlight(service.service_path)}")
    plugin.run_lifecycle("build")
    logging.success("Build complete.")
    return 0
