"""CLI parser for the test command."""

from __future__ import annotations

import argparse

from go_build.core.runner import CommandRunner
from go_build.core.service import ServerlessHost, load_service
from go_build.plugin import GoBuildPlugin


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("test", help="Runs your go tests")
    parser.add_argument(
        "--serverless-bin",
        default="serverless",
        help="serverless executable used to spawn testPlugins commands",
    )
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner) -> int:
    service = load_service(args.service)
    host = ServerlessHost(runner, service.service_path, executable=args.serverless_bin)
    plugin = GoBuildPlugin(service, runner=runner, host=host)
    # A failing test raises GoTestError, which the CLI maps to exit status 1.
    plugin.run_lifecycle("test")
    return 0
