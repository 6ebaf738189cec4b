"""CLI parser for the rewrite command."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from go_build.core import logging
from go_build.core.deploy import rewrite_for_deployment
from go_build.core.runner import CommandRunner
from go_build.core.service import dump_functions, load_service
from go_build.plugin import GoBuildPlugin


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "rewrite",
        help="Print the functions section with handlers pointing at built binaries",
    )
    parser.add_argument(
        "--function",
        "-f",
        help="Rewrite the one function given only",
    )
    parser.add_argument(
        "--output",
        "-o",
        help="Write the YAML to this file instead of stdout",
    )
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner) -> int:
    service = load_service(args.service)
    plugin = GoBuildPlugin(service, {"function": args.function}, runner=runner)
    # stdout may carry the YAML, so no progress output here.
    rewritten = rewrite_for_deployment(plugin.get_relevant_go_functions(), plugin.config)
    service.replace_functions(rewritten)
    content = dump_functions(service.functions)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        logging.success(f"Rewrote {len(rewritten)} function(s) into {output_path}")
    else:
        sys.stdout.write(content)
    return 0
