"""Entry point generation and Go compilation for the selected functions."""

from __future__ import annotations

from pathlib import Path

from . import logging
from .config import GoBuildConfig
from .entrypoint import EntryPointPlan, output_bin, plan_entry_point, resolve_import_path
from .exceptions import GoBuildError, GoPathError
from .renderer import render_main_go, write_main_go
from .runner import CommandRunner, CommandSpec, RunnerError, command_from_template
from .service import FunctionSpec

_GLOB_CHARS = ("*", "?", "[")


def generate_entry_points(
    functions: list[FunctionSpec],
    config: GoBuildConfig,
    runner: CommandRunner,
    *,
    service_path: str,
    go_path: str,
) -> list[Path]:
    """
    Create main.go files for functions whose handler points at a package function.

    Every plan is checked against the toolchain root before the first file is
    written.
    """
    plans: list[EntryPointPlan] = []
    for func in functions:
        plan = plan_entry_point(func, config)
        if plan:
            plans.append(plan)

    if not plans:
        return []

    logging.step("Creating main functions for modules")

    import_paths: list[str] = []
    for plan in plans:
        try:
            import_paths.append(resolve_import_path(plan, service_path, go_path))
        except GoPathError as exc:
            logging.error(str(exc))
            raise

    written: list[Path] = []
    for plan, import_path in zip(plans, import_paths):
        out_path = Path(service_path) / plan.main_path
        logging.info(f"Creating main for module: {import_path}/{plan.public_function_name}")
        content = render_main_go(
            import_path=import_path,
            module_name=plan.module_name,
            public_function_name=plan.public_function_name,
            path_to_lambda=config.path_to_aws_lambda,
        )
        if runner.dry_run:
            runner.emit(f"[dry-run] write {out_path}")
            continue
        try:
            write_main_go(out_path, content)
        except OSError as exc:
            logging.error(f"Failed to write {out_path}: {exc}")
            raise GoBuildError() from None
        written.append(out_path)

    return written


def build_command(func: FunctionSpec, config: GoBuildConfig, service_path: str) -> CommandSpec:
    """Construct the build command of a function."""
    plan = plan_entry_point(func, config)
    source = plan.main_path if plan else func.handler
    if not source:
        raise GoBuildError(f"Function {func.name} has no handler to build")
    return command_from_template(
        config.build_cmd,
        [_expand_sources(source, service_path), output_bin(func, config)],
        prefix=config.awsbuild_prefix,
    )


def _expand_sources(source: str, service_path: str) -> str | list[str]:
    """
    Expand a wildcard source such as "handlers/greet/*.go" into file paths.

    No shell is involved, so the pattern is matched here. A pattern without
    matches is passed through for the compiler to report.
    """
    if not any(char in source for char in _GLOB_CHARS):
        return source
    root = Path(service_path)
    matches = sorted(path.relative_to(root).as_posix() for path in root.glob(source))
    return matches or source


def build_functions(
    functions: list[FunctionSpec],
    config: GoBuildConfig,
    runner: CommandRunner,
    *,
    service_path: str,
) -> list[str]:
    """
    Run the build on all relevant functions, one after another.

    Returns the binary paths (relative to the service) that were built.
    """
    logging.step("Beginning Go build")

    binaries: list[str] = []
    for func in functions:
        if not func.handler:
            logging.warning(f"Skipping {func.name}: no handler")
            continue

        cmd = build_command(func, config, service_path)
        try:
            runner.run(cmd, cwd=service_path)
        except RunnerError as exc:
            logging.replicate(f"Error building golang file at {func.handler}", cmd.render())
            logging.error(str(exc))
            raise GoBuildError() from None
        binaries.append(output_bin(func, config))

    return binaries
