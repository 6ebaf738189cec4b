"""Select the functions of a service that need a Go build."""

from __future__ import annotations

from . import logging
from .config import GoBuildConfig
from .exceptions import FunctionNotFoundError
from .service import FunctionSpec, ServiceDescription


def select_go_functions(
    service: ServiceDescription,
    config: GoBuildConfig,
    function_name: str | None = None,
) -> list[FunctionSpec]:
    """
    Gets all functions for building.

    This filters out functions from the wrong runtime, or returns only a single
    function in the case that a specific function was requested.

    Returns:
        Functions in declaration order. Rewritten handlers (see
        `useBinPathForHandler`) are copies; the service records are untouched.
    """
    if function_name:
        try:
            candidates = [service.get_function(function_name)]
        except FunctionNotFoundError as exc:
            logging.warning(str(exc))
            return []
    else:
        candidates = [service.get_function(name) for name in service.get_all_functions()]

    if config.use_bin_path_for_handler:
        candidates = [_source_glob_handler(func, config.bin_path) for func in candidates]

    runtime = config.runtime
    # Functions without a runtime inherit the project default.
    if service.provider.runtime == runtime:
        return [func for func in candidates if not func.runtime or func.runtime == runtime]
    return [func for func in candidates if func.runtime and func.runtime == runtime]


def _source_glob_handler(func: FunctionSpec, bin_path: str) -> FunctionSpec:
    """
    Map a handler pointing at a binary under bin_path to the Go sources of its
    directory: "bin/handlers/greet/main" becomes "handlers/greet/*.go".
    """
    if not func.handler:
        return func
    parts = func.handler[len(bin_path) + 1 :].split("/")
    parts.pop()
    directory = "/".join(parts)
    handler = f"{directory}/*.go" if directory else "*.go"
    return func.model_copy(update={"handler": handler})
