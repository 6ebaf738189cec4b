"""Entry point planning and artifact path derivation."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass

from .config import GoBuildConfig
from .exceptions import GoPathError
from .service import FunctionSpec

MAIN_FILE_NAME = "main.go"


@dataclass(frozen=True)
class EntryPointPlan:
    """Where and how to generate the main.go wrapping a library function."""

    func: FunctionSpec
    public_function_name: str
    module_path: str
    module_name: str
    main_path: str


def _join(*parts: str) -> str:
    return posixpath.normpath("/".join(part for part in parts if part))


def plan_entry_point(func: FunctionSpec | None, config: GoBuildConfig) -> EntryPointPlan | None:
    """
    Find functions needing a generated main.

    A handler such as "handlers/greet.Hello" names the public function Hello of
    the package handlers/greet, which has no main of its own. A handler ending
    in ".go" is already a buildable program and needs nothing.
    """
    if func is None or not func.handler:
        return None

    module_path, dot, public_function_name = func.handler.rpartition(".")
    if not dot:
        return None
    if public_function_name == "go":
        return None

    module_name = module_path.rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    main_path = _join(
        config.generated_main_path, module_path, public_function_name, MAIN_FILE_NAME
    )
    return EntryPointPlan(
        func=func,
        public_function_name=public_function_name,
        module_path=module_path,
        module_name=module_name,
        main_path=main_path,
    )


def output_bin(func: FunctionSpec, config: GoBuildConfig) -> str:
    """Get the destination binary path for a given function."""
    if not func.handler:
        raise ValueError(f"function {func.name} has no handler")
    binary = re.sub(r"\.go$", "", func.handler)
    if config.use_bin_path_for_handler:
        binary = re.sub(r"\*$", "main", binary)
    return _join(config.bin_path, binary)


def resolve_import_path(plan: EntryPointPlan, service_path: str, go_path: str) -> str:
    """
    Go import path of the planned module.

    The module must live under the toolchain root (go_path) for the compiler to
    resolve the import.
    """
    full_module_path = posixpath.normpath(f"{service_path}/{plan.module_path}")
    if not full_module_path.startswith(go_path):
        raise GoPathError(full_module_path, go_path)
    return full_module_path[len(go_path) :]
