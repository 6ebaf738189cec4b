"""Point function handlers at built binaries before packaging."""

from __future__ import annotations

from .config import GoBuildConfig
from .entrypoint import output_bin
from .service import FunctionSpec


def minimal_package(binary: str) -> dict[str, list[str]]:
    return {"exclude": ["./**"], "include": [f"./{binary}"]}


def rewrite_for_deployment(
    functions: list[FunctionSpec], config: GoBuildConfig
) -> list[FunctionSpec]:
    """
    Return deployment-ready copies of the functions.

    The handler becomes the binary path. With minimizePackage, functions without
    their own package rules ship only their binary.
    """
    rewritten: list[FunctionSpec] = []
    for func in functions:
        if not func.handler:
            rewritten.append(func)
            continue
        binary = output_bin(func, config)
        update: dict = {"handler": binary}
        if config.minimize_package and not func.package:
            update["package"] = minimal_package(binary)
        rewritten.append(func.model_copy(update=update))
    return rewritten
