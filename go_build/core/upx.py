"""UPX compression of built binaries."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from . import logging
from .config import GoBuildConfig
from .entrypoint import output_bin
from .exceptions import UpxCompressError
from .runner import CommandRunner, CommandSpec, RunnerError
from .service import FunctionSpec

UPX_EXECUTABLE = "upx"


@dataclass(frozen=True)
class CompressionStats:
    binary: str
    option_name: str
    size_before: int
    size_after: int

    @property
    def reduced_percent(self) -> float:
        if self.size_before <= 0:
            return 0.0
        return 100.0 - (self.size_after / self.size_before) * 100.0

    def summary(self) -> str:
        before = self.size_before / 1_000_000
        after = self.size_after / 1_000_000
        return (
            f"[{self.option_name}] {self.binary} ({self.reduced_percent:.2f}% reduced) "
            f"{before:.2f} Mb => {after:.2f} Mb"
        )


def upx_flags(options: Mapping[str, Any]) -> list[str]:
    """
    Translate an option mapping into upx flags.

    {"best": True} -> ["--best"], {"9": True} -> ["-9"],
    {"compress-icons": 0} -> ["--compress-icons=0"]. False/None disable a flag.
    """
    flags: list[str] = []
    for key, value in options.items():
        if value is False or value is None:
            continue
        name = str(key)
        flag = f"-{name}" if len(name) == 1 else f"--{name}"
        if value is True:
            flags.append(flag)
        elif len(name) == 1:
            flags.extend([flag, str(value)])
        else:
            flags.append(f"{flag}={value}")
    return flags


def option_name(options: Mapping[str, Any]) -> str:
    return str(next(iter(options), "standard"))


def compress_binary(
    runner: CommandRunner,
    upx: str,
    binary: str,
    options: Mapping[str, Any],
    *,
    service_path: str,
) -> CompressionStats | None:
    """Compress one binary in place. Returns None in dry-run mode."""
    path = Path(service_path) / binary
    cmd = CommandSpec((upx, *upx_flags(options), binary))
    if runner.dry_run:
        runner.run(cmd, cwd=service_path)
        return None

    size_before = path.stat().st_size
    runner.run(cmd, cwd=service_path)
    size_after = path.stat().st_size
    return CompressionStats(
        binary=binary,
        option_name=option_name(options),
        size_before=size_before,
        size_after=size_after,
    )


def compress_binaries(
    functions: list[FunctionSpec],
    config: GoBuildConfig,
    runner: CommandRunner,
    *,
    service_path: str,
) -> list[CompressionStats]:
    """
    Compress the binary of every function with upx enabled.

    Each binary is attempted even when an earlier one failed; any failure is
    reported as UpxCompressError once all binaries have been tried.
    """
    if not config.upx_enabled:
        return []

    logging.step("Beginning UPX compressing")
    upx = UPX_EXECUTABLE if runner.dry_run else runner.require_command(UPX_EXECUTABLE)

    results: list[CompressionStats] = []
    failures: list[str] = []
    for func in functions:
        if func.upx_enabled is False or not func.handler:
            continue

        options = func.upx_option if func.upx_option is not None else config.upx_option
        binary = output_bin(func, config)
        try:
            stats = compress_binary(runner, upx, binary, options, service_path=service_path)
        except (RunnerError, OSError) as exc:
            logging.error(f"Error compressing executable at {func.handler}\n{exc}")
            failures.append(binary)
            continue

        if stats:
            logging.info(stats.summary())
            results.append(stats)

    if failures:
        raise UpxCompressError()
    return results
