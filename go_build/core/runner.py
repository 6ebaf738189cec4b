"""Command construction and execution helpers for build, compress and test steps."""

from __future__ import annotations

import os
import re
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Sequence

_ENV_ASSIGNMENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")
_PLACEHOLDER_RE = re.compile(r"%(\d+)")


@dataclass(frozen=True)
class CommandSpec:
    """Program plus argument list, with extra environment for the child process."""

    argv: tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict)

    def render(self) -> str:
        assignments = [f"{key}={shlex.quote(value)}" for key, value in self.env.items()]
        return " ".join(assignments + [shlex.quote(token) for token in self.argv])


@dataclass(frozen=True)
class CompletedCommand:
    """Normalized command execution result."""

    cmd: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""


class RunnerError(RuntimeError):
    """Raised when a command execution fails."""


def command_from_template(
    template: str | Sequence[str],
    values: Sequence[str | Sequence[str]],
    *,
    prefix: str = "",
) -> CommandSpec:
    """
    Build a CommandSpec from a command template with %1, %2, ... placeholders.

    The template is split into tokens before substitution, so substituted
    values never need quoting. Leading NAME=value tokens (from the prefix or the
    template itself) become environment variables. A token that is exactly one
    placeholder bound to a list expands into one token per item.
    """
    if isinstance(template, str):
        tokens = shlex.split(f"{prefix} {template}" if prefix else template)
    else:
        tokens = shlex.split(prefix) + [str(token) for token in template]

    env: dict[str, str] = {}
    while tokens and _ENV_ASSIGNMENT_RE.match(tokens[0]):
        key, _, value = tokens.pop(0).partition("=")
        env[key] = value

    if not tokens:
        raise ValueError(f"command template has no program: {template!r}")

    argv: list[str] = []
    for token in tokens:
        whole = _PLACEHOLDER_RE.fullmatch(token)
        if whole:
            value = _lookup(values, int(whole.group(1)))
            if value is not None and not isinstance(value, str):
                argv.extend(str(item) for item in value)
                continue

        def replace(match: re.Match[str]) -> str:
            value = _lookup(values, int(match.group(1)))
            if value is None:
                return match.group(0)
            if isinstance(value, str):
                return value
            return " ".join(str(item) for item in value)

        argv.append(_PLACEHOLDER_RE.sub(replace, token))

    return CommandSpec(tuple(argv), env)


def _lookup(values: Sequence[str | Sequence[str]], index: int):
    if 1 <= index <= len(values):
        return values[index - 1]
    return None


class CommandRunner:
    """Thin subprocess wrapper with dry-run support and streamed output."""

    def __init__(
        self,
        *,
        dry_run: bool = False,
        printer: Callable[[str], None] | None = None,
    ) -> None:
        self.dry_run = dry_run
        self._printer = printer or print

    def format_cmd(self, cmd: CommandSpec | Sequence[str]) -> str:
        if isinstance(cmd, CommandSpec):
            return "$ " + cmd.render()
        return "$ " + " ".join(shlex.quote(str(token)) for token in cmd)

    def emit(self, message: str) -> None:
        self._printer(message)

    def which(self, command: str) -> str | None:
        resolved = shutil.which(command)
        if resolved is None:
            return None
        return str(Path(resolved).resolve())

    def require_command(self, command: str) -> str:
        resolved = self.which(command)
        if resolved is None:
            raise RunnerError(f"required command not found: {command}")
        return resolved

    def run(
        self,
        cmd: CommandSpec | Sequence[str],
        *,
        cwd: Path | str | None = None,
        check: bool = True,
    ) -> CompletedCommand:
        spec = _as_spec(cmd)
        rendered = self.format_cmd(spec)
        self.emit(rendered)
        if self.dry_run:
            return CompletedCommand(spec.argv, 0, "", "")

        try:
            proc = subprocess.Popen(
                list(spec.argv),
                cwd=str(cwd) if cwd else None,
                env=_child_env(spec),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
                errors="replace",
            )
        except OSError as exc:
            raise RunnerError(f"failed to start command: {rendered}\n{exc}") from exc

        assert proc.stdout is not None
        captured: list[str] = []
        for raw_line in proc.stdout:
            line = raw_line.rstrip("\n")
            captured.append(line)
            self.emit(line)
        rc = proc.wait()
        stdout = "\n".join(captured)
        if check and rc != 0:
            raise RunnerError(f"command failed with exit code {rc}: {rendered}")
        return CompletedCommand(spec.argv, rc, stdout, "")

    def start(
        self,
        cmd: CommandSpec | Sequence[str],
        *,
        cwd: Path | str | None = None,
    ) -> subprocess.Popen | None:
        """
        Start a command in the background and return without waiting.

        Its output goes straight to the console. Returns None in dry-run mode.
        """
        spec = _as_spec(cmd)
        rendered = self.format_cmd(spec) + " &"
        self.emit(rendered)
        if self.dry_run:
            return None

        try:
            return subprocess.Popen(
                list(spec.argv),
                cwd=str(cwd) if cwd else None,
                env=_child_env(spec),
                stdin=subprocess.DEVNULL,
            )
        except OSError as exc:
            raise RunnerError(f"failed to start command: {rendered}\n{exc}") from exc

    def terminate(self, proc: subprocess.Popen, *, timeout: float = 10.0) -> int:
        """Stop a background command, killing it if it ignores SIGTERM."""
        if proc.poll() is None:
            proc.terminate()
            try:
                return proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                proc.kill()
        return proc.wait()


def _as_spec(cmd: CommandSpec | Sequence[str]) -> CommandSpec:
    if isinstance(cmd, CommandSpec):
        return cmd
    return CommandSpec(tuple(str(token) for token in cmd))


def _child_env(spec: CommandSpec) -> dict[str, str]:
    run_env = os.environ.copy()
    run_env.update({str(key): str(value) for key, value in spec.env.items()})
    return run_env
