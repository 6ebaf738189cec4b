from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from go_build.core.runner import CommandSpec, CompletedCommand, RunnerError
from go_build.core.service import FunctionSpec, ProviderConfig, ServiceDescription


@dataclass
class FakeProcess:
    argv: tuple[str, ...]
    terminated: bool = False


@dataclass
class FakeRunner:
    dry_run: bool = False
    fail_on: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        self.commands: list[CommandSpec] = []
        self.cwds: list[str | None] = []
        self.messages: list[str] = []
        self.started: list[FakeProcess] = []

    def emit(self, message: str) -> None:
        self.messages.append(message)

    def which(self, command: str) -> str | None:
        return f"/usr/bin/{command}"

    def require_command(self, command: str) -> str:
        return f"/usr/bin/{command}"

    def run(self, cmd, *, cwd=None, check: bool = True) -> CompletedCommand:
        spec = cmd if isinstance(cmd, CommandSpec) else CommandSpec(tuple(str(t) for t in cmd))
        self.commands.append(spec)
        self.cwds.append(str(cwd) if cwd is not None else None)
        rendered = spec.render()
        if any(pattern in rendered for pattern in self.fail_on):
            if check:
                raise RunnerError(f"command failed with exit code 1: $ {rendered}")
            return CompletedCommand(spec.argv, 1, "", "")
        return CompletedCommand(spec.argv, 0, "", "")

    def start(self, cmd, *, cwd=None):
        spec = cmd if isinstance(cmd, CommandSpec) else CommandSpec(tuple(str(t) for t in cmd))
        self.commands.append(spec)
        self.cwds.append(str(cwd) if cwd is not None else None)
        if self.dry_run:
            return None
        proc = FakeProcess(spec.argv)
        self.started.append(proc)
        return proc

    def terminate(self, proc, *, timeout: float = 10.0) -> int:
        proc.terminated = True
        return 0

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [spec.argv for spec in self.commands]


@dataclass
class FakeHost:
    spawned: list[str] = field(default_factory=list)
    stopped: int = 0

    def spawn(self, command: str) -> None:
        self.spawned.append(command)

    def stop(self) -> None:
        self.stopped += 1


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def make_service():
    def _make(
        functions: dict[str, dict],
        *,
        runtime: str | None = "go1.x",
        custom: dict | None = None,
        service_path: str | Path = "/go/src/myservice",
    ) -> ServiceDescription:
        return ServiceDescription(
            service="myservice",
            service_path=str(service_path),
            provider=ProviderConfig(runtime=runtime),
            functions={
                name: FunctionSpec.from_dict(name, props) for name, props in functions.items()
            },
            custom=custom or {},
        )

    return _make


@pytest.fixture
def go_root(tmp_path: Path) -> Path:
    """A toolchain root with an empty service directory at <root>/myservice."""
    root = tmp_path / "go" / "src"
    (root / "myservice").mkdir(parents=True)
    return root


@pytest.fixture
def make_runner():
    return FakeRunner
