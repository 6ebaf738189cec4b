"""
Service Description

Parse serverless.yml and expose the functions, provider runtime and custom
options the plugin works on. Safely handle CloudFormation intrinsic function
tags (!Ref, !Sub, etc.) that may appear in the resources section.
"""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import FunctionNotFoundError, ServiceLoadError
from .runner import CommandRunner, CommandSpec

SERVICE_FILE_NAMES = ("serverless.yml", "serverless.yaml")


class CfnLoader(yaml.SafeLoader):
    """YAML loader that handles CloudFormation intrinsic functions."""

    pass


def cfn_constructor(loader: yaml.Loader, node: yaml.Node) -> Any:
    """Constructor for CloudFormation tags."""
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node)
    elif isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node)
    return ""


for tag in [
    "!Ref",
    "!Sub",
    "!GetAtt",
    "!ImportValue",
    "!If",
    "!Join",
    "!Select",
    "!Split",
    "!Equals",
    "!Not",
    "!FindInMap",
]:
    yaml.add_constructor(tag, cfn_constructor, Loader=CfnLoader)


class FunctionSpec(BaseModel):
    """
    A function declared by the service.

    Unknown keys (events, environment, ...) are kept so the record can be
    written back unchanged apart from the fields this plugin rewrites.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    name: str
    handler: str | None = None
    runtime: str | None = None
    package: dict[str, Any] | None = None
    upx_enabled: bool | None = Field(default=None, alias="upxEnabled")
    upx_option: dict[str, Any] | None = Field(default=None, alias="upxOption")
    # The optional `name:` property (deployed function name).
    deployed_name: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict | None) -> "FunctionSpec":
        """Factory to create from a serverless.yml function entry."""
        props = dict(data or {})
        deployed_name = props.pop("name", None)
        return cls.model_validate({**props, "name": name, "deployed_name": deployed_name})

    def to_dict(self) -> dict[str, Any]:
        """serverless.yml form of the function (keyed by its name elsewhere)."""
        data = self.model_dump(
            by_alias=True, exclude_none=True, exclude={"name", "deployed_name"}
        )
        if self.deployed_name is not None:
            data = {"name": self.deployed_name, **data}
        return data


class ProviderConfig(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    name: str = "aws"
    runtime: str | None = None


class ServiceDescription(BaseModel):
    """The parts of a serverless service the plugin reads and rewrites."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    service: str = ""
    service_path: str = "."
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    functions: dict[str, FunctionSpec] = Field(default_factory=dict)
    custom: dict[str, Any] = Field(default_factory=dict)

    def get_all_functions(self) -> list[str]:
        return list(self.functions)

    def get_function(self, name: str) -> FunctionSpec:
        try:
            return self.functions[name]
        except KeyError:
            raise FunctionNotFoundError(name) from None

    def replace_functions(self, functions: list[FunctionSpec]) -> None:
        """Substitute rewritten records back, matched by function name."""
        for func in functions:
            if func.name not in self.functions:
                raise FunctionNotFoundError(func.name)
            self.functions[func.name] = func


def find_service_file(path: Path) -> Path:
    """Resolve serverless.yml from a file or a service directory."""
    if path.is_dir():
        for name in SERVICE_FILE_NAMES:
            candidate = path / name
            if candidate.is_file():
                return candidate.resolve()
        raise ServiceLoadError(f"serverless.yml not found in {path.resolve()}")
    if not path.is_file():
        raise ServiceLoadError(f"service file not found: {path}")
    return path.resolve()


def parse_service(content: str, service_path: str = ".") -> ServiceDescription:
    """
    Parse a serverless.yml string.

    Args:
        content: serverless.yml YAML string
        service_path: directory the service lives in

    Returns:
        ServiceDescription with functions in declaration order.
    """
    try:
        data = yaml.load(content, Loader=CfnLoader) or {}
    except yaml.YAMLError as exc:
        raise ServiceLoadError(f"invalid serverless.yml: {exc}") from exc
    if not isinstance(data, dict):
        raise ServiceLoadError("serverless.yml must be a mapping")

    service = data.get("service", "")
    # Older services declare `service: {name: ...}`.
    if isinstance(service, dict):
        service = service.get("name", "")

    raw_functions = data.get("functions") or {}
    if not isinstance(raw_functions, dict):
        raise ServiceLoadError("serverless.yml 'functions' must be a mapping")

    custom = data.get("custom") or {}
    try:
        return ServiceDescription(
            service=str(service),
            service_path=str(service_path),
            provider=ProviderConfig.model_validate(data.get("provider") or {}),
            functions={
                str(name): FunctionSpec.from_dict(str(name), props)
                for name, props in raw_functions.items()
            },
            custom=custom if isinstance(custom, dict) else {},
        )
    except ValidationError as exc:
        raise ServiceLoadError(f"invalid serverless.yml: {exc}") from exc


def load_service(path: Path | str) -> ServiceDescription:
    """Load the service description from serverless.yml on disk."""
    service_file = find_service_file(Path(path))
    with open(service_file, encoding="utf-8") as f:
        content = f.read()
    return parse_service(content, service_path=str(service_file.parent))


def dump_functions(functions: dict[str, FunctionSpec]) -> str:
    """Render a `functions:` section as YAML."""
    payload = {"functions": {name: func.to_dict() for name, func in functions.items()}}
    return yaml.safe_dump(payload, sort_keys=False, default_flow_style=False)


class Host(Protocol):
    """The host framework as seen by the test step."""

    def spawn(self, command: str) -> None: ...

    def stop(self) -> None: ...


def host_command_argv(command: str) -> list[str]:
    """
    Split a host command into CLI arguments.

    Commands use the plugin manager's colon form ("dynamodb:start"); the
    leading command words are split on ":" and options are kept as written.
    """
    argv: list[str] = []
    tokens = shlex.split(command)
    for index, token in enumerate(tokens):
        if token.startswith("-"):
            argv.extend(tokens[index:])
            break
        argv.extend(part for part in token.split(":") if part)
    return argv


class ServerlessHost:
    """
    Spawn host commands by running the serverless CLI in the service directory.

    Spawned commands (local emulators, databases) keep running in the
    background until `stop()`.
    """

    def __init__(
        self,
        runner: CommandRunner,
        service_path: str,
        executable: str = "serverless",
    ) -> None:
        self.runner = runner
        self.service_path = service_path
        self.executable = executable
        self._processes: list[subprocess.Popen] = []

    def spawn(self, command: str) -> None:
        spec = CommandSpec((self.executable, *host_command_argv(command)))
        proc = self.runner.start(spec, cwd=self.service_path)
        if proc is not None:
            self._processes.append(proc)

    def stop(self) -> None:
        """Terminate spawned commands, most recent first."""
        while self._processes:
            self.runner.terminate(self._processes.pop())
