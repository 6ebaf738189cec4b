"""
go-build plugin

Exposes the build and test commands and the lifecycle hooks a serverless host
binds them to.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from go_build.core import logging
from go_build.core.build_ops import build_functions, generate_entry_points
from go_build.core.config import GoBuildConfig, ToolchainSettings, resolve_go_path
from go_build.core.deploy import rewrite_for_deployment
from go_build.core.exceptions import GoTestError
from go_build.core.gotest import GoTestResult, run_tests
from go_build.core.runner import CommandRunner
from go_build.core.selector import select_go_functions
from go_build.core.service import FunctionSpec, Host, ServerlessHost, ServiceDescription
from go_build.core.upx import CompressionStats, compress_binaries

COMMANDS: dict[str, dict[str, Any]] = {
    "build": {
        "usage": "Builds your go files needed for deployment",
        "lifecycleEvents": ["goBuild", "upxCompress"],
        "options": {
            "local": {
                "usage": (
                    "Not yet active: If the build should be made for the local machine "
                    "(otherwise defaults to AWS deployment)"
                ),
                "shortcut": "l",
                "required": False,
                "type": "boolean",
            },
            "function": {
                "usage": "Build go executable for the one function given only",
                "shortcut": "f",
                "required": False,
                "type": "string",
            },
        },
    },
    "test": {
        "usage": "Runs your go tests",
        "lifecycleEvents": ["test"],
    },
}


class GoBuildPlugin:
    """Build, compress and test Go functions of a serverless service."""

    def __init__(
        self,
        service: ServiceDescription,
        options: Mapping[str, Any] | None = None,
        *,
        runner: CommandRunner | None = None,
        host: Host | None = None,
        settings: ToolchainSettings | None = None,
    ) -> None:
        self.service = service
        self.options = dict(options or {})
        self.runner = runner or CommandRunner(printer=logging.output)
        self.host = host or ServerlessHost(self.runner, service.service_path)
        self.settings = settings
        self.config = GoBuildConfig.from_custom(service.custom)

        self.commands = COMMANDS
        self.hooks: dict[str, Callable[[], Any]] = {
            "before:build:goBuild": self.create_mains,
            "build:goBuild": self.go_build,
            "build:upxCompress": self.upx_compress,
            "test:test": self.tests,
            "before:deploy:function:packageFunction": self.predeploy,
            "before:package:createDeploymentArtifacts": self.predeploy,
        }

    def get_relevant_go_functions(self) -> list[FunctionSpec]:
        return select_go_functions(self.service, self.config, self.options.get("function"))

    def get_go_path(self) -> str:
        return resolve_go_path(self.config, self.settings)

    def create_mains(self) -> list:
        """Create main go files for handlers pointing at a package function."""
        return generate_entry_points(
            self.get_relevant_go_functions(),
            self.config,
            self.runner,
            service_path=self.service.service_path,
            go_path=self.get_go_path(),
        )

    def go_build(self) -> list[str]:
        if self.options.get("local"):
            logging.warning("--local is not yet active; building for AWS deployment")
        return build_functions(
            self.get_relevant_go_functions(),
            self.config,
            self.runner,
            service_path=self.service.service_path,
        )

    def upx_compress(self) -> list[CompressionStats]:
        return compress_binaries(
            self.get_relevant_go_functions(),
            self.config,
            self.runner,
            service_path=self.service.service_path,
        )

    def tests(self) -> GoTestResult:
        result = run_tests(
            self.config, self.runner, self.host, service_path=self.service.service_path
        )
        if not result.ok:
            raise GoTestError()
        logging.success("Tests successfully exited")
        return result

    def predeploy(self) -> list[FunctionSpec]:
        """Before packaging, functions must be redirected to the built binaries."""
        logging.info(f"Reassigning go paths to point to {self.config.bin_path}")
        rewritten = rewrite_for_deployment(self.get_relevant_go_functions(), self.config)
        self.service.replace_functions(rewritten)
        return rewritten

    def run_lifecycle(self, command: str) -> Any:
        """
        Run the hooks of a command's lifecycle events in order
        (before:<command>:<event>, <command>:<event>, after:<command>:<event>).

        Returns the result of the last hook that ran.
        """
        if command not in self.commands:
            raise KeyError(f"unknown command: {command}")
        result = None
        for event in self.commands[command]["lifecycleEvents"]:
            for key in (
                f"before:{command}:{event}",
                f"{command}:{event}",
                f"after:{command}:{event}",
            ):
                hook = self.hooks.get(key)
                if hook:
                    result = hook()
        return result
