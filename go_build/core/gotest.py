# Where: go_build/core/gotest.py
# What: Sequential execution of the configured Go test commands.
# Why: Report test outcome as a value so callers decide the exit status.
from __future__ import annotations

import time
from dataclasses import dataclass

from . import logging
from .config import GoBuildConfig
from .runner import CommandRunner, RunnerError, command_from_template
from .service import Host


@dataclass(frozen=True)
class GoTestResult:
    passed: tuple[str, ...] = ()
    failed: str | None = None

    @property
    def ok(self) -> bool:
        return self.failed is None


def run_tests(
    config: GoBuildConfig,
    runner: CommandRunner,
    host: Host,
    *,
    service_path: str,
) -> GoTestResult:
    """
    Spawn the configured host commands, wait testStartDelay, then run each test
    command in order. Stops at the first failing test. Spawned commands are
    stopped once the tests are done, whatever the outcome.
    """
    logging.step("Running Go tests")

    if not config.tests:
        logging.warning(
            "No tests to run - add tests to custom.go-build.tests in your serverless file."
        )

    try:
        for plugin in config.test_plugins:
            host.spawn(plugin)

        if config.test_start_delay and not runner.dry_run:
            time.sleep(config.test_start_delay / 1000)

        passed: list[str] = []
        for test in config.tests:
            cmd = command_from_template(config.test_cmd, [test])
            try:
                runner.run(cmd, cwd=service_path)
            except RunnerError as exc:
                logging.replicate(f"Error running test on {test}", cmd.render())
                logging.error(str(exc))
                return GoTestResult(passed=tuple(passed), failed=test)
            passed.append(test)
    finally:
        host.stop()

    return GoTestResult(passed=tuple(passed))
