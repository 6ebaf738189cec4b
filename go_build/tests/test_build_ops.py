from __future__ import annotations

from pathlib import Path

import pytest

from go_build.core.build_ops import build_command, build_functions, generate_entry_points
from go_build.core.config import GoBuildConfig
from go_build.core.exceptions import GoBuildError, GoPathError
from go_build.core.service import FunctionSpec


def _functions(*handlers: str) -> list[FunctionSpec]:
    return [FunctionSpec(name=f"fn{i}", handler=handler) for i, handler in enumerate(handlers)]


# ============================================================
# generate_entry_points tests
# ============================================================


def test_generate_entry_point_end_to_end(go_root: Path, runner):
    service_path = go_root / "myservice"

    written = generate_entry_points(
        _functions("handlers/greet.Hello", "legacy/main.go"),
        GoBuildConfig(),
        runner,
        service_path=str(service_path),
        go_path=f"{go_root}/",
    )

    main_go = service_path / "generatedEntrypoints" / "handlers" / "greet" / "Hello" / "main.go"
    assert written == [main_go]
    content = main_go.read_text(encoding="utf-8")
    assert '"myservice/handlers/greet"' in content
    assert '"github.com/aws/aws-lambda-go/lambda"' in content
    assert "lambda.Start(greet.Hello)" in content
    # Generation never invokes external commands.
    assert runner.commands == []


def test_generate_outside_go_path_writes_nothing(tmp_path: Path, runner):
    service_path = tmp_path / "elsewhere" / "myservice"
    service_path.mkdir(parents=True)

    with pytest.raises(GoPathError):
        generate_entry_points(
            _functions("handlers/greet.Hello"),
            GoBuildConfig(),
            runner,
            service_path=str(service_path),
            go_path=f"{tmp_path}/go/src/",
        )

    assert not (service_path / "generatedEntrypoints").exists()


def test_generate_checks_every_plan_before_writing(go_root: Path, runner):
    service_path = go_root / "myservice"
    # The second module escapes the toolchain root.
    functions = _functions("handlers/greet.Hello", "../../../outside/mod.Run")

    with pytest.raises(GoPathError):
        generate_entry_points(
            functions,
            GoBuildConfig(),
            runner,
            service_path=str(service_path),
            go_path=f"{go_root}/",
        )

    assert not (service_path / "generatedEntrypoints").exists()


def test_generate_is_noop_without_package_handlers(go_root: Path, runner, capsys):
    written = generate_entry_points(
        _functions("a/main.go"),
        GoBuildConfig(),
        runner,
        service_path=str(go_root / "myservice"),
        go_path=f"{go_root}/",
    )

    assert written == []
    assert "Creating main functions" not in capsys.readouterr().out


def test_generate_dry_run(go_root: Path, make_runner):
    runner = make_runner(dry_run=True)
    service_path = go_root / "myservice"

    written = generate_entry_points(
        _functions("handlers/greet.Hello"),
        GoBuildConfig(),
        runner,
        service_path=str(service_path),
        go_path=f"{go_root}/",
    )

    assert written == []
    assert not (service_path / "generatedEntrypoints").exists()
    assert any(message.startswith("[dry-run] write") for message in runner.messages)


def test_generate_write_failure_is_build_failure(monkeypatch, go_root: Path, runner):
    def _fail(out_path, content):
        raise PermissionError("read-only file system")

    monkeypatch.setattr("go_build.core.build_ops.write_main_go", _fail)

    with pytest.raises(GoBuildError, match="Go build failure"):
        generate_entry_points(
            _functions("handlers/greet.Hello"),
            GoBuildConfig(),
            runner,
            service_path=str(go_root / "myservice"),
            go_path=f"{go_root}/",
        )


# ============================================================
# build_functions tests
# ============================================================


def test_build_functions_runs_one_command_per_function(runner):
    binaries = build_functions(
        _functions("handlers/greet.Hello", "legacy/main.go"),
        GoBuildConfig(),
        runner,
        service_path="/go/src/myservice",
    )

    assert binaries == ["bin/handlers/greet.Hello", "bin/legacy/main"]
    assert runner.argvs == [
        (
            "go",
            "build",
            "-ldflags=-s -w",
            "-o",
            "bin/handlers/greet.Hello",
            "generatedEntrypoints/handlers/greet/Hello/main.go",
        ),
        ("go", "build", "-ldflags=-s -w", "-o", "bin/legacy/main", "legacy/main.go"),
    ]
    assert all(spec.env == {"GOOS": "linux"} for spec in runner.commands)
    assert runner.cwds == ["/go/src/myservice", "/go/src/myservice"]


def test_build_failure_stops_sequence(make_runner, capsys):
    runner = make_runner(fail_on=("bin/b",))

    with pytest.raises(GoBuildError, match="Go build failure"):
        build_functions(
            _functions("a.go", "b.go", "c.go"),
            GoBuildConfig(),
            runner,
            service_path="/srv",
        )

    assert [spec.argv[-1] for spec in runner.commands] == ["a.go", "b.go"]
    err = capsys.readouterr().err
    assert "Error building golang file at b.go" in err
    assert "To replicate please run:" in err
    assert "GOOS=linux go build '-ldflags=-s -w' -o bin/b b.go" in err


def test_build_skips_functions_without_handler(runner):
    functions = [FunctionSpec(name="image"), FunctionSpec(name="go", handler="main.go")]

    binaries = build_functions(functions, GoBuildConfig(), runner, service_path="/srv")

    assert binaries == ["bin/main"]
    assert len(runner.commands) == 1


def test_custom_build_command():
    config = GoBuildConfig.from_custom(
        {"go-build": {"awsbuildPrefix": "", "buildCmd": "tinygo build -o %2 %1", "binPath": "out"}}
    )

    cmd = build_command(FunctionSpec(name="fn", handler="fn/main.go"), config, "/srv")

    assert cmd.env == {}
    assert cmd.argv == ("tinygo", "build", "-o", "out/fn/main", "fn/main.go")


def test_wildcard_sources_are_expanded(tmp_path: Path):
    source_dir = tmp_path / "handlers" / "greet"
    source_dir.mkdir(parents=True)
    (source_dir / "b.go").write_text("package main\n", encoding="utf-8")
    (source_dir / "a.go").write_text("package main\n", encoding="utf-8")
    config = GoBuildConfig.from_custom({"go-build": {"useBinPathForHandler": True}})

    cmd = build_command(
        FunctionSpec(name="greet", handler="handlers/greet/*.go"), config, str(tmp_path)
    )

    assert cmd.argv[-4:] == (
        "-o",
        "bin/handlers/greet/main",
        "handlers/greet/a.go",
        "handlers/greet/b.go",
    )


def test_build_command_without_handler():
    with pytest.raises(GoBuildError, match="Function image has no handler to build"):
        build_command(FunctionSpec(name="image"), GoBuildConfig(), "/srv")
