"""
go-build Configuration

User options live under `custom.go-build` in serverless.yml. Every option has a
documented default; missing or invalid options fall back to it.
"""

from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_NAMESPACE = "go-build"


class GoBuildConfig(BaseModel):
    """
    Resolved plugin options.

    Field aliases are the camelCase keys users write in serverless.yml.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    awsbuild_prefix: str = Field(
        default="GOOS=linux ",
        alias="awsbuildPrefix",
        description="Environment assignments prepended to the build command",
    )
    build_cmd: str | list[str] = Field(
        default='go build -ldflags="-s -w" -o %2 %1',
        alias="buildCmd",
        description="Build command template (%1 source, %2 output binary)",
    )
    test_cmd: str | list[str] = Field(
        default="GO_TEST=serverless go test %1",
        alias="testCmd",
        description="Test command template (%1 test target)",
    )
    bin_path: str = Field(default="bin", alias="binPath", description="Binary output directory")
    tests: list[str] = Field(default_factory=list, description="Test targets to run")
    runtime: str = Field(default="go1.x", description="Runtime identifier of Go functions")
    path_to_aws_lambda: str = Field(
        default="github.com/aws/aws-lambda-go/lambda",
        alias="pathToAWSLambda",
        description="Import path of the Lambda runtime package used by generated mains",
    )
    go_path: str | None = Field(
        default=None, alias="goPath", description="Toolchain root (default: $GOPATH/src/)"
    )
    generated_main_path: str = Field(
        default="generatedEntrypoints/",
        alias="generatedMainPath",
        description="Directory for generated main.go files",
    )
    use_bin_path_for_handler: bool = Field(
        default=False,
        alias="useBinPathForHandler",
        description="Handlers point at binaries; build every .go file of their directory",
    )
    minimize_package: bool = Field(
        default=True,
        alias="minimizePackage",
        description="Package only the binary of each function",
    )
    upx_enabled: bool = Field(default=False, alias="upxEnabled", description="Compress with upx")
    upx_option: dict[str, Any] = Field(
        default_factory=dict, alias="upxOption", description="upx options, e.g. {best: true}"
    )
    test_plugins: list[str] = Field(
        default_factory=list,
        alias="testPlugins",
        description="Host commands spawned before tests run",
    )
    test_start_delay: float = Field(
        default=0,
        ge=0,
        alias="testStartDelay",
        description="Delay in milliseconds between spawned commands and tests",
    )

    @classmethod
    def from_custom(cls, custom: Any) -> "GoBuildConfig":
        """Merge the user's `custom` section over the defaults. Never raises."""
        overrides = custom.get(CONFIG_NAMESPACE) if isinstance(custom, Mapping) else None
        if not isinstance(overrides, Mapping):
            return cls()

        data = {str(key): value for key, value in overrides.items() if value is not None}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            invalid = cls._invalid_keys(exc)

        # Drop the offending options and keep the rest.
        data = {key: value for key, value in data.items() if key not in invalid}
        try:
            return cls.model_validate(data)
        except ValidationError:
            return cls()

    @classmethod
    def _invalid_keys(cls, exc: ValidationError) -> set[str]:
        invalid: set[str] = set()
        for err in exc.errors():
            if not err["loc"]:
                continue
            key = str(err["loc"][0])
            invalid.add(key)
            for name, info in cls.model_fields.items():
                if key in (name, info.alias):
                    invalid.update({name, info.alias or name})
        return invalid

    def resolve(self, key: str) -> Any:
        """Look an option up by its serverless.yml key or field name."""
        for name, info in type(self).model_fields.items():
            if key in (name, info.alias):
                return getattr(self, name)
        return None


class ToolchainSettings(BaseSettings):
    """Go toolchain environment."""

    GOPATH: str = Field(
        default_factory=lambda: str(Path.home() / "go"), description="Go workspace root"
    )

    model_config = SettingsConfigDict(case_sensitive=True, extra="ignore")


def resolve_go_path(config: GoBuildConfig, settings: ToolchainSettings | None = None) -> str:
    """
    Path to the toolchain source root.

    Taken from the goPath option, otherwise $GOPATH/src/. Always ends with "/".
    """
    if config.go_path:
        root = config.go_path
    else:
        settings = settings or ToolchainSettings()
        root = f"{settings.GOPATH.rstrip('/')}/src/"
    return root if root.endswith("/") else root + "/"
