"""
Custom exception classes.

Represent the failure categories of a Go build, compress or test run.
"""


class GoBuildPluginError(Exception):
    """Base exception class for the go-build plugin."""

    pass


class GoBuildError(GoBuildPluginError):
    """Raised when entry point generation or compilation fails."""

    def __init__(self, detail: str = "Go build failure"):
        super().__init__(detail)


class GoTestError(GoBuildPluginError):
    """Raised when a test command fails."""

    def __init__(self, detail: str = "Go test failure"):
        super().__init__(detail)


class UpxCompressError(GoBuildPluginError):
    """Raised when one or more binaries could not be compressed."""

    def __init__(self, detail: str = "UPX compressing failure"):
        super().__init__(detail)


class GoPathError(GoBuildPluginError):
    """Raised when a module to wrap lives outside the toolchain root."""

    def __init__(self, module_path: str, go_path: str):
        self.module_path = module_path
        self.go_path = go_path
        super().__init__(
            f"Module path not in GOPATH - set gopath in serverless if needed: "
            f"{module_path} (GOPATH: {go_path})"
        )


class FunctionNotFoundError(GoBuildPluginError):
    """Raised when a function is not declared by the service."""

    def __init__(self, function_name: str):
        self.function_name = function_name
        super().__init__(f"Function not found: {function_name}")


class ServiceLoadError(GoBuildPluginError):
    """Raised when the service description cannot be read."""

    pass
