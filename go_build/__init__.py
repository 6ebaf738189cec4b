"""Build Go functions of a serverless service into deployable binaries."""

from go_build.plugin import GoBuildPlugin

__version__ = "0.4.0"

__all__ = ["GoBuildPlugin", "__version__"]
