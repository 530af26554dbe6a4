"""Assistant Gateway - local control plane for an AI coding-assistant session."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("assistant-gateway")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"  # Fallback for development without install
