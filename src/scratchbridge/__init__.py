"""Core package for the Scratch cloud-variable chat bridge."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("scratchbridge")
except PackageNotFoundError:
    __version__ = "0.0.0"
