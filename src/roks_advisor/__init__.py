"""ROKS Advisor."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("roks-advisor")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
