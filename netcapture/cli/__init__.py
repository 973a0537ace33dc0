"""CLI module for netcapture."""

from .main import app, ExitCode

__all__ = [
    'app',
    'ExitCode',
]
