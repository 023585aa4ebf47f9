"""
REM CLI - Command Line Interface Package

Modules:
    cli: Main CLI application
"""

from rem_cli.cli import main, cli

__version__ = "0.1.0"

__all__ = [
    "main",
    "cli",
]
