"""Command-line interface package for the Code Analyzer action."""

from .app import build_parser, create_runner, main, results_to_dict, run

__all__ = [
    "build_parser",
    "create_runner",
    "main",
    "results_to_dict",
    "run",
]
