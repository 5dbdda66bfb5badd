"""Allow ``python -m code_analyzer_action``."""

from .cli.app import run

run()
