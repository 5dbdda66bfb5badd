"""Helpers for talking to the GitHub Actions runner through workflow commands."""

from __future__ import annotations

import sys
import uuid
from pathlib import Path
from typing import Mapping, TextIO


def escape_data(value: str) -> str:
    """Escape a workflow command message."""

    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    """Escape a workflow command property value."""

    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


def format_command(
    command: str,
    message: str = "",
    properties: Mapping[str, object] | None = None,
) -> str:
    """Build a ``::command key=value,...::message`` workflow command string."""

    attribute_segment = ""
    if properties:
        attributes = [
            f"{key}={escape_property(str(value))}"
            for key, value in properties.items()
            if value is not None and value != ""
        ]
        if attributes:
            attribute_segment = " " + ",".join(attributes)
    return f"::{command}{attribute_segment}::{escape_data(message)}"


class ActionsRuntime:
    """Emit logs, outputs and step summaries for the current Actions job.

    File locations are passed in explicitly; when they are missing the
    runtime prints to ``stream`` instead so local runs stay readable.
    """

    def __init__(
        self,
        *,
        output_path: Path | None = None,
        summary_path: Path | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.output_path = output_path
        self.summary_path = summary_path
        self._stream = stream
        self.failed = False

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    # Logging ------------------------------------------------------------------
    def start_group(self, name: str) -> None:
        self._issue(format_command("group", name))

    def end_group(self) -> None:
        self._issue(format_command("endgroup"))

    def info(self, message: str) -> None:
        self._issue(message)

    def notice(self, message: str, **properties: object) -> None:
        self._issue(format_command("notice", message, properties))

    def warning(self, message: str, **properties: object) -> None:
        self._issue(format_command("warning", message, properties))

    def error(self, message: str, **properties: object) -> None:
        self._issue(format_command("error", message, properties))

    def set_failed(self, message: str) -> None:
        """Report ``message`` as an error and mark the run as failed."""

        self.failed = True
        self.error(message)

    # Outputs ------------------------------------------------------------------
    def set_output(self, name: str, value: str) -> None:
        if self.output_path is None:
            self._issue(f"{name}={value}")
            return

        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        if delimiter in name or delimiter in value:  # pragma: no cover - astronomically unlikely
            raise ValueError("Output delimiter collided with the output content")

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with self.output_path.open("a", encoding="utf-8") as handle:
            handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")

    def write_summary(self, markdown: str) -> None:
        """Append ``markdown`` to the job summary."""

        if self.summary_path is None:
            self._issue(markdown)
            return

        self.summary_path.parent.mkdir(parents=True, exist_ok=True)
        with self.summary_path.open("a", encoding="utf-8") as handle:
            handle.write(markdown)

    # ------------------------------------------------------------------
    def _issue(self, line: str) -> None:
        print(line, file=self.stream)
