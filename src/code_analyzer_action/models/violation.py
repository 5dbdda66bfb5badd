"""Violation models produced from Code Analyzer results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Collection, Optional, Tuple

MIN_SEVERITY = 1
MAX_SEVERITY = 5

SEVERITY_LABELS = {
    1: "Critical",
    2: "High",
    3: "Moderate",
    4: "Low",
    5: "Info",
}


@dataclass(frozen=True, slots=True)
class ViolationLocation:
    """A single source position referenced by a violation."""

    file: Optional[str] = None
    start_line: Optional[int] = None
    start_column: Optional[int] = None
    end_line: Optional[int] = None
    end_column: Optional[int] = None
    comment: Optional[str] = None

    @property
    def label(self) -> str:
        """Return ``path:line:col``, dropping the parts that are unknown."""

        if not self.file:
            return ""
        label = self.file
        if self.start_line is not None:
            label += f":{self.start_line}"
            if self.start_column is not None:
                label += f":{self.start_column}"
        return label

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True, slots=True)
class Violation:
    """A finding reported by one of the analyzer engines."""

    severity: int
    engine: str
    rule: str
    message: str
    locations: Tuple[ViolationLocation, ...]
    primary_location_index: int = 0
    tags: Tuple[str, ...] = ()
    resources: Tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.severity, bool) or not MIN_SEVERITY <= self.severity <= MAX_SEVERITY:
            raise ValueError(
                f"Violation severity must be between {MIN_SEVERITY} and {MAX_SEVERITY}: "
                f"{self.severity!r}"
            )
        if not self.locations:
            raise ValueError("Violation must have at least one location")
        if not 0 <= self.primary_location_index < len(self.locations):
            raise ValueError(
                f"Primary location index {self.primary_location_index} is out of range "
                f"for {len(self.locations)} location(s)"
            )

    @property
    def severity_label(self) -> str:
        return f"{self.severity} ({SEVERITY_LABELS[self.severity]})"

    @property
    def primary_location(self) -> ViolationLocation:
        return self.locations[self.primary_location_index]

    @property
    def files(self) -> frozenset[str]:
        """Files referenced by any location of the violation."""

        return frozenset(location.file for location in self.locations if location.file)

    def touches_any(self, files: Collection[str]) -> bool:
        """Return ``True`` when at least one location sits in ``files``."""

        return any(
            location.file is not None and location.file in files for location in self.locations
        )
