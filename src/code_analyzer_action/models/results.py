"""In-memory representation of a complete analyzer run."""

from __future__ import annotations

from typing import Collection, Dict, Iterable, Tuple

from .violation import MAX_SEVERITY, MIN_SEVERITY, Violation

SEVERITIES = tuple(range(MIN_SEVERITY, MAX_SEVERITY + 1))


class Results:
    """Ordered, countable and read-only collection of violations.

    Violations are kept in input order and, separately, sorted by severity
    (most severe first). The sort is stable, so violations sharing a severity
    keep the order in which the analyzer reported them. Reports truncate from
    the tail of that sequence, which is why the ordering matters.
    """

    __slots__ = ("_violations", "_by_severity", "_counts")

    def __init__(self, violations: Iterable[Violation] = ()) -> None:
        self._violations: Tuple[Violation, ...] = tuple(violations)
        self._by_severity: Tuple[Violation, ...] = tuple(
            sorted(self._violations, key=lambda violation: violation.severity)
        )

        counts: Dict[int, int] = {severity: 0 for severity in SEVERITIES}
        for violation in self._violations:
            if violation.severity not in counts:
                raise ValueError(f"Unsupported violation severity: {violation.severity!r}")
            counts[violation.severity] += 1
        self._counts = counts

    def __len__(self) -> int:
        return len(self._violations)

    def __repr__(self) -> str:
        return f"Results(total={self.total_count}, counts={self.counts_by_severity()})"

    # ------------------------------------------------------------------
    @property
    def violations(self) -> Tuple[Violation, ...]:
        """Violations in the order they were loaded."""

        return self._violations

    def violations_by_severity(self) -> Tuple[Violation, ...]:
        return self._by_severity

    # ------------------------------------------------------------------
    @property
    def total_count(self) -> int:
        return len(self._violations)

    @property
    def sev1_count(self) -> int:
        return self._counts[1]

    @property
    def sev2_count(self) -> int:
        return self._counts[2]

    @property
    def sev3_count(self) -> int:
        return self._counts[3]

    @property
    def sev4_count(self) -> int:
        return self._counts[4]

    @property
    def sev5_count(self) -> int:
        return self._counts[5]

    def count_for(self, severity: int) -> int:
        return self._counts.get(severity, 0)

    def counts_by_severity(self) -> dict[int, int]:
        return dict(self._counts)

    # ------------------------------------------------------------------
    def partition(
        self, changed_files: Collection[str]
    ) -> tuple[list[Violation], list[Violation]]:
        """Split violations into those touching ``changed_files`` and the rest.

        A violation belongs to the first group when any of its locations is in
        a changed file. Both groups keep the severity ordering.
        """

        changed = set(changed_files)
        in_changed: list[Violation] = []
        others: list[Violation] = []
        for violation in self._by_severity:
            if changed and violation.touches_any(changed):
                in_changed.append(violation)
            else:
                others.append(violation)
        return in_changed, others
