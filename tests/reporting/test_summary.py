"""Tests for the size-bounded markdown summary renderer."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from code_analyzer_action.adapters import load_results
from code_analyzer_action.models import Results, Violation, ViolationLocation
from code_analyzer_action.reporting import (
    MAX_SUMMARY_BYTES,
    TRUNCATION_RESERVE_BYTES,
    SummaryRenderer,
    render_summary,
)

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"
DUMMY_FILES = ["/some/file1.ts", "/some/file2.ts", "/some/file3.ts"]
CHANGED_CAPTION = "### Violations in files changed by this pull request"
OTHER_CAPTION = "### Other violations"
NOTICE_PATTERN = re.compile(r"\*\*Note:\*\* (\d+) more violation\(s\)")

HEADER_LINES = [
    "## Salesforce Code Analyzer Results",
    "",
    "**Total violations:** 5",
    "",
    "| Severity | Violations |",
    "| --- | ---: |",
    "| 1 (Critical) | 1 |",
    "| 2 (High) | 1 |",
    "| 3 (Moderate) | 2 |",
    "| 4 (Low) | 0 |",
    "| 5 (Info) | 1 |",
]
TABLE_HEAD = [
    "| Severity | Engine | Rule | Location | Message |",
    "| --- | --- | --- | --- | --- |",
]
FLS_ROW = (
    "| 1 (Critical) | sfge | ApexFlsViolation | "
    "`force-app/main/default/classes/AccountService.cls:12:9`<br>"
    "`force-app/main/default/classes/SimpleAccount.cls:4:5` | "
    "FLS validation is missing for [READ] operation on [Account] |"
)
UNUSED_ROW = (
    "| 2 (High) | eslint | no-unused-vars | "
    "`force-app/main/default/aura/DOMXSS/DOMXSSController.js:7:13` | "
    "'helper' is assigned a value but never used. |"
)
APEX_DOC_ROW = (
    "| 3 (Moderate) | pmd | "
    "[ApexDoc](https://pmd.github.io/latest/pmd_rules_apex_documentation.html#apexdoc) | "
    "`force-app/main/default/classes/NameController.cls:1:8` | Missing ApexDoc comment |"
)
DEBUG_ROW = (
    "| 3 (Moderate) | pmd | AvoidDebugStatements | "
    "`force-app/main/default/classes/SimpleAccount.cls:9:9` | "
    "Avoid debug statements since they impact on performance |"
)
METADATA_ROW = (
    "| 5 (Info) | regex | MetadataApiVersion | "
    "`force-app/main/default/classes/Legacy.cls-meta.xml:3` | "
    "Metadata API version is outdated \\| upgrade to 62.0 |"
)


@pytest.fixture(scope="module")
def sample_results() -> Results:
    return load_results(FIXTURES / "sample-results.json")


def _all_files(results: Results) -> list[str]:
    files = {file for violation in results.violations for file in violation.files}
    return sorted(files)


def _dummy_results(count: int, *, padding: int = 100) -> Results:
    violations = []
    for index in range(count):
        file = DUMMY_FILES[index % 3]
        violations.append(
            Violation(
                severity=3,
                engine="someEngine",
                rule="someRule",
                message=f"some message {index + 1} " + "x" * padding,
                locations=(ViolationLocation(file=file, start_line=index + 1, start_column=0),),
            )
        )
    return Results(violations)


def _rows(section: str) -> list[str]:
    return [line for line in section.splitlines() if line.startswith("| 3 (Moderate) | some")]


def _omitted(section: str) -> int:
    match = NOTICE_PATTERN.search(section)
    return int(match.group(1)) if match else 0


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def test_two_tables_when_violations_in_and_out_of_changed_files(sample_results: Results) -> None:
    changed_files = [
        "force-app/main/default/classes/SimpleAccount.cls",
        "force-app/main/default/aura/DOMXSS/DOMXSSController.js",
    ]

    summary = SummaryRenderer().render(sample_results, changed_files)

    expected = "\n".join(
        HEADER_LINES
        + ["", CHANGED_CAPTION, ""]
        + TABLE_HEAD
        + [FLS_ROW, UNUSED_ROW, DEBUG_ROW]
        + ["", "### Other violations", ""]
        + TABLE_HEAD
        + [APEX_DOC_ROW, METADATA_ROW, ""]
    )
    assert summary == expected


@pytest.mark.parametrize(
    "case",
    ["all violations in changed files", "all violations in unchanged files", "no changed files"],
)
def test_single_table_layout_is_identical_across_collapse_cases(
    sample_results: Results, case: str
) -> None:
    changed_files = {
        "all violations in changed files": _all_files(sample_results),
        "all violations in unchanged files": ["force-app/main/default/classes/DoNotUse.cls"],
        "no changed files": [],
    }[case]

    summary = render_summary(sample_results, changed_files)

    expected = "\n".join(
        HEADER_LINES
        + ["", "### Violations", ""]
        + TABLE_HEAD
        + [FLS_ROW, UNUSED_ROW, APEX_DOC_ROW, DEBUG_ROW, METADATA_ROW, ""]
    )
    assert summary == expected


def test_single_violation_in_changed_file_renders_one_table() -> None:
    results = Results(
        [
            Violation(
                severity=3,
                engine="eslint",
                rule="no-var",
                message="Unexpected var",
                locations=(ViolationLocation(file="a.ts", start_line=1, start_column=0),),
            )
        ]
    )

    in_changed = render_summary(results, ["a.ts"])
    not_changed = render_summary(results, ["b.ts"])

    assert "**Total violations:** 1" in in_changed
    assert "| 3 (Moderate) | 1 |" in in_changed
    assert in_changed.count("### ") == 1
    assert "| 3 (Moderate) | eslint | no-var | `a.ts:1:0` | Unexpected var |" in in_changed
    assert not_changed == in_changed


def test_zero_violations_renders_header_only() -> None:
    summary = SummaryRenderer().render(Results())

    assert "**Total violations:** 0" in summary
    for severity in ("1 (Critical)", "2 (High)", "3 (Moderate)", "4 (Low)", "5 (Info)"):
        assert f"| {severity} | 0 |" in summary
    assert "###" not in summary
    assert "Note:" not in summary
    assert SummaryRenderer().render(Results(), ["a.ts"]) == summary


def test_first_table_size_is_deducted_from_second_table_budget() -> None:
    results = _dummy_results(7000)

    summary = SummaryRenderer().render(results, DUMMY_FILES[:1])

    assert _byte_len(summary) <= MAX_SUMMARY_BYTES
    first, second = summary.split(OTHER_CAPTION)
    assert CHANGED_CAPTION in first

    assert len(_rows(first)) == 2334
    assert _omitted(first) == 0

    second_rows = _rows(second)
    assert 0 < len(second_rows) < 4666
    assert _omitted(second) == 4666 - len(second_rows)
    assert _byte_len(OTHER_CAPTION + second) <= MAX_SUMMARY_BYTES - _byte_len(first)

    # On its own the second partition would fit without truncation.
    others_only = Results(v for v in results.violations if v.primary_location.file != DUMMY_FILES[0])
    standalone = SummaryRenderer().render(others_only)
    assert len(_rows(standalone)) == 4666
    assert _omitted(standalone) == 0


def test_second_table_is_omitted_when_first_table_exhausts_budget() -> None:
    results = _dummy_results(50000)

    summary = SummaryRenderer().render(results, DUMMY_FILES[:1])

    assert _byte_len(summary) <= MAX_SUMMARY_BYTES
    assert CHANGED_CAPTION in summary
    assert "Other violations" not in summary

    shown = len(_rows(summary))
    assert shown > 0
    assert shown + _omitted(summary) == 16667
    assert "**Total violations:** 50000" in summary


def test_truncation_drops_least_severe_tail() -> None:
    violations = [
        Violation(
            severity=(index % 5) + 1,
            engine="pmd",
            rule=f"Rule{index}",
            message=f"message {index} " + "y" * 40,
            locations=(ViolationLocation(file="a.cls", start_line=index + 1),),
        )
        for index in range(200)
    ]
    results = Results(violations)

    summary = SummaryRenderer(max_bytes=8192).render(results)

    assert _byte_len(summary) <= 8192
    shown_rules = re.findall(r"^\| \d \(\w+\) \| pmd \| (Rule\d+) \|", summary, re.MULTILINE)
    expected_order = [v.rule for v in results.violations_by_severity()]
    assert shown_rules == expected_order[: len(shown_rules)]
    assert _omitted(summary) == 200 - len(shown_rules)
    assert "more violation(s) were left out of this table" in summary


@pytest.mark.parametrize("max_bytes", [2048, 4096, 10_000, 65_536])
def test_output_never_exceeds_budget(max_bytes: int) -> None:
    results = _dummy_results(900, padding=30)

    for changed in ([], DUMMY_FILES[:1], DUMMY_FILES[:2], DUMMY_FILES):
        summary = SummaryRenderer(max_bytes=max_bytes).render(results, changed)
        assert _byte_len(summary) <= max_bytes


def test_budget_counts_multibyte_characters() -> None:
    results = Results(
        Violation(
            severity=2,
            engine="regex",
            rule="NoEmoji",
            message="⚠️ " + "é" * 200,
            locations=(ViolationLocation(file="a.cls", start_line=index + 1),),
        )
        for index in range(200)
    )

    summary = SummaryRenderer(max_bytes=8192).render(results)

    assert _byte_len(summary) <= 8192
    assert _omitted(summary) > 0


def test_oversized_single_row_yields_empty_truncated_table() -> None:
    results = Results(
        [
            Violation(
                severity=1,
                engine="pmd",
                rule="Huge",
                message="z" * 10_000,
                locations=(ViolationLocation(file="a.cls"),),
            )
        ]
    )

    summary = SummaryRenderer(max_bytes=4096).render(results)

    assert _byte_len(summary) <= 4096
    assert "### Violations" in summary
    assert _omitted(summary) == 1


def test_render_is_idempotent(sample_results: Results) -> None:
    renderer = SummaryRenderer()
    changed = {"force-app/main/default/classes/SimpleAccount.cls"}

    assert renderer.render(sample_results, changed) == renderer.render(sample_results, changed)


def test_cells_escape_pipes_and_newlines() -> None:
    results = Results(
        [
            Violation(
                severity=4,
                engine="pmd",
                rule="a|b",
                message="line one\nline | two\r\n",
                locations=(
                    ViolationLocation(),
                    ViolationLocation(file="x.cls", start_line=2, start_column=1),
                ),
            )
        ]
    )

    summary = render_summary(results)

    assert "| 4 (Low) | pmd | a\\|b | `x.cls:2:1` | line one<br>line \\| two |" in summary


def test_location_cell_falls_back_to_dash() -> None:
    results = Results(
        [Violation(severity=5, engine="pmd", rule="R", message="m", locations=(ViolationLocation(),))]
    )

    assert "| 5 (Info) | pmd | R | - | m |" in render_summary(results)


def test_custom_title() -> None:
    summary = SummaryRenderer(title="Nightly scan").render(Results())

    assert summary.startswith("## Nightly scan\n")


def test_budget_too_small_is_rejected() -> None:
    with pytest.raises(ValueError):
        SummaryRenderer(max_bytes=TRUNCATION_RESERVE_BYTES)


def test_second_table_without_room_for_its_heading_is_reported() -> None:
    violations = [
        Violation(
            severity=3,
            engine="eslint",
            rule="no-console",
            message=f"console call {index}",
            locations=(ViolationLocation(file="a.ts", start_line=index + 1),),
        )
        for index in range(30)
    ]
    violations.append(
        Violation(
            severity=3,
            engine="eslint",
            rule="no-console",
            message="console call in b",
            locations=(ViolationLocation(file="b.ts", start_line=1),),
        )
    )
    results = Results(violations)
    full = SummaryRenderer().render(results, ["a.ts"])
    first_table = full[: full.index("\n" + OTHER_CAPTION)]
    budget = _byte_len(first_table) + TRUNCATION_RESERVE_BYTES + 10

    summary = SummaryRenderer(max_bytes=budget).render(results, ["a.ts"])

    assert _byte_len(summary) <= budget
    assert summary.startswith(first_table)
    assert OTHER_CAPTION not in summary
    assert _omitted(summary) == 1
    assert 'from the "Other violations" table were left out' in summary


def test_rule_link_target_is_encoded() -> None:
    results = Results(
        [
            Violation(
                severity=2,
                engine="pmd",
                rule="R",
                message="m",
                locations=(ViolationLocation(file="x.cls"),),
                resources=("https://example.com/rules (v1)|x\ny",),
            )
        ]
    )

    summary = render_summary(results)

    assert "| 2 (High) | pmd | [R](https://example.com/rules%20%28v1%29%7Cx%0Ay) | `x.cls` | m |" in summary
