import json
from pathlib import Path

import pytest

from code_analyzer_action.adapters import (
    MalformedInputError,
    ResultsLoadError,
    ResultsLoader,
    ResultsNotFoundError,
    load_results,
)

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def _violation(**overrides):
    payload = {
        "rule": "ApexDoc",
        "engine": "pmd",
        "severity": 3,
        "message": "Missing ApexDoc comment",
        "locations": [{"file": "a.cls", "startLine": 1, "startColumn": 2}],
    }
    payload.update(overrides)
    return payload


def write_results(tmp_path: Path, data) -> Path:
    path = tmp_path / "results.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_load_sample_results():
    results = load_results(FIXTURES / "sample-results.json")

    assert results.total_count == 5
    assert (results.sev1_count, results.sev2_count, results.sev3_count) == (1, 1, 2)
    assert (results.sev4_count, results.sev5_count) == (0, 1)

    ordered = results.violations_by_severity()
    assert [v.rule for v in ordered] == [
        "ApexFlsViolation",
        "no-unused-vars",
        "ApexDoc",
        "AvoidDebugStatements",
        "MetadataApiVersion",
    ]

    fls = ordered[0]
    assert fls.primary_location.label == "force-app/main/default/classes/AccountService.cls:12:9"
    assert fls.tags == ("Security",)

    apex_doc = ordered[2]
    assert apex_doc.primary_location.end_column == 22
    assert apex_doc.resources[0].startswith("https://pmd.github.io/")


def test_primary_location_index_defaults_to_zero(tmp_path):
    data = _violation()
    path = write_results(tmp_path, {"violations": [data]})

    results = ResultsLoader().load(path)

    assert results.violations[0].primary_location_index == 0


def test_missing_file_raises_not_found(tmp_path):
    with pytest.raises(ResultsNotFoundError) as excinfo:
        load_results(tmp_path / "missing.json")

    assert "not found" in str(excinfo.value)
    assert isinstance(excinfo.value, ResultsLoadError)


def test_invalid_json_raises_malformed(tmp_path):
    path = tmp_path / "results.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(MalformedInputError) as excinfo:
        load_results(path)

    assert "Invalid JSON" in str(excinfo.value)


@pytest.mark.parametrize(
    "document, fragment",
    [
        ([], "must be an object"),
        ({}, "missing the 'violations' list"),
        ({"violations": {}}, "'violations' must be a list"),
        ({"violations": ["x"]}, "violations[0] must be an object"),
        ({"violations": [_violation(severity="3")]}, "severity must be an integer"),
        ({"violations": [_violation(severity=6)]}, "between 1 and 5"),
        ({"violations": [_violation(severity=0)]}, "between 1 and 5"),
        ({"violations": [_violation(engine=None)]}, "engine must be a string"),
        ({"violations": [_violation(locations=[])]}, "non-empty list"),
        ({"violations": [_violation(primaryLocationIndex=2)]}, "primaryLocationIndex"),
        (
            {"violations": [_violation(locations=[{"file": 4}])]},
            "locations[0].file must be a string",
        ),
        (
            {"violations": [_violation(locations=[{"file": "a", "startLine": "1"}])]},
            "startLine must be an integer",
        ),
        ({"violations": [_violation(tags="Security")]}, "tags must be a list of strings"),
    ],
)
def test_schema_errors_raise_malformed(tmp_path, document, fragment):
    path = write_results(tmp_path, document)

    with pytest.raises(MalformedInputError) as excinfo:
        load_results(path)

    assert fragment in str(excinfo.value)
    assert str(path) in str(excinfo.value)


def test_location_without_file_is_allowed(tmp_path):
    path = write_results(
        tmp_path, {"violations": [_violation(locations=[{"startLine": 1}])]}
    )

    results = load_results(path)

    location = results.violations[0].primary_location
    assert location.file is None
    assert location.label == ""


def test_load_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "results.json"
    path.write_bytes(b'{"violations": [], "x": "\xff"}')

    with pytest.raises(MalformedInputError) as excinfo:
        load_results(path)

    assert "Failed to read results file" in str(excinfo.value)
