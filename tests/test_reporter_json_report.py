"""Tests for the JSON report."""

import json
from pathlib import Path

from conftest import make_comparison, make_run_result
from sitediff.reporter.json_report import generate_json_report
from sitediff.reporter.regression_detector import Regression


class TestGenerateJsonReport:
    def test_contains_counts_and_comparisons(self, tmp_path: Path):
        run = make_run_result([
            make_comparison("/", "desktop"),
            make_comparison("/", "mobile", "different"),
            make_comparison("/about/", "desktop", "error", error_kind="navigation_timeout"),
        ])
        path = tmp_path / "report.json"
        generate_json_report(run, [], path)

        data = json.loads(path.read_text())
        assert data["identical_count"] == 1
        assert data["different_count"] == 1
        assert data["error_count"] == 1
        assert data["pages_tested"] == 2
        assert len(data["comparisons"]) == 3
        assert data["comparisons"][2]["error_kind"] == "navigation_timeout"
        assert data["regressions"] == []

    def test_serializes_regressions(self, tmp_path: Path):
        path = tmp_path / "report.json"
        regression = Regression("/", "desktop", "identical", "different", diff_pixels=42)
        generate_json_report(make_run_result(), [regression], path)

        data = json.loads(path.read_text())
        assert data["regressions"] == [{
            "page_path": "/",
            "viewport": "desktop",
            "previous_status": "identical",
            "current_status": "different",
            "diff_pixels": 42,
        }]
