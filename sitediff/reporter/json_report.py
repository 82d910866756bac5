"""JSON report output."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from sitediff.models.comparison import RunResult
from .regression_detector import Regression


def generate_json_report(
    run_result: RunResult,
    regressions: list[Regression],
    output_path: Path,
) -> None:
    """Write a machine-readable JSON summary of the run."""
    report = run_result.model_dump()
    report["regressions"] = [asdict(r) for r in regressions]

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)
