"""Report generation orchestration."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from sitediff.errors import ReportWriteFailure
from sitediff.models.comparison import RunResult
from sitediff.models.config import SiteDiffConfig

from .html_report import generate_html_report
from .json_report import generate_json_report
from .regression_detector import detect_regressions

logger = logging.getLogger(__name__)


class Reporter:
    """Generates reports from a completed run."""

    def __init__(self, config: SiteDiffConfig):
        self.config = config

    def report_path(self, output_dir: Path, fmt: str) -> Path:
        return output_dir / f"{self.config.report_name}.{fmt}"

    def load_previous_run(self, output_dir: Path) -> RunResult | None:
        """Load the JSON summary left by the previous run, if any."""
        path = self.report_path(output_dir, "json")
        if not path.exists():
            return None
        try:
            with open(path) as f:
                return RunResult.model_validate(json.load(f))
        except Exception as e:
            logger.debug("Could not load previous run from %s: %s", path, e)
            return None

    def generate_reports(
        self,
        run_result: RunResult,
        output_dir: Path,
        previous_run: RunResult | None = None,
    ) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        generated = {}

        regressions = []
        if previous_run and previous_run.run_id != run_result.run_id:
            logger.debug("Detecting regressions against %s...", previous_run.run_id)
            regressions = detect_regressions(previous_run, run_result)

        try:
            output_dir.mkdir(parents=True, exist_ok=True)

            if "html" in self.config.report_formats:
                path = self.report_path(output_dir, "html")
                generate_html_report(run_result, regressions, path, embed_images=self.config.embed_images)
                generated["html"] = str(path)
                logger.info("HTML report: %s", path)

            if "json" in self.config.report_formats:
                path = self.report_path(output_dir, "json")
                generate_json_report(run_result, regressions, path)
                generated["json"] = str(path)
                logger.info("JSON report: %s", path)
        except OSError as e:
            raise ReportWriteFailure(f"Cannot write report to {output_dir}: {e}") from e

        return generated
