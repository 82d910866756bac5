"""Deterministic file names for screenshots and result records."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from sitediff.errors import ReportWriteFailure
from sitediff.models.capture import CaptureTask, Snapshot
from sitediff.models.comparison import ComparisonResult

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Writes snapshots and comparison records under one output directory.

    File names are derived from the task identity, so two tasks of the same
    run never collide and repeated runs overwrite the previous files.
    """

    def __init__(self, output_dir: Path, prefix: str = ""):
        self.output_dir = output_dir
        self.prefix = prefix

    def _name(self, *parts: str) -> str:
        stem = "-".join(parts)
        return f"{self.prefix}-{stem}" if self.prefix else stem

    def ensure_output_dir(self) -> None:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ReportWriteFailure(f"Cannot create output directory {self.output_dir}: {e}") from e
        logger.debug("Output directory: %s", self.output_dir)

    def snapshot_path(self, task: CaptureTask) -> Path:
        return self.output_dir / (
            self._name(task.viewport.name, task.page.page_id, task.environment.name) + ".png"
        )

    def result_path(self, page_id: str, viewport_name: str) -> Path:
        return self.output_dir / (self._name(viewport_name, page_id, "result") + ".json")

    def diff_path(self, page_id: str, viewport_name: str) -> Path:
        return self.output_dir / (self._name(viewport_name, page_id, "diff") + ".png")

    def save_snapshot(self, snapshot: Snapshot) -> Path:
        path = self.snapshot_path(snapshot.task)
        path.write_bytes(snapshot.image_bytes)
        logger.info("Saved %s screenshot: %s", snapshot.task.environment.name, path)
        return path

    def save_result(self, result: ComparisonResult) -> Path:
        path = self.result_path(result.page_id, result.viewport)
        with open(path, "w") as f:
            json.dump(result.model_dump(), f, indent=2)
        return path

    def load_results(self) -> list[ComparisonResult]:
        """Read back every result record written with this store's prefix."""
        results = []
        pattern = f"{self.prefix}-*-result.json" if self.prefix else "*-result.json"
        for path in sorted(self.output_dir.glob(pattern)):
            try:
                with open(path) as f:
                    result = ComparisonResult.model_validate(json.load(f))
            except Exception as e:
                logger.warning("Skipping unreadable result record %s: %s", path, e)
                continue
            # An unprefixed glob also matches records written with another prefix
            if self.result_path(result.page_id, result.viewport) == path:
                results.append(result)
        return results
