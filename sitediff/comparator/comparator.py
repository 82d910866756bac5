"""Classifies a pair of snapshots as identical or different."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from sitediff.comparator.baseline_registry import VisualBaselineRegistryManager
from sitediff.comparator.pixel_diff import diff_images
from sitediff.errors import ComparisonSkipped
from sitediff.models.capture import CaptureError, CaptureTask, Snapshot
from sitediff.models.comparison import ComparisonResult
from sitediff.models.config import SiteDiffConfig
from sitediff.models.visual_baseline import VisualBaselineRegistry

logger = logging.getLogger(__name__)


def _base_fields(task_a: CaptureTask, task_b: CaptureTask, strategy: str) -> dict:
    return {
        "page_path": task_a.page.path,
        "page_id": task_a.page.page_id,
        "viewport": task_a.viewport.name,
        "viewport_width": task_a.viewport.width,
        "viewport_height": task_a.viewport.height,
        "environment_a": task_a.environment.name,
        "environment_b": task_b.environment.name,
        "url_a": task_a.url,
        "url_b": task_b.url,
        "strategy": strategy,
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ"),
    }


def errored_result(
    task_a: CaptureTask,
    task_b: CaptureTask,
    errors: list[CaptureError],
    strategy: str = "bytes",
) -> ComparisonResult:
    """Result for a pair whose comparison was skipped because a capture failed."""
    kinds = sorted({e.kind for e in errors}) or ["comparison_skipped"]
    message = "; ".join(f"{e.task.environment.name}: {e.message}" for e in errors)
    return ComparisonResult(
        **_base_fields(task_a, task_b, strategy),
        status="error",
        identical=None,
        error_kind=",".join(kinds),
        error_message=message or "Snapshot missing",
    )


class Comparator:
    """Compares two snapshots with the configured strategy.

    ``bytes`` is exact equality with zero tolerance. ``perceptual`` compares
    the second snapshot against a stored baseline for the same page and
    viewport; the first run for a key stores the baseline instead.
    """

    def __init__(
        self,
        config: SiteDiffConfig,
        strategy: str | None = None,
        baseline_manager: VisualBaselineRegistryManager | None = None,
        baseline_registry: VisualBaselineRegistry | None = None,
        run_id: str = "",
        update_baselines: bool = False,
    ):
        self.config = config
        self.strategy = strategy or config.strategy
        self.baseline_manager = baseline_manager
        self.baseline_registry = baseline_registry
        self.run_id = run_id
        self.update_baselines = update_baselines
        if self.strategy == "perceptual" and (baseline_manager is None or baseline_registry is None):
            raise ValueError("Perceptual comparison requires a baseline registry")

    def compare(
        self,
        snapshot_a: Snapshot | None,
        snapshot_b: Snapshot | None,
        snapshot_path_a: str | None = None,
        snapshot_path_b: str | None = None,
        diff_path: Path | None = None,
    ) -> ComparisonResult:
        if snapshot_a is None or snapshot_b is None:
            raise ComparisonSkipped("Cannot compare: one or both snapshots are missing")

        fields = _base_fields(snapshot_a.task, snapshot_b.task, self.strategy)
        fields["snapshot_path_a"] = snapshot_path_a
        fields["snapshot_path_b"] = snapshot_path_b

        match self.strategy:
            case "bytes":
                identical = snapshot_a.image_bytes == snapshot_b.image_bytes
                return ComparisonResult(
                    **fields,
                    status="identical" if identical else "different",
                    identical=identical,
                )
            case "perceptual":
                return self._compare_perceptual(snapshot_a, snapshot_b, fields, diff_path)
            case _:
                raise ValueError(f"Unknown comparison strategy: {self.strategy}")

    def _compare_perceptual(
        self,
        snapshot_a: Snapshot,
        snapshot_b: Snapshot,
        fields: dict,
        diff_path: Path | None,
    ) -> ComparisonResult:
        task = snapshot_a.task
        entry = None
        if not self.update_baselines:
            entry = self.baseline_manager.get_baseline(
                self.baseline_registry, task.page.page_id, task.viewport.name,
            )
        if entry is None:
            self.baseline_manager.store_baseline(self.baseline_registry, snapshot_a, self.run_id)
            return ComparisonResult(**fields, status="baseline_created", identical=None)

        baseline_path = self.baseline_manager.get_baseline_image_path(entry)
        result = diff_images(baseline_path, snapshot_b.image_bytes, self.config.perceptual_threshold)
        identical = result.diff_pixels <= self.config.max_diff_pixels
        logger.debug("  %s: %d differing pixels (max %d, threshold %.2f)",
                     task.pair_key, result.diff_pixels, self.config.max_diff_pixels,
                     self.config.perceptual_threshold)

        if not identical and diff_path is not None and result.diff_image is not None:
            diff_path.parent.mkdir(parents=True, exist_ok=True)
            result.diff_image.save(diff_path)
            fields["diff_image_path"] = str(diff_path)

        return ComparisonResult(
            **fields,
            status="identical" if identical else "different",
            identical=identical,
            diff_pixels=result.diff_pixels,
        )
