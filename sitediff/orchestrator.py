"""Pipeline orchestrator: coordinates the matrix, capture, compare and report stages."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path

from sitediff.comparator.baseline_registry import VisualBaselineRegistryManager
from sitediff.comparator.comparator import Comparator
from sitediff.executor.executor import Executor
from sitediff.models.comparison import RunResult
from sitediff.models.config import SiteDiffConfig
from sitediff.persistence.snapshot_store import SnapshotStore
from sitediff.planner.target_matrix import (
    build_capture_tasks,
    filter_pages,
    filter_viewports,
    select_environments,
)
from sitediff.reporter.reporter import Reporter

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates one comparison run."""

    def __init__(
        self,
        config: SiteDiffConfig,
        candidate: str | None = None,
        strategy: str | None = None,
        pages: list[str] | None = None,
        viewports: list[str] | None = None,
        update_baselines: bool = False,
    ):
        self.config = config
        self.strategy = strategy or config.strategy
        self.reference_env, self.candidate_env = select_environments(config, candidate)
        self.pages = filter_pages(config.pages, pages)
        self.viewports = filter_viewports(config.viewports, viewports)
        self.update_baselines = update_baselines
        self.output_dir = Path(config.output_dir)

        prefix = config.file_prefix or ("perceptual" if self.strategy == "perceptual" else "")
        self.store = SnapshotStore(self.output_dir, prefix=prefix)
        self.baseline_manager = VisualBaselineRegistryManager(
            baselines_dir=Path(config.baselines_dir),
            base_url=self.reference_env.base_url,
        )

    def run(self) -> dict:
        """Execute the complete capture -> compare -> report pipeline."""
        return asyncio.run(self._run())

    async def _run(self) -> dict:
        start = time.time()
        run_id = f"run_{uuid.uuid4().hex[:8]}"
        logger.info("=== Comparing %s against %s (%s) ===",
                    self.candidate_env.base_url, self.reference_env.base_url, self.strategy)

        # Stage 1: Matrix
        tasks = build_capture_tasks(self.pages, self.viewports, (self.reference_env, self.candidate_env))
        logger.info("--- Stage 1: %d pages x %d viewports = %d captures ---",
                    len(self.pages), len(self.viewports), len(tasks))
        self.store.ensure_output_dir()

        # Stage 2: Capture + compare
        baseline_registry = None
        if self.strategy == "perceptual":
            baseline_registry = self.baseline_manager.load()
        comparator = Comparator(
            self.config,
            strategy=self.strategy,
            baseline_manager=self.baseline_manager if baseline_registry is not None else None,
            baseline_registry=baseline_registry,
            run_id=run_id,
            update_baselines=self.update_baselines,
        )
        executor = Executor(self.config, self.store, comparator, run_id=run_id)
        stage_start = time.time()
        run_result = await executor.execute(tasks, self.reference_env, self.candidate_env)
        if baseline_registry is not None:
            self.baseline_manager.save(baseline_registry)
        logger.info("--- Stage 2 complete in %.1fs ---", time.time() - stage_start)

        # Stage 3: Report
        reports = self._report(run_result)

        duration = time.time() - start
        logger.info("=== Run complete in %.1fs ===", duration)
        return self._summary(run_result, reports, duration)

    def _report(self, run_result: RunResult) -> dict[str, str]:
        reporter = Reporter(self.config)
        previous_run = reporter.load_previous_run(self.output_dir)
        return reporter.generate_reports(run_result, self.output_dir, previous_run=previous_run)

    def rebuild_report(self) -> dict:
        """Regenerate the reports from result records already on disk."""
        results = self.store.load_results()
        if not results:
            raise FileNotFoundError(f"No result records found in {self.output_dir}. Run 'sitediff run' first.")
        now = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        first = results[0]
        run_result = RunResult.from_comparisons(
            results,
            pages_tested=len({r.page_path for r in results}),
            device_types=len({r.viewport for r in results}),
            run_id="rebuild",
            started_at=min((r.timestamp for r in results), default=now),
            completed_at=now,
            environment_a=first.environment_a,
            environment_b=first.environment_b,
            base_url_a=self._base_url(first.environment_a),
            base_url_b=self._base_url(first.environment_b),
            strategy=first.strategy,
        )
        reports = Reporter(self.config).generate_reports(run_result, self.output_dir)
        return self._summary(run_result, reports, 0.0)

    def _base_url(self, env_name: str) -> str:
        try:
            return self.config.environment(env_name).base_url
        except ValueError:
            return ""

    def _summary(self, run_result: RunResult, reports: dict[str, str], duration: float) -> dict:
        completed = sum(1 for c in run_result.comparisons if c.completed)
        return {
            "run_id": run_result.run_id,
            "duration": round(duration, 2),
            "strategy": run_result.strategy,
            "environments": (run_result.environment_a, run_result.environment_b),
            "results": {
                "pages": run_result.pages_tested,
                "device_types": run_result.device_types,
                "total": completed,
                "identical": run_result.identical_count,
                "different": run_result.different_count,
                "errors": run_result.error_count,
                "baselines": run_result.baseline_count,
            },
            "reports": reports,
        }
