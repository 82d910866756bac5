"""Capture executor: runs every task in an isolated context, then pairs and compares."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid

from playwright.async_api import Browser, async_playwright

from sitediff.comparator.comparator import Comparator, errored_result
from sitediff.errors import CaptureFailure, ComparisonSkipped, NavigationTimeout
from sitediff.models.capture import CaptureError, CaptureTask, Snapshot
from sitediff.models.comparison import ComparisonResult, RunResult
from sitediff.models.config import EnvironmentConfig, SiteDiffConfig
from sitediff.persistence.snapshot_store import SnapshotStore
from sitediff.utils.browser import create_context, launch_browser

from .capture_driver import CaptureDriver

logger = logging.getLogger(__name__)

CaptureOutcome = Snapshot | CaptureError


class Executor:
    """Runs a capture matrix against a live site using Playwright."""

    def __init__(
        self,
        config: SiteDiffConfig,
        store: SnapshotStore,
        comparator: Comparator,
        run_id: str | None = None,
    ):
        self.config = config
        self.store = store
        self.comparator = comparator
        self.run_id = run_id or f"run_{uuid.uuid4().hex[:8]}"
        self.driver = CaptureDriver(config)

    async def execute(
        self,
        tasks: list[CaptureTask],
        reference: EnvironmentConfig,
        candidate: EnvironmentConfig,
    ) -> RunResult:
        """Capture all tasks, then compare each (page, viewport) pair.

        Every task gets its own browser context; concurrency is bounded by
        ``max_parallel_contexts``. A failed task never aborts its siblings.
        """
        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        start_time = time.time()
        logger.info("Starting %s: %d captures (%s vs %s)",
                    self.run_id, len(tasks), reference.name, candidate.name)

        outcomes = await self.capture_all(tasks)
        comparisons = self.compare_pairs(tasks, outcomes, reference, candidate)

        pages = {t.page.path for t in tasks}
        viewports = {t.viewport.name for t in tasks}
        run_result = RunResult.from_comparisons(
            comparisons,
            pages_tested=len(pages),
            device_types=len(viewports),
            run_id=self.run_id,
            started_at=started_at,
            completed_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            environment_a=reference.name,
            environment_b=candidate.name,
            base_url_a=reference.base_url,
            base_url_b=candidate.base_url,
            strategy=self.comparator.strategy,
            duration_seconds=round(time.time() - start_time, 2),
        )
        logger.info(
            "Execution complete: %d identical, %d different, %d errors, %d baselines (%.1fs)",
            run_result.identical_count, run_result.different_count,
            run_result.error_count, run_result.baseline_count, run_result.duration_seconds,
        )
        return run_result

    async def capture_all(self, tasks: list[CaptureTask]) -> dict[str, CaptureOutcome]:
        """Capture every task; returns task key -> Snapshot or CaptureError."""
        async with async_playwright() as p:
            logger.debug("Launching %s...", self.config.browser)
            browser = await launch_browser(p, self.config.browser, headless=self.config.headless)
            semaphore = asyncio.Semaphore(self.config.max_parallel_contexts)

            async def _run_one(index: int, task: CaptureTask) -> CaptureOutcome:
                async with semaphore:
                    logger.info("Capturing [%d/%d]: %s %s (%dx%d)",
                                index + 1, len(tasks), task.environment.name, task.url,
                                task.viewport.width, task.viewport.height)
                    return await self.capture_one(browser, task)

            try:
                outcomes = await asyncio.gather(*(_run_one(i, t) for i, t in enumerate(tasks)))
            finally:
                await browser.close()

        return {task.key: outcome for task, outcome in zip(tasks, outcomes)}

    async def capture_one(self, browser: Browser, task: CaptureTask) -> CaptureOutcome:
        """Capture one task in its own context. Never raises."""
        context = None
        try:
            context = await create_context(
                browser,
                viewport={"width": task.viewport.width, "height": task.viewport.height},
                user_agent=self.config.user_agent,
            )
            page = await context.new_page()
            snapshot = await self.driver.capture(page, task)
            logger.info("[OK] %s", task.key)
            return snapshot
        except (NavigationTimeout, CaptureFailure) as e:
            logger.error("[%s] %s: %s", e.kind.upper(), task.key, e)
            return CaptureError(
                task=task, kind=e.kind, message=str(e),
                occurred_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            )
        except Exception as e:
            logger.error("Capture %s crashed: %s", task.key, e)
            return CaptureError(
                task=task, kind="capture_failure", message=str(e),
                occurred_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            )
        finally:
            if context is not None:
                try:
                    await context.close()
                except Exception as e:
                    logger.warning("Could not close context for %s: %s", task.key, e)

    def compare_pairs(
        self,
        tasks: list[CaptureTask],
        outcomes: dict[str, CaptureOutcome],
        reference: EnvironmentConfig,
        candidate: EnvironmentConfig,
    ) -> list[ComparisonResult]:
        """Pair reference/candidate outcomes per (page, viewport), in task order."""
        pairs: dict[tuple[str, str], dict[str, CaptureTask]] = {}
        for task in tasks:
            pairs.setdefault(task.pair_key, {})[task.environment.name] = task

        results = []
        for pair in pairs.values():
            task_a = pair[reference.name]
            task_b = pair[candidate.name]
            results.append(self._compare_pair(task_a, task_b, outcomes))
        return results

    def _compare_pair(
        self,
        task_a: CaptureTask,
        task_b: CaptureTask,
        outcomes: dict[str, CaptureOutcome],
    ) -> ComparisonResult:
        outcome_a = outcomes.get(task_a.key)
        outcome_b = outcomes.get(task_b.key)
        snapshot_a = outcome_a if isinstance(outcome_a, Snapshot) else None
        snapshot_b = outcome_b if isinstance(outcome_b, Snapshot) else None

        path_a = str(self.store.save_snapshot(snapshot_a)) if snapshot_a else None
        path_b = str(self.store.save_snapshot(snapshot_b)) if snapshot_b else None

        try:
            result = self.comparator.compare(
                snapshot_a, snapshot_b, path_a, path_b,
                diff_path=self.store.diff_path(task_a.page.page_id, task_a.viewport.name),
            )
        except ComparisonSkipped:
            errors = [o for o in (outcome_a, outcome_b) if isinstance(o, CaptureError)]
            result = errored_result(task_a, task_b, errors, strategy=self.comparator.strategy)
            result.snapshot_path_a = path_a
            result.snapshot_path_b = path_b

        self.store.save_result(result)
        label = f"{task_a.viewport.name} - {task_a.page.page_id}"
        match result.status:
            case "identical":
                logger.info("%s: Screenshots are identical", label)
            case "different":
                logger.warning("%s: Screenshots differ", label)
            case "baseline_created":
                logger.info("%s: Baseline stored from %s", label, task_a.environment.name)
            case _:
                logger.error("%s: Comparison skipped (%s)", label, result.error_kind)
        return result
