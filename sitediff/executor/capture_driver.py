"""Navigate, settle, normalize and screenshot one capture task."""

from __future__ import annotations

import logging
import time

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from sitediff.errors import CaptureFailure, NavigationTimeout
from sitediff.models.capture import CaptureTask, Snapshot
from sitediff.models.config import SiteDiffConfig

from .normalizer import apply_normalization_rules

logger = logging.getLogger(__name__)


class CaptureDriver:
    """Runs the capture stages for a single task on a Playwright page.

    Stages are awaited in order and each raises its own error type:
    viewport -> navigate (NavigationTimeout) -> settle -> normalize
    (never fatal) -> screenshot (CaptureFailure).
    """

    def __init__(self, config: SiteDiffConfig):
        self.config = config

    async def capture(self, page: Page, task: CaptureTask) -> Snapshot:
        await self._set_viewport(page, task)
        await self._navigate(page, task)
        await page.wait_for_timeout(self.config.settle_delay_ms)
        await apply_normalization_rules(page, self.config.normalization_rules)
        image = await self._screenshot(page, task)
        snapshot = Snapshot(
            task=task,
            image_bytes=image,
            captured_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
        )
        logger.debug("  Captured %s: %dx%d", task.key, *snapshot.size)
        return snapshot

    async def _set_viewport(self, page: Page, task: CaptureTask) -> None:
        await page.set_viewport_size({"width": task.viewport.width, "height": task.viewport.height})

    async def _navigate(self, page: Page, task: CaptureTask) -> None:
        timeout = self.config.navigation_timeout_ms
        logger.debug("  Navigating to %s (timeout %dms)", task.url, timeout)
        try:
            response = await page.goto(task.url, wait_until="networkidle", timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(
                f"{task.url} did not reach network idle within {timeout}ms"
            ) from e
        except PlaywrightError as e:
            raise NavigationTimeout(f"Navigation to {task.url} failed: {e.message}") from e

        if response is not None and response.status >= 400:
            logger.warning("%s returned HTTP %d, capturing anyway", task.url, response.status)

    async def _screenshot(self, page: Page, task: CaptureTask) -> bytes:
        try:
            return await page.screenshot(full_page=True, animations="disabled", type="png")
        except PlaywrightError as e:
            raise CaptureFailure(f"Screenshot of {task.url} failed: {e.message}") from e
