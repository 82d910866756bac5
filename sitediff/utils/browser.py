"""Browser launch and isolated, deterministic contexts."""

from __future__ import annotations

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)


async def launch_browser(playwright: Playwright, engine: str = "chromium", headless: bool = True) -> Browser:
    """Launch the configured browser engine."""
    browser_type = getattr(playwright, engine, None)
    if browser_type is None:
        raise ValueError(f"Unknown browser engine: {engine}")
    return await browser_type.launch(headless=headless)


async def create_context(
    browser: Browser,
    viewport: dict,
    user_agent: Optional[str] = None,
) -> BrowserContext:
    """Create a fresh browser context for a single capture.

    Locale, timezone and motion preference are pinned so both environments
    render under the same conditions.
    """
    return await browser.new_context(
        viewport=viewport,
        user_agent=user_agent or DEFAULT_USER_AGENT,
        locale="en-US",
        timezone_id="America/New_York",
        reduced_motion="reduce",
        extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
    )
