"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from sitediff.models.capture import CaptureTask, PageTarget, Snapshot
from sitediff.models.comparison import ComparisonResult, RunResult
from sitediff.models.config import (
    EnvironmentConfig,
    NormalizationRule,
    SiteDiffConfig,
    ViewportConfig,
)
from sitediff.url_utils import page_id_from_path


# ============================================================================
# Helpers
# ============================================================================


def make_png(width: int = 40, height: int = 30, color=(255, 255, 255), changed_pixels: int = 0,
             changed_color=(0, 0, 0)) -> bytes:
    """Solid PNG, optionally with the first ``changed_pixels`` pixels recolored."""
    img = Image.new("RGB", (width, height), color)
    for i in range(changed_pixels):
        img.putpixel((i % width, i // width), changed_color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_task(path="/", viewport: ViewportConfig | None = None, env: EnvironmentConfig | None = None) -> CaptureTask:
    return CaptureTask(
        page=PageTarget(path=path),
        viewport=viewport or ViewportConfig(name="desktop", width=1920, height=1080),
        environment=env or EnvironmentConfig(name="production", base_url="https://example.com"),
    )


def make_snapshot(task: CaptureTask, image: bytes | None = None) -> Snapshot:
    return Snapshot(task=task, image_bytes=image or make_png(), captured_at="2025-01-01T00:00:00Z")


def make_comparison(
    page_path="/",
    viewport="desktop",
    status="identical",
    **kwargs,
) -> ComparisonResult:
    fields = {
        "page_path": page_path,
        "page_id": page_id_from_path(page_path),
        "viewport": viewport,
        "viewport_width": 1920,
        "viewport_height": 1080,
        "environment_a": "production",
        "environment_b": "development",
        "url_a": f"https://example.com{page_path}",
        "url_b": f"https://dev.example.com{page_path}",
        "status": status,
        "identical": {"identical": True, "different": False}.get(status),
        "timestamp": "2025-01-01T00:00:00Z",
    }
    fields.update(kwargs)
    return ComparisonResult(**fields)


def make_run_result(comparisons=None, run_id="run_abc123") -> RunResult:
    comparisons = comparisons if comparisons is not None else [make_comparison()]
    return RunResult.from_comparisons(
        comparisons,
        pages_tested=len({c.page_path for c in comparisons}),
        device_types=len({c.viewport for c in comparisons}),
        run_id=run_id,
        started_at="2025-01-01T00:00:00Z",
        completed_at="2025-01-01T00:05:00Z",
        environment_a="production",
        environment_b="development",
        base_url_a="https://example.com",
        base_url_b="https://dev.example.com",
    )


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def production() -> EnvironmentConfig:
    return EnvironmentConfig(name="production", base_url="https://example.com")


@pytest.fixture
def development() -> EnvironmentConfig:
    return EnvironmentConfig(name="development", base_url="https://dev.example.com")


@pytest.fixture
def desktop() -> ViewportConfig:
    return ViewportConfig(name="desktop", width=1920, height=1080)


@pytest.fixture
def mobile() -> ViewportConfig:
    return ViewportConfig(name="mobile", width=375, height=667)


@pytest.fixture
def site_config(production, development, desktop, mobile, tmp_path: Path) -> SiteDiffConfig:
    """Two environments, two pages, two viewports, fast settle."""
    return SiteDiffConfig(
        environments=[production, development],
        pages=["/", "/communities/eagle/"],
        viewports=[desktop, mobile],
        settle_delay_ms=0,
        normalization_rules=[
            NormalizationRule(selector=".cky-consent-container", action="hide"),
            NormalizationRule(selector="form", action="fill_required", value="test"),
        ],
        output_dir=str(tmp_path / "screenshots"),
        baselines_dir=str(tmp_path / "baselines"),
    )


@pytest.fixture
def temp_config_file(site_config: SiteDiffConfig, tmp_path: Path) -> Path:
    config_file = tmp_path / "sitediff.json"
    site_config.save(config_file)
    return config_file


# ============================================================================
# Playwright Fixtures
# ============================================================================


@pytest.fixture
def mock_page():
    """AsyncMock page that navigates, normalizes and screenshots successfully."""
    page = AsyncMock()
    page.goto = AsyncMock(return_value=Mock(status=200))
    page.evaluate = AsyncMock(return_value=1)
    page.screenshot = AsyncMock(return_value=make_png())
    return page
