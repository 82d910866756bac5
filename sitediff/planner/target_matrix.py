"""Expands configuration into the ordered list of capture tasks."""

from __future__ import annotations

import logging

from sitediff.models.capture import CaptureTask, PageTarget
from sitediff.models.config import EnvironmentConfig, SiteDiffConfig, ViewportConfig

logger = logging.getLogger(__name__)


def select_environments(
    config: SiteDiffConfig, candidate: str | None = None,
) -> tuple[EnvironmentConfig, EnvironmentConfig]:
    """Return the (reference, candidate) environment pair for this run.

    The reference defaults to the first configured environment and the
    candidate to the first one that isn't the reference.
    """
    reference = config.environment(config.reference_environment or config.environments[0].name)
    candidate_name = candidate or config.candidate_environment
    if candidate_name:
        other = config.environment(candidate_name)
    else:
        other = next(e for e in config.environments if e.name != reference.name)
    if other.name == reference.name:
        raise ValueError(f"Cannot compare environment '{reference.name}' with itself")
    return reference, other


def filter_pages(pages: list[str], only: list[str] | None) -> list[str]:
    if not only:
        return list(pages)
    unknown = [p for p in only if p not in pages]
    if unknown:
        raise ValueError(f"Pages not in config: {', '.join(unknown)}")
    return [p for p in pages if p in only]


def filter_viewports(viewports: list[ViewportConfig], only: list[str] | None) -> list[ViewportConfig]:
    if not only:
        return list(viewports)
    names = {vp.name for vp in viewports}
    unknown = [n for n in only if n not in names]
    if unknown:
        raise ValueError(f"Viewports not in config: {', '.join(unknown)}")
    return [vp for vp in viewports if vp.name in only]


def build_capture_tasks(
    pages: list[str],
    viewports: list[ViewportConfig],
    environments: list[EnvironmentConfig] | tuple[EnvironmentConfig, ...],
) -> list[CaptureTask]:
    """Cross product of pages x viewports x environments, page-major."""
    for path in pages:
        if not path or not path.startswith("/"):
            raise ValueError(f"Page path must start with '/': {path!r}")
    tasks = [
        CaptureTask(page=PageTarget(path=path), viewport=vp, environment=env)
        for path in pages
        for vp in viewports
        for env in environments
    ]
    logger.debug("Built %d capture tasks (%d pages x %d viewports x %d environments)",
                 len(tasks), len(pages), len(viewports), len(environments))
    return tasks
