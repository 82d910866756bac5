"""Comparison result data structures produced by the executor."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ComparisonResult(BaseModel):
    """Outcome for one (page, viewport) pair across two environments."""

    page_path: str
    page_id: str
    viewport: str
    viewport_width: int
    viewport_height: int
    environment_a: str
    environment_b: str
    url_a: str
    url_b: str
    strategy: str = "bytes"
    status: Literal["identical", "different", "error", "baseline_created"]
    identical: Optional[bool] = None
    snapshot_path_a: Optional[str] = None
    snapshot_path_b: Optional[str] = None
    diff_pixels: Optional[int] = None
    diff_image_path: Optional[str] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    timestamp: str = ""

    @property
    def completed(self) -> bool:
        return self.status in ("identical", "different")


class RunResult(BaseModel):
    run_id: str
    started_at: str
    completed_at: str
    environment_a: str
    environment_b: str
    base_url_a: str
    base_url_b: str
    strategy: str = "bytes"
    pages_tested: int = 0
    device_types: int = 0
    identical_count: int = 0
    different_count: int = 0
    error_count: int = 0
    baseline_count: int = 0
    duration_seconds: float = 0.0
    comparisons: list[ComparisonResult] = Field(default_factory=list)

    @classmethod
    def from_comparisons(
        cls,
        comparisons: list[ComparisonResult],
        *,
        pages_tested: int,
        device_types: int,
        **kwargs,
    ) -> "RunResult":
        """Build a RunResult, deriving every counter from the comparisons."""
        return cls(
            pages_tested=pages_tested,
            device_types=device_types,
            identical_count=sum(1 for c in comparisons if c.status == "identical"),
            different_count=sum(1 for c in comparisons if c.status == "different"),
            error_count=sum(1 for c in comparisons if c.status == "error"),
            baseline_count=sum(1 for c in comparisons if c.status == "baseline_created"),
            comparisons=comparisons,
            **kwargs,
        )
