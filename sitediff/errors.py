"""Exception types for the capture/compare/report workflow."""

from __future__ import annotations


class SiteDiffError(Exception):
    """Base class for all workflow errors."""


class NavigationTimeout(SiteDiffError):
    """Navigation did not reach network idle in time, or failed outright."""

    kind = "navigation_timeout"


class CaptureFailure(SiteDiffError):
    """The browser could not produce a screenshot."""

    kind = "capture_failure"


class NormalizationFailure(SiteDiffError):
    """A normalization rule matched nothing or failed to apply. Never fatal."""

    kind = "normalization_failure"


class ComparisonSkipped(SiteDiffError):
    """One or both snapshots of a pair are missing."""

    kind = "comparison_skipped"


class ReportWriteFailure(SiteDiffError):
    """Output directory or report could not be written. Aborts the run."""

    kind = "report_write_failure"
