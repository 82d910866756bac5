"""HTML report generator. Produces a self-contained side-by-side comparison report."""

from __future__ import annotations

import base64
import html
import logging
import time
from pathlib import Path

from sitediff.models.comparison import ComparisonResult, RunResult

from .regression_detector import Regression

logger = logging.getLogger(__name__)

_BADGES = {
    "identical": ("identical", "&#10003; IDENTICAL"),
    "different": ("different", "&#9888; DIFFERENT"),
    "error": ("error", "&#10007; ERROR"),
    "baseline_created": ("baseline", "&#9679; BASELINE"),
}


def _embed_image(path: str) -> str:
    """Read an image file and return a base64 data URI, or empty string on failure."""
    try:
        p = Path(path)
        if not p.exists() or p.stat().st_size == 0:
            return ""
        with open(p, "rb") as f:
            data = base64.b64encode(f.read()).decode()
        suffix = p.suffix.lower()
        mime = "image/png" if suffix == ".png" else "image/jpeg" if suffix in (".jpg", ".jpeg") else "image/webp"
        return f"data:{mime};base64,{data}"
    except OSError:
        return ""


def _image_src(path: str | None, embed: bool) -> str:
    if not path:
        return ""
    if embed:
        return _embed_image(path)
    # Report sits in the same directory as the screenshots
    return Path(path).name


def group_by_page(comparisons: list[ComparisonResult]) -> list[tuple[str, list[ComparisonResult]]]:
    """Group results by page path, keeping first-seen page order and viewport order."""
    groups: dict[str, list[ComparisonResult]] = {}
    for c in comparisons:
        groups.setdefault(c.page_path, []).append(c)
    return list(groups.items())


def _build_screenshot(label: str, path: str | None, alt: str, embed: bool) -> str:
    src = _image_src(path, embed)
    if src:
        body = f'<img src="{html.escape(src)}" alt="{html.escape(alt)}" loading="lazy" onclick="this.classList.toggle(\'zoomed\')">'
    else:
        body = '<div class="no-image">No screenshot</div>'
    return f'''
              <div class="screenshot-container">
                <div class="env-label">{html.escape(label)}</div>
                {body}
              </div>'''


def _build_comparison_card(c: ComparisonResult, embed: bool) -> str:
    """Card for one viewport: badge, both screenshots, optional diff or error."""
    css_class, badge_text = _BADGES[c.status]
    card = f'''
        <div class="comparison-card">
          <div class="card-header">
            <div>
              <div class="device-title">{html.escape(c.viewport)}</div>
              <div class="viewport-info">{c.viewport_width} &times; {c.viewport_height}</div>
            </div>
            <div class="status {css_class}">{badge_text}</div>
          </div>'''

    if c.status == "error":
        card += f'<div class="error-banner"><strong>{html.escape(c.error_kind or "error")}:</strong> {html.escape(c.error_message or "")}</div>'
    elif c.diff_pixels is not None:
        card += f'<div class="diff-info">{c.diff_pixels} differing pixels</div>'

    card += '<div class="screenshots">'
    card += _build_screenshot(c.environment_a.title(), c.snapshot_path_a, f"{c.environment_a} {c.viewport}", embed)
    card += _build_screenshot(c.environment_b.title(), c.snapshot_path_b, f"{c.environment_b} {c.viewport}", embed)
    card += '</div>'

    if c.diff_image_path:
        card += '<div class="screenshots single">'
        card += _build_screenshot("Diff", c.diff_image_path, f"diff {c.viewport}", embed)
        card += '</div>'

    card += '</div>'
    return card


def _build_page_section(page_path: str, comparisons: list[ComparisonResult], embed: bool) -> str:
    first = comparisons[0]
    cards = "".join(_build_comparison_card(c, embed) for c in comparisons)
    return f'''
    <div class="page-section">
      <div class="page-header">
        <div class="page-title">{html.escape(page_path)}</div>
        <div class="page-urls">
          <div>{html.escape(first.environment_a)}: {html.escape(first.url_a)}</div>
          <div>{html.escape(first.environment_b)}: {html.escape(first.url_b)}</div>
        </div>
      </div>
      <div class="comparison-grid">{cards}
      </div>
    </div>'''


def build_report_html(
    run_result: RunResult,
    regressions: list[Regression],
    embed_images: bool = True,
    generated_at: str | None = None,
) -> str:
    """Render the report. Only ``generated_at`` varies between identical inputs."""
    generated_at = generated_at or time.strftime("%Y-%m-%d %H:%M:%S")

    reg_section = ""
    if regressions:
        items = ""
        for r in regressions:
            pixels = f" &mdash; {r.diff_pixels} pixels" if r.diff_pixels is not None else ""
            items += f"<li><strong>{html.escape(r.page_path)}</strong> ({html.escape(r.viewport)}): {r.previous_status} &rarr; {r.current_status}{pixels}</li>"
        reg_section = f'<div class="regressions"><h2>&#9888; Regressions ({len(regressions)})</h2><ul>{items}</ul></div>'

    sections = "".join(
        _build_page_section(page_path, comparisons, embed_images)
        for page_path, comparisons in group_by_page(run_result.comparisons)
    )

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Multi-Page Visual Comparison Report</title>
<style>
  :root {{ --identical: #27ae60; --different: #e74c3c; --error: #f97316; --baseline: #6366f1; --bg: #f5f5f5; --card: white; --text: #333; --muted: #7f8c8d; }}
  * {{ box-sizing: border-box; }}
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 20px; background: var(--bg); color: var(--text); }}
  .header {{ background: var(--card); padding: 30px; border-radius: 8px; margin-bottom: 30px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }}
  .header h1 {{ margin: 0 0 10px 0; color: #2c3e50; }}
  .header .meta {{ color: var(--muted); font-size: 14px; }}
  .page-section {{ margin-bottom: 40px; }}
  .page-header {{ background: #3498db; color: white; padding: 20px; border-radius: 8px; margin-bottom: 20px; }}
  .page-title {{ font-size: 24px; font-weight: 600; margin: 0 0 10px 0; }}
  .page-urls {{ font-size: 14px; opacity: 0.9; }}
  .comparison-grid {{ display: grid; gap: 20px; }}
  .comparison-card {{ background: var(--card); border-radius: 8px; overflow: hidden; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }}
  .card-header {{ background: #34495e; color: white; padding: 15px 20px; display: flex; justify-content: space-between; align-items: center; }}
  .device-title {{ font-size: 16px; font-weight: 600; text-transform: uppercase; }}
  .viewport-info {{ font-size: 12px; color: #95a5a6; }}
  .status {{ padding: 4px 12px; border-radius: 20px; font-size: 12px; font-weight: 600; color: white; }}
  .status.identical {{ background: var(--identical); }}
  .status.different {{ background: var(--different); }}
  .status.error {{ background: var(--error); }}
  .status.baseline {{ background: var(--baseline); }}
  .error-banner {{ background: #fef2f2; border-bottom: 1px solid #fecaca; color: #991b1b; padding: 10px 20px; font-size: 14px; }}
  .diff-info {{ padding: 8px 20px; font-size: 13px; color: var(--muted); border-bottom: 1px solid #eee; }}
  .screenshots {{ display: grid; grid-template-columns: 1fr 1fr; }}
  .screenshots.single {{ grid-template-columns: 1fr; }}
  .screenshot-container {{ padding: 15px; text-align: center; }}
  .env-label {{ font-weight: 600; margin-bottom: 10px; color: #2c3e50; font-size: 14px; }}
  .screenshot-container img {{ max-width: 100%; border: 1px solid #ddd; border-radius: 4px; box-shadow: 0 2px 8px rgba(0,0,0,0.1); cursor: pointer; }}
  .screenshot-container img.zoomed {{ position: fixed; top: 5%; left: 5%; width: 90%; height: 90%; max-width: none; object-fit: contain; z-index: 1000; background: rgba(0,0,0,0.85); border: none; padding: 1rem; }}
  .no-image {{ color: var(--muted); font-size: 13px; padding: 40px 0; border: 1px dashed #ddd; border-radius: 4px; }}
  .regressions {{ background: #fef2f2; border-radius: 8px; padding: 1.2rem; margin-bottom: 30px; border-left: 4px solid var(--different); }}
  .regressions h2 {{ color: var(--different); font-size: 1rem; margin: 0 0 0.4rem 0; }}
  .regressions ul {{ margin: 0 0 0 1.2rem; font-size: 0.9rem; }}
  .summary {{ background: var(--card); padding: 20px; border-radius: 8px; margin-top: 30px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }}
  .summary h2 {{ margin: 0 0 15px 0; color: #2c3e50; }}
  .summary-stats {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 15px; }}
  .stat-card {{ padding: 15px; background: #f8f9fa; border-radius: 6px; text-align: center; }}
  .stat-number {{ font-size: 24px; font-weight: bold; color: #2c3e50; }}
  .stat-label {{ font-size: 14px; color: var(--muted); }}
  @media (max-width: 768px) {{ .screenshots {{ grid-template-columns: 1fr; }} }}
</style>
</head>
<body>
  <div class="header">
    <h1>Multi-Page Visual Comparison Report</h1>
    <div class="meta">
      <div>Generated: {html.escape(generated_at)}</div>
      <div>Strategy: {html.escape(run_result.strategy)}</div>
      <div>{html.escape(run_result.environment_a.title())} Base: {html.escape(run_result.base_url_a)}</div>
      <div>{html.escape(run_result.environment_b.title())} Base: {html.escape(run_result.base_url_b)}</div>
      <div>Pages Tested: {run_result.pages_tested}</div>
    </div>
  </div>

  {reg_section}
  {sections}

  <div class="summary">
    <h2>Summary Statistics</h2>
    <div class="summary-stats">
      <div class="stat-card"><div class="stat-number">{run_result.pages_tested}</div><div class="stat-label">Pages Tested</div></div>
      <div class="stat-card"><div class="stat-number">{run_result.device_types}</div><div class="stat-label">Device Types</div></div>
      <div class="stat-card"><div class="stat-number">{run_result.identical_count}</div><div class="stat-label">Identical Comparisons</div></div>
      <div class="stat-card"><div class="stat-number">{run_result.different_count}</div><div class="stat-label">Different Comparisons</div></div>
      <div class="stat-card"><div class="stat-number">{run_result.error_count}</div><div class="stat-label">Errors</div></div>
      {f'<div class="stat-card"><div class="stat-number">{run_result.baseline_count}</div><div class="stat-label">Baselines Created</div></div>' if run_result.baseline_count else ''}
    </div>
  </div>
</body>
</html>'''


def generate_html_report(
    run_result: RunResult,
    regressions: list[Regression],
    output_path: Path,
    embed_images: bool = True,
) -> None:
    """Write the self-contained HTML report."""
    report_html = build_report_html(run_result, regressions, embed_images)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report_html)
