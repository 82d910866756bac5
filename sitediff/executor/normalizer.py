"""Declarative DOM rules applied to a page before capture."""

from __future__ import annotations

import logging

from playwright.async_api import Page

from sitediff.errors import NormalizationFailure
from sitediff.models.config import NormalizationRule

logger = logging.getLogger(__name__)

# Returns the number of elements the rule touched.
_APPLY_RULE_SCRIPT = """(rule) => {
    const targets = Array.from(document.querySelectorAll(rule.selector));
    if (rule.action === 'hide') {
        for (const el of targets) {
            if (el instanceof HTMLElement) el.style.display = 'none';
        }
        return targets.length;
    }
    if (rule.action === 'remove') {
        for (const el of targets) el.remove();
        return targets.length;
    }
    if (rule.action === 'fill_required') {
        let filled = 0;
        for (const container of targets) {
            const fields = container.querySelectorAll('input[required], textarea[required]');
            for (const field of fields) {
                if (['hidden', 'submit', 'button', 'checkbox', 'radio', 'file'].includes(field.type)) continue;
                field.value = rule.value;
                field.dispatchEvent(new Event('input', { bubbles: true }));
                field.dispatchEvent(new Event('change', { bubbles: true }));
                filled++;
            }
        }
        return filled;
    }
    throw new Error('Unknown normalization action: ' + rule.action);
}"""


async def apply_rule(page: Page, rule: NormalizationRule) -> int:
    """Apply one rule. Raises NormalizationFailure if it matched nothing or errored."""
    try:
        count = await page.evaluate(_APPLY_RULE_SCRIPT, {
            "selector": rule.selector,
            "action": rule.action,
            "value": rule.value,
        })
    except Exception as e:
        raise NormalizationFailure(f"{rule.action} '{rule.selector}' failed: {e}") from e
    if not count:
        raise NormalizationFailure(f"{rule.action} '{rule.selector}' matched nothing")
    return int(count)


async def apply_normalization_rules(page: Page, rules: list[NormalizationRule]) -> dict[str, int]:
    """Apply every rule best-effort. Returns selector -> elements affected."""
    applied: dict[str, int] = {}
    for rule in rules:
        label = rule.description or rule.selector
        try:
            applied[rule.selector] = await apply_rule(page, rule)
            logger.debug("  Normalized %s: %d element(s)", label, applied[rule.selector])
        except NormalizationFailure as e:
            logger.debug("  Skipping normalization (%s): %s", label, e)
    return applied
