"""Caller-side glue: pick a cleaner, honour clean_hash, describe the outcome."""

from __future__ import annotations

from nudelink.heuristic import strip_tracking
from nudelink.models import CleaningOptions, CleanResult
from nudelink.rule_engine import apply_rules
from nudelink.ruleset import Ruleset
from nudelink.statuses import CleanError, Engine
from nudelink.utils.urls import drop_fragment


def clean_url(
    url: str,
    options: CleaningOptions | None = None,
    ruleset: Ruleset | None = None,
    *,
    engine: Engine = Engine.HEURISTIC,
) -> CleanResult:
    """Clean *url* with the selected engine.

    With ``Engine.BOTH`` the heuristic output is fed through the rule engine;
    a missing ruleset then simply leaves the heuristic result as is.
    """
    options = options or CleaningOptions()
    source = url if options.clean_hash else drop_fragment(url)

    if engine == Engine.RULES:
        result = apply_rules(source, ruleset, options)
        return result if result.ok else result.model_copy(update={"url": url})

    result = strip_tracking(source, options)
    if not result.ok:
        return result.model_copy(update={"url": url})
    if engine == Engine.HEURISTIC:
        return result

    second = apply_rules(result.url, ruleset, options)
    if second.error == CleanError.RULES_UNAVAILABLE:
        return result
    return CleanResult(
        url=second.url,
        changed=result.changed or second.changed,
        unwrapped_from=result.unwrapped_from,
        error=second.error,
    )


def describe_result(result: CleanResult) -> str:
    """One-line status for display next to the cleaned URL."""
    if result.error == CleanError.INVALID_URL:
        return "Invalid URL"
    if result.error == CleanError.RULES_UNAVAILABLE:
        return "Rules not available"
    parts = []
    if result.unwrapped_from:
        parts.append(f"Unwrapped from {result.unwrapped_from}")
    parts.append("Cleaned ✓" if result.changed else "Already clean ✨")
    return " · ".join(parts)
