"""Rule-engine cleaner — interprets a compiled ClearURLs-style ruleset."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import unquote

from nudelink.models import CleaningOptions, CleanResult
from nudelink.ruleset import LiteralRule, Provider, Ruleset, RuleEntry, compile_ruleset
from nudelink.statuses import CleanError
from nudelink.utils.urls import InvalidURLError, URLValue, href, parse_url, serialize_url


def _decode_target(target: str) -> str:
    try:
        return unquote(target, errors="strict")
    except UnicodeDecodeError:
        return target


def _redirect(url: URLValue, providers: tuple[Provider, ...]) -> tuple[URLValue, str | None]:
    """Single forward sweep over providers; never revisits a provider.

    Returns the working URL and the name of the last provider that redirected.
    """
    unwrapped_from = None
    for provider in providers:
        if not provider.applies_to(href(url)):
            continue
        for pattern in provider.redirections:
            if pattern.groups < 1:
                continue
            m = pattern.search(href(url))
            target = m.group(1) if m else None
            if not target:
                continue
            try:
                url = parse_url(_decode_target(target))
            except InvalidURLError:
                continue
            unwrapped_from = provider.name
    return url, unwrapped_from


def _should_remove(key: str, literals: set[str], patterns: list, options: CleaningOptions) -> bool:
    lower = key.lower()
    if lower in options.keep_params:
        return False
    if lower in literals:
        return True
    # Rules are authored both as "name" and "name=" patterns
    return any(p.search(lower) or p.search(f"{lower}=") for p in patterns)


def _keeps_kept_params(before: URLValue, after: URLValue, options: CleaningOptions) -> bool:
    if not options.keep_params:
        return True
    lost = {k.lower() for k in before.keys()} - {k.lower() for k in after.keys()}
    return not (lost & options.keep_params)


def _strip_params(url: URLValue, provider: Provider, options: CleaningOptions) -> tuple[URLValue, bool]:
    entries: tuple[RuleEntry, ...] = provider.rules
    if not options.allow_referral:
        entries += provider.referral_marketing

    literals = {e.name for e in entries if isinstance(e, LiteralRule)}
    patterns = [e.pattern for e in entries if not isinstance(e, LiteralRule)]

    doomed = {k for k in url.keys() if _should_remove(k, literals, patterns, options)}
    if not doomed:
        return url, False
    return url.without_keys(doomed), True


def _apply_raw_rules(url: URLValue, provider: Provider, options: CleaningOptions) -> tuple[URLValue, bool]:
    changed = False
    for pattern in provider.raw_rules:
        before = href(url)
        after = pattern.sub("", before)
        if after == before:
            continue
        try:
            candidate = parse_url(after)
        except InvalidURLError:
            continue
        if not _keeps_kept_params(url, candidate, options):
            continue
        url = candidate
        changed = True
    return url, changed


def apply_rules(
    raw: str,
    ruleset: Ruleset | Mapping | None,
    options: CleaningOptions | None = None,
) -> CleanResult:
    """Clean *raw* with a ClearURLs-style ruleset.

    *ruleset* may be a compiled Ruleset or the raw rules document. Never
    raises: missing rules give ``RULES_UNAVAILABLE``, unparseable input gives
    ``INVALID_URL``; in both cases the input comes back untouched.
    """
    options = options or CleaningOptions()
    if not isinstance(ruleset, Ruleset):
        ruleset = compile_ruleset(ruleset)
    if ruleset is None:
        return CleanResult(url=raw, changed=False, error=CleanError.RULES_UNAVAILABLE)

    try:
        url = parse_url(raw)
    except InvalidURLError:
        return CleanResult(url=raw, changed=False, error=CleanError.INVALID_URL)

    url, unwrapped_from = _redirect(url, ruleset.providers)
    changed = unwrapped_from is not None

    for provider in ruleset.providers:
        if not provider.applies_to(href(url)):
            continue
        url, stripped = _strip_params(url, provider, options)
        url, rewritten = _apply_raw_rules(url, provider, options)
        changed = changed or stripped or rewritten

    return CleanResult(url=serialize_url(url), changed=changed, unwrapped_from=unwrapped_from)
