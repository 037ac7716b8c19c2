"""Heuristic cleaner — static blocklist plus three built-in redirector unwraps."""

from __future__ import annotations

from collections.abc import Callable

from nudelink.models import CleaningOptions, CleanResult
from nudelink.statuses import CleanError
from nudelink.tracking import REDIRECTORS, REFERRAL_PARAMS, TRACKING_PARAMS, TRACKING_PREFIX
from nudelink.utils.urls import InvalidURLError, URLValue, encode_query, parse_query, parse_url, serialize_url


def removal_predicate(options: CleaningOptions) -> Callable[[str], bool]:
    """Build the should-remove test for a parameter name under *options*."""
    bad = set(TRACKING_PARAMS)
    if options.remove_referral:
        bad |= REFERRAL_PARAMS
    bad |= options.extra_bad_params
    bad -= options.keep_params

    def should_remove(key: str) -> bool:
        k = key.lower()
        if k in options.keep_params:
            return False
        return k.startswith(TRACKING_PREFIX) or k in bad

    return should_remove


def unwrap_redirector(url: URLValue) -> tuple[URLValue, str | None]:
    """Unwrap one hop of a known redirector. Returns (url, provider or None)."""
    for rule in REDIRECTORS:
        target = rule.target(url)
        if target is None:
            continue
        try:
            return parse_url(target), rule.provider
        except InvalidURLError:
            # First structural match decides; a bad target means no unwrap
            return url, None
    return url, None


def _clean_fragment(fragment: str | None, should_remove: Callable[[str], bool]) -> tuple[str | None, bool]:
    if not fragment or "=" not in fragment:
        return fragment, False
    pairs = parse_query(fragment.removeprefix("?"))
    kept = [(k, v) for k, v in pairs if not should_remove(k)]
    if len(kept) == len(pairs):
        return fragment, False
    return encode_query(kept) or None, True


def strip_tracking(raw: str, options: CleaningOptions | None = None) -> CleanResult:
    """Strip tracking and (optionally) referral parameters from *raw*.

    Unwraps at most one redirector hop. Never raises: an unparseable input
    comes back unchanged with ``error=CleanError.INVALID_URL``.
    """
    options = options or CleaningOptions()
    try:
        url = parse_url(raw)
    except InvalidURLError:
        return CleanResult(url=raw, changed=False, error=CleanError.INVALID_URL)

    url, unwrapped_from = unwrap_redirector(url)
    changed = unwrapped_from is not None

    should_remove = removal_predicate(options)

    doomed = {k for k in url.keys() if should_remove(k)}
    if doomed:
        url = url.without_keys(doomed)
        changed = True

    fragment, fragment_changed = _clean_fragment(url.fragment, should_remove)
    if fragment_changed:
        url = url.with_fragment(fragment)
        changed = True

    return CleanResult(url=serialize_url(url), changed=changed, unwrapped_from=unwrapped_from)
