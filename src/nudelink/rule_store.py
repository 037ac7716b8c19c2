"""Rule store — download, verify, persist and refresh the ClearURLs rules.

Rules and their expected SHA-256 are fetched together; the rules are only
persisted when the digest matches. Refresh attempts follow a progressive
backoff (1m → 1h) on failure and a daily interval on success.
"""

from __future__ import annotations

import hashlib
import json
import time
from pathlib import Path
from typing import NamedTuple

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from nudelink.http import create_http_client
from nudelink.ruleset import Ruleset, compile_ruleset
from nudelink.settings import Settings

# Progressive retry delays (minutes) when a refresh fails
RETRY_DELAYS_MIN = (1, 5, 15, 30, 60)
ONE_DAY_MIN = 60 * 24


class RulesError(Exception):
    """Base class for rule refresh failures."""


class RulesFetchError(RulesError):
    """Network or HTTP failure while fetching rules or their hash."""


class RulesIntegrityError(RulesError):
    """Downloaded rules do not match the published SHA-256."""


class RulesParseError(RulesError):
    """Downloaded rules are not valid JSON."""


class RefreshOutcome(NamedTuple):
    ok: bool
    next_refresh_minutes: int


def sha256_hex(text: str) -> str:
    """Hex-encoded SHA-256 of *text* encoded as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, httpx.HTTPStatusError) and (
        exc.response.status_code == 429 or exc.response.status_code >= 500
    )


@retry(
    retry=retry_if_exception(_is_transient),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)
def _get_text(client: httpx.Client, url: str) -> str:
    resp = client.get(url)
    resp.raise_for_status()
    return resp.text


def fetch_text(client: httpx.Client, url: str) -> str:
    """GET *url* as text. Raises RulesFetchError on any HTTP/network failure."""
    try:
        return _get_text(client, url)
    except httpx.HTTPStatusError as exc:
        raise RulesFetchError(f"HTTP {exc.response.status_code} for {url}") from exc
    except httpx.HTTPError as exc:
        raise RulesFetchError(f"{type(exc).__name__} for {url}: {exc}") from exc


def _write_json(path: Path, data: object) -> Path:
    """Atomic write via .tmp rename to prevent partial files."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(data, ensure_ascii=False))
    tmp_path.rename(path)
    return path


def _read_json(path: Path) -> object | None:
    try:
        return json.loads(path.read_text())
    except (OSError, ValueError):
        return None


def download_and_cache_rules(
    settings: Settings,
    log: structlog.stdlib.BoundLogger,
    client: httpx.Client | None = None,
) -> dict:
    """Download rules, verify integrity, persist with metadata and return them.

    Raises RulesFetchError, RulesIntegrityError or RulesParseError.
    """
    own_client = client is None
    client = client or create_http_client(proxy_url=settings.proxy_url or None, timeout=settings.http_timeout)
    try:
        rules_text = fetch_text(client, settings.rules_url)
        expected_hash = fetch_text(client, settings.hash_url).strip().lower()
    finally:
        if own_client:
            client.close()

    actual_hash = sha256_hex(rules_text)
    if actual_hash != expected_hash:
        raise RulesIntegrityError(f"Rules hash mismatch: expected {expected_hash}, got {actual_hash}")

    try:
        rules = json.loads(rules_text)
    except ValueError as exc:
        raise RulesParseError(f"Rules JSON parse error: {exc}") from exc

    _write_json(settings.rules_path, {"rules": rules, "ts": int(time.time() * 1000), "hash": actual_hash})
    log.info("rule_store.updated", path=str(settings.rules_path), hash=actual_hash)
    return rules


def load_cached_payload(rules_path: Path) -> dict | None:
    """Return the persisted {rules, ts, hash} payload, or None."""
    payload = _read_json(rules_path)
    return payload if isinstance(payload, dict) else None


def load_cached_rules(rules_path: Path) -> dict | None:
    """Return the cached rules document, or None when absent/unreadable."""
    payload = load_cached_payload(rules_path)
    if not payload or not payload.get("rules"):
        return None
    return payload["rules"]


def load_ruleset(rules_path: Path, log: structlog.stdlib.BoundLogger | None = None) -> Ruleset | None:
    """Load and compile the cached rules into an immutable snapshot."""
    return compile_ruleset(load_cached_rules(rules_path), log)


# -- Refresh scheduling state --------------------------------------------------


class RefreshState(BaseModel):
    backoff_index: int = Field(default=0, ge=0)


def load_state(state_path: Path) -> RefreshState:
    """Read the backoff state. Missing or malformed files give a fresh state."""
    try:
        return RefreshState.model_validate(_read_json(state_path) or {})
    except ValidationError:
        return RefreshState()


def save_state(state_path: Path, state: RefreshState) -> None:
    _write_json(state_path, state.model_dump())


def handle_success(state_path: Path) -> int:
    """Reset backoff. Returns minutes until the next (daily) refresh."""
    save_state(state_path, RefreshState())
    return ONE_DAY_MIN


def handle_failure(state_path: Path, log: structlog.stdlib.BoundLogger) -> int:
    """Advance backoff. Returns minutes until the retry."""
    last = len(RETRY_DELAYS_MIN) - 1
    i = min(load_state(state_path).backoff_index, last)
    delay = RETRY_DELAYS_MIN[i]
    log.warning("rule_store.retry_scheduled", delay_minutes=delay)
    save_state(state_path, RefreshState(backoff_index=min(i + 1, last)))
    return delay


def ensure_fresh_rules(
    settings: Settings,
    log: structlog.stdlib.BoundLogger,
    client: httpx.Client | None = None,
) -> RefreshOutcome:
    """Try to refresh rules now. Never raises; failures schedule a retry."""
    try:
        download_and_cache_rules(settings, log, client)
    except RulesError as exc:
        log.warning("rule_store.refresh_failed", error=str(exc))
        return RefreshOutcome(ok=False, next_refresh_minutes=handle_failure(settings.state_path, log))
    return RefreshOutcome(ok=True, next_refresh_minutes=handle_success(settings.state_path))


def rules_status(settings: Settings) -> dict:
    """Debug view of the cache and backoff state."""
    payload = load_cached_payload(settings.rules_path) or {}
    state = load_state(settings.state_path)
    return {
        "has_rules": bool(payload.get("rules")),
        "last_updated": payload.get("ts"),
        "hash": payload.get("hash"),
        "backoff_index": state.backoff_index,
    }
