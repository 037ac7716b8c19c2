"""ClearURLs-style ruleset: raw JSON validation and one-time compilation.

The raw rules document looks like::

    {"providers": {"google": {"urlPattern": "...", "rules": ["gclid", ...],
                              "referralMarketing": [...], "exceptions": [...],
                              "redirections": [...], "rawRules": [...]}}}

Every regex is compiled once here. A regex that fails to compile is dropped
on its own; a provider without a usable ``urlPattern`` is kept but never
matches, so provider order is preserved exactly as supplied.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Anything that makes an entry more than a bare parameter name
_REGEX_META = re.compile(r"[.*+?^${}()|\[\]\\]")


class ProviderSpec(BaseModel):
    """One provider entry as found in the rules JSON."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url_pattern: str | None = Field(default=None, alias="urlPattern")
    exceptions: list[str] = []
    redirections: list[str] = []
    rules: list[str] = []
    referral_marketing: list[str] = Field(default=[], alias="referralMarketing")
    raw_rules: list[str] = Field(default=[], alias="rawRules")

    @field_validator("url_pattern", mode="before")
    @classmethod
    def _pattern_str(cls, value: object) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("exceptions", "redirections", "rules", "referral_marketing", "raw_rules", mode="before")
    @classmethod
    def _as_list(cls, value: object) -> list[str]:
        # Non-list fields are treated as absent
        if not isinstance(value, list):
            return []
        return [str(v) for v in value]


@dataclass(frozen=True)
class LiteralRule:
    name: str


@dataclass(frozen=True)
class PatternRule:
    pattern: re.Pattern[str]


RuleEntry = LiteralRule | PatternRule


@dataclass(frozen=True)
class Provider:
    name: str
    url_pattern: re.Pattern[str] | None
    exceptions: tuple[re.Pattern[str], ...] = ()
    redirections: tuple[re.Pattern[str], ...] = ()
    rules: tuple[RuleEntry, ...] = ()
    referral_marketing: tuple[RuleEntry, ...] = ()
    raw_rules: tuple[re.Pattern[str], ...] = ()

    def applies_to(self, url: str) -> bool:
        """URL pattern matches and no exception does."""
        if self.url_pattern is None or not self.url_pattern.search(url):
            return False
        return not any(ex.search(url) for ex in self.exceptions)


@dataclass(frozen=True)
class Ruleset:
    """Immutable, compiled snapshot of a rules document."""

    providers: tuple[Provider, ...] = ()

    def __len__(self) -> int:
        return len(self.providers)


def is_literal(entry: str) -> bool:
    """A plain parameter name: no regex metacharacters, no '=', no '\\b'."""
    return not _REGEX_META.search(entry) and "=" not in entry and "\\b" not in entry


def _compile(source: str, provider: str, log: structlog.stdlib.BoundLogger) -> re.Pattern[str] | None:
    try:
        return re.compile(source, re.IGNORECASE)
    except re.error as exc:
        log.debug("ruleset.invalid_regex", provider=provider, pattern=source, error=str(exc))
        return None


def _compile_all(sources: list[str], provider: str, log: structlog.stdlib.BoundLogger) -> tuple[re.Pattern[str], ...]:
    compiled = (_compile(s, provider, log) for s in sources)
    return tuple(p for p in compiled if p is not None)


def classify_entry(entry: str, provider: str, log: structlog.stdlib.BoundLogger) -> RuleEntry | None:
    """Decide once whether *entry* is a literal name or a compiled pattern."""
    if is_literal(entry):
        return LiteralRule(entry.lower())
    pattern = _compile(entry, provider, log)
    return PatternRule(pattern) if pattern is not None else None


def _classify_all(entries: list[str], provider: str, log: structlog.stdlib.BoundLogger) -> tuple[RuleEntry, ...]:
    classified = (classify_entry(e, provider, log) for e in entries)
    return tuple(e for e in classified if e is not None)


def compile_provider(name: str, spec: ProviderSpec, log: structlog.stdlib.BoundLogger) -> Provider:
    return Provider(
        name=name,
        url_pattern=_compile(spec.url_pattern, name, log) if spec.url_pattern is not None else None,
        exceptions=_compile_all(spec.exceptions, name, log),
        redirections=_compile_all(spec.redirections, name, log),
        rules=_classify_all(spec.rules, name, log),
        referral_marketing=_classify_all(spec.referral_marketing, name, log),
        raw_rules=_compile_all(spec.raw_rules, name, log),
    )


def compile_ruleset(data: object, log: structlog.stdlib.BoundLogger | None = None) -> Ruleset | None:
    """Compile a raw rules document. Returns None if it has no providers mapping."""
    log = log or structlog.get_logger()
    if not isinstance(data, Mapping):
        return None
    raw_providers = data.get("providers")
    if not isinstance(raw_providers, Mapping):
        return None

    providers: list[Provider] = []
    for name, raw in raw_providers.items():
        if not isinstance(raw, Mapping):
            log.debug("ruleset.skipped_provider", provider=name, reason="not an object")
            continue
        try:
            spec = ProviderSpec.model_validate(raw)
        except ValidationError as exc:
            log.debug("ruleset.skipped_provider", provider=name, reason=str(exc))
            continue
        providers.append(compile_provider(str(name), spec, log))

    return Ruleset(providers=tuple(providers))
