"""Tests for engine selection, clean_hash handling and status lines."""

from __future__ import annotations

from nudelink.cleaner import clean_url, describe_result
from nudelink.models import CleaningOptions, CleanResult
from nudelink.ruleset import compile_ruleset
from nudelink.statuses import CleanError, Engine


class TestCleanUrl:
    def test_default_is_heuristic(self):
        result = clean_url("https://example.com/?utm_source=x&a=1#utm_term=y")
        assert result.url == "https://example.com/?a=1"
        assert result.changed is True

    def test_default_ignores_supplied_ruleset(self, rules):
        result = clean_url("https://www.amazon.com/dp/B000?qid=1", ruleset=compile_ruleset(rules))
        assert result.url == "https://www.amazon.com/dp/B000?qid=1"
        assert result.changed is False

    def test_clean_hash_disabled_drops_fragment(self):
        result = clean_url("https://example.com/doc?a=1#section", CleaningOptions(clean_hash=False))
        assert result.url == "https://example.com/doc?a=1"

    def test_invalid_url_returns_original(self):
        result = clean_url("not a url", CleaningOptions(clean_hash=False))
        assert result.url == "not a url"
        assert result.error == CleanError.INVALID_URL

    def test_rules_engine_without_rules(self):
        result = clean_url("https://example.com/?gclid=1", ruleset=None, engine=Engine.RULES)
        assert result.error == CleanError.RULES_UNAVAILABLE
        assert result.url == "https://example.com/?gclid=1"

    def test_rules_engine(self, rules):
        result = clean_url("https://example.com/?gclid=1&a=2", ruleset=compile_ruleset(rules), engine=Engine.RULES)
        assert result.url == "https://example.com/?a=2"

    def test_both_falls_back_to_heuristic_without_rules(self):
        result = clean_url("https://example.com/?utm_source=1", engine=Engine.BOTH)
        assert result.url == "https://example.com/"
        assert result.error is None

    def test_both_combines(self, rules):
        ruleset = compile_ruleset(rules)
        result = clean_url(
            "https://www.google.com/url?q=https%3A%2F%2Fwww.amazon.com%2Fdp%2FB000%3Fqid%3D1%26utm_source%3Dx",
            ruleset=ruleset,
            engine=Engine.BOTH,
        )
        assert result.url == "https://www.amazon.com/dp/B000"
        assert result.unwrapped_from == "google"
        assert result.changed is True


class TestDescribeResult:
    def test_invalid(self):
        assert describe_result(CleanResult(url="x", error=CleanError.INVALID_URL)) == "Invalid URL"

    def test_rules_unavailable(self):
        assert describe_result(CleanResult(url="x", error=CleanError.RULES_UNAVAILABLE)) == "Rules not available"

    def test_unwrapped_and_cleaned(self):
        result = CleanResult(url="https://example.com/", changed=True, unwrapped_from="google")
        assert describe_result(result) == "Unwrapped from google · Cleaned ✓"

    def test_already_clean(self):
        assert describe_result(CleanResult(url="https://example.com/")) == "Already clean ✨"
