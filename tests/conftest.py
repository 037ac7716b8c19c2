"""Shared test fixtures: sample rules documents and isolated settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from nudelink.settings import Settings

GOOGLE_HOST = r"^https?://(?:[a-z0-9-]+\.)*?google(?:\.[a-z]{2,}){1,}"
AMAZON_HOST = r"^https?://(?:[a-z0-9-]+\.)*?amazon(?:\.[a-z]{2,}){1,}"


def make_rules() -> dict:
    """A trimmed-down rules document in the ClearURLs layout."""
    return {
        "providers": {
            "google": {
                "urlPattern": GOOGLE_HOST,
                "completeProvider": False,
                "rules": ["ved", "ei", "gs_lcp"],
                "referralMarketing": [],
                "rawRules": [],
                "exceptions": [GOOGLE_HOST + r"/maps"],
                "redirections": [GOOGLE_HOST + r"/url\?.*?(?:url|q)=(https?[^&]+)"],
                "forceRedirection": False,
            },
            "amazon": {
                "urlPattern": AMAZON_HOST,
                "rules": ["pd_rd_[a-z]*", "qid", "sr", "ref_?"],
                "referralMarketing": ["tag", "ascsubtag"],
                "rawRules": [r"\/ref=[^/?]*"],
                "exceptions": [],
                "redirections": [],
            },
            "globalRules": {
                "urlPattern": ".*",
                "rules": ["(?:%3F)?utm(?:_[a-z_]*)?", "(?:%3F)?gclid", "fbclid", "ga_[a-z_]+"],
                "referralMarketing": ["(?:%3F)?ref"],
                "rawRules": [],
                "exceptions": [r"^https?://[^/]*\.?example-exempt\.com"],
                "redirections": [],
            },
        }
    }


@pytest.fixture()
def rules() -> dict:
    return make_rules()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing all on-disk state at a temp dir."""
    return Settings(
        data_dir=str(tmp_path / "data"),
        log_dir=str(tmp_path / "logs"),
        rules_url="https://rules.test/data.minify.json",
        hash_url="https://rules.test/rules.minify.hash",
    )
