"""Tests for persisted options and settings."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

from nudelink.config import UserOptions, load_options, save_options
from nudelink.settings import Settings


class TestLoadOptions:
    def test_defaults_when_missing(self, tmp_path: Path):
        with patch.dict(os.environ, {}, clear=True):
            options = load_options(tmp_path / "missing.yaml")
        assert options == UserOptions(remove_referral=True, clean_hash=True)

    def test_roundtrip(self, tmp_path: Path):
        path = tmp_path / "nested" / "options.yaml"
        save_options(UserOptions(remove_referral=False, clean_hash=True), path)
        with patch.dict(os.environ, {}, clear=True):
            assert load_options(path) == UserOptions(remove_referral=False, clean_hash=True)

    def test_partial_file(self, tmp_path: Path):
        path = tmp_path / "options.yaml"
        path.write_text("clean_hash: false\n")
        with patch.dict(os.environ, {}, clear=True):
            options = load_options(path)
        assert options.remove_referral is True
        assert options.clean_hash is False

    def test_env_override(self, tmp_path: Path):
        with patch.dict(os.environ, {"NUDELINK_REMOVE_REFERRAL": "false"}, clear=True):
            options = load_options(tmp_path / "missing.yaml")
        assert options.remove_referral is False


class TestCleaningOptions:
    def test_referral_maps_to_both_engines(self):
        opts = UserOptions(remove_referral=False).cleaning_options()
        assert opts.remove_referral is False
        assert opts.allow_referral is True

    def test_overrides(self):
        opts = UserOptions().cleaning_options(keep_params=("Page",))
        assert opts.keep_params == frozenset({"page"})


class TestSettings:
    def test_paths(self, tmp_path: Path):
        settings = Settings(data_dir=str(tmp_path))
        assert settings.rules_path == tmp_path / "rules.json"
        assert settings.state_path == tmp_path / "refresh_state.json"
        assert settings.options_path == tmp_path / "options.yaml"

    def test_env_prefix(self):
        with patch.dict(os.environ, {"NUDELINK_HTTP_TIMEOUT": "5"}):
            assert Settings().http_timeout == 5.0
