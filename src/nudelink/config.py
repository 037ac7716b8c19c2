"""Persisted user options: YAML file with env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from nudelink.models import CleaningOptions


class UserOptions(BaseModel):
    remove_referral: bool = True
    clean_hash: bool = True

    def cleaning_options(self, **overrides) -> CleaningOptions:
        """Expand into CleaningOptions for both cleaners."""
        return CleaningOptions(
            remove_referral=self.remove_referral,
            allow_referral=not self.remove_referral,
            clean_hash=self.clean_hash,
            **overrides,
        )


_TRUE = frozenset({"1", "true", "yes", "on"})


def load_options(options_path: str | Path = "options.yaml") -> UserOptions:
    """Load options from YAML, then apply env var overrides. Missing file gives defaults."""
    load_dotenv()

    data: dict = {}
    path = Path(options_path)
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}

    options = UserOptions(**data)

    env_map = {
        "NUDELINK_REMOVE_REFERRAL": "remove_referral",
        "NUDELINK_CLEAN_HASH": "clean_hash",
    }
    for env_var, field_name in env_map.items():
        val = os.environ.get(env_var)
        if val is not None:
            setattr(options, field_name, val.strip().lower() in _TRUE)

    return options


def save_options(options: UserOptions, options_path: str | Path = "options.yaml") -> Path:
    """Write options to YAML (atomic via .tmp rename). Returns the path written."""
    path = Path(options_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(yaml.safe_dump(options.model_dump(), sort_keys=True))
    tmp_path.rename(path)
    return path
