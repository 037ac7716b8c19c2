"""Pydantic models for cleaning options and results."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from nudelink.statuses import CleanError


class CleaningOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    keep_params: frozenset[str] = frozenset()
    extra_bad_params: frozenset[str] = frozenset()
    remove_referral: bool = True
    # Rule-engine counterpart of remove_referral, inverse sense
    allow_referral: bool = False
    clean_hash: bool = True

    @field_validator("keep_params", "extra_bad_params", mode="before")
    @classmethod
    def _casefold(cls, value: object) -> frozenset[str]:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        return frozenset(str(p).lower() for p in value)


class CleanResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    changed: bool = False
    unwrapped_from: str | None = None
    error: CleanError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
