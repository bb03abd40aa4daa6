#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Expansion configuration.

All values can be overridden via ``JSINLINE_*`` environment variables or a
.env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_prefix="JSINLINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Driver ─────────────────────────────────────────────────────────────

    strategy: Literal["reparse", "sweep"] = "reparse"
    recursive: bool = False          # expand %inline sites found inside target modules
    max_passes: int = 1000           # guard against self-inlining functions

    # ── Module loading ─────────────────────────────────────────────────────

    extensions: list[str] = ["", ".js"]

    # ── Internals ──────────────────────────────────────────────────────────

    marker_name: str = "__jsinline_macro__"
    log_level: str = "WARNING"

    @field_validator("marker_name")
    @classmethod
    def _marker_is_identifier(cls, v: str) -> str:
        if not _IDENTIFIER.match(v):
            raise ValueError(f"marker_name must be a JavaScript identifier, got {v!r}")
        return v

    @field_validator("max_passes")
    @classmethod
    def _positive_passes(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_passes must be at least 1")
        return v

    @model_validator(mode="after")
    def _recursive_needs_reparse(self) -> "Settings":
        # The sweep never re-reads its own output, so nested sites would be lost
        if self.recursive and self.strategy == "sweep":
            raise ValueError("recursive expansion requires the 'reparse' strategy")
        return self


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()
