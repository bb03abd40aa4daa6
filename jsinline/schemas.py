"""
Pydantic v2 models for diagnostics and transform results.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Diagnostics
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Diagnostic(BaseModel):
    message: str
    origin: Optional[str] = None   # file being expanded when the error was reported


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Results
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransformResult(BaseModel):
    path: Optional[str] = None
    output: str
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics
