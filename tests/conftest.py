#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Test fixtures
=============
Every test gets its own temporary module directory.  JavaScript modules are
written into it with ``write_module`` and resolved through a
``FileSystemContext`` rooted there.  Settings never read a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from jsinline.core.config import Settings
from jsinline.macros import FileSystemContext, InlineEngine


def js(text: str) -> str:
    """Dedent a triple-quoted JavaScript snippet and drop the leading newline."""
    return textwrap.dedent(text).lstrip("\n")


# ── Module directory ─────────────────────────────────────────────────────────
@pytest.fixture
def module_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def write_module(module_dir: Path) -> Callable[[str, str], Path]:
    def _write(name: str, text: str) -> Path:
        path = module_dir / name
        path.write_text(js(text), encoding="utf-8")
        return path
    return _write


# ── Host context / engine ────────────────────────────────────────────────────
@pytest.fixture
def ctx(module_dir: Path) -> FileSystemContext:
    return FileSystemContext(module_dir, extensions=["", ".js"], origin="host.js")


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


@pytest.fixture
def make_engine(ctx: FileSystemContext) -> Callable[..., InlineEngine]:
    def _make(**kwargs) -> InlineEngine:
        return InlineEngine(ctx, make_settings(**kwargs))
    return _make


# ── Shared target module ─────────────────────────────────────────────────────
OPS_JS = """
    export function double(x) {
      return x * 2;
    }

    export function log(msg) {
      console.log(msg);
      calls++;
    }

    export function pair(a, b) {
      return [a, b];
    }

    export function clamp(v, lo, hi) {
      return v < lo ? lo : v > hi ? hi : v;
    }
"""


@pytest.fixture
def ops_module(write_module) -> Path:
    return write_module("ops.js", OPS_JS)
