"""Runtime package shim exposing the src-layout package to `python -m newsmarks.cli...`."""

from __future__ import annotations

from pathlib import Path

_ROOT = Path(__file__).resolve().parent.parent
_SRC_PACKAGE = _ROOT / "src" / "newsmarks"

if _SRC_PACKAGE.is_dir():
    __path__.append(str(_SRC_PACKAGE))
