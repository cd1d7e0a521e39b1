from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path


@lru_cache(maxsize=1)
def _package_root() -> Path:
    """Return the base directory for bundled assets."""

    base = getattr(sys, "_MEIPASS", None)
    if base:
        # PyInstaller で固めた場合は一時展開ディレクトリ配下に f1chat/ が置かれる
        return (Path(base) / "f1chat").resolve()
    return Path(__file__).resolve().parent


def resource_path(*relative_parts: str) -> Path:
    if not relative_parts:
        return _package_root()
    return _package_root().joinpath(*relative_parts)


def load_stylesheet(name: str = "style.qss") -> str:
    path = resource_path("assets", name)
    try:
        return path.read_text(encoding="utf-8")
    except OSError:
        return ""
