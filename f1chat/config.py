from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .settings import get_float_setting, get_str_list_setting, get_str_setting, load_settings

APP_DIRNAME = "f1-ai"


def default_data_dir() -> Path:
    """Return the per-user directory where the conversation file lives."""

    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support"
    else:
        base = os.environ.get("XDG_CONFIG_HOME")
        root = Path(base) if base else Path.home() / ".config"
    return root / APP_DIRNAME


@dataclass(frozen=True)
class AppPaths:
    data_dir: Path
    data_file: Path


@dataclass
class AppConfig:
    data_dir: Path | None = None
    settings: dict[str, Any] = field(init=False)
    paths: AppPaths = field(init=False)

    def __post_init__(self) -> None:
        root = (self.data_dir or default_data_dir()).expanduser()
        self.settings = load_settings(root)
        data_filename = get_str_setting(self.settings, "storage.data_filename", "f1-ai-data.json")
        self.paths = AppPaths(
            data_dir=root,
            data_file=root / data_filename,
        )

    @property
    def default_model(self) -> str:
        return get_str_setting(self.settings, "app.default_model", "mistral")

    @property
    def models(self) -> list[str]:
        models = get_str_list_setting(self.settings, "app.models", [self.default_model])
        if self.default_model not in models:
            models.insert(0, self.default_model)
        return models

    @property
    def ollama_base_url(self) -> str:
        return get_str_setting(self.settings, "ollama.base_url", "http://localhost:11434")

    @property
    def ollama_timeout(self) -> float:
        return get_float_setting(self.settings, "ollama.timeout_sec", 120.0)

    @property
    def log_level(self) -> str:
        level = get_str_setting(self.settings, "logging.level", "INFO").upper()
        return level if isinstance(logging.getLevelName(level), int) else "INFO"
