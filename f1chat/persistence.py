from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from .models import Document

logger = logging.getLogger(__name__)


class PersistenceGateway:
    """
    Load and save the whole conversation document as one JSON file.

    Both operations are best effort: failures are logged and reported through
    the return value instead of being raised.
    """

    def __init__(self, data_file: Path) -> None:
        self._data_file = data_file

    @property
    def data_file(self) -> Path:
        return self._data_file

    def load(self) -> Document | None:
        if not self._data_file.exists():
            return None
        try:
            payload = json.loads(self._data_file.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError("top-level JSON value is not an object")
            return Document.from_dict(payload)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            # json.JSONDecodeError は ValueError のサブクラス
            logger.error("Error loading data from %s: %s", self._data_file, exc)
            return None

    def save(self, document: Document) -> bool:
        try:
            self._data_file.parent.mkdir(parents=True, exist_ok=True)
            text = json.dumps(document.to_dict(), ensure_ascii=False, indent=2)
            # 同じディレクトリに一時ファイルを書いてから置き換える (途中で落ちても元ファイルは壊れない)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_file.parent,
                prefix=f".{self._data_file.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, self._data_file)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Error saving data to %s: %s", self._data_file, exc)
            return False
        return True


def read_text_file(path: Path) -> str | None:
    """Read a user-chosen file for import; returns None when it cannot be read."""

    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Error reading file %s: %s", path, exc)
        return None
