from __future__ import annotations

import logging
from typing import Iterable

from PySide6.QtCore import QObject, QThread, Signal, Slot

from ..ollama_client import InferenceError, OllamaClient

logger = logging.getLogger(__name__)


class LLMWorker(QObject):
    # (placeholder_id, text, model) - id はミリ秒なので int ではなく object で渡す
    finished = Signal(object, str, str)
    failed = Signal(object, str, str)

    def __init__(self, client: OllamaClient, message: str, model: str, placeholder_id: int) -> None:
        super().__init__()
        self._client = client
        self._message = message
        self._model = model
        self._placeholder_id = placeholder_id

    @Slot()
    def run(self) -> None:
        try:
            # GUI スレッドを塞がないよう別スレッドで推論を実行
            response = self._client.chat(self._message, self._model)
        except InferenceError as exc:
            self.failed.emit(self._placeholder_id, f"Error: {exc}", self._model)
            return
        except Exception as exc:  # pragma: no cover - runtime safety
            logger.exception("Unexpected failure in LLM worker")
            self.failed.emit(self._placeholder_id, f"Error: {exc}", self._model)
            return
        self.finished.emit(self._placeholder_id, response, self._model)


def stop_threads(threads: Iterable[QThread]) -> None:
    for thread in threads:
        thread.quit()
        # 実行中の urlopen が戻るまで待つ (途中で破棄すると Qt が abort する)
        thread.wait()
