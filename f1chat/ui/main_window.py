from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QThread
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import QFileDialog, QHBoxLayout, QMainWindow, QWidget

from ..config import AppConfig
from ..ollama_client import OllamaClient
from ..persistence import PersistenceGateway, read_text_file
from ..store import ConversationStore
from .conversation_widget import ConversationWidget
from .history_panel import HistoryPanel
from .workers import LLMWorker, stop_threads

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, config: AppConfig) -> None:
        super().__init__()
        self._config = config
        self._store = ConversationStore(
            PersistenceGateway(config.paths.data_file),
            default_model=config.default_model,
        )
        self._client = OllamaClient(config.ollama_base_url, timeout=config.ollama_timeout)
        # 実行中のスレッドとワーカーへの参照を保持して GC を防ぐ
        self._threads: dict[int, tuple[QThread, LLMWorker]] = {}

        self.setWindowTitle("F1 AI")
        self.resize(1400, 900)
        self.setMinimumSize(1000, 600)

        self._history_panel = HistoryPanel(self)
        self._history_panel.setFixedWidth(280)
        self._conversation_widget = ConversationWidget(config.models, self)

        central = QWidget(self)
        layout = QHBoxLayout()
        layout.addWidget(self._history_panel)
        layout.addWidget(self._conversation_widget, stretch=1)
        layout.setContentsMargins(0, 0, 0, 0)
        central.setLayout(layout)
        self.setCentralWidget(central)

        self._history_panel.conversation_selected.connect(self._handle_select)
        self._history_panel.new_conversation_requested.connect(self._handle_new_conversation)
        self._history_panel.delete_requested.connect(self._handle_delete)
        self._conversation_widget.message_submitted.connect(self._handle_message_submitted)
        self._conversation_widget.model_changed.connect(self._store.set_model)
        self._conversation_widget.load_file_requested.connect(self._handle_load_file)
        self._conversation_widget.context_edited.connect(self._store.import_context)
        self._conversation_widget.context_cleared.connect(self._store.clear_context)

        QShortcut(QKeySequence("Ctrl+N"), self, activated=self._handle_new_conversation)
        QShortcut(QKeySequence("Ctrl+K"), self, activated=self._conversation_widget.toggle_context_panel)

        self._store.initialize()
        self._conversation_widget.set_model(self._store.current_model)
        self._render()

    # Slots --------------------------------------------------------------
    def _handle_new_conversation(self) -> None:
        self._store.create_conversation()
        self._render()
        self._conversation_widget.focus_input()

    def _handle_select(self, conversation_id: int) -> None:
        if self._store.select_conversation(conversation_id):
            self._render()

    def _handle_delete(self, conversation_id: int) -> None:
        if self._store.delete_conversation(conversation_id):
            self._render()

    def _handle_message_submitted(self, text: str) -> None:
        message = self._store.append_user_message(text)
        if message is None:
            return
        pending = self._store.append_placeholder()
        self._render()
        self._start_llm_worker(message.content, self._store.current_model, pending.placeholder_id)

    def _handle_llm_finished(self, placeholder_id: int, text: str, model: str) -> None:
        self._store.resolve_placeholder(placeholder_id, text, model)
        self._render()

    def _handle_llm_failed(self, placeholder_id: int, error_text: str, model: str) -> None:
        logger.error("LLM worker failed: %s", error_text)
        self._store.fail_placeholder(placeholder_id, error_text, model)
        self._render()

    def _handle_load_file(self) -> None:
        path_str, _ = QFileDialog.getOpenFileName(self, "Load context file")
        if not path_str:
            return
        content = read_text_file(Path(path_str))
        if content is None:
            self._conversation_widget.set_status_text(f"Could not read {path_str}")
            return
        self._store.import_context(content)
        self._conversation_widget.set_context_text(content)
        self._conversation_widget.show_context_panel()

    # Internal helpers ---------------------------------------------------
    def _start_llm_worker(self, message: str, model: str, placeholder_id: int) -> None:
        thread = QThread(self)
        worker = LLMWorker(self._client, message, model, placeholder_id)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(self._handle_llm_finished)
        worker.failed.connect(self._handle_llm_failed)
        worker.finished.connect(thread.quit)
        worker.failed.connect(thread.quit)
        # MainWindow のメソッドに繋ぐので後始末は GUI スレッドで行われる
        thread.finished.connect(self._cleanup_thread)
        self._threads[placeholder_id] = (thread, worker)
        thread.start()

    def _cleanup_thread(self) -> None:
        finished = self.sender()
        for placeholder_id, (thread, worker) in list(self._threads.items()):
            if thread is finished:
                del self._threads[placeholder_id]
                worker.deleteLater()
                thread.deleteLater()
                return

    def _render(self) -> None:
        conversation = self._store.current_conversation()
        self._history_panel.set_conversations(self._store.conversations, self._store.current_chat_id)
        self._conversation_widget.display_conversation(conversation, self._store.message_count(conversation))
        pending = len(self._store.pending_replies)
        self._conversation_widget.set_status_text(f"Waiting for {pending} reply(s)..." if pending else "")

    def closeEvent(self, event) -> None:  # noqa: N802
        stop_threads(thread for thread, _worker in list(self._threads.values()))
        super().closeEvent(event)
