from __future__ import annotations

from PySide6.QtCore import QEvent, QObject, Qt, Signal
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QLabel,
    QPlainTextEdit,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from ..models import Conversation
from ..rendering import format_message_html

EMPTY_STATE_HTML = (
    '<div style="text-align:center; margin-top:80px;">'
    '<p style="font-size:18px;">Start a conversation</p>'
    '<p style="color:#888888;">Full throttle. Maximum performance.</p>'
    "</div>"
)


class _EnterToSendFilter(QObject):
    """Enter sends, Shift+Enter inserts a newline."""

    def __init__(self, on_submit, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._on_submit = on_submit

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        if event.type() == QEvent.KeyPress and event.key() in (Qt.Key_Return, Qt.Key_Enter):
            if not event.modifiers() & Qt.ShiftModifier:
                self._on_submit()
                return True
        return super().eventFilter(watched, event)


class ConversationWidget(QWidget):
    message_submitted = Signal(str)
    model_changed = Signal(str)
    load_file_requested = Signal()
    context_edited = Signal(str)
    context_cleared = Signal()

    def __init__(self, models: list[str], parent: QWidget | None = None) -> None:
        super().__init__(parent)

        self._title_label = QLabel("", self)
        self._title_label.setObjectName("ChatTitleLabel")
        self._count_label = QLabel("", self)
        self._count_label.setObjectName("MessageCountLabel")

        self._model_combo = QComboBox(self)
        for model in models:
            self._model_combo.addItem(model)
        self._model_combo.currentTextChanged.connect(self.model_changed.emit)

        self._context_button = QPushButton("Context", self)
        self._context_button.setCheckable(True)
        self._context_button.toggled.connect(self._set_context_visible)

        header = QHBoxLayout()
        header.addWidget(self._title_label)
        header.addWidget(self._count_label)
        header.addStretch()
        header.addWidget(self._model_combo)
        header.addWidget(self._context_button)

        self._transcript = QTextEdit(self)
        self._transcript.setReadOnly(True)
        self._transcript.setMinimumHeight(300)

        # コンテキストパネル (ファイル読み込み / 手入力)
        self._context_panel = QWidget(self)
        self._context_edit = QPlainTextEdit(self._context_panel)
        self._context_edit.setPlaceholderText("Paste or load supplementary context...")
        self._context_edit.textChanged.connect(self._handle_context_edit)
        self._load_button = QPushButton("Load file", self._context_panel)
        self._load_button.clicked.connect(self.load_file_requested.emit)
        self._clear_button = QPushButton("Clear", self._context_panel)
        self._clear_button.clicked.connect(self._handle_context_clear)
        context_buttons = QHBoxLayout()
        context_buttons.addWidget(self._load_button)
        context_buttons.addWidget(self._clear_button)
        context_buttons.addStretch()
        context_layout = QVBoxLayout()
        context_layout.addWidget(self._context_edit)
        context_layout.addLayout(context_buttons)
        context_layout.setContentsMargins(0, 0, 0, 0)
        self._context_panel.setLayout(context_layout)
        self._context_panel.setVisible(False)

        self._status_label = QLabel("", self)
        self._status_label.setObjectName("StatusLabel")

        self._input = QPlainTextEdit(self)
        self._input.setPlaceholderText("Message the model... (Enter to send, Shift+Enter for newline)")
        self._input.setFixedHeight(90)
        self._enter_filter = _EnterToSendFilter(self._handle_submit, self)
        self._input.installEventFilter(self._enter_filter)

        self._send_button = QPushButton("Send", self)
        self._send_button.clicked.connect(self._handle_submit)

        input_row = QHBoxLayout()
        input_row.addWidget(self._input, stretch=1)
        input_row.addWidget(self._send_button)
        input_row.setSpacing(8)

        layout = QVBoxLayout()
        layout.addLayout(header)
        layout.addWidget(self._transcript, stretch=1)
        layout.addWidget(self._context_panel)
        layout.addWidget(self._status_label)
        layout.addLayout(input_row)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(10)
        self.setLayout(layout)

    # Public API ---------------------------------------------------------
    def display_conversation(self, conversation: Conversation | None, message_count: int) -> None:
        self._transcript.clear()
        if conversation is None or not conversation.messages:
            self._transcript.setHtml(EMPTY_STATE_HTML)
        else:
            for message in conversation.messages:
                self._transcript.insertHtml(format_message_html(message))
                self._transcript.insertPlainText("\n")
        self._transcript.moveCursor(QTextCursor.End)
        if conversation is not None:
            self._title_label.setText(conversation.name)
            self._count_label.setText(f"{message_count} messages")

    def set_model(self, model: str) -> None:
        if self._model_combo.findText(model) < 0:
            self._model_combo.addItem(model)
        self._model_combo.blockSignals(True)
        self._model_combo.setCurrentText(model)
        self._model_combo.blockSignals(False)

    def set_context_text(self, text: str) -> None:
        self._context_edit.blockSignals(True)
        self._context_edit.setPlainText(text)
        self._context_edit.blockSignals(False)

    def show_context_panel(self) -> None:
        self._context_button.setChecked(True)

    def toggle_context_panel(self) -> None:
        self._context_button.toggle()

    def set_status_text(self, text: str) -> None:
        self._status_label.setText(text)

    def focus_input(self) -> None:
        self._input.setFocus()

    # Internal helpers ---------------------------------------------------
    def _handle_submit(self) -> None:
        text = self._input.toPlainText()
        if not text.strip():
            return
        self._input.clear()
        self.message_submitted.emit(text)

    def _set_context_visible(self, visible: bool) -> None:
        self._context_panel.setVisible(visible)

    def _handle_context_edit(self) -> None:
        self.context_edited.emit(self._context_edit.toPlainText())

    def _handle_context_clear(self) -> None:
        self.set_context_text("")
        self.context_cleared.emit()
