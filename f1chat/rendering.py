from __future__ import annotations

import html
from datetime import datetime

import markdown

from .models import Message

MARKDOWN_EXTENSIONS = [
    "fenced_code",  # ``` コードブロック
    "tables",
    "nl2br",  # 改行をそのまま <br> にする
    "sane_lists",
]

USER_COLOR = "#FFFFFF"
ASSISTANT_COLOR = "#00D2BE"
TYPING_COLOR = "#888888"


def escape_html(text: str) -> str:
    return html.escape(text, quote=True)


def render_markdown(text: str) -> str:
    content = markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)
    # QTextEdit に差し込むと外側の <p> が余白を作るので、単一段落なら外す
    if content.startswith("<p>") and content.endswith("</p>") and content.count("<p>") == 1:
        content = content[3:-4]
    return content


def format_time(timestamp_ms: int, now: datetime | None = None) -> str:
    """Return a short relative label such as ``Just now`` or ``5m ago``."""

    moment = datetime.fromtimestamp(timestamp_ms / 1000)
    current = now or datetime.now()
    diff_ms = (current - moment).total_seconds() * 1000
    if diff_ms < 60_000:
        return "Just now"
    if diff_ms < 3_600_000:
        return f"{int(diff_ms // 60_000)}m ago"
    if diff_ms < 86_400_000:
        return moment.strftime("%H:%M")
    return moment.strftime("%Y-%m-%d")


def format_message_html(message: Message, now: datetime | None = None) -> str:
    if message.role == "user":
        label = "You"
        color = USER_COLOR
    else:
        label = "Assistant"
        color = ASSISTANT_COLOR
    if message.is_typing:
        body = f'<i style="color:{TYPING_COLOR}">{escape_html(message.content)}</i>'
    elif message.role == "user":
        # ユーザー入力は Markdown として解釈しない
        body = escape_html(message.content).replace("\n", "<br>")
    else:
        body = render_markdown(message.content)

    meta = format_time(message.timestamp, now)
    if message.model:
        meta = f"{meta} · {escape_html(message.model)}"

    role_html = f'<p style="margin-bottom:0px;"><b style="color:{color}">{label}</b></p>'
    meta_html = f'<p style="margin-top:2px; color:{TYPING_COLOR}; font-size:11px;">{meta}</p>'
    return f'<div style="margin-bottom: 10px;">{role_html}{body}{meta_html}</div>'
