"""補完APIとやり取りするメッセージの型定義"""

from typing import TypedDict


class ConversationMessage(TypedDict):
    """会話メッセージ"""
    role: str  # "system", "user" or "assistant"
    content: str
