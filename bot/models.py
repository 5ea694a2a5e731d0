"""Bot用型定義

TypedDictを使用してBot内部でやり取りするイベントの型安全性を確保します。
"""

from typing import Awaitable, Callable, Optional, TypedDict


class ChatEvent(TypedDict):
    """受信したチャットメッセージ（ルーターが一度だけ消費する）"""
    channel: str
    username: str
    text: str
    msg_id: Optional[str]  # Twitchの msg-id タグ
    reward_id: Optional[str]  # Twitchの custom-reward-id タグ
    echo: bool  # Bot自身の発言


MessageListener = Callable[[ChatEvent], Awaitable[None]]
SendFunc = Callable[[str, str], Awaitable[None]]
