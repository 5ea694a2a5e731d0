"""APIレスポンスの型定義

TypedDictを使用してAPIレスポンスの型安全性を確保します。
"""

# pydanticのレスポンスモデルは Python 3.12 未満では typing_extensions 版が必要
from typing_extensions import TypedDict


class HealthResponse(TypedDict):
    """ヘルスチェックレスポンス"""
    status: str
    version: str


class UpdateNotification(TypedDict):
    """WebSocketで送信する音声更新通知"""
    updated: bool
