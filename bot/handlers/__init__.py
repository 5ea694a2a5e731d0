"""Twitch Bot イベントハンドラーモジュール

このモジュールは、Twitch Botのビジネスロジックを管理します。
TwitchBotクラス（接続管理）からルーティングのロジックを分離します。

Modules:
    command_router: トリガー判定・補完呼び出し・分割送信
"""

from bot.handlers.command_router import CommandRouter, split_response

__all__ = ["CommandRouter", "split_response"]
