"""Twitch Bot カスタム例外定義

API側のexceptions.pyと同様のパターンを採用。
ドメイン固有のエラーハンドリングを可能にする。
"""

from typing import Any


class BotError(Exception):
    """Twitch Bot基底例外クラス

    全てのBot固有例外の親クラス。
    エラーメッセージと詳細情報を保持。
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Args:
            message: エラーメッセージ
            details: エラーの詳細情報（デバッグ用）
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConnectorError(BotError):
    """Twitch接続時のエラー

    未参加チャンネルへの送信、接続失敗など。
    twitchioの例外をラップする際に使用。
    切断・エラーコールバックでログ出力のみ行う。
    """
    pass


class MessageHandlingError(BotError):
    """メッセージ処理時のエラー

    ルーター内で発生した想定外のエラー。
    チャットユーザーには応答を返さず、ログにのみ残す。
    """
    pass
