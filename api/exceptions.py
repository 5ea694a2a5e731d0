"""API カスタム例外定義

補完API・音声合成API・設定まわりで使用するカスタム例外階層を定義します。
適切な例外処理とエラーメッセージの一貫性を確保します。
"""

from typing import Any


class TwitchGPTError(Exception):
    """基底例外クラス

    全てのカスタム例外の基底となるクラス。
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(TwitchGPTError):
    """設定エラー

    必須の認証情報が無い、またはGPT_MODEが不正な場合に発生します。
    起動時の認証情報チェックではログ出力のみで処理を継続します。
    """
    pass


class UpstreamError(TwitchGPTError):
    """上流APIエラー

    補完APIまたは音声合成APIの呼び出しに失敗した場合に発生します。
    リトライは行いません。
    """
    pass


class UpstreamTimeoutError(UpstreamError):
    """上流APIタイムアウトエラー

    APIのレスポンスがタイムアウトした場合に発生します。
    """
    pass


class UpstreamRateLimitError(UpstreamError):
    """上流APIレート制限エラー

    APIのレート制限（HTTP 429）に達した場合に発生します。
    """
    pass


class SpeechSynthesisError(UpstreamError):
    """音声合成エラー

    TTS APIの呼び出し、または音声ファイルの書き込みに失敗した場合に発生します。
    """
    pass
