"""API設定管理モジュール

補完API・音声合成・HTTPサーバーの設定を環境変数から読み込む。
環境変数が無いものは元のボットと同じデフォルト値を持つ。
"""

import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from api.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "You are a helpful Twitch Chatbot."


class APISettings(BaseSettings):
    """API設定クラス

    環境変数から設定を読み込み、型チェックとバリデーションを実行します。
    起動時に一度だけ読み込み、以降は変更しません。
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        protected_namespaces=(),
    )

    # === 補完API関連 ===
    gpt_mode: str = "CHAT"
    history_length: int = Field(default=5, ge=0)
    openai_api_key: str | None = None
    openai_api_url: str = "https://api.openai.com/v1"
    model_name: str = "gpt-3.5-turbo"
    context_file: str = "file_context.txt"

    # === 音声合成関連 ===
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"
    tts_filename: str = "file.mp3"
    public_dir: str = "public"

    # === HTTPサーバー関連 ===
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # === ハードコード定数（環境変数不要） ===
    @property
    def api_version(self) -> str:
        """APIバージョン"""
        return "1.0.0"

    @property
    def api_timeout(self) -> float:
        """APIタイムアウト（秒）"""
        return 30.0

    @property
    def cors_origins(self) -> list[str]:
        """CORS許可オリジン"""
        return ["*"]

    @property
    def mode(self) -> str:
        """正規化したGPT_MODE（CHAT / PROMPT）"""
        return self.gpt_mode.strip().upper()

    @property
    def masked_api_key(self) -> str:
        """ログ出力用にマスクしたAPIキー"""
        key = self.openai_api_key or ""
        if not key:
            return "(not set)"
        if len(key) > 10:
            return f"{key[:4]}...{key[-4:]}"
        return "***"

    def load_context(self) -> str:
        """コンテキストファイルを読み込む

        CHATモードではシステムメッセージ、PROMPTモードでは各プロンプトの
        先頭に付与される文字列になります。

        Returns:
            コンテキスト文字列（ファイルが無い場合はデフォルト値）
        """
        path = Path(self.context_file)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning(
                "Context file not found, using default context",
                extra={"context_file": str(path)}
            )
            return DEFAULT_CONTEXT

        logger.info(
            "Context file loaded",
            extra={"context_file": str(path), "content_length": len(content)}
        )
        return content

    def missing_credentials(self) -> list[ConfigurationError]:
        """未設定の必須認証情報を列挙する"""
        errors = []
        if not self.openai_api_key:
            errors.append(ConfigurationError(
                "No OPENAI_API_KEY found. Please set it as environment variable.",
                details={"variable": "OPENAI_API_KEY"}
            ))
        return errors


# グローバル設定インスタンス
_settings: APISettings | None = None


def get_settings() -> APISettings:
    """設定インスタンスを取得（シングルトン）"""
    global _settings
    if _settings is None:
        _settings = APISettings()
    return _settings


def reload_settings() -> APISettings:
    """設定を再読み込み（主にテスト用）"""
    global _settings
    _settings = APISettings()
    return _settings
