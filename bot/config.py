"""Bot設定管理モジュール

Twitch接続・コマンド認識の設定を環境変数から読み込む。
フラグ類は元のボットと同様に文字列で受け取り "true" との比較で判定する。
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from api.exceptions import ConfigurationError


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _is_true(value: str) -> bool:
    return value.strip().lower() == "true"


class BotSettings(BaseSettings):
    """Bot設定クラス

    環境変数から設定を読み込み、型チェックとバリデーションを実行します。
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # === Twitch認証 ===
    twitch_user: str | None = None
    twitch_auth: str | None = None

    # === コマンド・チャンネル（カンマ区切り） ===
    command_name: str = "!gpt"
    channels: str = "kayotic_animal"

    # === 機能フラグ ===
    send_username: str = "true"
    enable_tts: str = "false"
    enable_channel_points: str = "false"
    channel_points_msg_ids: str = "highlighted-message"
    channel_points_reward_ids: str = ""

    @property
    def commands(self) -> list[str]:
        """トリガーキーワード（小文字化済み）"""
        return [command.lower() for command in _split_csv(self.command_name)]

    @property
    def channel_list(self) -> list[str]:
        """参加するチャンネル"""
        return _split_csv(self.channels)

    @property
    def send_username_enabled(self) -> bool:
        return _is_true(self.send_username)

    @property
    def tts_enabled(self) -> bool:
        return _is_true(self.enable_tts)

    @property
    def channel_points_enabled(self) -> bool:
        return _is_true(self.enable_channel_points)

    @property
    def redemption_msg_ids(self) -> frozenset[str]:
        """チャンネルポイント扱いにするmsg-idタグ"""
        return frozenset(_split_csv(self.channel_points_msg_ids))

    @property
    def redemption_reward_ids(self) -> frozenset[str]:
        """チャンネルポイント扱いにするcustom-reward-idタグ"""
        return frozenset(_split_csv(self.channel_points_reward_ids))

    # === ハードコード定数（環境変数不要） ===
    @property
    def max_length(self) -> int:
        """Twitchチャット1メッセージの最大文字数"""
        return 399

    @property
    def message_delay(self) -> float:
        """分割メッセージの送信間隔（秒）"""
        return 1.0

    def missing_credentials(self) -> list[ConfigurationError]:
        """未設定の必須認証情報を列挙する"""
        errors = []
        for variable, value in (
            ("TWITCH_USER", self.twitch_user),
            ("TWITCH_AUTH", self.twitch_auth),
        ):
            if not value:
                errors.append(ConfigurationError(
                    f"No {variable} found. Please set it as environment variable.",
                    details={"variable": variable}
                ))
        return errors


# グローバル設定インスタンス
_settings: BotSettings | None = None


def get_settings() -> BotSettings:
    """設定インスタンスを取得（シングルトン）"""
    global _settings
    if _settings is None:
        _settings = BotSettings()
    return _settings


def reload_settings() -> BotSettings:
    """設定を再読み込み（主にテスト用）"""
    global _settings
    _settings = BotSettings()
    return _settings
