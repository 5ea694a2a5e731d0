"""コマンドルーター

チャットメッセージがトリガーキーワードまたはチャンネルポイントの
引き換えに該当するかを判定し、補完APIの応答をチャットへ分割送信します。
"""

import logging
import math
from typing import Optional

from api.exceptions import ConfigurationError, UpstreamError
from api.notifier import UpdateNotifier
from api.services.completion_service import CompletionService
from api.services.speech_service import SpeechService
from bot.config import BotSettings
from bot.exceptions import MessageHandlingError
from bot.models import ChatEvent
from bot.state.send_scheduler import SendScheduler

logger = logging.getLogger(__name__)


def split_response(text: str, limit: int) -> list[str]:
    """応答を最大文字数ごとに分割する

    単語境界は考慮せず、文字数のみで切り分けます。
    チャンク数は ceil(len(text) / limit) になります。

    Args:
        text: 応答テキスト
        limit: 1メッセージの最大文字数

    Returns:
        分割したメッセージのリスト（空文字列の場合は空リスト）
    """
    if limit <= 0:
        raise ValueError("limit must be positive")

    chunk_count = math.ceil(len(text) / limit)
    return [text[i * limit:(i + 1) * limit] for i in range(chunk_count)]


class CommandRouter:
    """コマンドルーター

    責務:
    - 自分の発言の除外
    - チャンネルポイント引き換え・トリガーキーワードの判定
    - 補完サービスの呼び出し
    - 応答の分割送信と音声合成
    """

    def __init__(
        self,
        settings: BotSettings,
        completion_service: CompletionService,
        scheduler: SendScheduler,
        speech_service: Optional[SpeechService] = None,
        update_notifier: Optional[UpdateNotifier] = None,
    ) -> None:
        """初期化

        Args:
            settings: Bot設定
            completion_service: 補完サービス
            scheduler: 分割メッセージの送信スケジューラー
            speech_service: 音声合成サービス（TTS無効時はNone）
            update_notifier: 音声更新の通知先
        """
        self.settings = settings
        self.completion_service = completion_service
        self.scheduler = scheduler
        self.speech_service = speech_service
        self.update_notifier = update_notifier

        # 長いトリガーを優先して照合する（"!gpt4" と "!gpt" の両方がある場合など）
        self._commands = sorted(settings.commands, key=len, reverse=True)

        logger.info(
            "CommandRouter initialized",
            extra={
                "commands": self._commands,
                "send_username": settings.send_username_enabled,
                "channel_points": settings.channel_points_enabled,
                "tts": settings.tts_enabled,
            }
        )

    def match_command(self, text: str) -> Optional[str]:
        """メッセージの先頭に一致したトリガーキーワードを返す"""
        lowered = text.lower()
        for command in self._commands:
            if lowered.startswith(command):
                return command
        return None

    def is_redemption(self, event: ChatEvent) -> bool:
        """チャンネルポイントの引き換えメッセージかを判定する"""
        if not self.settings.channel_points_enabled:
            return False
        msg_id = event.get("msg_id")
        reward_id = event.get("reward_id")
        return (
            (msg_id is not None and msg_id in self.settings.redemption_msg_ids)
            or (reward_id is not None and reward_id in self.settings.redemption_reward_ids)
        )

    def extract_input(self, event: ChatEvent) -> Optional[str]:
        """イベントから補完APIへの入力を取り出す

        Returns:
            入力テキスト（処理対象外のイベントはNone）
        """
        if event["echo"]:
            return None

        text = event["text"]

        if self.is_redemption(event):
            logger.info(
                "Channel point redemption recognized",
                extra={"channel": event["channel"], "msg_id": event.get("msg_id")}
            )
            return text

        command = self.match_command(text)
        if command is None:
            return None

        logger.info(
            "Command recognized",
            extra={"channel": event["channel"], "command": command}
        )
        content = text[len(command):].strip()

        if self.settings.send_username_enabled:
            content = f"Message from user {event['username']}: {content}"

        return content

    async def handle(self, event: ChatEvent) -> Optional[str]:
        """チャットメッセージを処理する

        Args:
            event: 受信したチャットメッセージ

        Returns:
            送信した応答（処理対象外、または補完に失敗した場合はNone）

        Raises:
            MessageHandlingError: 想定外のエラーが発生した場合
        """
        content = self.extract_input(event)
        if content is None:
            return None

        channel = event["channel"]

        try:
            response = await self.completion_service.complete(content)
        except (UpstreamError, ConfigurationError) as e:
            # チャットには何も返さない
            logger.error(
                "Completion failed, no response sent",
                extra={"channel": channel, "error": str(e)}
            )
            return None
        except Exception as e:
            raise MessageHandlingError(
                "Unexpected error while generating response",
                details={"channel": channel}
            ) from e

        logger.info(
            "Responding",
            extra={"channel": channel, "response_length": len(response)}
        )
        self.dispatch(channel, response)

        if self.settings.tts_enabled:
            await self.speak(response)

        return response

    def dispatch(self, channel: str, response: str) -> int:
        """応答を分割してチャンネルへの送信をスケジュールする

        Returns:
            送信予定のメッセージ数
        """
        chunks = split_response(response, self.settings.max_length)
        self.scheduler.schedule(channel, chunks)
        return len(chunks)

    async def broadcast_response(self, response: str) -> int:
        """参加中の全チャンネルに応答を分割送信する（HTTP経由の応答用）

        Returns:
            送信予定のメッセージ数（全チャンネル合計）
        """
        return sum(
            self.dispatch(channel, response)
            for channel in self.settings.channel_list
        )

    async def speak(self, response: str) -> None:
        """応答を音声合成し、ブラウザに更新を通知する"""
        if self.speech_service is None:
            logger.warning("TTS is enabled but no speech service is configured")
            return

        try:
            await self.speech_service.synthesize(response)
        except UpstreamError as e:
            logger.error(
                "Speech synthesis failed",
                extra={"error": str(e), "details": e.details}
            )
            return

        if self.update_notifier is not None:
            await self.update_notifier.notify_file_change()
