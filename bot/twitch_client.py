"""
Twitch チャット接続

twitchio のBotをラップし、接続・チャンネル参加・送信と、
受信メッセージのリスナーへの配信を担当します。
"""

import logging

from twitchio import Message
from twitchio.ext import commands

from bot.config import BotSettings
from bot.exceptions import BotError, ConnectorError
from bot.models import ChatEvent, MessageListener
from bot.state.send_scheduler import SendScheduler

logger = logging.getLogger(__name__)


def to_chat_event(message: Message) -> ChatEvent:
    """twitchioのメッセージをChatEventに変換する"""
    tags = message.tags or {}
    author = message.author
    return ChatEvent(
        channel=message.channel.name,
        username=author.name if author is not None else "",
        text=message.content or "",
        msg_id=tags.get("msg-id"),
        reward_id=tags.get("custom-reward-id"),
        echo=bool(message.echo),
    )


class TwitchBot(commands.Bot):
    """Twitch Bot

    責務:
    - Twitch IRC のライフサイクル管理
    - 受信メッセージのリスナーへの配信（ルーティングは行わない）
    - チャットへの送信と、送信待ちメッセージのキャンセル
    """

    def __init__(self, settings: BotSettings) -> None:
        super().__init__(
            token=settings.twitch_auth or "",
            prefix="!",
            initial_channels=settings.channel_list,
        )
        self.settings = settings
        self.scheduler = SendScheduler(self.say, settings.message_delay)
        self._listeners: list[MessageListener] = []

        logger.info(
            "TwitchBot initialized",
            extra={"user": settings.twitch_user, "channels": settings.channel_list}
        )

    def add_message_listener(self, listener: MessageListener) -> None:
        """受信メッセージのリスナーを登録する"""
        self._listeners.append(listener)

    async def say(self, channel: str, text: str) -> None:
        """チャンネルにメッセージを送信する

        Raises:
            ConnectorError: チャンネルに参加していない場合、または送信に失敗した場合
        """
        target = self.get_channel(channel)
        if target is None:
            raise ConnectorError(
                "Channel is not joined",
                details={"channel": channel}
            )

        try:
            await target.send(text)
        except Exception as e:
            raise ConnectorError(
                "Failed to send chat message",
                details={"channel": channel, "error": str(e)}
            ) from e

    async def event_ready(self) -> None:
        """接続完了時の処理"""
        logger.info(
            "Connected to Twitch",
            extra={"nick": self.nick, "channels": self.settings.channel_list}
        )

        for channel in self.settings.channel_list:
            logger.info("Joining channel", extra={"channel": channel})
            try:
                await self.say(
                    channel,
                    f"Hello {channel}! I am {self.settings.twitch_user}, here to assist!",
                )
            except ConnectorError as e:
                logger.warning(
                    "Could not greet channel",
                    extra={"channel": channel, "error": e.message}
                )

    async def event_message(self, message: Message) -> None:
        """メッセージ受信時の処理 - リスナーへの配信のみ"""
        # 自分のメッセージは無視
        if message.echo:
            return

        event = to_chat_event(message)
        logger.info(
            "Received message",
            extra={"channel": event["channel"], "username": event["username"]}
        )

        for listener in list(self._listeners):
            try:
                await listener(event)
            except BotError as e:
                logger.error(
                    "Error handling message",
                    extra={"channel": event["channel"], "error": e.message, "details": e.details},
                    exc_info=True,
                )
            except Exception as e:
                logger.error(
                    "Unexpected error in message listener",
                    extra={"channel": event["channel"], "error": str(e)},
                    exc_info=True,
                )

    async def event_reconnect(self) -> None:
        """Twitchからの再接続要求時の処理"""
        cancelled = self.scheduler.cancel_all()
        logger.warning(
            "Twitch requested reconnect",
            extra={"cancelled_sends": cancelled}
        )

    async def event_error(self, error: Exception, data: str | None = None) -> None:
        """接続エラー時の処理（ログのみ）"""
        logger.error(
            "Twitch connection error",
            extra={"error": str(error), "data": data},
            exc_info=error,
        )

    async def close(self) -> None:
        """切断処理

        送信待ちのメッセージをキャンセルしてから接続を閉じます。
        """
        cancelled = self.scheduler.cancel_all()
        logger.info("Disconnecting from Twitch", extra={"cancelled_sends": cancelled})
        await super().close()
