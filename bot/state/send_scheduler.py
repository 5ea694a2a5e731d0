"""分割メッセージの送信スケジューラー

チャンネルごとに送信待ちのタスクを管理します。
接続が切れた場合は送信待ちのメッセージをキャンセルできます。
"""

import asyncio
import logging
from collections import defaultdict
from typing import Iterable

from bot.models import SendFunc

logger = logging.getLogger(__name__)


class SendScheduler:
    """送信スケジューラー

    i番目のチャンクを i * delay 秒後に送信するタスクを作成し、
    チャンネルID単位で保持します。送信順はタスク間の遅延で保証します。
    """

    def __init__(self, send: SendFunc, delay: float) -> None:
        """初期化

        Args:
            send: 送信関数 send(channel, text)
            delay: チャンク間の送信間隔（秒）
        """
        self._send = send
        self.delay = delay
        self._tasks: dict[str, set[asyncio.Task]] = defaultdict(set)

    def schedule(self, channel: str, chunks: Iterable[str]) -> list[asyncio.Task]:
        """チャンクの送信をスケジュールする

        Args:
            channel: 送信先チャンネル
            chunks: 送信するメッセージ（順番通り）

        Returns:
            作成したタスクのリスト
        """
        created = []
        for index, chunk in enumerate(chunks):
            task = asyncio.create_task(self._send_later(channel, chunk, index * self.delay))
            self._tasks[channel].add(task)
            task.add_done_callback(lambda t, c=channel: self._discard(c, t))
            created.append(task)

        logger.debug(
            "Scheduled message chunks",
            extra={"channel": channel, "chunk_count": len(created)}
        )
        return created

    async def _send_later(self, channel: str, text: str, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)

        logger.info(
            "Sending message part",
            extra={"channel": channel, "length": len(text)}
        )
        try:
            await self._send(channel, text)
        except Exception as e:
            logger.error(
                "Failed to send message part",
                extra={"channel": channel, "error": str(e)},
                exc_info=True,
            )

    def _discard(self, channel: str, task: asyncio.Task) -> None:
        tasks = self._tasks.get(channel)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._tasks[channel]

    def pending(self, channel: str) -> int:
        """送信待ちタスク数"""
        return sum(1 for task in self._tasks.get(channel, ()) if not task.done())

    def cancel(self, channel: str) -> int:
        """チャンネルの送信待ちをキャンセルする

        Returns:
            キャンセルしたタスク数
        """
        tasks = self._tasks.pop(channel, set())
        # 送信済みのタスクは数えない
        cancelled = sum(1 for task in tasks if task.cancel())

        if cancelled:
            logger.info(
                "Cancelled pending sends",
                extra={"channel": channel, "cancelled_count": cancelled}
            )
        return cancelled

    def cancel_all(self) -> int:
        """全チャンネルの送信待ちをキャンセルする"""
        return sum(self.cancel(channel) for channel in list(self._tasks))
