"""会話履歴管理

CHATモードで補完APIに送る、上限付きのローリング履歴を管理します。
"""

import logging

from api.models.messages import ConversationMessage

logger = logging.getLogger(__name__)


class ConversationHistory:
    """上限付きの会話履歴

    システムメッセージは常に先頭に保持し、ユーザー/アシスタントの
    やり取りは最大 history_length 往復（2 * history_length 件）まで保持します。
    上限を超えた場合は古いものから削除します。
    """

    def __init__(self, system_context: str, history_length: int) -> None:
        """初期化

        Args:
            system_context: システムメッセージの内容
            history_length: 保持するやり取りの往復数
        """
        if history_length < 0:
            raise ValueError("history_length must not be negative")

        self.system_message: ConversationMessage = {
            "role": "system",
            "content": system_context,
        }
        self.history_length = history_length
        self._messages: list[ConversationMessage] = []

    @property
    def max_messages(self) -> int:
        """システムメッセージを除いた最大保持件数"""
        return self.history_length * 2

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, role: str, content: str) -> None:
        """履歴にメッセージを追加し、上限を超えた分を削除する

        Args:
            role: メッセージの役割（"user" or "assistant"）
            content: メッセージ内容
        """
        self._messages.append({"role": role, "content": content})
        self._trim()

    def _trim(self) -> None:
        overflow = len(self._messages) - self.max_messages
        if overflow > 0:
            del self._messages[:overflow]
            logger.debug(
                "Trimmed conversation history",
                extra={
                    "removed_count": overflow,
                    "new_length": len(self._messages),
                }
            )

    def to_messages(self) -> list[ConversationMessage]:
        """API送信用のメッセージ列（システムメッセージ + 履歴）"""
        return [dict(self.system_message), *(dict(m) for m in self._messages)]

    def snapshot(self) -> list[ConversationMessage]:
        """システムメッセージを除いた履歴のコピー"""
        return [dict(m) for m in self._messages]

    def clear(self) -> None:
        """履歴をクリア（システムメッセージは保持）"""
        cleared_count = len(self._messages)
        self._messages.clear()
        logger.info(
            "Conversation history cleared",
            extra={"cleared_count": cleared_count}
        )
