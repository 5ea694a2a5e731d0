"""補完サービス

GPT_MODE に応じて、会話履歴付きのチャット補完か、
コンテキストを前置した単一プロンプトのテキスト補完を行います。
チャット経由・HTTP経由のどちらからも同じロジックで呼び出されます。
"""

import asyncio
import logging

from api.config import APISettings
from api.exceptions import ConfigurationError, UpstreamError
from api.llm_client import LLMClient
from api.models.messages import ConversationMessage
from api.services.conversation_history import ConversationHistory

logger = logging.getLogger(__name__)

CHAT_MODE = "CHAT"
PROMPT_MODE = "PROMPT"


def build_prompt(context: str, text: str) -> str:
    """PROMPTモードで送信するプロンプトを組み立てる"""
    return f"{context}\n\nUser: {text}\nAgent:"


class CompletionService:
    """補完サービスクラス

    会話履歴はこのインスタンスが専有し、呼び出しはロックで直列化します。
    同時に複数の補完が走っても履歴の追加順が入れ替わることはありません。
    """

    def __init__(
        self,
        settings: APISettings,
        llm_client: LLMClient,
        context: str,
    ) -> None:
        """初期化

        Args:
            settings: API設定
            llm_client: LLMクライアント
            context: コンテキストファイルの内容
        """
        self.settings = settings
        self.llm_client = llm_client
        self.context = context
        self.mode = settings.mode
        self.history = ConversationHistory(context, settings.history_length)
        self._lock = asyncio.Lock()

        logger.info(
            "CompletionService initialized",
            extra={
                "mode": self.mode,
                "history_length": settings.history_length,
                "model": llm_client.model,
            }
        )

    async def complete(self, text: str) -> str:
        """入力テキストに対する応答を生成する

        Args:
            text: 補完APIに渡す入力

        Returns:
            生成された応答

        Raises:
            ConfigurationError: GPT_MODE が CHAT / PROMPT 以外の場合
            UpstreamError: 補完APIの呼び出しに失敗した場合
        """
        if self.mode == CHAT_MODE:
            return await self._complete_chat(text)
        if self.mode == PROMPT_MODE:
            return await self._complete_prompt(text)

        raise ConfigurationError(
            "GPT_MODE is not set to CHAT or PROMPT. Please set it as environment variable.",
            details={"mode": self.mode}
        )

    async def _complete_chat(self, text: str) -> str:
        async with self._lock:
            user_message: ConversationMessage = {"role": "user", "content": text}
            messages = [*self.history.to_messages(), user_message]

            logger.info(
                "Requesting chat completion",
                extra={"input_length": len(text), "message_count": len(messages)}
            )

            try:
                answer = await self.llm_client.chat_completion(messages)
            except UpstreamError as e:
                logger.error(
                    "Chat completion failed",
                    extra={"error": str(e), "details": e.details}
                )
                raise

            # 成功した場合のみ履歴に残す
            self.history.append("user", text)
            self.history.append("assistant", answer)

            logger.info(
                "Chat completion received",
                extra={"response_length": len(answer), "history_length": len(self.history)}
            )
            return answer

    async def _complete_prompt(self, text: str) -> str:
        prompt = build_prompt(self.context, text)

        logger.info(
            "Requesting text completion",
            extra={"prompt_length": len(prompt)}
        )

        try:
            answer = await self.llm_client.text_completion(prompt)
        except UpstreamError as e:
            logger.error(
                "Text completion failed",
                extra={"error": str(e), "details": e.details}
            )
            raise

        logger.info(
            "Text completion received",
            extra={"response_length": len(answer)}
        )
        return answer

    def reset(self) -> None:
        """会話履歴をリセット（システムメッセージは保持）"""
        self.history.clear()
