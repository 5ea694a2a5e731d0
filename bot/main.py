"""
Twitch GPT Bot メインファイル

Twitch Bot と HTTP API を同一のイベントループで起動します。
"""

import asyncio
import logging
from typing import Optional

import uvicorn
from dotenv import load_dotenv

from api.config import APISettings
from api.config import get_settings as get_api_settings
from api.llm_client import LLMClient
from api.notifier import UpdateNotifier
from api.services.completion_service import CompletionService
from api.services.speech_service import SpeechService
from bot.config import BotSettings
from bot.config import get_settings as get_bot_settings
from bot.handlers import CommandRouter
from bot.twitch_client import TwitchBot

# ロガー設定
logger = logging.getLogger(__name__)

# 環境変数の読み込み
load_dotenv()


def log_configuration(api_settings: APISettings, bot_settings: BotSettings) -> bool:
    """設定内容と未設定の認証情報をログに出力する

    認証情報が欠けていても処理は継続します。

    Returns:
        Twitchに接続できる認証情報が揃っている場合はTrue
    """
    logger.info(
        "Configuration loaded",
        extra={
            "gpt_mode": api_settings.mode,
            "history_length": api_settings.history_length,
            "model_name": api_settings.model_name,
            "openai_api_key": api_settings.masked_api_key,
            "channels": bot_settings.channel_list,
            "commands": bot_settings.commands,
        }
    )

    errors = api_settings.missing_credentials() + bot_settings.missing_credentials()
    for error in errors:
        logger.error(error.message, extra=error.details)

    return bool(bot_settings.twitch_user and bot_settings.twitch_auth)


def build_bot(
    api_settings: APISettings,
    bot_settings: BotSettings,
    completion_service: CompletionService,
    llm_client: LLMClient,
    update_notifier: UpdateNotifier,
) -> tuple[TwitchBot, CommandRouter]:
    """Twitch Bot とルーターを組み立てる"""
    twitch_bot = TwitchBot(bot_settings)

    speech_service: Optional[SpeechService] = None
    if bot_settings.tts_enabled:
        speech_service = SpeechService(api_settings, llm_client)

    router = CommandRouter(
        settings=bot_settings,
        completion_service=completion_service,
        scheduler=twitch_bot.scheduler,
        speech_service=speech_service,
        update_notifier=update_notifier,
    )
    twitch_bot.add_message_listener(router.handle)
    return twitch_bot, router


async def _run_bot(twitch_bot: TwitchBot) -> None:
    try:
        await twitch_bot.start()
    except Exception as e:
        # 接続できなくてもHTTP APIは動かし続ける
        logger.error(
            "Bot couldn't connect!",
            extra={"error": str(e)},
            exc_info=True,
        )


async def run(api_settings: APISettings, bot_settings: BotSettings) -> None:
    """Bot と HTTP API を起動し、終了まで待機する"""
    from api.main import app, bind_services

    can_connect = log_configuration(api_settings, bot_settings)

    llm_client = LLMClient.from_settings(api_settings)
    completion_service = CompletionService(
        settings=api_settings,
        llm_client=llm_client,
        context=api_settings.load_context(),
    )
    update_notifier = UpdateNotifier()

    twitch_bot: Optional[TwitchBot] = None
    router: Optional[CommandRouter] = None
    if can_connect:
        twitch_bot, router = build_bot(
            api_settings, bot_settings, completion_service, llm_client, update_notifier
        )
    else:
        logger.warning("Twitch credentials missing, running HTTP API only")

    bind_services(
        completion_service,
        update_notifier,
        chat_relay=router.broadcast_response if router is not None else None,
    )

    server = uvicorn.Server(uvicorn.Config(
        app,
        host=api_settings.api_host,
        port=api_settings.api_port,
        log_level="info",
    ))

    logger.info(
        "Starting API server",
        extra={"host": api_settings.api_host, "port": api_settings.api_port}
    )

    jobs = [server.serve()]
    if twitch_bot is not None:
        jobs.append(_run_bot(twitch_bot))

    try:
        await asyncio.gather(*jobs)
    finally:
        if twitch_bot is not None:
            try:
                await twitch_bot.close()
            except Exception as e:
                logger.warning(
                    "Error while disconnecting from Twitch",
                    extra={"error": str(e)}
                )


def main() -> None:
    """
    メインエントリーポイント：Twitch Bot と HTTP API を起動する

    認証情報が無い場合はエラーをログに出力し、HTTP APIのみで起動する。
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger.info("Starting Twitch GPT Bot")

    try:
        asyncio.run(run(get_api_settings(), get_bot_settings()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
