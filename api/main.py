"""Twitch GPT Bot API

チャットと同じ補完パイプラインをHTTP経由で呼び出すエンドポイントと、
合成音声の更新をブラウザに通知するWebSocketを提供します。
"""

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from api.config import get_settings
from api.exceptions import ConfigurationError, UpstreamError
from api.llm_client import get_llm_client
from api.models.responses import HealthResponse
from api.notifier import UpdateNotifier
from api.services.completion_service import CompletionService

# ログ設定
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

ChatRelay = Callable[[str], Awaitable[Any]]

TEMPLATES_DIR = Path(__file__).parent / "templates"

# 設定読み込み
settings = get_settings()

# FastAPIアプリケーション初期化
app = FastAPI(
    title="Twitch GPT Bot API",
    description="API for relaying prompts to a language model and notifying TTS audio updates",
    version=settings.api_version,
)

# CORS設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 静的ファイル（合成音声の出力先）
app.mount(
    "/public",
    StaticFiles(directory=settings.public_dir, check_dir=False),
    name="public",
)

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


# === サービスの依存性注入 ===

# グローバルサービスインスタンス
_completion_service: Optional[CompletionService] = None
_update_notifier: Optional[UpdateNotifier] = None
_chat_relay: Optional[ChatRelay] = None


def get_completion_service() -> CompletionService:
    """CompletionServiceのシングルトンインスタンスを取得

    FastAPIの依存性注入で使用されます。
    """
    global _completion_service
    if _completion_service is None:
        _completion_service = CompletionService(
            settings=settings,
            llm_client=get_llm_client(),
            context=settings.load_context(),
        )
    return _completion_service


def get_update_notifier() -> UpdateNotifier:
    """UpdateNotifierのシングルトンインスタンスを取得"""
    global _update_notifier
    if _update_notifier is None:
        _update_notifier = UpdateNotifier()
    return _update_notifier


def get_chat_relay() -> Optional[ChatRelay]:
    """チャットへの中継関数を取得（Bot未起動の場合はNone）"""
    return _chat_relay


def bind_services(
    completion_service: CompletionService,
    update_notifier: UpdateNotifier,
    chat_relay: Optional[ChatRelay] = None,
) -> None:
    """Botと同じサービスインスタンスをAPIに登録する

    Botと同一プロセスで起動する場合に、会話履歴と通知先を共有するために使用します。
    """
    global _completion_service, _update_notifier, _chat_relay
    _completion_service = completion_service
    _update_notifier = update_notifier
    _chat_relay = chat_relay
    logger.info(
        "Services bound to API",
        extra={"chat_relay": chat_relay is not None}
    )


# === エンドポイント ===

@app.api_route("/", methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD"], response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    """ランディングページ

    合成音声のプレイヤーと更新通知の受信スクリプトを含むページを返します。
    """
    logger.info("Just got a request!")
    return templates.TemplateResponse(
        request,
        "pages/index.html",
        {"audio_url": f"/public/{settings.tts_filename}"},
    )


@app.get("/health")
async def health_check() -> HealthResponse:
    """ヘルスチェックエンドポイント"""
    return HealthResponse(
        status="ok",
        version=settings.api_version
    )


@app.get("/gpt/{text}", response_class=PlainTextResponse)
async def gpt(
    text: str,
    completion_service: CompletionService = Depends(get_completion_service),
    chat_relay: Optional[ChatRelay] = Depends(get_chat_relay),
) -> PlainTextResponse:
    """テキストを補完パイプラインに通し、応答全文を返す

    Botが接続されていれば、応答はチャットにも分割して送信されます。

    Args:
        text: 入力テキスト
        completion_service: 補完サービス（依存性注入）
        chat_relay: チャットへの中継関数（依存性注入）

    Returns:
        分割前の応答全文

    Raises:
        HTTPException: 補完失敗時
    """
    logger.info(
        "Received gpt request",
        extra={"text_length": len(text)}
    )

    try:
        answer = await completion_service.complete(text)

    except ConfigurationError as e:
        logger.error(
            "Completion misconfigured",
            extra={"error": str(e), "details": e.details}
        )
        raise HTTPException(status_code=500, detail=e.message) from e

    except UpstreamError as e:
        logger.error(
            "Upstream completion failed",
            extra={"error": str(e), "details": e.details},
            exc_info=True
        )
        raise HTTPException(status_code=502, detail=e.message) from e

    if chat_relay is not None:
        await chat_relay(answer)

    logger.info("gpt request completed", extra={"response_length": len(answer)})
    return PlainTextResponse(answer)


@app.websocket("/check-for-updates")
async def check_for_updates(websocket: WebSocket) -> None:
    """合成音声の更新通知を受け取るWebSocket

    クライアントからのメッセージは受信するが使用しません。
    """
    notifier = get_update_notifier()
    await websocket.accept()
    notifier.register(websocket)

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
    finally:
        notifier.unregister(websocket)


if __name__ == "__main__":
    import uvicorn

    logger.info(
        "Starting API server",
        extra={"host": settings.api_host, "port": settings.api_port}
    )

    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level="info",
    )
