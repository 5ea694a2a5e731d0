"""音声更新通知

WebSocketで接続しているブラウザに、合成音声の更新を通知します。
"""

import json
import logging

from fastapi import WebSocket

from api.models.responses import UpdateNotification

logger = logging.getLogger(__name__)


class UpdateNotifier:
    """接続中のWebSocketクライアントを管理し、更新通知をブロードキャストする"""

    def __init__(self) -> None:
        self._clients: list[WebSocket] = []

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def register(self, websocket: WebSocket) -> None:
        self._clients.append(websocket)
        logger.info(
            "WebSocket client connected",
            extra={"total_clients": len(self._clients)}
        )

    def unregister(self, websocket: WebSocket) -> None:
        if websocket in self._clients:
            self._clients.remove(websocket)
        logger.info(
            "WebSocket client removed",
            extra={"total_clients": len(self._clients)}
        )

    async def notify_file_change(self) -> int:
        """全クライアントに {"updated": true} を送信する

        Returns:
            送信に成功したクライアント数
        """
        if not self._clients:
            return 0

        notification: UpdateNotification = {"updated": True}
        message = json.dumps(notification)
        disconnected: list[WebSocket] = []
        delivered = 0

        for client in list(self._clients):
            try:
                await client.send_text(message)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "Failed to notify WebSocket client",
                    extra={"error": str(e)}
                )
                disconnected.append(client)

        # 切断済みのクライアントを削除
        for client in disconnected:
            self.unregister(client)

        return delivered
