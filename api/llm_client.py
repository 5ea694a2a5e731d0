"""
LLM (Large Language Model) API クライアント

OpenAI互換のAPIエンドポイントと通信するクライアント。
チャット補完・テキスト補完・音声合成の3種類のエンドポイントに対応。
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from api.config import APISettings, get_settings
from api.exceptions import (
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)


class LLMClient:
    """LLM API とのやり取りを行うクライアント"""

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str,
        model: str,
        timeout: float = 30.0,
        extra_headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            api_key: APIキー（未設定でも初期化はできるが、呼び出しは上流で失敗する）
            api_url: APIのベースURL（例: https://api.openai.com/v1）
            model: 使用するモデル名
            timeout: リクエストタイムアウト秒数
            extra_headers: 追加のHTTPヘッダー
            transport: httpxのトランスポート（テスト時にモックを差し込む）
        """
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.extra_headers = extra_headers or {}
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: APISettings) -> "LLMClient":
        """設定からクライアントを生成"""
        return cls(
            api_key=settings.openai_api_key,
            api_url=settings.openai_api_url,
            model=settings.model_name,
            timeout=settings.api_timeout,
        )

    def _build_headers(self) -> Dict[str, str]:
        """APIリクエスト用のヘッダーを構築"""
        headers = {
            "Authorization": f"Bearer {self.api_key or ''}",
            "Content-Type": "application/json",
        }

        # 追加ヘッダーをマージ
        if self.extra_headers:
            headers.update(self.extra_headers)

        return headers

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> httpx.Response:
        """共通POSTメソッド

        HTTPエラーを UpstreamError 系の例外に変換します。
        APIキーなどの機密情報はエラーメッセージに含めません。
        """
        url = f"{self.api_url}{endpoint}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, headers=self._build_headers(), json=payload)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                logger.error(
                    "LLM API returned error status",
                    extra={"endpoint": endpoint, "status_code": status_code}
                )
                if status_code == 429:
                    raise UpstreamRateLimitError(
                        "LLM service rate limit exceeded",
                        details={"endpoint": endpoint, "status_code": status_code}
                    ) from e
                raise UpstreamError(
                    f"LLM service error: {status_code}",
                    details={"endpoint": endpoint, "status_code": status_code}
                ) from e

            except httpx.TimeoutException as e:
                raise UpstreamTimeoutError(
                    "LLM service request timed out",
                    details={"endpoint": endpoint, "timeout": self.timeout}
                ) from e

            except httpx.RequestError as e:
                raise UpstreamError(
                    "Failed to connect to LLM service",
                    details={"endpoint": endpoint, "error": str(e)}
                ) from e

    @staticmethod
    def _parse_json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("Invalid JSON from LLM service") from e
        if not isinstance(data, dict):
            raise UpstreamError("Invalid response structure from LLM service")
        return data

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 1.0,
        max_tokens: int = 256,
        top_p: float = 1.0,
        frequency_penalty: float = 0.0,
        presence_penalty: float = 0.0,
    ) -> str:
        """
        チャット補完APIを呼び出す

        Args:
            messages: メッセージのリスト [{"role": "user/assistant/system", "content": "..."}]
            temperature: 生成のランダム性 (0.0-2.0)
            max_tokens: 最大生成トークン数
            top_p: nucleus sampling (0.0-1.0)
            frequency_penalty: 同じ単語の繰り返しペナルティ (-2.0〜2.0)
            presence_penalty: 新しいトピックへの誘導 (-2.0〜2.0)

        Returns:
            生成されたテキスト

        Raises:
            UpstreamError: API呼び出しに失敗した場合、またはレスポンスが不正な場合
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": top_p,
            "frequency_penalty": frequency_penalty,
            "presence_penalty": presence_penalty,
        }

        response = await self._post("/chat/completions", payload)
        data = self._parse_json(response)

        # レスポンス構造のバリデーション
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError(
                "Invalid response structure from LLM service",
                details={"endpoint": "/chat/completions"}
            ) from e

    async def text_completion(
        self,
        prompt: str,
        temperature: float = 1.0,
        max_tokens: int = 256,
        top_p: float = 1.0,
        frequency_penalty: float = 0.0,
        presence_penalty: float = 0.0,
    ) -> str:
        """
        テキスト補完API（単一プロンプト）を呼び出す

        Args:
            prompt: 送信するプロンプト全文

        Returns:
            生成されたテキスト（加工なし）

        Raises:
            UpstreamError: API呼び出しに失敗した場合、またはレスポンスが不正な場合
        """
        payload = {
            "model": self.model,
            "prompt": prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": top_p,
            "frequency_penalty": frequency_penalty,
            "presence_penalty": presence_penalty,
        }

        response = await self._post("/completions", payload)
        data = self._parse_json(response)

        try:
            return data["choices"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError(
                "Invalid response structure from LLM service",
                details={"endpoint": "/completions"}
            ) from e

    async def create_speech(self, text: str, model: str, voice: str) -> bytes:
        """
        音声合成APIを呼び出す

        Args:
            text: 読み上げるテキスト
            model: TTSモデル名
            voice: 声の種類

        Returns:
            音声データ（mp3）

        Raises:
            UpstreamError: API呼び出しに失敗した場合
        """
        payload = {"model": model, "voice": voice, "input": text}
        response = await self._post("/audio/speech", payload)
        return response.content


# グローバルなLLMクライアントインスタンス
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """
    グローバルなLLMクライアントインスタンスを取得
    （シングルトンパターン）
    """
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient.from_settings(get_settings())
    return _llm_client
