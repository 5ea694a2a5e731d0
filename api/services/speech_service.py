"""音声合成サービス

応答テキストを音声に変換し、公開ディレクトリのファイルを上書きします。
ブラウザ側はWebSocketの更新通知を受けてこのファイルを再生します。
"""

import logging
from pathlib import Path

from api.config import APISettings
from api.exceptions import SpeechSynthesisError, UpstreamError
from api.llm_client import LLMClient

logger = logging.getLogger(__name__)


class SpeechService:
    """音声合成サービスクラス"""

    def __init__(self, settings: APISettings, llm_client: LLMClient) -> None:
        self.llm_client = llm_client
        self.model = settings.tts_model
        self.voice = settings.tts_voice
        self.output_path = Path(settings.public_dir) / settings.tts_filename

    async def synthesize(self, text: str) -> Path:
        """テキストを音声ファイルに変換する

        Args:
            text: 読み上げるテキスト

        Returns:
            書き込んだ音声ファイルのパス

        Raises:
            SpeechSynthesisError: 音声合成またはファイル書き込みに失敗した場合
        """
        logger.info(
            "Synthesizing speech",
            extra={"text_length": len(text), "voice": self.voice}
        )

        try:
            audio = await self.llm_client.create_speech(text, model=self.model, voice=self.voice)
        except UpstreamError as e:
            raise SpeechSynthesisError(
                f"Speech synthesis failed: {e.message}",
                details=e.details
            ) from e

        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.output_path.write_bytes(audio)
        except OSError as e:
            raise SpeechSynthesisError(
                "Failed to write synthesized audio",
                details={"path": str(self.output_path), "error": str(e)}
            ) from e

        logger.info(
            "Speech synthesized",
            extra={"path": str(self.output_path), "size": len(audio)}
        )
        return self.output_path
