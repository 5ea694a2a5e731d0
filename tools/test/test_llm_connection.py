#!/usr/bin/env python3
"""
補完API接続テストスクリプト
"""

import asyncio
import os
import sys
from dotenv import load_dotenv

# 環境変数を読み込み
load_dotenv()

# プロジェクトのルートをPYTHONPATHに追加
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from api.config import get_settings
from api.exceptions import ConfigurationError, UpstreamError
from api.llm_client import LLMClient
from api.services.completion_service import CompletionService


async def test_connection():
    """補完API接続テスト"""

    print("=" * 60)
    print("補完API 接続テスト")
    print("=" * 60)
    print()

    settings = get_settings()

    # 設定の確認
    print("📋 設定の確認:")
    print(f"  GPT_MODE: {settings.mode}")
    print(f"  OPENAI_API_URL: {settings.openai_api_url}")
    print(f"  MODEL_NAME: {settings.model_name}")
    print(f"  HISTORY_LENGTH: {settings.history_length}")

    # APIキーの確認（最初と最後の数文字のみ表示）
    if settings.openai_api_key:
        print(f"  OPENAI_API_KEY: {settings.masked_api_key}")
    else:
        print("  OPENAI_API_KEY: ❌ NOT SET")
        print()
        print("エラー: OPENAI_API_KEYが設定されていません。")
        print(".envファイルを確認してください。")
        return False

    print()

    try:
        print("🔧 補完サービスを初期化中...")
        service = CompletionService(
            settings=settings,
            llm_client=LLMClient.from_settings(settings),
            context=settings.load_context(),
        )
        print("✅ 初期化成功")
        print()

        # テストメッセージの送信
        print("📡 テストメッセージを送信中...")
        test_message = "This is a connection test. Reply with just 'OK'."
        response = await service.complete(test_message)

        print("✅ 接続成功！")
        print()
        print("📨 送信メッセージ:")
        print(f"  {test_message}")
        print()
        print("📬 受信レスポンス:")
        print(f"  {response}")
        print()
        print("=" * 60)
        print("✅ すべてのテストが正常に完了しました！")
        print("=" * 60)

        return True

    except ConfigurationError as e:
        print(f"❌ 設定エラー: {e.message}")
        print()
        print("💡 ヒント: GPT_MODE は CHAT または PROMPT を指定してください。")
        return False

    except UpstreamError as e:
        print(f"❌ 接続エラー: {e.message}")
        print()
        print("💡 考えられる原因:")
        print("  1. APIキーが無効または期限切れ")
        print("  2. API URLまたはモデル名が間違っている")
        print("  3. ネットワーク接続の問題")
        print("  4. プロバイダー側のサービス障害")
        return False


if __name__ == "__main__":
    success = asyncio.run(test_connection())
    sys.exit(0 if success else 1)
