"""テスト共通フィクスチャ"""

import json
from typing import Callable

import httpx
import pytest

from api.config import APISettings
from api.llm_client import LLMClient
from bot.config import BotSettings
from bot.models import ChatEvent


def make_api_settings(**overrides) -> APISettings:
    values = {
        "gpt_mode": "CHAT",
        "history_length": 2,
        "openai_api_key": "sk-test-key-1234",
        "openai_api_url": "https://llm.test/v1",
        "model_name": "gpt-test",
    }
    values.update(overrides)
    return APISettings(_env_file=None, **values)


def make_bot_settings(**overrides) -> BotSettings:
    values = {
        "twitch_user": "gptbot",
        "twitch_auth": "oauth:abc",
        "command_name": "!gpt",
        "channels": "streamer",
        "send_username": "true",
        "enable_tts": "false",
        "enable_channel_points": "false",
    }
    values.update(overrides)
    return BotSettings(_env_file=None, **values)


def make_event(text: str, **overrides) -> ChatEvent:
    event = ChatEvent(
        channel="streamer",
        username="viewer",
        text=text,
        msg_id=None,
        reward_id=None,
        echo=False,
    )
    event.update(overrides)
    return event


class FakeLLMAPI:
    """OpenAI互換APIのモック（httpx.MockTransport用）"""

    def __init__(self, answer: str = "Hi there!", status_code: int = 200) -> None:
        self.answer = answer
        self.status_code = status_code
        self.requests: list[dict] = []
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        body = json.loads(request.content)
        self.requests.append(body)

        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "nope"})

        if request.url.path.endswith("/chat/completions"):
            return httpx.Response(200, json={
                "choices": [{"message": {"role": "assistant", "content": self.answer}}]
            })
        if request.url.path.endswith("/completions"):
            return httpx.Response(200, json={"choices": [{"text": self.answer}]})
        if request.url.path.endswith("/audio/speech"):
            return httpx.Response(200, content=b"ID3-fake-mp3")
        return httpx.Response(404)


@pytest.fixture
def fake_api() -> FakeLLMAPI:
    return FakeLLMAPI()


@pytest.fixture
def make_llm_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], LLMClient]:
    def factory(handler) -> LLMClient:
        return LLMClient(
            api_key="sk-test-key-1234",
            api_url="https://llm.test/v1",
            model="gpt-test",
            transport=httpx.MockTransport(handler),
        )
    return factory


@pytest.fixture
def llm_client(make_llm_client, fake_api) -> LLMClient:
    return make_llm_client(fake_api)


class FakeCompletionService:
    """補完サービスのスタブ"""

    def __init__(self, answer: str = "Hello!", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.calls: list[str] = []

    async def complete(self, text: str) -> str:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.answer
