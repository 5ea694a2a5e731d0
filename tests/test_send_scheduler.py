"""送信スケジューラーのテスト"""

import asyncio

from bot.state.send_scheduler import SendScheduler


class Recorder:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def __call__(self, channel: str, text: str) -> None:
        self.sent.append((channel, text))


async def test_chunks_are_sent_in_order():
    recorder = Recorder()
    scheduler = SendScheduler(recorder, delay=0.01)

    tasks = scheduler.schedule("streamer", ["one", "two", "three"])
    await asyncio.gather(*tasks)

    assert recorder.sent == [("streamer", "one"), ("streamer", "two"), ("streamer", "three")]
    assert scheduler.pending("streamer") == 0


async def test_each_chunk_waits_index_times_delay():
    delays = []

    class RecordingScheduler(SendScheduler):
        async def _send_later(self, channel, text, delay):
            delays.append(delay)

    scheduler = RecordingScheduler(Recorder(), delay=1.0)
    await asyncio.gather(*scheduler.schedule("streamer", ["a", "b", "c"]))

    assert delays == [0.0, 1.0, 2.0]


async def test_cancel_drops_pending_sends():
    recorder = Recorder()
    scheduler = SendScheduler(recorder, delay=10.0)

    tasks = scheduler.schedule("streamer", ["first", "second", "third"])
    await asyncio.sleep(0)
    assert recorder.sent == [("streamer", "first")]

    cancelled = scheduler.cancel("streamer")
    await asyncio.gather(*tasks, return_exceptions=True)

    assert cancelled == 2
    assert recorder.sent == [("streamer", "first")]
    assert scheduler.pending("streamer") == 0


async def test_cancel_all_covers_every_channel():
    scheduler = SendScheduler(Recorder(), delay=10.0)
    scheduler.schedule("a", ["1", "2"])
    scheduler.schedule("b", ["1", "2"])
    await asyncio.sleep(0)

    assert scheduler.cancel_all() == 2
    assert scheduler.pending("a") == 0
    assert scheduler.pending("b") == 0


async def test_send_failure_is_logged_not_raised(caplog):
    async def failing_send(channel, text):
        raise RuntimeError("socket closed")

    scheduler = SendScheduler(failing_send, delay=0.0)
    results = await asyncio.gather(*scheduler.schedule("streamer", ["hello"]))

    assert results == [None]
    assert "Failed to send message part" in caplog.text


async def test_pending_excludes_chunks_already_sent():
    recorder = Recorder()
    scheduler = SendScheduler(recorder, delay=10.0)

    tasks = scheduler.schedule("streamer", ["first", "second"])
    await asyncio.sleep(0)

    assert tasks[0].done()
    assert recorder.sent == [("streamer", "first")]
    assert scheduler.pending("streamer") == 1

    scheduler.cancel("streamer")
    await asyncio.gather(*tasks, return_exceptions=True)
