import json
from datetime import datetime, timezone

import pytest

from moviestream.analytics import KafkaStreamEvents, StreamAnalytics


class FakeProducer:
    def __init__(self):
        self.sent = []

    async def send_and_wait(self, topic, value=None, key=None):
        self.sent.append((topic, json.loads(value), key))

    async def stop(self):
        pass


class FailingAnalytics(StreamAnalytics):
    backend = "failing"

    async def _record(self, movie_id):
        raise RuntimeError("sink is down")


@pytest.mark.asyncio
async def test_kafka_event_has_utc_timestamp():
    events = KafkaStreamEvents("localhost:9092", "stream_events", environment="test")
    producer = FakeProducer()
    events.producer = producer

    events.record_stream_start("42")
    await events.stop()

    topic, payload, key = producer.sent[0]
    assert topic == "stream_events"
    assert key == b"42"
    assert payload["type"] == "stream_started"
    assert payload["data"] == {"movie_id": "42"}
    assert payload["_metadata"]["environment"] == "test"

    timestamp = datetime.fromisoformat(payload["_metadata"]["timestamp"])
    assert timestamp.tzinfo is not None
    assert timestamp.utcoffset() == timezone.utc.utcoffset(None)


@pytest.mark.asyncio
async def test_failed_recording_does_not_raise():
    analytics = FailingAnalytics()

    analytics.record_stream_start("1")
    await analytics.stop()

    assert analytics._tasks == set()
