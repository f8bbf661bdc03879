from unittest.mock import MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from eatery.services.event_guard import EventGuard


def make_guard(client):
    return EventGuard(client=client, ttl=60)


def test_already_processed_reads_marker():
    client = MagicMock()
    client.exists.return_value = 1

    assert make_guard(client).already_processed("evt_1") is True
    client.exists.assert_called_once_with("payment-event:evt_1:processed")


def test_remember_sets_marker_once_with_ttl():
    client = MagicMock()
    client.set.return_value = True

    assert make_guard(client).remember("evt_1") is True
    client.set.assert_called_once_with(name="payment-event:evt_1:processed", value="1", nx=True, ex=60)


def test_remember_returns_false_when_marker_exists():
    client = MagicMock()
    client.set.return_value = None

    assert make_guard(client).remember("evt_1") is False


def test_redis_outage_does_not_block_processing():
    client = MagicMock()
    client.exists.side_effect = RedisConnectionError("redis down")
    client.set.side_effect = RedisConnectionError("redis down")
    guard = make_guard(client)

    assert guard.already_processed("evt_1") is False
    assert guard.remember("evt_1") is False
    assert client.exists.call_count == 3
