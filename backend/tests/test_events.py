"""
Tests for Redis event routing and publishing.
"""

import json
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from shared.infrastructure.events import (
    ORDER_CREATED,
    ORDER_DELIVERED,
    ORDER_RIDER_ASSIGNED,
    ORDER_RIDER_SEARCH,
    WALLET_RECHARGE_REQUESTED,
    WALLET_RECHARGE_RESOLVED,
    Event,
    order_channels,
    publish_event,
    publish_order_event,
    publish_restaurant_suspended,
    publish_wallet_event,
)
from shared.infrastructure.events import circuit_breaker as breaker_module
from shared.infrastructure.events.circuit_breaker import EventCircuitBreaker


@pytest.fixture(autouse=True)
def fresh_breaker(monkeypatch):
    monkeypatch.setattr(breaker_module, "_event_circuit_breaker", EventCircuitBreaker(failure_threshold=2))


@pytest.fixture
def redis_client():
    client = AsyncMock()
    client.publish.return_value = 1
    return client


def _channels(redis_client) -> list[str]:
    return [call.args[0] for call in redis_client.publish.call_args_list]


class TestOrderChannels:
    def test_new_order_goes_to_restaurant_and_customer(self):
        event = Event(type=ORDER_CREATED, restaurant_id=3, order_id=9, customer_id=5)

        assert order_channels(event) == ["restaurant:3:orders", "customer:5"]

    def test_rider_search_reaches_rider_feed(self):
        event = Event(type=ORDER_RIDER_SEARCH, restaurant_id=3, order_id=9, customer_id=5)

        assert "riders:available" in order_channels(event)

    def test_assignment_notifies_feed_and_rider(self):
        event = Event(type=ORDER_RIDER_ASSIGNED, restaurant_id=3, order_id=9, customer_id=5, rider_id=7)

        channels = order_channels(event)

        assert "riders:available" in channels
        assert "rider:7" in channels

    def test_delivery_only_direct_to_rider(self):
        event = Event(type=ORDER_DELIVERED, restaurant_id=3, order_id=9, customer_id=5, rider_id=7)

        channels = order_channels(event)

        assert "rider:7" in channels
        assert "riders:available" not in channels


class TestEventSchema:
    def test_rejects_non_positive_ids(self):
        with pytest.raises(ValueError):
            Event(type=ORDER_CREATED, restaurant_id=0)

    def test_json_has_timestamp(self):
        data = json.loads(Event(type=ORDER_CREATED, restaurant_id=1).to_json())

        assert data["type"] == ORDER_CREATED
        assert data["ts"] is not None
        assert data["v"] == 1


class TestPublishers:
    @pytest.mark.asyncio
    async def test_order_event_fanned_out(self, redis_client):
        await publish_order_event(
            redis_client,
            event_type=ORDER_CREATED,
            restaurant_id=3,
            order_id=9,
            customer_id=5,
            entity={"status": "PENDING"},
        )

        assert _channels(redis_client) == ["restaurant:3:orders", "customer:5"]
        payload = json.loads(redis_client.publish.call_args_list[0].args[1])
        assert payload["entity"] == {"order_id": 9, "status": "PENDING"}

    @pytest.mark.asyncio
    async def test_recharge_request_goes_to_admins_only(self, redis_client):
        await publish_wallet_event(
            redis_client, WALLET_RECHARGE_REQUESTED, txn_id=4, amount="1000.00", status="PENDING", restaurant_id=3
        )

        assert _channels(redis_client) == ["admin:finance"]

    @pytest.mark.asyncio
    async def test_recharge_resolution_reaches_owner(self, redis_client):
        await publish_wallet_event(
            redis_client, WALLET_RECHARGE_RESOLVED, txn_id=4, amount="1000.00", status="APPROVED", restaurant_id=3
        )

        assert _channels(redis_client) == ["admin:finance", "restaurant:3:orders"]

    @pytest.mark.asyncio
    async def test_suspension_alert(self, redis_client):
        await publish_restaurant_suspended(redis_client, 3, "-510.00", "-500.00")

        assert _channels(redis_client) == ["restaurant:3:orders", "admin:finance"]


class TestPublishEvent:
    @pytest.mark.asyncio
    async def test_returns_receiver_count(self, redis_client):
        receivers = await publish_event(redis_client, "customer:5", Event(type=ORDER_CREATED, customer_id=5))

        assert receivers == 1

    @pytest.mark.asyncio
    async def test_retries_then_raises(self, monkeypatch, redis_client):
        monkeypatch.setattr(
            "shared.infrastructure.events.publisher.calculate_retry_delay_with_jitter", lambda attempt, base: 0
        )
        redis_client.publish.side_effect = redis.ConnectionError("down")

        with pytest.raises(redis.ConnectionError):
            await publish_event(redis_client, "customer:5", Event(type=ORDER_CREATED, customer_id=5))

        assert redis_client.publish.await_count == 3

    @pytest.mark.asyncio
    async def test_open_breaker_skips_publish(self, monkeypatch, redis_client):
        monkeypatch.setattr(
            "shared.infrastructure.events.publisher.calculate_retry_delay_with_jitter", lambda attempt, base: 0
        )
        redis_client.publish.side_effect = redis.ConnectionError("down")
        for _ in range(2):
            with pytest.raises(redis.ConnectionError):
                await publish_event(redis_client, "customer:5", Event(type=ORDER_CREATED, customer_id=5))
        redis_client.publish.reset_mock()

        receivers = await publish_event(redis_client, "customer:5", Event(type=ORDER_CREATED, customer_id=5))

        assert receivers == 0
        redis_client.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_oversized_event_rejected(self, redis_client):
        event = Event(type=ORDER_CREATED, restaurant_id=1, entity={"blob": "x" * (70 * 1024)})

        with pytest.raises(ValueError):
            await publish_event(redis_client, "restaurant:1:orders", event)
