"""
Core event publishing with retry, size validation and circuit breaking.
"""

from __future__ import annotations

import asyncio

import redis.asyncio as redis

from shared.config.logging import get_logger
from shared.config.settings import settings
from .circuit_breaker import calculate_retry_delay_with_jitter, get_event_circuit_breaker
from .event_schema import Event
from .event_types import MAX_EVENT_SIZE

logger = get_logger(__name__)


async def publish_event(
    redis_client: redis.Redis,
    channel: str,
    event: Event,
) -> int:
    """
    Publish an event to a Redis channel.

    Returns:
        Number of subscribers that received the message, or 0 when the
        circuit breaker is open.

    Raises:
        ValueError: If the serialized event exceeds MAX_EVENT_SIZE.
        redis.RedisError: If every retry failed.
    """
    payload = event.to_json()
    size = len(payload.encode("utf-8"))
    if size > MAX_EVENT_SIZE:
        raise ValueError(f"Event {event.type} exceeds max size: {size} > {MAX_EVENT_SIZE} bytes")

    breaker = get_event_circuit_breaker()
    if not breaker.can_execute():
        logger.warning("Event publish skipped - circuit breaker open", channel=channel, event_type=event.type)
        return 0

    retries = settings.redis_publish_max_retries
    last_error: Exception | None = None
    for attempt in range(retries):
        try:
            receivers = await redis_client.publish(channel, payload)
            breaker.record_success()
            return receivers
        except redis.RedisError as e:
            last_error = e
            if attempt < retries - 1:
                delay = calculate_retry_delay_with_jitter(attempt, settings.redis_publish_retry_delay)
                logger.warning(
                    "Redis publish failed, retrying",
                    channel=channel,
                    event_type=event.type,
                    attempt=attempt + 1,
                    delay_seconds=round(delay, 2),
                    error=str(e),
                )
                await asyncio.sleep(delay)

    breaker.record_failure()
    logger.error("Redis publish failed after all retries", channel=channel, event_type=event.type)
    raise last_error  # type: ignore[misc]
