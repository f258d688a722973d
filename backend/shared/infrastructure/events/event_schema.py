"""
Event Schema.

Single dataclass for every event published on Redis.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


def _positive_or_none(value: Any, name: str) -> None:
    if value is not None and (not isinstance(value, int) or value <= 0):
        raise ValueError(f"Event {name} must be a positive integer or None")


@dataclass
class Event:
    """
    Unified event envelope.

    'entity' carries event-specific data (order id, status, amounts...).
    'actor' identifies who triggered the event.
    """

    type: str
    restaurant_id: int | None = None
    order_id: int | None = None
    customer_id: int | None = None
    rider_id: int | None = None
    entity: dict[str, Any] = field(default_factory=dict)
    actor: dict[str, Any] = field(default_factory=dict)
    ts: str | None = None
    v: int = 1

    def __post_init__(self) -> None:
        if not self.type or not isinstance(self.type, str):
            raise ValueError("Event type must be a non-empty string")

        _positive_or_none(self.restaurant_id, "restaurant_id")
        _positive_or_none(self.order_id, "order_id")
        _positive_or_none(self.customer_id, "customer_id")
        _positive_or_none(self.rider_id, "rider_id")

        if not isinstance(self.entity, dict):
            raise ValueError("Event entity must be a dict")
        if not isinstance(self.actor, dict):
            raise ValueError("Event actor must be a dict")

    def to_json(self) -> str:
        data = asdict(self)
        data["ts"] = data["ts"] or datetime.now(timezone.utc).isoformat()
        return json.dumps(data, ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        return cls(**json.loads(json_str))
