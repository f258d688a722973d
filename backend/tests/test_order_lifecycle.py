"""
Tests for the order and delivery status chains.
"""

import pytest

from shared.config.constants import DeliveryStatus, OrderStatus
from rest_api.services.domain.order_lifecycle import (
    InvalidOrderTransitionError,
    UnknownOrderStatusError,
    advance,
    advance_delivery,
    is_terminal,
    next_delivery_status,
    next_status,
    parse_status,
)


class TestCustomerChain:
    @pytest.mark.parametrize(
        "current,expected",
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED),
            (OrderStatus.CONFIRMED, OrderStatus.COOKING),
            (OrderStatus.COOKING, OrderStatus.READY),
            (OrderStatus.READY, OrderStatus.DELIVERED),
        ],
    )
    def test_each_status_has_one_successor(self, current, expected):
        assert next_status(current) == expected
        assert advance(current) == expected

    def test_delivered_is_terminal(self):
        assert next_status(OrderStatus.DELIVERED) is None
        assert is_terminal(OrderStatus.DELIVERED)

    def test_advance_from_terminal_raises(self):
        with pytest.raises(InvalidOrderTransitionError) as exc_info:
            advance(OrderStatus.DELIVERED)

        assert exc_info.value.from_status == OrderStatus.DELIVERED

    def test_advance_from_unknown_raises(self):
        with pytest.raises(InvalidOrderTransitionError):
            advance("CANCELLED")

    def test_next_status_of_unknown_is_none(self):
        assert next_status("CANCELLED") is None
        assert next_status(None) is None


class TestDeliveryChain:
    def test_successors(self):
        assert next_delivery_status(DeliveryStatus.SEARCHING_FOR_RIDER) == DeliveryStatus.RIDER_ASSIGNED
        assert next_delivery_status(DeliveryStatus.RIDER_ASSIGNED) == DeliveryStatus.OUT_FOR_DELIVERY
        assert next_delivery_status(DeliveryStatus.OUT_FOR_DELIVERY) == DeliveryStatus.DELIVERED
        assert next_delivery_status(DeliveryStatus.DELIVERED) is None

    def test_advance_delivery_accepts_next_step(self):
        target = advance_delivery(DeliveryStatus.RIDER_ASSIGNED, DeliveryStatus.OUT_FOR_DELIVERY)

        assert target == DeliveryStatus.OUT_FOR_DELIVERY

    def test_advance_delivery_refuses_skips(self):
        with pytest.raises(InvalidOrderTransitionError):
            advance_delivery(DeliveryStatus.RIDER_ASSIGNED, DeliveryStatus.DELIVERED)

    def test_advance_delivery_refuses_repeat(self):
        with pytest.raises(InvalidOrderTransitionError):
            advance_delivery(DeliveryStatus.DELIVERED, DeliveryStatus.DELIVERED)

    def test_no_rider_flow_yet(self):
        with pytest.raises(InvalidOrderTransitionError):
            advance_delivery(None, DeliveryStatus.OUT_FOR_DELIVERY)


class TestParseStatus:
    def test_known_status_unchanged(self):
        assert parse_status(OrderStatus.COOKING) == OrderStatus.COOKING

    def test_unknown_maps_to_pending_by_default(self):
        assert parse_status("preparing", strict=False) == OrderStatus.PENDING

    def test_unknown_raises_in_strict_mode(self):
        with pytest.raises(UnknownOrderStatusError) as exc_info:
            parse_status("preparing", strict=True)

        assert exc_info.value.raw_status == "preparing"
