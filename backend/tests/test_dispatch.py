"""
Tests for DispatchService: rider requests, claims and the delivery chain.
"""

from decimal import Decimal

import pytest

from shared.config.constants import DeliveryStatus, OrderStatus
from rest_api.services.domain.dispatch_service import (
    DispatchService,
    NotAssignedRiderError,
    OrderNotReadyError,
)
from rest_api.services.domain.order_lifecycle import InvalidOrderTransitionError
from rest_api.services.domain.order_service import OrderNotFoundError, OrderService


@pytest.fixture
def advance_to(db_session, seed_restaurant):
    """Advance an order through the restaurant chain up to `status`."""
    def _advance(order, status):
        service = OrderService(db_session)
        while order.status != status:
            order = service.advance_status(order.id, seed_restaurant.id)
        return order

    return _advance


@pytest.fixture
def searching_order(db_session, place_order, advance_to, seed_restaurant):
    order = advance_to(place_order(), OrderStatus.CONFIRMED)
    return DispatchService(db_session).request_rider(order.id, seed_restaurant.id)


class TestRequestRider:
    def test_confirmed_order_goes_on_feed(self, db_session, searching_order):
        assert searching_order.delivery_status == DeliveryStatus.SEARCHING_FOR_RIDER
        assert searching_order.rider_id is None
        assert [o.id for o in DispatchService(db_session).list_available()] == [searching_order.id]

    def test_pending_order_cannot_request(self, db_session, place_order, seed_restaurant):
        order = place_order()

        with pytest.raises(InvalidOrderTransitionError):
            DispatchService(db_session).request_rider(order.id, seed_restaurant.id)

    def test_second_request_refused(self, db_session, searching_order, seed_restaurant):
        with pytest.raises(InvalidOrderTransitionError):
            DispatchService(db_session).request_rider(searching_order.id, seed_restaurant.id)

    def test_other_restaurant_cannot_request(self, db_session, place_order, advance_to, seed_restaurant):
        order = advance_to(place_order(), OrderStatus.CONFIRMED)

        with pytest.raises(OrderNotFoundError):
            DispatchService(db_session).request_rider(order.id, seed_restaurant.id + 1)


class TestClaim:
    def test_first_claim_wins(self, db_session, searching_order, seed_rider, seed_other_rider):
        service = DispatchService(db_session)

        assert service.claim(searching_order.id, seed_rider.id) is True
        assert service.claim(searching_order.id, seed_other_rider.id) is False

        db_session.refresh(searching_order)
        assert searching_order.rider_id == seed_rider.id
        assert searching_order.delivery_status == DeliveryStatus.RIDER_ASSIGNED

    def test_claimed_order_leaves_feed(self, db_session, searching_order, seed_rider):
        service = DispatchService(db_session)
        service.claim(searching_order.id, seed_rider.id)

        assert service.list_available() == []
        assert [o.id for o in service.list_active(seed_rider.id)] == [searching_order.id]

    def test_order_not_searching_cannot_be_claimed(self, db_session, place_order, seed_rider):
        order = place_order()

        assert DispatchService(db_session).claim(order.id, seed_rider.id) is False


class TestDeliveryChain:
    def test_pickup_requires_ready(self, db_session, searching_order, seed_rider):
        service = DispatchService(db_session)
        service.claim(searching_order.id, seed_rider.id)

        with pytest.raises(OrderNotReadyError) as exc_info:
            service.pick_up(searching_order.id, seed_rider.id)

        assert exc_info.value.status == OrderStatus.CONFIRMED

    def test_full_rider_flow_closes_order(self, db_session, searching_order, advance_to, seed_rider):
        service = DispatchService(db_session)
        service.claim(searching_order.id, seed_rider.id)
        db_session.refresh(searching_order)
        advance_to(searching_order, OrderStatus.READY)

        picked = service.pick_up(searching_order.id, seed_rider.id)
        assert picked.delivery_status == DeliveryStatus.OUT_FOR_DELIVERY

        delivered = service.deliver(searching_order.id, seed_rider.id)
        assert delivered.delivery_status == DeliveryStatus.DELIVERED
        assert delivered.status == OrderStatus.DELIVERED
        assert delivered.delivered_at is not None
        assert service.list_active(seed_rider.id) == []

    def test_deliver_before_pickup_refused(self, db_session, searching_order, advance_to, seed_rider):
        service = DispatchService(db_session)
        service.claim(searching_order.id, seed_rider.id)
        db_session.refresh(searching_order)
        advance_to(searching_order, OrderStatus.READY)

        with pytest.raises(InvalidOrderTransitionError):
            service.deliver(searching_order.id, seed_rider.id)

    def test_other_rider_cannot_pick_up(self, db_session, searching_order, seed_rider, seed_other_rider):
        service = DispatchService(db_session)
        service.claim(searching_order.id, seed_rider.id)

        with pytest.raises(NotAssignedRiderError):
            service.pick_up(searching_order.id, seed_other_rider.id)


class TestEarnings:
    def test_counts_delivered_orders_plus_wallet(self, db_session, searching_order, advance_to, seed_rider):
        service = DispatchService(db_session)
        service.claim(searching_order.id, seed_rider.id)
        db_session.refresh(searching_order)
        advance_to(searching_order, OrderStatus.READY)
        service.pick_up(searching_order.id, seed_rider.id)
        service.deliver(searching_order.id, seed_rider.id)

        seed_rider.rider_wallet_balance = Decimal("15")
        db_session.commit()

        earnings = service.earnings(seed_rider)

        assert earnings.delivered_count == 1
        assert earnings.payout_per_delivery == Decimal("40.00")
        assert earnings.delivery_earnings == Decimal("40.00")
        assert earnings.total == Decimal("55.00")

    def test_new_rider_earns_nothing(self, db_session, seed_rider):
        earnings = DispatchService(db_session).earnings(seed_rider)

        assert earnings.delivered_count == 0
        assert earnings.total == Decimal("0.00")
