"""
Tests for the PhonePe integration: signing, initiation, callbacks and settlement.
"""

import base64
import json
from decimal import Decimal

import httpx
import pytest

from shared.config.constants import PaymentMethod, PaymentPurpose, PaymentStatus, WalletTxnStatus
from shared.config.settings import Settings
from rest_api.main import app
from rest_api.routers.payments import get_phonepe_client
from rest_api.services.domain import OrderService, WalletService
from rest_api.services.payments import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitState,
    InvalidChecksumError,
    InvalidPaymentAmountError,
    PhonePeClient,
    PhonePeConfigError,
    PhonePeError,
    order_transaction_id,
    parse_transaction_id,
    recharge_transaction_id,
    validate_amount,
)
from rest_api.services.payments.phonepe import callback_checksum, pay_checksum


SALT_KEY = "test-salt-key"
SALT_INDEX = "1"
PAY_URL = "https://mercury.phonepe.test/transact/pay"


@pytest.fixture
def gateway_settings():
    return Settings(
        phonepe_merchant_id="MERCHANTUAT",
        phonepe_salt_key=SALT_KEY,
        phonepe_salt_index=SALT_INDEX,
        phonepe_host_url="https://api.phonepe.test",
        app_base_url="https://food.test",
    )


@pytest.fixture
def breaker():
    return CircuitBreaker(CircuitBreakerConfig(name="phonepe-test", failure_threshold=2, timeout_seconds=30))


def _gateway(status_code=200, body=None, calls=None):
    """MockTransport answering every pay request with the same response."""
    if body is None:
        body = {
            "success": True,
            "code": "PAYMENT_INITIATED",
            "data": {"instrumentResponse": {"redirectInfo": {"url": PAY_URL}}},
        }

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status_code, json=body)

    return httpx.MockTransport(handler)


def _callback(transaction_id: str, success: bool = True, amount_paise: int = 54000) -> tuple[str, str]:
    payload = {
        "success": success,
        "code": "PAYMENT_SUCCESS" if success else "PAYMENT_ERROR",
        "data": {"merchantTransactionId": transaction_id, "amount": amount_paise},
    }
    response = base64.b64encode(json.dumps(payload).encode()).decode()
    return response, callback_checksum(response, SALT_KEY, SALT_INDEX)


class TestTransactionIds:
    def test_order_id_round_trip(self):
        transaction_id = order_transaction_id(42, ts=1700000000000)

        assert transaction_id == "order_42_1700000000000"
        ref = parse_transaction_id(transaction_id)
        assert ref.purpose == PaymentPurpose.ORDER
        assert ref.entity_id == 42

    def test_recharge_id_round_trip(self):
        transaction_id = recharge_transaction_id(7, ts=1700000000000)

        assert transaction_id == "RECHARGE-7-1700000000000"
        ref = parse_transaction_id(transaction_id)
        assert ref.purpose == PaymentPurpose.RECHARGE
        assert ref.entity_id == 7

    @pytest.mark.parametrize("transaction_id", ["T123", "order_abc_1", "RECHARGE-7", "order_1_2_3"])
    def test_unrecognised_ids(self, transaction_id):
        assert parse_transaction_id(transaction_id) is None


class TestChecksums:
    def test_pay_checksum_format(self):
        checksum = pay_checksum("eyJhIjoxfQ==", "salt", "2")

        digest, index = checksum.split("###")
        assert len(digest) == 64
        assert index == "2"

    def test_pay_and_callback_checksums_differ(self):
        assert pay_checksum("abc", "salt", "1") != callback_checksum("abc", "salt", "1")


class TestValidateAmount:
    def test_rounds_to_paise(self):
        assert validate_amount("99.999") == Decimal("100.00")

    @pytest.mark.parametrize("amount", ["0", "-5", "not-a-number"])
    def test_rejects_non_positive_and_garbage(self, amount):
        with pytest.raises(InvalidPaymentAmountError):
            validate_amount(amount)

    def test_rejects_above_limit(self):
        with pytest.raises(InvalidPaymentAmountError):
            validate_amount("100000.01", limit="100000")


class TestInitiate:
    @pytest.mark.asyncio
    async def test_returns_pay_page_url(self, gateway_settings, breaker):
        calls: list[httpx.Request] = []
        client = PhonePeClient(gateway_settings, transport=_gateway(calls=calls), breaker=breaker)

        initiation = await client.initiate("order_1_1", Decimal("540"), "+919800000001", 1, PaymentPurpose.ORDER)

        assert initiation.redirect_url == PAY_URL
        sent = calls[0]
        assert sent.url.path.endswith("/pg/v1/pay")
        payload_b64 = json.loads(sent.content)["request"]
        assert sent.headers["X-VERIFY"] == pay_checksum(payload_b64, SALT_KEY, SALT_INDEX)
        payload = json.loads(base64.b64decode(payload_b64))
        assert payload["amount"] == 54000
        assert payload["mobileNumber"] == "9800000001"
        assert payload["merchantUserId"] == "MUID1"
        assert payload["callbackUrl"] == "https://food.test/api/payments/phonepe/callback"

    @pytest.mark.asyncio
    async def test_gateway_error_raises(self, gateway_settings, breaker):
        client = PhonePeClient(gateway_settings, transport=_gateway(status_code=503), breaker=breaker)

        with pytest.raises(PhonePeError):
            await client.initiate("order_1_1", Decimal("540"), "+919800000001", 1, PaymentPurpose.ORDER)

    @pytest.mark.asyncio
    async def test_refused_payment_raises(self, gateway_settings, breaker):
        body = {"success": False, "code": "BAD_REQUEST", "message": "Invalid mobile"}
        client = PhonePeClient(gateway_settings, transport=_gateway(body=body), breaker=breaker)

        with pytest.raises(PhonePeError, match="Invalid mobile"):
            await client.initiate("order_1_1", Decimal("540"), "+919800000001", 1, PaymentPurpose.ORDER)

    @pytest.mark.asyncio
    async def test_missing_config_raises(self, breaker):
        client = PhonePeClient(Settings(phonepe_merchant_id=""), transport=_gateway(), breaker=breaker)

        with pytest.raises(PhonePeConfigError):
            await client.initiate("order_1_1", Decimal("540"), "+919800000001", 1, PaymentPurpose.ORDER)

    @pytest.mark.asyncio
    async def test_repeated_failures_open_circuit(self, gateway_settings, breaker):
        client = PhonePeClient(gateway_settings, transport=_gateway(status_code=500), breaker=breaker)

        for _ in range(2):
            with pytest.raises(PhonePeError):
                await client.initiate("order_1_1", Decimal("540"), "+919800000001", 1, PaymentPurpose.ORDER)

        with pytest.raises(CircuitBreakerError):
            await client.initiate("order_1_1", Decimal("540"), "+919800000001", 1, PaymentPurpose.ORDER)


class TestVerifyCallback:
    def test_valid_callback_decoded(self, gateway_settings):
        response, checksum = _callback("order_5_1700000000000")

        result = PhonePeClient(gateway_settings).verify_callback(response, checksum)

        assert result.transaction_id == "order_5_1700000000000"
        assert result.succeeded is True
        assert result.amount == Decimal("540.00")

    def test_failure_code_is_not_success(self, gateway_settings):
        response, checksum = _callback("order_5_1", success=False)

        result = PhonePeClient(gateway_settings).verify_callback(response, checksum)

        assert result.succeeded is False

    def test_wrong_signature_rejected(self, gateway_settings):
        response, _ = _callback("order_5_1")

        with pytest.raises(InvalidChecksumError):
            PhonePeClient(gateway_settings).verify_callback(response, "deadbeef###1")

    def test_missing_signature_rejected(self, gateway_settings):
        response, _ = _callback("order_5_1")

        with pytest.raises(InvalidChecksumError):
            PhonePeClient(gateway_settings).verify_callback(response, None)


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_opens_then_half_opens_after_timeout(self):
        now = [1000.0]
        breaker = CircuitBreaker(
            CircuitBreakerConfig(name="clocked", failure_threshold=1, success_threshold=1, timeout_seconds=10),
            clock=lambda: now[0],
        )

        with pytest.raises(RuntimeError):
            async with breaker.call():
                raise RuntimeError("gateway down")
        assert breaker.state == CircuitState.OPEN

        with pytest.raises(CircuitBreakerError) as exc_info:
            async with breaker.call():
                pass
        assert exc_info.value.retry_after == pytest.approx(10)

        now[0] += 11
        async with breaker.call():
            pass
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_failure_while_half_open_reopens(self):
        now = [0.0]
        breaker = CircuitBreaker(
            CircuitBreakerConfig(name="clocked", failure_threshold=1, timeout_seconds=5),
            clock=lambda: now[0],
        )
        await breaker.record_failure()
        now[0] += 6

        with pytest.raises(ValueError):
            async with breaker.call():
                raise ValueError("still down")

        assert breaker.state == CircuitState.OPEN


class TestCallbackEndpoint:
    """Settlement through /api/payments/phonepe/callback."""

    @pytest.fixture
    def gateway_client(self, client, gateway_settings, breaker):
        app.dependency_overrides[get_phonepe_client] = lambda: PhonePeClient(
            gateway_settings, transport=_gateway(), breaker=breaker
        )
        return client

    def test_order_payment_completed(self, gateway_client, db_session, place_order, published_events):
        order = place_order(payment_method=PaymentMethod.PREPAID_UPI)
        transaction_id = order_transaction_id(order.id, ts=1700000000000)
        OrderService(db_session).attach_payment_transaction(order.id, transaction_id)
        response, checksum = _callback(transaction_id)

        res = gateway_client.post(
            "/api/payments/phonepe/callback", json={"response": response}, headers={"X-VERIFY": checksum}
        )

        assert res.status_code == 200
        assert res.json() == {
            "success": True,
            "type": "ORDER",
            "transaction_id": transaction_id,
            "already_settled": False,
        }
        db_session.refresh(order)
        assert order.payment_status == PaymentStatus.COMPLETED
        kinds = [call.args[0] for call in published_events.call_args_list]
        assert kinds == ["order"]

    def test_bad_signature_changes_nothing(self, gateway_client, db_session, place_order):
        order = place_order(payment_method=PaymentMethod.PREPAID_UPI)
        transaction_id = order_transaction_id(order.id, ts=1)
        OrderService(db_session).attach_payment_transaction(order.id, transaction_id)
        response, _ = _callback(transaction_id)

        res = gateway_client.post(
            "/api/payments/phonepe/callback", json={"response": response}, headers={"X-VERIFY": "nope###1"}
        )

        assert res.status_code == 400
        db_session.refresh(order)
        assert order.payment_status == PaymentStatus.PENDING

    def test_unknown_order_transaction(self, gateway_client):
        response, checksum = _callback("order_999_1")

        res = gateway_client.post(
            "/api/payments/phonepe/callback", json={"response": response}, headers={"X-VERIFY": checksum}
        )

        assert res.status_code == 404

    def test_recharge_settled_once(self, gateway_client, db_session, seed_customer):
        txn = WalletService(db_session).request_recharge(Decimal("300"), profile_id=seed_customer.id)
        transaction_id = recharge_transaction_id(txn.id, ts=1700000000000)
        response, checksum = _callback(transaction_id, amount_paise=30000)

        first = gateway_client.post(
            "/api/payments/phonepe/callback", json={"response": response}, headers={"X-VERIFY": checksum}
        )
        second = gateway_client.post(
            "/api/payments/phonepe/callback", json={"response": response}, headers={"X-VERIFY": checksum}
        )

        assert first.status_code == 200
        assert first.json()["already_settled"] is False
        assert second.status_code == 200
        assert second.json()["already_settled"] is True
        db_session.refresh(seed_customer)
        assert seed_customer.wallet_balance == Decimal("300.00")
        db_session.refresh(txn)
        assert txn.status == WalletTxnStatus.APPROVED
        assert txn.payment_transaction_id == transaction_id

    def test_failed_recharge_rejected(self, gateway_client, db_session, seed_customer):
        txn = WalletService(db_session).request_recharge(Decimal("300"), profile_id=seed_customer.id)
        response, checksum = _callback(recharge_transaction_id(txn.id, ts=1), success=False)

        res = gateway_client.post(
            "/api/payments/phonepe/callback", json={"response": response}, headers={"X-VERIFY": checksum}
        )

        assert res.json()["success"] is False
        db_session.refresh(txn)
        assert txn.status == WalletTxnStatus.REJECTED
        db_session.refresh(seed_customer)
        assert seed_customer.wallet_balance == Decimal("0.00")


class TestInitiateEndpoint:
    @pytest.fixture
    def gateway_client(self, client, gateway_settings, breaker):
        app.dependency_overrides[get_phonepe_client] = lambda: PhonePeClient(
            gateway_settings, transport=_gateway(), breaker=breaker
        )
        return client

    def test_prepaid_order(self, gateway_client, db_session, place_order, customer_headers):
        order = place_order(payment_method=PaymentMethod.PREPAID_UPI)

        res = gateway_client.post(
            "/api/payments/initiate", json={"type": "ORDER", "order_id": order.id}, headers=customer_headers
        )

        assert res.status_code == 200
        data = res.json()
        assert data["redirect_url"] == PAY_URL
        assert data["transaction_id"].startswith(f"order_{order.id}_")
        db_session.refresh(order)
        assert order.payment_transaction_id == data["transaction_id"]

    def test_cash_order_cannot_be_paid_online(self, gateway_client, place_order, customer_headers):
        order = place_order(payment_method=PaymentMethod.COD_CASH)

        res = gateway_client.post(
            "/api/payments/initiate", json={"type": "ORDER", "order_id": order.id}, headers=customer_headers
        )

        assert res.status_code == 400

    def test_other_customers_order_hidden(self, gateway_client, place_order, other_customer_headers):
        order = place_order(payment_method=PaymentMethod.PREPAID_UPI)

        res = gateway_client.post(
            "/api/payments/initiate",
            json={"type": "ORDER", "order_id": order.id},
            headers=other_customer_headers,
        )

        assert res.status_code == 404

    def test_wallet_recharge_creates_pending_txn(self, gateway_client, db_session, seed_customer, customer_headers):
        res = gateway_client.post(
            "/api/payments/initiate", json={"type": "RECHARGE", "amount": "250"}, headers=customer_headers
        )

        assert res.status_code == 200
        transaction_id = res.json()["transaction_id"]
        assert transaction_id.startswith("RECHARGE-")
        txn = WalletService(db_session).get_transaction(parse_transaction_id(transaction_id).entity_id)
        assert txn.profile_id == seed_customer.id
        assert txn.status == WalletTxnStatus.PENDING
        assert txn.amount == Decimal("250.00")
        db_session.refresh(seed_customer)
        assert seed_customer.wallet_balance == Decimal("0.00")

    def test_gateway_down_maps_to_502(self, client, gateway_settings, breaker, place_order, customer_headers):
        app.dependency_overrides[get_phonepe_client] = lambda: PhonePeClient(
            gateway_settings, transport=_gateway(status_code=500), breaker=breaker
        )
        order = place_order(payment_method=PaymentMethod.PREPAID_UPI)

        res = client.post(
            "/api/payments/initiate", json={"type": "ORDER", "order_id": order.id}, headers=customer_headers
        )

        assert res.status_code == 502
