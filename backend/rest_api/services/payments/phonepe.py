"""
PhonePe Pay API client.

Initiation posts a base64 JSON payload signed with

    X-VERIFY = sha256(payload + "/pg/v1/pay" + salt_key) + "###" + salt_index

and returns the hosted pay-page URL. Server-to-server callbacks carry a
base64 `response` signed with sha256(response + salt_key) + "###" + salt_index.

Merchant transaction ids encode what is being paid for:
    order_<orderId>_<ts>        customer order
    RECHARGE-<walletTxnId>-<ts> wallet recharge
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import httpx

from shared.config.constants import PaymentPurpose
from shared.config.logging import mask_phone, payments_logger as logger
from shared.config.settings import Settings, settings
from shared.utils.validators import INDIA_COUNTRY_CODE, normalize_phone
from rest_api.services.domain.pricing import HUNDRED, round_money, to_decimal
from rest_api.services.payments.circuit_breaker import CircuitBreaker, phonepe_breaker

PAY_ENDPOINT = "/pg/v1/pay"
SUCCESS_CODE = "PAYMENT_SUCCESS"

ORDER_PREFIX = "order_"
RECHARGE_PREFIX = "RECHARGE-"


class PhonePeError(Exception):
    """Gateway could not be reached or refused the request."""


class PhonePeConfigError(PhonePeError):
    pass


class InvalidPaymentAmountError(ValueError):
    def __init__(self, amount: Any, reason: str):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid payment amount {amount}: {reason}")


class InvalidChecksumError(Exception):
    pass


@dataclass(frozen=True)
class TransactionRef:
    purpose: str
    entity_id: int


@dataclass(frozen=True)
class PaymentInitiation:
    transaction_id: str
    redirect_url: str


@dataclass(frozen=True)
class CallbackResult:
    transaction_id: str
    succeeded: bool
    code: str
    amount: Decimal | None


def validate_amount(amount: Any, limit: Any = None) -> Decimal:
    """Amount in rupees, must be within (0, limit]."""
    limit = to_decimal(settings.max_payment_amount if limit is None else limit)
    try:
        value = round_money(amount)
    except (ArithmeticError, TypeError, ValueError):
        raise InvalidPaymentAmountError(amount, "not a number") from None
    if value <= 0:
        raise InvalidPaymentAmountError(amount, "must be greater than zero")
    if value > limit:
        raise InvalidPaymentAmountError(amount, f"must not exceed {limit}")
    return value


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def order_transaction_id(order_id: int, ts: int | None = None) -> str:
    return f"{ORDER_PREFIX}{order_id}_{ts if ts is not None else _timestamp_ms()}"


def recharge_transaction_id(wallet_txn_id: int, ts: int | None = None) -> str:
    return f"{RECHARGE_PREFIX}{wallet_txn_id}-{ts if ts is not None else _timestamp_ms()}"


def parse_transaction_id(transaction_id: str) -> TransactionRef | None:
    """Route a merchant transaction id back to its order or wallet transaction."""
    if transaction_id.startswith(ORDER_PREFIX):
        parts = transaction_id[len(ORDER_PREFIX):].split("_")
        purpose = PaymentPurpose.ORDER
    elif transaction_id.startswith(RECHARGE_PREFIX):
        parts = transaction_id[len(RECHARGE_PREFIX):].split("-")
        purpose = PaymentPurpose.RECHARGE
    else:
        return None
    if len(parts) != 2 or not parts[0].isdigit():
        return None
    return TransactionRef(purpose=purpose, entity_id=int(parts[0]))


def pay_checksum(payload_b64: str, salt_key: str, salt_index: str) -> str:
    digest = hashlib.sha256((payload_b64 + PAY_ENDPOINT + salt_key).encode()).hexdigest()
    return f"{digest}###{salt_index}"


def callback_checksum(response_b64: str, salt_key: str, salt_index: str) -> str:
    digest = hashlib.sha256((response_b64 + salt_key).encode()).hexdigest()
    return f"{digest}###{salt_index}"


def encode_payload(payload: dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(payload, separators=(",", ":")).encode()).decode()


class PhonePeClient:
    """
    Thin async client. `transport` lets tests plug in httpx.MockTransport.
    """

    def __init__(
        self,
        config: Settings = settings,
        transport: httpx.AsyncBaseTransport | None = None,
        breaker: CircuitBreaker = phonepe_breaker,
    ):
        self._config = config
        self._transport = transport
        self._breaker = breaker

    def _require_config(self) -> None:
        missing = [
            name
            for name in ("phonepe_merchant_id", "phonepe_salt_key", "phonepe_salt_index", "phonepe_host_url")
            if not getattr(self._config, name)
        ]
        if missing:
            raise PhonePeConfigError(f"Missing PhonePe settings: {', '.join(missing)}")

    def build_payload(
        self,
        transaction_id: str,
        amount: Decimal,
        mobile_number: str,
        user_id: int | str,
        purpose: str,
    ) -> dict[str, Any]:
        base = self._config.app_base_url.rstrip("/")
        return {
            "merchantId": self._config.phonepe_merchant_id,
            "merchantTransactionId": transaction_id,
            "merchantUserId": f"MUID{user_id}",
            "amount": int(amount * HUNDRED),
            "redirectUrl": f"{base}/phonepe/payment-status?type={purpose}&txnId={transaction_id}",
            "redirectMode": "REDIRECT",
            "callbackUrl": f"{base}/api/payments/phonepe/callback",
            "mobileNumber": normalize_phone(mobile_number)[len(INDIA_COUNTRY_CODE):],
            "paymentInstrument": {"type": "PAY_PAGE"},
        }

    async def initiate(
        self,
        transaction_id: str,
        amount: Any,
        mobile_number: str,
        user_id: int | str,
        purpose: str,
    ) -> PaymentInitiation:
        """
        Raises:
            InvalidPaymentAmountError, PhonePeConfigError, PhonePeError,
            CircuitBreakerError
        """
        if purpose not in PaymentPurpose.ALL:
            raise ValueError(f"Unknown payment purpose {purpose}")
        value = validate_amount(amount, self._config.max_payment_amount)
        self._require_config()

        payload_b64 = encode_payload(self.build_payload(transaction_id, value, mobile_number, user_id, purpose))
        headers = {
            "Content-Type": "application/json",
            "X-VERIFY": pay_checksum(payload_b64, self._config.phonepe_salt_key, self._config.phonepe_salt_index),
        }

        logger.info(
            "PhonePe initiate",
            transaction_id=transaction_id,
            purpose=purpose,
            amount=str(value),
            mobile=mask_phone(mobile_number),
        )

        async with self._breaker.call():
            async with httpx.AsyncClient(
                base_url=self._config.phonepe_host_url,
                timeout=self._config.phonepe_timeout_seconds,
                transport=self._transport,
            ) as client:
                try:
                    response = await client.post(PAY_ENDPOINT, json={"request": payload_b64}, headers=headers)
                except httpx.HTTPError as e:
                    raise PhonePeError(f"PhonePe request failed: {e.__class__.__name__}") from e
            if response.status_code >= 500:
                raise PhonePeError(f"PhonePe returned {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            raise PhonePeError("PhonePe returned a non-JSON response") from None

        redirect_url = (
            (body.get("data") or {}).get("instrumentResponse", {}).get("redirectInfo", {}).get("url")
        )
        if not body.get("success") or not redirect_url:
            logger.warning(
                "PhonePe refused payment",
                transaction_id=transaction_id,
                code=body.get("code"),
                status_code=response.status_code,
            )
            raise PhonePeError(body.get("message") or "Failed to initiate payment")

        return PaymentInitiation(transaction_id=transaction_id, redirect_url=redirect_url)

    def verify_callback(self, response_b64: str, x_verify: str | None) -> CallbackResult:
        """
        Check the callback signature and decode it.

        Raises:
            InvalidChecksumError: missing or wrong signature, or undecodable body.
        """
        self._require_config()
        expected = callback_checksum(response_b64, self._config.phonepe_salt_key, self._config.phonepe_salt_index)
        if not x_verify or not hmac.compare_digest(expected, x_verify):
            raise InvalidChecksumError("Callback checksum mismatch")

        try:
            decoded = json.loads(base64.b64decode(response_b64))
        except ValueError:
            raise InvalidChecksumError("Callback body is not valid base64 JSON") from None
        if not isinstance(decoded, dict):
            raise InvalidChecksumError("Callback body is not a JSON object")

        data = decoded.get("data") or {}
        transaction_id = data.get("merchantTransactionId")
        if not transaction_id:
            raise InvalidChecksumError("Callback has no merchantTransactionId")

        code = decoded.get("code") or ""
        paise = data.get("amount")
        return CallbackResult(
            transaction_id=transaction_id,
            succeeded=bool(decoded.get("success")) and code == SUCCESS_CODE,
            code=code,
            amount=round_money(to_decimal(paise) / HUNDRED) if paise is not None else None,
        )
