"""
Payment Services - PhonePe gateway integration.

Provides:
- PhonePe client (initiation, callback verification)
- Settlement of verified callbacks onto orders and wallet recharges
- Circuit breaker for the gateway
"""

from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitState,
    phonepe_breaker,
)
from .phonepe import (
    CallbackResult,
    InvalidChecksumError,
    InvalidPaymentAmountError,
    PaymentInitiation,
    PhonePeClient,
    PhonePeConfigError,
    PhonePeError,
    order_transaction_id,
    parse_transaction_id,
    recharge_transaction_id,
    validate_amount,
)
from .settlement import SettlementOutcome, SettlementService, UnknownTransactionError

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitState",
    "phonepe_breaker",
    "CallbackResult",
    "InvalidChecksumError",
    "InvalidPaymentAmountError",
    "PaymentInitiation",
    "PhonePeClient",
    "PhonePeConfigError",
    "PhonePeError",
    "order_transaction_id",
    "parse_transaction_id",
    "recharge_transaction_id",
    "validate_amount",
    "SettlementOutcome",
    "SettlementService",
    "UnknownTransactionError",
]
