"""
Shared Pydantic schemas used across the application.

Money fields are Decimals and serialize as strings ("540.00").
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["SUPER_ADMIN", "RESTAURANT", "CUSTOMER", "RIDER"]
OrderStatusName = Literal["PENDING", "CONFIRMED", "COOKING", "READY", "DELIVERED"]
DeliveryStatusName = Literal["SEARCHING_FOR_RIDER", "RIDER_ASSIGNED", "OUT_FOR_DELIVERY", "DELIVERED"]
PaymentMethodName = Literal["PREPAID_UPI", "COD_CASH", "COD_UPI_SCAN"]
PaymentPurposeName = Literal["ORDER", "RECHARGE"]
RechargeDecisionName = Literal["APPROVE", "REJECT"]
BalanceStatusName = Literal["positive", "warning", "critical"]
MysteryTypeName = Literal["VEG", "NON_VEG", "ANY"]


class ErrorResponse(BaseModel):
    """Standard error body."""

    detail: str


# =============================================================================
# Restaurant Schemas
# =============================================================================


class RestaurantPublicOutput(BaseModel):
    """Restaurant card shown to customers."""

    id: int
    name: str
    slug: str
    image_url: str | None = None
    delivery_fee: Decimal
    free_delivery_threshold: Decimal | None = None
    rating_avg: Decimal
    rating_count: int
    is_accepting_orders: bool


class RestaurantAdminOutput(BaseModel):
    """Full restaurant record for admins and owners."""

    id: int
    name: str
    slug: str
    owner_phone: str
    upi_id: str
    image_url: str | None = None
    is_active: bool
    tech_fee: Decimal
    delivery_fee: Decimal
    free_delivery_threshold: Decimal | None = None
    credit_balance: Decimal
    min_balance_limit: Decimal
    balance_status: BalanceStatusName
    is_accepting_orders: bool
    gst_number: str | None = None
    is_gst_registered: bool
    gst_enabled: bool
    food_gst_rate: Decimal
    rating_avg: Decimal
    rating_count: int
    created_at: datetime | None = None


class OnboardRestaurantRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    owner_phone: str = Field(min_length=10, max_length=20)
    upi_id: str = Field(min_length=3, max_length=100)
    slug: str | None = Field(default=None, max_length=120)
    tech_fee: Decimal | None = Field(default=None, ge=0)
    delivery_fee: Decimal | None = Field(default=None, ge=0)
    free_delivery_threshold: Decimal | None = Field(default=None, ge=0)
    image_url: str | None = None
    gst_number: str | None = Field(default=None, max_length=20)
    food_gst_rate: Decimal | None = Field(default=None, ge=0, le=28)


class ToggleRestaurantRequest(BaseModel):
    is_active: bool


class UpdateRestaurantSettingsRequest(BaseModel):
    """Owner-editable settings. Only fields that are sent are changed."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
    upi_id: str | None = Field(default=None, min_length=3, max_length=100)
    image_url: str | None = None
    delivery_fee: Decimal | None = Field(default=None, ge=0)
    free_delivery_threshold: Decimal | None = Field(default=None, ge=0)
    gst_number: str | None = Field(default=None, max_length=20)
    gst_enabled: bool | None = None
    food_gst_rate: Decimal | None = Field(default=None, ge=0, le=28)


class RestaurantStatsOutput(BaseModel):
    restaurant_id: int
    order_count: int
    active_orders: int
    total_sales: Decimal


class PlatformStatsOutput(BaseModel):
    order_count: int
    platform_revenue: Decimal
    gross_order_value: Decimal
    restaurant_count: int
    active_restaurants: int
    suspended_restaurants: int


# =============================================================================
# Menu Schemas
# =============================================================================


class MenuItemOutput(BaseModel):
    id: int
    restaurant_id: int
    name: str
    category: str | None = None
    image_url: str | None = None
    base_price: Decimal
    selling_price: Decimal
    discount_percentage: Decimal
    is_available: bool
    is_veg: bool
    is_clearance: bool
    stock_remaining: int
    loot_discount_percentage: Decimal | None = None
    promo_description: str | None = None
    is_mystery: bool
    mystery_type: MysteryTypeName | None = None


class MenuOutput(BaseModel):
    restaurant: RestaurantPublicOutput
    items: list[MenuItemOutput]


class CreateMenuItemRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    base_price: Decimal = Field(ge=0)
    category: str | None = Field(default=None, max_length=60)
    image_url: str | None = None
    is_veg: bool = True
    is_mystery: bool = False
    mystery_type: MysteryTypeName | None = None


class ToggleAvailabilityRequest(BaseModel):
    is_available: bool


class ToggleLootRequest(BaseModel):
    enabled: bool
    stock: int | None = Field(default=None, ge=0)
    discount_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    promo_description: str | None = Field(default=None, max_length=200)


# =============================================================================
# Cart / Quote Schemas
# =============================================================================


class CartItemInput(BaseModel):
    menu_item_id: int
    quantity: int = Field(ge=Limits.MIN_QUANTITY, le=Limits.MAX_QUANTITY)


class QuoteRequest(BaseModel):
    restaurant_id: int
    items: list[CartItemInput] = Field(min_length=1, max_length=Limits.MAX_ITEMS_PER_ORDER)
    coupon_code: str | None = Field(default=None, max_length=Limits.MAX_COUPON_CODE_LENGTH)
    use_wallet: bool = False


class OrderItemOutput(BaseModel):
    menu_item_id: int
    name: str
    price: Decimal
    quantity: int
    is_mystery: bool = False


class BillOutput(BaseModel):
    cart_subtotal: Decimal
    discount_amount: Decimal
    delivery_fee: Decimal
    subtotal_before_gst: Decimal
    food_gst_amount: Decimal
    delivery_fee_before_gst: Decimal
    delivery_gst_amount: Decimal
    total_gst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    grand_total: Decimal
    wallet_deduction: Decimal
    amount_to_pay: Decimal


class QuoteOutput(BaseModel):
    restaurant_id: int
    items: list[OrderItemOutput]
    coupon_code: str | None = None
    bill: BillOutput


# =============================================================================
# Coupon Schemas
# =============================================================================


class ValidateCouponRequest(BaseModel):
    restaurant_id: int
    code: str = Field(min_length=1, max_length=Limits.MAX_COUPON_CODE_LENGTH)
    cart_subtotal: Decimal = Field(ge=0)


class CouponValidationOutput(BaseModel):
    valid: bool
    code: str
    discount: Decimal = Decimal("0")
    reason: Literal["NOT_FOUND", "BELOW_MINIMUM"] | None = None
    message: str | None = None
    min_order_value: Decimal | None = None


class CreateCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=Limits.MAX_COUPON_CODE_LENGTH)
    discount_value: Decimal = Field(gt=0)
    min_order_value: Decimal = Field(default=Decimal("0"), ge=0)


class ToggleCouponRequest(BaseModel):
    is_active: bool


class CouponOutput(BaseModel):
    id: int
    restaurant_id: int
    code: str
    discount_value: Decimal
    min_order_value: Decimal
    is_active: bool


# =============================================================================
# Order Schemas
# =============================================================================


class PlaceOrderRequest(BaseModel):
    restaurant_id: int
    items: list[CartItemInput] = Field(min_length=1, max_length=Limits.MAX_ITEMS_PER_ORDER)
    delivery_address: str = Field(min_length=3, max_length=500)
    payment_method: PaymentMethodName
    coupon_code: str | None = Field(default=None, max_length=Limits.MAX_COUPON_CODE_LENGTH)
    use_wallet: bool = False
    gps_coordinates: str | None = Field(default=None, max_length=64)
    voice_note_url: str | None = None
    customer_name: str | None = Field(default=None, max_length=80)


class OrderOutput(BaseModel):
    id: int
    short_id: str
    restaurant_id: int
    customer_id: int
    rider_id: int | None = None
    status: OrderStatusName
    delivery_status: DeliveryStatusName | None = None
    payment_method: PaymentMethodName
    payment_status: str
    items: list[OrderItemOutput]
    delivery_address: str
    gps_coordinates: str | None = None
    voice_note_url: str | None = None
    customer_name: str | None = None
    customer_phone: str
    coupon_code: str | None = None
    cart_subtotal: Decimal
    discount_amount: Decimal
    delivery_fee_charged: Decimal
    subtotal_before_gst: Decimal
    food_gst_amount: Decimal
    delivery_fee_before_gst: Decimal
    delivery_gst_amount: Decimal
    total_gst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    total_amount: Decimal
    wallet_deduction: Decimal
    amount_to_pay: Decimal
    created_at: datetime | None = None
    delivered_at: datetime | None = None


class PlaceOrderResponse(BaseModel):
    order: OrderOutput
    payment_required: bool
    upi_link: str | None = None


class WhatsAppLinkOutput(BaseModel):
    order_id: int
    message: str
    url: str


# =============================================================================
# Rider Schemas
# =============================================================================


class RiderOrderOutput(BaseModel):
    """Order card on the rider feed. No pricing internals."""

    id: int
    short_id: str
    restaurant_id: int
    restaurant_name: str | None = None
    status: OrderStatusName
    delivery_status: DeliveryStatusName | None = None
    delivery_address: str
    gps_coordinates: str | None = None
    maps_link: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    amount_to_collect: Decimal
    item_count: int
    created_at: datetime | None = None


class ClaimResponse(BaseModel):
    claimed: bool
    message: str
    order: RiderOrderOutput | None = None


class RiderEarningsOutput(BaseModel):
    delivered_count: int
    payout_per_delivery: Decimal
    delivery_earnings: Decimal
    wallet_balance: Decimal
    total: Decimal


# =============================================================================
# Wallet Schemas
# =============================================================================


class RechargeRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    proof_image_url: str | None = None
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class ResolveRechargeRequest(BaseModel):
    decision: RechargeDecisionName


class WalletTransactionOutput(BaseModel):
    id: int
    restaurant_id: int | None = None
    profile_id: int | None = None
    order_id: int | None = None
    amount: Decimal
    type: str
    status: str
    proof_image_url: str | None = None
    notes: str | None = None
    payment_transaction_id: str | None = None
    approved_by: int | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None


class WalletSummaryOutput(BaseModel):
    restaurant_id: int
    credit_balance: Decimal
    min_balance_limit: Decimal
    balance_status: BalanceStatusName
    is_accepting_orders: bool
    items_until_suspension: int | None = None
    pending_recharges: int


class CustomerWalletOutput(BaseModel):
    profile_id: int
    wallet_balance: Decimal


# =============================================================================
# Payment Schemas
# =============================================================================


class InitiatePaymentRequest(BaseModel):
    """ORDER pays an existing prepaid order; RECHARGE tops up the customer wallet."""

    type: PaymentPurposeName
    order_id: int | None = None
    amount: Decimal | None = Field(default=None, gt=0)


class InitiatePaymentResponse(BaseModel):
    success: bool
    transaction_id: str
    redirect_url: str


class PhonePeCallbackRequest(BaseModel):
    response: str = Field(min_length=1)


class PaymentCallbackResponse(BaseModel):
    success: bool
    type: PaymentPurposeName
    transaction_id: str
    already_settled: bool = False


# =============================================================================
# Review Schemas
# =============================================================================


class ReviewRequest(BaseModel):
    order_id: int
    rating: int = Field(ge=Limits.MIN_RATING, le=Limits.MAX_RATING)
    review_text: str | None = Field(default=None, max_length=Limits.MAX_REVIEW_LENGTH)


class ReviewOutput(BaseModel):
    id: int
    restaurant_id: int
    order_id: int
    rating: int
    review_text: str | None = None
    created_at: datetime | None = None
