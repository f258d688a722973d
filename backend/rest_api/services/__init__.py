"""
Services module for business logic.

- domain/: Application services (ordering, dispatch, wallet, menu, reviews)
- payments/: PhonePe gateway client and callback settlement
- events/: Real-time change notifications

Usage:
    from rest_api.services.domain import OrderService
    service = OrderService(db)
    quote = service.quote(restaurant_id, lines)
"""
