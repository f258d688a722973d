"""
Payment routers - /api/payments/*
"""

from .phonepe import get_phonepe_client, router

__all__ = ["get_phonepe_client", "router"]
