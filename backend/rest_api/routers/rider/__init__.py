"""
Rider routers - /api/rider/*
"""

from .routes import router

__all__ = ["router"]
