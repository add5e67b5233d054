"""Ordering domain API package."""

from ordering.api.routes import admin_router, storefront_router

__all__ = ["storefront_router", "admin_router"]
