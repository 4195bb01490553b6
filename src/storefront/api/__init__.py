"""Storefront API package."""

from storefront.api.errors import register_error_handlers
from storefront.api.routes import discount_router, order_router, stock_router

__all__ = ["order_router", "discount_router", "stock_router", "register_error_handlers"]
