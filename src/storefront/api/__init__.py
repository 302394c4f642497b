"""Storefront API package."""

from storefront.api.errors import register_error_handlers
from storefront.api.routes import (
    cart_router,
    catalogue_router,
    checkout_router,
    order_router,
    shipping_router,
    webhook_router,
)

ROUTERS = (
    catalogue_router,
    shipping_router,
    cart_router,
    checkout_router,
    order_router,
    webhook_router,
)

__all__ = [
    "ROUTERS",
    "cart_router",
    "catalogue_router",
    "checkout_router",
    "order_router",
    "register_error_handlers",
    "shipping_router",
    "webhook_router",
]
