"""Storefront bounded context — Catalogue, Session Carts, Checkout and Orders.

Anonymous shoppers are tracked by an opaque session id. Carts are priced
against the static catalogue at checkout, a payment intent is opened with the
authoritative total, and the order is materialized when the payment provider
confirms the charge through its webhook.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")
