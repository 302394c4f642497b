"""Order lookup for the confirmation page."""

from protean.utils.globals import current_domain

from storefront.catalogue.products import get_catalogue
from storefront.errors import NotFound
from storefront.order.order import Order


def get_order_view(payment_intent_id: str) -> dict:
    """Return an order with its items enriched from the catalogue.

    Raises ``NotFound`` while the payment confirmation has not been processed.
    """
    order = current_domain.repository_for(Order).find_by_payment_intent(payment_intent_id)
    if order is None:
        raise NotFound("Order not found. The payment confirmation may not have been processed yet.")

    catalogue = get_catalogue()
    items = []
    for item in order.items:
        product = catalogue.get(item.product_id)
        items.append(
            {
                "product_id": item.product_id,
                "name": product.name if product else item.name,
                "image_path": product.image_path if product else None,
                "unit_price_cents": item.unit_price_cents,
                "quantity": item.quantity,
                "line_total_cents": item.line_total_cents,
            }
        )

    return {
        "payment_intent_id": order.payment_intent_id,
        "status": order.status,
        "customer_email": order.customer_email,
        "customer_first_name": order.customer_first_name,
        "customer_last_name": order.customer_last_name,
        "shipping_address": order.shipping_address,
        "shipping_apartment": order.shipping_apartment,
        "shipping_city": order.shipping_city,
        "shipping_state": order.shipping_state,
        "shipping_zip": order.shipping_zip,
        "shipping_phone": order.shipping_phone,
        "shipping_zone": order.shipping_zone,
        "shipping_description": order.shipping_description,
        "subtotal_cents": order.subtotal_cents,
        "shipping_cost_cents": order.shipping_cost_cents,
        "total_cents": order.total_cents,
        "currency": order.currency,
        "items": sorted(items, key=lambda item: item["product_id"]),
        "created_at": order.created_at,
    }
