"""Read side of the cart: stored rows joined against the catalogue."""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from storefront.cart.cart_item import CartItem
from storefront.cart.management import AdjustCartItem
from storefront.catalogue.products import get_catalogue


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    name: str
    price_cents: int
    image_path: str
    weight_oz: int

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity


def get_cart(session_id: str | None) -> list[CartLine]:
    """Return the cart of a session.

    Rows whose product is no longer in the catalogue are left out of the view
    but stay in the store until they are mutated.
    """
    if not session_id:
        return []

    catalogue = get_catalogue()
    lines = []
    for item in current_domain.repository_for(CartItem).for_session(session_id):
        product = catalogue.get(item.product_id)
        if product is None:
            continue
        lines.append(
            CartLine(
                product_id=item.product_id,
                quantity=item.quantity,
                name=product.name,
                price_cents=product.price_cents,
                image_path=product.image_path,
                weight_oz=product.weight_oz,
            )
        )
    return lines


def apply_delta(session_id: str, product_id: str, quantity_delta: int) -> list[CartLine]:
    """Adjust one line and return the refreshed cart."""
    current_domain.process(
        AdjustCartItem(
            session_id=session_id,
            product_id=product_id,
            quantity_delta=quantity_delta,
        ),
        asynchronous=False,
    )
    return get_cart(session_id)


def cart_subtotal(lines: list[CartLine]) -> int:
    return sum(line.line_total_cents for line in lines)
