"""CartItem aggregate — one row per (session, product).

The identity is derived from the composite key, so the store can never hold
two rows for the same product in the same session. A quantity of zero is never
stored: the row is removed instead.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


def cart_item_key(session_id: str, product_id: str) -> str:
    return f"{session_id}:{product_id}"


@storefront.aggregate
class CartItem:
    id = Identifier(identifier=True)
    session_id = String(required=True, max_length=64)
    product_id = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def start(cls, session_id: str, product_id: str, quantity: int):
        now = datetime.now(UTC)
        return cls(
            id=cart_item_key(session_id, product_id),
            session_id=session_id,
            product_id=product_id,
            quantity=quantity,
            added_at=now,
            updated_at=now,
        )

    def change_quantity(self, new_quantity: int) -> None:
        if new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1; remove the item instead"]})
        self.quantity = new_quantity
        self.updated_at = datetime.now(UTC)
