"""Repository for the CartItem aggregate."""

from protean.exceptions import ObjectNotFoundError

from storefront.cart.cart_item import CartItem, cart_item_key
from storefront.domain import storefront


@storefront.repository(part_of=CartItem)
class CartItemRepository:
    def find_line(self, session_id: str, product_id: str) -> CartItem | None:
        """Return the row for (session, product), or None."""
        try:
            return self.get(cart_item_key(session_id, product_id))
        except ObjectNotFoundError:
            return None

    def for_session(self, session_id: str) -> list[CartItem]:
        """All rows of a session, oldest first."""
        items = self._dao.query.filter(session_id=session_id).all().items
        return sorted(items, key=lambda item: (item.added_at, item.product_id))

    def discard(self, item: CartItem) -> None:
        self._dao.delete(item)

    def clear_session(self, session_id: str) -> int:
        """Delete every row of a session and return how many were removed."""
        items = self._dao.query.filter(session_id=session_id).all().items
        for item in items:
            self._dao.delete(item)
        return len(items)
