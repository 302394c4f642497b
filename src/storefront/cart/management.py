"""Cart mutations — commands and handler.

Each command runs inside a single unit of work, so the read-modify-write of a
row either commits as a whole or not at all.
"""

from protean import handle
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart_item import CartItem
from storefront.catalogue.products import get_catalogue
from storefront.domain import logger, storefront
from storefront.errors import InvalidInput


@storefront.command(part_of="CartItem")
class AdjustCartItem:
    """Add ``quantity_delta`` to the stored quantity (negative deltas decrease it)."""

    session_id = String(required=True, max_length=64)
    product_id = String(required=True, max_length=100)
    quantity_delta = Integer(required=True)


@storefront.command(part_of="CartItem")
class ClearCart:
    """Remove every item from a session's cart."""

    session_id = String(required=True, max_length=64)


@storefront.command_handler(part_of=CartItem)
class ManageCartHandler:
    @handle(AdjustCartItem)
    def adjust_cart_item(self, command):
        if command.quantity_delta == 0:
            raise InvalidInput("quantityDelta cannot be 0")
        if not get_catalogue().is_valid(command.product_id):
            raise InvalidInput(f"Unknown product: {command.product_id}")

        repo = current_domain.repository_for(CartItem)
        item = repo.find_line(command.session_id, command.product_id)
        current_quantity = item.quantity if item else 0
        new_quantity = current_quantity + command.quantity_delta

        if new_quantity <= 0:
            if item is not None:
                repo.discard(item)
            new_quantity = 0
        elif item is None:
            repo.add(CartItem.start(command.session_id, command.product_id, new_quantity))
        else:
            item.change_quantity(new_quantity)
            repo.add(item)

        logger.debug(
            "cart.adjusted",
            session_id=command.session_id,
            product_id=command.product_id,
            quantity_delta=command.quantity_delta,
            quantity=new_quantity,
        )
        return new_quantity

    @handle(ClearCart)
    def clear_cart(self, command):
        removed = current_domain.repository_for(CartItem).clear_session(command.session_id)
        logger.info("cart.cleared", session_id=command.session_id, removed=removed)
        return removed
