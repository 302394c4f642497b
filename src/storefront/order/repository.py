"""Repository for the Order aggregate."""

from protean.exceptions import ObjectNotFoundError

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_payment_intent(self, payment_intent_id: str) -> Order | None:
        try:
            return self.get(payment_intent_id)
        except ObjectNotFoundError:
            return None
