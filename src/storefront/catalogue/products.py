"""Static product catalogue — the only source of truth for prices.

The catalogue is loaded once per process and never mutated. Prices are in
minor currency units (cents); a price submitted by a client is never used.
"""

from collections.abc import Iterable
from dataclasses import dataclass

DEFAULT_WEIGHT_OZ = 8


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price_cents: int
    image_path: str
    weight_oz: int = DEFAULT_WEIGHT_OZ
    active: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Product id is required")
        if not isinstance(self.price_cents, int) or self.price_cents < 0:
            raise ValueError(f"Product {self.id}: price_cents must be a non-negative integer")
        if self.weight_oz < 0:
            raise ValueError(f"Product {self.id}: weight_oz must be non-negative")


class Catalogue:
    """Read-only product lookup. Inactive products behave as if they were absent."""

    def __init__(self, products: Iterable[Product]) -> None:
        self._products: dict[str, Product] = {}
        for product in products:
            if product.id in self._products:
                raise ValueError(f"Duplicate product id: {product.id}")
            self._products[product.id] = product

    def get(self, product_id: str | None) -> Product | None:
        product = self._products.get(product_id) if product_id else None
        if product is None or not product.active:
            return None
        return product

    def is_valid(self, product_id: str | None) -> bool:
        return self.get(product_id) is not None

    def all(self) -> list[Product]:
        return [p for p in self._products.values() if p.active]


DEFAULT_PRODUCTS = (
    Product("essential-tee", "Essential Tee", 2800, "/images/essential-tee.jpg", weight_oz=6),
    Product("heavyweight-hoodie", "Heavyweight Hoodie", 6500, "/images/heavyweight-hoodie.jpg", weight_oz=24),
    Product("logo-cap", "Logo Cap", 2400, "/images/logo-cap.jpg", weight_oz=5),
    Product("canvas-tote", "Canvas Tote", 1000, "/images/canvas-tote.jpg", weight_oz=4),
    Product("sticker-pack", "Sticker Pack", 500, "/images/sticker-pack.jpg", weight_oz=1),
    Product("enamel-pin", "Enamel Pin", 800, "/images/enamel-pin.jpg", weight_oz=1),
    Product("crew-socks", "Crew Socks", 1400, "/images/crew-socks.jpg", weight_oz=3),
    Product("field-jacket", "Field Jacket", 12000, "/images/field-jacket.jpg", weight_oz=40),
)

_current_catalogue: Catalogue | None = None


def get_catalogue() -> Catalogue:
    """Return the process-wide catalogue. Defaults to ``DEFAULT_PRODUCTS``."""
    global _current_catalogue
    if _current_catalogue is None:
        _current_catalogue = Catalogue(DEFAULT_PRODUCTS)
    return _current_catalogue


def set_catalogue(catalogue: Catalogue) -> None:
    """Override the active catalogue (useful for tests)."""
    global _current_catalogue
    _current_catalogue = catalogue


def reset_catalogue() -> None:
    """Reset to the default catalogue."""
    global _current_catalogue
    _current_catalogue = None
