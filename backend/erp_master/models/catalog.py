from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .base import text, optional_text, money, integer, number, compact


DEFAULT_CATEGORY = "General"
CRITICAL_STOCK_LEVEL = 5
LOW_STOCK_LEVEL = 10


@dataclass
class Product:
    id: str
    name: str
    sku: str = ""
    barcode: str = ""
    cost_price: Decimal = Decimal("0")
    sell_price: Decimal = Decimal("0")
    stock: int = 0
    category: str = DEFAULT_CATEGORY
    image: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "Product":
        return cls(
            id=text(raw, "id"),
            name=text(raw, "name"),
            sku=text(raw, "sku"),
            barcode=text(raw, "barcode"),
            cost_price=money(raw, "costPrice"),
            sell_price=money(raw, "sellPrice"),
            stock=integer(raw, "stock"),
            category=text(raw, "category", DEFAULT_CATEGORY),
            image=optional_text(raw, "image"),
        )

    def to_dict(self) -> dict:
        return compact({
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "costPrice": number(self.cost_price),
            "sellPrice": number(self.sell_price),
            "stock": self.stock,
            "category": self.category,
            "image": self.image,
        })

    def matches(self, term: str) -> bool:
        """Case-insensitive search over name, SKU and barcode."""
        needle = term.lower()
        return (
            needle in self.name.lower()
            or needle in self.sku.lower()
            or needle in self.barcode.lower()
        )


@dataclass
class CartItem(Product):
    """Product snapshot at sale time plus the quantity sold."""
    quantity: int = 0

    @classmethod
    def from_dict(cls, raw: dict) -> "CartItem":
        product = Product.from_dict(raw)
        return cls(**vars(product), quantity=integer(raw, "quantity"))

    @classmethod
    def snapshot(cls, product: Product, quantity: int) -> "CartItem":
        return cls(**vars(product), quantity=quantity)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["quantity"] = self.quantity
        return data

    @property
    def line_total(self) -> Decimal:
        return self.sell_price * self.quantity

    @property
    def line_cost(self) -> Decimal:
        return self.cost_price * self.quantity
