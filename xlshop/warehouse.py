"""In-memory warehouse: products, stock movements and daily statistics."""

from __future__ import annotations

import datetime as _dt
import time
from dataclasses import dataclass, field
from typing import Any

STOCK_IN = "in"
STOCK_OUT = "out"


class StockError(Exception):
    """Base class for warehouse operation failures."""


class ProductNotFoundError(StockError):
    """Raised when an operation names a product that does not exist."""

    def __init__(self, product_id: str) -> None:
        super().__init__("商品不存在")
        self.product_id = product_id


class InsufficientStockError(StockError):
    """Raised when a stock-out asks for more than is on hand."""

    def __init__(self, product_id: str, available: int, requested: int) -> None:
        super().__init__("库存不足")
        self.product_id = product_id
        self.available = available
        self.requested = requested


@dataclass
class Product:
    """A product held in the warehouse."""

    name: str = ""
    safety_stock: int = 0
    stock: int = 0
    id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "ID": self.id,
            "Name": self.name,
            "SafetyStock": self.safety_stock,
            "Stock": self.stock,
        }


@dataclass
class Record:
    """One stock movement."""

    product_id: str
    operation: str
    quantity: int
    operator: str
    timestamp: int = field(default_factory=lambda: int(time.time()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "ProductID": self.product_id,
            "Operation": self.operation,
            "Quantity": self.quantity,
            "Operator": self.operator,
            "Timestamp": self.timestamp,
        }


@dataclass
class Stats:
    """Summary figures for the warehouse."""

    total_products: int = 0
    today_in: int = 0
    today_out: int = 0
    low_stock: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalProducts": self.total_products,
            "todayIn": self.today_in,
            "todayOut": self.today_out,
            "lowStock": self.low_stock,
        }


def _start_of_today() -> int:
    today = _dt.date.today()
    return int(_dt.datetime.combine(today, _dt.time.min).timestamp())


class Warehouse:
    """Holds products by id and the log of every stock movement."""

    def __init__(self) -> None:
        self.products: dict[str, Product] = {}
        self.records: list[Record] = []
        self.next_id = 1

    def add_product(self, product: Product) -> Product:
        """Register a product under a fresh id, with its stock reset to zero."""
        product.id = str(self.next_id)
        self.next_id += 1
        product.stock = 0
        self.products[product.id] = product
        return product

    def _get(self, product_id: str) -> Product:
        try:
            return self.products[product_id]
        except KeyError:
            raise ProductNotFoundError(product_id) from None

    def stock_in(self, product_id: str, operator: str, quantity: int) -> None:
        """Add quantity to a product's stock and log the movement."""
        product = self._get(product_id)
        product.stock += quantity
        self.records.append(Record(product_id, STOCK_IN, quantity, operator))

    def stock_out(self, product_id: str, operator: str, quantity: int) -> None:
        """Remove quantity from a product's stock and log the movement."""
        product = self._get(product_id)
        if product.stock < quantity:
            raise InsufficientStockError(product_id, product.stock, quantity)
        product.stock -= quantity
        self.records.append(Record(product_id, STOCK_OUT, quantity, operator))

    def query_inventory(self, keyword: str = "") -> list[Product]:
        """Return products whose name contains keyword; all products if it is empty."""
        if not keyword:
            return list(self.products.values())
        return [p for p in self.products.values() if keyword in p.name]

    def calculate_stats(self) -> Stats:
        """Count products, low-stock products, and today's in/out quantities."""
        stats = Stats(total_products=len(self.products))
        stats.low_stock = sum(
            1 for p in self.products.values() if p.stock <= p.safety_stock
        )
        start = _start_of_today()
        for record in self.records:
            if record.timestamp < start:
                continue
            if record.operation == STOCK_IN:
                stats.today_in += record.quantity
            elif record.operation == STOCK_OUT:
                stats.today_out += record.quantity
        return stats