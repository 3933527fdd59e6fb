"""Populate a running warehouse server with sample products and stock movements."""

from __future__ import annotations

import argparse
import json
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping
from urllib.parse import urlencode

DEFAULT_BASE_URL = "http://localhost:8080"

SEED_PRODUCTS: tuple[dict[str, Any], ...] = tuple(
    {"id": str(n), "name": f"Test Product {n}", "price": price, "category": "TestCategory"}
    for n, price in enumerate((99.99, 199.99, 299.99, 399.99, 499.99), start=1)
)


@dataclass(frozen=True)
class Operation:
    product_id: str
    operator: str
    quantity: int
    is_stock_in: bool


OPERATIONS: tuple[Operation, ...] = (
    Operation("1", "admin", 100, True),
    Operation("2", "admin", 200, True),
    Operation("3", "admin", 300, True),
    Operation("4", "admin", 400, True),
    Operation("5", "admin", 500, True),
    Operation("1", "admin", 50, False),
    Operation("2", "admin", 100, False),
    Operation("3", "admin", 150, False),
    Operation("4", "admin", 200, False),
    Operation("5", "admin", 250, False),
    Operation("1", "admin", 30, True),
    Operation("2", "admin", 60, True),
    Operation("3", "admin", 90, True),
    Operation("4", "admin", 120, True),
    Operation("5", "admin", 150, True),
)


class SeedError(Exception):
    """Raised when a request to the server fails."""


def _post(url: str, data: bytes | None = None, headers: Mapping[str, str] | None = None) -> int:
    request = urllib.request.Request(url, data=data, headers=dict(headers or {}), method="POST")
    try:
        with urllib.request.urlopen(request) as response:
            return response.status
    except urllib.error.HTTPError as exc:
        exc.close()
        return exc.code


def create_product(base_url: str, product: Mapping[str, Any]) -> None:
    """POST a product to /products; the server must answer 201."""
    body = json.dumps(dict(product)).encode("utf-8")
    try:
        status = _post(
            f"{base_url.rstrip('/')}/products", body, {"Content-Type": "application/json"}
        )
    except OSError as exc:
        raise SeedError(str(exc)) from exc
    if status != 201:
        raise SeedError(f"failed to create product, status code: {status}")


def _move(base_url: str, direction: str, product_id: str, operator: str, quantity: int) -> None:
    query = urlencode({"product_id": product_id, "operator": operator, "quantity": quantity})
    try:
        status = _post(f"{base_url.rstrip('/')}/stock/{direction}?{query}")
    except OSError as exc:
        raise SeedError(f"error making request: {exc}") from exc
    if status != 200:
        raise SeedError(f"failed to stock {direction}, status code: {status}")


def stock_in(base_url: str, product_id: str, operator: str, quantity: int) -> None:
    """Increase a product's stock through /stock/in."""
    _move(base_url, "in", product_id, operator, quantity)


def stock_out(base_url: str, product_id: str, operator: str, quantity: int) -> None:
    """Decrease a product's stock through /stock/out."""
    _move(base_url, "out", product_id, operator, quantity)


def run(
    base_url: str = DEFAULT_BASE_URL, pause: Callable[[float], Any] = time.sleep
) -> Iterator[str]:
    """Create the sample products and apply the sample operations, yielding a report line for each."""
    for product in SEED_PRODUCTS:
        try:
            create_product(base_url, product)
        except SeedError as exc:
            yield f"Error creating product {product['id']}: {exc}"
        else:
            yield f"Product {product['id']} created successfully"

    pause(2)

    for number, op in enumerate(OPERATIONS, start=1):
        move = stock_in if op.is_stock_in else stock_out
        try:
            move(base_url, op.product_id, op.operator, op.quantity)
        except SeedError as exc:
            yield f"Error operation {number}: {exc}"
        else:
            direction = "in" if op.is_stock_in else "out"
            yield (
                f"Operation {number} successful: Product {op.product_id} "
                f"stock {direction} by {op.quantity} units"
            )
        pause(0.5)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="xlshop-seed", description="Load sample data into a server.")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL)
    args = parser.parse_args(argv)
    for line in run(args.base_url):
        print(line, flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())