# xlshop

A small warehouse inventory service. It keeps products, their stock levels
and a log of every stock-in and stock-out operation in memory, and serves
them over a JSON HTTP API alongside a directory of static files.

## Installation

```
pip install .
```

## Running the server

```
xlshop-server
```

Options:

- `--host` — address to bind (default: all interfaces)
- `--port` — port to listen on (default `8080`)
- `--static` — directory of static files (default `./static`)

Every path that is not an API route is served from the static directory:
files are returned with a guessed content type, a directory is answered
with its `index.html` if it has one and otherwise with a plain HTML
listing, and paths outside the directory give `404`.

### API

| Method | Path          | Description |
|--------|---------------|-------------|
| POST   | `/products`   | Create a product from a JSON object. Keys `Name` and `SafetyStock` are matched case-insensitively; the ID is assigned automatically (`"1"`, `"2"`, …) and stock starts at zero. Responds `201` with the product. |
| GET    | `/products`   | List all products. |
| GET    | `/inventory`  | List products, optionally filtered by `?keyword=` (substring of the name). Answers `null` when nothing matches. |
| POST   | `/stock/in`   | Add stock: `?product_id=&operator=&quantity=`. |
| POST   | `/stock/out`  | Remove stock: `?product_id=&operator=&quantity=`. Fails if stock is insufficient. |
| GET    | `/records`    | All stock operations, oldest first, each with `ProductID`, `Operation` (`in`/`out`), `Quantity`, `Operator` and a Unix `Timestamp`. |
| GET    | `/stats`      | `totalProducts`, `todayIn`, `todayOut` and `lowStock` (products at or below their safety stock). |

Products are returned as objects with `ID`, `Name`, `SafetyStock` and
`Stock`. A body that is not valid JSON or has fields of the wrong type
gives `400`; missing parameters or a non-integer quantity give `400`; an
unknown product or insufficient stock gives `500` with the error message
as a plain-text body; a wrong method gives `405`. Messages are in Chinese
(for example `库存不足` for insufficient stock).

## Seeding test data

With the server running, fill it with five sample products and fifteen
stock movements, printing one line per request:

```
xlshop-seed
```

Use `--base-url` to point at a server other than `http://localhost:8080`.
A failed request is reported on its line and the run carries on. From
Python, `xlshop.seed.run(base_url, pause)` yields the same report lines;
`create_product`, `stock_in` and `stock_out` raise `SeedError` when the
server does not answer with the expected status.

## Using the library directly

```python
from xlshop.warehouse import Product, Warehouse, InsufficientStockError

warehouse = Warehouse()
widget = warehouse.add_product(Product(name="Widget", safety_stock=10))
# widget.id == "1"

warehouse.stock_in(widget.id, "admin", 25)
try:
    warehouse.stock_out(widget.id, "admin", 100)
except InsufficientStockError:
    pass

print(warehouse.query_inventory("Wid"))
print(warehouse.calculate_stats().to_dict())
```

`ProductNotFoundError` and `InsufficientStockError` both derive from
`StockError`.

The WSGI application `xlshop.server.InventoryApp(warehouse, static_dir)`
can be mounted in any WSGI server; `xlshop.server.make_server(app, host,
port)` builds the threaded server that `xlshop-server` uses.

## Limitations

All data lives in memory: nothing is saved to disk, and products, stock
levels and records are lost when the server stops. Extra product fields
such as price or category are accepted in requests but not stored.

## Running the tests

```
pip install .[test]
pytest
```