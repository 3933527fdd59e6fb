"""HTTP front end for the warehouse: JSON routes plus static file serving."""

from __future__ import annotations

import argparse
import html
import json
import logging
import mimetypes
import posixpath
import re
import threading
from http import HTTPStatus
from pathlib import Path
from socketserver import ThreadingMixIn
from typing import Any, Callable, Iterable, NamedTuple
from urllib.parse import parse_qs, quote
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer
from wsgiref.simple_server import make_server as _wsgi_make_server

from xlshop.warehouse import Product, StockError, Warehouse

METHOD_NOT_ALLOWED = "方法不支持"
INVALID_BODY = "无效的请求数据"
MISSING_PARAMS = "缺少必要参数"
QUANTITY_NOT_INT = "数量必须为整数"
STOCK_IN_OK = "入库成功"
STOCK_OUT_OK = "出库成功"

_log = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")
_PRODUCT_FIELDS = {
    "id": ("id", str),
    "name": ("name", str),
    "safetystock": ("safety_stock", int),
    "stock": ("stock", int),
}


class _Response(NamedTuple):
    status: int
    headers: list[tuple[str, str]]
    body: bytes


def _status_line(code: int) -> str:
    return f"{code} {HTTPStatus(code).phrase}"


def _json(code: int, payload: Any) -> _Response:
    body = (json.dumps(payload, ensure_ascii=False) + "\n").encode("utf-8")
    return _Response(code, [("Content-Type", "application/json")], body)


def _error(code: int, message: str) -> _Response:
    headers = [
        ("Content-Type", "text/plain; charset=utf-8"),
        ("X-Content-Type-Options", "nosniff"),
    ]
    return _Response(code, headers, (message + "\n").encode("utf-8"))


def _redirect(location: str) -> _Response:
    return _Response(301, [("Location", location)], b"")


def _decode_product(raw: bytes) -> Product:
    """Build a product from a JSON object; keys match field names case-insensitively."""
    data = json.loads(raw)
    product = Product()
    if data is None:
        return product
    if not isinstance(data, dict):
        raise ValueError("product must be a JSON object")
    for key, value in data.items():
        spec = _PRODUCT_FIELDS.get(key.lower())
        if spec is None or value is None:
            continue
        attr, kind = spec
        if kind is int and (isinstance(value, bool) or not isinstance(value, int)):
            raise ValueError(f"{key} must be an integer")
        if kind is str and not isinstance(value, str):
            raise ValueError(f"{key} must be a string")
        setattr(product, attr, value)
    return product


def _read_body(environ: dict) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    if length <= 0:
        return b""
    return environ["wsgi.input"].read(length)


class InventoryApp:
    """WSGI application exposing a warehouse over HTTP."""

    def __init__(self, warehouse: Warehouse | None = None, static_dir: str | Path = "static") -> None:
        self.warehouse = warehouse if warehouse is not None else Warehouse()
        self.static_dir = Path(static_dir)
        self._lock = threading.Lock()
        self._routes: dict[str, dict[str, Callable[[dict], _Response]]] = {
            "/products": {"POST": self._create_product, "GET": self._list_products},
            "/stock/in": {"POST": self._stock_in},
            "/stock/out": {"POST": self._stock_out},
            "/inventory": {"GET": self._inventory},
            "/records": {"GET": self._records},
            "/stats": {"GET": self._stats},
        }

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        path = environ.get("PATH_INFO") or "/"
        method = environ.get("REQUEST_METHOD", "GET")
        handlers = self._routes.get(path)
        if handlers is None:
            response = self._serve_static(path)
        else:
            handler = handlers.get(method)
            if handler is None:
                response = _error(405, METHOD_NOT_ALLOWED)
            else:
                with self._lock:
                    response = handler(environ)
        headers = list(response.headers)
        headers.append(("Content-Length", str(len(response.body))))
        start_response(_status_line(response.status), headers)
        return [b"" if method == "HEAD" else response.body]

    def _create_product(self, environ: dict) -> _Response:
        try:
            product = _decode_product(_read_body(environ))
        except ValueError:
            return _error(400, INVALID_BODY)
        self.warehouse.add_product(product)
        return _json(201, product.to_dict())

    def _list_products(self, environ: dict) -> _Response:
        return _json(200, [p.to_dict() for p in self.warehouse.products.values()])

    def _stock(self, environ: dict, move: Callable[[str, str, int], None], ok: str) -> _Response:
        params = parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True)
        product_id, operator, quantity_text = (
            params.get(name, [""])[0] for name in ("product_id", "operator", "quantity")
        )
        if not product_id or not operator or not quantity_text:
            return _error(400, MISSING_PARAMS)
        if not _INTEGER.fullmatch(quantity_text):
            return _error(400, QUANTITY_NOT_INT)
        try:
            move(product_id, operator, int(quantity_text))
        except StockError as exc:
            return _error(500, str(exc))
        return _json(200, {"message": ok})

    def _stock_in(self, environ: dict) -> _Response:
        return self._stock(environ, self.warehouse.stock_in, STOCK_IN_OK)

    def _stock_out(self, environ: dict) -> _Response:
        return self._stock(environ, self.warehouse.stock_out, STOCK_OUT_OK)

    def _inventory(self, environ: dict) -> _Response:
        params = parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True)
        keyword = params.get("keyword", [""])[0]
        results = [p.to_dict() for p in self.warehouse.query_inventory(keyword)]
        return _json(200, results or None)

    def _records(self, environ: dict) -> _Response:
        return _json(200, [r.to_dict() for r in self.warehouse.records])

    def _stats(self, environ: dict) -> _Response:
        return _json(200, self.warehouse.calculate_stats().to_dict())

    def _serve_static(self, path: str) -> _Response:
        clean = posixpath.normpath("/" + path)
        if path.endswith("/index.html"):
            return _redirect("./")
        root = self.static_dir.resolve()
        target = root.joinpath(*[part for part in clean.split("/") if part])
        try:
            target = target.resolve()
            target.relative_to(root)
        except (OSError, ValueError):
            return _error(404, "404 page not found")
        try:
            if target.is_dir():
                if not path.endswith("/"):
                    return _redirect(posixpath.basename(clean) + "/")
                index = target / "index.html"
                if index.is_file():
                    return self._file_response(index)
                return self._listing(target)
            if target.is_file():
                return self._file_response(target)
        except PermissionError:
            return _error(403, "403 Forbidden")
        except OSError:
            return _error(500, "500 Internal Server Error")
        return _error(404, "404 page not found")

    @staticmethod
    def _file_response(target: Path) -> _Response:
        content_type, _ = mimetypes.guess_type(target.name)
        if content_type is None:
            content_type = "application/octet-stream"
        elif content_type.startswith("text/"):
            content_type += "; charset=utf-8"
        return _Response(200, [("Content-Type", content_type)], target.read_bytes())

    @staticmethod
    def _listing(directory: Path) -> _Response:
        lines = [
            "<!doctype html>",
            '<meta name="viewport" content="width=device-width">',
            "<pre>",
        ]
        for entry in sorted(directory.iterdir(), key=lambda e: e.name):
            name = entry.name + ("/" if entry.is_dir() else "")
            lines.append(f'<a href="{quote(name)}">{html.escape(name)}</a>')
        lines.append("</pre>")
        body = ("\n".join(lines) + "\n").encode("utf-8")
        return _Response(200, [("Content-Type", "text/html; charset=utf-8")], body)


class _QuietHandler(WSGIRequestHandler):
    """Request handler that sends access lines to the logging module instead of stderr."""

    def log_message(self, format: str, *args: Any) -> None:
        _log.debug("%s - %s", self.address_string(), format % args)


class _ThreadingServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


def make_server(app: Callable, host: str = "", port: int = 8080) -> WSGIServer:
    """Create a threaded WSGI server bound to host and port."""
    return _wsgi_make_server(
        host, port, app, server_class=_ThreadingServer, handler_class=_QuietHandler
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="xlshop", description="Run the warehouse server.")
    parser.add_argument("--host", default="")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--static", default="./static", help="directory of static files")
    args = parser.parse_args(argv)

    app = InventoryApp(Warehouse(), args.static)
    print(f"服务器正在运行在端口 {args.port}...")
    try:
        server = make_server(app, args.host, args.port)
    except OSError as exc:
        print(f"服务器启动失败: {exc}")
        return 1
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())