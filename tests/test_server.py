import io
import json
import socket
import threading
import urllib.request
from wsgiref.util import setup_testing_defaults

import pytest

from xlshop.server import InventoryApp, main, make_server
from xlshop.warehouse import Warehouse


def call(app, method, path, query="", body=b""):
    environ = {}
    setup_testing_defaults(environ)
    environ.update(
        {
            "REQUEST_METHOD": method,
            "PATH_INFO": path,
            "QUERY_STRING": query,
            "CONTENT_LENGTH": str(len(body)),
            "wsgi.input": io.BytesIO(body),
        }
    )
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = int(status.split()[0])
        captured["headers"] = dict(headers)

    chunks = app(environ, start_response)
    return captured["status"], captured["headers"], b"".join(chunks)


@pytest.fixture
def app(tmp_path):
    return InventoryApp(Warehouse(), tmp_path)


def add(app, name, safety=0):
    payload = json.dumps({"Name": name, "SafetyStock": safety}).encode()
    return call(app, "POST", "/products", body=payload)


def test_create_product_assigns_id_and_resets_stock(app):
    payload = json.dumps({"ID": "x", "Name": "Widget", "Stock": 5}).encode()
    status, _, body = call(app, "POST", "/products", body=payload)
    assert status == 201
    data = json.loads(body)
    assert data["ID"] == "1"
    assert data["Name"] == "Widget"
    assert data["Stock"] == 0
    assert app.warehouse.products["1"].name == "Widget"


def test_create_product_matches_keys_case_insensitively(app):
    payload = json.dumps({"id": "9", "name": "Lower", "price": 1.5}).encode()
    status, _, body = call(app, "POST", "/products", body=payload)
    assert status == 201
    assert json.loads(body)["Name"] == "Lower"


@pytest.mark.parametrize(
    "raw",
    [b"not json", b"", b"[1, 2]", b'{"Name": 3}', b'{"SafetyStock": 1.5}'],
)
def test_create_product_rejects_bad_body(app, raw):
    status, headers, body = call(app, "POST", "/products", body=raw)
    assert status == 400
    assert body.decode() == "无效的请求数据\n"
    assert headers["Content-Type"].startswith("text/plain")
    assert app.warehouse.products == {}


def test_list_products(app):
    add(app, "A")
    add(app, "B")
    status, _, body = call(app, "GET", "/products")
    assert status == 200
    assert sorted(p["Name"] for p in json.loads(body)) == ["A", "B"]


def test_list_products_empty_is_empty_list(app):
    _, _, body = call(app, "GET", "/products")
    assert json.loads(body) == []


@pytest.mark.parametrize(
    "method,path",
    [("PUT", "/products"), ("GET", "/stock/in"), ("GET", "/stock/out"),
     ("POST", "/inventory"), ("DELETE", "/records"), ("POST", "/stats")],
)
def test_wrong_method(app, method, path):
    status, _, body = call(app, method, path)
    assert status == 405
    assert body.decode() == "方法不支持\n"


def test_stock_in_and_out(app):
    add(app, "A")
    status, _, body = call(app, "POST", "/stock/in", "product_id=1&operator=admin&quantity=10")
    assert status == 200
    assert json.loads(body) == {"message": "入库成功"}
    status, _, body = call(app, "POST", "/stock/out", "product_id=1&operator=admin&quantity=10")
    assert status == 200
    assert json.loads(body) == {"message": "出库成功"}
    assert app.warehouse.products["1"].stock == 0
    assert [r.operation for r in app.warehouse.records] == ["in", "out"]


@pytest.mark.parametrize(
    "query",
    ["operator=admin&quantity=1", "product_id=1&quantity=1",
     "product_id=1&operator=admin", "product_id=&operator=admin&quantity=1"],
)
def test_stock_missing_params(app, query):
    add(app, "A")
    status, _, body = call(app, "POST", "/stock/in", query)
    assert status == 400
    assert body.decode() == "缺少必要参数\n"


@pytest.mark.parametrize("quantity", ["abc", "1.5", " 3"])
def test_stock_quantity_must_be_integer(app, quantity):
    add(app, "A")
    status, _, body = call(app, "POST", "/stock/out", f"product_id=1&operator=admin&quantity={quantity}")
    assert status == 400
    assert body.decode() == "数量必须为整数\n"


def test_stock_unknown_product(app):
    status, _, body = call(app, "POST", "/stock/in", "product_id=7&operator=admin&quantity=1")
    assert status == 500
    assert body.decode() == "商品不存在\n"


def test_stock_out_insufficient(app):
    add(app, "A")
    call(app, "POST", "/stock/in", "product_id=1&operator=admin&quantity=3")
    status, _, body = call(app, "POST", "/stock/out", "product_id=1&operator=admin&quantity=4")
    assert status == 500
    assert body.decode() == "库存不足\n"
    assert app.warehouse.products["1"].stock == 3


def test_inventory_keyword(app):
    add(app, "Red Apple")
    add(app, "Banana")
    _, _, body = call(app, "GET", "/inventory", "keyword=Apple")
    assert [p["Name"] for p in json.loads(body)] == ["Red Apple"]
    _, _, body = call(app, "GET", "/inventory")
    assert len(json.loads(body)) == 2


def test_inventory_without_match_is_null(app):
    add(app, "Banana")
    status, _, body = call(app, "GET", "/inventory", "keyword=zzz")
    assert status == 200
    assert json.loads(body) is None


def test_records(app):
    add(app, "A")
    call(app, "POST", "/stock/in", "product_id=1&operator=alice&quantity=5")
    _, headers, body = call(app, "GET", "/records")
    assert headers["Content-Type"] == "application/json"
    records = json.loads(body)
    assert len(records) == 1
    assert records[0]["Operator"] == "alice"
    assert records[0]["Quantity"] == 5
    assert records[0]["Operation"] == "in"


def test_stats(app):
    add(app, "A", safety=10)
    add(app, "B", safety=0)
    call(app, "POST", "/stock/in", "product_id=2&operator=admin&quantity=5")
    call(app, "POST", "/stock/out", "product_id=2&operator=admin&quantity=2")
    _, _, body = call(app, "GET", "/stats")
    assert json.loads(body) == {"totalProducts": 2, "todayIn": 5, "todayOut": 2, "lowStock": 1}


def test_static_file(app, tmp_path):
    (tmp_path / "page.html").write_text("<p>hi</p>", encoding="utf-8")
    status, headers, body = call(app, "GET", "/page.html")
    assert status == 200
    assert body == b"<p>hi</p>"
    assert headers["Content-Type"].startswith("text/html")


def test_static_index(app, tmp_path):
    (tmp_path / "index.html").write_text("home", encoding="utf-8")
    status, _, body = call(app, "GET", "/")
    assert status == 200
    assert body == b"home"
    status, headers, _ = call(app, "GET", "/index.html")
    assert status == 301
    assert headers["Location"] == "./"


def test_static_directory_redirect_and_listing(app, tmp_path):
    sub = tmp_path / "docs"
    sub.mkdir()
    (sub / "a.txt").write_text("a", encoding="utf-8")
    status, headers, _ = call(app, "GET", "/docs")
    assert status == 301
    assert headers["Location"] == "docs/"
    status, _, body = call(app, "GET", "/docs/")
    assert status == 200
    assert b'<a href="a.txt">a.txt</a>' in body


def test_static_missing_and_traversal(app, tmp_path):
    status, _, body = call(app, "GET", "/nothing.txt")
    assert status == 404
    assert body == b"404 page not found\n"
    status, _, _ = call(app, "GET", "/../../etc/passwd")
    assert status == 404


def test_make_server_serves_requests(tmp_path):
    warehouse = Warehouse()
    server = make_server(InventoryApp(warehouse, tmp_path), "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        port = server.server_address[1]
        with urllib.request.urlopen(f"http://127.0.0.1:{port}/stats") as response:
            data = json.loads(response.read())
        assert data["totalProducts"] == 0
    finally:
        server.shutdown()
        server.server_close()


def test_main_reports_bind_failure(tmp_path, capsys):
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        port = sock.getsockname()[1]
        code = main(["--host", "127.0.0.1", "--port", str(port), "--static", str(tmp_path)])
    assert code == 1
    assert "服务器启动失败" in capsys.readouterr().out