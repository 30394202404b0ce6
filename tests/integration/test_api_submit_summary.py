import json
import os
from datetime import date
from http.cookiejar import Cookie, CookieJar
from urllib.request import HTTPCookieProcessor, Request, build_opener

import pytest

BASE = os.getenv("CATERING_BASE_URL", "http://127.0.0.1:8000")
SESSION_ID = os.getenv("CATERING_SESSIONID", "")
_COOKIE_JAR = CookieJar()
_OPENER = build_opener(HTTPCookieProcessor(_COOKIE_JAR))


def _set_cookie(name: str, value: str):
    host = BASE.split("://", 1)[-1].split(":", 1)[0].split("/", 1)[0]
    _COOKIE_JAR.set_cookie(Cookie(
        0, name, value, None, False, host, False, False, "/", True, False, None, True, None, None, {},
    ))


def _http_get(url: str) -> dict:
    req = Request(url)
    req.add_header("Accept", "application/json")
    with _OPENER.open(req, timeout=10) as resp:
        return json.loads(resp.read().decode("utf-8"))


def _http_post(url: str, payload: dict) -> dict:
    data = json.dumps(payload).encode("utf-8")
    req = Request(url, data=data, method="POST")
    req.add_header("Content-Type", "application/json")
    req.add_header("Accept", "application/json")
    # Attach CSRF token from cookies if present
    token = next((c.value for c in _COOKIE_JAR if c.name == "csrftoken"), None)
    if token:
        req.add_header("X-CSRFToken", token)
        req.add_header("Referer", f"{BASE}/order/")
    with _OPENER.open(req, timeout=10) as resp:
        return json.loads(resp.read().decode("utf-8"))


def test_submit_order_then_summary_and_delete():
    if not SESSION_ID:
        pytest.skip("Set CATERING_SESSIONID to a signed-in session cookie")
    _set_cookie("sessionid", SESSION_ID)
    try:
        menu = _http_get(f"{BASE}/api/menu")
    except Exception as e:
        pytest.skip(f"Server not reachable: {e}")

    # Prime cookies by visiting the order page (sets csrftoken)
    page = _OPENER.open(f"{BASE}/order/")
    page.read()
    page.close()

    salads = next((c for c in menu["categories"] if c["name_en"] == "salads"), None)
    liter_items = [i for i in (salads or {}).get("items", []) if i["measurement_type"] == "liters"]
    if not liter_items or len(menu["liter_sizes"]) < 2:
        pytest.skip("Menu has no liter-measured salad")
    salad = liter_items[0]
    small, big = menu["liter_sizes"][0], menu["liter_sizes"][1]
    day = date(2099, 1, 1).isoformat()

    created = _http_post(f"{BASE}/api/order/submit", {
        "customer_name": "integration test",
        "phone": "0500000000",
        "order_date": day,
        "selections": {"salads": [{
            "food_item_id": salad["id"],
            "liters": [
                {"liter_size_id": small["id"], "quantity": 2},
                {"liter_size_id": big["id"], "quantity": 1},
            ],
        }]},
    })
    assert created["success"] is True
    order_id = created["order_id"]
    try:
        detail = _http_get(f"{BASE}/api/order/{order_id}")
        assert len(detail["order"]["items"]) == 2

        summary = _http_get(f"{BASE}/api/orders/summary?from_date={day}&to_date={day}&phone=0500000000")
        row = next(i for c in summary["categories"] for i in c["items"] if i["food_item_id"] == salad["id"])
        totals = {lq["liter_size_id"]: lq["total_quantity"] for lq in row["liter_quantities"]}
        assert totals[small["id"]] >= 2
        assert totals[big["id"]] >= 1
    finally:
        assert _http_post(f"{BASE}/api/order/{order_id}/delete", {})["success"] is True
