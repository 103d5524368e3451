import json
from datetime import datetime, timedelta, timezone

import pytest

from couponsys.api import create_app
from couponsys.model import Cart, Coupon


class FakeService:
    def __init__(self, coupons=None, valid=True, fail=False):
        self.coupons = coupons or []
        self.valid = valid
        self.fail = fail
        self.calls = []

    def get_applicable_coupons(self, cart):
        self.calls.append(("get_applicable_coupons", cart))
        if self.fail:
            raise RuntimeError("boom")
        return self.coupons

    def validate_coupon(self, code, cart):
        self.calls.append(("validate_coupon", code, cart))
        if self.fail:
            raise RuntimeError("boom")
        return self.valid

    def create_coupon(self, coupon):
        self.calls.append(("create_coupon", coupon))
        if self.fail:
            raise RuntimeError("boom")
        coupon.id = 7


def _now():
    return datetime.now(timezone.utc)


def _coupon():
    return Coupon(
        code="TEST10",
        discount_type="percentage",
        discount_value=10,
        min_order_value=100,
        max_discount=50,
        start_date=_now(),
        end_date=_now() + timedelta(hours=24),
        usage_limit=100,
        usage_count=0,
        is_active=True,
        applicable_items=["item1"],
    )


def _post(client, path, body):
    return client.post(path, data=json.dumps(body), content_type="application/json")


@pytest.fixture
def service():
    return FakeService(coupons=[_coupon()])


@pytest.fixture
def client(service):
    return create_app(service, require_json=True).test_client()


def test_get_applicable_coupons(client, service):
    body = {"items": [{"id": "item1", "price": 150}], "total": 150}
    response = _post(client, "/coupons/applicable", body)
    assert response.status_code == 200
    data = response.get_json()
    assert len(data) == 1
    assert data[0]["code"] == "TEST10"
    name, cart = service.calls[0]
    assert name == "get_applicable_coupons"
    assert cart.total == 150
    assert [item.id for item in cart.items] == ["item1"]


def test_validate_coupon(client, service):
    body = {"code": "TEST10", "cart": {"items": [{"id": "item1", "price": 150}], "total": 150}}
    response = _post(client, "/coupons/validate", body)
    assert response.status_code == 200
    assert response.get_json() == {"valid": True}
    name, code, cart = service.calls[0]
    assert (name, code) == ("validate_coupon", "TEST10")
    assert isinstance(cart, Cart) and cart.total == 150


def test_validate_coupon_false():
    client = create_app(FakeService(valid=False)).test_client()
    response = _post(client, "/coupons/validate", {"code": "NOPE"})
    assert response.status_code == 200
    assert response.get_json() == {"valid": False}


def test_create_coupon(client, service):
    start = _now().replace(microsecond=0)
    body = {
        "code": "TEST10",
        "discount_type": "percentage",
        "discount_value": 10,
        "min_order_value": 100,
        "max_discount": 50,
        "start_date": start.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "end_date": (start + timedelta(hours=24)).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "usage_limit": 100,
        "is_active": True,
        "applicable_items": ["item1"],
    }
    response = _post(client, "/coupons/", body)
    assert response.status_code == 201
    data = response.get_json()
    assert data["code"] == "TEST10"
    assert data["id"] == 7
    assert data["applicable_items"] == ["item1"]
    name, coupon = service.calls[0]
    assert name == "create_coupon"
    assert coupon.usage_limit == 100
    assert coupon.start_date == start


def test_invalid_request(client, service):
    response = client.post(
        "/coupons/applicable", data="invalid json", content_type="application/json"
    )
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid request format"}
    assert service.calls == []


def test_missing_content_type(client, service):
    response = client.post("/coupons/applicable", data="{}")
    assert response.status_code == 400
    assert response.get_json() == {"error": "Content-Type must be application/json"}
    assert service.calls == []


def test_content_type_not_required_by_default(service):
    client = create_app(service).test_client()
    response = client.post("/coupons/applicable", data="{}")
    assert response.status_code == 200
    assert len(response.get_json()) == 1


def test_null_body_is_empty_cart(client, service):
    response = client.post("/coupons/applicable", data="null", content_type="application/json")
    assert response.status_code == 200
    _, cart = service.calls[0]
    assert cart.items == [] and cart.total == 0


@pytest.mark.parametrize(
    "path, body",
    [
        ("/coupons/applicable", {"total": "lots"}),
        ("/coupons/validate", {"code": 5}),
        ("/coupons/validate", {"code": "X", "cart": []}),
        ("/coupons/", {"start_date": "yesterday"}),
        ("/coupons/", []),
    ],
)
def test_bad_fields_are_rejected(client, service, path, body):
    response = _post(client, path, body)
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid request format"
    assert service.calls == []


@pytest.mark.parametrize(
    "path, body, message",
    [
        ("/coupons/applicable", {}, "Failed to get applicable coupons"),
        ("/coupons/validate", {"code": "X"}, "Failed to validate coupon"),
        ("/coupons/", {"code": "X"}, "Failed to create coupon"),
    ],
)
def test_service_failure(path, body, message):
    client = create_app(FakeService(fail=True), require_json=True).test_client()
    response = _post(client, path, body)
    assert response.status_code == 500
    assert response.get_json() == {"error": message}