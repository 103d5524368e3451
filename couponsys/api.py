"""HTTP handlers for the coupon API."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from flask import Flask, jsonify, request

from .model import Cart, Coupon, CreateCouponRequest

logger = logging.getLogger(__name__)

_INVALID_REQUEST = "Invalid request format"
_JSON_TYPE = "application/json"
_ENDPOINTS = frozenset({"applicable", "validate", "create"})


class CouponServiceProtocol(Protocol):
    """The coupon operations the API relies on."""

    def get_applicable_coupons(self, cart: Cart) -> list[Coupon]:
        """Return the coupons that apply to the cart."""

    def validate_coupon(self, code: str, cart: Cart) -> bool:
        """Return whether the coupon with this code is valid for the cart."""

    def create_coupon(self, coupon: Coupon) -> None:
        """Store a new coupon."""


def _error(status: int, message: str):
    return jsonify({"error": message}), status


def _body() -> Any:
    """Decode the request body as JSON; a JSON null counts as an empty object."""
    data = json.loads(request.get_data())
    return {} if data is None else data


def _validate_request(data: Any) -> tuple[str, Cart]:
    if not isinstance(data, dict):
        raise ValueError("request must be a JSON object")
    code = data.get("code")
    if code is None:
        code = ""
    if not isinstance(code, str):
        raise ValueError("field 'code' must be a string")
    cart_data = data.get("cart")
    return code, Cart.from_dict({} if cart_data is None else cart_data)


def create_app(service: CouponServiceProtocol, require_json: bool = False) -> Flask:
    """Build the Flask application serving the coupon endpoints under /coupons."""
    app = Flask(__name__)
    app.json.sort_keys = False

    if require_json:

        @app.before_request
        def _check_content_type():
            if request.endpoint not in _ENDPOINTS:
                return None
            if request.headers.get("Content-Type") != _JSON_TYPE:
                return _error(400, "Content-Type must be application/json")
            return None

    @app.post("/coupons/applicable", endpoint="applicable")
    def get_applicable_coupons():
        try:
            cart = Cart.from_dict(_body())
        except ValueError:
            return _error(400, _INVALID_REQUEST)
        try:
            coupons = service.get_applicable_coupons(cart)
        except Exception:
            logger.exception("getting applicable coupons failed")
            return _error(500, "Failed to get applicable coupons")
        return jsonify([coupon.to_dict() for coupon in coupons]), 200

    @app.post("/coupons/validate", endpoint="validate")
    def validate_coupon():
        try:
            code, cart = _validate_request(_body())
        except ValueError:
            return _error(400, _INVALID_REQUEST)
        try:
            valid = service.validate_coupon(code, cart)
        except Exception:
            logger.exception("validating coupon failed")
            return _error(500, "Failed to validate coupon")
        return jsonify({"valid": bool(valid)}), 200

    @app.post("/coupons/", endpoint="create")
    def create_coupon():
        try:
            coupon = CreateCouponRequest.from_dict(_body()).to_coupon()
        except ValueError:
            return _error(400, _INVALID_REQUEST)
        try:
            service.create_coupon(coupon)
        except Exception:
            logger.exception("creating coupon failed")
            return _error(500, "Failed to create coupon")
        return jsonify(coupon.to_dict()), 201

    return app