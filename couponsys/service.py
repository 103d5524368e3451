"""Coupon rules: which coupons apply to a cart, validation and creation."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Callable

from .cache import Cache
from .model import Cart, Coupon, Repository

# Results are cached per operation, not per argument.
_APPLICABLE_KEY = "applicable"
_VALIDATE_KEY = "validate"

_MISSING = object()


class ServiceError(Exception):
    """A coupon was rejected by the service's rules."""

    message = "service error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or type(self).message
        super().__init__(self.message)


class InvalidCouponCode(ServiceError):
    message = "invalid coupon code"


class InvalidDiscountValue(ServiceError):
    message = "invalid discount value"


class InvalidMinOrderValue(ServiceError):
    message = "invalid minimum order value"


class InvalidMaxDiscount(ServiceError):
    message = "invalid maximum discount"


class InvalidUsageLimit(ServiceError):
    message = "invalid usage limit"


class InvalidDateRange(ServiceError):
    message = "invalid date range"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CouponService:
    """Applies coupon rules over a repository, caching results."""

    def __init__(
        self,
        repository: Repository,
        cache: Cache,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._clock = clock or _utc_now
        self._lock = threading.RLock()

    @staticmethod
    def _applies(coupon: Coupon, cart: Cart, now: datetime) -> bool:
        if not coupon.is_active:
            return False
        if now < coupon.start_date or now > coupon.end_date:
            return False
        if cart.total < coupon.min_order_value:
            return False
        if coupon.usage_count >= coupon.usage_limit:
            return False
        allowed = set(coupon.applicable_items)
        return any(item.id in allowed for item in cart.items)

    def get_applicable_coupons(self, cart: Cart) -> list[Coupon]:
        """Return the active, in-date, unexhausted coupons that match the cart."""
        with self._lock:
            cached = self._cache.get(_APPLICABLE_KEY, _MISSING)
            if cached is not _MISSING:
                return cached
            now = self._clock()
            coupons = [
                coupon
                for coupon in self._repository.get_all_coupons()
                if self._applies(coupon, cart, now)
            ]
            self._cache.set(_APPLICABLE_KEY, coupons)
            return coupons

    def validate_coupon(self, code: str, cart: Cart) -> bool:
        """Check a coupon against the cart and record one use when it is valid."""
        with self._lock:
            cached = self._cache.get(_VALIDATE_KEY, _MISSING)
            if cached is not _MISSING:
                return cached
            coupon = self._repository.find_coupon_by_code(code)
            if coupon is None:
                return False
            if not self._applies(coupon, cart, self._clock()):
                return False
            coupon.usage_count += 1
            self._repository.update_coupon(coupon)
            self._cache.set(_VALIDATE_KEY, True)
            return True

    def create_coupon(self, coupon: Coupon) -> None:
        """Check the coupon's fields, store it and drop cached applicable results."""
        with self._lock:
            if not coupon.code:
                raise InvalidCouponCode()
            if coupon.discount_value <= 0:
                raise InvalidDiscountValue()
            if coupon.min_order_value < 0:
                raise InvalidMinOrderValue()
            if coupon.max_discount < 0:
                raise InvalidMaxDiscount()
            if coupon.usage_limit <= 0:
                raise InvalidUsageLimit()
            if coupon.start_date > coupon.end_date:
                raise InvalidDateRange()
            self._repository.create_coupon(coupon)
            self._cache.delete(_APPLICABLE_KEY)