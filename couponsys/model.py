"""Coupon and cart data types, timestamp helpers and the repository interface."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Protocol

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def _aware(value: datetime) -> datetime:
    """Return value with a time zone, treating naive values as UTC."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def parse_timestamp(value: Any) -> datetime:
    """Parse an RFC 3339 timestamp; None gives the zero time."""
    if value is None:
        return ZERO_TIME
    if isinstance(value, datetime):
        return _aware(value)
    match = _TIMESTAMP_RE.match(value) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {value!r}")
    *parts, fraction, zone = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    try:
        tz = timezone.utc
        if zone not in ("Z", "z"):
            offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
            tz = timezone(offset if zone[0] == "+" else -offset)
        return datetime(*map(int, parts), microsecond, tzinfo=tz)
    except ValueError as exc:
        raise ValueError(f"invalid RFC 3339 timestamp: {value!r}") from exc


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an RFC 3339 timestamp with minimal fraction digits."""
    v = _aware(value)
    text = f"{v.year:04d}-{v.month:02d}-{v.day:02d}T{v.hour:02d}:{v.minute:02d}:{v.second:02d}"
    if v.microsecond:
        text += "." + f"{v.microsecond:06d}".rstrip("0")
    minutes = int(v.utcoffset().total_seconds()) // 60
    if not minutes:
        return text + "Z"
    hours, rest = divmod(abs(minutes), 60)
    return f"{text}{'+' if minutes > 0 else '-'}{hours:02d}:{rest:02d}"


def _object(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a JSON object")
    return data


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


_ZERO = {"str": "", "float": 0.0, "int": 0, "uint": 0, "bool": False}
_CHECKS = {
    "str": lambda v: isinstance(v, str),
    "float": _is_number,
    "int": _is_int,
    "uint": lambda v: _is_int(v) and v >= 0,
    "bool": lambda v: isinstance(v, bool),
    "list": lambda v: isinstance(v, list) and all(isinstance(s, str) for s in v),
}


def _field(data: Mapping[str, Any], key: str, kind: str) -> Any:
    """Read one JSON field of the given kind; a missing field gives its zero value."""
    value = data.get(key)
    if kind == "time":
        try:
            return parse_timestamp(value)
        except ValueError as exc:
            raise ValueError(f"field {key!r}: {exc}") from exc
    if value is None:
        return [] if kind == "list" else _ZERO[kind]
    if not _CHECKS[kind](value):
        raise ValueError(f"field {key!r} has the wrong type")
    return float(value) if kind == "float" else (list(value) if kind == "list" else value)


_COUPON_FIELDS = {
    "code": "str", "discount_type": "str", "discount_value": "float",
    "min_order_value": "float", "max_discount": "float", "start_date": "time",
    "end_date": "time", "usage_limit": "int", "is_active": "bool",
    "applicable_items": "list",
}


@dataclass
class Coupon:
    """A discount coupon."""

    id: int = 0
    code: str = ""
    discount_type: str = ""
    discount_value: float = 0.0
    min_order_value: float = 0.0
    max_discount: float = 0.0
    start_date: datetime = ZERO_TIME
    end_date: datetime = ZERO_TIME
    usage_limit: int = 0
    usage_count: int = 0
    is_active: bool = False
    applicable_items: list[str] = field(default_factory=list)
    created_at: datetime = ZERO_TIME
    updated_at: datetime = ZERO_TIME

    def __post_init__(self) -> None:
        for name in ("start_date", "end_date", "created_at", "updated_at"):
            setattr(self, name, _aware(getattr(self, name)))
        self.applicable_items = list(self.applicable_items or [])

    def to_dict(self) -> dict[str, Any]:
        """Return the coupon as a JSON-ready dictionary."""
        return {
            key: format_timestamp(value) if isinstance(value, datetime)
            else list(value) if isinstance(value, list) else value
            for key, value in vars(self).items()
        }

    @classmethod
    def from_dict(cls, data: Any) -> Coupon:
        """Build a coupon from decoded JSON, raising ValueError on bad fields."""
        data = _object(data, "coupon")
        kinds = {**_COUPON_FIELDS, "id": "uint", "usage_count": "int",
                 "created_at": "time", "updated_at": "time"}
        return cls(**{key: _field(data, key, kind) for key, kind in kinds.items()})


@dataclass
class CartItem:
    """An item in a shopping cart."""

    id: str = ""
    price: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Return the item as a JSON-ready dictionary."""
        return {"id": self.id, "price": self.price}

    @classmethod
    def from_dict(cls, data: Any) -> CartItem:
        """Build an item from decoded JSON, raising ValueError on bad fields."""
        data = _object(data, "cart item")
        return cls(_field(data, "id", "str"), _field(data, "price", "float"))


@dataclass
class Cart:
    """A shopping cart."""

    items: list[CartItem] = field(default_factory=list)
    total: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Return the cart as a JSON-ready dictionary."""
        return {"items": [item.to_dict() for item in self.items], "total": self.total}

    @classmethod
    def from_dict(cls, data: Any) -> Cart:
        """Build a cart from decoded JSON, raising ValueError on bad fields."""
        data = _object(data, "cart")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ValueError("field 'items' must be a list")
        return cls([CartItem.from_dict(item) for item in items], _field(data, "total", "float"))


@dataclass
class CreateCouponRequest:
    """The fields a client supplies to create a coupon."""

    code: str = ""
    discount_type: str = ""
    discount_value: float = 0.0
    min_order_value: float = 0.0
    max_discount: float = 0.0
    start_date: datetime = ZERO_TIME
    end_date: datetime = ZERO_TIME
    usage_limit: int = 0
    is_active: bool = False
    applicable_items: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> CreateCouponRequest:
        """Build a request from decoded JSON, raising ValueError on bad fields."""
        data = _object(data, "request")
        return cls(**{key: _field(data, key, kind) for key, kind in _COUPON_FIELDS.items()})

    def to_coupon(self) -> Coupon:
        """Return a new coupon holding this request's fields."""
        return Coupon(**{key: getattr(self, key) for key in _COUPON_FIELDS})


class Repository(Protocol):
    """Storage for coupons."""

    def create_coupon(self, coupon: Coupon) -> None:
        """Store a new coupon, assigning its id."""

    def get_all_coupons(self) -> list[Coupon]:
        """Return every stored coupon."""

    def find_coupon_by_code(self, code: str) -> Coupon | None:
        """Return the coupon with this code, or None."""

    def update_coupon(self, coupon: Coupon) -> None:
        """Save all fields of an existing coupon."""