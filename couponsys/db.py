"""SQLite storage for coupons."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
from datetime import datetime, timezone

from .model import ZERO_TIME, Coupon, format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

_COLUMNS = (
    "code", "discount_type", "discount_value", "min_order_value", "max_discount",
    "start_date", "end_date", "usage_limit", "usage_count", "is_active",
    "applicable_items", "created_at", "updated_at",
)
_TIME_COLUMNS = ("start_date", "end_date", "created_at", "updated_at")

_CREATE_TABLE = """
CREATE TABLE coupons (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT, discount_type TEXT, discount_value REAL, min_order_value REAL,
    max_discount REAL, start_date TEXT, end_date TEXT, usage_limit INTEGER,
    usage_count INTEGER, is_active NUMERIC, applicable_items TEXT,
    created_at TEXT, updated_at TEXT
)
"""


class DuplicateCouponError(Exception):
    """Raised when a coupon code is already stored."""


def _row_values(coupon: Coupon) -> tuple:
    def convert(column: str):
        value = getattr(coupon, column)
        if column in _TIME_COLUMNS:
            return format_timestamp(value)
        if column == "applicable_items":
            return json.dumps(list(value))
        if column == "is_active":
            return int(bool(value))
        return value

    return tuple(convert(column) for column in _COLUMNS)


def _to_coupon(row: sqlite3.Row) -> Coupon:
    data = {key: row[key] for key in row.keys()}
    for column in _TIME_COLUMNS:
        data[column] = parse_timestamp(data[column])
    data["applicable_items"] = json.loads(data["applicable_items"] or "[]") or []
    data["is_active"] = bool(data["is_active"])
    for column in ("code", "discount_type"):
        data[column] = data[column] or ""
    for column in ("discount_value", "min_order_value", "max_discount"):
        data[column] = data[column] or 0.0
    for column in ("usage_limit", "usage_count"):
        data[column] = data[column] or 0
    return Coupon(**data)


class Database:
    """Coupon repository backed by an SQLite database."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._conn = sqlite3.connect(url, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()

    def validate_tables(self) -> None:
        """Drop any existing coupons table and create it afresh."""
        with self._lock:
            if self._conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'coupons'"
            ).fetchone():
                logger.info("Dropping existing coupons table...")
                self._conn.execute("DROP TABLE coupons")
            logger.info("Creating coupons table...")
            self._conn.execute(_CREATE_TABLE)
            self._conn.execute("CREATE UNIQUE INDEX idx_coupons_code ON coupons(code)")
            self._conn.commit()
            logger.info("Coupons table created successfully")

    def close(self) -> None:
        """Close the connection."""
        with self._lock:
            self._conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _insert(self, coupon: Coupon) -> None:
        columns, values = _COLUMNS, _row_values(coupon)
        if coupon.id:
            columns, values = ("id",) + columns, (coupon.id,) + values
        cursor = self._conn.execute(
            f"INSERT INTO coupons ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' * len(columns))})",
            values,
        )
        coupon.id = cursor.lastrowid

    def create_coupon(self, coupon: Coupon) -> None:
        """Store a new coupon in one transaction, setting its id and timestamps."""
        with self._lock, self._conn:
            if self._conn.execute(
                "SELECT 1 FROM coupons WHERE code = ? LIMIT 1", (coupon.code,)
            ).fetchone():
                raise DuplicateCouponError("coupon code already exists")
            now = datetime.now(timezone.utc)
            if coupon.created_at == ZERO_TIME:
                coupon.created_at = now
            if coupon.updated_at == ZERO_TIME:
                coupon.updated_at = now
            self._insert(coupon)

    def get_all_coupons(self) -> list[Coupon]:
        """Return every stored coupon in id order."""
        with self._lock:
            rows = self._conn.execute("SELECT * FROM coupons ORDER BY id").fetchall()
        return [_to_coupon(row) for row in rows]

    def find_coupon_by_code(self, code: str) -> Coupon | None:
        """Return the coupon with this code, or None when there is none."""
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM coupons WHERE code = ? ORDER BY id LIMIT 1", (code,)
            ).fetchone()
        return None if row is None else _to_coupon(row)

    def update_coupon(self, coupon: Coupon) -> None:
        """Save every field of the coupon, inserting it when no row has its id."""
        with self._lock, self._conn:
            coupon.updated_at = datetime.now(timezone.utc)
            if coupon.id:
                assignments = ", ".join(f"{column} = ?" for column in _COLUMNS)
                cursor = self._conn.execute(
                    f"UPDATE coupons SET {assignments} WHERE id = ?",
                    _row_values(coupon) + (coupon.id,),
                )
                if cursor.rowcount:
                    return
            if coupon.created_at == ZERO_TIME:
                coupon.created_at = coupon.updated_at
            self._insert(coupon)


def open_database(url: str | None = None) -> Database:
    """Open the database at url (or $DATABASE_URL, or coupon.db) and reset its tables."""
    database = Database(url or os.environ.get("DATABASE_URL") or "coupon.db")
    try:
        database.validate_tables()
    except Exception:
        database.close()
        raise
    return database