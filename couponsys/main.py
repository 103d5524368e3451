"""Command that starts the coupon API server."""

from __future__ import annotations

import argparse
import logging
import os

from flask import Flask

from .api import create_app
from .cache import LRUCache
from .db import open_database
from .service import CouponService

_DATABASE_KEY = "couponsys.database"


def build_app(database_url: str | None = None) -> Flask:
    """Open the database, wire the service and return the API application."""
    database = open_database(database_url)
    service = CouponService(database, LRUCache(100))
    app = create_app(service)
    app.extensions[_DATABASE_KEY] = database
    return app


def main(argv: list[str] | None = None) -> int:
    """Run the coupon API server on $PORT (default 8080)."""
    parser = argparse.ArgumentParser(
        prog="couponsys", description="Coupon system API server."
    )
    parser.add_argument("--port", type=int, default=None, help="port to listen on")
    parser.add_argument("--database", default=None, help="SQLite database path")
    args = parser.parse_args(argv)

    port = args.port
    if port is None:
        text = os.environ.get("PORT") or "8080"
        try:
            port = int(text)
        except ValueError:
            parser.error(f"invalid PORT: {text!r}")

    logging.basicConfig(level=logging.INFO)
    app = build_app(args.database)
    try:
        app.run(host="0.0.0.0", port=port)
    finally:
        app.extensions[_DATABASE_KEY].close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())