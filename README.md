# couponsys

couponsys is a small HTTP service for discount coupons, built on Flask. It
stores coupons in SQLite. Clients can create coupons, list the coupons that
apply to a cart, and validate one coupon code against a cart. Each successful
validation counts as one use of the coupon.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Running the server

```
couponsys
```

The command accepts these options:

- `--port PORT` sets the port to listen on. Without it the server uses the
  `PORT` environment variable, and without that it uses 8080.
- `--database PATH` sets the SQLite database file. Without it the server uses
  the `DATABASE_URL` environment variable, and without that it uses
  `coupon.db`.

The server listens on all interfaces. The coupons table is dropped and
created again each time the database is opened, so stored coupons do not
survive a restart.

## Endpoints

Request and response bodies are JSON. Timestamps use RFC 3339, for example
`2025-01-01T00:00:00Z`. A field that is missing takes its empty value: an
empty string, zero, `false` or an empty list.

### `POST /coupons/`

Creates a coupon. On success it answers `201` with the stored coupon. The
stored coupon carries its `id`, `usage_count`, `created_at` and `updated_at`.

```json
{
  "code": "TEST10",
  "discount_type": "percentage",
  "discount_value": 10,
  "min_order_value": 100,
  "max_discount": 50,
  "start_date": "2025-01-01T00:00:00Z",
  "end_date": "2025-12-31T00:00:00Z",
  "usage_limit": 100,
  "is_active": true,
  "applicable_items": ["item1"]
}
```

The service refuses a coupon in any of these cases:

- the code is empty
- `discount_value` is not positive
- `min_order_value` or `max_discount` is negative
- `usage_limit` is not positive
- the start date is after the end date
- the code already exists

A refused coupon gets the answer `500` with
`{"error": "Failed to create coupon"}`.

### `POST /coupons/applicable`

Returns, as a list, every coupon that applies to the cart.

```json
{"items": [{"id": "item1", "price": 150}], "total": 150}
```

A coupon applies to a cart only if every one of these is true:

- the coupon is active
- the current time falls within its start and end dates
- the cart total is at least the coupon's minimum order value
- the coupon's usage count is below its usage limit
- at least one cart item id appears in the coupon's applicable items

### `POST /coupons/validate`

Checks one coupon code against a cart. The answer is `{"valid": true}` or
`{"valid": false}`. An unknown code is not valid. A valid check raises the
coupon's usage count by one.

```json
{"code": "TEST10", "cart": {"items": [{"id": "item1", "price": 150}], "total": 150}}
```

### Errors

A body that is not well-formed JSON, or that has a field of the wrong type,
gets the answer `400` with `{"error": "Invalid request format"}`. A failure
inside the service gets the answer `500`. Every error body has the form
`{"error": "..."}`.

## Caching

The service caches its results by operation, not by cart or code. After the
first call to `/coupons/applicable`, later calls return the same list until
someone creates a coupon. After the first successful validation, every later
validation answers `true` without looking up the code or counting a use. The
cache keeps at most 100 entries.

## Using it as a library

```python
from couponsys.main import build_app

app = build_app("coupon.db")
app.run(port=8080)
```

You can also put the parts together yourself:

- `couponsys.db.open_database(url)` opens and resets the SQLite store. It
  returns a `Database`, which is also a context manager that closes the
  connection. A duplicate code raises `DuplicateCouponError`.
- `couponsys.cache.LRUCache(capacity)` is a thread-safe bounded cache.
- `couponsys.service.CouponService(repository, cache)` applies the coupon
  rules. It raises a `ServiceError` subclass, such as `InvalidCouponCode` or
  `InvalidDateRange`, for a coupon it refuses.
- `couponsys.api.create_app(service, require_json=False)` builds the Flask
  application. With `require_json=True` it answers `400` to requests whose
  `Content-Type` is not exactly `application/json`.
- `couponsys.model` holds `Coupon`, `Cart`, `CartItem` and
  `CreateCouponRequest`, each with `from_dict`. All of them except
  `CreateCouponRequest` also have `to_dict`. It also holds
  `parse_timestamp` and `format_timestamp`.

## What it does not do

- It does not compute discount amounts. `discount_type`, `discount_value` and
  `max_discount` are stored and returned but never applied to a cart.
- It does not track usage per user.
- It does not serve API documentation pages.