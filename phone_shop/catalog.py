from __future__ import annotations

import math
from typing import Any, Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from .errors import NotFound, ValidationError
from .models import MAX_DB_INT, Phone

PHONE_FIELDS = ("name", "brand", "price", "stock")

SEED_PHONES = [
    {"name": "iPhone 14", "brand": "Apple", "price": 1200, "stock": 10},
    {"name": "Galaxy S23", "brand": "Samsung", "price": 900, "stock": 5},
    {"name": "Pixel 7", "brand": "Google", "price": 800, "stock": 8},
]


def _check_field(key: str, value: Any) -> Any:
    if key in ("name", "brand"):
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{key} must be a non-empty string")
        return value
    if key == "price":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
            raise ValidationError("price must be a non-negative number")
        return float(value)
    if key == "stock":
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_DB_INT:
            raise ValidationError("stock must be a non-negative integer")
        return value
    raise ValidationError(f"Unknown field: {key}")


class CatalogStore:
    """CRUD over the phones table, ordered by insertion."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list(self, brand: str | None = None, max_price: float | None = None) -> list[Phone]:
        query = self.db.query(Phone)
        if brand:
            query = query.filter(Phone.brand == brand)
        if max_price is not None:
            query = query.filter(Phone.price <= max_price)
        return query.order_by(Phone.id).all()

    def find(self, phone_id: int) -> Phone | None:
        if not -MAX_DB_INT - 1 <= phone_id <= MAX_DB_INT:
            return None
        return self.db.query(Phone).filter(Phone.id == phone_id).first()

    def get(self, phone_id: int) -> Phone:
        phone = self.find(phone_id)
        if phone is None:
            raise NotFound("Phone not found")
        return phone

    def _next_id(self) -> int:
        current = self.db.query(func.max(Phone.id)).scalar()
        return (current or 0) + 1

    def create(self, data: dict[str, Any]) -> Phone:
        missing = [key for key in PHONE_FIELDS if data.get(key) is None]
        if missing:
            raise ValidationError("All fields are required")
        values = {key: _check_field(key, data[key]) for key in PHONE_FIELDS}

        phone = Phone(id=self._next_id(), **values)
        self.db.add(phone)
        self.db.commit()
        self.db.refresh(phone)
        return phone

    def update(self, phone_id: int, data: dict[str, Any]) -> Phone:
        phone = self.get(phone_id)

        # a key counts as supplied when present and not null, so price 0 is a real update
        supplied = {key: value for key, value in data.items() if key in PHONE_FIELDS and value is not None}
        if not supplied:
            raise ValidationError("At least one field must be updated")
        values = {key: _check_field(key, value) for key, value in supplied.items()}

        for key, value in values.items():
            setattr(phone, key, value)
        self.db.commit()
        self.db.refresh(phone)
        return phone

    def delete(self, phone_id: int) -> Phone:
        phone = self.get(phone_id)
        self.db.delete(phone)
        self.db.commit()
        return phone

    def seed(self, phones: Iterable[dict[str, Any]] = SEED_PHONES) -> int:
        """Insert ``phones`` into an empty catalog. Returns how many were added."""
        if self.db.query(Phone).count():
            return 0
        added = 0
        for data in phones:
            self.create(dict(data))
            added += 1
        return added
