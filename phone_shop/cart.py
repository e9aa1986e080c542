from __future__ import annotations

from sqlalchemy.orm import Session

from .models import MAX_DB_INT, CartLine


class CartStore:
    """Holds the single active cart. No validation happens here."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def lines(self) -> list[CartLine]:
        return self.db.query(CartLine).order_by(CartLine.id).all()

    def get(self, phone_id: int) -> CartLine | None:
        if not -MAX_DB_INT - 1 <= phone_id <= MAX_DB_INT:
            return None
        return self.db.query(CartLine).filter(CartLine.phone_id == phone_id).first()

    def add(self, phone_id: int, quantity: int) -> CartLine:
        line = CartLine(phone_id=phone_id, quantity=quantity)
        self.db.add(line)
        self.db.flush()
        return line

    def remove(self, line: CartLine) -> None:
        self.db.delete(line)
        self.db.flush()

    def clear(self) -> int:
        lines = self.lines()
        for line in lines:
            self.db.delete(line)
        self.db.flush()
        return len(lines)
