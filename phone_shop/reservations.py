from __future__ import annotations

from typing import Any

from .cart import CartStore
from .catalog import CatalogStore
from .errors import EmptyCart, InconsistentState, InsufficientStock, NotFound, ValidationError
from .models import CartLine, Phone
from .utils.logging import get_logger

logger = get_logger(__name__)

CHECKOUT_MESSAGE = "Order placed successfully"


class ReservationEngine:
    """Moves stock between the catalog and the cart.

    A cart line for ``n`` units means ``n`` units have already been taken out
    of the phone's stock. Reserving takes stock, releasing gives it back, and
    checkout turns the held stock into a sale by clearing the cart.

    Every operation validates before it mutates and finishes with one commit,
    so a raised error leaves both stores untouched. Callers must hold the
    storage lock for the whole call.
    """

    def __init__(self, catalog: CatalogStore, cart: CartStore) -> None:
        self.catalog = catalog
        self.cart = cart
        self.db = catalog.db

    def reserve(self, phone_id: int, quantity: int) -> list[CartLine]:
        """Hold ``quantity`` more units of a phone on top of any existing reservation."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("quantity must be a positive integer")
        if isinstance(phone_id, bool) or not isinstance(phone_id, int):
            raise ValidationError("phoneId must be an integer")

        phone = self.catalog.find(phone_id)
        if phone is None:
            raise NotFound("Phone not found")

        if phone.stock < quantity:
            logger.warning(
                "Reservation rejected",
                phone_id=phone_id,
                available=phone.stock,
                requested=quantity,
            )
            raise InsufficientStock(phone_id=phone_id, available=phone.stock, requested=quantity)

        phone.stock -= quantity
        line = self.cart.get(phone_id)
        if line is not None:
            line.quantity += quantity
        else:
            self.cart.add(phone_id, quantity)
        self.db.commit()

        logger.info("Stock reserved", phone_id=phone_id, quantity=quantity, remaining=phone.stock)
        return self.cart.lines()

    def view_cart(self) -> list[dict[str, Any]]:
        items = []
        for line in self.cart.lines():
            phone = self._phone_for(line)
            items.append(
                {
                    "phone_id": line.phone_id,
                    "quantity": line.quantity,
                    "total_price": phone.price * line.quantity,
                }
            )
        return items

    def release(self, phone_id: int) -> list[CartLine]:
        """Drop the whole cart line for a phone and return its units to stock."""
        line = self.cart.get(phone_id)
        if line is None:
            raise NotFound("Phone not found in cart")

        self._release_line(line)
        self.db.commit()
        return self.cart.lines()

    def checkout(self) -> dict[str, str]:
        lines = self.cart.lines()
        if not lines:
            raise EmptyCart()

        for line in lines:
            phone = self._phone_for(line)
            # stock was taken at reserve time, only a negative count means the books are off
            if phone.stock < 0:
                raise InsufficientStock(
                    "Insufficient stock for some items",
                    phone_id=phone.id,
                    available=phone.stock,
                    requested=line.quantity,
                )

        count = self.cart.clear()
        self.db.commit()

        logger.info("Checkout completed", lines=count)
        return {"message": CHECKOUT_MESSAGE}

    def discontinue(self, phone_id: int) -> Phone:
        """Delete a phone from the catalog, releasing any cart line that holds it."""
        phone = self.catalog.get(phone_id)

        line = self.cart.get(phone_id)
        if line is not None:
            logger.info("Releasing reservation of deleted phone", phone_id=phone_id, quantity=line.quantity)
            self._release_line(line)

        return self.catalog.delete(phone_id)

    def _phone_for(self, line: CartLine) -> Phone:
        phone = self.catalog.find(line.phone_id)
        if phone is None:
            logger.error("Cart line references missing phone", phone_id=line.phone_id)
            raise InconsistentState()
        return phone

    def _release_line(self, line: CartLine) -> None:
        phone = self._phone_for(line)
        phone.stock += line.quantity
        self.cart.remove(line)
        logger.info("Reservation released", phone_id=line.phone_id, quantity=line.quantity, stock=phone.stock)
