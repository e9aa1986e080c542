from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from ..cart import CartStore
from ..catalog import CatalogStore
from ..database import Storage, get_storage
from ..errors import ValidationError
from ..reservations import ReservationEngine
from ..schemas import CartItemCreate, CartItemOut, CartLineOut, CheckoutOut, ErrorOut

router = APIRouter(tags=["Cart"])


def _engine(db: Session) -> ReservationEngine:
    return ReservationEngine(CatalogStore(db), CartStore(db))


@router.post(
    "/cart",
    response_model=list[CartLineOut],
    responses={400: {"model": ErrorOut}, 404: {"model": ErrorOut}},
)
def add_to_cart(body: CartItemCreate, storage: Storage = Depends(get_storage)):
    """Reserve `quantity` more units of a phone."""
    with storage.session() as db:
        return _engine(db).reserve(body.phone_id, body.quantity)


@router.get("/cart", response_model=list[CartItemOut], responses={500: {"model": ErrorOut}})
def view_cart(storage: Storage = Depends(get_storage)):
    with storage.session() as db:
        return _engine(db).view_cart()


@router.delete(
    "/cart",
    response_model=list[CartLineOut],
    responses={400: {"model": ErrorOut}, 404: {"model": ErrorOut}},
)
def remove_from_cart(
    phone_id: Optional[int] = Query(None, alias="phoneId"),
    storage: Storage = Depends(get_storage),
):
    if phone_id is None:
        raise ValidationError("phoneId is required")
    with storage.session() as db:
        return _engine(db).release(phone_id)


@router.post("/checkout", response_model=CheckoutOut, responses={400: {"model": ErrorOut}})
def checkout(storage: Storage = Depends(get_storage)):
    with storage.session() as db:
        return _engine(db).checkout()
