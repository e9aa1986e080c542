from fastapi import APIRouter, Depends, Query
from typing import Optional

from ..cart import CartStore
from ..catalog import CatalogStore
from ..database import Storage, get_storage
from ..reservations import ReservationEngine
from ..schemas import ErrorOut, PhoneCreate, PhoneOut, PhoneUpdate

router = APIRouter(prefix="/phones", tags=["Phones"])

NOT_FOUND = {404: {"model": ErrorOut}}
BAD_REQUEST = {400: {"model": ErrorOut}}


@router.get("", response_model=list[PhoneOut], responses=BAD_REQUEST)
def list_phones(
    brand: Optional[str] = Query(None, description="Exact brand match"),
    max_price: Optional[float] = Query(None, alias="maxPrice", description="Only phones priced at or below this"),
    storage: Storage = Depends(get_storage),
):
    with storage.session() as db:
        return CatalogStore(db).list(brand=brand, max_price=max_price)


@router.get("/{phone_id}", response_model=PhoneOut, responses=NOT_FOUND)
def get_phone(phone_id: int, storage: Storage = Depends(get_storage)):
    with storage.session() as db:
        return CatalogStore(db).get(phone_id)


@router.post("", response_model=PhoneOut, status_code=201, responses=BAD_REQUEST)
def create_phone(body: PhoneCreate, storage: Storage = Depends(get_storage)):
    with storage.session() as db:
        return CatalogStore(db).create(body.model_dump())


@router.put("/{phone_id}", response_model=PhoneOut, responses={**NOT_FOUND, **BAD_REQUEST})
def update_phone(phone_id: int, body: PhoneUpdate, storage: Storage = Depends(get_storage)):
    with storage.session() as db:
        return CatalogStore(db).update(phone_id, body.model_dump(exclude_none=True))


@router.delete("/{phone_id}", response_model=PhoneOut, responses=NOT_FOUND)
def delete_phone(phone_id: int, storage: Storage = Depends(get_storage)):
    """Delete a phone. A cart line holding it is released first."""
    with storage.session() as db:
        return ReservationEngine(CatalogStore(db), CartStore(db)).discontinue(phone_id)
