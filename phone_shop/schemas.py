from pydantic import BaseModel, Field, StrictFloat, StrictInt
from typing import Optional

from .models import MAX_DB_INT


class PhoneBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    brand: str = Field(..., min_length=1, max_length=50)
    price: StrictFloat = Field(..., ge=0, allow_inf_nan=False)
    stock: StrictInt = Field(..., ge=0, le=MAX_DB_INT)


class PhoneCreate(PhoneBase):
    pass


class PhoneUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    brand: Optional[str] = Field(None, min_length=1, max_length=50)
    price: Optional[StrictFloat] = Field(None, ge=0, allow_inf_nan=False)
    stock: Optional[StrictInt] = Field(None, ge=0, le=MAX_DB_INT)


class PhoneOut(PhoneBase):
    id: int

    model_config = {"from_attributes": True}


class CartItemCreate(BaseModel):
    phone_id: StrictInt = Field(..., alias="phoneId", gt=0, le=MAX_DB_INT)
    quantity: StrictInt = Field(..., gt=0, le=MAX_DB_INT)


class CartLineOut(BaseModel):
    phone_id: int = Field(..., serialization_alias="phoneId")
    quantity: int

    model_config = {"from_attributes": True}


class CartItemOut(CartLineOut):
    total_price: float = Field(..., serialization_alias="totalPrice")


class CheckoutOut(BaseModel):
    message: str


class ErrorOut(BaseModel):
    error: str
