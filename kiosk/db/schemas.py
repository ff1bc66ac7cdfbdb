# kiosk/db/schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from kiosk import config

ORDER_ERROR = "There are errors in the order"


# Input schemas. Messages are shown to the user as they are.

class OrderItemSchema(BaseModel):
    id: int
    name: str
    price: float
    quantity: int
    subtotal: float

    @field_validator("quantity")
    @classmethod
    def quantity_in_bounds(cls, value):
        if not config.MIN_QTY <= value <= config.MAX_QTY:
            raise ValueError(f"Quantity must be between {config.MIN_QTY} and {config.MAX_QTY}")
        return value

    @model_validator(mode="after")
    def subtotal_matches(self):
        if round(self.price * self.quantity, 2) != round(self.subtotal, 2):
            raise ValueError(ORDER_ERROR)
        return self


class OrderSchema(BaseModel):
    name: str = Field(default="", validate_default=True)
    total: float
    order: List[OrderItemSchema]
    reference: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def name_required(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("Your name is required")
        return str(value).strip()

    @field_validator("total")
    @classmethod
    def total_positive(cls, value):
        if value < 1:
            raise ValueError(ORDER_ERROR)
        return value

    @field_validator("order")
    @classmethod
    def order_not_empty(cls, value):
        if not value:
            raise ValueError("The order is empty")
        return value

    @model_validator(mode="after")
    def total_matches(self):
        if round(sum(item.subtotal for item in self.order), 2) != round(self.total, 2):
            raise ValueError(ORDER_ERROR)
        return self


class ProductSchema(BaseModel):
    name: str = Field(default="", validate_default=True)
    price: float = Field(default=None, validate_default=True)
    category_id: int = Field(default=None, validate_default=True)
    image: str = Field(default="", validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def name_required(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("Product name cannot be empty")
        return str(value).strip()

    @field_validator("price", mode="before")
    @classmethod
    def price_valid(cls, value):
        try:
            price = float(str(value).strip())
        except (TypeError, ValueError):
            raise ValueError("Price is not valid")
        if price <= 0:
            raise ValueError("Price is not valid")
        return price

    @field_validator("category_id", mode="before")
    @classmethod
    def category_required(cls, value):
        try:
            category_id = int(str(value).strip())
        except (TypeError, ValueError):
            raise ValueError("Category is required")
        if category_id <= 0:
            raise ValueError("Category is required")
        return category_id

    @field_validator("image", mode="before")
    @classmethod
    def image_required(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("Image is required")
        return str(value).strip()


class SearchSchema(BaseModel):
    search: str = Field(default="", validate_default=True)

    @field_validator("search", mode="before")
    @classmethod
    def search_not_empty(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("Search cannot be empty")
        return str(value).strip()


class OrderIdSchema(BaseModel):
    order_id: int = Field(default=None, validate_default=True)

    @field_validator("order_id", mode="before")
    @classmethod
    def order_id_valid(cls, value):
        try:
            order_id = int(str(value).strip())
        except (TypeError, ValueError):
            raise ValueError("Invalid order")
        if order_id <= 0:
            raise ValueError("Invalid order")
        return order_id


# Response schemas

class ProductBase(BaseModel):
    id: int
    name: str
    price: float
    image: str
    category_id: int

    class Config:
        from_attributes = True


class OrderProductResponse(BaseModel):
    product_id: int
    quantity: int
    product: ProductBase

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    name: str
    total: float
    date: datetime
    status: bool
    order_ready_at: Optional[datetime] = None
    order_products: List[OrderProductResponse] = []

    class Config:
        from_attributes = True
