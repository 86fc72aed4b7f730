from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    """Order lifecycle status"""
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class Product(BaseModel):
    """Catalog product as returned by GET /products/{id}"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(coerce_numbers_to_str=True)
    name: str
    price: float
    available_units: int = Field(alias="units")


class Order(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Optional[str] = None
    product_id: str = Field(alias="productId")
    product_name: Optional[str] = Field(default=None, alias="productName")
    product_price: Optional[float] = Field(default=None, alias="productPrice")
    quantity: int
    status: OrderStatus
    created_date: Optional[datetime] = Field(default=None, alias="createdDate")
    last_modified_date: Optional[datetime] = Field(default=None, alias="lastModifiedDate")
    version: int = 0

    @classmethod
    def of(
        cls,
        product_id: str,
        product_name: Optional[str],
        product_price: Optional[float],
        quantity: int,
        status: OrderStatus,
    ) -> "Order":
        # not yet persisted: no id, no dates, version 0
        return cls(
            product_id=product_id,
            product_name=product_name,
            product_price=product_price,
            quantity=quantity,
            status=status,
        )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
