from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: Optional[str] = Field(default=None, alias="productId", validate_default=True)
    quantity: Optional[int] = Field(default=None, validate_default=True)

    @field_validator("product_id")
    @classmethod
    def product_id_defined(cls, v):
        if v is None or not v.strip():
            raise ValueError("Product ID must be defined.")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_in_range(cls, v):
        if v is None:
            raise ValueError("Product quantity must be defined.")
        if v < 1:
            raise ValueError("You must order at least 1 item.")
        if v > 100:
            raise ValueError("You cannot order more than 100 items.")
        return v
