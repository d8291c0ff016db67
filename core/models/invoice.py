from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import List
from .common import DiscountType

class InvoiceItem(BaseModel):
    description: str = Field(min_length=1)
    quantity: float = Field(gt=0, allow_inf_nan=False)
    price: float = Field(ge=0, allow_inf_nan=False)
    unit: str = ""

    class Config:
        frozen = True  # une ligne ne change pas une fois dans la facture

    @field_validator("description", mode="before")
    @classmethod
    def _strip_description(cls, v):
        return v.strip() if isinstance(v, str) else v

    def line_total(self) -> float:
        return self.quantity * self.price

class Discount(BaseModel):
    type: DiscountType = "percentage"
    value: float = Field(default=0.0, ge=0, allow_inf_nan=False)

class Invoice(BaseModel):
    number: str = ""
    date: str = ""
    customer: str = ""
    items: List[InvoiceItem] = Field(default_factory=list)
    discount: Discount = Field(default_factory=Discount)
    tax_rate: float = Field(default=0.0, ge=0, allow_inf_nan=False)

class Totals(BaseModel):
    subtotal: float = 0.0
    discount_amount: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0

    # base de calcul de la taxe
    @property
    def taxable_amount(self) -> float:
        return self.subtotal - self.discount_amount
