from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class InvoiceService(BaseModel):
    service_id: str
    service_name: str
    price: float


class InvoiceCreate(BaseModel):
    patient_id: str
    service_ids: list[str] = Field(min_length=1)
    discount_value: float = Field(default=0, ge=0)
    discount_type: Literal["percentage", "fixed"] = "percentage"
    billing_type: Literal["Particular", "Dependencia"] = "Particular"
    show_prices: bool = True


class Invoice(BaseModel):
    id: str
    patient_id: str
    services: list[InvoiceService]
    subtotal: float
    total: float
    date: datetime
    status: Literal["pending", "paid"] = "pending"
    discount_value: float = 0
    discount_type: Literal["percentage", "fixed"] = "percentage"
    billing_type: Literal["Particular", "Dependencia"] = "Particular"
    show_prices: bool = True


class InvoiceListItem(Invoice):
    results_status: Literal["pending", "completed"] | None = None
