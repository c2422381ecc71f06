from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

ProductionStatus = Literal["pending", "done"]


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class OrderResponse(CamelModel):
    id: str
    customer_name: str
    customer_phone: str
    customer_email: str
    meat_type: str
    cut: str
    weight: str
    custom_weight: Optional[str] = None
    notes: Optional[str] = None
    pickup_date: datetime
    amount_paid: int
    deposit_amount: str
    currency: str
    status: ProductionStatus = Field(validation_alias="production_status")
    is_finished: bool
    is_new: bool
    version: int
    created_at: datetime


class OrderEnvelope(CamelModel):
    order: OrderResponse


class CutWeightStat(CamelModel):
    cut: str
    weight: str
    count: int


class ProductionSnapshot(CamelModel):
    stats: list[CutWeightStat]
    orders: list[OrderResponse]


class StatusUpdate(CamelModel):
    status: ProductionStatus
    version: int = Field(ge=1)


class BulkStatusUpdate(CamelModel):
    meat_type: str = Field(min_length=1)
    order_ids: list[str] = Field(min_length=1)
    status: ProductionStatus

    @field_validator("meat_type")
    @classmethod
    def normalize_meat_type(cls, v: str) -> str:
        return v.strip().lower()


class BulkStatusResult(CamelModel):
    orders: list[OrderResponse]
    updated: int
    skipped: int
    conflicts: list[str]


class BulkDone(CamelModel):
    meat_type: str = Field(min_length=1)
    cut: Optional[str] = None
    count: int = Field(gt=0)

    @field_validator("meat_type")
    @classmethod
    def normalize_meat_type(cls, v: str) -> str:
        return v.strip().lower()


class BulkDoneResult(CamelModel):
    success: bool = True
    count: int


class ToggleFinish(CamelModel):
    id: str
    is_finished: bool


class PeriodStats(CamelModel):
    count: int
    deposits: float


class DailyStats(CamelModel):
    date: str
    orders: int
    deposits: float


class DashboardStats(CamelModel):
    today: PeriodStats
    monthly: PeriodStats
    total_customers: int
    daily: list[DailyStats]
