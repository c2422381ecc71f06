from typing import Optional, Union

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# The draft is parsed loosely; completeness is checked by validate_draft so
# that the storefront gets one "Missing order details" answer.
class MeatSelection(CamelModel):
    meat_type: Optional[str] = None
    pickup_date: Optional[str] = None
    weight: Optional[Union[int, float, str]] = None
    custom_weight: Optional[str] = None
    cut: Optional[str] = None
    notes: Optional[str] = None


class CustomerDetails(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class OrderDraft(CamelModel):
    meat: Optional[MeatSelection] = None
    customer: Optional[CustomerDetails] = None


class PaymentIntentResponse(CamelModel):
    client_secret: str


class WebhookAck(CamelModel):
    received: bool = True
