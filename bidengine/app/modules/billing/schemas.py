from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    email: Optional[str] = None
    name: Optional[str] = None
    company_name: Optional[str] = Field(None, alias="companyName")


class PortalRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")


class RedirectResponse(BaseModel):
    url: str


class SubscriptionStatus(BaseModel):
    status: str
    trial_end: Optional[str] = None
    current_period_end: Optional[str] = None


class WebhookAck(BaseModel):
    received: bool = True
