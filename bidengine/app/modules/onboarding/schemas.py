from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SignupClientCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    clerk_user_id: Optional[str] = Field(None, alias="clerkUserId")
    email: Optional[str] = None
    company_name: Optional[str] = Field(None, alias="companyName")
    user_name: Optional[str] = Field(None, alias="userName")


class SignupClientCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(..., alias="clientId")
