from typing import Optional

from pydantic import BaseModel


class InviteStatus(BaseModel):
    valid: bool
    company_name: Optional[str] = None
    email: Optional[str] = None
    already_accepted: Optional[bool] = None
    client_id: Optional[str] = None


class InviteAccept(BaseModel):
    clerk_user_id: Optional[str] = None
    email: Optional[str] = None


class InviteAccepted(BaseModel):
    success: bool = True
    client_id: str
