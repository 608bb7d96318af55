from typing import List, Optional

from pydantic import BaseModel

from bidengine.app.common.models import Client


class ClientCreate(BaseModel):
    company_name: Optional[str] = None
    email: Optional[str] = None


class ClientListResponse(BaseModel):
    clients: List[Client]


class ClientResponse(BaseModel):
    client: Client
    existed: Optional[bool] = None
