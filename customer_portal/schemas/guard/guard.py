# customer_portal/schemas/guard/guard.py
from pydantic import BaseModel
from typing import Optional

class GuardResponse(BaseModel):
    state: str
    source: Optional[str] = None
    identity_id: Optional[str] = None
    return_to: Optional[str] = None
    redirect_to: Optional[str] = None
    reason: Optional[str] = None
