# customer_portal/schemas/session/session.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class SessionResponse(BaseModel):
    state: str
    valid: bool
    identity_id: Optional[str] = None
    issued_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    active_company_id: Optional[str] = None
    reason: Optional[str] = None
