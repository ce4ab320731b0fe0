# customer_portal/db/models/auth/session.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class PortalSession(SQLModel, table=True):
    __tablename__ = "portal_sessions"
    id: str = Field(primary_key=True)
    identity_id: str = Field(index=True)
    issued_at: datetime
    last_activity_at: datetime
    is_revoked: bool = Field(default=False)
    active_company_id: Optional[str] = Field(default=None)
