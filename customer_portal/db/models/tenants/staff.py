# customer_portal/db/models/tenants/staff.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class StaffUser(SQLModel, table=True):
    __tablename__ = "staff_users"
    id: str = Field(primary_key=True)  # Firebase uid
    email: Optional[str] = Field(max_length=254, default=None)
    role: str = Field(max_length=30, default="field_tech")
    company_id: Optional[str] = Field(default=None, foreign_key="companies.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
