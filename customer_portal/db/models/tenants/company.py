# customer_portal/db/models/tenants/company.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

class Company(SQLModel, table=True):
    __tablename__ = "companies"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(max_length=150)
    code: Optional[str] = Field(max_length=20, default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

class CustomerCompany(SQLModel, table=True):
    __tablename__ = "customer_companies"
    customer_id: str = Field(foreign_key="customers.id", primary_key=True)
    company_id: str = Field(foreign_key="companies.id", primary_key=True)
    position: int = Field(default=0)  # directory order of the membership
    created_at: datetime = Field(default_factory=datetime.utcnow)
