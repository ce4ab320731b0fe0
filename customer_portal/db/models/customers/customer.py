# customer_portal/db/models/customers/customer.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

class Customer(SQLModel, table=True):
    __tablename__ = "customers"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    email: str = Field(max_length=254, unique=True, index=True)
    name: Optional[str] = Field(max_length=100, default=None)
    first_name: Optional[str] = Field(max_length=60, default=None)
    last_name: Optional[str] = Field(max_length=60, default=None)
    phone: Optional[str] = Field(max_length=30, default=None)
    phone_number: Optional[str] = Field(max_length=30, default=None)
    address: Optional[str] = Field(max_length=255, default=None)
    city: Optional[str] = Field(max_length=100, default=None)
    state: Optional[str] = Field(max_length=50, default=None)
    zip_code: Optional[str] = Field(max_length=20, default=None)
    preferences: Optional[str] = Field(default=None)  # JSON document
    photo_url: Optional[str] = Field(max_length=500, default=None)
    has_profile: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
