# customer_portal/db/models/auth/otp.py
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional
import uuid

class OTPChallenge(SQLModel, table=True):
    __tablename__ = "otp_challenges"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    email: str = Field(max_length=254, index=True)
    delivery_ref: Optional[str] = Field(max_length=100, default=None)
    issued_at: datetime = Field(index=True)
    expires_at: datetime
    is_consumed: bool = Field(default=False)
    attempts: int = Field(default=0)
    token_redeemed: bool = Field(default=False)
