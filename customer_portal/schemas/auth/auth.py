# customer_portal/schemas/auth/auth.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List
from datetime import datetime

# Email and code formats are checked by the challenge service so that bad
# input comes back in the usual error envelope instead of a 422.

class ChallengeRequest(BaseModel):
    email: str = Field(..., description="Email address that receives the one-time code")

    @field_validator('email')
    @classmethod
    def strip_email(cls, v):
        return v.strip()

class ChallengeResponse(BaseModel):
    challenge_issued: bool = True
    challenge_id: str
    expires_at: datetime

class VerifyCodeRequest(BaseModel):
    email: str = Field(..., description="Email address the code was sent to")
    code: str = Field(..., description="One-time code from the email")

    @field_validator('email', 'code')
    @classmethod
    def strip_values(cls, v):
        return v.strip()

class VerifyCodeResponse(BaseModel):
    exchange_token: str
    session_hint: str

class ExchangeRequest(BaseModel):
    exchange_token: str = Field(..., description="Token returned by /portal/auth/verify")
    session_hint: Optional[str] = Field(None, description="Session id suggested by /portal/auth/verify")

class IdentityResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None

class CompanyResponse(BaseModel):
    id: str
    name: str
    code: Optional[str] = None

class ExchangeResponse(BaseModel):
    session_id: str
    identity: IdentityResponse
    profile: Optional[Dict[str, Any]] = None
    access_token: str
    token_type: str = "bearer"
    companies: List[CompanyResponse] = []
    active_company_id: Optional[str] = None
