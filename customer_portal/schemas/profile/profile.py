# customer_portal/schemas/profile/profile.py
from pydantic import BaseModel, ConfigDict
from typing import Optional, Dict, Any, List

class CustomerResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    email: str
    name: Optional[str] = None
    companies: List[str] = []

class UpdateProfileResponse(BaseModel):
    updated: Dict[str, Any]
