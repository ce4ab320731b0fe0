# customer_portal/schemas/companies/company.py
from pydantic import BaseModel, Field
from typing import List, Optional

from ..auth.auth import CompanyResponse

class CompanyListResponse(BaseModel):
    companies: List[CompanyResponse] = []
    active_company_id: Optional[str] = None

class SelectCompanyRequest(BaseModel):
    company_id: str = Field(..., min_length=1, description="Company to make active for this session")
