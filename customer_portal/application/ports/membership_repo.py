from dataclasses import dataclass
from typing import Protocol, Optional, List


@dataclass
class CompanyDto:
    id: str
    name: str
    code: Optional[str] = None


class MembershipRepository(Protocol):
    def list_company_ids(self, customer_id: str) -> List[str]:
        """Company ids the customer belongs to, in directory order."""
        ...

    def get_companies(self, company_ids: List[str]) -> List[CompanyDto]:
        ...
