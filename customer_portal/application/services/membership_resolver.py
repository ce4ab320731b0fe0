import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..ports.customer_repo import IdentityDto
from ..ports.membership_repo import CompanyDto, MembershipRepository
from ...exceptions import NotAMember

logger = logging.getLogger(__name__)


@dataclass
class MembershipView:
    companies: List[str] = field(default_factory=list)
    active: Optional[str] = None


@dataclass
class TenantMembershipResolver:
    repo: MembershipRepository
    _view: MembershipView = field(default_factory=MembershipView, init=False, repr=False)

    @property
    def view(self) -> MembershipView:
        return self._view

    def load(self, identity: IdentityDto, preferred: Optional[str] = None) -> MembershipView:
        # keep directory order; the first membership is the default selection
        companies = list(dict.fromkeys(self.repo.list_company_ids(identity.id)))
        if preferred in companies:
            active = preferred
        else:
            active = companies[0] if companies else None
        self._view = MembershipView(companies=companies, active=active)
        return self._view

    def select_company(self, company_id: str) -> str:
        if company_id not in self._view.companies:
            logger.warning(f"Rejected selection of non-member company {company_id}")
            raise NotAMember()
        self._view.active = company_id
        return company_id

    def companies_detail(self) -> List[CompanyDto]:
        if not self._view.companies:
            return []
        by_id = {c.id: c for c in self.repo.get_companies(self._view.companies)}
        return [by_id[cid] for cid in self._view.companies if cid in by_id]
