from typing import List
from sqlmodel import Session, select

from .....db.models import Company, CustomerCompany
from .....application.ports.membership_repo import CompanyDto, MembershipRepository


class SqlMembershipRepository(MembershipRepository):
    def __init__(self, session: Session):
        self.session = session

    def list_company_ids(self, customer_id: str) -> List[str]:
        rows = self.session.exec(
            select(CustomerCompany.company_id)
            .where(CustomerCompany.customer_id == customer_id)
            .order_by(CustomerCompany.position, CustomerCompany.created_at)
        ).all()
        return list(rows)

    def get_companies(self, company_ids: List[str]) -> List[CompanyDto]:
        if not company_ids:
            return []
        rows = self.session.exec(select(Company).where(Company.id.in_(company_ids))).all()
        by_id = {c.id: CompanyDto(id=c.id, name=c.name, code=c.code) for c in rows}
        # keep caller order, skip ids with no company row
        return [by_id[cid] for cid in company_ids if cid in by_id]
