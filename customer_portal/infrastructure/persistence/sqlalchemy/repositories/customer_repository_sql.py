import json
from datetime import datetime
from typing import Optional, Dict, Any
from sqlmodel import Session, select

from .....db.models import Customer, CustomerCompany
from .....application.ports.customer_repo import CustomerRepository, CustomerProfile, IdentityDto
from .....utils import normalize_email

# profile attribute name -> column
PROFILE_COLUMNS = {
    "name": "name",
    "firstName": "first_name",
    "lastName": "last_name",
    "phone": "phone",
    "phoneNumber": "phone_number",
    "address": "address",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "preferences": "preferences",
    "photoURL": "photo_url",
}


class SqlCustomerRepository(CustomerRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, customer: Customer) -> IdentityDto:
        return IdentityDto(
            id=customer.id,
            email=customer.email,
            display_name=customer.name,
            attributes={"hasProfile": customer.has_profile},
        )

    def _attributes(self, customer: Customer) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {}
        for key, column in PROFILE_COLUMNS.items():
            value = getattr(customer, column)
            if value is None:
                continue
            if key == "preferences":
                value = json.loads(value)
            attributes[key] = value
        return attributes

    def get_by_email(self, email: str) -> Optional[IdentityDto]:
        customer = self.session.exec(select(Customer).where(Customer.email == normalize_email(email))).first()
        return self._to_dto(customer) if customer else None

    def get_by_id(self, customer_id: str) -> Optional[IdentityDto]:
        customer = self.session.get(Customer, customer_id)
        return self._to_dto(customer) if customer else None

    def create(self, email: str) -> IdentityDto:
        customer = Customer(email=normalize_email(email))
        self.session.add(customer)
        self.session.commit()
        self.session.refresh(customer)
        return self._to_dto(customer)

    def get_profile(self, customer_id: str) -> Optional[CustomerProfile]:
        customer = self.session.get(Customer, customer_id)
        if not customer:
            return None
        company_ids = list(self.session.exec(
            select(CustomerCompany.company_id)
            .where(CustomerCompany.customer_id == customer_id)
            .order_by(CustomerCompany.position, CustomerCompany.created_at)
        ).all())
        if not customer.has_profile and not company_ids:
            return None
        return CustomerProfile(id=customer.id, attributes=self._attributes(customer), companies=company_ids)

    def update_profile_fields(self, customer_id: str, fields: Dict[str, Any]) -> None:
        customer = self.session.get(Customer, customer_id)
        if not customer:
            return
        for key, value in fields.items():
            column = PROFILE_COLUMNS.get(key)
            if column is None:
                continue
            if key == "preferences" and value is not None:
                value = json.dumps(value)
            setattr(customer, column, value)
        customer.has_profile = True
        customer.updated_at = datetime.utcnow()
        self.session.add(customer)
        self.session.commit()
