from dataclasses import dataclass, field
from typing import Protocol, Optional, Dict, Any, List


@dataclass
class IdentityDto:
    id: str
    email: str
    display_name: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CustomerProfile:
    id: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    companies: List[str] = field(default_factory=list)


class CustomerRepository(Protocol):
    def get_by_email(self, email: str) -> Optional[IdentityDto]:
        ...

    def get_by_id(self, customer_id: str) -> Optional[IdentityDto]:
        ...

    def create(self, email: str) -> IdentityDto:
        ...

    def get_profile(self, customer_id: str) -> Optional[CustomerProfile]:
        ...

    def update_profile_fields(self, customer_id: str, fields: Dict[str, Any]) -> None:
        ...
