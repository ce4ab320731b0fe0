import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..ports.customer_repo import CustomerRepository
from ...exceptions import InvalidInput

logger = logging.getLogger(__name__)

# Everything else (role, companies, email, ids) is owned by the directory.
ALLOWED_PROFILE_FIELDS = frozenset({
    "name", "firstName", "lastName", "phone", "phoneNumber", "address",
    "city", "state", "zipCode", "preferences", "photoURL",
})


@dataclass
class ProfileService:
    customer_repo: CustomerRepository

    def current_customer(self, customer_id: str) -> Optional[Dict[str, Any]]:
        identity = self.customer_repo.get_by_id(customer_id)
        if identity is None:
            return None
        profile = self.customer_repo.get_profile(customer_id)
        merged: Dict[str, Any] = dict(profile.attributes) if profile else {}
        merged.update({
            "id": identity.id,
            "email": identity.email,
            "name": identity.display_name,
            "companies": list(profile.companies) if profile else [],
        })
        return merged

    def update_profile(self, customer_id: str, updates: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not customer_id:
            raise InvalidInput("Customer ID is required")
        updates = updates or {}
        sanitized = {k: v for k, v in updates.items() if k in ALLOWED_PROFILE_FIELDS}
        dropped = sorted(set(updates) - set(sanitized))
        if dropped:
            logger.warning(f"Dropped non-editable profile fields for {customer_id}: {dropped}")
        if sanitized:
            self.customer_repo.update_profile_fields(customer_id, sanitized)
        return sanitized
