from typing import Optional
from sqlmodel import Session

from .....db.models import StaffUser
from .....application.ports.primary_identity import StaffDirectory


class SqlStaffDirectory(StaffDirectory):
    def __init__(self, session: Session):
        self.session = session

    def get_role(self, uid: str) -> Optional[str]:
        staff = self.session.get(StaffUser, uid)
        return staff.role if staff else None
