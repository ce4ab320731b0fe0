from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class SessionRecord:
    session_id: str
    identity_id: str
    issued_at: datetime
    last_activity_at: datetime
    revoked: bool = False
    active_company_id: Optional[str] = None


class SessionStore:
    def load(self, session_id: str) -> Optional[SessionRecord]:
        ...

    def save(self, record: SessionRecord) -> None:
        ...

    def delete(self, session_id: str) -> None:
        ...

    def touch(self, session_id: str, last_activity_at: datetime) -> bool:
        """Move last activity forward, never back. Other fields are left alone."""
        ...

    def set_active_company(self, session_id: str, company_id: Optional[str]) -> bool:
        """Change only the active company of an existing session."""
        ...
