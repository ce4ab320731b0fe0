from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlmodel import Session

from .....db.models import PortalSession
from .....application.ports.session_store import SessionStore, SessionRecord
from .....utils import as_utc
from ._time import to_db


class SqlSessionStore(SessionStore):
    def __init__(self, session: Session):
        self.session = session

    def load(self, session_id: str) -> Optional[SessionRecord]:
        rec = self.session.get(PortalSession, session_id)
        if not rec:
            return None
        self.session.refresh(rec)
        return SessionRecord(
            session_id=rec.id,
            identity_id=rec.identity_id,
            issued_at=as_utc(rec.issued_at),
            last_activity_at=as_utc(rec.last_activity_at),
            revoked=rec.is_revoked,
            active_company_id=rec.active_company_id,
        )

    def save(self, record: SessionRecord) -> None:
        rec = self.session.get(PortalSession, record.session_id)
        if rec is None:
            rec = PortalSession(id=record.session_id, identity_id=record.identity_id,
                                issued_at=to_db(record.issued_at), last_activity_at=to_db(record.last_activity_at))
        rec.identity_id = record.identity_id
        rec.issued_at = to_db(record.issued_at)
        rec.last_activity_at = to_db(record.last_activity_at)
        rec.is_revoked = record.revoked
        rec.active_company_id = record.active_company_id
        self.session.add(rec)
        self.session.commit()

    def delete(self, session_id: str) -> None:
        rec = self.session.get(PortalSession, session_id)
        if not rec:
            return
        self.session.delete(rec)
        self.session.commit()

    def touch(self, session_id: str, last_activity_at: datetime) -> bool:
        value = to_db(last_activity_at)
        result = self.session.exec(
            update(PortalSession)
            .where(PortalSession.id == session_id, PortalSession.last_activity_at < value)
            .values(last_activity_at=value)
        )
        self.session.commit()
        if result.rowcount:
            return True
        # nothing moved: either the row is gone or it is already at least this recent
        return self.session.get(PortalSession, session_id) is not None

    def set_active_company(self, session_id: str, company_id: Optional[str]) -> bool:
        result = self.session.exec(
            update(PortalSession)
            .where(PortalSession.id == session_id)
            .values(active_company_id=company_id)
        )
        self.session.commit()
        return bool(result.rowcount)
