import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from ..ports.customer_repo import IdentityDto
from ..ports.session_store import SessionRecord, SessionStore
from ...exceptions import InvalidInput
from ...utils import as_utc, utcnow

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NO_SESSION = "no_session"
    PENDING = "pending"
    VALID = "valid"
    EXPIRED = "expired"
    REVOKED = "revoked"


@dataclass
class SessionStatus:
    state: SessionState
    record: Optional[SessionRecord] = None
    reason: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.state == SessionState.VALID


@dataclass
class SessionManager:
    """Inactivity-bounded session for one visitor.

    Expiry is computed when asked, never pushed by a timer: ``validate`` is the
    only operation that reports EXPIRED, and it never writes, so it can run
    alongside ``extend`` in either order.
    """

    store: SessionStore
    session_id: str
    ttl_minutes: int = 30
    clock: Callable[[], datetime] = field(default=utcnow)

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.ttl_minutes)

    def open(self, identity: IdentityDto) -> SessionRecord:
        if self.validate().valid:
            # a live session is never reassigned, whoever it belongs to
            raise InvalidInput("Session id already in use")
        now = self.clock()
        record = SessionRecord(
            session_id=self.session_id,
            identity_id=identity.id,
            issued_at=now,
            last_activity_at=now,
        )
        self.store.save(record)
        logger.info(f"Opened portal session {self.session_id} for identity {identity.id}")
        return record

    def extend(self) -> Optional[SessionRecord]:
        status = self.validate()
        if not status.valid:
            return None
        record = status.record
        record.last_activity_at = max(as_utc(record.last_activity_at), self.clock())
        self.store.touch(self.session_id, record.last_activity_at)
        return record

    def validate(self) -> SessionStatus:
        try:
            record = self.store.load(self.session_id)
        except Exception as e:
            logger.error(f"Session store unavailable while validating {self.session_id}: {e}")
            return SessionStatus(SessionState.EXPIRED, reason="Session could not be verified")

        if record is None:
            return SessionStatus(SessionState.NO_SESSION, reason="Not authenticated")
        if record.revoked:
            return SessionStatus(SessionState.REVOKED, record, reason="Session ended")
        if self.clock() - as_utc(record.last_activity_at) > self.ttl:
            return SessionStatus(SessionState.EXPIRED, record, reason="Session expired")
        return SessionStatus(SessionState.VALID, record)

    def set_active_company(self, company_id: Optional[str]) -> None:
        status = self.validate()
        if not status.valid:
            return
        self.store.set_active_company(self.session_id, company_id)

    def revoke(self) -> None:
        try:
            self.store.delete(self.session_id)
        except Exception as e:
            # a store that cannot delete cannot load either, and validate fails closed
            logger.error(f"Could not delete session {self.session_id}: {e}")
            return
        logger.info(f"Revoked portal session {self.session_id}")
