import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional

from ....application.ports.session_store import SessionRecord, SessionStore
from ....utils import as_utc


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._records: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def load(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            rec = self._records.get(session_id)
            # callers get a copy; only save() changes what is stored
            return replace(rec) if rec else None

    def save(self, record: SessionRecord) -> None:
        with self._lock:
            self._records[record.session_id] = replace(record)

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._records.pop(session_id, None)

    def touch(self, session_id: str, last_activity_at: datetime) -> bool:
        with self._lock:
            rec = self._records.get(session_id)
            if rec is None:
                return False
            rec.last_activity_at = max(as_utc(rec.last_activity_at), as_utc(last_activity_at))
            return True

    def set_active_company(self, session_id: str, company_id: Optional[str]) -> bool:
        with self._lock:
            rec = self._records.get(session_id)
            if rec is None:
                return False
            rec.active_company_id = company_id
            return True
