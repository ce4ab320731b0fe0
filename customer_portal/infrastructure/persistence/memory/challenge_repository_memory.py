import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from ....application.ports.challenge_repo import ChallengeRecord, ChallengeRepository
from ....utils import generate_session_id, normalize_email


class InMemoryChallengeRepository(ChallengeRepository):
    def __init__(self) -> None:
        self._rows: Dict[str, ChallengeRecord] = {}
        self._lock = threading.Lock()

    def create(self, email: str, delivery_ref: Optional[str], issued_at: datetime, expires_at: datetime) -> ChallengeRecord:
        rec = ChallengeRecord(
            id=generate_session_id(),
            email=normalize_email(email),
            delivery_ref=delivery_ref,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        with self._lock:
            self._rows[rec.id] = rec
        return replace(rec)

    def get(self, challenge_id: str) -> Optional[ChallengeRecord]:
        with self._lock:
            rec = self._rows.get(challenge_id)
            return replace(rec) if rec else None

    def latest_active(self, email: str) -> Optional[ChallengeRecord]:
        email = normalize_email(email)
        with self._lock:
            pending = [r for r in self._rows.values() if r.email == email and not r.consumed]
            if not pending:
                return None
            return replace(max(pending, key=lambda r: r.issued_at))

    def supersede(self, email: str) -> List[Optional[str]]:
        email = normalize_email(email)
        refs: List[Optional[str]] = []
        with self._lock:
            for rec in self._rows.values():
                if rec.email == email and not rec.consumed:
                    rec.consumed = True
                    refs.append(rec.delivery_ref)
        return refs

    def record_attempt(self, challenge_id: str) -> int:
        with self._lock:
            rec = self._rows.get(challenge_id)
            if rec is None:
                return 0
            rec.attempts += 1
            return rec.attempts

    def consume(self, challenge_id: str) -> bool:
        with self._lock:
            rec = self._rows.get(challenge_id)
            if rec is None or rec.consumed:
                return False
            rec.consumed = True
            return True

    def redeem_token(self, challenge_id: str) -> bool:
        with self._lock:
            rec = self._rows.get(challenge_id)
            if rec is None or rec.token_redeemed:
                return False
            rec.token_redeemed = True
            return True
