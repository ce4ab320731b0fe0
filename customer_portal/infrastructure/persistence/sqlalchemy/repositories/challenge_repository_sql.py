from datetime import datetime
from typing import List, Optional
from sqlalchemy import update
from sqlmodel import Session, select

from .....db.models import OTPChallenge
from .....application.ports.challenge_repo import ChallengeRepository, ChallengeRecord
from .....utils import as_utc, normalize_email
from ._time import to_db


class SqlChallengeRepository(ChallengeRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: OTPChallenge) -> ChallengeRecord:
        return ChallengeRecord(
            id=rec.id,
            email=rec.email,
            delivery_ref=rec.delivery_ref,
            issued_at=as_utc(rec.issued_at),
            expires_at=as_utc(rec.expires_at),
            consumed=rec.is_consumed,
            attempts=rec.attempts,
            token_redeemed=rec.token_redeemed,
        )

    def create(self, email: str, delivery_ref: Optional[str], issued_at: datetime, expires_at: datetime) -> ChallengeRecord:
        rec = OTPChallenge(
            email=normalize_email(email),
            delivery_ref=delivery_ref,
            issued_at=to_db(issued_at),
            expires_at=to_db(expires_at),
        )
        self.session.add(rec)
        self.session.commit()
        self.session.refresh(rec)
        return self._to_dto(rec)

    def get(self, challenge_id: str) -> Optional[ChallengeRecord]:
        rec = self.session.get(OTPChallenge, challenge_id)
        return self._to_dto(rec) if rec else None

    def latest_active(self, email: str) -> Optional[ChallengeRecord]:
        rec = self.session.exec(
            select(OTPChallenge)
            .where(OTPChallenge.email == normalize_email(email), OTPChallenge.is_consumed == False)  # noqa: E712
            .order_by(OTPChallenge.issued_at.desc())
        ).first()
        return self._to_dto(rec) if rec else None

    def supersede(self, email: str) -> List[Optional[str]]:
        email = normalize_email(email)
        pending = self.session.exec(
            select(OTPChallenge.id, OTPChallenge.delivery_ref)
            .where(OTPChallenge.email == email, OTPChallenge.is_consumed == False)  # noqa: E712
        ).all()
        if not pending:
            return []
        self.session.exec(
            update(OTPChallenge)
            .where(OTPChallenge.id.in_([row[0] for row in pending]), OTPChallenge.is_consumed == False)  # noqa: E712
            .values(is_consumed=True)
        )
        self.session.commit()
        return [row[1] for row in pending]

    def record_attempt(self, challenge_id: str) -> int:
        self.session.exec(
            update(OTPChallenge)
            .where(OTPChallenge.id == challenge_id)
            .values(attempts=OTPChallenge.attempts + 1)
        )
        self.session.commit()
        rec = self.session.get(OTPChallenge, challenge_id)
        if rec is None:
            return 0
        self.session.refresh(rec)
        return rec.attempts

    def consume(self, challenge_id: str) -> bool:
        # conditional update: only one caller can flip the flag
        result = self.session.exec(
            update(OTPChallenge)
            .where(OTPChallenge.id == challenge_id, OTPChallenge.is_consumed == False)  # noqa: E712
            .values(is_consumed=True)
        )
        self.session.commit()
        return (result.rowcount or 0) == 1

    def redeem_token(self, challenge_id: str) -> bool:
        result = self.session.exec(
            update(OTPChallenge)
            .where(OTPChallenge.id == challenge_id, OTPChallenge.token_redeemed == False)  # noqa: E712
            .values(token_redeemed=True)
        )
        self.session.commit()
        return (result.rowcount or 0) == 1
