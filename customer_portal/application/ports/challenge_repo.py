from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass
class ChallengeRecord:
    id: str
    email: str
    delivery_ref: Optional[str]
    issued_at: datetime
    expires_at: datetime
    consumed: bool = False
    attempts: int = 0
    token_redeemed: bool = False


class ChallengeRepository:
    def create(self, email: str, delivery_ref: Optional[str], issued_at: datetime, expires_at: datetime) -> ChallengeRecord:
        ...

    def get(self, challenge_id: str) -> Optional[ChallengeRecord]:
        ...

    def latest_active(self, email: str) -> Optional[ChallengeRecord]:
        """Most recently issued unconsumed challenge for the email, expired or not."""
        ...

    def supersede(self, email: str) -> List[Optional[str]]:
        """Consume every unconsumed challenge for the email; returns their delivery refs."""
        ...

    def record_attempt(self, challenge_id: str) -> int:
        ...

    def consume(self, challenge_id: str) -> bool:
        """Flip consumed False -> True. False when it was already consumed."""
        ...

    def redeem_token(self, challenge_id: str) -> bool:
        """Flip token_redeemed False -> True. False when already redeemed or unknown."""
        ...
