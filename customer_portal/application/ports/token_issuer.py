from dataclasses import dataclass
from typing import Protocol, Optional, Dict, Any


@dataclass
class ExchangeClaims:
    email: str
    challenge_id: str
    session_hint: Optional[str] = None


class TokenIssuer(Protocol):
    def issue_exchange_token(self, email: str, challenge_id: str, session_hint: Optional[str] = None) -> str:
        ...

    def read_exchange_token(self, token: str) -> Optional[ExchangeClaims]:
        ...

    def issue_access_token(self, identity_id: str, email: str) -> str:
        ...

    def read_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        ...
