import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import jwt

from ...application.ports.token_issuer import ExchangeClaims, TokenIssuer
from ...utils import utcnow

logger = logging.getLogger(__name__)

EXCHANGE_TOKEN_TYPE = "otp_exchange"
ACCESS_TOKEN_TYPE = "customer_access"


class JwtTokenIssuer(TokenIssuer):
    def __init__(self, secret_key: str, algorithm: str = "HS256", exchange_minutes: int = 5,
                 access_minutes: int = 60, clock: Callable[[], datetime] = utcnow):
        if not secret_key or secret_key == "change-me-in-prod":
            raise ValueError("SECRET_KEY not properly configured")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.exchange_minutes = exchange_minutes
        self.access_minutes = access_minutes
        self.clock = clock

    def _encode(self, data: Dict[str, Any], minutes: int) -> str:
        to_encode = data.copy()
        now = self.clock()
        to_encode.update({"iat": now, "exp": now + timedelta(minutes=minutes)})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def _decode(self, token: str, token_type: str) -> Optional[Dict[str, Any]]:
        try:
            # exp is checked against our own clock below so tests can move time
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm], options={"verify_exp": False})
        except jwt.InvalidTokenError as e:
            logger.warning(f"JWT rejected: {e}")
            return None
        if payload.get("type") != token_type:
            return None
        exp = payload.get("exp")
        if exp is None or self.clock().timestamp() > float(exp):
            logger.warning("JWT has expired")
            return None
        return payload

    def issue_exchange_token(self, email: str, challenge_id: str, session_hint: Optional[str] = None) -> str:
        data = {"sub": email, "jti": challenge_id, "type": EXCHANGE_TOKEN_TYPE}
        if session_hint:
            data["sid"] = session_hint
        return self._encode(data, self.exchange_minutes)

    def read_exchange_token(self, token: str) -> Optional[ExchangeClaims]:
        payload = self._decode(token, EXCHANGE_TOKEN_TYPE)
        if not payload or not payload.get("sub") or not payload.get("jti"):
            return None
        return ExchangeClaims(email=payload["sub"], challenge_id=payload["jti"], session_hint=payload.get("sid"))

    def issue_access_token(self, identity_id: str, email: str) -> str:
        return self._encode({"sub": identity_id, "email": email, "type": ACCESS_TOKEN_TYPE}, self.access_minutes)

    def read_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        return self._decode(token, ACCESS_TOKEN_TYPE)
