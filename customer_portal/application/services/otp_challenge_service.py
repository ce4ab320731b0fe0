import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..ports.audit_logger import AuditLogger
from ..ports.challenge_repo import ChallengeRepository
from ..ports.otp_provider import OTPProvider
from ..ports.rate_limiter import RateLimiter
from ..ports.token_issuer import TokenIssuer
from ...exceptions import (
    ChallengeExpired,
    ChallengeMismatch,
    ChallengeNotFound,
    DeliveryFailed,
    InvalidInput,
    TooManyRequests,
)
from ...utils import as_utc, generate_session_id, hash_email, is_valid_code, is_valid_email, normalize_email, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ChallengeTicket:
    challenge_id: str
    expires_at: datetime
    challenge_issued: bool = True


@dataclass
class VerificationResult:
    exchange_token: str
    session_hint: str
    challenge_id: str


@dataclass
class OTPChallengeService:
    """Issues and checks one-time email codes.

    Code generation and delivery belong to the ``OTPProvider``; this service
    owns the challenge lifecycle: supersede on reissue, TTL, attempt counting
    and single consumption.
    """

    challenge_repo: ChallengeRepository
    otp_provider: OTPProvider
    token_issuer: TokenIssuer
    rate_limiter: Optional[RateLimiter] = None
    audit: Optional[AuditLogger] = None
    ttl_minutes: int = 10
    code_length: int = 6
    max_attempts: int = 5
    max_requests: int = 3
    request_window_seconds: int = 3600
    clock: Callable[[], datetime] = field(default=utcnow)

    def request_challenge(self, email: str) -> ChallengeTicket:
        email = normalize_email(email)
        if not is_valid_email(email):
            raise InvalidInput("Invalid email address")

        if self.rate_limiter is not None:
            key = f"otp:{hash_email(email)}"
            if not self.rate_limiter.allow(key, self.max_requests, self.request_window_seconds):
                self._audit("otp_request", email, success=False, details={"reason": "rate_limited"})
                raise TooManyRequests()

        superseded = self.challenge_repo.supersede(email)
        if superseded:
            logger.info(f"Superseded {len(superseded)} pending challenge(s) for {hash_email(email)[:12]}")
        for delivery_ref in superseded:
            try:
                self.otp_provider.cancel(email, delivery_ref)
            except Exception as e:
                logger.warning(f"Could not cancel superseded code {delivery_ref}: {e}")

        try:
            delivery_ref = self.otp_provider.send(email)
        except Exception as e:
            logger.error(f"OTP delivery failed: {e}")
            self._audit("otp_request", email, success=False, details={"reason": "delivery_failed"})
            raise DeliveryFailed()

        issued_at = self.clock()
        challenge = self.challenge_repo.create(
            email=email,
            delivery_ref=delivery_ref,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(minutes=self.ttl_minutes),
        )
        self._audit("otp_request", email, details={"challenge_id": challenge.id})
        return ChallengeTicket(challenge_id=challenge.id, expires_at=challenge.expires_at)

    def verify_challenge(self, email: str, code: str) -> VerificationResult:
        email = normalize_email(email)
        if not is_valid_email(email):
            raise InvalidInput("Invalid email address")
        if not is_valid_code(code, self.code_length):
            raise InvalidInput(f"Code must be {self.code_length} digits")

        challenge = self.challenge_repo.latest_active(email)
        if challenge is None:
            self._audit("otp_verify", email, success=False, details={"reason": "not_found"})
            raise ChallengeNotFound()

        if self.clock() > as_utc(challenge.expires_at):
            self._audit("otp_verify", email, success=False, details={"reason": "expired", "challenge_id": challenge.id})
            raise ChallengeExpired()

        try:
            matched = self.otp_provider.verify(email, code)
        except Exception as e:
            # an unreachable channel cannot vouch for the code
            logger.error(f"OTP verification call failed: {e}")
            matched = False

        if not matched:
            attempts = self.challenge_repo.record_attempt(challenge.id)
            self._audit("otp_verify", email, success=False, details={"reason": "mismatch", "attempts": attempts})
            if attempts >= self.max_attempts:
                self.challenge_repo.consume(challenge.id)
                raise ChallengeMismatch("Too many incorrect attempts. Please request a new code.")
            raise ChallengeMismatch()

        if not self.challenge_repo.consume(challenge.id):
            raise ChallengeNotFound()

        session_hint = generate_session_id()
        exchange_token = self.token_issuer.issue_exchange_token(email, challenge.id, session_hint)
        self._audit("otp_verify", email, details={"challenge_id": challenge.id})
        return VerificationResult(
            exchange_token=exchange_token,
            session_hint=session_hint,
            challenge_id=challenge.id,
        )

    def _audit(self, action: str, email: str, success: bool = True, details: Optional[dict] = None) -> None:
        if self.audit is not None:
            self.audit.log(action, email, success=success, details=details)
