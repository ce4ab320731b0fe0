import logging
from dataclasses import dataclass
from typing import Optional

from ..ports.audit_logger import AuditLogger
from ..ports.challenge_repo import ChallengeRepository
from ..ports.customer_repo import CustomerRepository, CustomerProfile, IdentityDto
from ..ports.token_issuer import TokenIssuer
from ...exceptions import ExchangeFailed
from ...utils import normalize_email

logger = logging.getLogger(__name__)


@dataclass
class ExchangeResult:
    identity: IdentityDto
    profile: Optional[CustomerProfile]
    access_token: str
    session_hint: Optional[str] = None


@dataclass
class TokenExchanger:
    challenge_repo: ChallengeRepository
    customer_repo: CustomerRepository
    token_issuer: TokenIssuer
    audit: Optional[AuditLogger] = None

    def exchange(self, token: Optional[str], session_hint: Optional[str] = None) -> ExchangeResult:
        """Redeem a verified exchange token once.

        A ``session_hint`` from the caller must match the one bound into the
        token at verification time.
        """
        if not token:
            raise ExchangeFailed("Missing exchange token")

        claims = self.token_issuer.read_exchange_token(token)
        if claims is None:
            logger.warning("Exchange token rejected by issuer")
            raise ExchangeFailed()

        challenge = self.challenge_repo.get(claims.challenge_id)
        if challenge is None or normalize_email(challenge.email) != normalize_email(claims.email):
            logger.warning("Exchange token does not match a verified challenge")
            raise ExchangeFailed()
        if not challenge.consumed:
            raise ExchangeFailed()
        if session_hint and session_hint != claims.session_hint:
            logger.warning("Exchange token presented with a foreign session hint")
            raise ExchangeFailed("Session hint does not match this sign-in")
        if not self.challenge_repo.redeem_token(challenge.id):
            if self.audit is not None:
                self.audit.log("token_exchange", claims.email, success=False, details={"reason": "already_redeemed"})
            raise ExchangeFailed("Exchange token already used")

        identity = self.customer_repo.get_by_email(claims.email)
        if identity is None:
            identity = self.customer_repo.create(claims.email)
            logger.info(f"Created customer identity {identity.id} on first sign-in")

        # a customer without a profile yet is still authenticated
        profile = self.customer_repo.get_profile(identity.id)
        access_token = self.token_issuer.issue_access_token(identity.id, identity.email)

        if self.audit is not None:
            self.audit.log("token_exchange", identity.email, identity_id=identity.id)
        return ExchangeResult(
            identity=identity, profile=profile, access_token=access_token, session_hint=claims.session_hint
        )
