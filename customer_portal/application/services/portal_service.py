import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from ..ports.audit_logger import AuditLogger
from ..ports.customer_repo import CustomerProfile, IdentityDto
from ..ports.membership_repo import CompanyDto, MembershipRepository
from ..ports.primary_identity import PrimaryIdentityProvider
from ..ports.session_store import SessionStore
from .membership_resolver import MembershipView, TenantMembershipResolver
from .otp_challenge_service import ChallengeTicket, OTPChallengeService, VerificationResult
from .route_guard import GuardDecision, GuardState, OtpSignal, PrimarySignal, decide
from .session_manager import SessionManager, SessionState, SessionStatus
from .token_exchanger import TokenExchanger
from ...exceptions import NotAuthenticated
from ...utils import generate_session_id, utcnow

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    session_id: str
    identity: IdentityDto
    profile: Optional[CustomerProfile]
    access_token: str
    memberships: MembershipView


@dataclass
class CustomerPortalService:
    """Drives one visitor through sign-in, session upkeep, company choice and sign-out.

    A session id on its own is enough to use a session. When the caller also
    presents the access token minted at sign-in, the token must name the same
    identity as the session or the session is treated as unusable.
    """

    otp_service: OTPChallengeService
    exchanger: TokenExchanger
    session_store: SessionStore
    membership_repo: MembershipRepository
    primary_identity: Optional[PrimaryIdentityProvider] = None
    audit: Optional[AuditLogger] = None
    session_ttl_minutes: int = 30
    customer_role: str = "customer"
    clock: Callable[[], datetime] = field(default=utcnow)

    def session_manager(self, session_id: str) -> SessionManager:
        return SessionManager(self.session_store, session_id, self.session_ttl_minutes, self.clock)

    # -- sign-in ---------------------------------------------------------
    def request_otp(self, email: str) -> ChallengeTicket:
        return self.otp_service.request_challenge(email)

    def verify_otp(self, email: str, code: str) -> VerificationResult:
        return self.otp_service.verify_challenge(email, code)

    def complete_login(self, exchange_token: str, session_hint: Optional[str] = None) -> LoginResult:
        result = self.exchanger.exchange(exchange_token, session_hint)
        # the hint bound into the token names the session; a live one is never taken over
        session_id = result.session_hint
        if not session_id or self.session_manager(session_id).validate().valid:
            session_id = generate_session_id()
        manager = self.session_manager(session_id)
        manager.open(result.identity)

        resolver = TenantMembershipResolver(self.membership_repo)
        view = resolver.load(result.identity)
        manager.set_active_company(view.active)
        return LoginResult(
            session_id=session_id,
            identity=result.identity,
            profile=result.profile,
            access_token=result.access_token,
            memberships=view,
        )

    def login(self, email: str, code: str) -> LoginResult:
        verification = self.verify_otp(email, code)
        return self.complete_login(verification.exchange_token, verification.session_hint)

    # -- session ---------------------------------------------------------
    def validate(self, session_id: Optional[str], access_token: Optional[str] = None) -> SessionStatus:
        if not session_id:
            return SessionStatus(SessionState.NO_SESSION, reason="Not authenticated")
        status = self.session_manager(session_id).validate()
        if access_token and status.valid and not self._access_token_matches(access_token, status.record.identity_id):
            logger.warning(f"Access token presented with session {session_id} names another identity")
            return SessionStatus(SessionState.EXPIRED, reason="Session could not be verified")
        return status

    def _access_token_matches(self, access_token: str, identity_id: str) -> bool:
        claims = self.exchanger.token_issuer.read_access_token(access_token)
        return bool(claims) and claims.get("sub") == identity_id

    def extend(self, session_id: Optional[str], access_token: Optional[str] = None) -> SessionStatus:
        if session_id and self.validate(session_id, access_token).valid:
            self.session_manager(session_id).extend()
        return self.validate(session_id, access_token)

    def logout(self, session_id: Optional[str], id_token: Optional[str] = None) -> None:
        identity_id = None
        if session_id:
            manager = self.session_manager(session_id)
            status = manager.validate()
            manager.revoke()
            identity_id = status.record.identity_id if status.record else None

        # only a primary-identity uid means anything to the remote provider
        primary = self.resolve_primary(id_token)
        if primary.identity_id and self.primary_identity is not None:
            try:
                self.primary_identity.sign_out(primary.identity_id)
            except Exception as e:
                logger.warning(f"Remote sign-out failed for {primary.identity_id}; local session already cleared: {e}")
            identity_id = identity_id or primary.identity_id
        if self.audit is not None and identity_id:
            self.audit.log("logout", "", identity_id=identity_id, session_id=session_id)

    # -- companies -------------------------------------------------------
    def _resolver_for(
        self,
        session_id: Optional[str],
        id_token: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> Tuple[Optional[SessionManager], TenantMembershipResolver]:
        decision = self.guard(session_id, id_token, access_token=access_token)
        if decision.state != GuardState.AUTHORIZED or not decision.identity_id:
            raise NotAuthenticated(decision.reason)

        # the active company lives on the OTP session, and only when it belongs to this identity
        manager = None
        preferred = None
        status = self.validate(session_id, access_token)
        if status.valid and status.record.identity_id == decision.identity_id:
            manager = self.session_manager(session_id)
            preferred = status.record.active_company_id

        resolver = TenantMembershipResolver(self.membership_repo)
        resolver.load(IdentityDto(id=decision.identity_id, email=""), preferred=preferred)
        return manager, resolver

    def memberships(
        self,
        session_id: Optional[str],
        id_token: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> Tuple[MembershipView, List[CompanyDto]]:
        _, resolver = self._resolver_for(session_id, id_token, access_token)
        return resolver.view, resolver.companies_detail()

    def select_company(
        self,
        session_id: Optional[str],
        company_id: str,
        id_token: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> MembershipView:
        manager, resolver = self._resolver_for(session_id, id_token, access_token)
        resolver.select_company(company_id)
        if manager is not None:
            manager.set_active_company(company_id)
        return resolver.view

    # -- route guard -----------------------------------------------------
    def resolve_primary(self, id_token: Optional[str]) -> PrimarySignal:
        if not id_token or self.primary_identity is None:
            return PrimarySignal.anonymous()
        try:
            primary = self.primary_identity.resolve(id_token)
        except Exception as e:
            logger.error(f"Primary identity lookup failed: {e}")
            return PrimarySignal.anonymous()
        if primary is None:
            return PrimarySignal.anonymous()
        return PrimarySignal(resolved=True, identity_id=primary.uid, role=primary.role)

    def otp_signal(self, session_id: Optional[str], access_token: Optional[str] = None) -> Tuple[OtpSignal, Optional[str]]:
        status = self.validate(session_id, access_token)
        if status.state == SessionState.VALID:
            return OtpSignal.VALID, status.record.identity_id
        if status.state == SessionState.NO_SESSION:
            return OtpSignal.ABSENT, None
        return OtpSignal.INVALID, None

    def guard(
        self,
        session_id: Optional[str],
        id_token: Optional[str],
        requested_location: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> GuardDecision:
        primary = self.resolve_primary(id_token)
        otp, otp_identity = self.otp_signal(session_id, access_token)
        return decide(otp, primary, requested_location, otp_identity, self.customer_role)
