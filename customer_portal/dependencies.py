import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from .core.config import settings
from .database import get_session
from .exceptions import NotAuthenticated
from .application.ports.audit_logger import AuditLogger
from .application.ports.challenge_repo import ChallengeRepository
from .application.ports.otp_provider import OTPProvider
from .application.ports.primary_identity import PrimaryIdentityProvider
from .application.ports.rate_limiter import RateLimiter
from .application.ports.session_store import SessionStore
from .application.ports.token_issuer import TokenIssuer
from .application.services.otp_challenge_service import OTPChallengeService
from .application.services.portal_service import CustomerPortalService
from .application.services.profile_service import ProfileService
from .application.services.route_guard import GuardState
from .application.services.token_exchanger import TokenExchanger
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.identity.firebase_provider import FirebasePrimaryIdentityProvider
from .infrastructure.otp.smtp_provider import SmtpOTPProvider
from .infrastructure.otp.twilio_provider import TwilioEmailOTPProvider
from .infrastructure.persistence.memory.challenge_repository_memory import InMemoryChallengeRepository
from .infrastructure.persistence.memory.session_store_memory import InMemorySessionStore
from .infrastructure.persistence.sqlalchemy.repositories.challenge_repository_sql import SqlChallengeRepository
from .infrastructure.persistence.sqlalchemy.repositories.customer_repository_sql import SqlCustomerRepository
from .infrastructure.persistence.sqlalchemy.repositories.membership_repository_sql import SqlMembershipRepository
from .infrastructure.persistence.sqlalchemy.repositories.session_store_sql import SqlSessionStore
from .infrastructure.persistence.sqlalchemy.repositories.staff_directory_sql import SqlStaffDirectory
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
from .infrastructure.tokens.jwt_issuer import JwtTokenIssuer

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# Process-wide adapters

@lru_cache()
def get_otp_provider() -> OTPProvider:
    if settings.OTP_DELIVERY == "smtp":
        return SmtpOTPProvider(
            smtp_host=settings.SMTP_HOST or None,
            smtp_port=settings.SMTP_PORT,
            smtp_user=settings.SMTP_USER or None,
            smtp_password=settings.SMTP_PASSWORD or None,
            smtp_use_tls=settings.SMTP_USE_TLS,
            from_email=settings.SMTP_FROM_EMAIL or None,
            from_name=settings.SMTP_FROM_NAME,
            code_length=settings.OTP_LENGTH,
            ttl_minutes=settings.OTP_TTL_MINUTES,
        )
    return TwilioEmailOTPProvider()


@lru_cache()
def get_rate_limiter() -> RateLimiter:
    if settings.REDIS_URL:
        logger.info("Using Redis rate limiter for code requests")
        return RedisRateLimiter(settings.REDIS_URL)
    return InMemoryRateLimiter()


@lru_cache()
def get_token_issuer() -> TokenIssuer:
    return JwtTokenIssuer(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        exchange_minutes=settings.EXCHANGE_TOKEN_EXPIRE_MINUTES,
        access_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


@lru_cache()
def get_audit_logger() -> AuditLogger:
    return StdAuditLogger()


@lru_cache()
def get_memory_session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@lru_cache()
def get_memory_challenge_repository() -> InMemoryChallengeRepository:
    return InMemoryChallengeRepository()


# Per-request adapters

def get_session_store(session: Session = Depends(get_session)) -> SessionStore:
    if settings.SESSION_STORE == "memory":
        return get_memory_session_store()
    return SqlSessionStore(session)


def get_challenge_repository(session: Session = Depends(get_session)) -> ChallengeRepository:
    if settings.CHALLENGE_STORE == "memory":
        return get_memory_challenge_repository()
    return SqlChallengeRepository(session)


def get_primary_identity_provider(session: Session = Depends(get_session)) -> PrimaryIdentityProvider:
    return FirebasePrimaryIdentityProvider(staff_directory=SqlStaffDirectory(session))


def get_portal_service(
    session: Session = Depends(get_session),
    challenge_repo: ChallengeRepository = Depends(get_challenge_repository),
    session_store: SessionStore = Depends(get_session_store),
    primary_identity: PrimaryIdentityProvider = Depends(get_primary_identity_provider),
) -> CustomerPortalService:
    token_issuer = get_token_issuer()
    audit = get_audit_logger()
    otp_service = OTPChallengeService(
        challenge_repo=challenge_repo,
        otp_provider=get_otp_provider(),
        token_issuer=token_issuer,
        rate_limiter=get_rate_limiter(),
        audit=audit,
        ttl_minutes=settings.OTP_TTL_MINUTES,
        code_length=settings.OTP_LENGTH,
        max_attempts=settings.OTP_MAX_ATTEMPTS,
        max_requests=settings.OTP_MAX_REQUESTS_PER_WINDOW,
        request_window_seconds=settings.OTP_REQUEST_WINDOW_SECONDS,
    )
    exchanger = TokenExchanger(
        challenge_repo=challenge_repo,
        customer_repo=SqlCustomerRepository(session),
        token_issuer=token_issuer,
        audit=audit,
    )
    return CustomerPortalService(
        otp_service=otp_service,
        exchanger=exchanger,
        session_store=session_store,
        membership_repo=SqlMembershipRepository(session),
        primary_identity=primary_identity,
        audit=audit,
        session_ttl_minutes=settings.SESSION_TTL_MINUTES,
        customer_role=settings.CUSTOMER_ROLE,
    )


def get_profile_service(session: Session = Depends(get_session)) -> ProfileService:
    return ProfileService(customer_repo=SqlCustomerRepository(session))


# Request credentials

def get_session_id(request: Request) -> Optional[str]:
    return request.headers.get(settings.SESSION_HEADER) or None


def get_access_token(request: Request) -> Optional[str]:
    return request.headers.get(settings.ACCESS_TOKEN_HEADER) or None


def get_id_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


def require_customer(
    request: Request,
    session_id: Optional[str] = Depends(get_session_id),
    id_token: Optional[str] = Depends(get_id_token),
    access_token: Optional[str] = Depends(get_access_token),
    portal: CustomerPortalService = Depends(get_portal_service),
) -> str:
    """Customer id for the request, from either identity source."""
    decision = portal.guard(session_id, id_token, request.url.path, access_token=access_token)
    if decision.state != GuardState.AUTHORIZED or not decision.identity_id:
        raise NotAuthenticated(decision.reason, return_to=request.url.path, login_path=settings.LOGIN_PATH)
    return decision.identity_id
