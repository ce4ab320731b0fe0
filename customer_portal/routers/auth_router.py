from typing import Optional
from fastapi import APIRouter, Depends
import logging

from ..application.services.portal_service import CustomerPortalService, LoginResult
from ..dependencies import get_id_token, get_portal_service, get_session_id
from ..exceptions import create_success_response
from ..schemas import (
    ChallengeRequest, ChallengeResponse, VerifyCodeRequest, VerifyCodeResponse,
    ExchangeRequest, ExchangeResponse, IdentityResponse, CompanyResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal/auth", tags=["Customer Authentication"])


def _login_payload(result: LoginResult, portal: CustomerPortalService) -> dict:
    companies = portal.membership_repo.get_companies(result.memberships.companies)
    profile = None
    if result.profile is not None:
        profile = dict(result.profile.attributes)
        profile["companies"] = list(result.profile.companies)
    response = ExchangeResponse(
        session_id=result.session_id,
        identity=IdentityResponse(
            id=result.identity.id,
            email=result.identity.email,
            name=result.identity.display_name,
        ),
        profile=profile,
        access_token=result.access_token,
        companies=[CompanyResponse(id=c.id, name=c.name, code=c.code) for c in companies],
        active_company_id=result.memberships.active,
    )
    return response.model_dump(mode="json")


@router.post("/challenge")
def request_challenge(body: ChallengeRequest, portal: CustomerPortalService = Depends(get_portal_service)):
    ticket = portal.request_otp(body.email)
    return create_success_response(ChallengeResponse(
        challenge_issued=ticket.challenge_issued,
        challenge_id=ticket.challenge_id,
        expires_at=ticket.expires_at,
    ).model_dump(mode="json"))


@router.post("/verify")
def verify_code(body: VerifyCodeRequest, portal: CustomerPortalService = Depends(get_portal_service)):
    result = portal.verify_otp(body.email, body.code)
    return create_success_response(VerifyCodeResponse(
        exchange_token=result.exchange_token,
        session_hint=result.session_hint,
    ).model_dump())


@router.post("/exchange")
def exchange_token(body: ExchangeRequest, portal: CustomerPortalService = Depends(get_portal_service)):
    result = portal.complete_login(body.exchange_token, body.session_hint)
    logger.info(f"Customer {result.identity.id} signed in with session {result.session_id}")
    return create_success_response(_login_payload(result, portal))


@router.post("/logout")
def logout(
    session_id: Optional[str] = Depends(get_session_id),
    id_token: Optional[str] = Depends(get_id_token),
    portal: CustomerPortalService = Depends(get_portal_service),
):
    portal.logout(session_id, id_token)
    return create_success_response({"message": "Signed out"})
