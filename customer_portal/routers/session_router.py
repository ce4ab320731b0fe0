from datetime import timedelta
from typing import Optional
from fastapi import APIRouter, Depends

from ..application.services.portal_service import CustomerPortalService
from ..application.services.session_manager import SessionStatus
from ..dependencies import get_access_token, get_portal_service, get_session_id
from ..exceptions import create_success_response
from ..schemas import SessionResponse
from ..utils import as_utc

router = APIRouter(prefix="/portal/session", tags=["Customer Session"])


def _status_payload(status: SessionStatus, ttl_minutes: int) -> dict:
    record = status.record
    response = SessionResponse(state=status.state.value, valid=status.valid, reason=status.reason)
    if record is not None:
        last_activity = as_utc(record.last_activity_at)
        response.identity_id = record.identity_id
        response.issued_at = as_utc(record.issued_at)
        response.last_activity_at = last_activity
        response.expires_at = last_activity + timedelta(minutes=ttl_minutes)
        response.active_company_id = record.active_company_id
    return response.model_dump(mode="json")


@router.get("")
def get_session_state(
    session_id: Optional[str] = Depends(get_session_id),
    access_token: Optional[str] = Depends(get_access_token),
    portal: CustomerPortalService = Depends(get_portal_service),
):
    status = portal.validate(session_id, access_token)
    return create_success_response(_status_payload(status, portal.session_ttl_minutes))


@router.post("/extend")
def extend_session(
    session_id: Optional[str] = Depends(get_session_id),
    access_token: Optional[str] = Depends(get_access_token),
    portal: CustomerPortalService = Depends(get_portal_service),
):
    status = portal.extend(session_id, access_token)
    return create_success_response(_status_payload(status, portal.session_ttl_minutes))
