from typing import Optional
from fastapi import APIRouter, Depends
import logging

from ..application.services.portal_service import CustomerPortalService
from ..dependencies import get_access_token, get_id_token, get_portal_service, get_session_id
from ..exceptions import create_success_response
from ..schemas import CompanyListResponse, CompanyResponse, SelectCompanyRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal/companies", tags=["Customer Companies"])


@router.get("")
def list_companies(
    session_id: Optional[str] = Depends(get_session_id),
    id_token: Optional[str] = Depends(get_id_token),
    access_token: Optional[str] = Depends(get_access_token),
    portal: CustomerPortalService = Depends(get_portal_service),
):
    view, details = portal.memberships(session_id, id_token, access_token)
    return create_success_response(CompanyListResponse(
        companies=[CompanyResponse(id=c.id, name=c.name, code=c.code) for c in details],
        active_company_id=view.active,
    ).model_dump())


@router.post("/select")
def select_company(
    body: SelectCompanyRequest,
    session_id: Optional[str] = Depends(get_session_id),
    id_token: Optional[str] = Depends(get_id_token),
    access_token: Optional[str] = Depends(get_access_token),
    portal: CustomerPortalService = Depends(get_portal_service),
):
    view = portal.select_company(session_id, body.company_id, id_token, access_token)
    logger.info(f"Session {session_id} switched to company {view.active}")
    return create_success_response({"active_company_id": view.active, "companies": view.companies})
