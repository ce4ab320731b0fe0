from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..application.services.portal_service import CustomerPortalService
from ..application.services.route_guard import GuardState
from ..core.config import settings
from ..dependencies import get_access_token, get_id_token, get_portal_service, get_session_id
from ..exceptions import create_success_response
from ..schemas import GuardResponse

router = APIRouter(prefix="/portal/guard", tags=["Customer Route Guard"])


@router.get("")
def check_route(
    next_location: Optional[str] = Query(None, alias="next", description="Location the visitor asked for"),
    session_id: Optional[str] = Depends(get_session_id),
    id_token: Optional[str] = Depends(get_id_token),
    access_token: Optional[str] = Depends(get_access_token),
    portal: CustomerPortalService = Depends(get_portal_service),
):
    decision = portal.guard(session_id, id_token, next_location, access_token=access_token)
    response = GuardResponse(
        state=decision.state.value,
        source=decision.source,
        identity_id=decision.identity_id,
        return_to=decision.return_to,
        reason=decision.reason,
    )
    if decision.state == GuardState.UNAUTHORIZED:
        response.redirect_to = settings.LOGIN_PATH
    return create_success_response(response.model_dump())
