from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, HTTPException

from ..application.services.profile_service import ProfileService
from ..dependencies import get_profile_service, require_customer
from ..exceptions import create_success_response
from ..schemas import CustomerResponse, UpdateProfileResponse

router = APIRouter(prefix="/portal/profile", tags=["Customer Profile"])


@router.get("")
def get_profile(
    customer_id: str = Depends(require_customer),
    profiles: ProfileService = Depends(get_profile_service),
):
    customer = profiles.current_customer(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return create_success_response(CustomerResponse(**customer).model_dump())


@router.patch("")
def update_profile(
    updates: Dict[str, Any] = Body(...),
    customer_id: str = Depends(require_customer),
    profiles: ProfileService = Depends(get_profile_service),
):
    sanitized = profiles.update_profile(customer_id, updates)
    return create_success_response(UpdateProfileResponse(updated=sanitized).model_dump())
