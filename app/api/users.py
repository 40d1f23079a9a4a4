from typing import Optional

from fastapi import APIRouter, Header

from app.core.auth import PRINCIPAL_HEADER
from app.models.user import (
    AuthMethodRequest,
    CurrentUser,
    SignupRequest,
    SignupResponse,
    User,
)
from app.services.user_service import get_user_service

router = APIRouter()


@router.get("/current-user", response_model=CurrentUser, response_model_exclude_none=True)
async def current_user(
    principal: Optional[str] = Header(default=None, alias=PRINCIPAL_HEADER),
):
    service = get_user_service()
    return await service.current_user(principal)


@router.post("/signup", response_model=SignupResponse)
async def signup(request: SignupRequest):
    service = get_user_service()
    user = await service.signup(request)
    return SignupResponse(success=True, user=user)


@router.post("/users/{user_id}/auth-methods", response_model=User)
async def add_auth_method(user_id: str, request: AuthMethodRequest):
    service = get_user_service()
    return await service.add_auth_method(user_id, request.auth_type, request.auth_id)
