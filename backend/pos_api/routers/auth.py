"""
Authentication router.
Staff login (rate limited) and current user.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from pos_api.services.domain import AuthService
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context
from pos_shared.security.rate_limit import LOGIN_RATE_LIMIT, limiter
from pos_shared.utils.schemas import LoginRequest, LoginResponse, UserInfo


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit(LOGIN_RATE_LIMIT)
def login(
    request: Request,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate with email and password.

    Returns a Bearer token carrying sub, tenant_id, role and email.
    """
    return AuthService(db).login(body.email, body.password)


@router.get("/me", response_model=UserInfo)
def me(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> UserInfo:
    return AuthService(db).me(ctx)
