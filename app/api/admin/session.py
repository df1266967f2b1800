"""
Admin Session API Endpoints.
"""

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.core.dependencies import CurrentAdmin, DbSession
from app.middleware.security import limiter
from app.services.auth_service import AuthError, TokenRole, authenticate_admin, create_access_token

router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()


# ============== Request/Response Models ==============


class AdminLogin(BaseModel):
    account: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class AdminProfile(BaseModel):
    id: int
    account: str
    name: str
    route_id: int | None
    waypoint: int | None

    model_config = {"from_attributes": True}


class AdminToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    admin: AdminProfile


# ============== Endpoints ==============


@router.post("/login", response_model=AdminToken)
@limiter.limit(settings.admin_login_rate_limit)
async def login(request: Request, data: AdminLogin, session: DbSession):
    """Exchange route admin credentials for a bearer token."""
    try:
        admin = await authenticate_admin(session, data.account, data.password)
    except AuthError as e:
        logger.warning(f"Failed admin login for account {data.account}")
        raise HTTPException(status_code=e.status_code, detail=e.message)

    token = create_access_token(str(admin.id), TokenRole.ADMIN)
    logger.info(f"Admin {admin.account} logged in")
    return AdminToken(access_token=token, admin=AdminProfile.model_validate(admin))


@router.get("/me", response_model=AdminProfile)
async def me(admin: CurrentAdmin):
    """Profile of the calling admin."""
    return AdminProfile.model_validate(admin)
