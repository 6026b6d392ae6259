"""
Authentication router for the single administrator.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from routers.auth_scope import AdminContext, require_admin
from services.admin_auth import admin_user_payload, login_admin_service

router = APIRouter()


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AdminUser(BaseModel):
    email: str
    role: str


class LoginResponse(BaseModel):
    token: str
    expires_at: int
    user: AdminUser


class CurrentAdminResponse(BaseModel):
    user: AdminUser
    expires_at: Optional[int] = None


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest):
    """Exchange the admin email/password for a 7-day session token."""
    return login_admin_service(request.email, request.password)


@router.get("/me", response_model=CurrentAdminResponse)
async def get_current_admin(admin: AdminContext = Depends(require_admin)):
    """Echo the identity carried by a valid admin token."""
    return CurrentAdminResponse(
        user=AdminUser(**admin_user_payload(admin.email)),
        expires_at=admin.expires_at,
    )
