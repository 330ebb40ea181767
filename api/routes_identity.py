"""
api/routes_identity.py — Identity Registry API Endpoints
=========================================================
Self-registration of users and government authorities, and user verification.

Endpoints:
    POST /identity/users                   → Register the caller as a user
    POST /identity/authorities             → Register the caller as a govt authority
    POST /identity/users/{user_key}/verify → Authority verifies a user
    GET  /identity/users/{user_key}        → User profile (private fields for self/authorities)
    GET  /identity/authorities/{key}       → Authority record
    GET  /identity/me                      → The caller's own records
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_caller
from db.session import get_db
from modules.identity import (
    get_authority,
    get_user,
    register_govt_authority,
    register_user,
    verify_user,
    who_am_i,
)

router = APIRouter()


# ── Request schemas ───────────────────────────────────────────────────────────
class RegisterUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    national_id: str = Field(..., min_length=1, max_length=64)  # encrypted before it touches the DB
    tax_id: str = Field(..., min_length=1, max_length=64)       # e.g. PAN
    phone: str = Field("", max_length=50)
    email: str = Field("", max_length=255)


class RegisterAuthorityRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)  # e.g. "GOVT123"
    name: str = Field(..., min_length=1, max_length=255)
    designation: str = Field("", max_length=255)


# ── Endpoints ─────────────────────────────────────────────────────────────────
@router.post("/users", status_code=201)
async def register_user_endpoint(
    body: RegisterUserRequest,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await register_user(
        db=db,
        caller=caller,
        name=body.name,
        national_id=body.national_id,
        tax_id=body.tax_id,
        phone=body.phone,
        email=body.email,
    )


@router.post("/authorities", status_code=201)
async def register_authority_endpoint(
    body: RegisterAuthorityRequest,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await register_govt_authority(
        db=db,
        caller=caller,
        code=body.code,
        name=body.name,
        designation=body.designation,
    )


@router.post("/users/{user_key}/verify")
async def verify_user_endpoint(
    user_key: str,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await verify_user(db, caller, user_key)


@router.get("/me")
async def me(caller: str = Depends(get_caller), db: AsyncSession = Depends(get_db)):
    return await who_am_i(db, caller)


@router.get("/users/{user_key}")
async def get_user_endpoint(
    user_key: str,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await get_user(db, caller, user_key)


@router.get("/authorities/{authority_key}")
async def get_authority_endpoint(authority_key: str, db: AsyncSession = Depends(get_db)):
    return await get_authority(db, authority_key)
