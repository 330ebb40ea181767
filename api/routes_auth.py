"""
api/routes_auth.py — Development Token Endpoint

Endpoints:
    POST /auth/token  → Issue a bearer token for an identity key

In production the identity provider issues tokens signed with the same
JWT_SECRET_KEY; this router is not mounted when ENVIRONMENT=production.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from config import settings
from core.crypto import crypto_engine

router = APIRouter()


class TokenRequest(BaseModel):
    identity_key: str = Field(..., min_length=1, max_length=255)  # e.g. a wallet address


@router.post("/token")
async def issue_token(body: TokenRequest):
    return {
        "access_token": crypto_engine.create_access_token(body.identity_key),
        "token_type": "bearer",
        "expires_in_minutes": settings.JWT_EXPIRY_MINUTES,
    }
