"""
api/routes_land.py — Land Registry API Endpoints

Endpoints:
    POST /land                      → Register a parcel (verified users)
    GET  /land                      → List parcels (?owner=, ?for_sale=)
    GET  /land/{land_id}            → One parcel
    PUT  /land/{land_id}/token-uri  → Set metadata URI (owner)
    POST /land/{land_id}/verify     → Verify a parcel (authorities)
    POST /land/{land_id}/list       → List for sale / update price (owner)
    POST /land/{land_id}/unlist     → Withdraw listing (owner)
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from api.deps import get_caller
from db.session import get_db
from modules.land import (
    get_land,
    list_land_for_sale,
    list_lands,
    register_land,
    set_token_uri,
    unlist_land,
    verify_land,
)

router = APIRouter()


class RegisterLandRequest(BaseModel):
    property_id: str = Field(..., min_length=1, max_length=255)  # e.g. "PROP123"
    area: float = Field(..., gt=0)
    address: str = Field(..., min_length=1)
    price: int = Field(..., ge=0)                  # declared price


class TokenURIRequest(BaseModel):
    uri: str = Field(..., min_length=1)


class ListLandRequest(BaseModel):
    price: int = Field(..., ge=0)


@router.post("", status_code=201)
async def register_land_endpoint(
    body: RegisterLandRequest,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await register_land(
        db=db,
        caller=caller,
        property_id=body.property_id,
        area=body.area,
        address=body.address,
        price=body.price,
    )


@router.get("")
async def list_lands_endpoint(
    owner: Optional[str] = None,
    for_sale: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
):
    return await list_lands(db, owner=owner, for_sale=for_sale)


@router.get("/{land_id}")
async def get_land_endpoint(land_id: int, db: AsyncSession = Depends(get_db)):
    return await get_land(db, land_id)


@router.put("/{land_id}/token-uri")
async def set_token_uri_endpoint(
    land_id: int,
    body: TokenURIRequest,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await set_token_uri(db, caller, land_id, body.uri)


@router.post("/{land_id}/verify")
async def verify_land_endpoint(
    land_id: int,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await verify_land(db, caller, land_id)


@router.post("/{land_id}/list")
async def list_land_endpoint(
    land_id: int,
    body: ListLandRequest,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await list_land_for_sale(db, caller, land_id, body.price)


@router.post("/{land_id}/unlist")
async def unlist_land_endpoint(
    land_id: int,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await unlist_land(db, caller, land_id)
