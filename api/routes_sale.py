"""
api/routes_sale.py — Sale Workflow API Endpoints

Endpoints:
    POST /sale/{land_id}/request            → Verified user asks to buy
    POST /sale/{land_id}/approve-owner      → Owner attests with a proof URI
    POST /sale/{land_id}/approve-authority  → Authority countersigns, title moves
    POST /sale/{land_id}/cancel             → Owner or pending buyer withdraws
    GET  /sale/{land_id}                    → Current sale state
    GET  /sale/{land_id}/history            → All requests for the parcel
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_caller
from db.session import get_db
from modules.sale import (
    approve_sale_by_authority,
    approve_sale_by_owner,
    cancel_sale,
    get_sale_history,
    get_sale_status,
    request_to_buy_land,
)

router = APIRouter()


class OwnerApprovalRequest(BaseModel):
    proof_uri: str = Field(..., min_length=1)      # off-chain deed / transfer evidence


@router.post("/{land_id}/request")
async def request_to_buy(
    land_id: int,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await request_to_buy_land(db, caller, land_id)


@router.post("/{land_id}/approve-owner")
async def approve_by_owner(
    land_id: int,
    body: OwnerApprovalRequest,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await approve_sale_by_owner(db, caller, land_id, body.proof_uri)


@router.post("/{land_id}/approve-authority")
async def approve_by_authority(
    land_id: int,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await approve_sale_by_authority(db, caller, land_id)


@router.post("/{land_id}/cancel")
async def cancel(
    land_id: int,
    caller: str = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await cancel_sale(db, caller, land_id)


@router.get("/{land_id}")
async def sale_status(land_id: int, db: AsyncSession = Depends(get_db)):
    return await get_sale_status(db, land_id)


@router.get("/{land_id}/history")
async def sale_history(land_id: int, db: AsyncSession = Depends(get_db)):
    return await get_sale_history(db, land_id)
