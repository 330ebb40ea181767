"""
modules/sale.py — Sale Workflow Module
=======================================
Two keys move title: the owner attests the sale with a proof URI (the
off-chain deed), then an authority countersigns. Neither alone can transfer.

    request_to_buy_land       verified buyer       LISTED → BUYER_REQUESTED
    approve_sale_by_owner     owner + proof URI    BUYER_REQUESTED → OWNER_APPROVED
    approve_sale_by_authority authority            OWNER_APPROVED → UNLISTED (new owner)
    cancel_sale               owner or buyer       BUYER_REQUESTED / OWNER_APPROVED → LISTED

A land has at most one pending buyer. A new request replaces the previous
one (last request wins); the replaced row is kept as SUPERSEDED.
"""

import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select

from core.errors import NoPendingBuyer, NotForSale, NotOwner, SaleNotOwnerApproved, SelfPurchase
from core.permissions import require_authority, require_owner, require_verified_user
from core.workflow import RequestStatus, derive_sale_state
from db.models import GovtAuthority, SaleRequest, User
from db.session import write_lock
from modules.land import get_active_request, load_land
from modules.ledger import land_subject, ledger_transaction, record_event

logger = logging.getLogger("landledger.modules.sale")


async def request_to_buy_land(db: AsyncSession, caller: str, land_id: int) -> dict:
    """Record the caller as the land's pending buyer."""
    async with write_lock, ledger_transaction():
        require_verified_user(await db.get(User, caller), caller, "request to buy land")
        land = await load_land(db, land_id)
        if not land.is_for_sale:
            raise NotForSale(f"Land #{land_id} is not listed for sale.", {"land_id": land_id})
        if land.owner_key == caller:
            logger.warning(f"DENIED purchase request: {caller} already owns land #{land_id}")
            raise SelfPurchase(f"Caller already owns land #{land_id}.", {"land_id": land_id})

        now = datetime.now(timezone.utc)
        previous = await get_active_request(db, land_id)
        if previous is not None:
            previous.status = RequestStatus.SUPERSEDED.value
            previous.closed_at = now
            logger.info(f"Land #{land_id}: request by {previous.buyer_key} superseded by {caller}")

        request = SaleRequest(
            land_id=land_id,
            seq=await _request_count(db, land_id) + 1,
            buyer_key=caller,
            seller_key=land.owner_key,
            price=land.listed_price,
            status=RequestStatus.REQUESTED.value,
            requested_at=now,
        )
        db.add(request)

        await record_event(db, caller, "SALE_REQUESTED", "sale", land_subject(land_id), {
            "event": "SALE_REQUESTED",
            "land_id": land_id,
            "buyer": caller,
            "seller": land.owner_key,
            "price": land.listed_price,
            "superseded_buyer": previous.buyer_key if previous else None,
            "timestamp": now.isoformat(),
        })
        await db.commit()

    logger.info(f"Land #{land_id}: purchase requested by {caller}")
    return {"land_id": land_id, "buyer": caller, "state": derive_sale_state(True, request.status).value}


async def approve_sale_by_owner(db: AsyncSession, caller: str, land_id: int, proof_uri: str) -> dict:
    """Owner attests the pending sale. Ownership does not move yet."""
    async with write_lock, ledger_transaction():
        land = await load_land(db, land_id)
        require_owner(land, caller, "approve its sale")
        request = await get_active_request(db, land_id)
        if request is None:
            raise NoPendingBuyer(f"Land #{land_id} has no pending buyer.", {"land_id": land_id})

        now = datetime.now(timezone.utc)
        request.status = RequestStatus.OWNER_APPROVED.value
        request.proof_uri = proof_uri
        request.owner_approved_at = now
        land.transaction_proof_uri = proof_uri

        block = await record_event(db, caller, "SALE_OWNER_APPROVED", "sale", land_subject(land_id), {
            "event": "SALE_OWNER_APPROVED",
            "land_id": land_id,
            "buyer": request.buyer_key,
            "proof_uri": proof_uri,
            "timestamp": now.isoformat(),
        }, details=f"Owner approved sale to {request.buyer_key}")
        land.block_hash = block["hash"]
        await db.commit()

    logger.info(f"Land #{land_id}: owner approved sale to {request.buyer_key}")
    return {
        "land_id": land_id,
        "buyer": request.buyer_key,
        "transaction_proof_uri": proof_uri,
        "state": derive_sale_state(True, request.status).value,
    }


async def approve_sale_by_authority(db: AsyncSession, caller: str, land_id: int) -> dict:
    """
    Authority countersigns an owner-approved sale and title moves, in one
    transaction: owner ← buyer, for-sale ← false, listed price cleared,
    request closed as COMPLETED. The transaction proof stays on the land.
    """
    async with write_lock, ledger_transaction():
        require_authority(await db.get(GovtAuthority, caller), caller, "approve sales")
        land = await load_land(db, land_id)
        request = await get_active_request(db, land_id)
        if request is None or request.status != RequestStatus.OWNER_APPROVED.value:
            logger.warning(f"DENIED authority approval: land #{land_id} has no owner-approved sale")
            raise SaleNotOwnerApproved(
                f"The sale of land #{land_id} has not been approved by its owner.",
                {"land_id": land_id, "pending_buyer": request.buyer_key if request else None},
            )

        now = datetime.now(timezone.utc)
        previous_owner = land.owner_key
        land.owner_key = request.buyer_key
        land.is_for_sale = False
        land.listed_price = None
        request.status = RequestStatus.COMPLETED.value
        request.closed_by = caller
        request.closed_at = now

        block = await record_event(db, caller, "OWNERSHIP_TRANSFERRED", "sale", land_subject(land_id), {
            "event": "OWNERSHIP_TRANSFERRED",
            "land_id": land_id,
            "from": previous_owner,
            "to": request.buyer_key,
            "price": request.price,
            "proof_uri": request.proof_uri,
            "approved_by": caller,
            "timestamp": now.isoformat(),
        }, details=f"Transferred from {previous_owner} to {request.buyer_key}")
        land.block_hash = block["hash"]
        await db.commit()

    logger.info(f"Land #{land_id}: ownership transferred {previous_owner} → {land.owner_key} (approved by {caller})")
    return {
        "land_id": land_id,
        "previous_owner": previous_owner,
        "owner": land.owner_key,
        "transaction_proof_uri": land.transaction_proof_uri,
        "block_hash": block["hash"],
        "state": derive_sale_state(land.is_for_sale).value,
    }


async def cancel_sale(db: AsyncSession, caller: str, land_id: int) -> dict:
    """Owner or pending buyer withdraws the pending request. The land stays listed."""
    async with write_lock, ledger_transaction():
        land = await load_land(db, land_id)
        request = await get_active_request(db, land_id)
        if caller != land.owner_key and (request is None or caller != request.buyer_key):
            logger.warning(f"DENIED cancel: {caller} is neither owner nor pending buyer of land #{land_id}")
            raise NotOwner(
                f"Only the owner or the pending buyer of land #{land_id} may cancel its sale.",
                {"caller": caller, "land_id": land_id},
            )
        if request is None:
            raise NoPendingBuyer(f"Land #{land_id} has no pending buyer.", {"land_id": land_id})

        request.status = RequestStatus.CANCELLED.value
        request.closed_by = caller
        request.closed_at = datetime.now(timezone.utc)

        await record_event(db, caller, "SALE_CANCELLED", "sale", land_subject(land_id), {
            "event": "SALE_CANCELLED",
            "land_id": land_id,
            "buyer": request.buyer_key,
            "cancelled_by": caller,
            "timestamp": request.closed_at.isoformat(),
        })
        await db.commit()

    logger.info(f"Land #{land_id}: sale to {request.buyer_key} cancelled by {caller}")
    return {"land_id": land_id, "cancelled_buyer": request.buyer_key, "state": derive_sale_state(land.is_for_sale).value}


async def get_sale_status(db: AsyncSession, land_id: int) -> dict:
    land = await load_land(db, land_id)
    request = await get_active_request(db, land_id)
    return {
        "land_id": land_id,
        "state": derive_sale_state(land.is_for_sale, request.status if request else None).value,
        "owner": land.owner_key,
        "listed_price": land.listed_price,
        "pending_buyer": request.buyer_key if request else None,
        "transaction_proof_uri": land.transaction_proof_uri,
    }


async def get_sale_history(db: AsyncSession, land_id: int) -> list:
    await load_land(db, land_id)
    result = await db.execute(
        select(SaleRequest).where(SaleRequest.land_id == land_id).order_by(SaleRequest.seq)
    )
    return [
        {
            "seq": r.seq,
            "buyer": r.buyer_key,
            "seller": r.seller_key,
            "price": r.price,
            "status": r.status,
            "proof_uri": r.proof_uri,
            "closed_by": r.closed_by,
            "requested_at": r.requested_at.isoformat(),
            "owner_approved_at": r.owner_approved_at.isoformat() if r.owner_approved_at else None,
            "closed_at": r.closed_at.isoformat() if r.closed_at else None,
        }
        for r in result.scalars().all()
    ]


async def _request_count(db: AsyncSession, land_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(SaleRequest).where(SaleRequest.land_id == land_id)
    )
    return result.scalar_one()
