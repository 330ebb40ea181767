"""
modules/land.py — Land Registry Module
=======================================
Registration of parcels by verified users, verification by an authority,
metadata URIs and sale listings. Land ids come from a counter that only
moves when a registration actually commits.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from core.errors import LandNotFound, LandNotVerified, NotForSale
from core.permissions import require_authority, require_owner, require_verified_user
from core.workflow import ACTIVE_STATUSES, RequestStatus
from db.models import GovtAuthority, Land, RegistryCounter, SaleRequest, User
from db.session import write_lock
from modules.ledger import land_subject, ledger_transaction, record_event

logger = logging.getLogger("landledger.modules.land")

LAND_ID_COUNTER = "land_id"


async def register_land(
    db: AsyncSession,
    caller: str,
    property_id: str,
    area: float,
    address: str,
    price: int,
) -> dict:
    """Register a parcel owned by the caller. Returns the new land id."""
    async with write_lock, ledger_transaction():
        require_verified_user(await db.get(User, caller), caller, "register land")

        land_id = await _next_id(db, LAND_ID_COUNTER)
        land = Land(
            id=land_id,
            property_id=property_id,
            area=area,
            address=address,
            price=price,
            owner_key=caller,
            is_verified=False,
            is_for_sale=False,
        )
        db.add(land)

        block = await record_event(db, caller, "LAND_REGISTERED", "land", land_subject(land_id), {
            "event": "LAND_REGISTERED",
            "land_id": land_id,
            "property_id": property_id,
            "area": area,
            "price": price,
            "owner": caller,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }, details=f"Registered {property_id} as land #{land_id}")
        land.block_hash = block["hash"]
        await db.commit()

    logger.info(f"Land #{land_id} ({property_id}) registered by {caller}")
    return {"land_id": land_id, "property_id": property_id, "block_hash": block["hash"], "status": "registered"}


async def set_token_uri(db: AsyncSession, caller: str, land_id: int, uri: str) -> dict:
    async with write_lock, ledger_transaction():
        land = await load_land(db, land_id)
        require_owner(land, caller, "set its token URI")

        land.token_uri = uri
        block = await record_event(db, caller, "LAND_URI_SET", "land", land_subject(land_id), {
            "event": "LAND_URI_SET",
            "land_id": land_id,
            "token_uri": uri,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        land.block_hash = block["hash"]
        await db.commit()

    return {"land_id": land_id, "token_uri": uri, "block_hash": block["hash"]}


async def verify_land(db: AsyncSession, caller: str, land_id: int) -> dict:
    """Authority marks a parcel verified. Re-verifying is a no-op success."""
    async with write_lock, ledger_transaction():
        require_authority(await db.get(GovtAuthority, caller), caller, "verify land")
        land = await load_land(db, land_id)

        if land.is_verified:
            logger.debug(f"Land #{land_id} already verified — nothing to do")
            return {"land_id": land_id, "is_verified": True, "block_hash": land.block_hash, "status": "already_verified"}

        land.is_verified = True
        land.verified_by = caller
        block = await record_event(db, caller, "LAND_VERIFIED", "land", land_subject(land_id), {
            "event": "LAND_VERIFIED",
            "land_id": land_id,
            "verified_by": caller,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }, details=f"Verified by {caller}")
        land.block_hash = block["hash"]
        await db.commit()

    logger.info(f"Land #{land_id} verified by {caller}")
    return {"land_id": land_id, "is_verified": True, "block_hash": block["hash"], "status": "verified"}


async def list_land_for_sale(db: AsyncSession, caller: str, land_id: int, price: int) -> dict:
    """List a verified parcel, or update the asking price of one already listed."""
    async with write_lock, ledger_transaction():
        land = await load_land(db, land_id)
        require_owner(land, caller, "list it for sale")
        if not land.is_verified:
            logger.warning(f"DENIED listing: land #{land_id} is not verified")
            raise LandNotVerified(f"Land #{land_id} must be verified before it can be listed.", {"land_id": land_id})

        relisted = land.is_for_sale
        land.is_for_sale = True
        land.listed_price = price
        block = await record_event(db, caller, "LAND_LISTED", "land", land_subject(land_id), {
            "event": "LAND_LISTED",
            "land_id": land_id,
            "price": price,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }, details=f"{'Price updated' if relisted else 'Listed'} at {price}")
        land.block_hash = block["hash"]
        await db.commit()

    logger.info(f"Land #{land_id} listed for sale at {price}")
    return {"land_id": land_id, "is_for_sale": True, "listed_price": price, "block_hash": block["hash"]}


async def unlist_land(db: AsyncSession, caller: str, land_id: int) -> dict:
    """Withdraw a listing. A pending buyer request, if any, is cancelled with it."""
    async with write_lock, ledger_transaction():
        land = await load_land(db, land_id)
        require_owner(land, caller, "unlist it")
        if not land.is_for_sale:
            raise NotForSale(f"Land #{land_id} is not listed for sale.", {"land_id": land_id})

        active = await get_active_request(db, land_id)
        if active is not None:
            active.status = RequestStatus.CANCELLED.value
            active.closed_by = caller
            active.closed_at = datetime.now(timezone.utc)

        land.is_for_sale = False
        land.listed_price = None
        block = await record_event(db, caller, "LAND_UNLISTED", "land", land_subject(land_id), {
            "event": "LAND_UNLISTED",
            "land_id": land_id,
            "cancelled_buyer": active.buyer_key if active else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        land.block_hash = block["hash"]
        await db.commit()

    logger.info(f"Land #{land_id} unlisted by {caller}")
    return {"land_id": land_id, "is_for_sale": False, "block_hash": block["hash"]}


async def get_land(db: AsyncSession, land_id: int) -> dict:
    land = await load_land(db, land_id)
    return land_view(land)


async def list_lands(
    db: AsyncSession,
    owner: Optional[str] = None,
    for_sale: Optional[bool] = None,
) -> list:
    query = select(Land)
    if owner is not None:
        query = query.where(Land.owner_key == owner)
    if for_sale is not None:
        query = query.where(Land.is_for_sale == for_sale)
    result = await db.execute(query.order_by(Land.id))
    return [land_view(land) for land in result.scalars().all()]


def land_view(land: Land) -> dict:
    return {
        "land_id": land.id,
        "property_id": land.property_id,
        "area": land.area,
        "address": land.address,
        "price": land.price,
        "owner": land.owner_key,
        "is_verified": land.is_verified,
        "verified_by": land.verified_by,
        "is_for_sale": land.is_for_sale,
        "listed_price": land.listed_price,
        "token_uri": land.token_uri,
        "transaction_proof_uri": land.transaction_proof_uri,
        "block_hash": land.block_hash,
        "created_at": land.created_at.isoformat(),
    }


# ── Shared with modules/sale.py ───────────────────────────────────────────────
async def load_land(db: AsyncSession, land_id: int) -> Land:
    land = await db.get(Land, land_id)
    if land is None:
        raise LandNotFound(f"Land #{land_id} does not exist.", {"land_id": land_id})
    return land


async def get_active_request(db: AsyncSession, land_id: int) -> Optional[SaleRequest]:
    result = await db.execute(
        select(SaleRequest).where(
            SaleRequest.land_id == land_id,
            SaleRequest.status.in_(ACTIVE_STATUSES),
        )
    )
    return result.scalars().first()


async def _next_id(db: AsyncSession, name: str) -> int:
    """
    Advance a named counter inside the caller's transaction.
    Must be called under write_lock; a rolled-back transaction takes the
    increment with it.
    """
    counter = await db.get(RegistryCounter, name)
    if counter is None:
        counter = RegistryCounter(name=name, value=0)
        db.add(counter)
    counter.value += 1
    await db.flush()
    return counter.value
