"""
api/routes_ledger.py — Ledger & Audit API Endpoints

Endpoints:
    GET /ledger/blocks          → Most recent ledger blocks
    GET /ledger/blocks/{hash}   → One block by hash
    GET /ledger/verify          → Recompute and check the hash chain
    GET /ledger/audit           → Audit trail (?actor=, ?subject=, ?limit=)
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from config import settings
from core.blockchain import blockchain
from db.session import get_db
from modules.ledger import get_audit_trail

router = APIRouter()


@router.get("/blocks")
async def list_blocks(limit: int = Query(100, ge=1)):
    return await blockchain.get_all_blocks(limit=min(limit, settings.LEDGER_MAX_BLOCKS_RETURNED))


@router.get("/blocks/{block_hash}")
async def get_block(block_hash: str):
    block = await blockchain.get_block(block_hash)
    if block is None:
        raise HTTPException(status_code=404, detail="Block not found.")
    return block


@router.get("/verify")
async def verify_chain():
    return await blockchain.verify_chain()


@router.get("/audit")
async def audit_trail(
    actor: Optional[str] = None,
    subject: Optional[str] = None,
    limit: int = Query(50, ge=1, le=settings.LEDGER_MAX_BLOCKS_RETURNED),
    db: AsyncSession = Depends(get_db),
):
    return await get_audit_trail(db, actor_key=actor, subject=subject, limit=limit)
