"""
modules/ledger.py — Ledger & Audit Trail
=========================================
Every successful transition goes through record_event(): one ledger block,
one audit row. Writers wrap validate → mutate → commit in ledger_transaction()
so a transaction that fails to commit takes its blocks with it.

Audit subjects are namespaced by kind: "land:<id>", "user:<key>",
"authority:<key>".
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from core.blockchain import blockchain
from db.models import AuditLog

logger = logging.getLogger("landledger.modules.ledger")


def land_subject(land_id: int) -> str:
    return f"land:{land_id}"


def user_subject(user_key: str) -> str:
    return f"user:{user_key}"


def authority_subject(authority_key: str) -> str:
    return f"authority:{authority_key}"


@asynccontextmanager
async def ledger_transaction():
    """
    Mark the chain height on entry; if the block raises (a failed commit
    included), discard every block written since. Must be entered under
    write_lock.
    """
    mark = len(blockchain.blocks)
    try:
        yield
    except Exception:
        await blockchain.rollback_to(mark)
        raise


async def record_event(
    db: AsyncSession,
    actor_key: str,
    action: str,
    module: str,
    subject: str,
    block_data: dict,
    details: str = None,
) -> dict:
    """Append the event to the chain and the audit log. Returns the block."""
    block = await blockchain.write_block(action, block_data)
    db.add(AuditLog(
        actor_key=actor_key,
        action=action,
        module=module,
        subject=subject,
        details=details,
        block_hash=block["hash"],
    ))
    return block


async def get_audit_trail(
    db: AsyncSession,
    actor_key: Optional[str] = None,
    subject: Optional[str] = None,
    limit: int = 50,
) -> list:
    """Most recent audit entries first, optionally filtered by actor and/or subject."""
    query = select(AuditLog)
    if actor_key:
        query = query.where(AuditLog.actor_key == actor_key)
    if subject:
        query = query.where(AuditLog.subject == subject)
    result = await db.execute(query.order_by(AuditLog.timestamp.desc()).limit(limit))
    return [
        {
            "actor": log.actor_key,
            "action": log.action,
            "module": log.module,
            "subject": log.subject,
            "details": log.details,
            "block_hash": log.block_hash,
            "timestamp": log.timestamp.isoformat(),
        }
        for log in result.scalars().all()
    ]
