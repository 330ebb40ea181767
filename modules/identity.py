"""
modules/identity.py — Identity Registry Module
===============================================
Self-registration of users and government authorities, and verification of
users by an authority. A user must be verified before the land registry or
the sale workflow accepts anything from them.
"""

import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession

from core.crypto import crypto_engine
from core.errors import AlreadyRegistered, AuthorityNotFound, UserNotFound
from core.identity import (
    authority_view,
    build_user_block_data,
    build_verification_block_data,
    user_view,
)
from core.permissions import (
    can_view_private_profile,
    require_authority,
    require_authority_registration_allowed,
)
from db.models import GovtAuthority, User
from db.session import write_lock
from modules.ledger import authority_subject, ledger_transaction, record_event, user_subject

logger = logging.getLogger("landledger.modules.identity")


async def register_user(
    db: AsyncSession,
    caller: str,
    name: str,
    national_id: str,
    tax_id: str,
    phone: str,
    email: str,
) -> dict:
    """Create the caller's User record, unverified."""
    async with write_lock, ledger_transaction():
        if await db.get(User, caller) is not None:
            raise AlreadyRegistered(f"User '{caller}' is already registered.", {"user_key": caller})

        user = User(
            key=caller,
            name=name,
            national_id_encrypted=crypto_engine.encrypt(national_id),
            tax_id_encrypted=crypto_engine.encrypt(tax_id),
            phone=phone,
            email=email,
            is_verified=False,
        )
        db.add(user)

        block = await record_event(
            db, caller, "USER_REGISTERED", "identity", user_subject(caller),
            build_user_block_data(caller, name, national_id, tax_id),
            details=f"User {name} registered",
        )
        user.block_hash = block["hash"]
        await db.commit()

    logger.info(f"User registered: {caller}")
    return {"user_key": caller, "is_verified": False, "block_hash": block["hash"], "status": "registered"}


async def register_govt_authority(
    db: AsyncSession,
    caller: str,
    code: str,
    name: str,
    designation: str,
) -> dict:
    """Create the caller's GovtAuthority record."""
    async with write_lock, ledger_transaction():
        require_authority_registration_allowed(caller)
        if await db.get(GovtAuthority, caller) is not None:
            raise AlreadyRegistered(f"Authority '{caller}' is already registered.", {"authority_key": caller})

        authority = GovtAuthority(key=caller, code=code, name=name, designation=designation)
        db.add(authority)

        block = await record_event(
            db, caller, "AUTHORITY_REGISTERED", "identity", authority_subject(caller),
            {
                "event": "AUTHORITY_REGISTERED",
                "authority_key": caller,
                "code": code,
                "name": name,
                "designation": designation,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            details=f"Authority {code} registered",
        )
        authority.block_hash = block["hash"]
        await db.commit()

    logger.info(f"Govt authority registered: {caller} ({code})")
    return {"authority_key": caller, "code": code, "block_hash": block["hash"], "status": "registered"}


async def verify_user(db: AsyncSession, caller: str, user_key: str) -> dict:
    """Mark a user verified. Re-verifying is a no-op success."""
    async with write_lock, ledger_transaction():
        require_authority(await db.get(GovtAuthority, caller), caller, "verify users")
        user = await db.get(User, user_key)
        if user is None:
            raise UserNotFound(f"User '{user_key}' is not registered.", {"user_key": user_key})

        if user.is_verified:
            logger.debug(f"User {user_key} already verified — nothing to do")
            return {"user_key": user_key, "is_verified": True, "block_hash": user.block_hash, "status": "already_verified"}

        user.is_verified = True
        user.verified_by = caller
        user.verified_at = datetime.now(timezone.utc)

        block = await record_event(
            db, caller, "USER_VERIFIED", "identity", user_subject(user_key),
            build_verification_block_data(user_key, caller),
            details=f"Verified by {caller}",
        )
        user.block_hash = block["hash"]
        await db.commit()

    logger.info(f"User {user_key} verified by {caller}")
    return {"user_key": user_key, "is_verified": True, "block_hash": block["hash"], "status": "verified"}


async def get_user(db: AsyncSession, caller: str, user_key: str) -> dict:
    user = await db.get(User, user_key)
    if user is None:
        raise UserNotFound(f"User '{user_key}' is not registered.", {"user_key": user_key})
    caller_is_authority = await db.get(GovtAuthority, caller) is not None
    return user_view(user, include_private=can_view_private_profile(caller, user_key, caller_is_authority))


async def get_authority(db: AsyncSession, authority_key: str) -> dict:
    authority = await db.get(GovtAuthority, authority_key)
    if authority is None:
        raise AuthorityNotFound(
            f"Authority '{authority_key}' is not registered.", {"authority_key": authority_key}
        )
    return authority_view(authority)


async def who_am_i(db: AsyncSession, caller: str) -> dict:
    """The caller's key and whichever records it holds."""
    user = await db.get(User, caller)
    authority = await db.get(GovtAuthority, caller)
    return {
        "identity_key": caller,
        "user": user_view(user, include_private=True) if user else None,
        "authority": authority_view(authority) if authority else None,
    }
