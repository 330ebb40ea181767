"""
core/permissions.py — Role Guards
==================================
The security gate. Called by EVERY mutating operation before any state is
touched. If a guard raises, nothing has been written.

Roles:
    AUTHORITY      — holds a GovtAuthority record; verifies users and land,
                     countersigns sales
    VERIFIED USER  — holds a User record an authority has verified; registers,
                     lists and buys land
    OWNER          — the verified user currently recorded as a land's owner

Guards take the records already loaded by the caller (or None) and never
query the database themselves.
"""

import logging

from core.errors import NotAuthority, NotOwner, NotVerifiedUser
from config import settings

logger = logging.getLogger("landledger.permissions")


def require_verified_user(user, caller: str, action: str):
    """Raise NotVerifiedUser unless `user` exists and is verified."""
    if user is None or not user.is_verified:
        logger.warning(f"DENIED {action}: {caller} is not a verified user")
        raise NotVerifiedUser(
            f"Caller '{caller}' must be a registered, verified user to {action}.",
            {"caller": caller, "registered": user is not None},
        )


def require_authority(authority, caller: str, action: str):
    """Raise NotAuthority unless the caller holds a GovtAuthority record."""
    if authority is None:
        logger.warning(f"DENIED {action}: {caller} holds no authority record")
        raise NotAuthority(
            f"Caller '{caller}' must be a government authority to {action}.",
            {"caller": caller},
        )


def require_owner(land, caller: str, action: str):
    """Raise NotOwner unless the caller is the land's current owner."""
    if land.owner_key != caller:
        logger.warning(f"DENIED {action}: {caller} does not own land #{land.id}")
        raise NotOwner(
            f"Only the owner of land #{land.id} may {action}.",
            {"caller": caller, "land_id": land.id},
        )


def may_register_authority(caller: str) -> bool:
    """
    An empty AUTHORITY_ALLOWLIST means self-registration is open to anyone.
    Otherwise only listed identity keys may become authorities.
    """
    allowlist = settings.AUTHORITY_ALLOWLIST
    return not allowlist or caller in allowlist


def require_authority_registration_allowed(caller: str):
    if not may_register_authority(caller):
        logger.warning(f"DENIED authority registration: {caller} is not allowlisted")
        raise NotAuthority(
            f"Caller '{caller}' is not on the authority allowlist.",
            {"caller": caller},
        )


def can_view_private_profile(caller: str, user_key: str, caller_is_authority: bool) -> bool:
    """National ID, tax ID and contact details are shown to the user themself and to authorities."""
    return caller == user_key or caller_is_authority
