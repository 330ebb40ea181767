"""
core/identity.py — Identity Record Helpers
===========================================
Shapes what is written to the ledger and what is returned to callers for
User and GovtAuthority records.
Called by modules/identity.py
"""

from datetime import datetime, timezone

from core.crypto import crypto_engine


def build_user_block_data(user_key: str, name: str, national_id: str, tax_id: str) -> dict:
    """
    Data written to the ledger for a new user.
    Identity documents go in as a digest only — the chain is readable by anyone.
    """
    return {
        "event": "USER_REGISTERED",
        "user_key": user_key,
        "name": name,
        "documents_digest": crypto_engine.digest({"national_id": national_id, "tax_id": tax_id}),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def build_verification_block_data(user_key: str, authority_key: str) -> dict:
    return {
        "event": "USER_VERIFIED",
        "user_key": user_key,
        "verified_by": authority_key,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def user_view(user, include_private: bool = False) -> dict:
    """Public-safe view of a User; private fields only when include_private."""
    view = {
        "user_key": user.key,
        "name": user.name,
        "is_verified": user.is_verified,
        "verified_by": user.verified_by,
        "verified_at": user.verified_at.isoformat() if user.verified_at else None,
        "block_hash": user.block_hash,
        "created_at": user.created_at.isoformat(),
    }
    if include_private:
        view.update({
            "national_id": crypto_engine.decrypt(user.national_id_encrypted),
            "tax_id": crypto_engine.decrypt(user.tax_id_encrypted),
            "phone": user.phone,
            "email": user.email,
        })
    return view


def authority_view(authority) -> dict:
    return {
        "authority_key": authority.key,
        "code": authority.code,
        "name": authority.name,
        "designation": authority.designation,
        "block_hash": authority.block_hash,
        "created_at": authority.created_at.isoformat(),
    }
