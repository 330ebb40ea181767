"""
core/errors.py — Registry Error Taxonomy
=========================================
Every rejected operation raises one of these. All of them are precondition
violations: they are raised before any state is touched, so the store is
left exactly as it was.

Each error carries a machine-readable code and the HTTP status the API
layer answers with (see the exception handler in main.py).
"""

from typing import Optional


class RegistryError(Exception):
    """Base class for all rejected registry operations."""

    code = "REGISTRY_ERROR"
    http_status = 400

    def __init__(self, message: str, details: Optional[dict] = None):
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": str(self), "details": self.details}


# ── Identity ──────────────────────────────────────────────────────────────────
class AlreadyRegistered(RegistryError):
    code = "ALREADY_REGISTERED"
    http_status = 409


class NotVerifiedUser(RegistryError):
    code = "NOT_VERIFIED_USER"
    http_status = 403


class NotAuthority(RegistryError):
    code = "NOT_AUTHORITY"
    http_status = 403


class UserNotFound(RegistryError):
    code = "USER_NOT_FOUND"
    http_status = 404


class AuthorityNotFound(RegistryError):
    code = "AUTHORITY_NOT_FOUND"
    http_status = 404


# ── Land ──────────────────────────────────────────────────────────────────────
class NotOwner(RegistryError):
    code = "NOT_OWNER"
    http_status = 403


class LandNotFound(RegistryError):
    code = "LAND_NOT_FOUND"
    http_status = 404


class LandNotVerified(RegistryError):
    code = "LAND_NOT_VERIFIED"
    http_status = 409


# ── Sale workflow ─────────────────────────────────────────────────────────────
class NotForSale(RegistryError):
    code = "NOT_FOR_SALE"
    http_status = 409


class SelfPurchase(RegistryError):
    code = "SELF_PURCHASE"
    http_status = 409


class NoPendingBuyer(RegistryError):
    code = "NO_PENDING_BUYER"
    http_status = 409


class SaleNotOwnerApproved(RegistryError):
    code = "SALE_NOT_OWNER_APPROVED"
    http_status = 409
