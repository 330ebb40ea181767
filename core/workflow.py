"""
core/workflow.py — Sale Workflow States
========================================
The sale of a parcel moves through:

    UNLISTED → LISTED → BUYER_REQUESTED → OWNER_APPROVED → (transfer) → UNLISTED

The land row only knows whether it is listed. Everything past LISTED is
carried by the land's single *active* SaleRequest, so the state shown to
callers is derived from both.
"""

from enum import Enum
from typing import Optional


class SaleState(str, Enum):
    UNLISTED = "UNLISTED"
    LISTED = "LISTED"
    BUYER_REQUESTED = "BUYER_REQUESTED"
    OWNER_APPROVED = "OWNER_APPROVED"


class RequestStatus(str, Enum):
    REQUESTED = "REQUESTED"              # buyer asked, owner has not attested yet
    OWNER_APPROVED = "OWNER_APPROVED"    # owner attested with a proof URI
    COMPLETED = "COMPLETED"              # authority countersigned, title moved
    CANCELLED = "CANCELLED"              # withdrawn by owner or buyer, or land unlisted
    SUPERSEDED = "SUPERSEDED"            # a later buyer request replaced it


# At most one request per land may be in one of these at a time.
ACTIVE_STATUSES = (RequestStatus.REQUESTED.value, RequestStatus.OWNER_APPROVED.value)


def derive_sale_state(is_for_sale: bool, active_status: Optional[str] = None) -> SaleState:
    """Fold the land's listing flag and its active request into one state."""
    if not is_for_sale:
        return SaleState.UNLISTED
    if active_status == RequestStatus.OWNER_APPROVED.value:
        return SaleState.OWNER_APPROVED
    if active_status == RequestStatus.REQUESTED.value:
        return SaleState.BUYER_REQUESTED
    return SaleState.LISTED
