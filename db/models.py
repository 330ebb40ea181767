"""
db/models.py — Database Table Definitions
==========================================
Each class = one table.
Identity documents (national ID, tax ID) are stored ENCRYPTED (handled by
core/crypto.py before saving). The ledger stores event hashes; the DB stores
the registry state itself.

Identity keys (the caller's address/principal) are the only link between
people and parcels: there are no foreign keys from Land to User on purpose,
so a key can own land before or after it holds any particular record.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, DateTime, Boolean, Text, Integer, Float, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from db.session import Base

from core.workflow import RequestStatus


def new_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


# ── 1. Users ──────────────────────────────────────────────────────────────────
class User(Base):
    __tablename__ = "users"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)              # caller identity key
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    national_id_encrypted: Mapped[str] = mapped_column(Text, nullable=False)
    tax_id_encrypted: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    verified_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)   # authority key
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    block_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


# ── 2. Government Authorities ─────────────────────────────────────────────────
class GovtAuthority(Base):
    __tablename__ = "govt_authorities"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    code: Mapped[str] = mapped_column(String(100), nullable=False)               # e.g. "GOVT123"
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    designation: Mapped[str] = mapped_column(String(255), nullable=True)
    block_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


# ── 3. Land Parcels ───────────────────────────────────────────────────────────
class Land(Base):
    __tablename__ = "lands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)  # from RegistryCounter
    property_id: Mapped[str] = mapped_column(String(255), nullable=False)
    area: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)                   # declared at registration
    owner_key: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    verified_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_for_sale: Mapped[bool] = mapped_column(Boolean, default=False)
    listed_price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)   # null when not listed
    token_uri: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transaction_proof_uri: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # last owner attestation
    block_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


# ── 4. Sale Requests ──────────────────────────────────────────────────────────
class SaleRequest(Base):
    """
    One row per buyer request. At most one row per land is active
    (REQUESTED or OWNER_APPROVED); that row's buyer is the pending buyer.
    """
    __tablename__ = "sale_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    land_id: Mapped[int] = mapped_column(ForeignKey("lands.id"), index=True, nullable=False)
    seq: Mapped[int] = mapped_column(Integer, nullable=False)                    # request order per land
    buyer_key: Mapped[str] = mapped_column(String(255), nullable=False)
    seller_key: Mapped[str] = mapped_column(String(255), nullable=False)         # owner at request time
    price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)          # listed price at request time
    status: Mapped[str] = mapped_column(String(30), default=RequestStatus.REQUESTED.value)
    proof_uri: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    closed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    owner_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


# ── 5. Counters ───────────────────────────────────────────────────────────────
class RegistryCounter(Base):
    __tablename__ = "registry_counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)              # e.g. "land_id"
    value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


# ── 6. Audit Log ──────────────────────────────────────────────────────────────
class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    actor_key: Mapped[str] = mapped_column(String(255), index=True)   # who acted
    action: Mapped[str] = mapped_column(String(100))                  # USER_REGISTERED | LAND_VERIFIED | ...
    module: Mapped[str] = mapped_column(String(50))                   # identity | land | sale
    subject: Mapped[str] = mapped_column(String(255))                 # user key or land id acted on
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    block_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
