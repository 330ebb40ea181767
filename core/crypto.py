"""
core/crypto.py — Cryptography Engine
======================================
Central place for ALL encryption, hashing and token operations.
Every module imports from here — never roll your own crypto elsewhere.

Provides:
- AES encryption / decryption of identity documents  (via Fernet)
- SHA-3 hashing                                      (ledger blocks, record digests)
- JWT token creation / verification                  (caller identity)
"""

import hashlib
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from cryptography.fernet import Fernet
from jose import jwt
from config import settings

logger = logging.getLogger("landledger.crypto")


class CryptoEngine:
    """
    Singleton crypto engine — initialized once in main.py,
    then used across all modules via:  from core.crypto import crypto_engine
    """

    def __init__(self):
        self._fernet: Optional[Fernet] = None
        self._ready = False

    def initialize(self):
        """Called once on app startup (main.py lifespan)."""
        if not settings.ENCRYPTION_KEY:
            raise ValueError(
                "ENCRYPTION_KEY is not set in .env! "
                "Generate one with: python -c \"from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())\""
            )
        self._fernet = Fernet(settings.ENCRYPTION_KEY.encode())
        self._ready = True
        logger.info("Crypto engine initialized.")

    def is_ready(self) -> str:
        return "ok" if self._ready else "not initialized"

    # ── Encryption ─────────────────────────────────────────────────────────
    def encrypt(self, plaintext: str) -> str:
        """
        Encrypts a string using Fernet.
        Returns base64-encoded ciphertext safe to store in DB.
        National ID and tax ID never reach the DB unencrypted.
        """
        if not self._ready:
            raise RuntimeError("CryptoEngine not initialized. Call initialize() first.")
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """Decrypts a previously encrypted string."""
        if not self._ready:
            raise RuntimeError("CryptoEngine not initialized.")
        return self._fernet.decrypt(ciphertext.encode()).decode()

    # ── Hashing ────────────────────────────────────────────────────────────
    def hash_sha3(self, data: str) -> str:
        """SHA-3 (256) hex digest."""
        return hashlib.sha3_256(data.encode()).hexdigest()

    def digest(self, data: dict) -> str:
        """Stable digest of a JSON-serialisable dict (key order does not matter)."""
        return self.hash_sha3(json.dumps(data, sort_keys=True, default=str))

    # ── JWT Tokens ─────────────────────────────────────────────────────────
    def create_access_token(self, subject: str) -> str:
        """
        Create a signed JWT token.
        subject = the caller's identity key; it is what every registry
        operation sees as "the caller".
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "exp": now + timedelta(minutes=settings.JWT_EXPIRY_MINUTES),
            "iat": now,
        }
        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    def verify_token(self, token: str) -> dict:
        """Verify and decode a JWT. Raises JWTError if invalid/expired."""
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


# Singleton instance — import this everywhere
crypto_engine = CryptoEngine()
