"""
core/blockchain.py — Registry Ledger
=====================================
An in-memory, hash-chained block log. Every successful registry transition
(user registered, land verified, sale approved, ...) is appended as one block,
and the block hash is stored on the affected record and in the audit log.

The database is the source of truth; the chain is the tamper-evident trail
of how it got there. Data resets when the server restarts.

All modules call: from core.blockchain import blockchain
"""

import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger("landledger.ledger")

GENESIS_PREV_HASH = "0" * 64


def _hash_block(block_number: int, block_type: str, data: dict, prev_hash: str, timestamp: str) -> str:
    payload = json.dumps({
        "block_number": block_number,
        "block_type": block_type,
        "data": data,
        "prev_hash": prev_hash,
        "timestamp": timestamp,
    }, sort_keys=True, default=str)
    return hashlib.sha3_256(payload.encode()).hexdigest()


class SimulatedChain:
    """
    In-memory blockchain simulation.
    No node, no Docker; each process has its own chain, starting at a
    genesis block on connect().
    """

    def __init__(self):
        self.blocks = []       # list of block dicts
        self.block_number = 0

    async def connect(self):
        self.blocks = []
        self.block_number = 0
        self._mine_block("GENESIS", {"message": "LandLedger genesis block"})
        logger.info("SimulatedChain: ready (in-memory mode)")

    async def disconnect(self):
        logger.info("SimulatedChain: disconnected")

    async def ping(self) -> str:
        return f"ok — simulated chain, {len(self.blocks)} blocks"

    def _mine_block(self, block_type: str, data: dict) -> dict:
        prev_hash = self.blocks[-1]["hash"] if self.blocks else GENESIS_PREV_HASH
        timestamp = datetime.now(timezone.utc).isoformat()
        block = {
            "block_number": self.block_number,
            "block_type": block_type,
            "data": data,
            "prev_hash": prev_hash,
            "hash": _hash_block(self.block_number, block_type, data, prev_hash, timestamp),
            "timestamp": timestamp,
        }
        self.blocks.append(block)
        self.block_number += 1
        return block

    async def write_block(self, block_type: str, data: dict) -> dict:
        if not self.blocks:
            raise RuntimeError("Ledger not connected. Call connect() first.")
        block = self._mine_block(block_type, data)
        logger.info(f"Block #{block['block_number']} written [{block_type}] hash={block['hash'][:16]}...")
        return block

    async def get_block(self, block_hash: str) -> Optional[dict]:
        for block in self.blocks:
            if block["hash"] == block_hash:
                return block
        return None

    async def get_all_blocks(self, limit: Optional[int] = None) -> list:
        if limit is None:
            return list(self.blocks)
        if limit <= 0:
            return []
        return self.blocks[-limit:]

    async def rollback_to(self, block_number: int):
        """Drop every block from block_number onwards. Genesis is never dropped."""
        block_number = max(block_number, 1)
        dropped = self.blocks[block_number:]
        if dropped:
            self.blocks = self.blocks[:block_number]
            self.block_number = block_number
            logger.warning(f"Ledger rolled back to block #{block_number - 1}, discarded {len(dropped)} block(s)")

    async def verify_chain(self) -> dict:
        """
        Recompute every block hash and check the prev_hash links.
        Returns {"valid": bool, "blocks": n, "first_invalid": block_number | None}.
        """
        prev_hash = GENESIS_PREV_HASH
        for block in self.blocks:
            expected = _hash_block(
                block["block_number"], block["block_type"], block["data"],
                block["prev_hash"], block["timestamp"],
            )
            if block["prev_hash"] != prev_hash or block["hash"] != expected:
                logger.warning(f"Ledger integrity check failed at block #{block['block_number']}")
                return {"valid": False, "blocks": len(self.blocks), "first_invalid": block["block_number"]}
            prev_hash = block["hash"]
        return {"valid": True, "blocks": len(self.blocks), "first_invalid": None}


# Singleton — import this everywhere:  from core.blockchain import blockchain
blockchain = SimulatedChain()
