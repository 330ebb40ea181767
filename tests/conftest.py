"""
Shared fixtures — a fresh database and ledger per test, and a small driver
that performs registry calls as a given identity key.
"""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

import db.models  # noqa: F401 — registers tables on Base.metadata
from core.crypto import crypto_engine
from db.session import Base, engine
from main import app

ALICE = "0xA11CE00000000000000000000000000000000001"
BOB = "0xB0B0000000000000000000000000000000000002"
CAROL = "0xCA401000000000000000000000000000000000003"
GOV = "0x60V0000000000000000000000000000000000004"
EVE = "0xE4E0000000000000000000000000000000000005"


async def _reset_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


def auth(identity_key: str) -> dict:
    return {"Authorization": f"Bearer {crypto_engine.create_access_token(identity_key)}"}


class Registry:
    """Thin driver over the HTTP surface: every call is made *as* `caller`."""

    def __init__(self, client: TestClient):
        self.client = client

    # identity
    def register_user(self, caller: str, name: str = "User", **overrides):
        body = {
            "name": name,
            "national_id": "123456789012",
            "tax_id": "PAN1234",
            "phone": "1234567890",
            "email": "user@example.com",
        }
        body.update(overrides)
        return self.client.post("/identity/users", json=body, headers=auth(caller))

    def register_authority(self, caller: str, code: str = "GOVT123"):
        body = {"code": code, "name": "Authority One", "designation": "Sub-Registrar"}
        return self.client.post("/identity/authorities", json=body, headers=auth(caller))

    def verify_user(self, caller: str, user_key: str):
        return self.client.post(f"/identity/users/{user_key}/verify", headers=auth(caller))

    def get_user(self, caller: str, user_key: str):
        return self.client.get(f"/identity/users/{user_key}", headers=auth(caller))

    # land
    def register_land(self, caller: str, property_id: str = "PROP123", area: float = 100,
                      address: str = "123 Street", price: int = 1000):
        body = {"property_id": property_id, "area": area, "address": address, "price": price}
        return self.client.post("/land", json=body, headers=auth(caller))

    def set_token_uri(self, caller: str, land_id: int, uri: str):
        return self.client.put(f"/land/{land_id}/token-uri", json={"uri": uri}, headers=auth(caller))

    def verify_land(self, caller: str, land_id: int):
        return self.client.post(f"/land/{land_id}/verify", headers=auth(caller))

    def list_land(self, caller: str, land_id: int, price: int):
        return self.client.post(f"/land/{land_id}/list", json={"price": price}, headers=auth(caller))

    def unlist_land(self, caller: str, land_id: int):
        return self.client.post(f"/land/{land_id}/unlist", headers=auth(caller))

    def land(self, land_id: int) -> dict:
        return self.client.get(f"/land/{land_id}").json()

    # sale
    def request_to_buy(self, caller: str, land_id: int):
        return self.client.post(f"/sale/{land_id}/request", headers=auth(caller))

    def approve_by_owner(self, caller: str, land_id: int, proof_uri: str):
        return self.client.post(
            f"/sale/{land_id}/approve-owner", json={"proof_uri": proof_uri}, headers=auth(caller)
        )

    def approve_by_authority(self, caller: str, land_id: int):
        return self.client.post(f"/sale/{land_id}/approve-authority", headers=auth(caller))

    def cancel(self, caller: str, land_id: int):
        return self.client.post(f"/sale/{land_id}/cancel", headers=auth(caller))

    def sale(self, land_id: int) -> dict:
        return self.client.get(f"/sale/{land_id}").json()

    # composite setups
    def verified_user(self, key: str, name: str = "User") -> None:
        assert self.register_user(key, name).status_code == 201
        assert self.verify_user(GOV, key).status_code == 200

    def listed_land(self, owner: str, price: int = 2000) -> int:
        land_id = self.register_land(owner).json()["land_id"]
        assert self.verify_land(GOV, land_id).status_code == 200
        assert self.list_land(owner, land_id, price).status_code == 200
        return land_id


@pytest.fixture
def client():
    asyncio.run(_reset_schema())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def registry(client) -> Registry:
    return Registry(client)


@pytest.fixture
def populated(registry) -> Registry:
    """GOV is an authority; ALICE and BOB are verified users; EVE is registered but unverified."""
    assert registry.register_authority(GOV).status_code == 201
    registry.verified_user(ALICE, "User One")
    registry.verified_user(BOB, "User Two")
    assert registry.register_user(EVE, "Eve").status_code == 201
    return registry
