"""
Identity registry through the HTTP surface: self-registration, verification
by authorities, profile visibility, and caller authentication.
"""

from __future__ import annotations

from config import settings
from tests.conftest import ALICE, BOB, EVE, GOV, auth


class TestUserRegistration:
    def test_register_user_creates_unverified_record(self, registry) -> None:
        resp = registry.register_user(ALICE, "User One")
        assert resp.status_code == 201
        data = resp.json()
        assert data["user_key"] == ALICE
        assert data["is_verified"] is False
        assert len(data["block_hash"]) == 64

        profile = registry.get_user(ALICE, ALICE).json()
        assert profile["name"] == "User One"
        assert profile["is_verified"] is False

    def test_register_twice_fails_already_registered(self, registry) -> None:
        assert registry.register_user(ALICE).status_code == 201
        resp = registry.register_user(ALICE, "Someone Else")
        assert resp.status_code == 409
        assert resp.json()["error"] == "ALREADY_REGISTERED"
        # first registration untouched
        assert registry.get_user(ALICE, ALICE).json()["name"] == "User"

    def test_identity_documents_are_not_stored_in_clear(self, registry) -> None:
        registry.register_user(ALICE)
        blocks = registry.client.get("/ledger/blocks").json()
        registered = [b for b in blocks if b["block_type"] == "USER_REGISTERED"][0]
        assert "123456789012" not in str(registered["data"])
        assert "documents_digest" in registered["data"]

    def test_missing_fields_rejected(self, registry) -> None:
        resp = registry.client.post("/identity/users", json={"name": "x"}, headers=auth(ALICE))
        assert resp.status_code == 422

    def test_overlong_phone_rejected(self, registry) -> None:
        resp = registry.register_user(ALICE, phone="9" * 51)
        assert resp.status_code == 422
        assert registry.get_user(ALICE, ALICE).status_code == 404
        assert len(registry.client.get("/ledger/blocks").json()) == 1

    def test_overlong_authority_code_rejected(self, registry) -> None:
        assert registry.register_authority(GOV, code="G" * 101).status_code == 422


class TestAuthorityRegistration:
    def test_register_authority(self, registry) -> None:
        resp = registry.register_authority(GOV, code="GOVT123")
        assert resp.status_code == 201
        record = registry.client.get(f"/identity/authorities/{GOV}").json()
        assert record["code"] == "GOVT123"
        assert record["name"] == "Authority One"

    def test_register_authority_twice_fails(self, registry) -> None:
        registry.register_authority(GOV)
        resp = registry.register_authority(GOV, code="OTHER")
        assert resp.status_code == 409
        assert resp.json()["error"] == "ALREADY_REGISTERED"

    def test_unknown_authority_is_404(self, registry) -> None:
        resp = registry.client.get(f"/identity/authorities/{EVE}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "AUTHORITY_NOT_FOUND"

    def test_allowlist_restricts_authority_registration(self, registry, monkeypatch) -> None:
        monkeypatch.setattr(settings, "AUTHORITY_ALLOWLIST", [GOV])
        denied = registry.register_authority(EVE)
        assert denied.status_code == 403
        assert denied.json()["error"] == "NOT_AUTHORITY"
        assert registry.register_authority(GOV).status_code == 201

    def test_same_key_may_hold_user_and_authority_records(self, registry) -> None:
        assert registry.register_user(GOV).status_code == 201
        assert registry.register_authority(GOV).status_code == 201
        me = registry.client.get("/identity/me", headers=auth(GOV)).json()
        assert me["user"]["user_key"] == GOV
        assert me["authority"]["authority_key"] == GOV


class TestUserVerification:
    def test_authority_verifies_user(self, registry) -> None:
        registry.register_user(ALICE)
        registry.register_authority(GOV)
        resp = registry.verify_user(GOV, ALICE)
        assert resp.status_code == 200
        assert resp.json()["status"] == "verified"

        profile = registry.get_user(ALICE, ALICE).json()
        assert profile["is_verified"] is True
        assert profile["verified_by"] == GOV

    def test_non_authority_cannot_verify(self, registry) -> None:
        registry.register_user(ALICE)
        registry.register_user(BOB)
        resp = registry.verify_user(BOB, ALICE)
        assert resp.status_code == 403
        assert resp.json()["error"] == "NOT_AUTHORITY"
        assert registry.get_user(ALICE, ALICE).json()["is_verified"] is False

    def test_user_cannot_verify_self(self, registry) -> None:
        registry.register_user(ALICE)
        assert registry.verify_user(ALICE, ALICE).status_code == 403
        assert registry.get_user(ALICE, ALICE).json()["is_verified"] is False

    def test_verify_unknown_user(self, registry) -> None:
        registry.register_authority(GOV)
        resp = registry.verify_user(GOV, EVE)
        assert resp.status_code == 404
        assert resp.json()["error"] == "USER_NOT_FOUND"

    def test_reverify_is_idempotent(self, registry) -> None:
        registry.register_user(ALICE)
        registry.register_authority(GOV)
        registry.verify_user(GOV, ALICE)
        before = registry.get_user(ALICE, ALICE).json()
        blocks_before = len(registry.client.get("/ledger/blocks").json())

        resp = registry.verify_user(GOV, ALICE)
        assert resp.status_code == 200
        assert resp.json()["status"] == "already_verified"
        assert registry.get_user(ALICE, ALICE).json() == before
        assert len(registry.client.get("/ledger/blocks").json()) == blocks_before


class TestProfileVisibility:
    def test_private_fields_for_self_and_authority_only(self, registry) -> None:
        registry.register_user(ALICE, national_id="999988887777", tax_id="PANXYZ")
        registry.register_user(BOB)
        registry.register_authority(GOV)

        own = registry.get_user(ALICE, ALICE).json()
        assert own["national_id"] == "999988887777"
        assert own["tax_id"] == "PANXYZ"

        as_authority = registry.get_user(GOV, ALICE).json()
        assert as_authority["national_id"] == "999988887777"

        as_stranger = registry.get_user(BOB, ALICE).json()
        assert "national_id" not in as_stranger
        assert "email" not in as_stranger
        assert as_stranger["name"] == "User"

    def test_unknown_user_is_404(self, registry) -> None:
        resp = registry.get_user(ALICE, BOB)
        assert resp.status_code == 404


class TestAuthentication:
    def test_missing_token_is_401(self, client) -> None:
        resp = client.post("/identity/users", json={"name": "a", "national_id": "1", "tax_id": "2"})
        assert resp.status_code == 401

    def test_garbage_token_is_401(self, client) -> None:
        resp = client.get("/identity/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_dev_token_endpoint_issues_usable_token(self, client) -> None:
        token = client.post("/auth/token", json={"identity_key": ALICE}).json()["access_token"]
        me = client.get("/identity/me", headers={"Authorization": f"Bearer {token}"}).json()
        assert me == {"identity_key": ALICE, "user": None, "authority": None}
