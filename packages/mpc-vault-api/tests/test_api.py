"""HTTP tests for the vault API routes and error envelope."""

from unittest.mock import AsyncMock

import pytest

from mpc_vault.backup import read_backup_header


async def _create_fast(client, name="My Wallet", user_id=None):
    resp = await client.post("/api/vaults/fast", json={
        "name": name,
        "email": "user@example.com",
        "password": "SecurePassword123!",
        "userId": user_id,
    })
    assert resp.status_code == 201
    return resp.json()["data"]["vaultId"]


async def _create_verified(client):
    vault_id = await _create_fast(client)
    resp = await client.post(
        f"/api/vaults/{vault_id}/verify", json={"verificationCode": "000000"}
    )
    assert resp.status_code == 200
    return vault_id


# ─── Health & index ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(test_client):
    resp = await test_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "MPC Vault API"
    assert data["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_index_lists_endpoints(test_client):
    resp = await test_client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "MPC Vault API"
    assert data["endpoints"]["vaults"]["createFast"] == "POST /api/vaults/fast"
    assert data["docs"] == "/docs"


@pytest.mark.asyncio
async def test_request_id_is_echoed(test_client):
    resp = await test_client.get("/health", headers={"X-Request-Id": "req-123"})
    assert resp.headers["X-Request-Id"] == "req-123"

    resp = await test_client.get("/health")
    assert resp.headers["X-Request-Id"]


# ─── Fast vault lifecycle ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fast_vault_verification_lifecycle(test_client):
    resp = await test_client.post("/api/vaults/fast", json={
        "name": "My Wallet", "email": "user@example.com", "password": "SecurePassword123!",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert "verification code" in body["message"]
    vault_id = body["data"]["vaultId"]

    resp = await test_client.get(f"/api/vaults/{vault_id}")
    assert resp.status_code == 200
    assert resp.json()["data"]["verified"] is False

    resp = await test_client.post(
        f"/api/vaults/{vault_id}/verify", json={"verificationCode": "wrong-code"}
    )
    assert resp.status_code != 200
    assert resp.json()["success"] is False
    assert (await test_client.get(f"/api/vaults/{vault_id}")).json()["data"]["verified"] is False

    resp = await test_client.post(
        f"/api/vaults/{vault_id}/verify", json={"verificationCode": "000000"}
    )
    assert resp.status_code == 200
    assert resp.json()["data"] == {"vaultId": vault_id, "verified": True}
    assert resp.json()["message"] == "Vault verified successfully"

    metadata = (await test_client.get(f"/api/vaults/{vault_id}")).json()["data"]
    assert metadata["verified"] is True
    assert metadata["vaultId"] == vault_id
    assert metadata["name"] == "My Wallet"
    assert metadata["email"] == "user@example.com"
    assert metadata["createdAt"].endswith("Z")


@pytest.mark.asyncio
async def test_verify_unknown_vault_is_404(test_client):
    resp = await test_client.post(
        "/api/vaults/ghost/verify", json={"verificationCode": "000000"}
    )
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Vault ghost not found"}


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"email": "a@b.com", "password": "P"},
    {"name": "W", "password": "P"},
    {"name": "W", "email": "a@b.com"},
    {"name": "", "email": "a@b.com", "password": "P"},
])
async def test_create_fast_requires_fields(test_client, body):
    resp = await test_client.post("/api/vaults/fast", json=body)
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": "Missing required fields: name, email, password",
    }


@pytest.mark.asyncio
async def test_verify_requires_code(test_client):
    vault_id = await _create_fast(test_client)
    resp = await test_client.post(f"/api/vaults/{vault_id}/verify", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Verification code is required"


# ─── Addresses ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_address_for_unverified_vault_is_404(test_client):
    vault_id = await _create_fast(test_client)
    resp = await test_client.get(f"/api/vaults/{vault_id}/address/Bitcoin")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Vault not found or not verified"}


@pytest.mark.asyncio
async def test_address_records_chains(test_client):
    vault_id = await _create_verified(test_client)

    resp = await test_client.get(f"/api/vaults/{vault_id}/address/Ethereum")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["chain"] == "Ethereum"
    assert data["vaultId"] == vault_id
    assert data["address"].startswith("0x")

    resp = await test_client.get(f"/api/vaults/{vault_id}/address/Bitcoin")
    assert resp.json()["data"]["address"].startswith("bc1q")

    chains = (await test_client.get(f"/api/vaults/{vault_id}")).json()["data"]["chains"]
    assert sorted(chains) == ["Bitcoin", "Ethereum"]


@pytest.mark.asyncio
async def test_unsupported_chain_is_400(test_client):
    vault_id = await _create_verified(test_client)
    resp = await test_client.get(f"/api/vaults/{vault_id}/address/Dogecoin")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Unsupported chain: Dogecoin"


@pytest.mark.asyncio
async def test_address_after_restart_asks_to_reverify(test_client, service):
    vault_id = await _create_verified(test_client)
    service._vaults.clear()

    resp = await test_client.get(f"/api/vaults/{vault_id}/address/Bitcoin")
    assert resp.status_code == 400
    assert "re-verify" in resp.json()["error"]


# ─── Signing ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_sign_transaction(test_client):
    vault_id = await _create_verified(test_client)
    resp = await test_client.post(f"/api/vaults/{vault_id}/sign", json={
        "chain": "Ethereum",
        "transaction": {"to": "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb", "value": "1000"},
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Transaction signed successfully"
    assert body["data"]["signature"]["signature"].startswith("0x")


@pytest.mark.asyncio
async def test_sign_forwards_chain_in_options(test_client, service):
    vault_id = await _create_verified(test_client)
    vault = service._vaults[vault_id]
    vault.sign = AsyncMock(return_value="sig")

    resp = await test_client.post(f"/api/vaults/{vault_id}/sign", json={
        "chain": "Ethereum", "transaction": "0xdeadbeef", "options": {"gasLimit": 21000},
    })
    assert resp.status_code == 200
    assert resp.json()["data"] == {"signature": "sig"}
    vault.sign.assert_awaited_once_with(
        "0xdeadbeef", {"gasLimit": 21000, "chain": "Ethereum"}
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"transaction": ""}, {"transaction": None}])
async def test_sign_requires_transaction(test_client, body):
    vault_id = await _create_verified(test_client)
    resp = await test_client.post(f"/api/vaults/{vault_id}/sign", json=body)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Transaction payload is required"


@pytest.mark.asyncio
async def test_sign_unloaded_vault_is_400(test_client):
    vault_id = await _create_fast(test_client)
    resp = await test_client.post(
        f"/api/vaults/{vault_id}/sign", json={"transaction": {"to": "x"}}
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Vault not loaded. Please verify the vault first."


# ─── Secure vaults ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_secure_vault_threshold_above_devices(test_client):
    resp = await test_client.post(
        "/api/vaults/secure", json={"name": "Team", "devices": 3, "threshold": 5}
    )
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": "Threshold cannot exceed number of devices",
    }
    assert (await test_client.get("/api/vaults")).json()["data"]["vaults"] == []


@pytest.mark.asyncio
async def test_secure_vault_requires_fields(test_client):
    resp = await test_client.post("/api/vaults/secure", json={"name": "Team", "devices": 3})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields: name, devices, threshold"


@pytest.mark.asyncio
async def test_secure_vault_session(test_client):
    resp = await test_client.post(
        "/api/vaults/secure",
        json={"name": "Team", "devices": 3, "threshold": 2, "userId": "team-1"},
    )
    assert resp.status_code == 201
    session = resp.json()["data"]
    assert session["status"] == "ready"
    assert session["devicesJoined"] == 3
    assert session["devicesRequired"] == 3
    assert session["qrCode"].startswith("vultisig://")
    vault_id = session["vaultId"]

    resp = await test_client.get(f"/api/vaults/{vault_id}/session")
    assert resp.status_code == 200
    assert resp.json()["data"] == session

    metadata = (await test_client.get(f"/api/vaults/{vault_id}")).json()["data"]
    assert metadata["verified"] is True
    assert metadata["userId"] == "team-1"

    resp = await test_client.get(f"/api/vaults/{vault_id}/address/Solana")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_session_unknown_is_404(test_client):
    vault_id = await _create_verified(test_client)
    resp = await test_client.get(f"/api/vaults/{vault_id}/session")
    assert resp.status_code == 404
    assert resp.json()["error"] == "Session not found"


# ─── Listing & metadata ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_vaults_by_user(test_client):
    alice = await _create_fast(test_client, "A", user_id="alice")
    await _create_fast(test_client, "B", user_id="bob")

    resp = await test_client.get("/api/vaults", params={"userId": "alice"})
    vaults = resp.json()["data"]["vaults"]
    assert [v["vaultId"] for v in vaults] == [alice]

    resp = await test_client.get("/api/vaults")
    assert len(resp.json()["data"]["vaults"]) == 2


@pytest.mark.asyncio
async def test_get_unknown_vault_is_404(test_client):
    resp = await test_client.get("/api/vaults/nope")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Vault not found"}


# ─── Export ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_export_vault(test_client, store):
    vault_id = await _create_verified(test_client)

    resp = await test_client.post(
        f"/api/vaults/{vault_id}/export", json={"password": "BackupPassword123!"}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Vault exported successfully"
    assert body["data"]["vaultId"] == vault_id

    backup = body["data"]["backup"]
    assert store.get_export(vault_id) == backup
    assert read_backup_header(backup)["vaultId"] == vault_id


@pytest.mark.asyncio
async def test_export_requires_password(test_client):
    vault_id = await _create_verified(test_client)
    resp = await test_client.post(f"/api/vaults/{vault_id}/export", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Password is required for export"


# ─── Error envelope ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_malformed_body_is_400(test_client):
    resp = await test_client.post(
        "/api/vaults/fast",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["error"].startswith("Invalid request")


@pytest.mark.asyncio
async def test_wrong_field_type_is_400(test_client):
    resp = await test_client.post(
        "/api/vaults/secure", json={"name": "Team", "devices": "many", "threshold": 2}
    )
    assert resp.status_code == 400
    assert "devices" in resp.json()["error"]


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(test_client):
    resp = await test_client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Not Found"}


@pytest.mark.asyncio
async def test_unexpected_error_is_500(test_client, service, monkeypatch):
    monkeypatch.setattr(service, "list_vaults", lambda user_id=None: 1 / 0)

    resp = await test_client.get("/api/vaults", headers={"X-Request-Id": "boom"})
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "division by zero"}
    assert resp.headers["X-Request-Id"] == "boom"


@pytest.mark.asyncio
async def test_corrupt_record_is_500_and_hidden_from_listing(test_client, store):
    vault_id = await _create_fast(test_client)
    (store.base_path / f"{vault_id}.meta.json").write_text("[]")

    resp = await test_client.get(f"/api/vaults/{vault_id}")
    assert resp.status_code == 500
    assert resp.json()["error"].startswith("Corrupt vault metadata")

    resp = await test_client.get("/api/vaults")
    assert resp.status_code == 200
    assert resp.json()["data"]["vaults"] == []
