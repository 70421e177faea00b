#!/usr/bin/env python3
"""
MPC Vault API Demo

Walks the full vault lifecycle against a running server.

Usage:
    1. Start server: TEST_MODE=true mpc-vault-server
    2. Run demo:     python examples/api-demo/demo.py
"""

import asyncio
import os
import time

from dotenv import load_dotenv

from mpc_vault import TEST_MODE_CODE, VaultApiClient, VaultApiError, is_valid_address

# Load environment variables
load_dotenv()

CHAINS = ["Bitcoin", "Ethereum", "Solana", "Polygon", "Avalanche"]


def header(title: str) -> None:
    print()
    print("=" * 50)
    print(f"  {title}")
    print("=" * 50)


async def main():
    base_url = os.environ.get("API_URL", "http://localhost:3000/api")

    print("MPC Vault API Demo\n")
    print(f"    Server:    {base_url}")
    print(f"    Test code: {TEST_MODE_CODE}")

    async with VaultApiClient(base_url) as client:
        # =====================================================================
        # Step 1: Health Check
        # =====================================================================
        header("[1] Health Check")
        health = await client.health_check()
        print(f"    [OK] Server status: {health['status']}")

        # =====================================================================
        # Step 2: Create & Verify a Fast Vault
        # =====================================================================
        header("[2] Create Fast Vault")
        stamp = int(time.time())
        vault_id = await client.create_fast_vault(
            f"Demo Wallet {stamp}",
            "demo@example.com",
            "DemoPassword123!",
            user_id=f"demo-user-{stamp}",
        )
        print(f"    [OK] Vault created: {vault_id}")

        header("[3] Verify Vault")
        result = await client.verify_vault(vault_id, TEST_MODE_CODE)
        print(f"    [OK] Vault verified: {result.get('verified', True)}")

        # =====================================================================
        # Step 4: Addresses
        # =====================================================================
        header("[4] Get Blockchain Addresses")
        for chain in CHAINS:
            try:
                address = await client.get_address(vault_id, chain)
            except VaultApiError as e:
                print(f"    [ERROR] {chain}: {e.message}")
                continue
            tag = "valid" if is_valid_address(chain, address) else "test"
            print(f"    [OK] {chain:<12} {address} ({tag})")

        # =====================================================================
        # Step 5: Metadata
        # =====================================================================
        header("[5] Get Vault Metadata")
        metadata = await client.get_vault(vault_id)
        print(f"    Name:     {metadata['name']}")
        print(f"    Email:    {metadata['email']}")
        print(f"    Created:  {metadata['createdAt']}")
        print(f"    Verified: {metadata['verified']}")
        print(f"    Chains:   {', '.join(metadata.get('chains') or []) or 'none'}")

        header("[6] List All Vaults")
        vaults = await client.list_vaults()
        print(f"    [OK] Found {len(vaults)} vault(s)")
        for v in vaults[:3]:
            state = "verified" if v["verified"] else "pending"
            print(f"      - {v['vaultId'][:8]}... \"{v['name']}\" ({state})")
        if len(vaults) > 3:
            print(f"      ... and {len(vaults) - 3} more")

        # =====================================================================
        # Step 7: Export & Sign
        # =====================================================================
        header("[7] Export Vault Backup")
        try:
            backup = await client.export_vault(vault_id, "BackupPassword123!")
            print(f"    [OK] Backup exported ({len(backup)} chars)")
            print(f"    Preview: {backup[:50]}...")
        except VaultApiError as e:
            print(f"    [ERROR] Export: {e.message}")

        header("[8] Sign Transaction")
        try:
            signature = await client.sign_transaction(vault_id, "Ethereum", {
                "to": "0x742d35Cc6634C0532925a3b844Bc9e7595f00000",
                "value": "0x0",
                "data": "0x",
            })
            print(f"    [OK] Signed: {str(signature)[:60]}...")
        except VaultApiError as e:
            print(f"    [ERROR] Sign: {e.message}")

        # =====================================================================
        # Step 9: Secure Vault
        # =====================================================================
        header("[9] Create Secure Vault (2-of-3)")
        session = await client.create_secure_vault(f"Team Vault {stamp}", 3, 2)
        print(f"    [OK] Session {session['sessionId'][:8]}... status={session['status']}")
        print(f"    Devices: {session['devicesJoined']}/{session['devicesRequired']}")
        print(f"    QR: {session['qrCode'][:60]}...")

    header("Demo Complete")
    print(f"    Vault ID: {vault_id}")


if __name__ == "__main__":
    asyncio.run(main())
