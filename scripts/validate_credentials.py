#!/usr/bin/env python3
"""
Validate Cloudflare credentials before running a migration.

Steps:
    1. Required settings are present
    2. API token format looks plausible
    3. Token is active (token verification endpoint)
    4. D1 database is reachable with this token
    5. A test query executes
"""

import asyncio
import sys
import os

# Add current directory to path to allow imports from core, migration, etc.
sys.path.append(os.getcwd())

from core.config import Settings, load_settings
from core.exceptions import ConfigurationError, RemoteError
from migration.gateway import D1Gateway

MIN_TOKEN_LENGTH = 20


async def check_remote(settings: Settings) -> int:
    async with D1Gateway(settings) as gateway:
        print("Step 3: Verifying API token...")
        try:
            token = await gateway.verify_token()
        except RemoteError as e:
            print(f"❌ Token verification failed: {e.message}")
            print("\nPossible issues:")
            print("  1. API token has expired or been revoked")
            print("  2. API token was copied incompletely")
            return 1
        print(f"✓ Token status: {token.get('status', 'unknown')}\n")

        print("Step 4: Verifying D1 database access...")
        try:
            database = await gateway.get_database()
        except RemoteError as e:
            print(f"❌ Failed to access D1 database: {e.message}")
            print("\nPossible issues:")
            print("  1. D1_DATABASE_ID or CLOUDFLARE_ACCOUNT_ID is incorrect")
            print("  2. API token doesn't have D1 permissions")
            print("  3. Database doesn't exist in this account")
            return 1
        print(f"✓ D1 database verified: {database.get('name')}")
        print(f"  Database ID: {settings.D1_DATABASE_ID}")
        print(f"  Version: {database.get('version')}\n")

        print("Step 5: Testing query execution...")
        try:
            await gateway.ping()
        except RemoteError as e:
            print(f"❌ Failed to execute test query: {e.message}")
            print("Ensure the token has \"D1:Edit\" permissions.")
            return 1
        print("✓ Query execution successful\n")

    return 0


def main() -> int:
    print("🔍 Validating Cloudflare credentials...\n")

    print("Step 1: Checking configuration...")
    try:
        settings = load_settings(MAX_RETRIES=1)
    except ConfigurationError as e:
        print("❌ Missing or invalid settings:")
        for field in e.context.get("fields", []):
            print(f"  - {field}")
        return 1
    print("✓ All required settings are present\n")

    print("Step 2: Validating API token format...")
    if len(settings.CLOUDFLARE_API_TOKEN) < MIN_TOKEN_LENGTH:
        print("❌ API token appears to be invalid (too short)")
        return 1
    print("✓ API token format looks valid\n")

    result = asyncio.run(check_remote(settings))
    if result == 0:
        print("✓ All credentials are valid and working!")
        print(f"  Account ID: {settings.CLOUDFLARE_ACCOUNT_ID}")
        print(f"  Database ID: {settings.D1_DATABASE_ID}")
        print(f"  API Token: {settings.CLOUDFLARE_API_TOKEN[:10]}...")
    return result


if __name__ == "__main__":
    sys.exit(main())
