#!/usr/bin/env python3
"""
Connection check for the Solidtime MCP Server

This script verifies that your API token and organization ID work and shows
the member ID to use for SOLIDTIME_DEFAULT_MEMBER_ID.
"""

import asyncio
import sys

import httpx

from solidtime_mcp.client import SolidtimeAPIError, SolidtimeClient
from solidtime_mcp.config import ConfigError, load_config


async def check_api(client: SolidtimeClient) -> bool:
    """Fetch the organization as a simple authenticated read."""
    print("\n🔄 Testing connection to the Solidtime API...")

    try:
        org = await client.get_organization()
    except SolidtimeAPIError as e:
        print(f"❌ Connection failed: {e}")
        return False
    except httpx.HTTPError as e:
        print(f"❌ Connection error: {e}")
        return False

    print(f"✅ Connected to organization '{org.name}' ({org.id})")
    return True


async def check_features(client: SolidtimeClient, default_member_id) -> None:
    print("\n🧪 Testing API features...\n")

    print("1. Current member...")
    try:
        me = await client.get_current_member()
        print(f"   ✓ You are member {me.id} ({me.name or 'no name'})")
        if default_member_id and default_member_id != me.id:
            print(f"   ! SOLIDTIME_DEFAULT_MEMBER_ID is {default_member_id}, not your member ID")
    except (SolidtimeAPIError, httpx.HTTPError) as e:
        print(f"   ✗ Current member check failed: {e}")

    print("2. Projects...")
    try:
        projects = await client.get_projects()
        print(f"   ✓ Found {len(projects.data)} projects")
    except (SolidtimeAPIError, httpx.HTTPError) as e:
        print(f"   ✗ Projects check failed: {e}")

    if default_member_id:
        print("3. Running timer...")
        try:
            active = await client.get_time_entries(member_id=default_member_id, active=True)
            if active.data:
                print(f"   ✓ Timer running: entry {active.data[0].id}")
            else:
                print("   ✓ No timer running")
        except (SolidtimeAPIError, httpx.HTTPError) as e:
            print(f"   ✗ Time entry check failed: {e}")


async def main() -> int:
    print("=" * 50)
    print("Solidtime MCP Server - Connection Test")
    print("=" * 50)

    try:
        config = load_config()
    except ConfigError as e:
        print(f"❌ ERROR: {e}")
        print("\nPlease set your credentials:")
        print("  export SOLIDTIME_API_TOKEN='your-token-here'")
        print("  export SOLIDTIME_ORGANIZATION_ID='your-organization-id'")
        return 1

    print(f"✓ API token found: {config.api_token[:10]}...")
    print(f"✓ Server: {config.base_url}")

    client = SolidtimeClient(config)
    if not await check_api(client):
        print("\nTroubleshooting:")
        print("1. Verify your API token is correct")
        print("2. Check SOLIDTIME_BASE_URL points at your instance")
        print("3. Check SOLIDTIME_ORGANIZATION_ID")
        return 1

    await check_features(client, config.default_member_id)
    print("\n" + "=" * 50)
    print("✅ Setup looks good.")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
