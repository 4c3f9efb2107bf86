#!/usr/bin/env python3
"""Basic usage examples for Backup Vault.

This script demonstrates the core functionality:
- Uploading, listing, downloading and deleting files
- Reading and pruning the operation history
- Basic error handling
"""

import asyncio

import httpx


class BackupVaultClient:
    """Simple client for the Backup Vault API."""

    def __init__(self, base_url: str = "http://localhost:5000"):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient()

    async def upload(self, filename: str, content: bytes) -> str:
        """Upload a file."""
        response = await self.client.post(
            f"{self.base_url}/upload",
            files={"file": (filename, content, "application/octet-stream")},
        )
        response.raise_for_status()
        return response.text

    async def download(self, filename: str) -> bytes:
        """Download a file."""
        response = await self.client.get(f"{self.base_url}/download/{filename}")
        response.raise_for_status()
        return response.content

    async def list_files(self) -> list[str]:
        response = await self.client.get(f"{self.base_url}/files")
        response.raise_for_status()
        return response.json()

    async def delete(self, filename: str) -> str:
        response = await self.client.delete(f"{self.base_url}/delete/{filename}")
        response.raise_for_status()
        return response.text

    async def history(self) -> list[dict]:
        response = await self.client.get(f"{self.base_url}/history")
        response.raise_for_status()
        return response.json()

    async def delete_history(self, ids: list[int]) -> dict:
        """Remove history entries by id."""
        response = await self.client.post(
            f"{self.base_url}/delete-history", json={"ids": ids}
        )
        response.raise_for_status()
        return response.json()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()


async def example_1_file_round_trip():
    """Example 1: Upload, list, download and delete a file."""
    print("📦 Example 1: File Round Trip")
    print("-" * 50)

    client = BackupVaultClient()

    try:
        content = b"quarterly report, draft 3\n"
        print(await client.upload("report.txt", content))
        print(f"Files: {await client.list_files()}")

        downloaded = await client.download("report.txt")
        print(f"Downloaded {len(downloaded)} bytes, identical: {downloaded == content}")

        print(await client.delete("report.txt"))
        print(f"Files after delete: {await client.list_files()}")

    except httpx.HTTPStatusError as e:
        print(f"❌ API Error: {e.response.status_code} - {e.response.text}")
    except httpx.HTTPError as e:
        print(f"❌ Error: {e}")

    finally:
        await client.close()

    print()


async def example_2_history():
    """Example 2: Reading and pruning the operation history."""
    print("📜 Example 2: Operation History")
    print("-" * 50)

    client = BackupVaultClient()

    try:
        for entry in await client.history():
            size = f" ({entry['size']} bytes)" if "size" in entry else ""
            print(f"  #{entry['id']} {entry['operation']:<6} {entry['filename']}{size}")

        entries = await client.history()
        uploads = [e["id"] for e in entries if e["operation"] == "upload"]
        result = await client.delete_history(uploads)
        print(f"Removed upload entries: {result['message']}")
        print(f"Remaining entries: {result['remainingCount']}")

    except httpx.HTTPStatusError as e:
        print(f"❌ API Error: {e.response.status_code} - {e.response.text}")
    except httpx.HTTPError as e:
        print(f"❌ Error: {e}")

    finally:
        await client.close()

    print()


async def example_3_error_handling():
    """Example 3: Error handling."""
    print("⚠️ Example 3: Error Handling")
    print("-" * 50)

    client = BackupVaultClient()

    try:
        print("Attempting to download a file that was never uploaded...")
        try:
            await client.download("does-not-exist.bin")
        except httpx.HTTPStatusError as e:
            print(f"✅ Correctly rejected: {e.response.status_code}")

        print("Attempting to prune history with a malformed body...")
        response = await client.client.post(
            f"{client.base_url}/delete-history", json={"ids": "not-a-list"}
        )
        print(f"✅ Correctly rejected: {response.status_code} - {response.json()['message']}")

    finally:
        await client.close()

    print()


async def main():
    """Run all examples."""
    print("🚀 Backup Vault - Basic Usage Examples")
    print("=" * 60)
    print()

    await example_1_file_round_trip()
    await example_2_history()
    await example_3_error_handling()


if __name__ == "__main__":
    asyncio.run(main())
