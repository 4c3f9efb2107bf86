#!/usr/bin/env python3
"""Development server runner for Backup Vault.

This script provides an easy way to start the development server with
appropriate configuration for local development and testing.
"""

import os
import sys
from pathlib import Path


def check_dependencies():
    """Check if required dependencies are available."""
    try:
        import backup_vault  # noqa: F401
        print("✅ Backup Vault package found")
        return True
    except ImportError:
        print("❌ Backup Vault not installed")
        print("   Run: pip install -e .[dev]")
        return False


def setup_environment():
    """Set up environment variables for development."""
    backend = os.environ.setdefault("BACKUP_VAULT_STORAGE_BACKEND", "local")

    if backend == "local":
        storage_path = os.environ.setdefault(
            "BACKUP_VAULT_FILE_STORAGE_PATH", "./dev_file_storage"
        )
        print(f"📁 Using local storage: {storage_path}")
    else:
        bucket = os.environ.get("BACKUP_VAULT_S3_BUCKET", "databackupandstoragesystem")
        endpoint = os.environ.get("BACKUP_VAULT_S3_ENDPOINT_URL", "(AWS default)")
        print(f"🪣 Using S3 bucket: {bucket} at {endpoint}")

    os.environ.setdefault("BACKUP_VAULT_LOG_LEVEL", "DEBUG")
    os.environ.setdefault("BACKUP_VAULT_JSON_LOGS", "false")
    os.environ.setdefault("BACKUP_VAULT_ENABLE_METRICS", "true")

    print(f"📊 Log level: {os.environ['BACKUP_VAULT_LOG_LEVEL']}")


def check_storage():
    """Check the configured storage backend is usable."""
    if os.environ.get("BACKUP_VAULT_STORAGE_BACKEND") != "local":
        has_credentials = os.getenv("BACKUP_VAULT_S3_ACCESS_KEY_ID") or os.getenv(
            "AWS_ACCESS_KEY_ID"
        )
        if not has_credentials:
            print("⚠️  No S3 credentials in environment, relying on the AWS credential chain")
        return True

    storage_path = Path(os.environ["BACKUP_VAULT_FILE_STORAGE_PATH"])
    try:
        storage_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"❌ Cannot create storage directory {storage_path}: {e}")
        return False

    if not os.access(storage_path, os.W_OK):
        print(f"❌ Storage directory {storage_path} is not writable")
        return False

    print(f"✅ Storage directory ready ({len(list(storage_path.rglob('*')))} entries)")
    return True


def main():
    """Main entry point."""
    print("🚀 Backup Vault Development Server")
    print("=" * 50)
    print()

    if not check_dependencies():
        return 1

    setup_environment()
    print()

    if not check_storage():
        print("   Please fix the issues above and try again")
        return 1

    port = int(os.environ.get("BACKUP_VAULT_PORT", "5000"))

    print()
    print("🎯 Starting Backup Vault...")
    print(f"   Server will be available at: http://localhost:{port}")
    print(f"   Health check: http://localhost:{port}/health")
    print(f"   API docs: http://localhost:{port}/docs")
    print()
    print("📝 Logs will appear below:")
    print("-" * 50)

    try:
        import uvicorn

        uvicorn.run(
            "backup_vault.main:app",
            host="0.0.0.0",
            port=port,
            log_level="debug",
            reload=True,  # Auto-reload on code changes
            reload_dirs=["src"],
        )

    except KeyboardInterrupt:
        print("\n\n👋 Shutting down Backup Vault...")
    except Exception as e:
        print(f"\n❌ Error starting server: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
