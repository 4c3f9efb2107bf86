"""Exception hierarchy for Backup Vault."""


class BackupVaultError(Exception):
    """Base exception for all Backup Vault errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(BackupVaultError):
    """Raised when configuration is invalid or missing."""


class ValidationError(BackupVaultError):
    """Raised when client input is missing or malformed."""


class InvalidObjectKeyError(ValidationError):
    """Raised when an object key cannot be mapped safely onto a backend."""


class ObjectNotFoundError(BackupVaultError):
    """Raised when the referenced object does not exist in storage."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Object not found: {key}", {"key": key})
        self.key = key


class StorageError(BackupVaultError):
    """Raised for any failure reported by the storage backend."""


class InternalError(BackupVaultError):
    """Raised for unexpected ledger or server faults."""
