"""Core logic for Backup Vault."""
