"""Observability infrastructure for Backup Vault."""

from backup_vault.observability.logging import configure_logging, get_logger
from backup_vault.observability.metrics import metrics_registry, setup_metrics

__all__ = ["configure_logging", "get_logger", "metrics_registry", "setup_metrics"]
