"""Shared constants for vaultflow."""

from datetime import timedelta

TRANSACTION_QUEUE_KEY = "vaultflow_transaction_queue"
ACTIVE_TRANSACTION_KEY = "vaultflow_active_transaction"

CLEANUP_MAX_AGE = timedelta(hours=24)
DEFAULT_GAS_LIMIT = 200_000

# 10% on top of the required allowance
APPROVAL_BUFFER_PERCENT = 110

VALIDATION_FAILED_MESSAGE = "Step validation failed"
EXECUTION_FAILED_MESSAGE = "Step execution failed"
UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"
