from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .constants import CLEANUP_MAX_AGE, DEFAULT_GAS_LIMIT


class StorageConfig(BaseModel):
    """Durable storage backing the transaction queue."""

    url: Optional[str] = None


class QueueConfig(BaseModel):
    """Transaction queue behaviour."""

    cleanup_max_age_hours: float = CLEANUP_MAX_AGE.total_seconds() / 3600
    inter_transaction_delay: float = Field(
        default=0.0, description="Seconds to wait between sends in execute_all"
    )
    default_gas_limit: int = DEFAULT_GAS_LIMIT


class FlowConfig(BaseModel):
    auto_advance: bool = True


class VaultflowConfig(BaseModel):
    """Top-level configuration model."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    flow: FlowConfig = Field(default_factory=FlowConfig)
    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> VaultflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to VAULTFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("VAULTFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = VaultflowConfig(**data)
    else:
        config = VaultflowConfig()

    env_storage_url = os.getenv("VAULTFLOW_STORAGE_URL")
    if env_storage_url:
        config.storage.url = env_storage_url
    return config
