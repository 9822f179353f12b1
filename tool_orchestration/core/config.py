# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Orchestration configuration - single source of truth.
YAML is king. Env vars only for the config path and log level.
"""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tool_orchestration.core.errors import ConfigurationError


DEFAULT_CONFIG_PATH = "/app/configs/orchestration.yaml"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable engine configuration.
    All values from YAML. No hidden state.
    """

    # -- Scheduling --
    max_concurrent_executions: int = 4
    base_backoff_ms: int = 1000
    load_builtin_workflows: bool = False

    # -- HTTP --
    rpc_url: str = "http://localhost:8002/orchestration"
    http_timeout: float = 30.0
    service_host: str = "0.0.0.0"
    service_port: int = 8000

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "json"


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.
    """
    if not Path(path).exists():
        return Config(log_level=os.getenv("LOG_LEVEL", "INFO"))

    try:
        with open(path) as f:
            y = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config: {e}", config_file=path)

    if not isinstance(y, dict):
        raise ConfigurationError("Config root must be a mapping", config_file=path)

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    config = Config(
        # Scheduling
        max_concurrent_executions=get(y, "scheduler", "max_concurrent_executions", default=4),
        base_backoff_ms=get(y, "retry", "base_backoff_ms") or 1000,
        load_builtin_workflows=bool(get(y, "scheduler", "load_builtin_workflows", default=False)),

        # HTTP
        rpc_url=get(y, "rpc", "url") or "http://localhost:8002/orchestration",
        http_timeout=get(y, "rpc", "timeout") or 30.0,
        service_host=get(y, "api", "host") or "0.0.0.0",
        service_port=get(y, "api", "port") or 8000,

        # Logging
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level") or "INFO",
        log_format=get(y, "logging", "format") or "json",
    )

    if config.max_concurrent_executions < 1:
        raise ConfigurationError(
            "scheduler.max_concurrent_executions must be at least 1",
            config_file=path
        )
    if config.log_format not in ("json", "text"):
        raise ConfigurationError(
            f"logging.format must be 'json' or 'text', got {config.log_format!r}",
            config_file=path
        )

    return config


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("TOOL_ORCHESTRATION_CONFIG", DEFAULT_CONFIG_PATH)
        _config = load_config(config_path)
    return _config


def reload_config() -> Config:
    """Force reload configuration."""
    global _config
    _config = None
    return get_config()
