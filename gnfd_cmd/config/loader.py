"""
Configuration management and loading.

Handles the client configuration file and its environment override.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

import yaml

CONFIG_ENV_VAR = "GNFD_CMD_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".gnfd-cmd" / "config.yaml"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for one command invocation."""
    rpc_addr: str
    chain_id: str
    signer_url: str
    sp_endpoint: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self):
        """Validate timeout is positive."""
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


def resolve_config_path(path: Optional[str] = None) -> Path:
    """Pick the config file: explicit path, then environment, then default."""
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_client_config(path: Optional[str] = None) -> ClientConfig:
    """Load and validate client configuration from YAML file.

    Strict validation ensures a typo never sends a fee-bearing
    transaction to an unintended chain.

    Args:
        path: Path to YAML configuration file, see resolve_config_path

    Returns:
        Validated ClientConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = resolve_config_path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {config_path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_keys = {'rpc_addr', 'chain_id', 'signer_url', 'sp_endpoint', 'timeout_seconds'}
    unknown_keys = set(raw_config.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    rpc_addr = _required_url(raw_config, 'rpc_addr')
    signer_url = _required_url(raw_config, 'signer_url')

    chain_id = raw_config.get('chain_id')
    if not isinstance(chain_id, str) or not chain_id.strip():
        raise ValueError("Missing required 'chain_id'")

    sp_endpoint = raw_config.get('sp_endpoint')
    if sp_endpoint is not None:
        sp_endpoint = _validate_url(sp_endpoint, 'sp_endpoint')

    timeout = raw_config.get('timeout_seconds', DEFAULT_TIMEOUT_SECONDS)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError("'timeout_seconds' must be > 0")

    return ClientConfig(
        rpc_addr=rpc_addr,
        chain_id=chain_id.strip(),
        signer_url=signer_url,
        sp_endpoint=sp_endpoint,
        timeout_seconds=float(timeout)
    )


def _required_url(data: Dict, key: str) -> str:
    if key not in data or data[key] is None:
        raise ValueError(f"Missing required '{key}'")
    return _validate_url(data[key], key)


def _validate_url(value, key: str) -> str:
    """Validate an http(s) URL and strip any trailing slash.

    Raises:
        ValueError: If the value is not an http or https URL
    """
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")

    parsed = urlparse(value.strip())
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ValueError(f"'{key}' must be an http(s) URL, got {value!r}")
    return value.strip().rstrip('/')
