#!/usr/bin/env python3
"""
Audit configuration.

Values are layered: defaults, then an optional YAML file, then environment
variables (a ``.env`` file is loaded first if present), then explicit
overrides such as command-line flags.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, TypedDict

import yaml
from dotenv import load_dotenv

from .errors import ConfigError


class AuditConfig(TypedDict, total=False):
    """TypedDict for audit configuration."""
    component_id: str
    truenas_host: str
    truenas_port: Optional[int]
    use_https: bool
    api_key: Optional[str]
    ssl_verify: bool
    timeout: float
    parent_dataset: str
    cleanup: bool
    dry_run: bool
    log_level: str
    artifact_bucket: Optional[str]
    s3_endpoint: Optional[str]
    s3_access_key: Optional[str]
    s3_secret_key: Optional[str]


DEFAULT_CONFIG: AuditConfig = {
    'truenas_host': 'truenas.local',
    'truenas_port': None,
    'use_https': True,
    'api_key': None,
    'ssl_verify': False,
    'timeout': 60.0,
    'parent_dataset': 'tank/k8s-csi',
    'cleanup': False,
    'dry_run': True,
    'log_level': 'INFO',
    'artifact_bucket': None,
    's3_endpoint': None,
    's3_access_key': None,
    's3_secret_key': None
}

# Environment variable -> config key
ENV_VARS: Dict[str, str] = {
    'TRUENAS_HOST': 'truenas_host',
    'TRUENAS_PORT': 'truenas_port',
    'TRUENAS_API_KEY': 'api_key',
    'TRUENAS_PARENT_DATASET': 'parent_dataset',
    'AUDIT_ARTIFACT_BUCKET': 'artifact_bucket',
    'S3_ENDPOINT': 's3_endpoint',
    'S3_ACCESS_KEY': 's3_access_key',
    'S3_SECRET_KEY': 's3_secret_key',
}


def load_config_file(path: str | Path) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Raises:
        ConfigError: If the file cannot be read or is not a mapping
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot load config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

    unknown = set(data) - set(DEFAULT_CONFIG) - {'component_id'}
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {', '.join(sorted(unknown))}")

    return data


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect config values from environment variables."""
    environ = os.environ if environ is None else environ
    return {key: environ[var] for var, key in ENV_VARS.items() if environ.get(var)}


def validate_config(config: AuditConfig) -> AuditConfig:
    """
    Normalise and validate a configuration.

    Returns:
        The validated configuration (port and timeout coerced to numbers)

    Raises:
        ConfigError: If a value is out of range
    """
    if not (parent := str(config.get('parent_dataset') or '').strip('/')):
        raise ConfigError("parent_dataset must not be empty")
    config['parent_dataset'] = parent

    if (port := config.get('truenas_port')) is not None:
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid TrueNAS port: {port!r}") from None
        if not 0 < port < 65536:
            raise ConfigError(f"TrueNAS port out of range: {port}")
        config['truenas_port'] = port

    try:
        timeout = float(config.get('timeout', DEFAULT_CONFIG['timeout']))
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout: {config.get('timeout')!r}") from None
    if timeout <= 0:
        raise ConfigError(f"Timeout must be positive, got {timeout}")
    config['timeout'] = timeout

    return config


def load_config(config_file: Optional[str | Path] = None, env_file: Optional[str | Path] = None,
                overrides: Optional[Mapping[str, Any]] = None,
                environ: Optional[Mapping[str, str]] = None) -> AuditConfig:
    """
    Build the effective configuration.

    Args:
        config_file: Optional YAML file
        env_file: Optional ``.env`` file loaded into the process environment
        overrides: Values that win over everything else; None values are ignored
        environ: Environment to read instead of ``os.environ``

    Returns:
        Validated AuditConfig
    """
    if environ is None:
        load_dotenv(dotenv_path=env_file)

    merged: AuditConfig = DEFAULT_CONFIG.copy()
    if config_file:
        merged |= load_config_file(config_file)
    merged |= config_from_env(environ)
    merged |= {k: v for k, v in (overrides or {}).items() if v is not None}

    return validate_config(merged)
