from __future__ import annotations

import json
import os
import pathlib
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from payloadtools.csvpipe.defaults import default_template
from payloadtools.errors import ConfigError
from payloadtools.schemas.models import AppConfig

CONFIG_ENV = "PAYLOADTOOLS_CONFIG"
DEFAULT_CONFIG_NAME = "payloadtools.yaml"

# env var -> key under the sftp section
SFTP_ENV_OVERRIDES = {
    "PAYLOADTOOLS_SFTP_HOST": "host",
    "PAYLOADTOOLS_SFTP_PORT": "port",
    "PAYLOADTOOLS_SFTP_USER": "username",
    "PAYLOADTOOLS_SFTP_PASSWORD": "password",
    "PAYLOADTOOLS_SFTP_KEY": "private_key_path",
    "PAYLOADTOOLS_SFTP_REMOTE_PATH": "remote_path",
}


def _config_path(path: Optional[pathlib.Path], environ) -> Optional[pathlib.Path]:
    if path is not None:
        return pathlib.Path(path).expanduser()
    env = environ.get(CONFIG_ENV)
    if env:
        return pathlib.Path(env).expanduser()
    local = pathlib.Path(DEFAULT_CONFIG_NAME)
    return local if local.is_file() else None


def _read_yaml(path: pathlib.Path) -> Dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def load_config(path: Optional[pathlib.Path] = None, environ=None) -> AppConfig:
    """
    Build the app config from an optional YAML file plus env overrides.

    Lookup order for the file: explicit ``path``, ``$PAYLOADTOOLS_CONFIG``,
    then ``./payloadtools.yaml``. No file at all gives the defaults.
    """
    environ = os.environ if environ is None else environ
    cfg_path = _config_path(path, environ)
    data = _read_yaml(cfg_path) if cfg_path is not None else {}

    sftp = dict(data.get("sftp") or {})
    for env_key, field in SFTP_ENV_OVERRIDES.items():
        if environ.get(env_key):
            sftp[field] = environ[env_key]
    data["sftp"] = sftp or None

    try:
        return AppConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def init_config(base_dir: str) -> str:
    """Write a starter config, an example mapping and the default template."""
    base = pathlib.Path(base_dir)
    base.mkdir(parents=True, exist_ok=True)
    (base / DEFAULT_CONFIG_NAME).write_text(yaml.safe_dump({
        'sftp': {
            'host': 'sftp.example.com',
            'port': 22,
            'username': 'YOUR_USER',
            'remote_path': '/incoming',
        },
        'output': {'indent': 2, 'combined': False},
        'mappings_dir': '.payloadtools/mappings',
        'history_path': '.payloadtools/history.jsonl',
    }, sort_keys=False))
    (base / 'mapping.yaml').write_text(yaml.safe_dump({
        'version': '1',
        'name': 'example',
        'bindings': [
            {'source': 'Email', 'path': 'disbursements[0].payor_email'},
            {'source': 'Amount', 'path': 'disbursements[0].payees[0].amount'},
            {'static': 'live', 'path': 'server'},
        ],
    }, sort_keys=False))
    (base / 'template.json').write_text(json.dumps(default_template(), indent=2) + "\n")
    return str(base)
