"""
Configuration for the EPIC Hub server

Values come from built-in defaults, then an optional YAML file named by
EPICHUB_CONFIG, then environment variables.
"""

import logging
import os
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3001
DEFAULT_MAX_BODY_BYTES = 16 * 1024 * 1024

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# config key -> environment variable
ENV_VARS = {
    'PORT': 'PORT',
    'HOST': 'EPICHUB_HOST',
    'UPLOADS_DIR': 'EPICHUB_UPLOADS_DIR',
    'CLIENT_DIR': 'EPICHUB_CLIENT_DIR',
    'MAX_CONTENT_LENGTH': 'EPICHUB_MAX_BODY_BYTES',
    'LOG_LEVEL': 'EPICHUB_LOG_LEVEL',
}

INT_KEYS = ('PORT', 'MAX_CONTENT_LENGTH')


def default_config():
    cwd = Path(os.getcwd())
    return {
        'PORT': DEFAULT_PORT,
        'HOST': '127.0.0.1',
        'UPLOADS_DIR': str(cwd / 'uploads'),
        'CLIENT_DIR': str(cwd / 'client'),
        'MAX_CONTENT_LENGTH': DEFAULT_MAX_BODY_BYTES,
        'LOG_LEVEL': 'INFO',
    }


def load_yaml_config(path):
    """Read a YAML mapping of config keys (case-insensitive)"""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return {str(k).upper(): v for k, v in data.items()}


def _coerce_int(key, value, fallback):
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid integer for {key}: {value!r}, using {fallback}")
        return fallback


def load_config(environ=None):
    """Build the effective configuration dict"""
    environ = os.environ if environ is None else environ
    config = default_config()

    config_file = environ.get('EPICHUB_CONFIG')
    if config_file:
        file_values = load_yaml_config(config_file)
        config.update({k: v for k, v in file_values.items() if k in config})

    for key, env_name in ENV_VARS.items():
        if environ.get(env_name):
            config[key] = environ[env_name]

    defaults = default_config()
    for key in INT_KEYS:
        config[key] = _coerce_int(key, config[key], defaults[key])
    config['LOG_LEVEL'] = str(config['LOG_LEVEL']).upper()

    return config


def configure_logging(level='INFO'):
    logging.basicConfig(level=level, format=LOG_FORMAT)
