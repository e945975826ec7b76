"""
Configuration management for the apisign Python SDK
"""

from .client_config import (
    DEFAULT_API_BASE_URI,
    DEFAULT_REST_BASE_URI,
    DEFAULT_USER_AGENT,
    ENV_PREFIX,
    HttpConfig,
    ClientConfig,
    config_from_dict,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
)

__all__ = [
    'DEFAULT_API_BASE_URI',
    'DEFAULT_REST_BASE_URI',
    'DEFAULT_USER_AGENT',
    'ENV_PREFIX',
    'HttpConfig',
    'ClientConfig',
    'config_from_dict',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
]
