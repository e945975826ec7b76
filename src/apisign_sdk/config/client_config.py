"""
Client configuration for the apisign Python SDK

Provides the HTTP and credential settings a client is built from, and
loaders reading them from JSON text, JSON files, or environment variables.
"""

import json
import logging
import os
import platform
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlparse

from ..exceptions import ConfigLoadError, SigningError, ValidationError
from ..signing.types import HashType, NullValuePolicy
from ..signing.utils import coerce_hash_type
from ..version import __version__

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URI = "https://api.nexmo.com"
DEFAULT_REST_BASE_URI = "https://rest.nexmo.com"
DEFAULT_USER_AGENT = f"apisign-python-sdk/{__version__} python/{platform.python_version()}"

ENV_PREFIX = "APISIGN_"


def _validate_base_uri(name: str, value: str) -> str:
    if not value:
        raise ValidationError(f"{name} cannot be empty")
    value = value.rstrip("/")
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(f"Invalid {name} format: {value}")
    return value


@dataclass
class HttpConfig:
    """Hosts and transport settings used by a client."""
    api_base_uri: str = DEFAULT_API_BASE_URI
    rest_base_uri: str = DEFAULT_REST_BASE_URI
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    verify_ssl: bool = True
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        """Validate HTTP configuration."""
        self.api_base_uri = _validate_base_uri("api_base_uri", self.api_base_uri)
        self.rest_base_uri = _validate_base_uri("rest_base_uri", self.rest_base_uri)

        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ValidationError("Timeouts must be positive")

    def with_base_uri(self, base_uri: str) -> 'HttpConfig':
        """Return a copy in which every base URI points at ``base_uri``."""
        return replace(self, api_base_uri=base_uri, rest_base_uri=base_uri)

    def versioned_api_base_uri(self, version: str) -> str:
        return f"{self.api_base_uri}/{version}"


@dataclass
class ClientConfig:
    """
    Credentials and settings for an ApiClient.

    Every credential is optional; only the kinds that are fully configured
    become auth methods. Credential fields are excluded from ``repr``.
    """
    http: HttpConfig = field(default_factory=HttpConfig)
    api_key: Optional[str] = None
    api_secret: Optional[str] = field(default=None, repr=False)
    signature_secret: Optional[str] = field(default=None, repr=False)
    hash_type: HashType = HashType.MD5
    null_value_policy: NullValuePolicy = NullValuePolicy.SKIP_BLANK
    application_id: Optional[str] = None
    private_key: Optional[Union[str, bytes]] = field(default=None, repr=False)
    logging_level: Optional[str] = None

    def __post_init__(self):
        """Validate and normalise settings."""
        try:
            self.hash_type = coerce_hash_type(self.hash_type)
        except SigningError as e:
            raise ValidationError(str(e.message), "INVALID_HASH_TYPE") from e

        try:
            self.null_value_policy = NullValuePolicy(self.null_value_policy)
        except ValueError as e:
            raise ValidationError(f"Unknown null value policy: {self.null_value_policy}") from e

        if self.logging_level is not None:
            level = str(self.logging_level).upper()
            if not isinstance(logging.getLevelName(level), int):
                raise ValidationError(f"Unknown logging level: {self.logging_level}")
            self.logging_level = level

    @property
    def has_shared_secret(self) -> bool:
        return bool(self.api_key and self.api_secret)

    @property
    def has_signed_params(self) -> bool:
        return bool(self.api_key and self.signature_secret)

    @property
    def has_signed_token(self) -> bool:
        return bool(self.application_id and self.private_key)


def config_from_dict(data: Mapping[str, Any]) -> ClientConfig:
    """
    Build a ClientConfig from a decoded mapping.

    Raises:
        ConfigLoadError: If the mapping has an invalid shape or values
    """
    if not isinstance(data, Mapping):
        raise ConfigLoadError("Configuration must be a JSON object", "INVALID_FORMAT")

    try:
        http = HttpConfig(**dict(data.get("http") or {}))
        settings = {key: value for key, value in data.items() if key != "http"}
        return ClientConfig(http=http, **settings)
    except (TypeError, ValueError, ValidationError) as e:
        raise ConfigLoadError(f"Invalid configuration format: {e}", "INVALID_FORMAT") from e


def load_config_from_json(json_string: str) -> ClientConfig:
    """Load client configuration from a JSON string."""
    try:
        data = json.loads(json_string)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR") from e
    return config_from_dict(data)


def load_config_from_file(file_path: Union[str, Path]) -> ClientConfig:
    """Load client configuration from a JSON file."""
    try:
        with open(Path(file_path), 'r', encoding='utf-8') as f:
            json_string = f.read()
    except OSError as e:
        raise ConfigLoadError(f"Failed to read configuration file: {e}", "FILE_ERROR") from e
    logger.debug(f"Loaded configuration from {file_path}")
    return load_config_from_json(json_string)


_ENV_SETTINGS = {
    "API_KEY": "api_key",
    "API_SECRET": "api_secret",
    "SIGNATURE_SECRET": "signature_secret",
    "HASH_TYPE": "hash_type",
    "NULL_VALUE_POLICY": "null_value_policy",
    "APPLICATION_ID": "application_id",
    "PRIVATE_KEY": "private_key",
    "LOG_LEVEL": "logging_level",
}

_ENV_HTTP_SETTINGS = {
    "API_BASE_URI": ("api_base_uri", str),
    "REST_BASE_URI": ("rest_base_uri", str),
    "CONNECT_TIMEOUT": ("connect_timeout", float),
    "READ_TIMEOUT": ("read_timeout", float),
    "VERIFY_SSL": ("verify_ssl", lambda value: value.strip().lower() not in ("0", "false", "no", "off")),
    "USER_AGENT": ("user_agent", str),
}


def load_config_from_env(environ: Optional[Mapping[str, str]] = None, prefix: str = ENV_PREFIX) -> ClientConfig:
    """
    Load client configuration from environment variables.

    Recognised variables are ``<prefix>API_KEY``, ``API_SECRET``,
    ``SIGNATURE_SECRET``, ``HASH_TYPE``, ``NULL_VALUE_POLICY``,
    ``APPLICATION_ID``, ``PRIVATE_KEY`` (PEM text or a file path),
    ``LOG_LEVEL``, ``API_BASE_URI``, ``REST_BASE_URI``, ``CONNECT_TIMEOUT``,
    ``READ_TIMEOUT``, ``VERIFY_SSL`` and ``USER_AGENT``.
    """
    environ = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    for suffix, name in _ENV_SETTINGS.items():
        value = environ.get(prefix + suffix)
        if value:
            data[name] = value

    http: Dict[str, Any] = {}
    for suffix, (name, convert) in _ENV_HTTP_SETTINGS.items():
        value = environ.get(prefix + suffix)
        if value:
            try:
                http[name] = convert(value)
            except ValueError as e:
                raise ConfigLoadError(f"Invalid value for {prefix + suffix}: {value}", "INVALID_FORMAT") from e
    if http:
        data["http"] = http

    return config_from_dict(data)
