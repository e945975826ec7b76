"""
Private key loading for signed bearer tokens

Keys may be supplied as a loaded ``cryptography`` key object, PEM text,
PEM or DER bytes, or the path of a file holding either encoding.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PEM_MARKER = b"-----BEGIN"

PrivateKeyInput = Union[RSAPrivateKey, str, bytes, os.PathLike]


class KeyErrorCodes:
    """Error codes for private key loading"""

    MISSING_PRIVATE_KEY = "MISSING_PRIVATE_KEY"
    INVALID_PRIVATE_KEY = "INVALID_PRIVATE_KEY"
    UNSUPPORTED_KEY_TYPE = "UNSUPPORTED_KEY_TYPE"
    KEY_FILE_ERROR = "KEY_FILE_ERROR"


def load_private_key(key: Optional[PrivateKeyInput], password: Optional[bytes] = None) -> RSAPrivateKey:
    """
    Load an RSA private key for RS256 token signing.

    Args:
        key: Key object, PEM text, PEM/DER bytes or a file path
        password: Optional password for encrypted keys

    Returns:
        RSAPrivateKey: The loaded key

    Raises:
        ConfigurationError: If the key is missing, unreadable or not RSA
    """
    if key is None or (isinstance(key, (str, bytes)) and not key):
        raise ConfigurationError("A private key is required for signed tokens", KeyErrorCodes.MISSING_PRIVATE_KEY)

    if isinstance(key, RSAPrivateKey):
        return key

    if isinstance(key, os.PathLike) or (isinstance(key, str) and "-----BEGIN" not in key):
        key = _read_key_file(key)
    elif isinstance(key, str):
        # Keys copied from environment variables often carry escaped newlines
        key = key.replace("\\n", "\n").encode("utf-8")

    if not isinstance(key, bytes):
        raise ConfigurationError(
            f"Unsupported private key input: {type(key).__name__}",
            KeyErrorCodes.UNSUPPORTED_KEY_TYPE
        )

    try:
        if PEM_MARKER in key:
            loaded = serialization.load_pem_private_key(key.strip(), password=password)
        else:
            loaded = serialization.load_der_private_key(key, password=password)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Private key could not be parsed: {e}", KeyErrorCodes.INVALID_PRIVATE_KEY) from e

    if not isinstance(loaded, RSAPrivateKey):
        raise ConfigurationError(
            f"Signed tokens require an RSA private key, got {type(loaded).__name__}",
            KeyErrorCodes.UNSUPPORTED_KEY_TYPE
        )
    return loaded


def _read_key_file(path: Union[str, os.PathLike]) -> bytes:
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read private key file: {e}",
            KeyErrorCodes.KEY_FILE_ERROR,
            {"path": str(path)}
        ) from e
    logger.debug(f"Loaded private key material from {path}")
    return data


def private_key_to_pem(key: RSAPrivateKey) -> bytes:
    """Serialise a private key as unencrypted PKCS#8 PEM."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )
