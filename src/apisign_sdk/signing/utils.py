"""
Utility functions for parameter signing

This module provides utility functions for the legacy signature protocol,
including parameter normalisation, value cleaning, digest calculation and
clock helpers.
"""

import hashlib
import hmac
import re
import time
import uuid
from typing import Mapping, Optional

from .types import (
    HashType,
    NullValuePolicy,
    ParamPairs,
    ParamsInput,
    SigningError,
    SigningErrorCodes,
)


_TIMESTAMP_PATTERN = re.compile(r"^-?[0-9]+$")

_HMAC_DIGESTS = {
    HashType.HMAC_MD5: hashlib.md5,
    HashType.HMAC_SHA1: hashlib.sha1,
    HashType.HMAC_SHA256: hashlib.sha256,
    HashType.HMAC_SHA512: hashlib.sha512,
}


def generate_nonce() -> str:
    """
    Generate a UUID v4 nonce.

    Returns:
        str: UUID v4 string
    """
    return str(uuid.uuid4())


def generate_timestamp() -> int:
    """
    Generate current Unix timestamp.

    Returns:
        int: Current Unix timestamp (seconds since epoch)
    """
    return int(time.time())


def to_param_pairs(params: Optional[ParamsInput]) -> ParamPairs:
    """
    Normalise a parameter set into an ordered list of (name, value) pairs.

    Mappings may hold single values or sequences of values; each value of a
    sequence becomes its own pair. Values that are not strings (numbers,
    booleans) are converted with ``str``; ``None`` is kept as an absent value.

    Args:
        params: List of pairs, mapping, or None

    Returns:
        list: Parameter pairs in input order

    Raises:
        SigningError: If a parameter name is not a non-empty string
    """
    if params is None:
        return []

    if isinstance(params, Mapping):
        items = []
        for name, value in params.items():
            if isinstance(value, (list, tuple)):
                items.extend((name, v) for v in value)
            else:
                items.append((name, value))
    else:
        items = list(params)

    pairs: ParamPairs = []
    for name, value in items:
        if not isinstance(name, str) or not name:
            raise SigningError(
                f"Parameter names must be non-empty strings, got {name!r}",
                SigningErrorCodes.INVALID_PARAMS,
                {"name": repr(name)}
            )
        pairs.append((name, _stringify(value)))
    return pairs


def _stringify(value) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def clean(value: str) -> str:
    """
    Replace characters that would break the canonical string layout.

    Args:
        value: Parameter name or value

    Returns:
        str: The value with every '=' and '&' replaced by '_'
    """
    return value.replace("=", "_").replace("&", "_")


def include_value(value: Optional[str], policy: NullValuePolicy) -> Optional[str]:
    """
    Apply the null-value policy to a single parameter value.

    Returns:
        The value to canonicalise, or None when the parameter must be skipped
    """
    if policy is NullValuePolicy.SKIP_BLANK:
        if value is None or not value.strip():
            return None
        return value
    if policy is NullValuePolicy.SKIP_NULL:
        return value
    return "" if value is None else value


def calculate_digest(canonical: str, secret: str, hash_type: HashType = HashType.MD5) -> str:
    """
    Compute the keyed digest of a canonical string.

    MD5 hashes the canonical string with the secret appended. The HMAC
    strategies use the secret as the key.

    Args:
        canonical: Canonical parameter string
        secret: Shared signing secret
        hash_type: Digest strategy

    Returns:
        str: Lowercase hex digest

    Raises:
        SigningError: If the secret is missing or the strategy is unknown
    """
    hash_type = coerce_hash_type(hash_type)
    if not secret:
        raise SigningError(
            "A signature secret is required to compute a digest",
            SigningErrorCodes.MISSING_SECRET
        )

    data = canonical.encode("utf-8")
    key = secret.encode("utf-8")

    if hash_type is HashType.MD5:
        return hashlib.md5(data + key).hexdigest()

    digestmod = _HMAC_DIGESTS.get(hash_type)
    if digestmod is None:
        raise SigningError(
            f"Unsupported hash type: {hash_type}",
            SigningErrorCodes.UNSUPPORTED_HASH,
            {"hash_type": str(hash_type)}
        )
    return hmac.new(key, data, digestmod).hexdigest()


def parse_timestamp(value: Optional[str]) -> Optional[int]:
    """
    Parse a decimal seconds-since-epoch timestamp.

    Returns:
        int or None: The timestamp, or None if absent or not an integer
    """
    if not isinstance(value, str) or not _TIMESTAMP_PATTERN.match(value.strip()):
        return None
    return int(value.strip())


def digests_match(expected: str, supplied: str) -> bool:
    """
    Compare two hex digests case-insensitively in constant time.
    """
    return hmac.compare_digest(expected.lower().encode("utf-8"), supplied.lower().encode("utf-8"))


def coerce_hash_type(value) -> HashType:
    """
    Accept a HashType, its value ("hmac-sha256") or its name ("HMAC_SHA256").

    Raises:
        SigningError: If the value names no known strategy
    """
    if isinstance(value, HashType):
        return value
    if isinstance(value, str):
        normalized = value.strip()
        for hash_type in HashType:
            if normalized.lower() == hash_type.value or normalized.upper() == hash_type.name:
                return hash_type
    raise SigningError(
        f"Unsupported hash type: {value}",
        SigningErrorCodes.UNSUPPORTED_HASH,
        {"available": [h.value for h in HashType]}
    )
