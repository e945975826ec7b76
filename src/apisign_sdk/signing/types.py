"""
Type definitions for parameter signing

This module provides the enumerations, reserved wire names and data classes
shared by the outbound signer and the inbound webhook verifier.
"""

from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum

from ..exceptions import SigningError


# Reserved parameter names; callers must never reuse these for domain data
PARAM_API_KEY = "api_key"
PARAM_API_SECRET = "api_secret"
PARAM_SIGNATURE = "sig"
PARAM_TIMESTAMP = "timestamp"

RESERVED_PARAMS = frozenset({PARAM_API_KEY, PARAM_API_SECRET, PARAM_SIGNATURE, PARAM_TIMESTAMP})

# Replay window applied to inbound signatures when none is given
DEFAULT_MAX_AGE_SECONDS = 5 * 60


class HashType(str, Enum):
    """Digest strategies understood by the remote service"""
    MD5 = "md5"
    HMAC_MD5 = "hmac-md5"
    HMAC_SHA1 = "hmac-sha1"
    HMAC_SHA256 = "hmac-sha256"
    HMAC_SHA512 = "hmac-sha512"


class NullValuePolicy(str, Enum):
    """
    How parameters without a usable value enter the canonical string.

    SKIP_BLANK matches the legacy service: absent, empty and whitespace-only
    values are left out entirely. SKIP_NULL leaves out only absent values.
    INCLUDE_EMPTY canonicalises absent values as empty strings.
    """
    SKIP_BLANK = "skip-blank"
    SKIP_NULL = "skip-null"
    INCLUDE_EMPTY = "include-empty"


ParamValue = Optional[str]
ParamPair = Tuple[str, ParamValue]
ParamPairs = List[ParamPair]
# Accepted parameter inputs: a list of pairs, or a mapping whose values are
# either single values or lists of values (multimap)
ParamsInput = Union[
    Sequence[Tuple[str, ParamValue]],
    Mapping[str, Union[ParamValue, Sequence[ParamValue]]],
]
Clock = Callable[[], int]


@dataclass(frozen=True)
class SignedEnvelope:
    """
    Result of signing a parameter set.

    Attributes:
        params: The original parameters followed by the timestamp and digest
        signature: Lowercase hex digest
        timestamp: Seconds since the epoch used for the signature
        canonical: Canonical string the digest was computed over
    """
    params: Tuple[ParamPair, ...]
    signature: str
    timestamp: int
    canonical: str = field(repr=False, default="")

    def as_pairs(self) -> ParamPairs:
        """Return the signed parameters as a mutable list of pairs."""
        return list(self.params)

    def as_dict(self) -> Dict[str, ParamValue]:
        """Return the signed parameters as a dict; repeated names keep the last value."""
        return {name: value for name, value in self.params}


class SigningErrorCodes:
    """Standard error codes for signing operations"""

    # Configuration errors
    MISSING_SECRET = "MISSING_SECRET"
    UNSUPPORTED_HASH = "UNSUPPORTED_HASH"

    # Request errors
    INVALID_PARAMS = "INVALID_PARAMS"

    # Signing errors
    TOKEN_GENERATION_FAILED = "TOKEN_GENERATION_FAILED"


__all__ = [
    'PARAM_API_KEY',
    'PARAM_API_SECRET',
    'PARAM_SIGNATURE',
    'PARAM_TIMESTAMP',
    'RESERVED_PARAMS',
    'DEFAULT_MAX_AGE_SECONDS',
    'HashType',
    'NullValuePolicy',
    'SignedEnvelope',
    'SigningError',
    'SigningErrorCodes',
    'ParamPair',
    'ParamPairs',
    'ParamsInput',
    'Clock',
]
