"""
apisign Python SDK - Request Signing Module

Canonical parameter signing used for legacy signed requests and for
verifying inbound webhook callbacks.
"""

from .types import (
    PARAM_API_KEY,
    PARAM_API_SECRET,
    PARAM_SIGNATURE,
    PARAM_TIMESTAMP,
    RESERVED_PARAMS,
    DEFAULT_MAX_AGE_SECONDS,
    HashType,
    NullValuePolicy,
    SignedEnvelope,
    SigningError,
    SigningErrorCodes,
)

from .codec import (
    SigningCodec,
    VerificationFailure,
    sign_params,
    verify_params,
)

from .utils import (
    generate_nonce,
    generate_timestamp,
    to_param_pairs,
    calculate_digest,
    coerce_hash_type,
    parse_timestamp,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'SigningCodec',
    'VerificationFailure',
    'sign_params',
    'verify_params',
    # Types
    'HashType',
    'NullValuePolicy',
    'SignedEnvelope',
    'SigningError',
    'SigningErrorCodes',
    # Reserved wire names
    'PARAM_API_KEY',
    'PARAM_API_SECRET',
    'PARAM_SIGNATURE',
    'PARAM_TIMESTAMP',
    'RESERVED_PARAMS',
    'DEFAULT_MAX_AGE_SECONDS',
    # Utilities
    'generate_nonce',
    'generate_timestamp',
    'to_param_pairs',
    'calculate_digest',
    'coerce_hash_type',
    'parse_timestamp',
]
