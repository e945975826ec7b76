"""
apisign Python SDK - Authentication Module

Credential strategies, the collection that resolves one per call, and the
token sources behind exchanged bearer tokens.
"""

from .types import AuthKind, sort_by_rank

from .methods import (
    AuthMethod,
    SharedSecretAuth,
    SignedParamsAuth,
    SignedTokenAuth,
    ExchangedBearerAuth,
)

from .collection import AuthCollection

from .token import (
    AccessToken,
    TokenSource,
    CibaTokenSource,
    CIBA_GRANT_TYPE,
)

__all__ = [
    'AuthKind',
    'sort_by_rank',
    'AuthMethod',
    'SharedSecretAuth',
    'SignedParamsAuth',
    'SignedTokenAuth',
    'ExchangedBearerAuth',
    'AuthCollection',
    'AccessToken',
    'TokenSource',
    'CibaTokenSource',
    'CIBA_GRANT_TYPE',
]
