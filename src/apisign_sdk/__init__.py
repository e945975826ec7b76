"""
apisign Python SDK
Credential resolution, request signing and endpoint execution for the API
"""

from .version import __version__
from .logging_config import configure_logging
from .exceptions import (
    ApiSignSDKError,
    ValidationError,
    ConfigurationError,
    NoAcceptableAuthMethodError,
    ConfigLoadError,
    SigningError,
    TransportError,
    ResponseParseError,
    ApiError,
    UnexpectedResponseError,
    TokenExchangeError,
)
from .signing import (
    SigningCodec,
    SignedEnvelope,
    HashType,
    NullValuePolicy,
    VerificationFailure,
    sign_params,
    verify_params,
)
from .auth import (
    AuthKind,
    AuthMethod,
    SharedSecretAuth,
    SignedParamsAuth,
    SignedTokenAuth,
    ExchangedBearerAuth,
    AuthCollection,
    AccessToken,
    TokenSource,
    CibaTokenSource,
)
from .transport import (
    TransportRequest,
    TransportResponse,
    HttpTransport,
    RequestsTransport,
)
from .endpoints import (
    BaseUri,
    Encoding,
    EndpointDescriptor,
    HttpMethod,
    EndpointExecutor,
    DynamicEndpoint,
)
from .verification import (
    InboundSignatureVerifier,
    VerificationResult,
    WebhookVerificationConfig,
    WebhookVerificationMiddleware,
    extract_params,
)
from .config import (
    HttpConfig,
    ClientConfig,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
)
from .client import ApiClient, ClientBuilder, build_auth_collection

__all__ = [
    '__version__',
    'configure_logging',
    # Exceptions
    'ApiSignSDKError',
    'ValidationError',
    'ConfigurationError',
    'NoAcceptableAuthMethodError',
    'ConfigLoadError',
    'SigningError',
    'TransportError',
    'ResponseParseError',
    'ApiError',
    'UnexpectedResponseError',
    'TokenExchangeError',
    # Signing
    'SigningCodec',
    'SignedEnvelope',
    'HashType',
    'NullValuePolicy',
    'VerificationFailure',
    'sign_params',
    'verify_params',
    # Authentication
    'AuthKind',
    'AuthMethod',
    'SharedSecretAuth',
    'SignedParamsAuth',
    'SignedTokenAuth',
    'ExchangedBearerAuth',
    'AuthCollection',
    'AccessToken',
    'TokenSource',
    'CibaTokenSource',
    # Transport
    'TransportRequest',
    'TransportResponse',
    'HttpTransport',
    'RequestsTransport',
    # Endpoints
    'BaseUri',
    'Encoding',
    'EndpointDescriptor',
    'HttpMethod',
    'EndpointExecutor',
    'DynamicEndpoint',
    # Verification
    'InboundSignatureVerifier',
    'VerificationResult',
    'WebhookVerificationConfig',
    'WebhookVerificationMiddleware',
    'extract_params',
    # Configuration
    'HttpConfig',
    'ClientConfig',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
    # Client
    'ApiClient',
    'ClientBuilder',
    'build_auth_collection',
]
