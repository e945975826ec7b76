"""
Client wiring for the apisign Python SDK

ApiClient owns one transport, one AuthCollection and one HttpConfig, and
hands them to an EndpointExecutor for every described operation.
"""

import logging
from typing import Any, Optional

from .auth.collection import AuthCollection
from .auth.methods import (
    AuthMethod,
    ExchangedBearerAuth,
    SharedSecretAuth,
    SignedParamsAuth,
    SignedTokenAuth,
)
from .auth.token import CibaTokenSource, TokenSource
from .auth.types import AuthKind
from .config.client_config import ClientConfig, HttpConfig, load_config_from_env
from .endpoints.descriptor import EndpointDescriptor
from .endpoints.executor import EndpointExecutor
from .exceptions import ConfigurationError
from .logging_config import configure_logging
from .signing.types import Clock, HashType, NullValuePolicy
from .transport import HttpTransport, RequestsTransport
from .verification.verifier import InboundSignatureVerifier

logger = logging.getLogger(__name__)


def build_auth_collection(config: ClientConfig, clock: Optional[Clock] = None) -> AuthCollection:
    """
    Create auth methods for every fully configured credential kind.

    Args:
        config: Client configuration
        clock: Optional clock shared by the signing methods

    Returns:
        AuthCollection: Possibly empty collection
    """
    collection = AuthCollection()
    if config.has_signed_token:
        collection.add(SignedTokenAuth(config.application_id, config.private_key, clock=clock))
    if config.has_signed_params:
        collection.add(SignedParamsAuth(
            config.api_key,
            config.signature_secret,
            config.hash_type,
            clock=clock,
            null_value_policy=config.null_value_policy
        ))
    if config.has_shared_secret:
        collection.add(SharedSecretAuth(config.api_key, config.api_secret))
    return collection


class ApiClient:
    """
    Entry point for calling the API.

    Example:
        client = ApiClient(ClientConfig(api_key="key", api_secret="secret"))
        balance = client.execute(GET_BALANCE)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[HttpTransport] = None,
        auth_collection: Optional[AuthCollection] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration (defaults to an empty one)
            transport: Transport to use (defaults to RequestsTransport)
            auth_collection: Credentials to use instead of those derived from config
            clock: Optional clock for signing methods
        """
        self.config = config or ClientConfig()
        if self.config.logging_level:
            configure_logging(self.config.logging_level)

        http = self.config.http
        self.transport = transport or RequestsTransport(
            connect_timeout=http.connect_timeout,
            read_timeout=http.read_timeout,
            verify_ssl=http.verify_ssl,
            user_agent=http.user_agent,
        )
        self.auth_collection = auth_collection if auth_collection is not None else \
            build_auth_collection(self.config, clock)

        logger.info(
            f"Initialized apisign client for {http.api_base_uri} "
            f"with auth kinds: {', '.join(kind.value for kind in self.auth_collection.kinds()) or 'none'}"
        )

    @classmethod
    def from_env(cls, transport: Optional[HttpTransport] = None) -> 'ApiClient':
        """Create a client from ``APISIGN_*`` environment variables."""
        return cls(load_config_from_env(), transport=transport)

    @property
    def http_config(self) -> HttpConfig:
        return self.config.http

    def add_auth(self, method: AuthMethod) -> 'ApiClient':
        """Add or replace a credential."""
        self.auth_collection.add(method)
        return self

    def use_token_source(self, token_source: TokenSource, refresh_skew_seconds: float = 0.0) -> ExchangedBearerAuth:
        """Enable exchanged bearer tokens obtained from ``token_source``."""
        method = ExchangedBearerAuth(token_source, refresh_skew_seconds)
        self.auth_collection.add(method)
        return method

    def use_ciba(self, login_hint: str, scope: str = "openid", refresh_skew_seconds: float = 0.0) -> ExchangedBearerAuth:
        """
        Enable exchanged bearer tokens from the backchannel flow.

        The exchange requests themselves authenticate with the configured
        signed token credential.

        Raises:
            NoAcceptableAuthMethodError: If no signed token credential is configured
        """
        signed_token = self.auth_collection.get(AuthKind.SIGNED_TOKEN)
        source = CibaTokenSource(self.transport, signed_token, self.http_config.api_base_uri, login_hint, scope)
        return self.use_token_source(source, refresh_skew_seconds)

    def endpoint(self, descriptor: EndpointDescriptor) -> EndpointExecutor:
        """Bind a descriptor to this client's credentials and transport."""
        return EndpointExecutor(descriptor, self.auth_collection, self.transport, self.http_config)

    def execute(self, descriptor: EndpointDescriptor, request: Any = None) -> Any:
        """Run a described operation once."""
        return self.endpoint(descriptor).execute(request)

    def signature_verifier(self, max_age_seconds: Optional[int] = None) -> InboundSignatureVerifier:
        """
        Create a verifier for inbound callbacks signed with this account's secret.

        Raises:
            ConfigurationError: If no signature secret is configured
        """
        if not self.config.signature_secret:
            raise ConfigurationError("Verifying callbacks requires a signature secret", "MISSING_CREDENTIALS")
        kwargs = {} if max_age_seconds is None else {"max_age_seconds": max_age_seconds}
        return InboundSignatureVerifier(
            self.config.signature_secret,
            self.config.hash_type,
            null_value_policy=self.config.null_value_policy,
            **kwargs
        )

    def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> 'ApiClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class ClientBuilder:
    """
    Builder for creating clients with fluent API
    """

    def __init__(self):
        self._settings = {}
        self._http = HttpConfig()
        self._transport: Optional[HttpTransport] = None
        self._token_source: Optional[TokenSource] = None
        self._clock: Optional[Clock] = None

    def api_key(self, api_key: str) -> 'ClientBuilder':
        self._settings["api_key"] = api_key
        return self

    def api_secret(self, api_secret: str) -> 'ClientBuilder':
        self._settings["api_secret"] = api_secret
        return self

    def signature_secret(self, signature_secret: str, hash_type: HashType = HashType.MD5) -> 'ClientBuilder':
        """
        Set the shared secret used for signed requests.

        Args:
            signature_secret: Signing secret configured for the account
            hash_type: Digest strategy configured for the account

        Returns:
            ClientBuilder: Self for method chaining
        """
        self._settings["signature_secret"] = signature_secret
        self._settings["hash_type"] = hash_type
        return self

    def null_value_policy(self, policy: NullValuePolicy) -> 'ClientBuilder':
        self._settings["null_value_policy"] = policy
        return self

    def application(self, application_id: str, private_key) -> 'ClientBuilder':
        """
        Set the application credential used for signed tokens.

        Args:
            application_id: Application identifier
            private_key: RSA private key (object, PEM/DER, or file path)

        Returns:
            ClientBuilder: Self for method chaining
        """
        self._settings["application_id"] = application_id
        self._settings["private_key"] = private_key
        return self

    def base_uri(self, base_uri: str) -> 'ClientBuilder':
        self._http = self._http.with_base_uri(base_uri)
        return self

    def http_config(self, http_config: HttpConfig) -> 'ClientBuilder':
        self._http = http_config
        return self

    def transport(self, transport: HttpTransport) -> 'ClientBuilder':
        self._transport = transport
        return self

    def token_source(self, token_source: TokenSource) -> 'ClientBuilder':
        self._token_source = token_source
        return self

    def clock(self, clock: Clock) -> 'ClientBuilder':
        self._clock = clock
        return self

    def build(self) -> ApiClient:
        """
        Build the client.

        Returns:
            ApiClient: Configured client

        Raises:
            ValidationError: If a setting is invalid
            ConfigurationError: If a private key cannot be loaded
        """
        config = ClientConfig(http=self._http, **self._settings)
        collection = build_auth_collection(config, self._clock)
        if self._token_source is not None:
            collection.add(ExchangedBearerAuth(self._token_source))
        return ApiClient(config, transport=self._transport, auth_collection=collection, clock=self._clock)
