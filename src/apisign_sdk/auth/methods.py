"""
Authentication methods

Each AuthMethod knows how to attach one kind of credential to an outgoing
TransportRequest. ``apply`` never mutates its argument; it returns a
decorated copy. Credential material is never written to logs or reprs.
"""

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple, Union

import jwt

from ..crypto.keys import PrivateKeyInput, load_private_key
from ..exceptions import ConfigurationError, TokenExchangeError
from ..signing.codec import SigningCodec
from ..signing.types import (
    PARAM_API_KEY,
    PARAM_API_SECRET,
    RESERVED_PARAMS,
    Clock,
    HashType,
    NullValuePolicy,
    SigningError,
    SigningErrorCodes,
)
from ..signing.utils import generate_nonce
from ..transport import TransportRequest
from .token import AccessToken, TokenSource
from .types import AuthKind

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "RS256"


class AuthMethod(ABC):
    """
    Base class for credential strategies.

    Subclasses set ``kind``; the set of subclasses is closed and mirrors
    the members of AuthKind.
    """

    kind: AuthKind

    @property
    def precedence_rank(self) -> int:
        """Lower ranks are preferred when several methods are acceptable."""
        return self.kind.rank

    @abstractmethod
    def apply(self, request: TransportRequest) -> TransportRequest:
        """
        Return a copy of ``request`` carrying this credential.

        Raises:
            ConfigurationError: If required credential material is missing
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value})"


def _require(value: Any, name: str, kind: AuthKind) -> None:
    if value is None or (isinstance(value, str) and not value):
        raise ConfigurationError(
            f"{kind.value} authentication requires {name}",
            "MISSING_CREDENTIALS",
            {"auth_kind": kind.value, "missing": name}
        )


def _without(params, names) -> list:
    return [(name, value) for name, value in params if name not in names]


def _insert_json_fields(body: bytes, fields) -> Optional[bytes]:
    """
    Insert fields at the start of a serialised JSON object.

    Returns None when the body is not a JSON object.
    """
    try:
        text = body.decode("utf-8").lstrip()
    except UnicodeDecodeError:
        return None
    if not text.startswith("{"):
        return None

    inner = text[1:].lstrip()
    members = ",".join(f"{json.dumps(name)}:{json.dumps(value)}" for name, value in fields)
    separator = "" if inner.startswith("}") else ","
    return ("{" + members + separator + inner).encode("utf-8")


class SharedSecretAuth(AuthMethod):
    """
    API key and secret sent as plain parameters.

    Form and query requests receive ``api_key`` and ``api_secret``
    parameters. JSON requests receive them as the first members of the body
    object.
    """

    kind = AuthKind.SHARED_SECRET

    def __init__(self, api_key: str, api_secret: str):
        self.api_key = api_key
        self.api_secret = api_secret

    def apply(self, request: TransportRequest) -> TransportRequest:
        _require(self.api_key, "an API key", self.kind)
        _require(self.api_secret, "an API secret", self.kind)

        fields = [(PARAM_API_KEY, self.api_key), (PARAM_API_SECRET, self.api_secret)]
        if request.is_json:
            body = _insert_json_fields(request.body, fields)
            if body is not None:
                decorated = request.copy()
                decorated.body = body
                return decorated

        params = _without(request.params, {PARAM_API_KEY, PARAM_API_SECRET})
        return request.with_params(params + fields)

    def __repr__(self) -> str:
        return f"SharedSecretAuth(api_key={self.api_key!r})"


class SignedParamsAuth(AuthMethod):
    """
    API key plus a digest of every request parameter.

    The signature is computed after the domain parameters are in place, so
    it covers the full parameter set that is transmitted.
    """

    kind = AuthKind.SIGNED_PARAMS

    def __init__(
        self,
        api_key: str,
        signature_secret: str,
        hash_type: HashType = HashType.MD5,
        clock: Optional[Clock] = None,
        null_value_policy: NullValuePolicy = NullValuePolicy.SKIP_BLANK
    ):
        """
        Initialize the method.

        Args:
            api_key: Account API key
            signature_secret: Shared signing secret (not the API secret)
            hash_type: Digest strategy configured for the account
            clock: Callable returning epoch seconds
            null_value_policy: Treatment of absent values while signing
        """
        self.api_key = api_key
        self.signature_secret = signature_secret
        self.codec = SigningCodec(hash_type, null_value_policy, clock)

    def apply(self, request: TransportRequest) -> TransportRequest:
        _require(self.api_key, "an API key", self.kind)
        _require(self.signature_secret, "a signature secret", self.kind)

        params = _without(request.params, RESERVED_PARAMS)
        params.append((PARAM_API_KEY, self.api_key))
        envelope = self.codec.sign(params, self.signature_secret)

        pairs = envelope.as_pairs()
        if self.codec.null_value_policy is NullValuePolicy.INCLUDE_EMPTY:
            # absent values were signed as empty strings and must be sent as such
            pairs = [(name, "" if value is None else value) for name, value in pairs]
        return request.with_params(pairs)

    def __repr__(self) -> str:
        return f"SignedParamsAuth(api_key={self.api_key!r}, hash_type={self.codec.hash_type.value})"


class SignedTokenAuth(AuthMethod):
    """
    Application JWT sent as a bearer token.

    A new token is minted for every request.
    """

    kind = AuthKind.SIGNED_TOKEN

    def __init__(
        self,
        application_id: str,
        private_key: Optional[PrivateKeyInput],
        clock: Optional[Clock] = None,
        ttl_seconds: Optional[int] = None,
        claims: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the method.

        Args:
            application_id: Application the token is issued for
            private_key: RSA private key (object, PEM/DER, or file path)
            clock: Callable returning epoch seconds
            ttl_seconds: Optional lifetime; adds an ``exp`` claim
            claims: Extra claims added to every token

        Raises:
            ConfigurationError: If the private key cannot be loaded
        """
        self.application_id = application_id
        self._private_key = load_private_key(private_key) if private_key is not None else None
        self.clock = clock or (lambda: int(time.time()))
        self.ttl_seconds = ttl_seconds
        self.claims = dict(claims or {})

    def generate_token(self, extra_claims: Optional[Dict[str, Any]] = None) -> str:
        """
        Mint a signed token.

        Args:
            extra_claims: Claims added to (or overriding) the standard set

        Returns:
            str: Encoded JWT

        Raises:
            ConfigurationError: If the application id or key is missing
            SigningError: If the token cannot be encoded
        """
        _require(self.application_id, "an application id", self.kind)
        _require(self._private_key, "a private key", self.kind)

        issued_at = int(self.clock())
        payload: Dict[str, Any] = {
            "iat": issued_at,
            "jti": generate_nonce(),
            "application_id": self.application_id,
        }
        if self.ttl_seconds:
            payload["exp"] = issued_at + int(self.ttl_seconds)
        payload.update(self.claims)
        payload.update(extra_claims or {})

        try:
            return jwt.encode(payload, self._private_key, algorithm=JWT_ALGORITHM)
        except (jwt.exceptions.PyJWTError, TypeError, ValueError) as e:
            raise SigningError(
                f"Failed to generate signed token: {e}",
                SigningErrorCodes.TOKEN_GENERATION_FAILED
            ) from e

    def apply(self, request: TransportRequest) -> TransportRequest:
        return request.with_header("Authorization", f"Bearer {self.generate_token()}")

    def __repr__(self) -> str:
        return f"SignedTokenAuth(application_id={self.application_id!r})"


ExchangeResult = Union[AccessToken, Tuple[str, float]]


class ExchangedBearerAuth(AuthMethod):
    """
    Bearer token obtained from a TokenSource and cached until it goes stale.

    At most one exchange runs at a time per instance. Callers arriving while
    an exchange is in flight wait for it and reuse its token.
    """

    kind = AuthKind.EXCHANGED_BEARER

    def __init__(
        self,
        token_source: TokenSource,
        refresh_skew_seconds: float = 0.0,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the method.

        Args:
            token_source: Collaborator performing the exchange
            refresh_skew_seconds: Treat tokens as stale this long before expiry
            clock: Callable returning epoch seconds
        """
        self.token_source = token_source
        self.refresh_skew_seconds = refresh_skew_seconds
        self.clock = clock or time.time
        self._token: Optional[AccessToken] = None
        self._lock = threading.Lock()

    @property
    def cached_token(self) -> Optional[AccessToken]:
        return self._token

    def current_token(self) -> AccessToken:
        """
        Return a fresh token, exchanging for a new one when needed.

        Raises:
            ConfigurationError: If no token source is configured
            TokenExchangeError: If the exchange fails or yields a stale token
        """
        _require(self.token_source, "a token source", self.kind)

        token = self._token
        if token is not None and token.is_fresh(self.clock(), self.refresh_skew_seconds):
            return token

        with self._lock:
            token = self._token
            if token is not None and token.is_fresh(self.clock(), self.refresh_skew_seconds):
                return token

            logger.debug("Exchanging for a new bearer token")
            token = self._exchange()
            if not token.is_fresh(self.clock(), self.refresh_skew_seconds):
                raise TokenExchangeError("Token source returned a token that is already expired")
            self._token = token
            return token

    def _exchange(self) -> AccessToken:
        try:
            result: ExchangeResult = self.token_source.exchange()
        except Exception as e:
            logger.warning(f"Bearer token exchange failed: {type(e).__name__}")
            raise

        if isinstance(result, AccessToken):
            return result
        access_token, expires_in = result
        return AccessToken(access_token=access_token, expires_in=float(expires_in), issued_at=self.clock())

    def invalidate(self) -> None:
        """Drop the cached token so the next call exchanges again."""
        with self._lock:
            self._token = None

    def apply(self, request: TransportRequest) -> TransportRequest:
        token = self.current_token()
        return request.with_header("Authorization", f"Bearer {token.access_token}")
