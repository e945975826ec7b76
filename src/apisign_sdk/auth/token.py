"""
Bearer tokens and the sources that issue them

A TokenSource performs whatever out-of-band exchange the provider requires
and hands back an AccessToken. ExchangedBearerAuth caches the result and
asks again only once the token goes stale.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Protocol, runtime_checkable

from ..exceptions import TokenExchangeError
from ..transport import CONTENT_TYPE_FORM, HttpTransport, TransportRequest, TransportResponse

if TYPE_CHECKING:
    from .methods import AuthMethod

logger = logging.getLogger(__name__)

CIBA_GRANT_TYPE = "urn:openid:params:grant-type:ciba"
CIBA_AUTHORIZE_PATH = "/oauth2/bc-authorize"
CIBA_TOKEN_PATH = "/oauth2/token"

# OAuth error codes that mean "ask again later"
PENDING_ERRORS = frozenset({"authorization_pending", "slow_down"})
SLOW_DOWN_INCREMENT_SECONDS = 5


@dataclass(frozen=True)
class AccessToken:
    """
    An issued bearer token.

    Attributes:
        access_token: The bearer credential
        expires_in: Lifetime in seconds reported by the issuer
        issued_at: Epoch seconds at which the token was received
        token_type: Token type, normally "Bearer"
        refresh_token: Optional refresh credential
    """
    access_token: str = field(repr=False)
    expires_in: float
    issued_at: float
    token_type: str = "Bearer"
    refresh_token: Optional[str] = field(default=None, repr=False)

    @property
    def expires_at(self) -> float:
        return self.issued_at + self.expires_in

    def is_fresh(self, now: float, skew_seconds: float = 0.0) -> bool:
        """True while ``now`` is before the expiry minus ``skew_seconds``."""
        return now < self.expires_at - skew_seconds

    @classmethod
    def from_dict(cls, data: Dict[str, Any], issued_at: float) -> 'AccessToken':
        """
        Build a token from an OAuth token response.

        Raises:
            TokenExchangeError: If the response carries no access token
        """
        token = data.get("access_token")
        if not token:
            raise TokenExchangeError("Token response did not contain an access_token")
        try:
            expires_in = float(data.get("expires_in", 0))
        except (TypeError, ValueError) as e:
            raise TokenExchangeError(f"Invalid expires_in in token response: {data.get('expires_in')!r}") from e
        return cls(
            access_token=token,
            expires_in=expires_in,
            issued_at=issued_at,
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token"),
        )


@runtime_checkable
class TokenSource(Protocol):
    """Protocol for collaborators able to obtain a fresh bearer token"""

    def exchange(self) -> AccessToken:
        """Perform the exchange and return the new token"""
        ...


class CibaTokenSource:
    """
    Token source for the backchannel (CIBA) out-of-band flow.

    The flow runs in two steps: an authorization request returns a pending
    ``auth_req_id``, which is then polled against the token endpoint until
    the user completes the out-of-band step, the request expires, or the
    server refuses it.
    """

    def __init__(
        self,
        transport: HttpTransport,
        auth_method: 'AuthMethod',
        base_uri: str,
        login_hint: str,
        scope: str = "openid",
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None
    ):
        """
        Initialize the token source.

        Args:
            transport: Transport used for both steps
            auth_method: Credential applied to the exchange requests (normally SignedTokenAuth)
            base_uri: API base URI hosting the OAuth endpoints
            login_hint: Identifier of the user who must approve the request
            scope: Requested OAuth scope
            clock: Callable returning epoch seconds
            sleep: Callable used to wait between polls
        """
        if not login_hint:
            raise ValueError("login_hint is required for the backchannel flow")
        self.transport = transport
        self.auth_method = auth_method
        self.base_uri = base_uri.rstrip("/")
        self.login_hint = login_hint
        self.scope = scope
        self.clock = clock or time.time
        self.sleep = sleep or time.sleep

    def exchange(self) -> AccessToken:
        """
        Run the backchannel flow to completion.

        Returns:
            AccessToken: The issued token

        Raises:
            TokenExchangeError: If authorization is refused or expires
            TransportError: On network failure
        """
        started = self.clock()
        authorization = self._post(CIBA_AUTHORIZE_PATH, [("login_hint", self.login_hint), ("scope", self.scope)])
        auth_req_id = authorization.get("auth_req_id")
        if not auth_req_id:
            raise TokenExchangeError("Authorization response did not contain an auth_req_id")

        try:
            expires_in = float(authorization.get("expires_in", 0))
            interval = float(authorization.get("interval", 2))
        except (TypeError, ValueError) as e:
            raise TokenExchangeError(
                f"Invalid expires_in or interval in authorization response: "
                f"{authorization.get('expires_in')!r}, {authorization.get('interval')!r}"
            ) from e
        deadline = started + expires_in
        logger.info(f"Backchannel authorization pending, polling every {interval}s for up to {expires_in}s")

        while True:
            response = self._execute(CIBA_TOKEN_PATH, [("grant_type", CIBA_GRANT_TYPE), ("auth_req_id", auth_req_id)])
            data = _decode(response)
            if response.ok:
                return AccessToken.from_dict(data, issued_at=self.clock())

            error = data.get("error")
            if error not in PENDING_ERRORS:
                raise _exchange_error(response, data)
            if error == "slow_down":
                interval += SLOW_DOWN_INCREMENT_SECONDS
            if self.clock() + interval > deadline:
                raise TokenExchangeError(
                    "Backchannel authorization expired before it was approved",
                    response.status_code,
                    "expired_token"
                )
            self.sleep(interval)

    def _post(self, path: str, form) -> Dict[str, Any]:
        response = self._execute(path, form)
        data = _decode(response)
        if not response.ok:
            raise _exchange_error(response, data)
        return data

    def _execute(self, path: str, form) -> TransportResponse:
        request = TransportRequest(
            method="POST",
            url=f"{self.base_uri}{path}",
            headers={"Content-Type": CONTENT_TYPE_FORM, "Accept": "application/json"},
            form=list(form),
        )
        return self.transport.execute(self.auth_method.apply(request))


def _decode(response: TransportResponse) -> Dict[str, Any]:
    if not response.body:
        return {}
    try:
        data = json.loads(response.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TokenExchangeError(
            f"Token endpoint returned a malformed body (status {response.status_code})",
            response.status_code
        ) from e
    return data if isinstance(data, dict) else {}


def _exchange_error(response: TransportResponse, data: Dict[str, Any]) -> TokenExchangeError:
    error = data.get("error")
    description = data.get("error_description") or data.get("detail") or response.reason
    logger.warning(f"Token exchange failed with status {response.status_code}: {error}")
    return TokenExchangeError(
        f"Token exchange failed with status {response.status_code}: {error or description}",
        response.status_code,
        error,
        {"description": description}
    )
