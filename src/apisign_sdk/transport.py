"""
HTTP transport for apisign API calls

This module provides the transport request/response value types that auth
methods decorate, and a ``requests`` based transport that executes them.
Retries are deliberately absent: a failed exchange surfaces as a
TransportError and the caller decides whether to try again.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Protocol, Tuple, runtime_checkable

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from .exceptions import TransportError
from .signing.types import ParamPairs

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"


@dataclass
class TransportRequest:
    """
    An outgoing HTTP request before execution.

    Query parameters and form parameters are held as ordered pairs so that
    request signing can see (and extend) the full parameter set. A request
    carries either ``form`` parameters or a raw ``body``, never both.

    Attributes:
        method: HTTP method name
        url: Absolute URL without query string
        headers: Request headers
        query: Query string parameters
        form: Form-encoded body parameters, or None
        body: Raw body bytes (JSON requests), or None
    """
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    query: ParamPairs = field(default_factory=list)
    form: Optional[ParamPairs] = None
    body: Optional[bytes] = None

    def __post_init__(self):
        self.method = self.method.upper()
        if self.form is not None and self.body is not None:
            raise ValueError("A transport request cannot carry both form parameters and a raw body")

    @property
    def is_json(self) -> bool:
        """True when the body is a serialised JSON document"""
        content_type = self.header("Content-Type") or ""
        return self.body is not None and content_type.startswith(CONTENT_TYPE_JSON)

    @property
    def is_form(self) -> bool:
        return self.form is not None

    def header(self, name: str) -> Optional[str]:
        """Look up a header case-insensitively."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def copy(self) -> 'TransportRequest':
        """Return a copy whose headers and parameter lists can be changed freely."""
        return replace(
            self,
            headers=dict(self.headers),
            query=list(self.query),
            form=list(self.form) if self.form is not None else None
        )

    def with_header(self, name: str, value: str) -> 'TransportRequest':
        request = self.copy()
        for key in [k for k in request.headers if k.lower() == name.lower()]:
            del request.headers[key]
        request.headers[name] = value
        return request

    def with_params(self, params: ParamPairs) -> 'TransportRequest':
        """
        Return a copy with ``params`` replacing the signable parameter set.

        The signable set is the form body for form requests and the query
        string otherwise.
        """
        request = self.copy()
        if request.form is not None:
            request.form = list(params)
        else:
            request.query = list(params)
        return request

    @property
    def params(self) -> ParamPairs:
        """The signable parameter set (form body or query string)"""
        return list(self.form) if self.form is not None else list(self.query)


@dataclass
class TransportResponse:
    """
    The raw result of executing a TransportRequest.

    Attributes:
        status_code: HTTP status code
        reason: HTTP reason phrase
        headers: Response headers (case-insensitive)
        body: Raw response body
    """
    status_code: int
    reason: str = ""
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""

    def __post_init__(self):
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self):
        """Decode the body as JSON; raises ValueError on malformed content."""
        return json.loads(self.body.decode("utf-8"))


@runtime_checkable
class HttpTransport(Protocol):
    """Protocol for transports able to execute a TransportRequest"""

    def execute(self, request: TransportRequest) -> TransportResponse:
        """Execute the request; raise TransportError on network failure"""
        ...


class RequestsTransport:
    """
    Transport backed by a ``requests.Session``.

    Connect and read timeouts are applied to every request. Network
    failures are wrapped in TransportError with the original exception
    chained.
    """

    def __init__(
        self,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the transport.

        Args:
            connect_timeout: Seconds allowed to establish a connection
            read_timeout: Seconds allowed between bytes of the response
            verify_ssl: Whether to verify TLS certificates
            user_agent: Optional User-Agent header sent with every request
            session: Pre-configured session to use instead of a new one
        """
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.verify_ssl = verify_ssl
        self.session = session or self._create_session(user_agent)

    @property
    def timeout(self) -> Tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)

    def _create_session(self, user_agent: Optional[str]) -> requests.Session:
        """Create HTTP session without automatic retries."""
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        if user_agent:
            session.headers.update({'User-Agent': user_agent})
        return session

    def execute(self, request: TransportRequest) -> TransportResponse:
        """
        Execute a transport request.

        Args:
            request: Request to send

        Returns:
            TransportResponse: Status, headers and body of the response

        Raises:
            TransportError: On timeouts, connection failures and other network errors
        """
        data = request.body if request.body is not None else request.form

        try:
            logger.debug(f"Making {request.method} request to {request.url}")
            response = self.session.request(
                request.method,
                request.url,
                params=request.query or None,
                data=data,
                headers=request.headers,
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(
                f"Request timeout after {self.timeout} seconds",
                "TIMEOUT",
                {"url": request.url}
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {e}", "CONNECTION_ERROR", {"url": request.url}) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}", "TRANSPORT_ERROR", {"url": request.url}) from e

        logger.debug(f"Received status {response.status_code} from {request.url}")
        return TransportResponse(
            status_code=response.status_code,
            reason=response.reason or "",
            headers=CaseInsensitiveDict(response.headers),
            body=response.content or b"",
        )

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
