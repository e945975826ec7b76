"""
Exception classes for the apisign Python SDK
"""

from typing import Optional, Dict, Any, Iterable, List


class ApiSignSDKError(Exception):
    """Base exception for all apisign SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(ApiSignSDKError):
    """Exception raised for validation failures"""
    pass


class ConfigurationError(ApiSignSDKError):
    """Exception raised when the client is missing credentials or is misconfigured"""

    def __init__(self, message: str, error_code: str = "CONFIGURATION_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class NoAcceptableAuthMethodError(ConfigurationError):
    """
    Exception raised when no configured auth method satisfies an endpoint.

    Attributes:
        acceptable_kinds: Display names of the kinds the endpoint accepts
        configured_kinds: Display names of the kinds held by the client
    """

    def __init__(self, acceptable_kinds: Iterable[str], configured_kinds: Iterable[str]):
        self.acceptable_kinds: List[str] = list(acceptable_kinds)
        self.configured_kinds: List[str] = list(configured_kinds)
        message = (
            "No acceptable authentication type could be found. "
            f"Acceptable types are: {', '.join(self.acceptable_kinds)}. "
            f"Supplied types were: {', '.join(self.configured_kinds)}"
        )
        super().__init__(
            message,
            "NO_ACCEPTABLE_AUTH_METHOD",
            {
                "acceptable_kinds": self.acceptable_kinds,
                "configured_kinds": self.configured_kinds,
            }
        )


class ConfigLoadError(ConfigurationError):
    """Exception raised when configuration cannot be read or parsed"""
    pass


class SigningError(ApiSignSDKError):
    """
    Error raised when an outbound request cannot be signed.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """

    def __init__(self, message: str, code: str = "SIGNING_FAILED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code, details)
        self.code = code

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"

    def __repr__(self) -> str:
        return f"SigningError(message='{self.message}', code='{self.code}', details={self.details})"


class TransportError(ApiSignSDKError):
    """Exception raised for network failures, timeouts and connection resets"""

    def __init__(self, message: str, error_code: str = "TRANSPORT_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ResponseParseError(ApiSignSDKError):
    """Exception raised when a successful response body does not match the expected shape"""

    def __init__(self, message: str, http_status: int = 0, body: Optional[bytes] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "RESPONSE_PARSE_ERROR", details)
        self.http_status = http_status
        self.body = body


class ApiError(ApiSignSDKError):
    """
    A transported but unsuccessful API response.

    The body is expected to follow RFC 7807 ("problem details"); subclasses
    represent the error families of individual APIs and may declare extra
    fields in ``extra_fields``.
    """

    extra_fields: tuple = ()

    def __init__(
        self,
        status_code: int = 0,
        title: Optional[str] = None,
        detail: Optional[str] = None,
        type: Optional[str] = None,
        instance: Optional[str] = None,
        raw_body: Optional[bytes] = None,
        **extra: Any
    ):
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type
        self.instance = instance
        self.raw_body = raw_body
        for name in self.extra_fields:
            setattr(self, name, extra.pop(name, None))
        super().__init__(self._format_message(), "API_ERROR", extra or None)

    def _format_message(self) -> str:
        if self.status_code > 0 and self.title is not None:
            message = f"{self.status_code} ({self.title})"
            if self.detail is not None:
                message += f": {self.detail}"
            return message
        return self.title or self.detail or f"API request failed with status {self.status_code}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], status_code: int = 0,
                  reason: Optional[str] = None, raw_body: Optional[bytes] = None) -> 'ApiError':
        """
        Build an error from a decoded JSON body.

        Unknown fields are ignored. When the body carries no title the HTTP
        reason phrase is used instead.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Error body must be a JSON object, got {type(data).__name__}")

        extra = {name: data.get(name) for name in cls.extra_fields}
        title = data.get("title")
        return cls(
            status_code=status_code,
            title=title if title is not None else reason,
            detail=data.get("detail"),
            type=data.get("type"),
            instance=data.get("instance"),
            raw_body=raw_body,
            **extra
        )

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return (
            self.status_code == other.status_code and
            self.title == other.title and
            self.detail == other.detail and
            self.type == other.type and
            self.instance == other.instance
        )

    def __hash__(self) -> int:
        return hash((type(self), self.status_code, self.title, self.detail, self.type, self.instance))


class UnexpectedResponseError(ApiError):
    """Error response whose body could not be decoded as the declared error type"""

    def _format_message(self) -> str:
        body = (self.raw_body or b"").decode("utf-8", errors="replace")
        return f"Unexpected response with status {self.status_code}: {body}"


class TokenExchangeError(ApiSignSDKError):
    """
    Exception raised when a bearer token exchange is refused or times out.

    Attributes:
        status_code: HTTP status of the failing step, 0 if none
        error: OAuth error code reported by the server, if any
    """

    def __init__(self, message: str, status_code: int = 0, error: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "TOKEN_EXCHANGE_FAILED", details)
        self.status_code = status_code
        self.error = error
