"""
Declarative description of a single API operation
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, FrozenSet, Iterable, Mapping, Optional, Tuple, Type, Union
from urllib.parse import quote

from ..auth.types import AuthKind
from ..exceptions import ApiError, ValidationError

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


class HttpMethod(str, Enum):
    """HTTP methods used by API operations"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class Encoding(str, Enum):
    """Where the request object is serialised"""
    QUERY = "query"
    FORM = "form"
    JSON = "json"
    NONE = "none"


class BaseUri(str, Enum):
    """Which configured host an operation lives on"""
    API = "api"
    REST = "rest"


PathTemplate = Union[str, Callable[[Any], str]]


@dataclass(frozen=True)
class EndpointDescriptor:
    """
    Static metadata for one API operation.

    ``path`` is either a string, optionally holding ``{field}`` placeholders
    filled from the request object, or a callable receiving the request
    object. ``auth_kinds`` given as a list or tuple states the endpoint's
    preference order; given as a set it is ordered by precedence rank.

    Attributes:
        method: HTTP method
        path: Path template relative to the base URI
        auth_kinds: Acceptable credential kinds
        encoding: How the request object is serialised
        response_type: Type decoded from a successful body (None for no content)
        error_type: ApiError subclass decoded from an unsuccessful body
        base_uri: Configured host the path is relative to
        success_statuses: Status codes counted as success (default: any 2xx)
        name: Operation name used in log records
    """
    method: HttpMethod
    path: PathTemplate
    auth_kinds: Union[Tuple[AuthKind, ...], FrozenSet[AuthKind]]
    encoding: Encoding = Encoding.JSON
    response_type: Optional[type] = None
    error_type: Type[ApiError] = ApiError
    base_uri: BaseUri = BaseUri.API
    success_statuses: Optional[FrozenSet[int]] = None
    name: str = field(default="", compare=False)

    def __post_init__(self):
        object.__setattr__(self, "method", HttpMethod(self.method.upper()))
        object.__setattr__(self, "encoding", Encoding(self.encoding))
        object.__setattr__(self, "base_uri", BaseUri(self.base_uri))

        kinds = self.auth_kinds
        if isinstance(kinds, (str, AuthKind)):
            kinds = [kinds]
        if isinstance(kinds, (set, frozenset)):
            normalized: Iterable[AuthKind] = frozenset(AuthKind.parse(kind) for kind in kinds)
        else:
            normalized = tuple(AuthKind.parse(kind) for kind in kinds)
        if not normalized:
            raise ValidationError("An endpoint must accept at least one auth kind")
        object.__setattr__(self, "auth_kinds", normalized)

        if self.success_statuses is not None:
            object.__setattr__(self, "success_statuses", frozenset(self.success_statuses))
        if not (isinstance(self.error_type, type) and issubclass(self.error_type, ApiError)):
            raise ValidationError("error_type must be an ApiError subclass")
        if isinstance(self.path, str) and not self.path.startswith("/"):
            raise ValidationError(f"Endpoint path must start with '/': {self.path}")
        if not self.name:
            object.__setattr__(self, "name", f"{self.method.value} {self.path if isinstance(self.path, str) else '<dynamic>'}")

    def resolve_path(self, request: Any = None) -> str:
        """
        Compute the request path for a request object.

        Placeholder values are percent-encoded so that an identifier can
        never change the shape of the path.

        Raises:
            ValidationError: If a placeholder has no usable value
        """
        if callable(self.path):
            path = self.path(request)
            if not isinstance(path, str) or not path.startswith("/"):
                raise ValidationError(f"Path function returned an invalid path: {path!r}")
            return path

        def substitute(match) -> str:
            name = match.group(1)
            value = _field(request, name)
            if value is None or str(value).strip() == "":
                raise ValidationError(
                    f"Missing value for path parameter '{name}'",
                    "INVALID_PATH_PARAMETER",
                    {"parameter": name}
                )
            return quote(str(value), safe="")

        return _PLACEHOLDER.sub(substitute, self.path)

    def is_success(self, status_code: int) -> bool:
        if self.success_statuses is not None:
            return status_code in self.success_statuses
        return 200 <= status_code < 300


def _field(request: Any, name: str) -> Any:
    if isinstance(request, Mapping):
        return request.get(name)
    return getattr(request, name, None)
