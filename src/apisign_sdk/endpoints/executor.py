"""
Generic execution of described API operations

One EndpointExecutor runs one EndpointDescriptor against a client's
credentials and transport: resolve the path, pick the credential, encode
the request object, apply the credential, send, and decode the response
into the declared result type or the declared error type.
"""

import json
import logging
from typing import Any, Generic, Optional, TypeVar

from ..auth.collection import AuthCollection
from ..config.client_config import HttpConfig
from ..exceptions import ApiError, ResponseParseError, UnexpectedResponseError
from ..transport import (
    CONTENT_TYPE_FORM,
    CONTENT_TYPE_JSON,
    HttpTransport,
    TransportRequest,
    TransportResponse,
)
from .codec import decode_body, encode_json, encode_params
from .descriptor import BaseUri, EndpointDescriptor, Encoding

logger = logging.getLogger(__name__)

RequestT = TypeVar('RequestT')
ResultT = TypeVar('ResultT')

_ACCEPT_ANY = "*/*"


class EndpointExecutor(Generic[RequestT, ResultT]):
    """
    Runs one API operation.

    Executors hold no per-call state and may be shared between threads.
    """

    def __init__(
        self,
        descriptor: EndpointDescriptor,
        auth_collection: AuthCollection,
        transport: HttpTransport,
        http_config: Optional[HttpConfig] = None
    ):
        """
        Initialize the executor.

        Args:
            descriptor: The operation to run
            auth_collection: Credentials held by the calling client
            transport: Transport used to send requests
            http_config: Base URIs (defaults to the public hosts)
        """
        self.descriptor = descriptor
        self.auth_collection = auth_collection
        self.transport = transport
        self.http_config = http_config or HttpConfig()

    def execute(self, request: Optional[RequestT] = None) -> ResultT:
        """
        Execute the operation.

        Args:
            request: Request object (mapping, dataclass, or object with ``to_dict``)

        Returns:
            The decoded response, or None for operations without content

        Raises:
            ValidationError: If the path cannot be built from the request
            NoAcceptableAuthMethodError: If no held credential is acceptable
            ConfigurationError: If the chosen credential is incomplete
            TransportError: On network failure
            ApiError: The declared error type, for unsuccessful responses
            ResponseParseError: If a successful body cannot be decoded
        """
        descriptor = self.descriptor
        path = descriptor.resolve_path(request)
        auth_method = self.auth_collection.resolve(descriptor.auth_kinds)

        transport_request = auth_method.apply(self.build_request(path, request))
        logger.debug(
            f"Executing {descriptor.name}: {transport_request.method} {transport_request.url} "
            f"with {auth_method.kind.value} authentication"
        )

        response = self.transport.execute(transport_request)
        logger.debug(f"{descriptor.name} returned status {response.status_code}")
        return self.decode_response(response)

    __call__ = execute

    def base_uri(self) -> str:
        if self.descriptor.base_uri is BaseUri.REST:
            return self.http_config.rest_base_uri
        return self.http_config.api_base_uri

    def build_request(self, path: str, request: Any) -> TransportRequest:
        """Encode the request object into an unauthenticated transport request."""
        descriptor = self.descriptor
        headers = {"Accept": self._accept_header()}
        transport_request = TransportRequest(
            method=descriptor.method.value,
            url=f"{self.base_uri()}{path}",
            headers=headers,
        )

        if descriptor.encoding is Encoding.JSON:
            body = encode_json(request)
            if body is not None:
                headers["Content-Type"] = CONTENT_TYPE_JSON
                transport_request.body = body
        elif descriptor.encoding is Encoding.FORM:
            headers["Content-Type"] = CONTENT_TYPE_FORM
            transport_request.form = encode_params(request)
        elif descriptor.encoding is Encoding.QUERY:
            transport_request.query = encode_params(request)
        return transport_request

    def _accept_header(self) -> str:
        if self.descriptor.response_type in (None, bytes, str):
            return _ACCEPT_ANY
        return CONTENT_TYPE_JSON

    def decode_response(self, response: TransportResponse) -> ResultT:
        """
        Map a transport response to a result or raise the declared error.

        Raises:
            ApiError: The declared error type, or UnexpectedResponseError
                when the error body cannot be decoded as that type
            ResponseParseError: If a successful body cannot be decoded
        """
        if self.descriptor.is_success(response.status_code):
            try:
                return decode_body(response.body, self.descriptor.response_type)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                raise ResponseParseError(
                    f"Unable to parse response from {self.descriptor.name}: {e}",
                    response.status_code,
                    response.body
                ) from e

        raise self.decode_error(response)

    def decode_error(self, response: TransportResponse) -> ApiError:
        """Decode an unsuccessful response into the declared error type."""
        error_type = self.descriptor.error_type
        if not response.body.strip():
            return error_type(status_code=response.status_code, title=response.reason or None, raw_body=response.body)

        try:
            data = json.loads(response.body.decode("utf-8"))
            return error_type.from_dict(
                data,
                status_code=response.status_code,
                reason=response.reason or None,
                raw_body=response.body
            )
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.debug(f"Could not decode error body as {error_type.__name__}: {e}")
            return UnexpectedResponseError(
                status_code=response.status_code,
                title=response.reason or None,
                raw_body=response.body
            )


DynamicEndpoint = EndpointExecutor
