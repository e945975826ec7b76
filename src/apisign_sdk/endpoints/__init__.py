"""
apisign Python SDK - Endpoint Module

Declarative operation descriptors and the generic executor that runs them.
"""

from .descriptor import (
    BaseUri,
    Encoding,
    EndpointDescriptor,
    HttpMethod,
)

from .executor import (
    DynamicEndpoint,
    EndpointExecutor,
)

from .codec import (
    decode_body,
    encode_json,
    encode_params,
    to_dict,
)

__all__ = [
    'BaseUri',
    'Encoding',
    'EndpointDescriptor',
    'HttpMethod',
    'DynamicEndpoint',
    'EndpointExecutor',
    'decode_body',
    'encode_json',
    'encode_params',
    'to_dict',
]
