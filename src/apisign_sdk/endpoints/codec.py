"""
Request encoding and response decoding for endpoint calls

Request objects may be mappings, dataclasses, or objects exposing
``to_dict()``. Response types may be None (no content), ``str``, ``bytes``,
``dict``, a dataclass, or any class exposing ``from_dict()``. Unknown
response fields are ignored.
"""

import dataclasses
import json
from typing import Any, Dict, Mapping, Optional

from ..signing.types import ParamPairs
from ..signing.utils import to_param_pairs


def to_dict(obj: Any) -> Dict[str, Any]:
    """
    Convert a request object to a dict, dropping fields whose value is None.

    Raises:
        TypeError: If the object has no dict representation
    """
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        data = obj.to_dict()
    elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        data = dataclasses.asdict(obj)
    elif isinstance(obj, Mapping):
        data = dict(obj)
    else:
        raise TypeError(f"Cannot encode request of type {type(obj).__name__}")
    return {key: value for key, value in data.items() if value is not None}


def encode_json(obj: Any) -> Optional[bytes]:
    """Serialise a request object as a JSON body; None yields no body."""
    if obj is None:
        return None
    if isinstance(obj, bytes):
        return obj
    if isinstance(obj, str):
        return obj.encode("utf-8")
    payload = obj if isinstance(obj, list) else to_dict(obj)
    return json.dumps(payload, separators=(",", ":"), default=_json_default).encode("utf-8")


def encode_params(obj: Any) -> ParamPairs:
    """Flatten a request object into (name, value) pairs for query or form encoding."""
    return to_param_pairs(to_dict(obj))


def _json_default(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def decode_body(body: bytes, response_type: Optional[type]) -> Any:
    """
    Decode a successful response body.

    Raises:
        ValueError: If the body is not valid for the response type
        TypeError: If the decoded document does not fit the response type
        KeyError: If a ``from_dict`` response type misses a required field
    """
    if response_type is None:
        return None
    if response_type is bytes:
        return body
    if response_type is str:
        return body.decode("utf-8")

    data = json.loads(body.decode("utf-8"))
    if response_type is dict or response_type is Any:
        return data
    if hasattr(response_type, "from_dict"):
        return response_type.from_dict(_require_object(data, response_type))
    if dataclasses.is_dataclass(response_type):
        data = _require_object(data, response_type)
        known = {f.name for f in dataclasses.fields(response_type) if f.init}
        return response_type(**{key: value for key, value in data.items() if key in known})
    return response_type(data)


def _require_object(data: Any, response_type: type) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"Expected a JSON object for {response_type.__name__}, got {type(data).__name__}")
    return data
