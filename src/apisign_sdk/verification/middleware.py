"""
Verification middleware for inbound webhook requests

Signed callbacks may arrive as GET (query string) or POST (form body)
requests. The helpers here collect every parameter from a framework
request object and run it through an InboundSignatureVerifier.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from ..signing.types import ParamPairs
from ..signing.utils import to_param_pairs
from .verifier import InboundSignatureVerifier, VerificationResult

logger = logging.getLogger(__name__)


def _multi_items(source: Any) -> ParamPairs:
    """Expand a (multi-)mapping into pairs, keeping repeated values."""
    if source is None:
        return []
    if hasattr(source, 'multi_items'):
        # Starlette / FastAPI
        return list(source.multi_items())
    if hasattr(source, 'lists'):
        # Werkzeug MultiDict and Django QueryDict
        return [(key, value) for key, values in source.lists() for value in values]
    if isinstance(source, Mapping) or hasattr(source, 'items'):
        return to_param_pairs(dict(source.items()))
    return list(source)


def extract_params(request: Any) -> ParamPairs:
    """
    Collect query and form parameters from a request object.

    Supports plain mappings and pair lists, Flask/Werkzeug requests
    (``args``/``form``), Django requests (``GET``/``POST``) and
    Starlette requests (``query_params``). Query parameters come first.

    Args:
        request: Request object or parameter mapping

    Returns:
        list: Parameter pairs
    """
    if isinstance(request, (Mapping, list, tuple)):
        return to_param_pairs(request)

    if hasattr(request, 'args') or hasattr(request, 'form'):
        return _multi_items(getattr(request, 'args', None)) + _multi_items(getattr(request, 'form', None))

    if hasattr(request, 'GET') or hasattr(request, 'POST'):
        return _multi_items(getattr(request, 'GET', None)) + _multi_items(getattr(request, 'POST', None))

    if hasattr(request, 'query_params'):
        return _multi_items(request.query_params)

    raise TypeError(f"Cannot extract parameters from {type(request).__name__}")


@dataclass
class WebhookVerificationConfig:
    """Webhook verification middleware configuration"""
    verifier: InboundSignatureVerifier
    reject_invalid: bool = True
    on_verification_result: Optional[Callable[[VerificationResult, Any], None]] = None


class WebhookVerificationMiddleware:
    """Framework-neutral verifier for inbound webhook requests"""

    def __init__(self, config: WebhookVerificationConfig):
        self.config = config

    def __call__(self, request: Any) -> VerificationResult:
        """
        Verify a request.

        Args:
            request: Framework request object or parameter mapping

        Returns:
            VerificationResult: Outcome of verification
        """
        result = self.config.verifier.check(extract_params(request))
        if self.config.on_verification_result:
            self.config.on_verification_result(result, request)
        return result

    def should_reject(self, result: VerificationResult) -> bool:
        return self.config.reject_invalid and not result.valid


def create_flask_verification_middleware(config: WebhookVerificationConfig):
    """
    Create a Flask ``before_request`` hook rejecting unsigned callbacks.

    Args:
        config: Webhook verification configuration

    Returns:
        Flask before_request function
    """
    middleware = WebhookVerificationMiddleware(config)

    def flask_verification_middleware():
        from flask import g, jsonify, request  # type: ignore

        result = middleware(request)
        g.signature_verification = result

        if middleware.should_reject(result):
            return jsonify({
                'error': 'Signature verification failed',
                'code': result.reason,
            }), 401
        return None

    return flask_verification_middleware
