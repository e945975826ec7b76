"""
apisign Python SDK - Verification Module

Signature verification for inbound webhook callbacks.
"""

from .verifier import (
    InboundSignatureVerifier,
    VerificationResult,
    VerificationStatus,
)

from .middleware import (
    WebhookVerificationConfig,
    WebhookVerificationMiddleware,
    create_flask_verification_middleware,
    extract_params,
)

from ..signing.codec import VerificationFailure

__all__ = [
    'InboundSignatureVerifier',
    'VerificationResult',
    'VerificationStatus',
    'VerificationFailure',
    'WebhookVerificationConfig',
    'WebhookVerificationMiddleware',
    'create_flask_verification_middleware',
    'extract_params',
]
