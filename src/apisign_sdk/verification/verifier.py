"""
Verification of signed inbound webhook callbacks

The callback sender signs its parameters exactly the way SignedParamsAuth
signs outbound requests, so verification recomputes the digest with the
same SigningCodec and checks the timestamp against a replay window.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..signing.codec import SigningCodec
from ..signing.types import (
    DEFAULT_MAX_AGE_SECONDS,
    Clock,
    HashType,
    NullValuePolicy,
    ParamsInput,
)

logger = logging.getLogger(__name__)


class VerificationStatus(str, Enum):
    """Verification result status"""
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of verifying one callback.

    Attributes:
        status: VALID or INVALID
        reason: Failure code from VerificationFailure, None when valid
    """
    status: VerificationStatus
    reason: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.status is VerificationStatus.VALID

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def success(cls) -> 'VerificationResult':
        return cls(VerificationStatus.VALID)

    @classmethod
    def failure(cls, reason: str) -> 'VerificationResult':
        return cls(VerificationStatus.INVALID, reason)


class InboundSignatureVerifier:
    """
    Verifies signed callback parameters.

    A callback without a signature is always rejected; there is no mode in
    which a signature is optional.
    """

    def __init__(
        self,
        signature_secret: Optional[str] = None,
        hash_type: HashType = HashType.MD5,
        max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
        null_value_policy: NullValuePolicy = NullValuePolicy.SKIP_BLANK,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the verifier.

        Args:
            signature_secret: Default shared secret used when none is passed per call
            hash_type: Digest strategy configured for the account
            max_age_seconds: Default replay window
            null_value_policy: Must match the policy the sender signs with
            clock: Callable returning epoch seconds
        """
        if max_age_seconds < 0:
            raise ValueError("max_age_seconds must not be negative")
        self.signature_secret = signature_secret
        self.max_age_seconds = max_age_seconds
        self.codec = SigningCodec(hash_type, null_value_policy, clock)

    def check(
        self,
        received_params: ParamsInput,
        shared_secret: Optional[str] = None,
        max_age_seconds: Optional[int] = None,
        now_seconds: Optional[int] = None
    ) -> VerificationResult:
        """
        Verify callback parameters and report the outcome.

        Args:
            received_params: All query and form parameters of the callback
            shared_secret: Secret to verify with (defaults to the configured one)
            max_age_seconds: Replay window (defaults to the configured one)
            now_seconds: Current time (defaults to the clock)

        Returns:
            VerificationResult: Never raises
        """
        secret = shared_secret if shared_secret is not None else self.signature_secret
        window = self.max_age_seconds if max_age_seconds is None else max_age_seconds

        reason = self.codec.check(received_params, secret, window, now_seconds)
        if reason is not None:
            logger.warning(f"Inbound signature verification failed: {reason}")
            return VerificationResult.failure(reason)
        return VerificationResult.success()

    def verify(
        self,
        received_params: ParamsInput,
        shared_secret: Optional[str] = None,
        max_age_seconds: Optional[int] = None,
        now_seconds: Optional[int] = None
    ) -> bool:
        """Return True only for a present, fresh and correct signature."""
        return self.check(received_params, shared_secret, max_age_seconds, now_seconds).valid
