"""
Canonical parameter signing for the legacy signature protocol

The canonical string is every signable parameter, sorted by name, written as
``&name=value`` including the leading ampersand. The digest is then
taken over that string with the shared secret, either appended (MD5) or used
as the HMAC key. The same codec signs outbound parameters and verifies
inbound webhook parameters, so both sides always agree on the policy used
for absent values.
"""

import logging
from typing import Dict, Optional

from .types import (
    DEFAULT_MAX_AGE_SECONDS,
    PARAM_SIGNATURE,
    PARAM_TIMESTAMP,
    Clock,
    HashType,
    NullValuePolicy,
    ParamPairs,
    ParamsInput,
    SignedEnvelope,
    SigningError,
    SigningErrorCodes,
)
from .utils import (
    calculate_digest,
    clean,
    coerce_hash_type,
    digests_match,
    generate_timestamp,
    include_value,
    parse_timestamp,
    to_param_pairs,
)

logger = logging.getLogger(__name__)


class VerificationFailure:
    """Reason codes reported when inbound verification fails"""

    MISSING_SIGNATURE = "MISSING_SIGNATURE"
    MISSING_TIMESTAMP = "MISSING_TIMESTAMP"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"
    EXPIRED_TIMESTAMP = "EXPIRED_TIMESTAMP"
    MISSING_SECRET = "MISSING_SECRET"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"


class SigningCodec:
    """
    Signs and verifies parameter sets.

    Instances are immutable and safe to share between threads.
    """

    def __init__(
        self,
        hash_type: HashType = HashType.MD5,
        null_value_policy: NullValuePolicy = NullValuePolicy.SKIP_BLANK,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the codec.

        Args:
            hash_type: Digest strategy (MD5 for legacy accounts)
            null_value_policy: Treatment of absent and empty values
            clock: Callable returning the current time in epoch seconds
        """
        self.hash_type = coerce_hash_type(hash_type)
        self.null_value_policy = NullValuePolicy(null_value_policy)
        self.clock = clock or generate_timestamp

    def __repr__(self) -> str:
        return f"SigningCodec(hash_type={self.hash_type.value}, null_value_policy={self.null_value_policy.value})"

    def canonicalize(self, params: ParamsInput) -> str:
        """
        Build the canonical string for a parameter set.

        The signature field never takes part. A repeated name contributes its
        last value that survives the null-value policy.

        Args:
            params: Parameters to canonicalise

        Returns:
            str: Canonical string, e.g. ``&a=alphabet&b=bananas&timestamp=2100``
        """
        selected: Dict[str, str] = {}
        for name, value in to_param_pairs(params):
            if name == PARAM_SIGNATURE:
                continue
            value = include_value(value, self.null_value_policy)
            if value is None:
                continue
            selected[name] = value

        ordered = sorted(selected.items(), key=lambda item: item[0].encode("utf-8"))
        return "".join(f"&{clean(name)}={clean(value)}" for name, value in ordered)

    def digest(self, canonical: str, secret: str) -> str:
        """
        Compute the lowercase hex digest of a canonical string.

        Raises:
            SigningError: If the secret is missing
        """
        return calculate_digest(canonical, secret, self.hash_type)

    def sign(self, params: ParamsInput, secret: str, now_seconds: Optional[int] = None) -> SignedEnvelope:
        """
        Sign a parameter set.

        Any signature or timestamp already present is discarded, so signing an
        envelope again yields a fresh, valid envelope.

        Args:
            params: Parameters to sign
            secret: Shared signing secret
            now_seconds: Timestamp to sign with (defaults to the codec clock)

        Returns:
            SignedEnvelope: Parameters with timestamp and signature appended

        Raises:
            SigningError: If the secret is missing or the parameters are malformed
        """
        if not secret:
            raise SigningError(
                "Cannot sign request parameters without a signature secret",
                SigningErrorCodes.MISSING_SECRET
            )

        timestamp = int(self.clock() if now_seconds is None else now_seconds)
        pairs: ParamPairs = [
            (name, value) for name, value in to_param_pairs(params)
            if name not in (PARAM_SIGNATURE, PARAM_TIMESTAMP)
        ]
        pairs.append((PARAM_TIMESTAMP, str(timestamp)))

        canonical = self.canonicalize(pairs)
        signature = self.digest(canonical, secret)
        logger.debug(f"Signed canonical string [{canonical}] with {self.hash_type.value}")

        pairs.append((PARAM_SIGNATURE, signature))
        return SignedEnvelope(
            params=tuple(pairs),
            signature=signature,
            timestamp=timestamp,
            canonical=canonical
        )

    def check(
        self,
        params: ParamsInput,
        secret: str,
        max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
        now_seconds: Optional[int] = None
    ) -> Optional[str]:
        """
        Verify a signed parameter set and report why it failed.

        Returns:
            None when the signature is valid, otherwise a VerificationFailure code
        """
        try:
            pairs = to_param_pairs(params)
        except SigningError:
            return VerificationFailure.SIGNATURE_MISMATCH

        supplied = _first_value(pairs, PARAM_SIGNATURE)
        if supplied is None:
            return VerificationFailure.MISSING_SIGNATURE

        raw_timestamp = _first_value(pairs, PARAM_TIMESTAMP)
        if raw_timestamp is None:
            return VerificationFailure.MISSING_TIMESTAMP

        timestamp = parse_timestamp(raw_timestamp)
        if timestamp is None:
            return VerificationFailure.INVALID_TIMESTAMP

        now = int(self.clock() if now_seconds is None else now_seconds)
        if abs(now - timestamp) > max_age_seconds:
            return VerificationFailure.EXPIRED_TIMESTAMP

        if not secret:
            return VerificationFailure.MISSING_SECRET

        canonical = self.canonicalize(pairs)
        expected = self.digest(canonical, secret)
        if not digests_match(expected, supplied):
            return VerificationFailure.SIGNATURE_MISMATCH
        return None

    def verify(
        self,
        params: ParamsInput,
        secret: str,
        max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
        now_seconds: Optional[int] = None
    ) -> bool:
        """
        Verify a signed parameter set. Never raises.

        Args:
            params: Received parameters including ``sig`` and ``timestamp``
            secret: Shared signing secret
            max_age_seconds: Largest accepted distance between timestamp and now
            now_seconds: Current time (defaults to the codec clock)

        Returns:
            bool: True only if the signature is present, fresh and correct
        """
        return self.check(params, secret, max_age_seconds, now_seconds) is None


def _first_value(pairs: ParamPairs, name: str) -> Optional[str]:
    for key, value in pairs:
        if key == name:
            return value
    return None


def sign_params(
    params: ParamsInput,
    secret: str,
    hash_type: HashType = HashType.MD5,
    now_seconds: Optional[int] = None
) -> SignedEnvelope:
    """
    Sign parameters with a throwaway codec.

    Args:
        params: Parameters to sign
        secret: Shared signing secret
        hash_type: Digest strategy
        now_seconds: Optional fixed timestamp

    Returns:
        SignedEnvelope: Signing result
    """
    return SigningCodec(hash_type).sign(params, secret, now_seconds)


def verify_params(
    params: ParamsInput,
    secret: str,
    hash_type: HashType = HashType.MD5,
    max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
    now_seconds: Optional[int] = None
) -> bool:
    """Verify parameters with a throwaway codec."""
    return SigningCodec(hash_type).verify(params, secret, max_age_seconds, now_seconds)
