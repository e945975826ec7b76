"""
Unit tests for inbound webhook signature verification

This module tests the verifier and the framework-neutral middleware that
collects callback parameters from request objects.
"""

import logging
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from apisign_sdk.signing import HashType, NullValuePolicy, SigningCodec
from apisign_sdk.verification import (
    InboundSignatureVerifier,
    VerificationFailure,
    VerificationResult,
    VerificationStatus,
    WebhookVerificationConfig,
    WebhookVerificationMiddleware,
    extract_params,
)

SECRET = "abcde"
NOW = 2100
SIGNED = {
    "a": "alphabet",
    "b": "bananas",
    "timestamp": "2100",
    "sig": "7d43241108912b32cc315b48ce681acf",
}


class FakeMultiDict:
    """Minimal stand-in for a Werkzeug MultiDict"""

    def __init__(self, pairs):
        self.pairs = list(pairs)

    def lists(self):
        grouped = {}
        for key, value in self.pairs:
            grouped.setdefault(key, []).append(value)
        return list(grouped.items())


class FakeQueryParams:
    """Minimal stand-in for Starlette's QueryParams"""

    def __init__(self, pairs):
        self.pairs = list(pairs)

    def multi_items(self):
        return list(self.pairs)


class TestVerificationResult:
    """Test verification result values"""

    def test_success(self):
        """Test a successful result is truthy"""
        result = VerificationResult.success()
        assert result.status is VerificationStatus.VALID
        assert result.valid
        assert bool(result)
        assert result.reason is None

    def test_failure(self):
        """Test a failed result carries its reason"""
        result = VerificationResult.failure(VerificationFailure.SIGNATURE_MISMATCH)
        assert result.status is VerificationStatus.INVALID
        assert not result
        assert result.reason == "SIGNATURE_MISMATCH"


class TestInboundSignatureVerifier:
    """Test InboundSignatureVerifier"""

    def setup_method(self):
        """Set up test fixtures"""
        self.verifier = InboundSignatureVerifier(SECRET, clock=lambda: NOW)

    def test_reference_signature(self):
        """Test a correctly signed callback is accepted"""
        assert self.verifier.verify(SIGNED)
        assert self.verifier.check(SIGNED).valid

    def test_uppercase_signature(self):
        """Test hex case in the supplied signature is ignored"""
        params = dict(SIGNED, sig=SIGNED["sig"].upper())
        assert self.verifier.verify(params)

    def test_tampered_value(self):
        """Test changing a signed value invalidates the signature"""
        result = self.verifier.check(dict(SIGNED, b="cherries"))
        assert result.reason == VerificationFailure.SIGNATURE_MISMATCH

    def test_added_parameter(self):
        """Test adding a parameter invalidates the signature"""
        assert not self.verifier.verify(dict(SIGNED, c="extra"))

    def test_wrong_secret(self):
        """Test a per-call secret overrides the configured one"""
        assert not self.verifier.verify(SIGNED, shared_secret="other")
        assert InboundSignatureVerifier(clock=lambda: NOW).verify(SIGNED, shared_secret=SECRET)

    @pytest.mark.parametrize("missing,reason", [
        ("sig", VerificationFailure.MISSING_SIGNATURE),
        ("timestamp", VerificationFailure.MISSING_TIMESTAMP),
    ])
    def test_missing_fields(self, missing, reason):
        """Test callbacks without a signature or timestamp are rejected"""
        params = {k: v for k, v in SIGNED.items() if k != missing}
        assert self.verifier.check(params).reason == reason

    def test_invalid_timestamp(self):
        """Test an unparsable timestamp is rejected"""
        assert self.verifier.check(dict(SIGNED, timestamp="soon")).reason == VerificationFailure.INVALID_TIMESTAMP

    def test_missing_secret(self):
        """Test verification without any secret fails closed"""
        result = InboundSignatureVerifier(clock=lambda: NOW).check(SIGNED)
        assert result.reason == VerificationFailure.MISSING_SECRET

    def test_replay_window(self):
        """Test the window is inclusive and symmetric around now"""
        assert self.verifier.verify(SIGNED, now_seconds=NOW + 300)
        assert self.verifier.verify(SIGNED, now_seconds=NOW - 300)
        assert self.verifier.check(SIGNED, now_seconds=NOW + 301).reason == VerificationFailure.EXPIRED_TIMESTAMP
        assert self.verifier.check(SIGNED, now_seconds=NOW - 301).reason == VerificationFailure.EXPIRED_TIMESTAMP

    def test_custom_window(self):
        """Test the window is configurable per verifier and per call"""
        strict = InboundSignatureVerifier(SECRET, max_age_seconds=10, clock=lambda: NOW + 11)
        assert not strict.verify(SIGNED)
        assert strict.verify(SIGNED, max_age_seconds=11)

    def test_negative_window_rejected(self):
        """Test a negative window is a programming error"""
        with pytest.raises(ValueError):
            InboundSignatureVerifier(SECRET, max_age_seconds=-1)

    def test_first_signature_wins(self):
        """Test only the first sig value is compared"""
        params = list(SIGNED.items()) + [("sig", "0" * 32)]
        assert self.verifier.verify(params)

        forged_first = [("sig", "0" * 32)] + list(SIGNED.items())
        assert not self.verifier.verify(forged_first)

    def test_malformed_input_never_raises(self):
        """Test malformed parameter names are reported, not raised"""
        result = self.verifier.check([(None, "x"), ("sig", "abc")])
        assert result.reason == VerificationFailure.SIGNATURE_MISMATCH

    def test_hash_type_must_match(self):
        """Test a callback signed with another strategy is rejected"""
        envelope = SigningCodec(HashType.HMAC_SHA256).sign({"a": "1"}, SECRET, now_seconds=NOW)
        assert not self.verifier.verify(envelope.params)
        assert InboundSignatureVerifier(SECRET, HashType.HMAC_SHA256, clock=lambda: NOW).verify(envelope.params)

    def test_null_policy_must_match(self):
        """Test the verifier uses the policy the sender signed with"""
        codec = SigningCodec(null_value_policy=NullValuePolicy.INCLUDE_EMPTY)
        envelope = codec.sign({"a": "1", "b": ""}, SECRET, now_seconds=NOW)

        lenient = InboundSignatureVerifier(SECRET, null_value_policy=NullValuePolicy.INCLUDE_EMPTY, clock=lambda: NOW)
        assert lenient.verify(envelope.params)
        assert not self.verifier.verify(envelope.params)

    def test_failure_is_logged(self, caplog):
        """Test failures are logged with their reason"""
        with caplog.at_level(logging.WARNING, logger="apisign_sdk.verification.verifier"):
            self.verifier.check(dict(SIGNED, b="cherries"))
        assert "SIGNATURE_MISMATCH" in caplog.text
        assert SECRET not in caplog.text


class TestExtractParams:
    """Test parameter extraction from request objects"""

    def test_mapping(self):
        """Test plain mappings and pair lists"""
        assert extract_params({"a": "1", "b": ["2", "3"]}) == [("a", "1"), ("b", "2"), ("b", "3")]
        assert extract_params([("a", "1")]) == [("a", "1")]

    def test_flask_style(self):
        """Test query parameters come before form parameters"""
        request = SimpleNamespace(
            args=FakeMultiDict([("a", "1"), ("a", "2")]),
            form=FakeMultiDict([("b", "3")]),
        )
        assert extract_params(request) == [("a", "1"), ("a", "2"), ("b", "3")]

    def test_django_style(self):
        """Test GET and POST dictionaries"""
        request = SimpleNamespace(GET={"a": "1"}, POST={"b": "2"})
        assert extract_params(request) == [("a", "1"), ("b", "2")]

    def test_starlette_style(self):
        """Test query_params with multi_items"""
        request = SimpleNamespace(query_params=FakeQueryParams([("a", "1"), ("a", "2")]))
        assert extract_params(request) == [("a", "1"), ("a", "2")]

    def test_unsupported(self):
        """Test unknown request objects are rejected"""
        with pytest.raises(TypeError):
            extract_params(object())


class TestWebhookVerificationMiddleware:
    """Test the framework-neutral middleware"""

    def setup_method(self):
        """Set up test fixtures"""
        self.verifier = InboundSignatureVerifier(SECRET, clock=lambda: NOW)

    def test_valid_callback(self):
        """Test a signed GET callback passes"""
        middleware = WebhookVerificationMiddleware(WebhookVerificationConfig(self.verifier))
        request = SimpleNamespace(args=FakeMultiDict(SIGNED.items()), form=None)

        result = middleware(request)
        assert result.valid
        assert not middleware.should_reject(result)

    def test_invalid_callback_rejected(self):
        """Test an unsigned callback is rejected"""
        middleware = WebhookVerificationMiddleware(WebhookVerificationConfig(self.verifier))
        result = middleware({"a": "alphabet"})
        assert result.reason == VerificationFailure.MISSING_SIGNATURE
        assert middleware.should_reject(result)

    def test_report_only(self):
        """Test rejection can be disabled while still reporting"""
        callback = Mock()
        config = WebhookVerificationConfig(self.verifier, reject_invalid=False, on_verification_result=callback)
        middleware = WebhookVerificationMiddleware(config)

        request = {"a": "alphabet"}
        result = middleware(request)
        assert not middleware.should_reject(result)
        callback.assert_called_once_with(result, request)
