#!/usr/bin/env python3
"""
apisign Python SDK - Webhook Verification Example

Demonstrates checking signed inbound callbacks, both directly and through
the framework-neutral middleware.
"""

import os
import sys

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from apisign_sdk import (
    InboundSignatureVerifier,
    WebhookVerificationConfig,
    WebhookVerificationMiddleware,
    configure_logging,
    sign_params,
)

SECRET = "abcde"


def basic_verification_example():
    """Verify callbacks with and without tampering"""
    print("=== Basic Callback Verification ===")

    now = 1_700_000_000
    callback = sign_params({"msisdn": "447700900000", "status": "delivered"}, SECRET, now_seconds=now).as_dict()
    verifier = InboundSignatureVerifier(SECRET, clock=lambda: now + 30)

    print(f"   Untouched callback: {verifier.check(callback)}")

    tampered = dict(callback, status="failed")
    print(f"   Tampered callback:  {verifier.check(tampered)}")

    stale = verifier.check(callback, now_seconds=now + 3600)
    print(f"   Replayed an hour later: {stale}")


def middleware_example():
    """Verify callbacks through the middleware with a result hook"""
    print("\n=== Middleware ===")

    def report(result, request):
        print(f"   hook: valid={result.valid} reason={result.reason}")

    verifier = InboundSignatureVerifier(SECRET)
    middleware = WebhookVerificationMiddleware(
        WebhookVerificationConfig(verifier, on_verification_result=report)
    )

    signed = sign_params({"msisdn": "447700900000"}, SECRET).as_pairs()
    for params in (signed, [("msisdn", "447700900000")]):
        result = middleware(params)
        print(f"   reject: {middleware.should_reject(result)}")


def main():
    """Run all examples"""
    configure_logging("WARNING")
    print("apisign Python SDK - Webhook Verification Examples")
    print("=" * 50)

    basic_verification_example()
    middleware_example()


if __name__ == "__main__":
    main()
