#!/usr/bin/env python3
"""
apisign Python SDK - Request Signing Example

This example shows how a client picks a credential for each described
operation and how signed parameters look on the wire. Requests are sent to
an in-memory transport so the example runs without network access.
"""

import json
import os
import sys

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from apisign_sdk import (
    AuthKind,
    ClientBuilder,
    Encoding,
    EndpointDescriptor,
    HashType,
    HttpMethod,
    NoAcceptableAuthMethodError,
    SigningCodec,
    TransportResponse,
    sign_params,
)

SEND_SMS = EndpointDescriptor(
    HttpMethod.POST,
    "/sms/json",
    [AuthKind.SIGNED_PARAMS, AuthKind.SHARED_SECRET],
    encoding=Encoding.FORM,
    response_type=dict,
    base_uri="rest",
    name="send_sms",
)

GET_CALL = EndpointDescriptor(
    HttpMethod.GET,
    "/v1/calls/{uuid}",
    [AuthKind.SIGNED_TOKEN],
    encoding=Encoding.NONE,
    response_type=dict,
    name="get_call",
)


class EchoTransport:
    """Transport that prints each request and answers with an empty JSON object"""

    def execute(self, request):
        print(f"   {request.method} {request.url}")
        for name, value in request.params:
            print(f"     {name} = {value}")
        return TransportResponse(status_code=200, reason="OK", body=b"{}")


def basic_signing_example():
    """Sign a parameter set by hand"""
    print("=== Basic Parameter Signing ===")

    envelope = sign_params({"a": "alphabet", "b": "bananas"}, "abcde", now_seconds=2100)
    print(f"   Canonical string: {envelope.canonical}")
    print(f"   Signature: {envelope.signature}")
    print(f"   Signed params: {json.dumps(envelope.as_dict())}")

    for hash_type in HashType:
        signature = SigningCodec(hash_type).sign({"a": "alphabet"}, "abcde", now_seconds=2100).signature
        print(f"   {hash_type.value:12} {signature}")


def endpoint_example():
    """Execute a described operation with the preferred credential"""
    print("\n=== Endpoint Execution ===")

    client = (ClientBuilder()
              .api_key("key")
              .api_secret("secret")
              .signature_secret("sigsecret", HashType.HMAC_SHA256)
              .transport(EchoTransport())
              .build())

    print("1. Sending with signed parameters (preferred by the operation):")
    client.execute(SEND_SMS, {"from": "Acme", "to": "447700900000", "text": "Hello"})

    print("\n2. Calling an operation that needs an application credential:")
    try:
        client.execute(GET_CALL, {"uuid": "63f61863-4a51-4f6b-86e1-46edebcf9356"})
    except NoAcceptableAuthMethodError as e:
        print(f"   {type(e).__name__}: {e}")


def main():
    """Run all examples"""
    print("apisign Python SDK - Request Signing Examples")
    print("=" * 50)

    basic_signing_example()
    endpoint_example()


if __name__ == "__main__":
    main()
