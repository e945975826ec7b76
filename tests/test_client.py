"""
Unit tests for client wiring
"""

import json

import jwt
import pytest

from apisign_sdk import (
    ApiClient,
    AuthKind,
    ClientBuilder,
    ClientConfig,
    EndpointDescriptor,
    Encoding,
    HashType,
    HttpMethod,
    RequestsTransport,
    build_auth_collection,
)
from apisign_sdk.exceptions import ConfigurationError, NoAcceptableAuthMethodError
from apisign_sdk.signing import SigningCodec

from stubs import CountingTokenSource, FixedClock, StubTransport, json_response

SEND_SMS = EndpointDescriptor(
    HttpMethod.POST, "/sms/json", [AuthKind.SIGNED_PARAMS, AuthKind.SHARED_SECRET],
    encoding=Encoding.FORM, response_type=dict, base_uri="rest"
)
GET_CALL = EndpointDescriptor(
    HttpMethod.GET, "/v1/calls/{uuid}", [AuthKind.EXCHANGED_BEARER, AuthKind.SIGNED_TOKEN],
    encoding=Encoding.NONE, response_type=dict
)


class TestBuildAuthCollection:
    """Test credential kinds derived from configuration"""

    def test_empty(self):
        """Test no credentials yield an empty collection"""
        assert len(build_auth_collection(ClientConfig())) == 0

    def test_all_kinds(self, rsa_private_key_pem):
        """Test every complete credential becomes a method"""
        config = ClientConfig(
            api_key="key",
            api_secret="secret",
            signature_secret="sig",
            application_id="app-id",
            private_key=rsa_private_key_pem,
        )
        collection = build_auth_collection(config)
        assert collection.kinds() == [AuthKind.SIGNED_TOKEN, AuthKind.SIGNED_PARAMS, AuthKind.SHARED_SECRET]

    def test_signing_settings_carried(self):
        """Test hash type and null value policy reach the signer"""
        config = ClientConfig(api_key="key", signature_secret="sig", hash_type="hmac-sha512",
                              null_value_policy="skip-null")
        method = build_auth_collection(config).get(AuthKind.SIGNED_PARAMS)
        assert method.codec.hash_type is HashType.HMAC_SHA512
        assert method.codec.null_value_policy.value == "skip-null"


class TestApiClient:
    """Test ApiClient"""

    def test_default_transport(self):
        """Test a requests transport is created from the HTTP settings"""
        with ApiClient(ClientConfig(api_key="key", api_secret="secret")) as client:
            assert isinstance(client.transport, RequestsTransport)
            assert client.transport.timeout == (10.0, 30.0)

    def test_prefers_signed_params(self):
        """Test the endpoint's first acceptable kind is used"""
        transport = StubTransport(json_response(200, {"message-count": "1"}))
        config = ClientConfig(api_key="key", api_secret="secret", signature_secret="sig")
        client = ApiClient(config, transport=transport, clock=FixedClock(2100))

        assert client.execute(SEND_SMS, {"to": "447700900000", "text": "hi"}) == {"message-count": "1"}
        form = dict(transport.last_request.form)
        assert "api_secret" not in form
        assert SigningCodec().verify(transport.last_request.form, "sig", now_seconds=2100)

    def test_falls_back_to_shared_secret(self):
        """Test the next acceptable kind is used when the first is not configured"""
        transport = StubTransport(json_response(200, {}))
        client = ApiClient(ClientConfig(api_key="key", api_secret="secret"), transport=transport)

        client.execute(SEND_SMS, {"to": "447700900000"})
        assert dict(transport.last_request.form)["api_secret"] == "secret"

    def test_no_acceptable_credentials(self):
        """Test a clear error when no held credential fits the endpoint"""
        client = ApiClient(ClientConfig(api_key="key", api_secret="secret"), transport=StubTransport())
        with pytest.raises(NoAcceptableAuthMethodError) as exc_info:
            client.execute(GET_CALL, {"uuid": "abc"})
        assert exc_info.value.configured_kinds == ["SharedSecret"]

    def test_token_source(self):
        """Test an exchanged bearer token is preferred once enabled"""
        transport = StubTransport(json_response(200, {"uuid": "abc"}), json_response(200, {"uuid": "def"}))
        client = ApiClient(ClientConfig(), transport=transport)
        source = CountingTokenSource()
        client.use_token_source(source)

        assert client.execute(GET_CALL, {"uuid": "abc"}) == {"uuid": "abc"}
        client.endpoint(GET_CALL)({"uuid": "def"})
        assert transport.last_request.headers["Authorization"] == "Bearer token-1"
        assert transport.last_request.url == "https://api.nexmo.com/v1/calls/def"
        assert source.calls == 1

    def test_use_ciba_requires_signed_token(self):
        """Test the backchannel flow needs an application credential"""
        client = ApiClient(ClientConfig(api_key="key", api_secret="secret"), transport=StubTransport())
        with pytest.raises(NoAcceptableAuthMethodError):
            client.use_ciba("447700900000")

    def test_use_ciba(self, rsa_private_key_pem):
        """Test the backchannel flow authenticates with the signed token"""
        transport = StubTransport(
            json_response(200, {"auth_req_id": "req-1", "expires_in": 120, "interval": 0}),
            json_response(200, {"access_token": "ciba-token", "expires_in": 900}),
            json_response(200, {"uuid": "abc"}),
        )
        config = ClientConfig(application_id="app-id", private_key=rsa_private_key_pem)
        client = ApiClient(config, transport=transport)
        client.use_ciba("447700900000", scope="openid dpv:FraudPreventionAndDetection#check-sim-swap")

        client.execute(GET_CALL, {"uuid": "abc"})
        authorize, token, call = transport.requests
        assert authorize.url == "https://api.nexmo.com/oauth2/bc-authorize"
        claims = jwt.decode(authorize.headers["Authorization"].split(" ", 1)[1], options={"verify_signature": False})
        assert claims["application_id"] == "app-id"
        assert token.url == "https://api.nexmo.com/oauth2/token"
        assert call.headers["Authorization"] == "Bearer ciba-token"

    def test_signature_verifier(self):
        """Test the verifier uses the configured secret and strategy"""
        client = ApiClient(
            ClientConfig(api_key="key", signature_secret="sig", hash_type="hmac-sha256"),
            transport=StubTransport()
        )
        envelope = SigningCodec(HashType.HMAC_SHA256).sign({"msisdn": "447700900000"}, "sig", now_seconds=2100)
        verifier = client.signature_verifier()
        assert verifier.verify(envelope.params, now_seconds=2100)

    def test_signature_verifier_requires_secret(self):
        """Test verifying callbacks without a secret is a configuration error"""
        client = ApiClient(ClientConfig(), transport=StubTransport())
        with pytest.raises(ConfigurationError):
            client.signature_verifier()


class TestClientBuilder:
    """Test the fluent builder"""

    def test_build(self, rsa_private_key):
        """Test every setting reaches the client"""
        transport = StubTransport(json_response(200, {"ok": True}))
        client = (
            ClientBuilder()
            .api_key("key")
            .api_secret("secret")
            .signature_secret("sig", HashType.HMAC_SHA256)
            .application("app-id", rsa_private_key)
            .base_uri("https://sandbox.example.com")
            .transport(transport)
            .clock(FixedClock(2100))
            .build()
        )

        assert client.transport is transport
        assert client.http_config.rest_base_uri == "https://sandbox.example.com"
        assert client.auth_collection.kinds() == [
            AuthKind.SIGNED_TOKEN, AuthKind.SIGNED_PARAMS, AuthKind.SHARED_SECRET
        ]

        client.execute(SEND_SMS, {"to": "447700900000"})
        request = transport.last_request
        assert request.url == "https://sandbox.example.com/sms/json"
        assert SigningCodec(HashType.HMAC_SHA256).verify(request.form, "sig", now_seconds=2100)

    def test_build_with_token_source(self):
        """Test a token source adds exchanged bearer credentials"""
        client = ClientBuilder().token_source(CountingTokenSource()).transport(StubTransport()).build()
        assert client.auth_collection.kinds() == [AuthKind.EXCHANGED_BEARER]

    def test_json_request_with_shared_secret(self):
        """Test JSON operations carry credentials in the body"""
        transport = StubTransport(json_response(200, {"ok": True}))
        client = ClientBuilder().api_key("key").api_secret("secret").transport(transport).build()
        descriptor = EndpointDescriptor(HttpMethod.POST, "/verify/json", [AuthKind.SHARED_SECRET], response_type=dict)

        client.execute(descriptor, {"number": "447700900000", "brand": "Acme"})
        body = json.loads(transport.last_request.body)
        assert body == {"api_key": "key", "api_secret": "secret", "number": "447700900000", "brand": "Acme"}
