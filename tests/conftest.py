"""
Shared fixtures for the apisign test suite
"""

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from apisign_sdk.crypto.keys import private_key_to_pem


@pytest.fixture(scope="session")
def rsa_private_key():
    """RSA key used to sign test tokens"""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_private_key_pem(rsa_private_key):
    return private_key_to_pem(rsa_private_key)
