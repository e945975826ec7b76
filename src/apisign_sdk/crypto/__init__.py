"""
Cryptographic key helpers for the apisign Python SDK
"""

from .keys import KeyErrorCodes, PrivateKeyInput, load_private_key, private_key_to_pem

__all__ = [
    'KeyErrorCodes',
    'PrivateKeyInput',
    'load_private_key',
    'private_key_to_pem',
]
