"""
RSA key management
"""

# SPDX-License-Identifier: Apache-2.0

from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.hashes import SHA256

from .general import KeyClass

RSA_KEY_SIZE = 2048


class RSAUsageError(Exception):
    pass


class RSA2048(KeyClass):
    """
    Wrapper around an RSA-2048 private key.

    The digest message is signed the way `openssl dgst -sha256 -sign`
    signs a file: PKCS#1 v1.5 over the SHA-256 of the message.
    """
    def __init__(self, key):
        if key.key_size != RSA_KEY_SIZE:
            raise RSAUsageError(
                "Unsupported RSA key size: {}".format(key.key_size))
        self.key = key

    def shortname(self):
        return "rsa"

    def sig_type(self):
        return "PKCS1_SHA256"

    def sig_len(self):
        return RSA_KEY_SIZE // 8

    def sign_digest(self, digest):
        return self.key.sign(data=digest,
                             padding=padding.PKCS1v15(),
                             algorithm=SHA256())
