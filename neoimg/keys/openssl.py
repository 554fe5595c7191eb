"""
Signing through the openssl command line tool
"""

# SPDX-License-Identifier: Apache-2.0

import os.path
import subprocess
import tempfile

from .general import KeyClass, SignerInvocationError
from .rsa import RSA_KEY_SIZE

OPENSSL = "openssl"


class OpenSSLSigner(KeyClass):
    """
    Hand the digest message to `openssl dgst -sha256 -sign`.

    The key never gets loaded into this process. Intermediate files live
    in a private temporary directory that is removed afterwards.
    """
    def __init__(self, keyfile, openssl=OPENSSL, key_size=RSA_KEY_SIZE):
        self.keyfile = keyfile
        self.openssl = openssl
        self.key_size = key_size

    def shortname(self):
        return "openssl"

    def sig_type(self):
        return "PKCS1_SHA256"

    def sig_len(self):
        return self.key_size // 8

    def sign_digest(self, digest):
        with tempfile.TemporaryDirectory(prefix="neoimg-") as tmpdir:
            msg_file = os.path.join(tmpdir, "sha256.bin")
            sig_file = os.path.join(tmpdir, "sha256.sig")
            with open(msg_file, 'wb') as f:
                f.write(digest)
            cmd = [self.openssl, "dgst", "-sha256",
                   "-sign", self.keyfile, "-out", sig_file, msg_file]
            try:
                result = subprocess.run(cmd, stdout=subprocess.PIPE,
                                        stderr=subprocess.PIPE,
                                        universal_newlines=True)
            except OSError as e:
                raise SignerInvocationError(
                    "Could not run {}: {}".format(self.openssl, e))
            if result.returncode != 0:
                raise SignerInvocationError(
                    "OpenSSL signing failed ({}): {}".format(
                        result.returncode, result.stderr.strip()))
            with open(sig_file, 'rb') as f:
                return f.read()
