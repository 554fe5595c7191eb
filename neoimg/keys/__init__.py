# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Signers for the bootloader digest.
"""

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import (
    RSAPrivateKey, RSAPublicKey)

from .general import KeyClass, SigningError, SignerInvocationError
from .openssl import OpenSSLSigner
from .rsa import RSA2048, RSAUsageError


def load(path, passwd=None):
    """Try loading a private key from the given path.  Returns None if the
    password wasn't specified."""
    with open(path, 'rb') as f:
        raw_pem = f.read()
    try:
        pk = serialization.load_pem_private_key(
                raw_pem,
                password=passwd,
                backend=default_backend())
    # This is a bit nonsensical of an exception, but it is what
    # cryptography seems to currently raise if the password is needed.
    except TypeError:
        return None
    except ValueError:
        if passwd is not None and b"ENCRYPTED" in raw_pem:
            raise RSAUsageError(
                "Invalid passphrase for key file {}".format(path))
        # A public key is a usable PEM, but it cannot sign anything.
        try:
            pk = serialization.load_pem_public_key(
                    raw_pem,
                    backend=default_backend())
        except ValueError:
            raise RSAUsageError("Unable to parse key file {}".format(path))

    if isinstance(pk, RSAPrivateKey):
        return RSA2048(pk)
    elif isinstance(pk, RSAPublicKey):
        raise RSAUsageError("Signing requires a private key")
    else:
        raise RSAUsageError("Unsupported key type: " + str(type(pk)))
