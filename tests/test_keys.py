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

import shutil
import subprocess

import pytest
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.hashes import SHA256

import neoimg.keys as keys
from neoimg import sha256
from tests.conftest import KEY_PASSWORD

DIGEST = sha256.digest(b"abc")

requires_openssl = pytest.mark.skipif(shutil.which("openssl") is None,
                                      reason="openssl binary not available")


def verify(rsa_key, sig, message):
    # raises InvalidSignature on mismatch
    rsa_key.public_key().verify(sig, message, padding.PKCS1v15(), SHA256())


class TestLoading:

    def test_load_key(self, rsa_key_file):
        key = keys.load(str(rsa_key_file))
        assert isinstance(key, keys.RSA2048)
        assert key.shortname() == "rsa"
        assert key.sig_len() == 256

    def test_load_key_with_password(self, rsa_key_file_with_password):
        assert keys.load(str(rsa_key_file_with_password)) is None
        key = keys.load(str(rsa_key_file_with_password), KEY_PASSWORD)
        assert isinstance(key, keys.RSA2048)

    def test_load_public_key(self, rsa_public_key_file):
        with pytest.raises(keys.RSAUsageError, match="private key"):
            keys.load(str(rsa_public_key_file))

    def test_load_wrong_size(self, rsa1024_key_file):
        with pytest.raises(keys.RSAUsageError, match="key size"):
            keys.load(str(rsa1024_key_file))

    def test_load_ecdsa(self, ecdsa_key_file):
        with pytest.raises(keys.RSAUsageError, match="Unsupported key type"):
            keys.load(str(ecdsa_key_file))

    def test_load_garbage(self, tmp_path):
        path = tmp_path / "garbage.pem"
        path.write_bytes(b"not a key")
        with pytest.raises(keys.RSAUsageError):
            keys.load(str(path))

    def test_load_key_wrong_password(self, rsa_key_file_with_password):
        with pytest.raises(keys.RSAUsageError, match="passphrase"):
            keys.load(str(rsa_key_file_with_password), b"wrong")

    def test_load_garbage_with_password(self, tmp_path):
        path = tmp_path / "garbage.pem"
        path.write_bytes(b"not a key")
        with pytest.raises(keys.RSAUsageError, match="Unable to parse"):
            keys.load(str(path), KEY_PASSWORD)


class TestSign:

    def test_sign_digest(self, rsa_key, rsa_key_file):
        key = keys.load(str(rsa_key_file))
        sig = key.checked_sign(DIGEST)
        assert len(sig) == 256
        verify(rsa_key, sig, DIGEST)

    def test_sign_is_deterministic(self, rsa_key_file):
        key = keys.load(str(rsa_key_file))
        assert key.sign_digest(DIGEST) == key.sign_digest(DIGEST)

    def test_checked_sign_length(self):
        class Short(keys.KeyClass):
            def shortname(self):
                return "short"

            def sig_len(self):
                return 256

            def sign_digest(self, digest):
                return bytes(10)

        with pytest.raises(keys.SigningError, match="10 bytes"):
            Short().checked_sign(DIGEST)


class TestOpenSSL:

    def test_missing_binary(self, rsa_key_file):
        signer = keys.OpenSSLSigner(str(rsa_key_file),
                                    openssl="/nonexistent/openssl")
        with pytest.raises(keys.SignerInvocationError):
            signer.sign_digest(DIGEST)

    def test_invocation_error_is_signing_error(self):
        assert issubclass(keys.SignerInvocationError, keys.SigningError)

    @requires_openssl
    def test_sign_matches_in_process(self, rsa_key, rsa_key_file):
        signer = keys.OpenSSLSigner(str(rsa_key_file))
        sig = signer.checked_sign(DIGEST)
        verify(rsa_key, sig, DIGEST)
        # PKCS#1 v1.5 is deterministic
        assert sig == keys.load(str(rsa_key_file)).sign_digest(DIGEST)

    @requires_openssl
    def test_bad_key(self, tmp_path):
        path = tmp_path / "garbage.pem"
        path.write_bytes(b"not a key")
        signer = keys.OpenSSLSigner(str(path))
        with pytest.raises(keys.SignerInvocationError, match="failed"):
            signer.sign_digest(DIGEST)

    def test_failure_reports_stderr(self, rsa_key_file, monkeypatch):
        calls = []

        class Result:
            returncode = 1
            stderr = "unable to load key\n"

        def fake_run(cmd, **kwargs):
            calls.append(kwargs)
            return Result()

        monkeypatch.setattr(subprocess, "run", fake_run)
        signer = keys.OpenSSLSigner(str(rsa_key_file))
        with pytest.raises(keys.SignerInvocationError,
                           match=r"failed \(1\): unable to load key$"):
            signer.sign_digest(DIGEST)
        # Python 3.6 has no capture_output or text arguments
        assert calls == [dict(stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                              universal_newlines=True)]
