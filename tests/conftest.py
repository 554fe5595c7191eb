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

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from tests.constants import KEY_EXT, SMALL_PAYLOAD, tmp_name

KEY_PASSWORD = b"12345"


def write_private(key, path, passwd=None):
    if passwd is None:
        enc = serialization.NoEncryption()
    else:
        enc = serialization.BestAvailableEncryption(passwd)
    pem = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=enc)
    path.write_bytes(pem)
    return path


@pytest.fixture(scope="session")
def keys_dir(tmp_path_factory):
    return tmp_path_factory.mktemp("keys")


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_key_file(rsa_key, keys_dir):
    return write_private(rsa_key, tmp_name(keys_dir, "rsa-2048", KEY_EXT))


@pytest.fixture(scope="session")
def rsa_key_file_with_password(rsa_key, keys_dir):
    return write_private(rsa_key,
                         tmp_name(keys_dir, "rsa-2048-pw", KEY_EXT),
                         KEY_PASSWORD)


@pytest.fixture(scope="session")
def rsa_public_key_file(rsa_key, keys_dir):
    path = tmp_name(keys_dir, "rsa-2048.pub", KEY_EXT)
    path.write_bytes(rsa_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo))
    return path


@pytest.fixture(scope="session")
def rsa1024_key_file(keys_dir):
    key = rsa.generate_private_key(public_exponent=65537, key_size=1024)
    return write_private(key, tmp_name(keys_dir, "rsa-1024", KEY_EXT))


@pytest.fixture(scope="session")
def ecdsa_key_file(keys_dir):
    key = ec.generate_private_key(ec.SECP256R1())
    return write_private(key, tmp_name(keys_dir, "ecdsa-p256", KEY_EXT))


@pytest.fixture
def small_image(tmp_path):
    path = tmp_name(tmp_path, "small", ".bin")
    path.write_bytes(SMALL_PAYLOAD)
    return path
