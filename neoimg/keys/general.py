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
General signer interface
"""


class SigningError(Exception):
    """Raised when a signature could not be produced."""
    pass


class SignerInvocationError(SigningError):
    """Raised when an external signing program fails or is missing."""
    pass


class KeyClass():
    """
    Something that can sign the image digest.

    Implementations only ever see the digest message, never the image.
    """
    def shortname(self):
        raise NotImplementedError()

    def sig_type(self):
        raise NotImplementedError()

    def sig_len(self):
        raise NotImplementedError()

    def sign_digest(self, digest):
        raise NotImplementedError()

    def checked_sign(self, digest):
        """Sign `digest` and make sure the result has the expected size."""
        sig = self.sign_digest(digest)
        if len(sig) != self.sig_len():
            raise SigningError(
                "{} signature has {} bytes, expected {}".format(
                    self.shortname(), len(sig), self.sig_len()))
        return sig
