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
SHA-256 message digest (FIPS 180-4).

The work is split in the same order the data flows:

    iter_blocks()  - frame the message into padded 64 byte blocks
    schedule()     - expand one block into the 64 word message schedule
    compress()     - fold one schedule into the 8 word hash state
    digest()       - run all of the above over one message
"""

import struct

MASK32 = 0xffffffff
BLOCK_SIZE = 64
DIGEST_SIZE = 32
LENGTH_SIZE = 8

# First 32 bits of the fractional parts of the square roots of the
# first 8 primes.
INITIAL_STATE = (
    0x6a09e667, 0xbb67ae85, 0x3c6ef372, 0xa54ff53a,
    0x510e527f, 0x9b05688c, 0x1f83d9ab, 0x5be0cd19,
)

# First 32 bits of the fractional parts of the cube roots of the
# first 64 primes.
ROUND_CONSTANTS = (
    0x428a2f98, 0x71374491, 0xb5c0fbcf, 0xe9b5dba5,
    0x3956c25b, 0x59f111f1, 0x923f82a4, 0xab1c5ed5,
    0xd807aa98, 0x12835b01, 0x243185be, 0x550c7dc3,
    0x72be5d74, 0x80deb1fe, 0x9bdc06a7, 0xc19bf174,
    0xe49b69c1, 0xefbe4786, 0x0fc19dc6, 0x240ca1cc,
    0x2de92c6f, 0x4a7484aa, 0x5cb0a9dc, 0x76f988da,
    0x983e5152, 0xa831c66d, 0xb00327c8, 0xbf597fc7,
    0xc6e00bf3, 0xd5a79147, 0x06ca6351, 0x14292967,
    0x27b70a85, 0x2e1b2138, 0x4d2c6dfc, 0x53380d13,
    0x650a7354, 0x766a0abb, 0x81c2c92e, 0x92722c85,
    0xa2bfe8a1, 0xa81a664b, 0xc24b8b70, 0xc76c51a3,
    0xd192e819, 0xd6990624, 0xf40e3585, 0x106aa070,
    0x19a4c116, 0x1e376c08, 0x2748774c, 0x34b0bcb5,
    0x391c0cb3, 0x4ed8aa4a, 0x5b9cca4f, 0x682e6ff3,
    0x748f82ee, 0x78a5636f, 0x84c87814, 0x8cc70208,
    0x90befffa, 0xa4506ceb, 0xbef9a3f7, 0xc67178f2,
)

_STATE_FMT = '>8I'
_BLOCK_FMT = '>16I'


def _rotr(x, n):
    return ((x >> n) | (x << (32 - n))) & MASK32


def _sigma0(x):
    return _rotr(x, 7) ^ _rotr(x, 18) ^ (x >> 3)


def _sigma1(x):
    return _rotr(x, 17) ^ _rotr(x, 19) ^ (x >> 10)


def _big_sigma0(x):
    return _rotr(x, 2) ^ _rotr(x, 13) ^ _rotr(x, 22)


def _big_sigma1(x):
    return _rotr(x, 6) ^ _rotr(x, 11) ^ _rotr(x, 25)


def pad(length):
    """Return the padding that follows a message of `length` bytes.

    The 0x80 marker is followed by enough zeros to leave exactly 8 bytes
    in the last block for the big-endian bit length. When the marker
    lands at offset 56 or later of its block there is no room left for
    the length, so the zeros run to the end of that block and through
    56 bytes of a further one.
    """
    zeros = (BLOCK_SIZE - LENGTH_SIZE - 1 - length) % BLOCK_SIZE
    bits = (length * 8) & 0xffffffffffffffff
    return b'\x80' + bytes(zeros) + struct.pack('>Q', bits)


def iter_blocks(data):
    """Yield the padded message as consecutive 64 byte blocks."""
    view = memoryview(data).cast('B')
    length = len(view)
    full = length - length % BLOCK_SIZE
    for off in range(0, full, BLOCK_SIZE):
        yield bytes(view[off:off + BLOCK_SIZE])
    tail = bytes(view[full:]) + pad(length)
    for off in range(0, len(tail), BLOCK_SIZE):
        yield tail[off:off + BLOCK_SIZE]


def schedule(block):
    """Expand a 64 byte block into the 64 word message schedule."""
    w = list(struct.unpack(_BLOCK_FMT, block))
    for i in range(16, 64):
        w.append((_sigma1(w[i - 2]) + w[i - 7] +
                  _sigma0(w[i - 15]) + w[i - 16]) & MASK32)
    return w


def compress(state, w):
    """Run the 64 rounds over schedule `w` and return the next state."""
    a, b, c, d, e, f, g, h = state
    for k, wi in zip(ROUND_CONSTANTS, w):
        ch = (e & f) ^ (~e & g)
        t1 = (h + _big_sigma1(e) + ch + k + wi) & MASK32
        maj = (a & b) ^ (a & c) ^ (b & c)
        t2 = (_big_sigma0(a) + maj) & MASK32
        h = g
        g = f
        f = e
        e = (d + t1) & MASK32
        d = c
        c = b
        b = a
        a = (t1 + t2) & MASK32
    return tuple((x + y) & MASK32
                 for x, y in zip(state, (a, b, c, d, e, f, g, h)))


def digest_words(data):
    """Return the digest of `data` as 8 integer words."""
    state = INITIAL_STATE
    for block in iter_blocks(data):
        state = compress(state, schedule(block))
    return state


def digest(data):
    """Return the 32 byte SHA-256 digest of `data`."""
    return struct.pack(_STATE_FMT, *digest_words(data))


class Sha256():
    """
    Incremental digest with the same surface as hashlib's objects.

    Full blocks are compressed as soon as they are available; the
    partial tail is kept until the digest is read. Reading the digest
    does not finalize the object, more data may be added afterwards.
    """
    name = 'sha256'
    digest_size = DIGEST_SIZE
    block_size = BLOCK_SIZE

    def __init__(self, data=b''):
        self._state = INITIAL_STATE
        self._pending = b''
        self._length = 0
        if data:
            self.update(data)

    def update(self, data):
        buf = self._pending + bytes(memoryview(data).cast('B'))
        self._length += len(buf) - len(self._pending)
        full = len(buf) - len(buf) % BLOCK_SIZE
        for off in range(0, full, BLOCK_SIZE):
            self._state = compress(self._state,
                                   schedule(buf[off:off + BLOCK_SIZE]))
        self._pending = buf[full:]

    def copy(self):
        other = Sha256()
        other._state = self._state
        other._pending = self._pending
        other._length = self._length
        return other

    def digest_words(self):
        state = self._state
        tail = self._pending + pad(self._length)
        for off in range(0, len(tail), BLOCK_SIZE):
            state = compress(state, schedule(tail[off:off + BLOCK_SIZE]))
        return state

    def digest(self):
        return struct.pack(_STATE_FMT, *self.digest_words())

    def hexdigest(self):
        return self.digest().hex()
