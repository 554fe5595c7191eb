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
Executable memory image generation.
"""

import datetime
import os.path
import struct

from intelhex import IntelHex, IntelHexError

from . import sha256
from .keys import SigningError

EXE_SIGNATURE = 0x4788cafe
EXE_HEADER_SIZE = 12
WORD_SIZE = 4
# RSA-2048 signature plus the bootloader size word
SIGNATURE_SIZE = 256
SECURE_BOOT_INFO_SIZE = SIGNATURE_SIZE + WORD_SIZE
INTEL_HEX_EXT = "hex"
BUILD_TIME_FORMAT = "%d.%m.%Y %H:%M:%S"

OPERATIONS = {
        'app_bin': "Application executable binary (little-endian, with "
                   "header)",
        'app_vhd': "Application raw executable memory image (VHDL package "
                   "body, no header)",
        'bld_vhd': "Bootloader raw executable memory image (VHDL package "
                   "body, no header)",
        'raw_hex': "Application raw executable (ASCII hex, no header)",
        'raw_bin': "Application raw executable (binary, no header)",
        'raw_coe': "Application raw executable (COE, no header)",
        'raw_mem': "Application raw executable (MEM, no header)",
        'raw_mif': "Application raw executable (MIF, no header)",
}

# Operations that need the bootloader digest to be signed
SIGNED_OPERATIONS = ('bld_vhd',)

VHDL_PACKAGES = {
        'app_vhd': ("IMEM", "neorv32_application_image", "application"),
        'bld_vhd': ("BOOTROM", "neorv32_bootloader_image", "bootloader"),
}

VHDL_HEADER = """\
-- The NEORV32 RISC-V Processor - github.com/stnolting/neorv32
-- Auto-generated memory initialization image (for internal {memory})
-- Source: {source}
-- Built: {built}

library ieee;
use ieee.std_logic_1164.all;

library neorv32;
use neorv32.neorv32_package.all;

package {package} is

constant {prefix}_init_size_c  : natural := {size}; -- bytes
constant {prefix}_init_image_c : mem32_t := (
"""


class InputReadError(Exception):
    """Raised when the input executable cannot be read completely."""
    pass


def word_sum_complement(words):
    """Return the value that brings the 32-bit sum of `words` to zero."""
    return (-sum(words)) & sha256.MASK32


def sig_to_words(sig):
    """Pack a signature into little-endian words, zero filling the tail."""
    sig = bytes(sig)
    if len(sig) % WORD_SIZE:
        sig += bytes(WORD_SIZE - len(sig) % WORD_SIZE)
    return list(struct.unpack('<{}I'.format(len(sig) // WORD_SIZE), sig))


class Image:

    def __init__(self, project=None, build_time=None):
        self.project = project
        self.build_time = build_time or datetime.datetime.now()
        self.source = None
        self.payload = b''
        self.signature = None
        self.output = None

    def __repr__(self):
        return "<Image source={}, project={}, size=0x{:x}, words={}>".format(
                    self.source,
                    self.project,
                    len(self.payload),
                    len(self.payload) // WORD_SIZE)

    def load(self, path):
        """Load the raw executable from a binary or Intel HEX file"""
        ext = os.path.splitext(path)[1][1:].lower()
        try:
            if ext == INTEL_HEX_EXT:
                ih = IntelHex(path)
                payload = ih.tobinstr()
                expected = len(payload)
            else:
                with open(path, 'rb') as f:
                    expected = os.fstat(f.fileno()).st_size
                    payload = f.read()
        except FileNotFoundError:
            raise InputReadError("Input file not found ({})".format(path))
        except IntelHexError as e:
            raise InputReadError("Invalid Intel HEX file ({}): {}".format(
                path, e))
        except OSError as e:
            raise InputReadError("Input file error ({}): {}".format(path, e))

        if len(payload) != expected:
            raise InputReadError(
                "Unexpected input file end ({}): read {} of {} bytes".format(
                    path, len(payload), expected))
        if not payload:
            raise InputReadError("Input file is empty ({})".format(path))
        if len(payload) % WORD_SIZE:
            print(os.path.basename(__file__) + ': Warning: image size is '
                  'not a multiple of 4 bytes!')

        self.source = path
        self.payload = payload

    def words(self):
        """Little-endian 32-bit words of the payload, zero padded."""
        data = self.payload
        if len(data) % WORD_SIZE:
            data += bytes(WORD_SIZE - len(data) % WORD_SIZE)
        return list(struct.unpack('<{}I'.format(len(data) // WORD_SIZE),
                                  data))

    def digest(self):
        return sha256.digest(self.payload)

    def digest_message(self):
        """
        The digest as the target holds it in memory: 8 words, each stored
        little-endian. This is what gets signed.
        """
        return struct.pack('<8I', *sha256.digest_words(self.payload))

    def checksum(self):
        return word_sum_complement(self.words())

    def header(self):
        words = self.words()
        return struct.pack('<III', EXE_SIGNATURE, len(words) * WORD_SIZE,
                           word_sum_complement(words))

    def source_name(self):
        if self.project:
            return "{}/{}".format(self.project, self.source)
        return self.source

    def sign(self, key=None, baked_signature=None):
        """Produce the signature over the digest message.

        A baked signature, computed by some external step, takes
        precedence over a key.
        """
        if baked_signature is not None:
            sig = bytes(baked_signature)
            if len(sig) != SIGNATURE_SIZE:
                raise SigningError("Fixed signature has {} bytes, expected "
                                   "{}".format(len(sig), SIGNATURE_SIZE))
        elif key is not None:
            sig = key.checked_sign(self.digest_message())
            if len(sig) != SIGNATURE_SIZE:
                raise SigningError("{} produces {} byte signatures, "
                                   "expected {}".format(key.shortname(),
                                                        len(sig),
                                                        SIGNATURE_SIZE))
        else:
            raise ValueError("Signing requires a key or a fixed signature")
        self.signature = sig
        return sig

    def get_signature(self):
        return self.signature

    def create(self, operation, key=None, baked_signature=None):
        """Render the loaded executable in the requested format."""
        if operation not in OPERATIONS:
            raise ValueError("Invalid operation '{}'".format(operation))
        if operation in SIGNED_OPERATIONS:
            self.sign(key, baked_signature)
        emit = getattr(self, '_emit_' + operation)
        self.output = emit()
        return self.output

    def save(self, path):
        """Save the rendered image to the given file"""
        if isinstance(self.output, str):
            with open(path, 'w', newline='\n') as f:
                f.write(self.output)
        else:
            with open(path, 'wb') as f:
                f.write(self.output)

    def _emit_app_bin(self):
        words = self.words()
        return self.header() + struct.pack('<{}I'.format(len(words)), *words)

    def _emit_raw_bin(self):
        return bytes(self.payload)

    def _vhdl_table(self, operation, size):
        memory, package, prefix = VHDL_PACKAGES[operation]
        out = VHDL_HEADER.format(
                memory=memory,
                source=self.source_name(),
                built=self.build_time.strftime(BUILD_TIME_FORMAT),
                package=package,
                prefix=prefix,
                size=size)
        lines = ['x"{:08x}"'.format(w) for w in self.words()]
        out += ",\n".join(lines) + "\n"
        out += ");\n"
        return out, package

    def _emit_app_vhd(self):
        out, package = self._vhdl_table('app_vhd', len(self.payload))
        out += "\nend {};\n".format(package)
        return out

    def _emit_bld_vhd(self):
        out, package = self._vhdl_table(
                'bld_vhd', len(self.payload) + SECURE_BOOT_INFO_SIZE)
        out += "constant bootloader_init_secure_boot_info_c : mem32_t := (\n"
        for w in sig_to_words(self.signature):
            out += 'x"{:08x}",\n'.format(w)
        out += 'x"{:08x}" -- Bootloader code size\n'.format(len(self.words()))
        out += ");\n"
        out += "\nend {};\n".format(package)
        return out

    def _emit_raw_hex(self):
        return "".join("{:08x}\n".format(w) for w in self.words())

    def _emit_raw_coe(self):
        lines = ["{:08x}".format(w) for w in self.words()]
        return ("memory_initialization_radix=16;\n"
                "memory_initialization_vector=\n" +
                ",\n".join(lines) + ";\n")

    def _emit_raw_mem(self):
        return "".join("@{:08x} {:08x}\n".format(i, w)
                       for i, w in enumerate(self.words()))

    def _emit_raw_mif(self):
        words = self.words()
        out = "DEPTH = {};\n".format(len(words))
        out += "WIDTH = 32;\n"
        out += "ADDRESS_RADIX = HEX;\n"
        out += "DATA_RADIX = HEX;\n"
        out += "CONTENT\n"
        out += "BEGIN\n"
        for i, w in enumerate(words):
            out += "{:08x} : {:08x};\n".format(i, w)
        out += "END;\n"
        return out
