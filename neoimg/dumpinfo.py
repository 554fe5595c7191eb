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
Parse and print the header information of an executable binary.
"""
import os.path
import struct
import sys

import click
import yaml

from neoimg import image

HEADER_ITEMS = ("signature", "size", "checksum")
_LINE_LENGTH = 60


def print_in_row(row_text):
    row_text = "#### " + row_text + " "
    fill = "#" * (_LINE_LENGTH - len(row_text))
    print(row_text + fill)


def parse_header(b):
    """Split an `app_bin` image into its header fields and payload."""
    if len(b) < image.EXE_HEADER_SIZE:
        raise click.UsageError("File too small, no {}-byte header "
                               "present".format(image.EXE_HEADER_SIZE))
    _header = struct.unpack('<III', b[:image.EXE_HEADER_SIZE])
    header = dict(zip(HEADER_ITEMS, _header))
    return header, b[image.EXE_HEADER_SIZE:]


def check_header(header, payload):
    """Return a dict of check name -> bool for the header fields."""
    words = list(struct.unpack('<{}I'.format(len(payload) // 4),
                               payload[:len(payload) & ~3]))
    return {
        "signature": header["signature"] == image.EXE_SIGNATURE,
        "size": header["size"] == len(payload),
        "checksum": (sum(words) + header["checksum"]) & 0xffffffff == 0,
    }


def dump_imginfo(imgfile, outfile=None, silent=False):
    """Parse an executable binary and print/save the header information."""
    try:
        with open(imgfile, "rb") as f:
            b = f.read()
    except FileNotFoundError:
        raise click.UsageError("Image file not found ({})".format(imgfile))

    header, payload = parse_header(b)
    checks = check_header(header, payload)

    # Generating output yaml file
    if outfile is not None:
        imgdata = {"header": header,
                   "payload_size": len(payload),
                   "checks": checks}
        with open(outfile, "w") as outf:
            yaml.dump(imgdata, outf, sort_keys=False)

    if silent:
        sys.exit(0 if all(checks.values()) else 1)

    print("Printing content of executable:", os.path.basename(imgfile), "\n")

    print_in_row("Executable header (offset: 0x0)")
    for key, value in header.items():
        status = "OK" if checks[key] else "INVALID"
        print(key, ":", " " * (19 - len(key)), "0x{:08x} ".format(value),
              status, sep="")
    print("#" * _LINE_LENGTH)

    print_in_row("Payload (offset: {})".format(hex(image.EXE_HEADER_SIZE)))
    print("size:", " " * 16, hex(len(payload)), sep="")
    if len(payload) % 4:
        print("Warning: payload size is not a multiple of 4 bytes!")
    print_in_row("End of Image")
    return checks
