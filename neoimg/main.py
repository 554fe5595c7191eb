#! /usr/bin/env python3
#
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

import base64
import getpass
import os.path
import sys

import click

import neoimg.keys as keys
from neoimg import image, neoimg_version, sha256
from neoimg.dumpinfo import dump_imginfo
from .keys import RSAUsageError, SigningError

MIN_PYTHON_VERSION = (3, 6)
if sys.version_info < MIN_PYTHON_VERSION:
    sys.exit("Python %s.%s or newer is required by neoimg."
             % MIN_PYTHON_VERSION)

DEFAULT_KEY_FILE = "rsa_private.pem"

valid_operations = [*image.OPERATIONS]
valid_digest_encodings = ['hex', 'raw', 'words']


def load_signature(sigfile):
    with open(sigfile, 'rb') as f:
        signature = base64.b64decode(f.read())
        return signature


def save_signature(sigfile, sig):
    with open(sigfile, 'wb') as f:
        signature = base64.b64encode(sig)
        f.write(signature)


def load_key(keyfile):
    try:
        key = keys.load(keyfile)
        if key is not None:
            return key
        passwd = getpass.getpass("Enter key passphrase: ").encode('utf-8')
        return keys.load(keyfile, passwd)
    except FileNotFoundError:
        raise click.UsageError("Key file not found ({})".format(keyfile))
    except RSAUsageError as e:
        raise click.UsageError(e)


def load_image(infile, project=None):
    img = image.Image(project=project)
    try:
        img.load(infile)
    except image.InputReadError as e:
        raise click.UsageError(e)
    return img


def get_signer(key, use_openssl):
    """Pick the signer for the bootloader digest."""
    keyfile = key or DEFAULT_KEY_FILE
    if not os.path.exists(keyfile):
        raise click.UsageError(
            "Private key {} not found, use --key or --fix-sig".format(keyfile))
    if use_openssl:
        return keys.OpenSSLSigner(keyfile)
    signer = load_key(keyfile)
    if signer is None:
        raise click.UsageError("Invalid passphrase")
    return signer


@click.argument('project', required=False)
@click.argument('outfile')
@click.argument('infile')
@click.option('--sig-out', metavar='filename',
              help='Path to the file to which the signature will be written. '
              'The signature will be encoded as base64 formatted string')
@click.option('--fix-sig', metavar='filename',
              help='Fixed signature for the bootloader, base64 encoded. It '
              'will be used instead of the signature calculated using the '
              'private key')
@click.option('--openssl', 'use_openssl', default=False, is_flag=True,
              help='Sign by invoking the openssl command line tool instead '
              'of signing in-process')
@click.option('-k', '--key', metavar='filename',
              help='Private RSA-2048 key used to sign the bootloader digest. '
              'Default: {}'.format(DEFAULT_KEY_FILE))
@click.option('-f', '--format', 'operation', metavar='format', required=True,
              type=click.Choice(valid_operations),
              help='One of: {}'.format(', '.join(
                  '{} ({})'.format(k, v) for k, v in image.OPERATIONS.items())))
@click.command(help='''Generate an executable memory image\n
               INFILE is parsed as Intel HEX if it has a .hex extension,
               otherwise binary format is used. PROJECT is an optional
               project name or folder recorded in VHDL headers''')
def generate(operation, key, use_openssl, fix_sig, sig_out, infile, outfile,
             project):
    if sig_out is not None and operation not in image.SIGNED_OPERATIONS:
        raise click.UsageError(
            "--sig-out is only valid for signed formats: {}".format(
                ", ".join(image.SIGNED_OPERATIONS)))
    img = load_image(infile, project)

    baked_signature = None
    signer = None
    if operation in image.SIGNED_OPERATIONS:
        if fix_sig is not None:
            if key is not None:
                raise click.UsageError(
                    "Can not sign using key and provide fixed-signature at "
                    "the same time")
            baked_signature = load_signature(fix_sig)
        else:
            signer = get_signer(key, use_openssl)

    try:
        img.create(operation, signer, baked_signature)
    except SigningError as e:
        raise click.ClickException(str(e))
    img.save(outfile)

    if sig_out is not None:
        save_signature(sig_out, img.get_signature())


@click.option('-e', '--encoding', metavar='encoding',
              type=click.Choice(valid_digest_encodings),
              help='Valid encodings: {}. '
                   'Default value is {}.'
                   .format(', '.join(valid_digest_encodings),
                           valid_digest_encodings[0]))
@click.option('-o', '--output', metavar='output', required=False,
              help='Specify the output file\'s name. \
                    The stdout is used if it is not provided.')
@click.argument('infile')
@click.command(help='Print the SHA256 digest of an executable')
def digest(infile, output, encoding):
    if not encoding:
        encoding = valid_digest_encodings[0]
    img = load_image(infile)

    if encoding == 'raw':
        if output:
            with open(output, 'wb') as f:
                f.write(img.digest())
        else:
            click.echo(img.digest(), nl=False)
        return
    if encoding == 'hex':
        text = img.digest().hex()
    else:
        text = " ".join("{:08x}".format(w)
                        for w in sha256.digest_words(img.payload))
    if output:
        with open(output, 'w') as f:
            print(text, file=f)
    else:
        print(text)


@click.argument('imgfile')
@click.option('-o', '--outfile', metavar='filename', required=False,
              help='Save header information to outfile in YAML format')
@click.option('-s', '--silent', default=False, is_flag=True,
              help='Do not print header information to output')
@click.command(help='Print and check the header of an executable binary')
def dumpinfo(imgfile, outfile, silent):
    checks = dump_imginfo(imgfile, outfile, silent)
    if not all(checks.values()):
        raise click.ClickException("Executable header is not valid")
    print("dumpinfo has run successfully")


class AliasesGroup(click.Group):

    _aliases = {
        "gen": "generate",
    }

    def list_commands(self, ctx):
        cmds = [k for k in self.commands]
        aliases = [k for k in self._aliases]
        return sorted(cmds + aliases)

    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        if cmd_name in self._aliases:
            return click.Group.get_command(self, ctx, self._aliases[cmd_name])
        return None


@click.command(help='Print neoimg version information')
def version():
    print(neoimg_version)


@click.command(cls=AliasesGroup,
               context_settings=dict(help_option_names=['-h', '--help']))
def neoimg():
    pass


neoimg.add_command(generate)
neoimg.add_command(digest)
neoimg.add_command(dumpinfo)
neoimg.add_command(version)


if __name__ == '__main__':
    neoimg()
