# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m srecfile` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``srecfile.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``srecfile.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import sys
from typing import Callable
from typing import Mapping
from typing import Optional

import click

from . import __version__
from .document import SrecDocument
from .errors import NoDataRecords
from .utils import hexlify
from .utils import parse_int


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


BASED_INT = BasedIntParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)

DATA_FMT_FORMATTERS: Mapping[str, Callable[[bytes], str]] = {
    'ascii': lambda b: b.decode(errors='replace'),
    'hex': lambda b: hexlify(b, upper=False),
    'HEX': lambda b: hexlify(b, upper=True),
}

DATA_FMT_CHOICE = click.Choice(list(DATA_FMT_FORMATTERS.keys()))


# ----------------------------------------------------------------------------

def load_document(
    input_path: Optional[str],
    strict: bool = False,
) -> SrecDocument:

    if input_path == '-':
        input_path = None
    try:
        return SrecDocument.load(input_path, strict=strict)
    except ValueError as exc:
        raise click.ClickException(str(exc))


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ============================================================================

@click.group()
@click.option('--version', is_flag=True, is_eager=True, expose_value=False,
              callback=print_version, help="""
    Prints the package version number.
""")
def main() -> None:
    """
    A set of command line utilities for Motorola S-record files.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for command chaining via standard output/input buffering.
    """


# ----------------------------------------------------------------------------

@main.command()
@click.option('-c', '--color', is_flag=True, help="""
    Colorizes record fields with ANSI escape codes.
    Ignored when writing to a file.
""")
@click.option('--strict', is_flag=True, help="""
    Requires the byte count field of each record be correct.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def cat(
    color: bool,
    strict: bool,
    infile: str,
    outfile: Optional[str],
) -> None:
    r"""Rewrites records in canonical form.

    Each record is parsed, then serialized again with uppercase hexadecimal
    digits and its own byte count and checksum.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` or leave empty to write to standard output.
    """

    document = load_document(infile, strict=strict)

    if not outfile or outfile == '-':
        document.print(color=color)
    else:
        document.save(outfile)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-a', '--address', type=BASED_INT, default=0, show_default=True, help="""
    Address of the first byte.
""")
@click.option('-s', '--start', type=BASED_INT, help="""
    Program start address.
    By default it is the address of the first byte.
""")
@click.option('-w', '--width', type=BASED_INT, default=16, show_default=True, help="""
    Maximum length of the record data field, in bytes.
""")
@click.option('--header', type=str, default='', show_default=True, help="""
    Header record text.
""")
@click.option('--no-header', is_flag=True, help="""
    Omits the header record.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def from_binary(
    address: int,
    start: Optional[int],
    width: int,
    header: str,
    no_header: bool,
    infile: str,
    outfile: Optional[str],
) -> None:
    r"""Converts a raw binary file into records.

    ``INFILE`` is the path of the binary input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` or leave empty to write to standard output.
    """

    if infile == '-':
        data = sys.stdin.buffer.read()
    else:
        with open(infile, 'rb') as stream:
            data = stream.read()

    header_data = None if no_header else header.encode()
    try:
        document = SrecDocument.from_bytes(data, offset=address, header=header_data,
                                           start=start, maxdatalen=width)
    except ValueError as exc:
        raise click.ClickException(str(exc))

    if not outfile or outfile == '-':
        outfile = None
    document.save(outfile)


# ----------------------------------------------------------------------------

# noinspection PyShadowingBuiltins
@main.command()
@click.option('-f', '--format', 'format', type=DATA_FMT_CHOICE,
              default='ascii', show_default=True, help="""
    Header data format.
""")
@click.argument('infile', type=FILE_PATH_IN)
def get_header(
    format: str,
    infile: str,
) -> None:
    r"""Gets the header data.

    Nothing is printed if there is no header record.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    document = load_document(infile)
    header = document.header

    if header is not None:
        formatter = DATA_FMT_FORMATTERS[format]
        click.echo(formatter(header))


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN)
def info(
    infile: str,
) -> None:
    r"""Prints a summary of the records.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    document = load_document(infile)
    data_records = document.data_records()

    click.echo(f'records: {len(document):d}')
    click.echo(f'data records: {len(data_records):d}')

    try:
        size = document.image_size()
    except NoDataRecords:
        click.echo('image start: -')
        click.echo('image size: -')
    else:
        click.echo(f'image start: 0x{data_records[0].address:08X}')
        click.echo(f'image size: {size:d}')

    header = document.header
    if header is None:
        click.echo('header: -')
    else:
        click.echo(f'header: {header.decode(errors="replace")}')

    start = document.start_address
    if start is None:
        click.echo('start address: -')
    else:
        click.echo(f'start address: 0x{start:08X}')


# ----------------------------------------------------------------------------

@main.command()
@click.option('--strict', is_flag=True, help="""
    Requires the byte count field of each record be correct.
""")
@click.argument('infile', type=FILE_PATH_IN)
def validate(
    strict: bool,
    infile: str,
) -> None:
    r"""Validates a record file.

    Each record must have a known type, valid hexadecimal fields, and a
    correct checksum.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    load_document(infile, strict=strict)
