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

r"""Generic utility functions."""

import binascii
import re
from typing import Any
from typing import Iterator
from typing import Mapping
from typing import Optional
from typing import Union

from .errors import MalformedHex

AnyBytes = Union[bytes, bytearray, memoryview]

SUFFIX_SCALE: Mapping[str, int] = {
    'k': 2**10,
    'm': 2**20,
    'g': 2**30,

    'kib': 2**10,
    'mib': 2**20,
    'gib': 2**30,

    'kb': 10**3,
    'mb': 10**6,
    'gb': 10**9,
}
r"""Integer suffix to scale factor."""

INT_REGEX = re.compile(r'^\s*(?P<sign>[+-]?)\s*'
                       r'(?P<prefix>(0x|0b|0o|0)?)'
                       r'(?P<value>[a-f0-9]+)'
                       r'(?P<suffix>h?)'
                       r'\s*(?P<scale>('
                       r'k|m|g|'
                       r'kib|mib|gib|'
                       r'kb|mb|gb'
                       r')?)\s*$')

HEX_REGEX = re.compile(r'[0-9A-Fa-f]+')


def chop(
    vector: AnyBytes,
    window: int,
) -> Iterator[AnyBytes]:
    r"""Chops a vector.

    Iterates through the vector grouping its items into windows.

    Args:
        vector (items):
            Vector to chop.

        window (int):
            Window length.

    Yields:
        list or items: `vector` slices of up to `window` elements.

    Examples:
        >>> list(chop(b'ABCDEFG', 2))
        [b'AB', b'CD', b'EF', b'G']
    """
    window = int(window)
    if window <= 0:
        raise ValueError('non-positive window')

    for i in range(0, len(vector), window):
        yield vector[i:(i + window)]


def hexlify(
    bytestr: AnyBytes,
    upper: bool = True,
) -> str:
    r"""Converts raw bytes into a hexadecimal string.

    Args:
        bytestr (bytes):
            Source byte string.

        upper (bool):
            Uppercase hexadecimal string.

    Returns:
        str: Hexadecimal string, two digits per byte.

    Examples:
        >>> hexlify(b'\xAA\xBB\xCC')
        'AABBCC'
        >>> hexlify(b'\xAA\xBB\xCC', upper=False)
        'aabbcc'
    """

    hexstr = binascii.hexlify(bytes(bytestr)).decode('ascii')
    if upper:
        hexstr = hexstr.upper()
    return hexstr


def parse_hex(field: str) -> int:
    r"""Parses a fixed-width hexadecimal field.

    Unlike :func:`int`, it accepts hexadecimal digits only: no sign, no
    whitespace, no ``0x`` prefix, no underscores.

    Args:
        field (str):
            Hexadecimal digits, case-insensitive.

    Returns:
        int: Parsed value.

    Raises:
        :class:`MalformedHex`: Not a hexadecimal field.

    Examples:
        >>> parse_hex('00FF')
        255
        >>> parse_hex('0x1F')
        Traceback (most recent call last):
            ...
        srecfile.errors.MalformedHex: invalid hex field: '0x1F'
    """

    if not HEX_REGEX.fullmatch(field):
        raise MalformedHex(f'invalid hex field: {field!r}')
    return int(field, 16)


def parse_int(
    value: Union[str, Any],
) -> Optional[int]:
    r"""Parses an integer.

    Args:
        value:
            A generic object to convert to integer.
            In case `value` is a :obj:`str` (case-insensitive), it can be
            either prefixed with ``0x`` or postfixed with ``h`` to convert
            from a hexadecimal representation, or prefixed with ``0b`` from
            binary; a prefix of only ``0`` converts from octal.
            A further suffix applies a scale factor as per
            :data:`SUFFIX_SCALE`.
            A ``None`` value evaluates as ``None``.
            Any other object class will call the standard :func:`int`.

    Returns:
        int: None if `value` is ``None``, its integer conversion otherwise.

    Examples:
        >>> parse_int('-0xABk')
        -175104

        >>> parse_int(None) is None
        True

        >>> parse_int(123)
        123
    """
    if value is None:
        return None

    elif isinstance(value, str):
        value = value.lower()
        m = INT_REGEX.match(value)
        if not m:
            raise ValueError(f'invalid syntax: {value!r}')
        g = m.groupdict()
        sign = g['sign']
        prefix = g['prefix']
        value = g['value']
        suffix = g['suffix']
        scale = g['scale']
        if prefix in ('0b', '0o') and suffix == 'h':
            raise ValueError(f'invalid syntax: {value!r}')

        if prefix == '0x' or suffix == 'h':
            i = int(value, 16)
        elif prefix == '0b':
            i = int(value, 2)
        elif prefix == '0' or prefix == '0o':
            i = int(value, 8)
        else:
            i = int(value, 10)

        i *= SUFFIX_SCALE.get((scale or '').lower(), 1)

        if sign == '-':
            i = -i

        return i

    else:
        return int(value)


def unhexlify(hexstr: str) -> bytes:
    r"""Converts a hexadecimal string into raw bytes.

    Args:
        hexstr (str):
            Source hexadecimal string, two digits per byte, case-insensitive.

    Returns:
        bytes: Raw byte string.

    Raises:
        :class:`MalformedHex`: Odd length, or invalid digits.

    Examples:
        >>> unhexlify('AABBcc')
        b'\xaa\xbb\xcc'
        >>> unhexlify('ABC')
        Traceback (most recent call last):
            ...
        srecfile.errors.MalformedHex: invalid hex data: 'ABC'
    """

    if hexstr and not HEX_REGEX.fullmatch(hexstr):
        raise MalformedHex(f'invalid hex data: {hexstr!r}')
    if len(hexstr) & 1:
        raise MalformedHex(f'invalid hex data: {hexstr!r}')
    return binascii.unhexlify(hexstr)
