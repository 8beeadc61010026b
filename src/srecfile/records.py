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

r"""Motorola S-record line codec.

A single S-record line is made of the following fields, all hexadecimal
digits but the leading ``S`` marker and the record type digit::

    S<type><count><address><data><checksum>

The width of the *address* field depends on the record type, while *count*
tells the number of bytes following it (*address*, *data*, and *checksum*).

See Also:
    `<https://en.wikipedia.org/wiki/SREC_(file_format)>`_
"""

import enum
import sys
from typing import IO
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Type
from typing import Union

import colorama

from .errors import ChecksumMismatch
from .errors import DataSizeOverflow
from .errors import InvalidRecordType
from .errors import MalformedLine
from .utils import AnyBytes
from .utils import hexlify
from .utils import parse_hex
from .utils import unhexlify

TOKEN_COLOR_CODES: Mapping[str, str] = {
    '':         colorama.Style.RESET_ALL,
    '<':        colorama.Style.RESET_ALL,
    '>':        colorama.Style.RESET_ALL,
    'address':  colorama.Fore.RED,
    'begin':    colorama.Fore.YELLOW,
    'checksum': colorama.Fore.MAGENTA,
    'count':    colorama.Fore.BLUE,
    'data':     colorama.Fore.CYAN,
    'dataalt':  colorama.Fore.LIGHTCYAN_EX,
    'end':      colorama.Style.RESET_ALL,
    'tag':      colorama.Fore.GREEN,
}
r"""ANSI color codes for each possible token type."""


def colorize_tokens(
    tokens: Mapping[str, str],
    altdata: bool = True,
) -> Mapping[str, str]:
    r"""Prepends ANSI color codes to record field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.
    The retrieved code is prepended to the token.
    All the modified tokens are then collected and returned.

    Args:
        tokens (dict):
            A mapping of each token key name to token string.

        altdata (bool):
            If true, it alternates each byte (two hex digits) between the ANSI
            color codes mapped with keys ``data`` (even byte index) and
            ``dataalt`` (odd byte index).
            If false, only the ``data`` code is prepended.

    Returns:
        dict: `tokens` with prepended ANSI color codes.
    """

    codes = TOKEN_COLOR_CODES
    colorized = {}
    colorized.setdefault('<', codes['<'])

    for key, value in tokens.items():
        if key not in codes:
            key = ''
        if value:
            code = codes[key]

            if key == 'data' and altdata:
                altcode = codes['dataalt']
                pairs = []
                for i in range(0, len(value), 2):
                    pairs.append(altcode if i & 2 else code)
                    pairs.append(value[i:(i + 2)])
                colorized[key] = ''.join(pairs)
            else:
                colorized[key] = code + value

    colorized.setdefault('>', codes['>'])
    return colorized


def calculate_checksum(hexstr: str) -> str:
    r"""Computes the S-record checksum of hexadecimal fields.

    The checksum is the one's complement of the least significant byte of the
    sum of all the bytes represented by `hexstr`.

    Args:
        hexstr (str):
            Concatenated *count*, *address*, and *data* fields, as found
            within a record line (two hex digits per byte).

    Returns:
        str: Checksum as two uppercase hexadecimal digits.

    Raises:
        :class:`MalformedHex`: Invalid hexadecimal string.

    Examples:
        >>> calculate_checksum('03' '0000')
        'FC'
        >>> calculate_checksum('11' '0038' '48656C6C6F20776F726C642E0A00')
        '42'
    """

    total = sum(unhexlify(hexstr))
    checksum = (total & 0xFF) ^ 0xFF
    return f'{checksum:02X}'


class SrecTag(enum.IntEnum):
    r"""Motorola S-record tag.

    It tells the role of a record, as well as the size of its *address* field.
    """

    HEADER = 0
    r"""Header string. Optional."""

    DATA_16 = 1
    r"""16-bit address data record."""

    DATA_24 = 2
    r"""24-bit address data record."""

    DATA_32 = 3
    r"""32-bit address data record."""

    RESERVED = 4
    r"""Reserved tag."""

    COUNT_16 = 5
    r"""16-bit record count. Optional."""

    COUNT_24 = 6
    r"""24-bit record count. Not supported."""

    START_32 = 7
    r"""32-bit start address. Terminates :attr:`DATA_32`."""

    START_24 = 8
    r"""24-bit start address. Terminates :attr:`DATA_24`."""

    START_16 = 9
    r"""16-bit start address. Terminates :attr:`DATA_16`."""

    @classmethod
    def fit_data_tag(cls, address_max: int) -> 'SrecTag':
        r"""Fits data record tag.

        Given the maximum *address* of the involved *data* records, it fits the
        most compact *data* tag.

        Args:
            address_max (int):
                Maximum *address* of the involved *data* records.

        Returns:
            :class:`SrecTag`: *Data* record tag.

        Raises:
            ValueError: invalid `address_max`.

        Examples:
            >>> SrecTag.fit_data_tag(0xFFFF)
            <SrecTag.DATA_16: 1>
            >>> SrecTag.fit_data_tag(0xFFFFFF)
            <SrecTag.DATA_24: 2>
            >>> SrecTag.fit_data_tag(0xFFFFFFFF)
            <SrecTag.DATA_32: 3>
        """

        if address_max < 0:
            raise ValueError('address overflow')
        if address_max <= 0xFFFF:
            return cls.DATA_16
        if address_max <= 0xFFFFFF:
            return cls.DATA_24
        if address_max <= 0xFFFFFFFF:
            return cls.DATA_32
        raise ValueError('address overflow')

    @classmethod
    def fit_start_tag(cls, address: int) -> 'SrecTag':
        r"""Fits start address record tag.

        Given the *start address*, it fits the most compact *start address* tag.

        Args:
            address (int):
                Start address.

        Returns:
            :class:`SrecTag`: *Start address* record tag.

        Raises:
            ValueError: invalid `address`.

        Examples:
            >>> SrecTag.fit_start_tag(0xFFFF)
            <SrecTag.START_16: 9>
            >>> SrecTag.fit_start_tag(0xFFFFFFFF)
            <SrecTag.START_32: 7>
        """

        if address < 0:
            raise ValueError('address overflow')
        if address <= 0xFFFF:
            return cls.START_16
        if address <= 0xFFFFFF:
            return cls.START_24
        if address <= 0xFFFFFFFF:
            return cls.START_32
        raise ValueError('address overflow')

    def get_address_max(self) -> Optional[int]:
        r"""Calculates the maximum address.

        Returns:
            int: Maximum *address* value, or ``None`` if the tag has no
            *address* field.

        Examples:
            >>> hex(SrecTag.DATA_24.get_address_max())
            '0xffffff'
            >>> SrecTag.RESERVED.get_address_max() is None
            True
        """

        size = self.get_address_size()
        if size is None:
            return None
        return (1 << (size << 3)) - 1

    def get_address_size(self) -> Optional[int]:
        r"""Address field size, in bytes.

        Returns:
            int: *Address* field size, or ``None`` if not supported.

        Examples:
            >>> SrecTag.HEADER.get_address_size()
            2
            >>> SrecTag.START_24.get_address_size()
            3
            >>> SrecTag.DATA_32.get_address_size()
            4
            >>> SrecTag.COUNT_24.get_address_size() is None
            True
        """

        SIZES = (2, 2, 3, 4, None, 2, None, 4, 3, 2)
        return SIZES[self]

    def get_data_max(self) -> Optional[int]:
        r"""Calculates the maximum data size.

        The *count* field is a single byte, which must also account for the
        *address* and *checksum* fields.

        Returns:
            int: Maximum *data* size, or ``None`` if not supported.

        Examples:
            >>> SrecTag.DATA_16.get_data_max()
            252
            >>> SrecTag.DATA_32.get_data_max()
            250
        """

        size = self.get_address_size()
        if size is None:
            return None
        return 0xFF - size - 1

    def get_tag_match(self) -> Optional['SrecTag']:
        r"""Calculates the matching tag.

        Given *data* or *start address* records, it returns the matching tag.

        Returns:
            :class:`SrecTag`: Matching tag for *self*, or ``None``

        Examples:
            >>> SrecTag.DATA_16.get_tag_match()
            <SrecTag.START_16: 9>
            >>> SrecTag.START_32.get_tag_match()
            <SrecTag.DATA_32: 3>
            >>> SrecTag.HEADER.get_tag_match() is None
            True
        """

        MATCHES = (None, 9, 8, 7, None, None, None, 3, 2, 1)
        match = MATCHES[self]
        if match is None:
            return None
        return type(self)(match)

    def is_count(self) -> bool:
        r"""bool: This is a record count tag."""

        return self == self.COUNT_16 or self == self.COUNT_24

    def is_data(self) -> bool:
        r"""bool: This is a data record tag."""

        return self == self.DATA_16 or self == self.DATA_24 or self == self.DATA_32

    def is_header(self) -> bool:
        r"""bool: This is a header record tag."""

        return self == self.HEADER

    def is_start(self) -> bool:
        r"""bool: This is a start address (termination) record tag."""

        return self == self.START_16 or self == self.START_24 or self == self.START_32


class SrecRecord:
    r"""Motorola S-record record object.

    Records are immutable: all the fields are fixed upon construction, and the
    derived ones (:attr:`count` and :attr:`checksum`) are computed once.

    The constructor does not check the `address` value against the width of
    the *address* field; exceeding bits are just dropped on serialization.
    Please use the factory methods (e.g. :meth:`create_data`) for range
    checking.

    Args:
        tag (:class:`SrecTag`):
            Record tag, as an integer within ``0`` to ``9``.

        address (int):
            Record address.

        data (bytes):
            Record payload, as bytes or a sequence of byte values.

    Raises:
        :class:`InvalidRecordType`: unsupported `tag`.

        :class:`DataSizeOverflow`: `data` does not fit the record.

    Examples:
        >>> record = SrecRecord(1, 0x1234, b'abc')
        >>> str(record)
        'S10612346162638D'
        >>> record.count, record.checksum
        (6, 141)
    """

    Tag: Type[SrecTag] = SrecTag

    def __init__(
        self,
        tag: Union[SrecTag, int],
        address: int = 0,
        data: Union[AnyBytes, Tuple[int, ...]] = b'',
    ) -> None:

        try:
            tag = self.Tag(tag)
        except ValueError:
            raise InvalidRecordType(f'invalid record type: {tag!r}') from None

        address_size = tag.get_address_size()
        if address_size is None:
            raise InvalidRecordType(f'unsupported record type: {tag:d}')

        if isinstance(data, int):
            raise TypeError('data must be a byte sequence')
        data = bytes(data)
        if len(data) > tag.get_data_max():
            raise DataSizeOverflow(f'data size overflow: {len(data):d} bytes')

        self._tag: SrecTag = tag
        self._address: int = address.__index__()
        self._data: bytes = data
        self._count: int = address_size + len(data) + 1
        self._checksum: int = int(calculate_checksum(self._fields_text()), 16)

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, SrecRecord):
            return NotImplemented
        return (self._tag == other._tag and
                self._address == other._address and
                self._data == other._data)

    def __hash__(self) -> int:

        return hash((self._tag, self._address, self._data))

    def __repr__(self) -> str:

        return (f'{type(self).__name__}({self._tag!r}, '
                f'address=0x{self._address:X}, data={self._data!r})')

    def __str__(self) -> str:

        return self.to_text()

    def _fields_text(self) -> str:

        address_size = self._tag.get_address_size()
        address = self._address & self._tag.get_address_max()
        return (f'{self._count:02X}'
                f'{address:0{address_size * 2}X}'
                f'{hexlify(self._data)}')

    @property
    def address(self) -> int:
        r"""int: Record address."""
        return self._address

    @property
    def checksum(self) -> int:
        r"""int: Record checksum byte."""
        return self._checksum

    @property
    def count(self) -> int:
        r"""int: Byte count: *address* + *data* + *checksum* sizes."""
        return self._count

    @property
    def data(self) -> bytes:
        r"""bytes: Record payload."""
        return self._data

    @property
    def tag(self) -> SrecTag:
        r""":class:`SrecTag`: Record tag."""
        return self._tag

    @classmethod
    def create_count(cls, count: int) -> 'SrecRecord':
        r"""Creates a record count record.

        Args:
            count (int):
                Number of preceding *data* records.

        Returns:
            :class:`SrecRecord`: Record count record object.

        Raises:
            ValueError: count overflow.

        Examples:
            >>> str(SrecRecord.create_count(0x1234))
            'S5031234B6'
        """

        if not 0 <= count <= 0xFFFF:
            raise ValueError('count overflow')

        return cls(cls.Tag.COUNT_16, address=count)

    @classmethod
    def create_data(
        cls,
        address: int,
        data: AnyBytes,
        tag: Optional[SrecTag] = None,
    ) -> 'SrecRecord':
        r"""Creates a data record.

        This is method instantiates a *data* record, optionally choosing the
        desired address size.

        Args:
            address (int):
                Record address.

            data (bytes):
                Record byte data.

            tag (:class:`SrecTag`):
                Chosen *data* tag.
                If ``None``, it uses the one returned by
                :meth:`SrecTag.fit_data_tag`.

        Returns:
            :class:`SrecRecord`: Data record object.

        Raises:
            ValueError: invalid tag, or address overflow.

        Examples:
            >>> str(SrecRecord.create_data(0x1234, b'abc'))
            'S10612346162638D'
            >>> tag = SrecTag.DATA_32
            >>> str(SrecRecord.create_data(0x1234, b'abc', tag=tag))
            'S308000012346162638B'
        """

        Tag = cls.Tag
        if tag is None:
            tag = Tag.fit_data_tag(address)
        else:
            tag = Tag(tag)
            if not tag.is_data():
                raise ValueError('invalid data tag')

        if not 0 <= address <= tag.get_address_max():
            raise ValueError('address overflow')

        return cls(tag, address=address, data=data)

    @classmethod
    def create_header(cls, data: AnyBytes = b'') -> 'SrecRecord':
        r"""Creates a header record.

        Args:
            data (bytes):
                Header byte data.

        Returns:
            :class:`SrecRecord`: Header record.

        Examples:
            >>> str(SrecRecord.create_header())
            'S0030000FC'
            >>> str(SrecRecord.create_header(b'HDR\0'))
            'S0070000484452001A'
        """

        return cls(cls.Tag.HEADER, data=data)

    @classmethod
    def create_start(
        cls,
        address: int = 0,
        tag: Optional[SrecTag] = None,
    ) -> 'SrecRecord':
        r"""Creates a start address record.

        Args:
            address (int):
                Start address.

            tag (:class:`SrecTag`):
                Chosen *start* tag.
                If ``None``, it uses the one returned by
                :meth:`SrecTag.fit_start_tag`.

        Returns:
            :class:`SrecRecord`: Start address record object.

        Raises:
            ValueError: invalid tag, or address overflow.

        Examples:
            >>> str(SrecRecord.create_start(0x1234))
            'S9031234B6'
            >>> str(SrecRecord.create_start(0x1234, tag=SrecTag.START_32))
            'S70500001234B4'
        """

        Tag = cls.Tag
        if tag is None:
            tag = Tag.fit_start_tag(address)
        else:
            tag = Tag(tag)
            if not tag.is_start():
                raise ValueError('invalid start tag')

        if not 0 <= address <= tag.get_address_max():
            raise ValueError('address overflow')

        return cls(tag, address=address)

    def is_data(self) -> bool:
        r"""bool: This is a data record (``S1``, ``S2``, or ``S3``)."""

        return self._tag.is_data()

    @classmethod
    def parse(
        cls,
        line: Union[str, AnyBytes],
        strict: bool = False,
    ) -> 'SrecRecord':
        r"""Parses a record from a text line.

        The trailing line terminator is stripped. Hexadecimal digits are
        case-insensitive.

        The *count* field is parsed, but not checked against the actual line
        length, unless `strict` is true.
        Instead, the *checksum* is always checked, computed over the *count*,
        *address*, and *data* fields as they are found within the line.

        Args:
            line (str):
                Line of text to parse; a byte string is decoded as ASCII.

            strict (bool):
                Also require the *count* field to match the actual size.

        Returns:
            :class:`SrecRecord`: Parsed record.

        Raises:
            :class:`MalformedLine`: Line structure error.

            :class:`InvalidRecordType`: Unsupported record type.

            :class:`MalformedHex`: Invalid hexadecimal field.

            :class:`ChecksumMismatch`: Wrong checksum.

        Examples:
            >>> record = SrecRecord.parse('S10612346162638D\n')
            >>> record.tag, hex(record.address), record.data
            (<SrecTag.DATA_16: 1>, '0x1234', b'abc')
            >>> SrecRecord.parse('S10612346162638E')
            Traceback (most recent call last):
                ...
            srecfile.errors.ChecksumMismatch: checksum mismatch: computed 8D, found 8E
        """

        if isinstance(line, (bytes, bytearray, memoryview)):
            try:
                line = bytes(line).decode('ascii')
            except UnicodeDecodeError:
                raise MalformedLine('non-ASCII line') from None

        line = line.rstrip('\r\n')

        if line[:1] != 'S':
            raise MalformedLine('line without leading S')
        if len(line) < 2:
            raise MalformedLine('missing record type')

        digit = line[1]
        if digit not in '0123456789':
            raise InvalidRecordType(f'invalid record type: {digit!r}')
        tag = cls.Tag(int(digit))
        address_size = tag.get_address_size()
        if address_size is None:
            raise InvalidRecordType(f'unsupported record type: {tag:d}')

        cursor = 2
        count_text = line[cursor:(cursor + 2)]
        cursor += 2
        address_text = line[cursor:(cursor + address_size * 2)]
        cursor += address_size * 2
        if len(line) < cursor + 2:
            raise MalformedLine('line too short')

        data_text = line[cursor:-2]
        checksum_text = line[-2:]

        count = parse_hex(count_text)
        address = parse_hex(address_text)
        data = unhexlify(data_text)
        checksum = parse_hex(checksum_text)

        computed = calculate_checksum(count_text + address_text + data_text)
        if int(computed, 16) != checksum:
            raise ChecksumMismatch(computed, f'{checksum:02X}')

        record = cls(tag, address=address, data=data)

        if strict and count != record.count:
            raise MalformedLine(f'byte count mismatch: declared {count:02X}, '
                                f'computed {record.count:02X}')
        return record

    def print(
        self,
        stream: Optional[IO] = None,
        color: bool = False,
        end: str = '\n',
    ) -> 'SrecRecord':
        r"""Prints a record.

        The record is converted into tokens (eventually colorized) then joined
        and written onto a text stream (*stdout* by default).

        Args:
            stream (text IO):
                The stream where the record tokens are printed.
                If ``None``, *stdout* is selected.

            color (bool):
                Tokens are colorized before printing.

            end (str):
                Line terminator.

        Returns:
            :class:`SrecRecord`: *self*.
        """

        if stream is None:
            stream = sys.stdout
        tokens = self.to_tokens(end=end)
        if color:
            tokens = colorize_tokens(tokens)
        stream.write(''.join(tokens.values()))
        return self

    def to_text(self, end: str = '') -> str:
        r"""Serializes the record into its canonical uppercase line.

        Args:
            end (str):
                Line terminator to append.

        Returns:
            str: Serialized record line.

        Examples:
            >>> SrecRecord.create_data(0x1234, b'abc').to_text(end='\n')
            'S10612346162638D\n'
        """

        return f'S{self._tag:d}{self._fields_text()}{self._checksum:02X}{end}'

    def to_tokens(self, end: str = '\n') -> Mapping[str, str]:
        r"""Converts into text tokens, one per record field.

        Args:
            end (str):
                Line terminator token.

        Returns:
            dict: Mapping of token keys to token strings.

        Examples:
            >>> SrecRecord.create_data(0x1234, b'abc').to_tokens()  # doctest:+NORMALIZE_WHITESPACE
            {'begin': 'S', 'tag': '1', 'count': '06', 'address': '1234',
             'data': '616263', 'checksum': '8D', 'end': '\n'}
        """

        address_size = self._tag.get_address_size()
        address = self._address & self._tag.get_address_max()
        return {
            'begin': 'S',
            'tag': f'{self._tag:d}',
            'count': f'{self._count:02X}',
            'address': f'{address:0{address_size * 2}X}',
            'data': hexlify(self._data),
            'checksum': f'{self._checksum:02X}',
            'end': end,
        }
