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

r"""Motorola S-record documents.

A document is just an ordered sequence of records, as found within a record
file. No consistency checks are performed across records (e.g. overlapping
data, or record count).
"""

import io
import logging
import os
import re
import sys
from typing import IO
from typing import Iterable
from typing import List
from typing import Optional
from typing import Type
from typing import Union

from bytesparse import Memory

from .errors import NoDataRecords
from .errors import SrecError
from .records import SrecRecord
from .records import SrecTag
from .utils import AnyBytes
from .utils import chop

logger = logging.getLogger(__name__)

AnyPath = Union[str, os.PathLike]

LINE_END_REGEX = re.compile(r'\r\n|\r|\n')
LINE_END_REGEX_BYTES = re.compile(rb'\r\n|\r|\n')


class SrecDocument:
    r"""Motorola S-record document.

    Args:
        records (list of :class:`SrecRecord`):
            Records, in file order.

    Examples:
        >>> doc = SrecDocument.parse('S0030000FC\nS10612346162638D\nS9031234B6\n')
        >>> doc.image_size()
        3
        >>> print(doc.to_text(), end='')
        S0030000FC
        S10612346162638D
        S9031234B6
    """

    DEFAULT_DATALEN: int = 16
    r"""Default maximum data size for records built by :meth:`from_memory`."""

    Record: Type[SrecRecord] = SrecRecord

    def __init__(self, records: Iterable[SrecRecord] = ()) -> None:

        self.records: List[SrecRecord] = list(records)

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, SrecDocument):
            return NotImplemented
        return self.records == other.records

    def __iter__(self):

        return iter(self.records)

    def __len__(self) -> int:

        return len(self.records)

    def __str__(self) -> str:

        return self.to_text()

    def data_records(self) -> List[SrecRecord]:
        r"""Gets the data records.

        Returns:
            list of :class:`SrecRecord`: Records tagged ``S1``, ``S2``, or
            ``S3``, in document order.
        """

        return [record for record in self.records if record.is_data()]

    @classmethod
    def from_bytes(
        cls,
        data: AnyBytes,
        offset: int = 0,
        **kwargs,
    ) -> 'SrecDocument':
        r"""Creates a document from a contiguous chunk of bytes.

        Args:
            data (bytes):
                Byte data.

            offset (int):
                Address of the first byte.

            kwargs:
                Forwarded to :meth:`from_memory`.

        Returns:
            :class:`SrecDocument`: Built document.

        Examples:
            >>> doc = SrecDocument.from_bytes(b'abc', offset=0x1234)
            >>> print(doc.to_text(), end='')
            S0030000FC
            S10612346162638D
            S5030001FB
            S9031234B6
        """

        memory = Memory.from_bytes(data, offset=offset)
        return cls.from_memory(memory, **kwargs)

    @classmethod
    def from_lines(
        cls,
        lines: Iterable[Union[str, AnyBytes]],
        strict: bool = False,
    ) -> 'SrecDocument':
        r"""Parses a document from text lines.

        Each line is parsed via :meth:`SrecRecord.parse`.
        The first error aborts the whole process; the error object is
        annotated with the 1-based line number (:attr:`SrecError.row`).

        Args:
            lines (list of str):
                Text lines, one record per line.

            strict (bool):
                Forwarded to :meth:`SrecRecord.parse`.

        Returns:
            :class:`SrecDocument`: Parsed document.

        Raises:
            :class:`SrecError`: Some line could not be parsed.
        """

        Record = cls.Record
        records = []
        row = 0

        for line in lines:
            row += 1
            try:
                record = Record.parse(line, strict=strict)
            except SrecError as exc:
                exc.row = row
                logger.debug('cannot parse line %d: %s', row, exc)
                raise
            records.append(record)

        logger.debug('parsed %d records', len(records))
        return cls(records)

    @classmethod
    def from_memory(
        cls,
        memory: Memory,
        header: Optional[AnyBytes] = b'',
        start: Optional[int] = None,
        maxdatalen: Optional[int] = None,
        tag: Optional[SrecTag] = None,
    ) -> 'SrecDocument':
        r"""Creates a document from a memory image.

        The generated sequence is made of an optional *header* record, the
        *data* records, the *count* record, and the *start address* record
        matching the *data* tag.

        Args:
            memory (:class:`bytesparse.Memory`):
                Memory image.

            header (bytes):
                Header record data; ``None`` skips the header record.

            start (int):
                Start address; ``None`` uses the memory start address.

            maxdatalen (int):
                Maximum data size per record; ``None`` for
                :attr:`DEFAULT_DATALEN`.

            tag (:class:`SrecTag`):
                Data record tag; ``None`` fits the most compact one.

        Returns:
            :class:`SrecDocument`: Built document.

        Raises:
            ValueError: Invalid arguments, or address overflow.
        """

        Record = cls.Record
        Tag = Record.Tag

        if maxdatalen is None:
            maxdatalen = cls.DEFAULT_DATALEN
        if maxdatalen < 1:
            raise ValueError('invalid maximum data length')

        if start is None:
            start = memory.start if memory else 0

        if tag is None:
            address_max = max(0, memory.endin) if memory else start
            tag = Tag.fit_data_tag(address_max)

        records = []
        if header is not None:
            records.append(Record.create_header(header))

        data_count = 0
        for block_start, block_data in memory.to_blocks():
            address = block_start
            for chunk in chop(block_data, maxdatalen):
                records.append(Record.create_data(address, chunk, tag=tag))
                address += len(chunk)
                data_count += 1

        records.append(Record.create_count(data_count))
        records.append(Record.create_start(start, tag=tag.get_tag_match()))

        logger.debug('built %d data records', data_count)
        return cls(records)

    @property
    def header(self) -> Optional[bytes]:
        r"""bytes: Data of the first header record, or ``None``."""

        for record in self.records:
            if record.tag.is_header():
                return record.data
        return None

    def image_size(self) -> int:
        r"""Calculates the size of the memory image.

        It spans from the address of the first data record to the end of the
        last data record, in document order.

        Returns:
            int: Image size, in bytes.

        Raises:
            :class:`NoDataRecords`: No data records found.
        """

        data_records = self.data_records()
        if not data_records:
            raise NoDataRecords('no data records')

        first = data_records[0]
        last = data_records[-1]
        return last.address + len(last.data) - first.address

    @classmethod
    def load(
        cls,
        in_path_or_stream: Optional[Union[AnyPath, IO]],
        strict: bool = False,
    ) -> 'SrecDocument':
        r"""Loads a document from the filesystem.

        Args:
            in_path_or_stream (str or IO):
                Path of the file within the filesystem, or input stream.
                If ``None``, ``sys.stdin`` is used.

            strict (bool):
                Forwarded to :meth:`SrecRecord.parse`.

        Returns:
            :class:`SrecDocument`: Loaded document.

        See Also:
            :meth:`parse`
            :meth:`save`
        """

        if in_path_or_stream is None:
            in_path_or_stream = sys.stdin

        if isinstance(in_path_or_stream, io.IOBase):
            return cls.parse(in_path_or_stream.read(), strict=strict)
        else:
            path = os.fspath(in_path_or_stream)
            logger.debug('loading %s', path)
            with open(path, 'rt', encoding='ascii', newline='') as stream:
                return cls.parse(stream.read(), strict=strict)

    @classmethod
    def parse(
        cls,
        text: Union[str, AnyBytes],
        strict: bool = False,
    ) -> 'SrecDocument':
        r"""Parses a whole document text.

        The text is split into lines at each ``\r\n``, ``\r``, or ``\n``
        terminator, each line then parsed by :meth:`from_lines`.
        Any other control character stays within its line.

        Args:
            text (str):
                Whole document text; a byte string is decoded as ASCII.

            strict (bool):
                Forwarded to :meth:`SrecRecord.parse`.

        Returns:
            :class:`SrecDocument`: Parsed document.
        """

        if isinstance(text, (bytes, bytearray, memoryview)):
            lines = LINE_END_REGEX_BYTES.split(bytes(text))
        else:
            lines = LINE_END_REGEX.split(text)
        if lines and not lines[-1]:
            lines.pop()  # trailing terminator
        return cls.from_lines(lines, strict=strict)

    def print(
        self,
        stream: Optional[IO] = None,
        color: bool = False,
    ) -> 'SrecDocument':
        r"""Prints records to a text stream.

        Args:
            stream (text IO):
                Stream to print onto. If ``None``, *stdout* is used.

            color (bool):
                Colorize record tokens with ANSI color codes.

        Returns:
            :class:`SrecDocument`: *self*.
        """

        for record in self.records:
            record.print(stream=stream, color=color)
        return self

    def save(
        self,
        out_path_or_stream: Optional[Union[AnyPath, IO]],
    ) -> 'SrecDocument':
        r"""Saves the document into the filesystem.

        Args:
            out_path_or_stream (str or IO):
                Path of the file within the filesystem, or output text stream.
                If ``None``, ``sys.stdout`` is used.

        Returns:
            :class:`SrecDocument`: *self*.
        """

        if out_path_or_stream is None:
            out_path_or_stream = sys.stdout

        text = self.to_text()
        if isinstance(out_path_or_stream, io.IOBase):
            out_path_or_stream.write(text)
        else:
            path = os.fspath(out_path_or_stream)
            with open(path, 'wt', encoding='ascii', newline='') as stream:
                stream.write(text)
        return self

    @property
    def start_address(self) -> Optional[int]:
        r"""int: Address of the first start address record, or ``None``."""

        for record in self.records:
            if record.tag.is_start():
                return record.address
        return None

    def to_memory(self) -> Memory:
        r"""Builds the memory image.

        Data records are written in document order, so later records
        overwrite any overlapping data.

        Returns:
            :class:`bytesparse.Memory`: Memory image.

        Examples:
            >>> doc = SrecDocument.parse('S10612346162638D\nS9030000FC\n')
            >>> doc.to_memory().to_blocks()
            [[4660, b'abc']]
        """

        memory = Memory()
        for record in self.data_records():
            memory.write(record.address, record.data)
        return memory

    def to_text(self) -> str:
        r"""Serializes all the records.

        Returns:
            str: Canonical record lines, each terminated by ``\n``.
        """

        return ''.join(record.to_text(end='\n') for record in self.records)
