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

r"""Error kinds raised while handling S-record lines and documents.

All of them derive from :obj:`ValueError`, so that callers only interested
in *bad input* can catch that single built-in type.
"""

from typing import Optional


class SrecError(ValueError):
    r"""Base S-record error.

    Attributes:
        row (int):
            1-based line number of the offending line, when raised while
            loading a whole document; ``None`` otherwise.
    """

    def __init__(self, *args) -> None:
        super().__init__(*args)
        self.row: Optional[int] = None

    def __str__(self) -> str:
        text = super().__str__()
        if self.row is not None:
            text = f'line {self.row:d}: {text}'
        return text


class InvalidRecordType(SrecError):
    r"""Record type outside of the supported set."""


class MalformedLine(SrecError):
    r"""Line structure does not match the record syntax."""


class MalformedHex(SrecError):
    r"""Field expected to be hexadecimal is not."""


class ChecksumMismatch(SrecError):
    r"""Embedded checksum differs from the computed one.

    Args:
        computed (str):
            Checksum computed from the line fields, as two hex digits.

        claimed (str):
            Checksum found within the line, as two hex digits.
    """

    def __init__(self, computed: str, claimed: str) -> None:
        super().__init__(f'checksum mismatch: computed {computed}, found {claimed}')
        self.computed: str = computed
        self.claimed: str = claimed


class NoDataRecords(SrecError):
    r"""The document holds no data records."""


class DataSizeOverflow(SrecError):
    r"""Payload does not fit the record byte count."""
