import io

import pytest

import srecfile.records as _sr
from srecfile.errors import ChecksumMismatch
from srecfile.errors import DataSizeOverflow
from srecfile.errors import InvalidRecordType
from srecfile.errors import MalformedHex
from srecfile.errors import MalformedLine
from srecfile.records import SrecRecord
from srecfile.records import SrecTag
from srecfile.records import calculate_checksum
from srecfile.records import colorize_tokens

WIKIPEDIA_LINES = [
    'S00F000068656C6C6F202020202000003C',
    'S11F00007C0802A6900100049421FFF07C6C1B787C8C23783C6000003863000026',
    'S11F001C4BFFFFE5398000007D83637880010014382100107C0803A64E800020E9',
    'S111003848656C6C6F20776F726C642E0A0042',
    'S5030003F9',
    'S9030000FC',
]

KNOWN_LINES = WIKIPEDIA_LINES + [
    'S10612346162638D',
    'S308000012346162638B',
    'S0070000484452001A',
    'S1130000000102030405060708090A0B0C0D0E0F74',
    'S1130010101112131415161718191A1B1C1D1E1F64',
    'S5031234B6',
    'S70500001234B4',
    'S8041234565F',
    'S9031234B6',
]


@pytest.fixture
def fake_token_color_codes(request):
    backup = _sr.TOKEN_COLOR_CODES
    _sr.TOKEN_COLOR_CODES = {key: f'[{key}]' for key in backup}
    yield
    _sr.TOKEN_COLOR_CODES = backup


def test_calculate_checksum():
    assert calculate_checksum('030000') == 'FC'
    assert calculate_checksum('0A000021460136012147') == 'EE'
    assert calculate_checksum('11003848656C6C6F20776F726C642E0A00') == '42'


def test_calculate_checksum_no_modulus():
    assert calculate_checksum('FFFFFFFF') == '03'
    assert calculate_checksum('ff' * 256) == 'FF'


def test_calculate_checksum_lowercase():
    assert calculate_checksum('0612346162') == '8D'
    assert calculate_checksum('11003848656c6c6f20776f726c642e0a00') == '42'


def test_calculate_checksum_raises():
    with pytest.raises(MalformedHex):
        calculate_checksum('0G')

    with pytest.raises(MalformedHex):
        calculate_checksum('030')


def test_colorize_tokens():
    tokens = SrecRecord.create_data(0x1234, b'abc').to_tokens()
    colorized = colorize_tokens(tokens)
    assert list(colorized.keys())[0] == '<'
    assert list(colorized.keys())[-1] == '>'
    assert colorized['begin'].endswith('S')
    assert colorized['address'].endswith('1234')
    assert colorized['data'].count('\x1b[') == 3

    colorized = colorize_tokens(tokens, altdata=False)
    assert colorized['data'].count('\x1b[') == 1
    assert colorized['data'].endswith('616263')


def test_colorize_tokens_altdata(fake_token_color_codes):

    tokens = {
        '':         '(empty)',
        '<':        '(stx)',
        '>':        '(etx)',
        'address':  '(address)',
        'begin':    '(begin)',
        'checksum': '(checksum)',
        'count':    '(count)',
        'data':     'AABBCCD',
        'end':      '(end)',
        'tag':      '(tag)',
    }
    expected = {
        '':         '[](empty)',
        '<':        '[<](stx)',
        '>':        '[>](etx)',
        'address':  '[address](address)',
        'begin':    '[begin](begin)',
        'checksum': '[checksum](checksum)',
        'count':    '[count](count)',
        'data':     '[data]AA[dataalt]BB[data]CC[dataalt]D',
        'end':      '[end](end)',
        'tag':      '[tag](tag)',
    }
    actual = colorize_tokens(tokens, altdata=True)
    assert actual == expected


def test_colorize_tokens_plaindata(fake_token_color_codes):

    tokens = {
        'begin':    '(begin)',
        'data':     'AABBCCD',
        'unknown':  '(unknown)',
        'checksum': '',
    }
    expected = {
        '<':        '[<]',
        'begin':    '[begin](begin)',
        'data':     '[data]AABBCCD',
        '':         '[](unknown)',
        '>':        '[>]',
    }
    actual = colorize_tokens(tokens, altdata=False)
    assert actual == expected


class TestSrecTag:

    def test_enum(self):
        assert SrecTag.HEADER == 0
        assert SrecTag.DATA_16 == 1
        assert SrecTag.DATA_24 == 2
        assert SrecTag.DATA_32 == 3
        assert SrecTag.RESERVED == 4
        assert SrecTag.COUNT_16 == 5
        assert SrecTag.COUNT_24 == 6
        assert SrecTag.START_32 == 7
        assert SrecTag.START_24 == 8
        assert SrecTag.START_16 == 9

    def test_fit_data_tag(self):
        assert SrecTag.fit_data_tag(0x00000000) == SrecTag.DATA_16
        assert SrecTag.fit_data_tag(0x0000FFFF) == SrecTag.DATA_16
        assert SrecTag.fit_data_tag(0x00010000) == SrecTag.DATA_24
        assert SrecTag.fit_data_tag(0x00FFFFFF) == SrecTag.DATA_24
        assert SrecTag.fit_data_tag(0x01000000) == SrecTag.DATA_32
        assert SrecTag.fit_data_tag(0xFFFFFFFF) == SrecTag.DATA_32

    def test_fit_data_tag_raises(self):
        with pytest.raises(ValueError, match='address overflow'):
            SrecTag.fit_data_tag(-1)

        with pytest.raises(ValueError, match='address overflow'):
            SrecTag.fit_data_tag(0x100000000)

    def test_fit_start_tag(self):
        assert SrecTag.fit_start_tag(0x00000000) == SrecTag.START_16
        assert SrecTag.fit_start_tag(0x0000FFFF) == SrecTag.START_16
        assert SrecTag.fit_start_tag(0x00010000) == SrecTag.START_24
        assert SrecTag.fit_start_tag(0x00FFFFFF) == SrecTag.START_24
        assert SrecTag.fit_start_tag(0x01000000) == SrecTag.START_32
        assert SrecTag.fit_start_tag(0xFFFFFFFF) == SrecTag.START_32

    def test_fit_start_tag_raises(self):
        with pytest.raises(ValueError, match='address overflow'):
            SrecTag.fit_start_tag(-1)

        with pytest.raises(ValueError, match='address overflow'):
            SrecTag.fit_start_tag(0x100000000)

    def test_get_address_max(self):
        assert SrecTag.HEADER.get_address_max() == 0x0000FFFF
        assert SrecTag.DATA_16.get_address_max() == 0x0000FFFF
        assert SrecTag.DATA_24.get_address_max() == 0x00FFFFFF
        assert SrecTag.DATA_32.get_address_max() == 0xFFFFFFFF
        assert SrecTag.RESERVED.get_address_max() is None
        assert SrecTag.COUNT_16.get_address_max() == 0x0000FFFF
        assert SrecTag.COUNT_24.get_address_max() is None
        assert SrecTag.START_32.get_address_max() == 0xFFFFFFFF
        assert SrecTag.START_24.get_address_max() == 0x00FFFFFF
        assert SrecTag.START_16.get_address_max() == 0x0000FFFF

    def test_get_address_size(self):
        sizes = [SrecTag(tag).get_address_size() for tag in range(10)]
        assert sizes == [2, 2, 3, 4, None, 2, None, 4, 3, 2]

    def test_get_data_max(self):
        assert SrecTag.HEADER.get_data_max() == 252
        assert SrecTag.DATA_16.get_data_max() == 252
        assert SrecTag.DATA_24.get_data_max() == 251
        assert SrecTag.DATA_32.get_data_max() == 250
        assert SrecTag.RESERVED.get_data_max() is None
        assert SrecTag.START_32.get_data_max() == 250

    def test_get_tag_match(self):
        assert SrecTag.HEADER.get_tag_match() is None
        assert SrecTag.DATA_16.get_tag_match() == SrecTag.START_16
        assert SrecTag.DATA_24.get_tag_match() == SrecTag.START_24
        assert SrecTag.DATA_32.get_tag_match() == SrecTag.START_32
        assert SrecTag.COUNT_16.get_tag_match() is None
        assert SrecTag.START_32.get_tag_match() == SrecTag.DATA_32
        assert SrecTag.START_24.get_tag_match() == SrecTag.DATA_24
        assert SrecTag.START_16.get_tag_match() == SrecTag.DATA_16

    def test_is_count(self):
        assert [tag for tag in SrecTag if tag.is_count()] == [5, 6]

    def test_is_data(self):
        assert [tag for tag in SrecTag if tag.is_data()] == [1, 2, 3]

    def test_is_header(self):
        assert [tag for tag in SrecTag if tag.is_header()] == [0]

    def test_is_start(self):
        assert [tag for tag in SrecTag if tag.is_start()] == [7, 8, 9]


class TestSrecRecord:

    def test___init__(self):
        record = SrecRecord(1, 0x0000, [0x21, 0x46, 0x01, 0x36, 0x01, 0x21, 0x47])
        assert record.tag == SrecTag.DATA_16
        assert record.address == 0
        assert record.data == b'\x21\x46\x01\x36\x01\x21\x47'
        assert record.count == 2 + 7 + 1
        assert record.checksum == 0xEE
        assert str(record) == 'S10A000021460136012147EE'

    def test___init___tag_coerced(self):
        record = SrecRecord(SrecTag.DATA_32, 0x12345678)
        assert isinstance(record.tag, SrecTag)
        assert SrecRecord(3, 0x12345678).tag is SrecTag.DATA_32

    def test___init___invalid_type(self):
        for tag in (-1, 10, 'S1', None):
            with pytest.raises(InvalidRecordType):
                SrecRecord(tag)

    def test___init___unsupported_type(self):
        for tag in (4, 6):
            with pytest.raises(InvalidRecordType, match='unsupported'):
                SrecRecord(tag)

    def test___init___data_int(self):
        for data in (0, 5, SrecTag.DATA_16):
            with pytest.raises(TypeError, match='byte sequence'):
                SrecRecord(1, 0, data)

    def test___init___data_max(self):
        assert SrecRecord(1, 0, bytes(252)).count == 0xFF
        assert SrecRecord(2, 0, bytes(251)).count == 0xFF
        assert SrecRecord(3, 0, bytes(250)).count == 0xFF

        with pytest.raises(DataSizeOverflow):
            SrecRecord(1, 0, bytes(253))

        with pytest.raises(DataSizeOverflow):
            SrecRecord(3, 0, bytes(251))

    def test___init___address_truncated(self):
        record = SrecRecord(1, 0x12345)
        assert record.address == 0x12345
        assert str(record) == 'S103234594'

    def test___eq__(self):
        record1 = SrecRecord.create_data(0x1234, b'abc')
        record2 = SrecRecord(1, 0x1234, b'abc')
        assert record1 is not record2
        assert record1 == record2
        assert hash(record1) == hash(record2)
        assert record1 != SrecRecord(1, 0x1234, b'xyz')
        assert record1 != SrecRecord(2, 0x1234, b'abc')
        assert record1 != SrecRecord(1, 0x1235, b'abc')
        assert record1 != 'S10612346162638D'

    def test___repr__(self):
        text = repr(SrecRecord.create_data(0x1234, b'abc'))
        assert text.startswith('SrecRecord(')
        assert 'address=0x1234' in text
        assert "data=b'abc'" in text

    def test_immutable(self):
        record = SrecRecord.create_data(0x1234, b'abc')
        with pytest.raises(AttributeError):
            record.address = 0
        with pytest.raises(AttributeError):
            record.data = b''
        with pytest.raises(AttributeError):
            record.tag = SrecTag.DATA_32
        with pytest.raises(AttributeError):
            record.checksum = 0

    def test_address_width(self):
        assert SrecRecord(0, 0x1234).to_tokens()['address'] == '1234'
        assert SrecRecord(2, 0x123456).to_tokens()['address'] == '123456'
        assert SrecRecord(3, 0x12345678).to_tokens()['address'] == '12345678'
        assert str(SrecRecord(0, 0x1234)) == 'S0031234B6'
        assert str(SrecRecord(2, 0x123456)) == 'S2041234565F'
        assert str(SrecRecord(3, 0x12345678)) == 'S30512345678E6'

    def test_create_count(self):
        assert str(SrecRecord.create_count(0)) == 'S5030000FC'
        assert str(SrecRecord.create_count(0x1234)) == 'S5031234B6'

        with pytest.raises(ValueError, match='count overflow'):
            SrecRecord.create_count(-1)

        with pytest.raises(ValueError, match='count overflow'):
            SrecRecord.create_count(0x10000)

    def test_create_data(self):
        assert str(SrecRecord.create_data(0x1234, b'abc')) == 'S10612346162638D'
        assert SrecRecord.create_data(0x123456, b'').tag == SrecTag.DATA_24
        assert SrecRecord.create_data(0x12345678, b'').tag == SrecTag.DATA_32

        record = SrecRecord.create_data(0x1234, b'abc', tag=SrecTag.DATA_32)
        assert str(record) == 'S308000012346162638B'

    def test_create_data_raises(self):
        with pytest.raises(ValueError, match='invalid data tag'):
            SrecRecord.create_data(0, b'', tag=SrecTag.HEADER)

        with pytest.raises(ValueError, match='address overflow'):
            SrecRecord.create_data(0x10000, b'', tag=SrecTag.DATA_16)

        with pytest.raises(ValueError, match='address overflow'):
            SrecRecord.create_data(-1, b'', tag=SrecTag.DATA_16)

    def test_create_header(self):
        assert str(SrecRecord.create_header()) == 'S0030000FC'
        assert str(SrecRecord.create_header(b'HDR\0')) == 'S0070000484452001A'

        with pytest.raises(DataSizeOverflow):
            SrecRecord.create_header(bytes(253))

    def test_create_start(self):
        assert str(SrecRecord.create_start()) == 'S9030000FC'
        assert str(SrecRecord.create_start(0x1234)) == 'S9031234B6'
        assert str(SrecRecord.create_start(0x123456)) == 'S8041234565F'
        assert str(SrecRecord.create_start(0x12345678)) == 'S70512345678E6'

        record = SrecRecord.create_start(0x1234, tag=SrecTag.START_32)
        assert str(record) == 'S70500001234B4'

    def test_create_start_raises(self):
        with pytest.raises(ValueError, match='invalid start tag'):
            SrecRecord.create_start(0, tag=SrecTag.DATA_16)

        with pytest.raises(ValueError, match='address overflow'):
            SrecRecord.create_start(0x10000, tag=SrecTag.START_16)

    def test_is_data(self):
        assert SrecRecord(1).is_data()
        assert SrecRecord(2).is_data()
        assert SrecRecord(3).is_data()
        assert not SrecRecord(0).is_data()
        assert not SrecRecord(5).is_data()
        assert not SrecRecord(9).is_data()

    def test_parse_known(self):
        for line in KNOWN_LINES:
            record = SrecRecord.parse(line)
            assert str(record) == line

    def test_parse_fields(self):
        record = SrecRecord.parse('S111003848656C6C6F20776F726C642E0A0042')
        assert record.tag == SrecTag.DATA_16
        assert record.address == 0x0038
        assert record.data == b'Hello world.\n\0'
        assert record.count == 0x11
        assert record.checksum == 0x42

    def test_parse_address_widths(self):
        assert SrecRecord.parse('S2041234565F').address == 0x123456
        assert SrecRecord.parse('S30512345678E6').address == 0x12345678
        assert SrecRecord.parse('S8041234565F').address == 0x123456
        assert SrecRecord.parse('S70512345678E6').address == 0x12345678

    def test_parse_line_terminators(self):
        for end in ('\n', '\r\n', '\r', '\n\n'):
            record = SrecRecord.parse('S10612346162638D' + end)
            assert str(record) == 'S10612346162638D'

    def test_parse_lowercase(self):
        record = SrecRecord.parse('S10612346162638d')
        assert record.data == b'abc'
        assert str(record) == 'S10612346162638D'

    def test_parse_bytes(self):
        record = SrecRecord.parse(b'S10612346162638D\r\n')
        assert record == SrecRecord(1, 0x1234, b'abc')

        record = SrecRecord.parse(bytearray(b'S9031234B6'))
        assert record.address == 0x1234

        with pytest.raises(MalformedLine, match='non-ASCII'):
            SrecRecord.parse(b'S1\xFF')

    def test_parse_round_trip(self):
        records = [
            SrecRecord(0, 0, b'header'),
            SrecRecord(1, 0xFFFF, bytes(range(252))),
            SrecRecord(2, 0xFFFFFF, b'\x00\xFF'),
            SrecRecord(3, 0xFFFFFFFF, bytes(range(250))),
            SrecRecord(5, 3),
            SrecRecord(7, 0x12345678),
            SrecRecord(8, 0x123456),
            SrecRecord(9, 0x1234),
        ]
        for record in records:
            parsed = SrecRecord.parse(str(record))
            assert parsed.tag == record.tag
            assert parsed.address == record.address
            assert parsed.data == record.data

    def test_parse_checksum_consistent(self):
        for line in KNOWN_LINES:
            record = SrecRecord.parse(line)
            tokens = record.to_tokens()
            fields = tokens['count'] + tokens['address'] + tokens['data']
            assert tokens['checksum'] == calculate_checksum(fields)

    def test_parse_leading_s(self):
        for line in ('', '\n', 'X10612346162638D', 's10612346162638D',
                     ' S10612346162638D', ':0312340061626391'):
            with pytest.raises(MalformedLine, match='line without leading S'):
                SrecRecord.parse(line)

    def test_parse_too_short(self):
        with pytest.raises(MalformedLine, match='missing record type'):
            SrecRecord.parse('S')

        for line in ('S1', 'S103', 'S1031234', 'S10312349', 'S3051234567'):
            with pytest.raises(MalformedLine, match='line too short'):
                SrecRecord.parse(line)

    def test_parse_invalid_type(self):
        for line in ('SX030000FC', 'S-030000FC', 'SA030000FC', 'S٣030000FC'):
            with pytest.raises(InvalidRecordType):
                SrecRecord.parse(line)

    def test_parse_unsupported_type(self):
        with pytest.raises(InvalidRecordType, match='unsupported'):
            SrecRecord.parse('S4030000FC')

        with pytest.raises(InvalidRecordType, match='unsupported'):
            SrecRecord.parse('S604000000FB')

    def test_parse_malformed_hex(self):
        lines = [
            'S1XY12346162638D',  # count
            'S106XY346162638D',  # address
            'S1061234616G638D',  # data
            'S10612346162638',   # odd data
            'S1061234616263XY',  # checksum
            'S1 612346162638D',
            'S10+12346162638D',
        ]
        for line in lines:
            with pytest.raises(MalformedHex):
                SrecRecord.parse(line)

    def test_parse_checksum_mismatch(self):
        with pytest.raises(ChecksumMismatch) as excinfo:
            SrecRecord.parse('S10612346162638E')

        error = excinfo.value
        assert error.computed == '8D'
        assert error.claimed == '8E'
        assert '8D' in str(error)
        assert '8E' in str(error)
        assert isinstance(error, ValueError)

    def test_parse_checksum_over_line_text(self):
        with pytest.raises(ChecksumMismatch):
            SrecRecord.parse('S10712346162638D')

    def test_parse_count_lenient(self):
        record = SrecRecord.parse('S10712346162638C')
        assert record.count == 6
        assert record.data == b'abc'
        assert str(record) == 'S10612346162638D'

    def test_parse_count_strict(self):
        with pytest.raises(MalformedLine, match='byte count mismatch'):
            SrecRecord.parse('S10712346162638C', strict=True)

        record = SrecRecord.parse('S10612346162638D', strict=True)
        assert record.count == 6

    def test_parse_data_overflow(self):
        data = 'FF' * 253
        count = 'FF'
        fields = count + '0000' + data
        line = 'S1' + fields + calculate_checksum(fields)
        with pytest.raises(DataSizeOverflow):
            SrecRecord.parse(line)

    def test_print(self):
        stream = io.StringIO()
        record = SrecRecord.create_data(0x1234, b'abc')
        assert record.print(stream=stream) is record
        assert stream.getvalue() == 'S10612346162638D\n'

    def test_print_color(self):
        stream = io.StringIO()
        SrecRecord.create_data(0x1234, b'abc').print(stream=stream, color=True)
        text = stream.getvalue()
        assert '\x1b[' in text
        assert text.endswith('\n\x1b[0m')

    def test_print_stdout(self, capsys):
        SrecRecord.create_start(0x1234).print(end='\r\n')
        captured = capsys.readouterr()
        assert captured.out == 'S9031234B6\r\n'

    def test_to_text(self):
        record = SrecRecord.create_data(0x1234, b'abc')
        assert record.to_text() == 'S10612346162638D'
        assert record.to_text(end='\n') == 'S10612346162638D\n'

    def test_to_tokens(self):
        record = SrecRecord.create_data(0x1234, b'abc')
        tokens = record.to_tokens(end='\r\n')
        assert tokens == {
            'begin': 'S',
            'tag': '1',
            'count': '06',
            'address': '1234',
            'data': '616263',
            'checksum': '8D',
            'end': '\r\n',
        }
        assert ''.join(tokens.values()) == 'S10612346162638D\r\n'
