import base64
import zlib

import pytest

from pdfsurgeon.pdf_utils import filters, misc


def test_ascii_hex_decode():
    data = b'The quick brown fox jumps over the lazy dog.'
    encoded = filters.ASCIIHexDecode().encode(data)
    assert encoded.endswith(b'>')
    assert filters.ASCIIHexDecode().decode(encoded) == data
    # whitespace is ignored, and an odd final digit is padded with zero
    assert filters.ASCIIHexDecode().decode(b'61 62\n6>') == b'ab`'


def test_ascii_hex_decode_error():
    with pytest.raises(misc.PdfStreamError):
        filters.ASCIIHexDecode().decode(b'zz>')


@pytest.mark.parametrize('data', [
    b'', b'\0\0\0\0', b'abc', b'Lorem ipsum dolor sit amet' * 3,
    bytes(range(256)),
])
def test_ascii85_decode(data):
    encoded = base64.a85encode(data, wrapcol=20) + b'~>'
    assert filters.ASCII85Decode().decode(encoded) == data
    assert filters.ASCII85Decode().decode(b'<~' + encoded) == data


def test_ascii85_zero_group():
    assert filters.ASCII85Decode().decode(b'z!!~>') == b'\0' * 5


def test_ascii85_is_decode_only():
    assert not filters.can_encode('/ASCII85Decode')
    assert filters.can_encode('/FlateDecode')
    assert filters.can_encode('/AHx')
    assert not filters.can_encode('/LZWDecode')
    with pytest.raises(NotImplementedError):
        filters.ASCII85Decode().encode(b'abc', {})


def test_ascii85_decode_error():
    with pytest.raises(misc.PdfStreamError):
        filters.ASCII85Decode().decode(b'abc{}~>')


def test_flate_decode_error():
    with pytest.raises(misc.PdfStreamError):
        filters.FlateDecode().decode(b'this is not zlib data', {})


@pytest.mark.parametrize('raw, expected', [
    # PNG "None" filter
    (bytes([0, 1, 2, 0, 3, 4]), bytes([1, 2, 3, 4])),
    # PNG "Sub" filter
    (bytes([1, 1, 2, 1, 3, 4]), bytes([1, 3, 3, 7])),
    # PNG "Up" filter
    (bytes([2, 1, 1, 2, 1, 1]), bytes([1, 1, 2, 2])),
])
def test_flate_png_predictor(raw, expected):
    params = {'/Predictor': 12, '/Columns': 2}
    result = filters.FlateDecode().decode(zlib.compress(raw), params)
    assert bytes(result) == expected


def test_flate_png_predictor_bad_length():
    params = {'/Predictor': 12, '/Columns': 2}
    with pytest.raises(misc.PdfStreamError):
        filters.FlateDecode().decode(zlib.compress(b'\x00\x01'), params)


def test_unsupported_predictor():
    params = {'/Predictor': 2, '/Columns': 2}
    with pytest.raises(NotImplementedError):
        filters.FlateDecode().decode(zlib.compress(b'\x00\x01\x02'), params)


def test_decoder_lookup():
    assert isinstance(
        filters.get_generic_decoder('/Fl'), filters.FlateDecode
    )
    with pytest.raises(NotImplementedError):
        filters.get_generic_decoder('/LZWDecode')


@pytest.mark.parametrize('params', [
    {'/Predictor': 12},
    {'/Predictor': 12, '/Columns': 0},
    {'/Predictor': 12, '/Columns': 'two'},
    {'/Predictor': '/Twelve', '/Columns': 2},
])
def test_flate_bad_predictor_params(params):
    with pytest.raises(misc.PdfStreamError):
        filters.FlateDecode().decode(zlib.compress(b'\x00\x01\x02'), params)
