"""
Implementation of stream filters for PDF.

Note that not all decoders specified in the standard are supported.
In particular ``/LZWDecode`` and the various JPEG-based decoders are missing.
Only ``/FlateDecode`` and ``/ASCIIHexDecode`` can be used to compress streams;
``/ASCII85Decode`` is supported for decoding only.
Decoding errors are reported as :class:`~.misc.PdfStreamError`.
"""
import base64
import binascii
import re
import zlib
from io import BytesIO

from .misc import PdfReadError, PdfStreamError, Singleton

__all__ = [
    'Decoder',
    'ASCII85Decode',
    'ASCIIHexDecode',
    'FlateDecode',
    'DECODERS',
    'get_generic_decoder',
    'can_encode',
]


class Decoder:
    """
    General filter/decoder interface.
    """

    encodes = False
    """
    Whether :meth:`encode` is implemented.
    """

    def decode(self, data: bytes, decode_params: dict) -> bytes:
        """
        Decode a stream.

        :param data:
            Data to decode.
        :param decode_params:
            Decoder parameters, sourced from the ``/DecodeParms`` entry
            associated with this filter.
        :return:
            Decoded data.
        """
        raise NotImplementedError

    def encode(self, data: bytes, decode_params: dict) -> bytes:
        """
        Encode a stream.

        :param data:
            Data to encode.
        :param decode_params:
            Encoder parameters, sourced from the ``/DecodeParms`` entry
            associated with this filter.
        :return:
            Encoded data.
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not support encoding."
        )


def _png_decode(data: memoryview, columns: int):
    output = BytesIO()
    # PNG prediction can vary from row to row
    rowlength = columns + 1
    if len(data) % rowlength:
        raise PdfStreamError(
            f"PNG predictor data length {len(data)} is not a multiple of the "
            f"row length {rowlength}"
        )

    prev_row = bytes(columns)
    for offset in range(0, len(data), rowlength):
        filter_byte = data[offset]
        row = data[offset + 1:offset + rowlength]
        result_row = bytearray(columns)
        if filter_byte == 0:
            result_row[:] = row
        elif filter_byte == 1:
            left = 0
            for i, x in enumerate(row):
                left = result_row[i] = (x + left) % 256
        elif filter_byte == 2:
            for i, (x, up) in enumerate(zip(row, prev_row)):
                result_row[i] = (x + up) % 256
        else:
            raise NotImplementedError(f"Unsupported PNG filter {filter_byte!r}")
        prev_row = result_row
        output.write(result_row)
    return output.getvalue()


def _int_param(decode_params, key, default=None) -> int:
    try:
        value = decode_params[key]
    except KeyError:
        value = default
    except PdfReadError as e:
        raise PdfStreamError(f"Could not resolve {key}: {e}") from e
    if value is None:
        raise PdfStreamError(f"Decoding parameter {key} is required")
    if not isinstance(value, int) or isinstance(value, bool):
        raise PdfStreamError(
            f"Decoding parameter {key} must be an integer, not {value!r}"
        )
    return value


class FlateDecode(Decoder, metaclass=Singleton):
    """
    Implementation of the ``/FlateDecode`` filter.

    .. warning::
        Only the PNG "None", "Sub" and "Up" predictors are supported.
    """

    encodes = True

    def decode(self, data: bytes, decode_params):
        try:
            # there's lots of slicing ahead, so let's reduce copying overhead
            data = memoryview(zlib.decompress(data))
        except zlib.error as e:
            raise PdfStreamError(f"Flate decoding failed: {e}") from e
        decode_params = decode_params or {}

        predictor = _int_param(decode_params, '/Predictor', 1)
        # predictor 1 == no predictor
        if predictor == 1:
            return data
        if not 10 <= predictor <= 15:
            raise NotImplementedError(
                f"Unsupported FlateDecode predictor {predictor!r}"
            )
        columns = _int_param(decode_params, '/Columns')
        if columns < 1:
            raise PdfStreamError(f"Invalid /Columns value {columns}")
        return _png_decode(data, columns)

    def encode(self, data, decode_params=None):
        return zlib.compress(data)


WS_REGEX = re.compile(b'\\s+')


class ASCIIHexDecode(Decoder, metaclass=Singleton):
    """
    Wrapper around :func:`binascii.hexlify` that implements the
    :class:`.Decoder` interface.
    """

    encodes = True

    def encode(self, data: bytes, decode_params=None) -> bytes:
        return binascii.hexlify(data) + b'>'

    def decode(self, data, decode_params=None):
        data = WS_REGEX.sub(b'', bytes(data).split(b'>', 1)[0])
        # a missing final digit is treated as zero (ISO 32000-1, § 7.4.2)
        if len(data) % 2:
            data += b'0'
        try:
            return binascii.unhexlify(data)
        except binascii.Error as e:
            raise PdfStreamError(f"ASCIIHex decoding failed: {e}") from e


class ASCII85Decode(Decoder, metaclass=Singleton):
    """
    Wrapper around :func:`base64.a85decode` that implements the decoding
    half of the :class:`.Decoder` interface.
    """

    def decode(self, data, decode_params=None):
        data = bytes(data).split(b'~>', 1)[0]
        if data.startswith(b'<~'):
            data = data[2:]
        try:
            return base64.a85decode(data, ignorechars=b' \t\n\r\x0b\x0c')
        except ValueError as e:
            raise PdfStreamError(f"ASCII85 decoding failed: {e}") from e


DECODERS = {
    '/FlateDecode': FlateDecode,
    '/Fl': FlateDecode,
    '/ASCIIHexDecode': ASCIIHexDecode,
    '/AHx': ASCIIHexDecode,
    '/ASCII85Decode': ASCII85Decode,
    '/A85': ASCII85Decode,
}


def get_generic_decoder(name: str) -> Decoder:
    """
    Instantiate a specific stream filter decoder type by (PDF) name.

    :param name:
        Name of the decoder to instantiate, see :const:`DECODERS`.
    :raises NotImplementedError:
        If the filter is not supported.
    """

    try:
        cls = DECODERS[name]
    except KeyError:
        raise NotImplementedError(f"Stream filter '{name}' is not supported.")
    return cls()


def can_encode(name: str) -> bool:
    """
    Check whether streams can be compressed using the filter named ``name``.
    """
    cls = DECODERS.get(name)
    return cls is not None and cls.encodes
