"""
Implementation of PDF object types and other generic functionality.

Lexical parsing and serialisation are handled elsewhere; the classes in this
module only model the in-memory shape of a PDF object graph.
"""
import codecs
import decimal
import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterator, Optional, Tuple, Union

from .misc import (
    IndirectObjectExpected,
    PdfReadError,
    PdfStreamError,
    PdfWriteError,
)

__all__ = [
    'Dereferenceable',
    'Reference',
    'PdfObject',
    'IndirectObject',
    'NullObject',
    'BooleanObject',
    'FloatObject',
    'NumberObject',
    'StringFormat',
    'ByteStringObject',
    'TextStringObject',
    'NameObject',
    'ArrayObject',
    'DictionaryObject',
    'StreamObject',
    'pdf_name',
    'pdf_string',
    'pdf_date',
]


class Dereferenceable:
    """
    Represents an opaque reference to a PDF object associated with
    a PDF handler (see :class:`PdfHandler <.rw_common.PdfHandler>`).
    """

    def get_object(self) -> 'PdfObject':
        """Retrieve the PDF object backing this dereferenceable.

        :return: A :class:`.PdfObject`.
        """
        raise NotImplementedError

    def get_pdf_handler(self):
        """Return the PDF handler associated with this dereferenceable.

        :return: a :class:`~.rw_common.PdfHandler`.
        """
        raise NotImplementedError


@dataclass(frozen=True, order=True)
class Reference(Dereferenceable):
    """
    A reference to an object with a certain ID and generation number, with
    a PDF handler attached to it.

    References are the keys of a document's object table.
    They compare, hash and sort by ``(idnum, generation)``.
    """

    idnum: int
    """
    The object's ID.
    """

    generation: int = 0
    """
    The object's generation number (usually `0`)
    """

    pdf: object = field(repr=False, hash=False, compare=False, default=None)
    """
    The PDF handler associated with this reference, an instance of
    :class:`~.rw_common.PdfHandler`.

    .. warning::
       This field is ignored when hashing or comparing :class:`.Reference`
       objects, so it is the API user's responsibility to not mix up
       references originating from unrelated documents.
    """

    def get_object(self) -> 'PdfObject':
        if self.pdf is None:
            return NullObject()
        from .rw_common import PdfHandler

        assert isinstance(self.pdf, PdfHandler)
        # chains of references are resolved by IndirectObject.get_object
        return self.pdf.get_object(self)

    def get_pdf_handler(self):
        return self.pdf

    def rebind(self, pdf) -> 'Reference':
        """
        Return a reference with the same identity, attached to another
        PDF handler.
        """
        return Reference(self.idnum, self.generation, pdf)


class PdfObject:
    """Superclass for all PDF objects."""

    def get_object(self):
        """Resolves indirect references.

        :return: `self`, unless an instance of :class:`.IndirectObject`.
        """
        return self


class NullObject(PdfObject):
    """
    PDF `null` object.

    All instances are treated as equal and falsy.
    """

    def __eq__(self, other):
        return self is other or isinstance(other, NullObject)

    def __hash__(self):
        return hash(None)

    def __bool__(self):
        return False

    def __repr__(self):
        return 'NullObject()'


class BooleanObject(PdfObject):
    """PDF boolean value."""

    def __init__(self, value):
        self.value = value

    def __bool__(self):
        return bool(self.value)

    def __eq__(self, other):
        return isinstance(other, (BooleanObject, bool)) and bool(self) == bool(
            other
        )

    def __hash__(self):
        return hash(bool(self))

    def __str__(self):
        return str(bool(self))

    def __repr__(self):
        return str(self)


class ArrayObject(list, PdfObject):
    """
    PDF array object. This class extends from Python's list class,
    and supports its interface.

    Indexing dereferences indirect objects, iterating does not.
    Use :meth:`raw_get` to retrieve a single entry without dereferencing it.
    """

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ArrayObject(list.__getitem__(self, index))
        return self.raw_get(index).get_object()

    def raw_get(self, index):
        """
        Get a value from an array without dereferencing.
        In other words, if the value at the given index is of type
        :class:`.IndirectObject`, the indirect reference will not be resolved.

        :param index:
            Index to look up in the array.
        :return:
            A :class:`.PdfObject`.
        """
        return list.__getitem__(self, index)


class IndirectObject(PdfObject, Dereferenceable):
    """
    Thin wrapper around a :class:`.Reference`, implementing both the
    :class:`.Dereferenceable` and :class:`.PdfObject` interfaces.

    This is the reference variant of the object model: containers hold
    :class:`.IndirectObject` values, never embedded copies of the objects
    they point to.
    """

    def __init__(self, idnum, generation, pdf):
        self.reference = Reference(idnum, generation, pdf)

    def get_object(self):
        """
        :return: The PDF object this reference points to.
        """
        obj = self.reference.get_object()
        # chains of references are legal, but loops are not
        seen = {self.reference}
        while isinstance(obj, IndirectObject):
            if obj.reference in seen:
                raise PdfReadError(
                    f"Reference loop through {obj.reference!r}"
                )
            seen.add(obj.reference)
            obj = obj.reference.get_object()
        return obj

    def get_pdf_handler(self):
        return self.reference.get_pdf_handler()

    @property
    def idnum(self) -> int:
        """
        :return: the object ID of this reference.
        """
        return self.reference.idnum

    @property
    def generation(self):
        """
        :return: the generation number of this reference.
        """
        return self.reference.generation

    def __repr__(self):
        return "IndirectObject(%r, %r)" % (self.idnum, self.generation)

    def __hash__(self):
        return hash((self.idnum, self.generation))

    def __eq__(self, other):
        return (
            other is not None
            and isinstance(other, IndirectObject)
            and self.reference == other.reference
        )

    def __ne__(self, other):
        return not self.__eq__(other)


class FloatObject(decimal.Decimal, PdfObject):
    """
    PDF Float object.

    Internally, these are treated as decimals (and therefore actually
    fixed-point objects, to be precise).
    """

    # noinspection PyArgumentList,PyTypeChecker
    def __new__(cls, value="0", context=None):
        try:
            return decimal.Decimal.__new__(cls, str(value), context)
        except (ValueError, decimal.DecimalException):
            return decimal.Decimal.__new__(cls, str(value))

    def __repr__(self):
        if self == self.to_integral():
            return str(self.quantize(decimal.Decimal(1)))
        else:
            return str(self)

    def as_numeric(self):
        """
        :return: a Python ``float`` value for this object.
        """
        return float(self)


class NumberObject(int, PdfObject):
    """
    PDF number object. This is the PDF type for integer values.
    """

    # noinspection PyArgumentList
    def __new__(cls, value):
        val = int(value)
        try:
            return int.__new__(cls, val)
        except OverflowError:
            return int.__new__(cls, 0)

    def as_numeric(self):
        """
        :return: a Python ``int`` value for this object.
        """
        return int(self)


class StringFormat(enum.Enum):
    """
    Notation used for a string in the source file.
    """

    LITERAL = enum.auto()
    """
    Literal notation, i.e. ``(...)``.
    """

    HEXADECIMAL = enum.auto()
    """
    Hexadecimal notation, i.e. ``<...>``.
    """


class ByteStringObject(bytes, PdfObject):
    """PDF bytestring class."""

    string_format: StringFormat = StringFormat.HEXADECIMAL
    """
    Notation to use when this string is written out.
    """

    def __new__(cls, value=b'', string_format: Optional[StringFormat] = None):
        result = bytes.__new__(cls, value)
        if string_format is not None:
            result.string_format = string_format
        return result

    original_bytes = property(lambda self: bytes(self))
    """
    For compatibility with :attr:`.TextStringObject.original_bytes`
    """


class TextStringEncoding(enum.Enum):
    """
    Unicode encodings for PDF text strings, recognised by their byte order
    mark.
    """

    UTF16BE = (codecs.BOM_UTF16_BE, 'utf-16be')
    UTF8 = (codecs.BOM_UTF8, 'utf-8')
    UTF16LE = (codecs.BOM_UTF16_LE, 'utf-16le')

    def encode(self, string: str) -> bytes:
        bom, enc = self.value
        return bom + string.encode(enc)

    def decode(self, string: Union[bytes, bytearray]) -> str:
        bom, enc = self.value
        return bytes(string[len(bom):]).decode(enc)


def _guess_enc_by_bom(
    encoded: Union[bytes, bytearray]
) -> Optional[TextStringEncoding]:
    for enc in TextStringEncoding:
        if encoded.startswith(enc.value[0]):
            return enc
    return None


class TextStringObject(str, PdfObject):
    """
    PDF text string object. Text strings are always written in literal
    notation.
    """

    string_format = StringFormat.LITERAL

    autodetected_encoding: Optional[TextStringEncoding] = None
    """
    Encoding detected when the string was decoded from bytes.
    """

    @property
    def original_bytes(self) -> bytes:
        """
        Retrieve the bytes this string was decoded from, or an UTF-8 encoding
        of the string if it was not created from bytes.
        """
        if self.autodetected_encoding is not None:
            return self.autodetected_encoding.encode(self)
        return self.encode('utf-8')


def pdf_string(
    string: Union[str, bytes, bytearray]
) -> Union['ByteStringObject', 'TextStringObject']:
    """
    Encode a string as a :class:`.TextStringObject` if possible,
    or a literal :class:`.ByteStringObject` otherwise.

    :param string:
        A Python string.
    """
    if isinstance(string, str):
        return TextStringObject(string)
    elif isinstance(string, (bytes, bytearray)):
        guessed = _guess_enc_by_bom(string)
        if guessed is not None:
            try:
                retval = TextStringObject(guessed.decode(string))
                retval.autodetected_encoding = guessed
                return retval
            except UnicodeDecodeError:
                pass
        return ByteStringObject(string, string_format=StringFormat.LITERAL)
    else:
        raise TypeError("pdf_string should have str or bytes arg")


class NameObject(str, PdfObject):
    """
    PDF name object. These are valid Python strings, but names and strings
    are treated differently in the PDF specification, so proper care is
    required.
    """

    def __new__(cls, value):
        if not value.startswith('/'):
            raise PdfWriteError(
                f"Name object {value!r} must start with /"
            )
        return str.__new__(cls, value)


pdf_name = NameObject


def _normalise_key(key):
    if not isinstance(key, NameObject):
        if isinstance(key, str):
            return NameObject(key)
        else:
            raise ValueError("key must be PdfName")
    return key


class DictionaryObject(dict, PdfObject):
    """
    A PDF dictionary object.

    Keys in a PDF dictionary are PDF names, and values are PDF objects.

    When accessing a key using the standard :meth:`__getitem__` syntax,
    :class:`.IndirectObject` references will be resolved.
    """

    def __init__(self, dict_data=None):
        if dict_data is not None:
            super().__init__(
                {_normalise_key(k): v for k, v in dict_data.items()}
            )
        else:
            super().__init__()

    def raw_get(self, key: Union[NameObject, str]):
        """
        Get a value from a dictionary without dereferencing.
        In other words, if the value corresponding to the given key is of type
        :class:`.IndirectObject`, the indirect reference will not be resolved.

        :param key:
            Key to look up in the dictionary.
        :return:
            A :class:`.PdfObject`.
        """
        return dict.__getitem__(self, key)

    def __setitem__(self, key, value):
        key = _normalise_key(key)
        if not isinstance(value, PdfObject):
            raise ValueError("value must be PdfObject")
        return dict.__setitem__(self, key, value)

    def setdefault(self, key, value=None):
        key = _normalise_key(key)
        if not isinstance(value, PdfObject):
            raise ValueError("value must be PdfObject")
        return dict.setdefault(self, key, value)

    def __getitem__(self, key):
        return dict.__getitem__(self, key).get_object()

    def get_and_apply(
        self,
        key,
        function: Callable[[PdfObject], Any],
        *,
        raw=False,
        default=None,
    ):
        try:
            value = self.raw_get(key) if raw else self[key]
        except KeyError:
            return default
        return function(value)

    def get_value_as_reference(self, key, optional=False) -> Reference:
        def as_ref(obj):
            if isinstance(obj, IndirectObject):
                return obj.reference
            raise IndirectObjectExpected

        value = self.get_and_apply(key, as_ref, raw=True)
        if value is None and not optional:
            raise KeyError(key)
        return value


class StreamObject(DictionaryObject):
    """
    PDF stream object.

    Essentially, a PDF stream is a dictionary object with a binary blob of
    data attached. This data can be encoded by various filters (not all of which
    are currently supported, see :mod:`.filters`).

    A stream object can be initialised with encoded or decoded data.
    Decoding and encoding happen on demand, and the results are cached.

    .. note::
        The :class:`.StreamObject` class manages some of its dictionary
        keys by itself. This is the case for the various ``/Filter``
        and ``/DecodeParms`` entries, and for the ``/Length`` entry,
        which is kept in sync with the encoded data whenever the stream is
        modified through the methods of this class.

    :param dict_data:
        The dictionary data for this stream object.
    :param stream_data:
        The (unencoded) stream data.
    :param encoded_data:
        The encoded stream data.

        .. warning::
            If both `stream_data` and `encoded_data` are provided, the caller
            is responsible for making sure that both are compatible given the
            currently relevant filter configuration.
    :param allows_compression:
        Whether whole-document compression passes may compress this stream.
    """

    def __init__(
        self,
        dict_data: Optional[dict] = None,
        stream_data: Optional[bytes] = None,
        encoded_data: Optional[bytes] = None,
        allows_compression: bool = True,
    ):
        super().__init__(dict_data)
        self._data = stream_data
        self._encoded_data = encoded_data
        self.allows_compression = allows_compression

    def _filters(self) -> Iterator[Tuple[str, Optional[dict]]]:
        try:
            filter_arr = self[pdf_name('/Filter')]
        except KeyError:
            return
        except PdfReadError as e:
            raise PdfStreamError(f'Could not resolve /Filter: {e}') from e

        if isinstance(filter_arr, NameObject):
            # we have a single filter instance
            filter_arr = (filter_arr,)
        elif not isinstance(filter_arr, ArrayObject):
            raise PdfStreamError(
                '/Filter should be a name object or an array of names, '
                f'not {type(filter_arr).__name__}.'
            )
        for filter_name in filter_arr:
            if not isinstance(filter_name, NameObject):
                raise PdfStreamError(
                    f'Filter names must be name objects, not {filter_name!r}.'
                )

        try:
            decode_params = self[pdf_name('/DecodeParms')]
        except KeyError:
            decode_params = NullObject()
        except PdfReadError as e:
            raise PdfStreamError(
                f'Could not resolve /DecodeParms: {e}'
            ) from e
        if isinstance(decode_params, NullObject):
            decode_params = [NullObject()] * len(filter_arr)
        elif isinstance(decode_params, DictionaryObject):
            # one instance
            decode_params = [decode_params]
        elif not isinstance(decode_params, ArrayObject):
            raise PdfStreamError(
                '/DecodeParms should be a dictionary or an array, '
                f'not {type(decode_params).__name__}.'
            )
        lendiff = len(filter_arr) - len(decode_params)
        # this should be zero, but let's be lenient
        if lendiff > 0:
            decode_params = list(decode_params) + [NullObject()] * lendiff

        for filter_name, param_set in zip(filter_arr, decode_params):
            try:
                param_set = param_set.get_object()
            except (KeyError, PdfReadError) as e:
                raise PdfStreamError(
                    f'Could not resolve decoding parameters: {e}'
                ) from e
            if not isinstance(param_set, (DictionaryObject, NullObject)):
                raise PdfStreamError(
                    'Decoding parameters should be a dictionary or null, '
                    f'not {type(param_set).__name__}.'
                )
            yield filter_name, param_set

    def _stream_decoders(self):
        from . import filters

        for filter_type, params in self._filters():
            if params is None or isinstance(params, NullObject):
                params = {}
            yield filters.get_generic_decoder(filter_type), params

    @property
    def filter_names(self) -> Tuple[str, ...]:
        """
        Names of the filters currently applied to this stream, in decoding
        order.
        """
        return tuple(name for name, _ in self._filters())

    def _update_length(self):
        self[pdf_name('/Length')] = NumberObject(len(self.encoded_data))

    def strip_filters(self):
        """
        Ensure the stream is decoded, and remove any filters.
        """

        self._data = self._encoded_data = self.data
        self.pop(pdf_name('/Filter'), None)
        self.pop(pdf_name('/DecodeParms'), None)

    @property
    def data(self) -> bytes:
        """
        Return the decoded stream data as bytes.
        If the stream hasn't been decoded yet, it will be decoded on-the-fly.

        :raises .misc.PdfStreamError:
            If the stream could not be decoded.
        :raises NotImplementedError:
            If one of the stream's filters is not supported.
        """
        if self._data is None:
            data = self._encoded_data
            if data is None:
                raise PdfStreamError("No data available.")
            for filter_cls, decode_params in self._stream_decoders():
                data = filter_cls.decode(data, decode_params)
            if isinstance(data, memoryview):
                data = data.tobytes()
            self._data = data
        assert self._data is not None
        return self._data

    @property
    def encoded_data(self) -> bytes:
        """
        Return the encoded stream data as bytes.
        If the stream hasn't been encoded yet, it will be encoded on-the-fly.

        :raises .misc.PdfStreamError:
            If the stream could not be encoded.
        """
        if self._encoded_data is None:
            data = self._data
            if data is None:
                raise PdfStreamError("No data available.")
            decoders = tuple(self._stream_decoders())
            for filter_cls, decode_params in reversed(decoders):
                data = filter_cls.encode(data, decode_params)
            self._encoded_data = data
        assert self._encoded_data is not None
        return self._encoded_data

    def _prepend_filter(self, filter_name: NameObject, params):
        cur_filters = list(self._filters())
        if not cur_filters:
            # only one filter, so don't write arrays
            self[pdf_name('/Filter')] = filter_name
            if params:
                self[pdf_name('/DecodeParms')] = params
            return

        filter_names, param_sets = zip(*cur_filters)
        # prepend the new filter (order is important!)
        self[pdf_name('/Filter')] = ArrayObject((filter_name,) + filter_names)

        if params or any(param_sets):

            def _params():
                yield params or NullObject()
                for param_set in param_sets:
                    yield param_set or NullObject()

            self[pdf_name('/DecodeParms')] = ArrayObject(_params())

    def apply_filter(
        self, filter_name, params=None, allow_duplicates: Optional[bool] = True
    ):
        """
        Apply a new filter to this stream. This filter will be prepended
        to any existing filters.
        This means that is is placed *last* in the encoding order, but *first*
        in the decoding order.

        *Note:* Calling this method on an encoded stream will first cause the
        stream to be decoded using the filters already present.
        The cached value for the encoded stream data will be cleared.

        :param filter_name:
            Name of the filter
            (see :const:`~pdfsurgeon.pdf_utils.filters.DECODERS`)
        :param params:
            Parameters to the filter (will be written to ``/DecodeParms`` if
            not ``None``)
        :param allow_duplicates:
            If ``None``, silently ignore duplicate filters.
            If ``False``, raise ValueError when attempting to add a duplicate
            filter. If ``True`` (default), duplicate filters are allowed.
        """
        if not isinstance(filter_name, NameObject):
            filter_name = pdf_name(filter_name)
        if filter_name in self.filter_names and not allow_duplicates:
            if allow_duplicates is False:
                raise PdfWriteError(
                    f'Filter {filter_name} has already been applied to '
                    f'this stream.'
                )
            return

        # If the stream already contains (encoded) data, we have to reencode it
        # later on, which requires a decoding operation.
        data = self._data
        if data is None and self._encoded_data is not None:
            data = self.data

        if params is not None and not isinstance(params, DictionaryObject):
            params = DictionaryObject(params)
        self._prepend_filter(filter_name, params)
        self._encoded_data = None
        self._data = data

    def compress(self, filter_name='/FlateDecode'):
        """
        Encode the stream with the given filter (``/FlateDecode`` by default),
        unless that filter is already present.

        Contrary to :meth:`apply_filter`, the filter is applied on top of the
        current encoded data right away, without decoding the stream first.
        The ``/Length`` entry is updated accordingly.
        If encoding fails, the stream is left untouched.

        :raises .misc.PdfStreamError:
            If the data could not be encoded.
        :raises NotImplementedError:
            If the filter is not supported.
        """
        from . import filters

        if not isinstance(filter_name, NameObject):
            filter_name = pdf_name(filter_name)
        if filter_name in self.filter_names:
            return
        encoder = filters.get_generic_decoder(filter_name)
        encoded = encoder.encode(self.encoded_data, {})
        self._prepend_filter(filter_name, None)
        self._encoded_data = encoded
        self._update_length()

    def decompress(self):
        """
        Decode the stream, remove all filters and update ``/Length``.
        If decoding fails, the stream is left untouched.

        :raises .misc.PdfStreamError:
            If the stream could not be decoded.
        :raises NotImplementedError:
            If one of the filters is not supported.
        """
        self.strip_filters()
        self._update_length()

    def set_data(self, data: bytes):
        """
        Replace the stream's content with new, unencoded data, discarding
        any filters that were previously applied.

        :param data:
            The new content.
        """
        self._data = self._encoded_data = bytes(data)
        self.pop(pdf_name('/Filter'), None)
        self.pop(pdf_name('/DecodeParms'), None)
        self._update_length()

    @property
    def is_embedded_file_stream(self):
        try:
            return self.raw_get('/Type') == '/EmbeddedFile'
        except KeyError:
            return False


ASN_DT_FORMAT = "D:%Y%m%d%H%M%S"


def pdf_date(dt: datetime) -> TextStringObject:
    """
    Convert a datetime object into a PDF string.
    This function supports both timezone-aware and naive datetime objects.

    :param dt:
        The datetime object to convert.
    :return:
        A :class:`TextStringObject` representing the datetime passed in.
    """

    base_dt = dt.strftime(ASN_DT_FORMAT)
    utc_offset_string = ''
    utc_offset = dt.utcoffset()
    if utc_offset is not None:
        # compute UTC offset string
        tz_seconds = utc_offset.total_seconds()
        if not tz_seconds:
            utc_offset_string = 'Z'
        else:
            sign = '+'
            if tz_seconds < 0:
                sign = '-'
                tz_seconds = abs(tz_seconds)
            hrs, tz_seconds = divmod(tz_seconds, 3600)
            mins = tz_seconds // 60
            utc_offset_string = sign + ("%02d'%02d'" % (hrs, mins))

    return TextStringObject(base_dt + utc_offset_string)
