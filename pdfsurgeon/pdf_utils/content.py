"""
Replacement and extraction of (content) stream data.
"""

import logging
import os
import typing

from . import generic
from .generic import pdf_name
from .misc import (
    PdfError,
    PdfStreamError,
    UnexpectedObjectType,
    chunked_write,
)

if typing.TYPE_CHECKING:
    from .document import PdfDocument

__all__ = [
    'change_content_stream', 'change_page_content',
    'extract_stream_to_path', 'extract_stream',
]

logger = logging.getLogger(__name__)


def _set_and_compress(stream: generic.StreamObject, content: bytes,
                      filter_name):
    stream.set_data(content)
    try:
        stream.compress(filter_name)
    except (PdfStreamError, NotImplementedError) as e:
        logger.debug(f"Content left uncompressed: {e}")


def change_content_stream(
    pdf: 'PdfDocument', stream_ref: generic.Reference, content: bytes,
    filter_name='/FlateDecode'
):
    """
    Replace the data of a stream, and compress it.

    If the object does not exist or is not a stream, nothing happens.
    If compression fails, the new content is stored uncompressed.

    :param pdf:
        The document to modify.
    :param stream_ref:
        Reference to the stream.
    :param content:
        The new (unencoded) content.
    :param filter_name:
        The filter to compress the new content with.
    """
    stream = pdf.objects.get(stream_ref)
    if not isinstance(stream, generic.StreamObject):
        logger.debug(f"{stream_ref!r} is not a stream; content not replaced")
        return
    _set_and_compress(stream, content, filter_name)


def change_page_content(
    pdf: 'PdfDocument', page_ref: generic.Reference, content: bytes,
    filter_name='/FlateDecode'
):
    """
    Replace the content of a page.

    If the page's ``/Contents`` consists of a single stream, that stream is
    updated in place. If it is an array of several (or zero) streams, a new
    stream is created and ``/Contents`` is pointed to it; the streams that
    were referred to before are left in the document, and can be removed
    with :func:`~.prune.prune_objects`.

    :raises KeyError:
        if the page does not exist.
    :raises .misc.UnexpectedObjectType:
        if the page is not a dictionary.
    :raises .misc.PdfError:
        if the page has no ``/Contents`` entry.
    """
    page = pdf.get_dictionary(page_ref)
    try:
        contents = page.raw_get('/Contents')
    except KeyError:
        raise PdfError(f"Page {page_ref!r} has no /Contents entry")

    if isinstance(contents, generic.IndirectObject):
        target = pdf.objects.get(contents.reference)
        if not isinstance(target, generic.ArrayObject):
            change_content_stream(
                pdf, contents.reference, content, filter_name=filter_name
            )
            return
        contents = target
    if not isinstance(contents, generic.ArrayObject):
        logger.debug(
            f"Ignoring /Contents of unexpected type "
            f"{type(contents).__name__} on page {page_ref!r}"
        )
        return

    if len(contents) == 1:
        single = contents.raw_get(0)
        if isinstance(single, generic.IndirectObject):
            change_content_stream(
                pdf, single.reference, content, filter_name=filter_name
            )
        return

    new_stream = generic.StreamObject()
    _set_and_compress(new_stream, content, filter_name)
    page[pdf_name('/Contents')] = pdf.add_object(new_stream)


def extract_stream_to_path(
    pdf: 'PdfDocument', stream_ref: generic.Reference, decompress: bool,
    out_path
):
    """
    Write the data of a stream to a file.

    :param pdf:
        The document containing the stream.
    :param stream_ref:
        Reference to the stream.
    :param decompress:
        Write the decoded data instead of the encoded data. If the stream
        cannot be decoded, the encoded data is written instead.
    :param out_path:
        Path of the output file.
    :raises KeyError:
        if the object does not exist.
    :raises .misc.UnexpectedObjectType:
        if the object is not a stream.
    :raises .misc.PdfStreamError:
        if the raw data is needed, but the stream only holds decoded data
        that cannot be encoded.
    """
    stream = pdf.objects.get(stream_ref)
    if stream is None:
        raise KeyError(stream_ref)
    if not isinstance(stream, generic.StreamObject):
        raise UnexpectedObjectType(
            expected=generic.StreamObject, actual=stream
        )
    data = None
    if decompress:
        try:
            data = stream.data
        except (PdfStreamError, NotImplementedError) as e:
            logger.warning(
                f"Could not decode {stream_ref!r}, writing raw data: {e}"
            )
    if data is None:
        data = stream.encoded_data
    with open(out_path, 'wb') as outf:
        chunked_write(data, outf)


def extract_stream(
    pdf: 'PdfDocument', stream_ref: generic.Reference, decompress: bool,
    out_dir=os.curdir
) -> str:
    """
    Write the data of a stream to a file named after the stream's object ID
    and generation number, e.g. ``12_0.bin``.

    :return:
        The path of the file written.
    """
    out_path = os.path.join(
        out_dir, f"{stream_ref.idnum}_{stream_ref.generation}.bin"
    )
    extract_stream_to_path(pdf, stream_ref, decompress, out_path)
    return out_path
