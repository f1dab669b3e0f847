"""
Whole-document stream compression and decompression.

Both passes are best-effort by default: a stream that cannot be processed is
logged and left unchanged, and the pass carries on with the next one.
Pass :attr:`.ErrorPolicy.FAIL_FAST` to abort on the first failure instead.
"""

import logging
import typing
from typing import List

from . import generic
from .misc import ErrorPolicy, PdfStreamError

if typing.TYPE_CHECKING:
    from .document import PdfDocument

__all__ = ['compress_streams', 'decompress_streams', 'decompress_stream']

logger = logging.getLogger(__name__)


def _streams(pdf: 'PdfDocument'):
    for ref, obj in list(pdf.objects.items()):
        if isinstance(obj, generic.StreamObject):
            yield ref, obj


def compress_streams(
    pdf: 'PdfDocument',
    filter_name: str = '/FlateDecode',
    policy: ErrorPolicy = ErrorPolicy.CONTINUE,
) -> List[generic.Reference]:
    """
    Compress every stream in the document that allows compression.

    Streams that already have ``filter_name`` applied are left alone.

    :param pdf:
        The document to process.
    :param filter_name:
        The filter to compress with.
    :param policy:
        What to do when a stream cannot be compressed.
    :return:
        References to the streams that were compressed.
    """
    compressed = []
    for ref, stream in _streams(pdf):
        if not stream.allows_compression:
            continue
        try:
            if filter_name in stream.filter_names:
                continue
            stream.compress(filter_name)
        except (PdfStreamError, NotImplementedError) as e:
            policy.handle(logger, f"Failed to compress stream {ref!r}", e)
            continue
        compressed.append(ref)
    logger.debug(f"Compressed {len(compressed)} stream(s)")
    return compressed


def decompress_streams(
    pdf: 'PdfDocument', policy: ErrorPolicy = ErrorPolicy.CONTINUE
) -> List[generic.Reference]:
    """
    Decode every stream in the document and remove its filters, regardless
    of the stream's ``allows_compression`` flag.

    :param pdf:
        The document to process.
    :param policy:
        What to do when a stream cannot be decoded.
    :return:
        References to the streams that were decompressed.
    """
    decompressed = []
    for ref, stream in _streams(pdf):
        try:
            stream.decompress()
        except (PdfStreamError, NotImplementedError) as e:
            policy.handle(logger, f"Failed to decompress stream {ref!r}", e)
            continue
        decompressed.append(ref)
    logger.debug(f"Decompressed {len(decompressed)} stream(s)")
    return decompressed


def decompress_stream(pdf: 'PdfDocument', ref: generic.Reference):
    """
    Decompress a single stream.

    :raises KeyError: if the object does not exist.
    :raises .misc.UnexpectedObjectType: if the object is not a stream.
    :raises .misc.PdfStreamError: if the stream cannot be decoded.
    """
    pdf.get_stream(ref).decompress()
