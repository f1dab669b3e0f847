import logging
import typing

from . import generic

if typing.TYPE_CHECKING:
    from .document import PdfDocument

__all__ = ['change_producer']

logger = logging.getLogger(__name__)


def change_producer(pdf: 'PdfDocument', producer: str) -> bool:
    """
    Set the ``/Producer`` entry of the document information dictionary.

    The ``/Info`` entry of the trailer may hold the dictionary directly, or
    refer to it. If there is no such dictionary, nothing happens.

    :param pdf:
        The document to modify.
    :param producer:
        The new producer string.
    :return:
        ``True`` if the information dictionary was updated.
    """
    try:
        info = pdf.trailer_view['/Info']
    except KeyError:
        logger.debug("No /Info dictionary; producer not changed")
        return False
    if not isinstance(info, generic.DictionaryObject):
        logger.debug(
            f"/Info is a {type(info).__name__}, not a dictionary; "
            f"producer not changed"
        )
        return False
    info['/Producer'] = generic.TextStringObject(producer)
    return True
