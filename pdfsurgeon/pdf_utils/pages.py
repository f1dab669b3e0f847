"""
Page deletion, keeping the ``/Count`` entries of the page tree in sync.
"""

import logging
import typing
from typing import Iterable, List, Optional

from . import generic
from .generic import pdf_name
from .prune import delete_object

if typing.TYPE_CHECKING:
    from .document import PdfDocument

__all__ = ['delete_pages']

logger = logging.getLogger(__name__)


def _parent_ref(node) -> Optional[generic.Reference]:
    if not isinstance(node, generic.DictionaryObject):
        return None
    parent = node.get_and_apply('/Parent', lambda x: x, raw=True)
    if isinstance(parent, generic.IndirectObject):
        return parent.reference
    return None


def _decrement_counts(pdf: 'PdfDocument', node_ref: generic.Reference):
    visited = set()
    while node_ref is not None and node_ref not in visited:
        visited.add(node_ref)
        node = pdf.objects.get(node_ref)
        if not isinstance(node, generic.DictionaryObject):
            break
        count = node.get_and_apply('/Count', lambda x: x)
        if isinstance(count, int) and not isinstance(count, bool):
            node[pdf_name('/Count')] = generic.NumberObject(count - 1)
        node_ref = _parent_ref(node)


def delete_pages(
    pdf: 'PdfDocument', page_numbers: Iterable[int]
) -> List[generic.Reference]:
    """
    Delete pages from the document.

    Page numbers are one-indexed, and always refer to the page numbering
    as it was before this call. Numbers that do not correspond to a page are
    ignored. The deleted page objects are removed with
    :func:`~.prune.delete_object`, and the ``/Count`` of every ancestor in
    the page tree is decremented.

    Resources that were only used by the deleted pages stay in the document
    until :func:`~.prune.prune_objects` is called.

    :param pdf:
        The document to modify.
    :param page_numbers:
        The numbers of the pages to delete.
    :return:
        References to the deleted page objects.
    """
    pages = pdf.get_pages()
    deleted = []
    for page_number in page_numbers:
        try:
            page_ref = pages[page_number]
        except KeyError:
            logger.debug(f"No page number {page_number}; skipping")
            continue
        page = delete_object(pdf, page_ref)
        if page is None:
            continue
        deleted.append(page_ref)
        parent_ref = _parent_ref(page)
        if parent_ref is not None:
            _decrement_counts(pdf, parent_ref)
    logger.info(f"Deleted {len(deleted)} page(s)")
    return deleted
