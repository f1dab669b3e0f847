"""
Removal of objects from a document: garbage collection of unreachable
objects, and deletion of individual objects together with all references
pointing to them.
"""

import logging
import typing
from typing import List, Optional

from . import generic
from .misc import PdfStreamError

if typing.TYPE_CHECKING:
    from .document import PdfDocument

__all__ = ['prune_objects', 'delete_object', 'delete_zero_length_streams']

logger = logging.getLogger(__name__)


def prune_objects(pdf: 'PdfDocument') -> List[generic.Reference]:
    """
    Remove all objects that cannot be reached from the trailer.

    :param pdf:
        The document to prune.
    :return:
        The references of the objects that were removed, in ascending order.
    """
    reachable = pdf.reachable_references()
    unreachable = sorted(ref for ref in pdf.objects if ref not in reachable)
    for ref in unreachable:
        del pdf.objects[ref]
    if unreachable:
        logger.info(f"Pruned {len(unreachable)} unreachable object(s)")
    return unreachable


def _points_to(value, target: generic.Reference) -> bool:
    return (
        isinstance(value, generic.IndirectObject)
        and value.reference == target
    )


def _scrubber(target: generic.Reference):
    def _scrub(obj):
        if isinstance(obj, generic.DictionaryObject):
            doomed = [k for k, v in dict.items(obj) if _points_to(v, target)]
            for key in doomed:
                del obj[key]
        elif isinstance(obj, generic.ArrayObject):
            obj[:] = [v for v in obj if not _points_to(v, target)]
        return obj

    return _scrub


def delete_object(
    pdf: 'PdfDocument', ref: generic.Reference
) -> Optional[generic.PdfObject]:
    """
    Delete an object from the document.

    All array elements and dictionary entries referring to the object are
    removed first, everywhere in the document (the trailer included).
    Objects that are only reachable through the deleted object are left
    in place; use :func:`prune_objects` to clean those up.

    :param pdf:
        The document to modify.
    :param ref:
        Reference to the object to delete.
    :return:
        The deleted object, or ``None`` if there was no such object.
    """
    pdf.rewrite_objects(_scrubber(ref))
    removed = pdf.objects.pop(ref, None)
    if removed is None:
        logger.debug(f"Object {ref!r} not present; only references scrubbed")
    return removed


def delete_zero_length_streams(pdf: 'PdfDocument') -> List[generic.Reference]:
    """
    Delete all stream objects with empty (encoded) content, using
    :func:`delete_object`.

    :return:
        The references of the deleted streams.
    """
    empty = []
    for ref, obj in list(pdf.objects.items()):
        if not isinstance(obj, generic.StreamObject):
            continue
        try:
            if obj.encoded_data:
                continue
        except (PdfStreamError, NotImplementedError) as e:
            logger.debug(f"Could not determine content of {ref!r}: {e}")
            continue
        empty.append(ref)
    for ref in empty:
        delete_object(pdf, ref)
    return empty
