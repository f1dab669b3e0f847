"""
Whole-document traversal of the object graph.

Two passes are provided:

* :func:`rewrite_objects` visits every value contained in the object table
  and the trailer, without following indirect references. The visitor can
  replace values, or mutate containers in place.
* :func:`reachable_references` follows indirect references starting from the
  trailer, and reports the identities of all objects it can reach.

Both passes use an explicit worklist, so deeply nested or cyclic structures
do not exhaust the interpreter stack.
"""

import logging
import typing
from typing import Callable, Dict, List, Set

from . import generic

if typing.TYPE_CHECKING:
    from .document import PdfDocument

__all__ = ['Rewriter', 'rewrite_objects', 'reachable_references']

logger = logging.getLogger(__name__)

Rewriter = Callable[[generic.PdfObject], generic.PdfObject]
"""
Function applied to every value by :func:`rewrite_objects`.
It returns the value that should take the place of its argument; returning
the argument itself (possibly after mutating it) leaves the containing
structure as-is.
"""


def _walk_containers(root: generic.PdfObject, func: Rewriter,
                     seen: Dict[int, generic.PdfObject]):
    stack: List[generic.PdfObject] = [root]
    while stack:
        container = stack.pop()
        # the same direct container may be shared between several parents,
        # but every container must be rewritten exactly once.
        # seen containers stay referenced until the pass ends, so their ids
        # are never recycled for containers created by the rewriter
        if id(container) in seen:
            continue
        seen[id(container)] = container
        if isinstance(container, generic.DictionaryObject):
            for key, value in list(dict.items(container)):
                new_value = func(value)
                if new_value is not value:
                    container[key] = new_value
                stack.append(new_value)
        elif isinstance(container, generic.ArrayObject):
            for ix, value in enumerate(list(container)):
                new_value = func(value)
                if new_value is not value:
                    list.__setitem__(container, ix, new_value)
                stack.append(new_value)


def rewrite_objects(pdf: 'PdfDocument', func: Rewriter):
    """
    Apply ``func`` to every object in the object table, to every value
    nested inside those objects (array elements, dictionary values and
    stream dictionary values), and to the trailer and its values.

    Indirect references are passed to ``func`` as values, but never
    followed: the objects they point to are visited as part of the object
    table instead.

    :param pdf:
        The document to rewrite.
    :param func:
        The rewriting function, see :data:`.Rewriter`.
    """
    seen: Dict[int, generic.PdfObject] = {}
    trailer = pdf.trailer_view
    func(trailer)
    _walk_containers(trailer, func, seen)

    for ref in list(pdf.objects.keys()):
        obj = pdf.objects[ref]
        new_obj = func(obj)
        if new_obj is not obj:
            pdf.objects[ref] = new_obj
        _walk_containers(new_obj, func, seen)


def reachable_references(pdf: 'PdfDocument') -> Set[generic.Reference]:
    """
    Compute the identities of all objects reachable from the trailer through
    any chain of containers and indirect references.

    Every reference is visited at most once, so reference cycles are
    harmless. References to objects that are not in the object table are
    included in the result, but cannot be expanded any further.

    :param pdf:
        The document to analyse.
    :return:
        A set of :class:`~.generic.Reference` objects.
    """
    visited: Set[generic.Reference] = set()
    containers_seen: Dict[int, generic.PdfObject] = {}
    worklist: List[generic.PdfObject] = [pdf.trailer_view]
    while worklist:
        obj = worklist.pop()
        if isinstance(obj, generic.IndirectObject):
            ref = obj.reference
            if ref in visited:
                continue
            visited.add(ref)
            try:
                worklist.append(pdf.get_object(ref))
            except KeyError:
                logger.debug(f"Reference {ref!r} is dangling")
        elif isinstance(obj, (generic.DictionaryObject, generic.ArrayObject)):
            if id(obj) in containers_seen:
                continue
            containers_seen[id(obj)] = obj
            if isinstance(obj, generic.DictionaryObject):
                worklist.extend(dict.values(obj))
            else:
                worklist.extend(list(obj))
    return visited
