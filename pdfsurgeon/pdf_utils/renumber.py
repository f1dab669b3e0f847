"""
Dense renumbering of the object table.
"""

import logging
import typing
from typing import Dict

from . import generic

if typing.TYPE_CHECKING:
    from .document import PdfDocument

__all__ = ['renumber_objects']

logger = logging.getLogger(__name__)


def renumber_objects(
    pdf: 'PdfDocument', starting_id: int = 1
) -> Dict[generic.Reference, generic.Reference]:
    """
    Assign consecutive object numbers to all objects in the document,
    starting at ``starting_id`` and preserving the relative order of the
    existing numbers. Generation numbers are left alone.

    All references in the document are updated to match, and
    :attr:`~.document.PdfDocument.max_id` is set to the last number that
    was handed out.

    :param pdf:
        The document to renumber.
    :param starting_id:
        The number to assign to the object with the lowest current number.
    :return:
        A mapping from old to new references, containing only the objects
        whose number changed.
    :raises ValueError:
        if ``starting_id`` is not a positive integer.
    """
    if starting_id < 1:
        raise ValueError(
            f"Object numbers must be positive, not {starting_id}"
        )

    new_id = starting_id
    replace: Dict[generic.Reference, generic.Reference] = {}
    for ref in sorted(pdf.objects):
        if ref.idnum != new_id:
            replace[ref] = generic.Reference(new_id, ref.generation, pdf)
        new_id += 1

    # move everything out of the way before reinserting, so that new numbers
    # never collide with old ones that still have to be moved
    holding = {old: pdf.objects.pop(old) for old in replace}
    for old, new in replace.items():
        pdf.objects[new] = holding[old]

    def _update_ref(obj):
        if isinstance(obj, generic.IndirectObject):
            try:
                new = replace[obj.reference]
            except KeyError:
                return obj
            return generic.IndirectObject(new.idnum, new.generation, pdf)
        return obj

    if replace:
        pdf.rewrite_objects(_update_ref)
    pdf.max_id = new_id - 1
    logger.debug(
        f"Renumbered {len(replace)} object(s); highest object number is now "
        f"{pdf.max_id}"
    )
    return replace
