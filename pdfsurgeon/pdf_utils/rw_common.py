"""Utilities common to all PDF handlers."""
import logging
from typing import Dict, Iterator, List

from . import generic
from .misc import PdfError, PdfReadError

__all__ = ['PdfHandler']

logger = logging.getLogger(__name__)


class PdfHandler:
    """Abstract class providing a general interface for querying objects
    in PDF documents."""

    def get_object(self, ref: generic.Reference) -> generic.PdfObject:
        """
        Retrieve the object associated with the provided reference from
        this PDF handler.

        :param ref:
            An instance of :class:`.generic.Reference`.
        :return:
            A PDF object.
        :raises KeyError:
            if there is no such object.
        """
        raise NotImplementedError

    @property
    def trailer_view(self) -> generic.DictionaryObject:
        """
        Returns the document trailer of the document represented
        by this :class:`.PdfHandler` instance.

        :return:
            A :class:`.generic.DictionaryObject` representing the current state
            of the document trailer.
        """
        raise NotImplementedError

    @property
    def root_ref(self) -> generic.Reference:
        """
        :return: A reference to the document catalog of this PDF handler.
        :raises .misc.IndirectObjectExpected:
            if the catalog is embedded in the trailer directly.
        """
        return self.trailer_view.get_value_as_reference('/Root')

    @property
    def root(self) -> generic.DictionaryObject:
        """
        :return: The document catalog of this PDF handler.
        :raises .misc.PdfError:
            if the catalog cannot be resolved to a dictionary.
        """
        try:
            root = self.trailer_view['/Root']
        except (KeyError, PdfReadError) as e:
            raise PdfError("Could not resolve the document catalog") from e
        if not isinstance(root, generic.DictionaryObject):
            raise PdfError(
                f"Document catalog must be a dictionary, "
                f"not {type(root).__name__}"
            )
        return root

    catalog = root

    def _page_tree_children(
        self, node: generic.DictionaryObject
    ) -> Iterator[generic.PdfObject]:
        try:
            kids = node['/Kids']
        except KeyError:
            return iter(())
        if not isinstance(kids, generic.ArrayObject):
            raise PdfReadError("/Kids entry in page tree must be an array")
        # iterating an ArrayObject yields raw entries
        return iter(list(kids))

    def get_pages(self) -> Dict[int, generic.Reference]:
        """
        Build an index of all pages in the document.

        :return:
            A dictionary mapping (one-indexed) page numbers to references
            to the corresponding leaf page objects, in document order.
        :raises .misc.PdfReadError:
            if the page tree is malformed, e.g. if it contains a cycle.
        """
        try:
            page_tree_root = self.root['/Pages']
        except KeyError:
            return {}
        if not isinstance(page_tree_root, generic.DictionaryObject):
            raise PdfReadError("Page tree root must be a dictionary")

        pages: Dict[int, generic.Reference] = {}
        refs_seen = set()
        stack: List[Iterator] = [self._page_tree_children(page_tree_root)]
        while stack:
            try:
                kid_ref = next(stack[-1])
            except StopIteration:
                stack.pop()
                continue
            if not isinstance(kid_ref, generic.IndirectObject):
                raise PdfReadError(
                    "Page tree node children must be indirect objects"
                )
            if kid_ref.reference in refs_seen:
                raise PdfReadError("Circular reference in page tree")
            refs_seen.add(kid_ref.reference)

            try:
                kid = kid_ref.get_object()
            except KeyError:
                logger.debug(
                    f"Skipping dangling page tree entry {kid_ref.reference!r}"
                )
                continue
            if not isinstance(kid, generic.DictionaryObject):
                continue

            node_type = kid.get_and_apply('/Type', str)
            if node_type == '/Pages' or (
                node_type != '/Page' and '/Kids' in kid
            ):
                stack.append(self._page_tree_children(kid))
            else:
                pages[len(pages) + 1] = kid_ref.reference
        return pages
