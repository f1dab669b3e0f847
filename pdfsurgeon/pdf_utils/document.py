"""
In-memory PDF document model.

A :class:`.PdfDocument` owns an object table addressed by
:class:`~.generic.Reference`, a trailer dictionary, and a counter used to mint
fresh object IDs. Nested structures refer to other objects through
:class:`~.generic.IndirectObject` values, never through embedded copies, so
every modification happens in place on the object that owns the data.

.. warning::
    Documents are not thread-safe. Every mutating operation assumes exclusive
    access to the whole document for its duration.
"""

import os
from typing import Dict, Iterable, List, Optional, Type, TypeVar

from ..config import SurgeryConfig
from . import generic
from .generic import pdf_name
from .misc import (
    ErrorPolicy,
    PdfError,
    PdfWriteError,
    UnexpectedObjectType,
)
from .rw_common import PdfHandler

__all__ = ['PdfDocument']


O = TypeVar('O', bound=generic.PdfObject)


class PdfDocument(PdfHandler):
    """
    A PDF document, represented as a graph of objects.

    :param trailer:
        The trailer dictionary. An empty one is created if not provided.
    :param objects:
        The initial object table. References in the keys and values are
        rebound to this document.
    :param max_id:
        The highest object ID in use. Defaults to the highest ID in
        ``objects``.
    :param config:
        Default settings for the document-level operations.
    """

    def __init__(
        self,
        trailer: Optional[generic.DictionaryObject] = None,
        objects: Optional[Dict[generic.Reference, generic.PdfObject]] = None,
        max_id: Optional[int] = None,
        config: Optional[SurgeryConfig] = None,
    ):
        self.config = config or SurgeryConfig()
        self.trailer = (
            trailer if trailer is not None else generic.DictionaryObject()
        )
        self.objects: Dict[generic.Reference, generic.PdfObject] = {
            ref.rebind(self): obj for ref, obj in (objects or {}).items()
        }
        if max_id is None:
            max_id = max((ref.idnum for ref in self.objects), default=0)
        self.max_id = max_id
        self.rewrite_objects(self._adopt)

    def _adopt(self, obj):
        if isinstance(obj, generic.IndirectObject) and \
                obj.get_pdf_handler() is not self:
            return generic.IndirectObject(obj.idnum, obj.generation, self)
        return obj

    @classmethod
    def create_blank(cls, config: Optional[SurgeryConfig] = None) \
            -> 'PdfDocument':
        """
        Create a document with a catalog and an empty page tree.
        """
        pdf = cls(config=config)
        pages = generic.DictionaryObject({
            pdf_name('/Type'): pdf_name('/Pages'),
            pdf_name('/Count'): generic.NumberObject(0),
            pdf_name('/Kids'): generic.ArrayObject(),
        })
        root = generic.DictionaryObject({
            pdf_name('/Type'): pdf_name('/Catalog'),
            pdf_name('/Pages'): pdf.add_object(pages),
        })
        pdf.trailer[pdf_name('/Root')] = pdf.add_object(root)
        return pdf

    @property
    def trailer_view(self) -> generic.DictionaryObject:
        # the trailer is owned by the document, so this is a live view
        return self.trailer

    def get_object(self, ref: generic.Reference) -> generic.PdfObject:
        try:
            return self.objects[ref]
        except KeyError:
            raise KeyError(ref)

    def _get_typed(self, ref: generic.Reference, cls: Type[O]) -> O:
        obj = self.get_object(ref)
        if not isinstance(obj, cls):
            raise UnexpectedObjectType(expected=cls, actual=obj)
        return obj

    def get_dictionary(self, ref: generic.Reference) \
            -> generic.DictionaryObject:
        """
        Retrieve a dictionary (or stream) object from the object table.

        :raises KeyError: if the object does not exist.
        :raises .misc.UnexpectedObjectType: if it is not a dictionary.
        """
        return self._get_typed(ref, generic.DictionaryObject)

    def get_array(self, ref: generic.Reference) -> generic.ArrayObject:
        return self._get_typed(ref, generic.ArrayObject)

    def get_stream(self, ref: generic.Reference) -> generic.StreamObject:
        return self._get_typed(ref, generic.StreamObject)

    def new_object_id(self) -> generic.Reference:
        """
        Reserve a fresh object ID.

        :return:
            A reference with generation number ``0`` that is not in use yet.
            Use :meth:`add_object` to store an object under it.
        """
        self.max_id += 1
        return generic.Reference(self.max_id, 0, self)

    def add_object(
        self, obj: generic.PdfObject, ref: Optional[generic.Reference] = None
    ) -> generic.IndirectObject:
        """
        Add a new object to this document.

        :param obj:
            The object to add.
        :param ref:
            Store the object under this reference instead of a fresh one.
            Typically, this is a reference previously obtained from
            :meth:`new_object_id`.
        :return:
            A :class:`~.generic.IndirectObject` instance referring to
            the object just added.
        """
        if ref is None:
            ref = self.new_object_id()
        elif ref in self.objects:
            raise PdfWriteError(f"Object ID {ref!r} is already in use.")
        else:
            self.max_id = max(self.max_id, ref.idnum)
        self.objects[ref.rebind(self)] = obj
        return generic.IndirectObject(ref.idnum, ref.generation, self)

    def insert_page(
        self,
        new_page: generic.DictionaryObject,
        parent: Optional[generic.Reference] = None,
    ) -> generic.IndirectObject:
        """
        Append a page object to a node of the page tree, and update the
        ``/Count`` entries of all its ancestors.

        :param new_page:
            Page object to insert.
        :param parent:
            Reference to the ``/Pages`` node that receives the page.
            Defaults to the root of the page tree.
        :return:
            A reference to the newly inserted page.
        """
        if new_page.get_and_apply('/Type', str) not in ('/Page', '/Pages'):
            raise PdfWriteError('Not a page tree node')
        if '/Parent' in new_page:
            raise PdfWriteError('/Parent must not be set.')
        if parent is None:
            parent = self.root.get_value_as_reference('/Pages')
        pages_obj = self.get_dictionary(parent)
        try:
            kids = pages_obj['/Kids']
        except KeyError:
            raise PdfError('/Pages must have /Kids')

        new_page[pdf_name('/Parent')] = generic.IndirectObject(
            parent.idnum, parent.generation, self
        )
        new_page_ref = self.add_object(new_page)
        kids.append(new_page_ref)

        added = new_page.get_and_apply('/Count', int, default=1)
        node = pages_obj
        seen = set()
        while isinstance(node, generic.DictionaryObject) and \
                id(node) not in seen:
            seen.add(id(node))
            count = node.get_and_apply('/Count', int, default=0)
            node[pdf_name('/Count')] = generic.NumberObject(count + added)
            node = node.get_and_apply('/Parent', lambda x: x)
        return new_page_ref

    def rewrite_objects(self, func):
        """
        Run the rewrite pass, see :func:`.traversal.rewrite_objects`.
        """
        from .traversal import rewrite_objects

        rewrite_objects(self, func)

    def reachable_references(self):
        """
        Run the reachability pass, see
        :func:`.traversal.reachable_references`.
        """
        from .traversal import reachable_references

        return reachable_references(self)

    # Document-level API. These delegate to the modules implementing each
    # operation, filling in defaults from the document's configuration.

    def prune_objects(self) -> List[generic.Reference]:
        """Remove all objects not reachable from the trailer."""
        from .prune import prune_objects

        return prune_objects(self)

    def delete_object(self, ref: generic.Reference) \
            -> Optional[generic.PdfObject]:
        """Delete an object and all references to it."""
        from .prune import delete_object

        return delete_object(self, ref)

    def delete_zero_length_streams(self) -> List[generic.Reference]:
        from .prune import delete_zero_length_streams

        return delete_zero_length_streams(self)

    def renumber_objects(self, starting_id: Optional[int] = None):
        """Renumber all objects densely, preserving their relative order."""
        from .renumber import renumber_objects

        if starting_id is None:
            starting_id = self.config.renumber_start
        return renumber_objects(self, starting_id)

    def compress(self, policy: Optional[ErrorPolicy] = None):
        """Compress all streams that allow it."""
        from .compression import compress_streams

        return compress_streams(
            self,
            filter_name=self.config.compression_filter,
            policy=policy or self.config.error_policy,
        )

    def decompress(self, policy: Optional[ErrorPolicy] = None):
        """Decompress all streams."""
        from .compression import decompress_streams

        return decompress_streams(
            self, policy=policy or self.config.error_policy
        )

    def delete_pages(self, page_numbers: Iterable[int]):
        """Delete pages by their (one-indexed) page numbers."""
        from .pages import delete_pages

        return delete_pages(self, page_numbers)

    def change_content_stream(self, stream_ref: generic.Reference,
                              content: bytes):
        from .content import change_content_stream

        change_content_stream(
            self, stream_ref, content,
            filter_name=self.config.compression_filter
        )

    def change_page_content(self, page_ref: generic.Reference,
                            content: bytes):
        from .content import change_page_content

        change_page_content(
            self, page_ref, content,
            filter_name=self.config.compression_filter
        )

    def extract_stream_to_path(self, stream_ref: generic.Reference,
                               decompress: bool, out_path):
        from .content import extract_stream_to_path

        extract_stream_to_path(self, stream_ref, decompress, out_path)

    def extract_stream(self, stream_ref: generic.Reference,
                       decompress: bool, out_dir=os.curdir) -> str:
        from .content import extract_stream

        return extract_stream(self, stream_ref, decompress, out_dir=out_dir)

    def list_attachments(self) -> List[str]:
        from .embed import list_attachments

        return list_attachments(self)

    def add_attachment(self, path) -> generic.IndirectObject:
        from .embed import EmbeddedFileParams, add_attachment

        params = EmbeddedFileParams(
            embed_size=self.config.embed_size,
            embed_checksum=self.config.embed_checksum,
        )
        return add_attachment(
            self, path, params=params,
            compress=self.config.compress_attachments,
            filter_name=self.config.compression_filter,
        )

    def change_producer(self, producer: str) -> bool:
        from .info import change_producer

        return change_producer(self, producer)
