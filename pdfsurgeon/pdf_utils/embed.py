"""
Utility classes for handling embedded files (attachments) in PDFs.

Attachments are registered in the document-wide ``/EmbeddedFiles`` name
tree, reachable from the catalog through ``/Names``. Only flat name trees
(i.e. a single ``/Names`` array without ``/Kids``) are supported.
"""

import dataclasses
import hashlib
import logging
import os
import typing
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import tzlocal

from . import generic
from .generic import pdf_name, pdf_string
from .misc import PdfError, PdfWriteError

if typing.TYPE_CHECKING:
    from .document import PdfDocument

__all__ = [
    'EmbeddedFileParams', 'EmbeddedFileObject', 'FileSpec',
    'embed_file', 'add_attachment', 'list_attachments', 'embedded_file_ref',
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbeddedFileParams:
    embed_size: bool = True
    """
    If true, record the file size of the embedded file, both in the
    ``/Params`` dictionary and in the ``/DL`` entry of the stream.

    .. note::
        This value is computed over the file content before PDF filters
        are applied.
    """

    embed_checksum: bool = True
    """
    If true, add an MD5 checksum of the file contents.

    .. note::
        This value is computed over the file content before PDF filters
        are applied.
    """

    creation_date: Optional[datetime] = None
    """
    Record the creation date of the embedded file.
    """

    modification_date: Optional[datetime] = None
    """
    Record the modification date of the embedded file.
    """


class EmbeddedFileObject(generic.StreamObject):
    """
    Stream holding the data of an embedded file.

    Instantiating this class adds the stream to the document right away;
    its reference is available as :attr:`ef_stream_ref`.
    """

    @classmethod
    def from_file_data(cls, pdf: 'PdfDocument', data: bytes, compress=True,
                       params: Optional[EmbeddedFileParams] = None,
                       mime_type: Optional[str] = None,
                       filter_name='/FlateDecode') -> 'EmbeddedFileObject':
        """
        Construct an embedded file object from file data.

        .. note::
            This method will not register the embedded file into the
            document's embedded file namespace, see :func:`.embed_file`.

        :param pdf:
            Document to add the embedded file to.
        :param data:
            File contents, as a :class:`bytes` object.
        :param compress:
            Whether to compress the embedded file's contents.
        :param params:
            Optional embedded file parameters.
        :param mime_type:
            Optional MIME type string.
        :param filter_name:
            The filter to compress the contents with.
        :return:
            An embedded file object.
        """

        result = EmbeddedFileObject(
            pdf, stream_data=data, params=params, mime_type=mime_type
        )
        if compress:
            result.compress(filter_name)
        return result

    def __init__(self, pdf: 'PdfDocument', dict_data=None, stream_data=None,
                 encoded_data=None,
                 params: Optional[EmbeddedFileParams] = None,
                 mime_type: Optional[str] = None):

        super().__init__(
            dict_data=dict_data, stream_data=stream_data,
            encoded_data=encoded_data
        )
        self['/Type'] = pdf_name('/EmbeddedFile')
        if mime_type is not None:
            self['/Subtype'] = pdf_name('/' + mime_type)
        self.params = params
        if params is not None:
            self._apply_params(params)
        if stream_data is not None or encoded_data is not None:
            self._update_length()
        self.ef_stream_ref = pdf.add_object(self)

    def _apply_params(self, params: EmbeddedFileParams):
        self['/Params'] = param_dict = generic.DictionaryObject()
        if params.embed_size:
            size = generic.NumberObject(len(self.data))
            param_dict['/Size'] = size
            self['/DL'] = size
        if params.embed_checksum:
            checksum = hashlib.md5(self.data).digest()
            param_dict['/CheckSum'] = generic.ByteStringObject(checksum)
        if params.creation_date is not None:
            param_dict['/CreationDate'] = generic.pdf_date(
                params.creation_date
            )
        if params.modification_date is not None:
            param_dict['/ModDate'] = generic.pdf_date(
                params.modification_date
            )


@dataclass(frozen=True)
class FileSpec:
    """
    Dataclass modelling an embedded file description in a PDF.
    """

    file_spec_string: str
    """
    A path-like file specification string. This is also the key under which
    the file is registered in the embedded file name tree.
    """

    file_name: Optional[str] = None
    """
    A path-like Unicode file name.
    """

    embedded_data: Optional[EmbeddedFileObject] = None
    """
    Stream object containing the file's data, as embedded in the PDF file.
    """

    description: Optional[str] = None
    """
    Textual description of the file.
    """

    def as_pdf_object(self, pdf: 'PdfDocument') -> generic.DictionaryObject:
        """
        Represent the file spec as a PDF dictionary.
        The ``/EF`` dictionary, if any, is added to ``pdf`` as an indirect
        object.
        """

        result = generic.DictionaryObject({
            pdf_name('/Type'): pdf_name('/Filespec'),
            pdf_name('/F'): pdf_string(self.file_spec_string),
        })
        if self.file_name is not None:
            result['/UF'] = pdf_string(self.file_name)

        if self.embedded_data is not None:
            ef_dict = generic.DictionaryObject({
                pdf_name('/F'): self.embedded_data.ef_stream_ref,
            })
            if self.file_name is not None:
                ef_dict['/UF'] = self.embedded_data.ef_stream_ref
            result['/EF'] = pdf.add_object(ef_dict)

        if self.description is not None:
            result['/Desc'] = generic.TextStringObject(self.description)

        return result


def _get_or_create(pdf: 'PdfDocument', container: generic.DictionaryObject,
                   key: str, cls):
    try:
        value = container[key]
    except KeyError:
        value = cls()
        container[key] = pdf.add_object(value)
        return value
    if not isinstance(value, cls):
        raise PdfError(
            f"{key} entry has unexpected type {type(value).__name__}"
        )
    return value


def embed_file(pdf: 'PdfDocument', spec: FileSpec) -> generic.IndirectObject:
    """
    Embed a file in the document-wide embedded file registry of a PDF.

    The ``/Names`` and ``/EmbeddedFiles`` dictionaries and the ``/Names``
    array of the name tree are created (as indirect objects) if necessary.

    :param pdf:
        Document to house the embedded file.
    :param spec:
        File spec describing the embedded file.
    :return:
        A reference to the file specification dictionary.
    """

    if spec.embedded_data is None:
        raise PdfWriteError(
            "File spec does not have an embedded file stream"
        )

    root = pdf.root
    names_dict = _get_or_create(
        pdf, root, '/Names', generic.DictionaryObject
    )
    ef_name_tree = _get_or_create(
        pdf, names_dict, '/EmbeddedFiles', generic.DictionaryObject
    )

    # TODO support updating hierarchical name trees
    if '/Kids' in ef_name_tree:
        raise NotImplementedError(
            "Only flat name trees are supported right now"
        )

    ef_name_arr = _get_or_create(
        pdf, ef_name_tree, '/Names', generic.ArrayObject
    )

    spec_obj_ref = pdf.add_object(spec.as_pdf_object(pdf))
    ef_name_arr.append(pdf_string(spec.file_spec_string))
    ef_name_arr.append(spec_obj_ref)
    return spec_obj_ref


def add_attachment(pdf: 'PdfDocument', path,
                   params: Optional[EmbeddedFileParams] = None,
                   compress=True, filter_name='/FlateDecode') \
        -> generic.IndirectObject:
    """
    Attach a file from the file system to the document, under its base name.

    The file is read in full before the document is modified, so a failed
    read leaves the document as it was.
    Unless ``params`` specifies one, the file's modification time (in the
    local timezone) is recorded as the modification date.

    :param pdf:
        Document to attach the file to.
    :param path:
        Path to the file.
    :param params:
        Embedded file parameters. By default, both the size and the
        checksum are recorded.
    :param compress:
        Whether to compress the file's contents.
    :param filter_name:
        The filter to compress the contents with.
    :return:
        A reference to the file specification dictionary.
    :raises OSError:
        if the file cannot be read.
    :raises .misc.PdfError:
        if the document has no catalog.
    """
    with open(path, 'rb') as inf:
        data = inf.read()
        mtime = os.fstat(inf.fileno()).st_mtime
    # fail before adding anything if the document has no catalog
    pdf.root

    file_name = os.path.basename(path)
    if params is None:
        params = EmbeddedFileParams()
    if params.modification_date is None:
        params = dataclasses.replace(
            params, modification_date=datetime.fromtimestamp(
                mtime, tz=tzlocal.get_localzone()
            )
        )
    logger.info(f"Adding attachment '{file_name}' ({len(data)} bytes)")
    ef_obj = EmbeddedFileObject.from_file_data(
        pdf, data, compress=compress, params=params, filter_name=filter_name
    )
    spec = FileSpec(
        file_spec_string=file_name, file_name=file_name, embedded_data=ef_obj
    )
    return embed_file(pdf, spec)


def _as_dict(value) -> Optional[generic.DictionaryObject]:
    return value if isinstance(value, generic.DictionaryObject) else None


def _embedded_files_array(pdf: 'PdfDocument') \
        -> Optional[generic.ArrayObject]:
    try:
        root = pdf.root
    except PdfError as e:
        logger.debug(f"No catalog, so no attachments: {e}")
        return None
    names_dict = _as_dict(root.get_and_apply('/Names', lambda x: x))
    if names_dict is None:
        return None
    ef_name_tree = _as_dict(
        names_dict.get_and_apply('/EmbeddedFiles', lambda x: x)
    )
    if ef_name_tree is None:
        return None
    names_arr = ef_name_tree.get_and_apply('/Names', lambda x: x)
    if not isinstance(names_arr, generic.ArrayObject):
        return None
    return names_arr


def _decode_name(value) -> Optional[str]:
    if isinstance(value, generic.TextStringObject):
        return str(value)
    elif isinstance(value, generic.ByteStringObject):
        return bytes(value).decode('utf-8', errors='replace')
    return None


def list_attachments(pdf: 'PdfDocument') -> List[str]:
    """
    List the names of the files in the embedded file name tree.

    If the name tree is missing or malformed, an empty list is returned.

    :param pdf:
        The document to inspect.
    :return:
        The names, in the order in which they appear.
    """
    names_arr = _embedded_files_array(pdf)
    if names_arr is None:
        return []
    result = []
    for item in names_arr:
        name = _decode_name(item)
        if name is not None:
            result.append(name)
    return result


def embedded_file_ref(pdf: 'PdfDocument', name: str) \
        -> Optional[generic.Reference]:
    """
    Look up the embedded file stream registered under a name.

    :param pdf:
        The document to inspect.
    :param name:
        The name of the attachment.
    :return:
        A reference to the embedded file stream, or ``None`` if there is no
        such attachment.
    """
    names_arr = _embedded_files_array(pdf)
    if names_arr is None:
        return None
    entries = list(names_arr)
    for key, value in zip(entries[::2], entries[1::2]):
        if _decode_name(key) != name:
            continue
        try:
            spec_obj = _as_dict(value.get_object())
        except KeyError:
            continue
        if spec_obj is None:
            continue
        ef_dict = _as_dict(spec_obj.get_and_apply('/EF', lambda x: x))
        if ef_dict is None:
            continue
        for ef_key in ('/UF', '/F'):
            ref = ef_dict.get_and_apply(
                ef_key, lambda x: x, raw=True
            )
            if isinstance(ref, generic.IndirectObject):
                return ref.reference
    return None
