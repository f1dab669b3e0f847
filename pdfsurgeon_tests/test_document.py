import pytest

from pdfsurgeon.config import SurgeryConfig
from pdfsurgeon.pdf_utils import generic, misc
from pdfsurgeon.pdf_utils.document import PdfDocument
from pdfsurgeon.pdf_utils.generic import Reference, pdf_name

from .samples import *


def test_create_blank():
    pdf = PdfDocument.create_blank()
    assert pdf.root['/Type'] == '/Catalog'
    pages = pdf.root['/Pages']
    assert pages['/Count'] == 0
    assert pages['/Kids'] == []
    assert pdf.get_pages() == {}
    assert pdf.max_id == 2
    assert isinstance(pdf.config, SurgeryConfig)


def test_new_object_id_is_monotonic():
    pdf = PdfDocument()
    ref1 = pdf.new_object_id()
    ref2 = pdf.new_object_id()
    assert (ref1.idnum, ref2.idnum) == (1, 2)
    assert pdf.max_id == 2
    # minted but unused ids are never handed out again
    assert pdf.add_object(generic.NullObject()).idnum == 3


def test_add_object_under_minted_id():
    pdf = PdfDocument()
    ref = pdf.new_object_id()
    arr = generic.ArrayObject([generic.NumberObject(1)])
    ind = pdf.add_object(arr, ref=ref)
    assert ind.reference == ref
    assert pdf.get_array(ref) is arr
    with pytest.raises(misc.PdfWriteError):
        pdf.add_object(generic.NullObject(), ref=ref)


def test_add_object_under_explicit_id_bumps_max():
    pdf = PdfDocument()
    pdf.add_object(generic.NumberObject(1), ref=Reference(10))
    assert pdf.max_id == 10
    assert pdf.new_object_id().idnum == 11


def test_typed_lookups():
    pdf = PdfDocument()
    ref = pdf.add_object(generic.NumberObject(1)).reference
    with pytest.raises(KeyError):
        pdf.get_object(Reference(100))
    with pytest.raises(misc.UnexpectedObjectType):
        pdf.get_dictionary(ref)
    with pytest.raises(misc.UnexpectedObjectType):
        pdf.get_array(ref)
    with pytest.raises(misc.UnexpectedObjectType):
        pdf.get_stream(ref)


def test_stream_is_a_dictionary():
    pdf = PdfDocument()
    ref = pdf.add_object(generic.StreamObject(stream_data=b'x')).reference
    assert isinstance(pdf.get_dictionary(ref), generic.StreamObject)
    assert pdf.get_stream(ref).data == b'x'


def test_adopted_graph_is_bound():
    pdf = sparse_document()
    assert pdf.max_id == 5
    assert all(ref.pdf is pdf for ref in pdf.objects)
    assert pdf.root_ref == Reference(1)
    assert pdf.root['/Pages']['/Count'] == 1
    assert pdf.get_pages() == {1: Reference(5)}


def test_explicit_max_id():
    pdf = PdfDocument(
        objects={Reference(1): generic.NullObject()}, max_id=20
    )
    assert pdf.new_object_id().idnum == 21


def test_root_direct_in_trailer():
    catalog = generic.DictionaryObject({
        pdf_name('/Type'): pdf_name('/Catalog'),
    })
    pdf = PdfDocument(
        trailer=generic.DictionaryObject({pdf_name('/Root'): catalog})
    )
    assert pdf.root is catalog
    assert pdf.catalog is catalog
    with pytest.raises(misc.IndirectObjectExpected):
        pdf.root_ref


@pytest.mark.parametrize('trailer', [
    generic.DictionaryObject(),
    generic.DictionaryObject({pdf_name('/Root'): unbound_ref(7)}),
    generic.DictionaryObject({pdf_name('/Root'): generic.NumberObject(7)}),
])
def test_root_unresolvable(trailer):
    pdf = PdfDocument(trailer=trailer)
    with pytest.raises(misc.PdfError):
        pdf.root


def test_insert_page_updates_counts():
    pdf, intermediate_ref, page_refs = nested_page_tree_document()
    assert pdf.root['/Pages']['/Count'] == 3
    assert pdf.get_dictionary(intermediate_ref)['/Count'] == 2
    assert pdf.get_pages() == {
        ix + 1: ref for ix, ref in enumerate(page_refs)
    }
    assert pdf.get_dictionary(page_refs[0]).get_value_as_reference(
        '/Parent'
    ) == intermediate_ref


def test_insert_page_rejects_non_pages():
    pdf = PdfDocument.create_blank()
    with pytest.raises(misc.PdfWriteError):
        pdf.insert_page(generic.DictionaryObject())


def test_get_pages_circular():
    pdf = PdfDocument.create_blank()
    pages_ref = pdf.root.get_value_as_reference('/Pages')
    pdf.root['/Pages']['/Kids'].append(
        generic.IndirectObject(pages_ref.idnum, pages_ref.generation, pdf)
    )
    with pytest.raises(misc.PdfReadError):
        pdf.get_pages()


def test_get_pages_skips_dangling_kids():
    pdf, page_refs = three_page_document()
    pdf.root['/Pages']['/Kids'].insert(0, generic.IndirectObject(99, 0, pdf))
    assert pdf.get_pages() == {
        ix + 1: ref for ix, ref in enumerate(page_refs)
    }
