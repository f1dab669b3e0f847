import pytest

from pdfsurgeon.config import SurgeryConfig
from pdfsurgeon.pdf_utils import generic
from pdfsurgeon.pdf_utils.generic import Reference, pdf_name
from pdfsurgeon.pdf_utils.renumber import renumber_objects

from .samples import *


def test_renumber_sparse():
    pdf = sparse_document()
    mapping = renumber_objects(pdf)
    assert mapping == {Reference(3): Reference(2), Reference(5): Reference(3)}
    assert sorted(pdf.objects) == [Reference(1), Reference(2), Reference(3)]
    assert pdf.max_id == 3

    # the graph is unchanged apart from the numbers
    assert pdf.root_ref == Reference(1)
    pages = pdf.root['/Pages']
    assert pdf.root.get_value_as_reference('/Pages') == Reference(2)
    assert pages['/Kids'].raw_get(0).reference == Reference(3)
    page = pdf.get_dictionary(Reference(3))
    assert page['/Type'] == '/Page'
    assert page.get_value_as_reference('/Parent') == Reference(2)
    assert pdf.get_pages() == {1: Reference(3)}
    # and every reference resolves
    for ref in all_references(pdf):
        assert ref in pdf.objects


def test_renumber_idempotent():
    pdf = sparse_document()
    renumber_objects(pdf)
    snapshot = dict(pdf.objects)
    assert renumber_objects(pdf) == {}
    assert pdf.objects == snapshot
    assert pdf.max_id == 3


def test_renumber_already_dense():
    pdf, _ = three_page_document()
    before = set(pdf.objects)
    assert renumber_objects(pdf) == {}
    assert set(pdf.objects) == before
    assert pdf.max_id == len(before)


def test_renumber_starting_id():
    pdf = sparse_document()
    mapping = renumber_objects(pdf, starting_id=10)
    assert mapping == {
        Reference(1): Reference(10),
        Reference(3): Reference(11),
        Reference(5): Reference(12),
    }
    assert pdf.max_id == 12
    assert pdf.root_ref == Reference(10)
    assert pdf.get_pages() == {1: Reference(12)}
    assert pdf.new_object_id() == Reference(13)


def test_renumber_overlapping_ranges():
    # new numbers overlap with old ones that still have to move
    pdf = PdfDocument()
    for idnum in (2, 3, 4):
        pdf.add_object(
            generic.NumberObject(idnum * 100), ref=Reference(idnum)
        )
    renumber_objects(pdf, starting_id=3)
    assert {
        ref.idnum: pdf.get_object(ref) for ref in pdf.objects
    } == {3: 200, 4: 300, 5: 400}


def test_renumber_keeps_generation():
    pdf = PdfDocument.create_blank()
    old = Reference(7, 2)
    pdf.add_object(generic.NumberObject(1), ref=old)
    pdf.root['/Old'] = generic.IndirectObject(7, 2, pdf)
    mapping = renumber_objects(pdf)
    assert mapping == {old: Reference(3, 2)}
    assert pdf.root.raw_get('/Old').reference == Reference(3, 2)
    assert pdf.root['/Old'] == 1


def test_renumber_shared_container_mapped_once():
    # 2 -> 1 and 3 -> 2: remapping the shared array twice would turn the
    # reference to 3 into a reference to 1
    pdf = PdfDocument()
    shared = generic.ArrayObject([generic.IndirectObject(3, 0, pdf)])
    pdf.add_object(
        generic.DictionaryObject({pdf_name('/A'): shared}), ref=Reference(2)
    )
    pdf.add_object(
        generic.DictionaryObject({pdf_name('/B'): shared}), ref=Reference(3)
    )
    pdf.trailer['/Root'] = generic.IndirectObject(2, 0, pdf)
    renumber_objects(pdf)
    assert shared.raw_get(0).reference == Reference(2)
    assert pdf.root_ref == Reference(1)


def test_renumber_leaves_dangling_references():
    pdf = sparse_document()
    pdf.root['/Broken'] = generic.IndirectObject(40, 0, pdf)
    renumber_objects(pdf)
    assert pdf.root.raw_get('/Broken').reference == Reference(40)


def test_renumber_empty():
    pdf = PdfDocument()
    assert renumber_objects(pdf, starting_id=5) == {}
    assert pdf.max_id == 4


@pytest.mark.parametrize('start', [0, -3])
def test_renumber_invalid_start(start):
    with pytest.raises(ValueError):
        renumber_objects(PdfDocument(), starting_id=start)


def test_renumber_uses_configured_start():
    pdf = sparse_document()
    pdf.config = SurgeryConfig(renumber_start=100)
    pdf.renumber_objects()
    assert sorted(r.idnum for r in pdf.objects) == [100, 101, 102]
    pdf.renumber_objects(starting_id=1)
    assert sorted(r.idnum for r in pdf.objects) == [1, 2, 3]
