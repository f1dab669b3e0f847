from pdfsurgeon.pdf_utils import generic
from pdfsurgeon.pdf_utils.generic import pdf_name
from pdfsurgeon.pdf_utils.info import change_producer

from .samples import *


def test_change_producer_indirect_info():
    pdf = PdfDocument.create_blank()
    info = generic.DictionaryObject({
        pdf_name('/Producer'): generic.pdf_string('Old producer'),
    })
    pdf.trailer['/Info'] = pdf.add_object(info)
    assert change_producer(pdf, 'pdfsurgeon')
    assert info['/Producer'] == 'pdfsurgeon'
    assert isinstance(info['/Producer'], generic.TextStringObject)


def test_change_producer_direct_info():
    pdf = PdfDocument.create_blank()
    pdf.trailer['/Info'] = info = generic.DictionaryObject()
    assert pdf.change_producer('pdfsurgeon')
    assert info['/Producer'] == 'pdfsurgeon'


def test_change_producer_no_info():
    pdf = PdfDocument.create_blank()
    assert not change_producer(pdf, 'pdfsurgeon')
    assert '/Info' not in pdf.trailer


def test_change_producer_info_not_a_dict():
    pdf = PdfDocument.create_blank()
    pdf.trailer['/Info'] = pdf.add_object(generic.NumberObject(3))
    assert not change_producer(pdf, 'pdfsurgeon')


def test_change_producer_dangling_info():
    pdf = PdfDocument.create_blank()
    pdf.trailer['/Info'] = generic.IndirectObject(30, 0, pdf)
    assert not change_producer(pdf, 'pdfsurgeon')
