import zlib

from pdfsurgeon.pdf_utils import generic
from pdfsurgeon.pdf_utils.document import PdfDocument
from pdfsurgeon.pdf_utils.generic import Reference, pdf_name


def content_stream_data(txt, y=0):
    return f'BT /F1 18 Tf 0 {y} Td ({txt}) Tj ET'.encode('ascii')


def simple_page(pdf_out: PdfDocument, ascii_text, compress=False,
                extra_stream=False):
    # based on the minimal pdf file of
    # https://brendanzagaeski.appspot.com/0004.html
    font = generic.DictionaryObject({
        pdf_name('/Type'): pdf_name('/Font'),
        pdf_name('/Subtype'): pdf_name('/Type1'),
        pdf_name('/BaseFont'): pdf_name('/Courier'),
    })
    resources = generic.DictionaryObject({
        pdf_name('/Font'): generic.DictionaryObject({
            pdf_name('/F1'): pdf_out.add_object(font)
        })
    })
    media_box = generic.ArrayObject(
        map(generic.NumberObject, (0, 0, 300, 144))
    )

    stream = generic.StreamObject(
        stream_data=content_stream_data(ascii_text)
    )
    if compress:
        stream.compress()

    if extra_stream:
        stream2 = generic.StreamObject(
            stream_data=content_stream_data(ascii_text, 100)
        )
        if compress:
            stream2.compress()
        contents = generic.ArrayObject(
            [pdf_out.add_object(stream), pdf_out.add_object(stream2)]
        )
    else:
        contents = pdf_out.add_object(stream)
    return generic.DictionaryObject({
        pdf_name('/Type'): pdf_name('/Page'),
        pdf_name('/MediaBox'): media_box,
        pdf_name('/Resources'): resources,
        pdf_name('/Contents'): contents,
    })


def three_page_document(**kwargs):
    """
    Blank document with three pages, directly under the page tree root.
    """
    pdf = PdfDocument.create_blank()
    refs = [
        pdf.insert_page(simple_page(pdf, f'Page {ix}', **kwargs)).reference
        for ix in (1, 2, 3)
    ]
    return pdf, refs


def nested_page_tree_document():
    """
    Document with page tree root -> [intermediate -> [p1, p2], p3].
    """
    pdf = PdfDocument.create_blank()
    intermediate = generic.DictionaryObject({
        pdf_name('/Type'): pdf_name('/Pages'),
        pdf_name('/Kids'): generic.ArrayObject(),
        pdf_name('/Count'): generic.NumberObject(0),
    })
    intermediate_ref = pdf.insert_page(intermediate).reference
    p1 = pdf.insert_page(simple_page(pdf, 'Page 1'), parent=intermediate_ref)
    p2 = pdf.insert_page(simple_page(pdf, 'Page 2'), parent=intermediate_ref)
    p3 = pdf.insert_page(simple_page(pdf, 'Page 3'))
    return pdf, intermediate_ref, [p1.reference, p2.reference, p3.reference]


def unbound_ref(idnum, generation=0):
    return generic.IndirectObject(idnum, generation, None)


def sparse_document():
    """
    Document with objects 1, 3 and 5: a catalog, a page tree root and a
    single page.
    """
    objects = {
        Reference(1): generic.DictionaryObject({
            pdf_name('/Type'): pdf_name('/Catalog'),
            pdf_name('/Pages'): unbound_ref(3),
        }),
        Reference(3): generic.DictionaryObject({
            pdf_name('/Type'): pdf_name('/Pages'),
            pdf_name('/Kids'): generic.ArrayObject([unbound_ref(5)]),
            pdf_name('/Count'): generic.NumberObject(1),
        }),
        Reference(5): generic.DictionaryObject({
            pdf_name('/Type'): pdf_name('/Page'),
            pdf_name('/Parent'): unbound_ref(3),
        }),
    }
    trailer = generic.DictionaryObject({pdf_name('/Root'): unbound_ref(1)})
    return PdfDocument(trailer=trailer, objects=objects)


def all_references(pdf: PdfDocument):
    """
    Collect the references stored anywhere in the document.
    """
    found = []

    def _collect(obj):
        if isinstance(obj, generic.IndirectObject):
            found.append(obj.reference)
        return obj

    pdf.rewrite_objects(_collect)
    return found


MALFORMED_PAYLOAD = b'BT /F1 18 Tf 0 0 Td (Malformed) Tj ET'

MALFORMED_STREAM_KINDS = [
    'filter-not-a-name', 'filter-array-of-numbers',
    'decode-parms-not-a-dict', 'predictor-without-columns',
]


def malformed_stream(kind, decoded_data=None):
    """
    Build a stream whose dictionary cannot be used to decode it.
    If ``decoded_data`` is given, the stream only holds decoded data, so
    encoding it fails instead.
    """
    flate = pdf_name('/FlateDecode')
    if kind == 'filter-not-a-name':
        entries = {pdf_name('/Filter'): generic.NumberObject(5)}
    elif kind == 'filter-array-of-numbers':
        entries = {
            pdf_name('/Filter'): generic.ArrayObject([generic.NumberObject(5)])
        }
    elif kind == 'decode-parms-not-a-dict':
        entries = {
            pdf_name('/Filter'): flate,
            pdf_name('/DecodeParms'): generic.NumberObject(3),
        }
    elif kind == 'predictor-without-columns':
        entries = {
            pdf_name('/Filter'): flate,
            pdf_name('/DecodeParms'): generic.DictionaryObject({
                pdf_name('/Predictor'): generic.NumberObject(12)
            }),
        }
    else:
        raise ValueError(kind)
    dict_data = generic.DictionaryObject(entries)
    if decoded_data is not None:
        return generic.StreamObject(dict_data, stream_data=decoded_data)
    return generic.StreamObject(
        dict_data, encoded_data=zlib.compress(MALFORMED_PAYLOAD)
    )
