import hashlib
import os
from datetime import datetime

import pytest
import tzlocal
from freezegun import freeze_time

from pdfsurgeon.config import SurgeryConfig
from pdfsurgeon.pdf_utils import embed, generic, misc
from pdfsurgeon.pdf_utils.generic import pdf_name

from .samples import *

ATTACHMENT_DATA = b'Hello world!\n' * 50


@pytest.fixture
def attachment_file(tmp_path):
    path = tmp_path / 'hello.txt'
    path.write_bytes(ATTACHMENT_DATA)
    mtime = datetime(2021, 3, 14, 15, 9, 26).timestamp()
    os.utime(path, (mtime, mtime))
    return path


def _embed_test(pdf, fname, ufname, data, created=None, modified=None):
    ef_obj = embed.EmbeddedFileObject.from_file_data(
        pdf,
        data=data,
        mime_type='text/plain',
        params=embed.EmbeddedFileParams(
            creation_date=created, modification_date=modified
        ),
    )

    spec = embed.FileSpec(
        file_spec_string=fname,
        file_name=ufname,
        embedded_data=ef_obj,
        description='Embedding test',
    )
    return embed.embed_file(pdf, spec)


@freeze_time('2020-11-01')
def test_simple_embed():
    pdf = PdfDocument.create_blank()
    created = datetime.now(tz=tzlocal.get_localzone())
    spec_ref = _embed_test(
        pdf, 'attachment.txt', 'attachment.txt', ATTACHMENT_DATA,
        created=created
    )

    spec_obj = spec_ref.get_object()
    assert spec_obj['/Type'] == '/Filespec'
    assert spec_obj['/Desc'] == 'Embedding test'
    ef_stream = spec_obj['/EF']['/F']
    assert ef_stream['/Type'] == '/EmbeddedFile'
    assert ef_stream['/Subtype'] == '/text/plain'
    assert ef_stream.data == ATTACHMENT_DATA
    assert ef_stream.filter_names == ('/FlateDecode',)

    params = ef_stream['/Params']
    assert params['/Size'] == len(ATTACHMENT_DATA)
    assert ef_stream['/DL'] == len(ATTACHMENT_DATA)
    assert params['/CheckSum'] == hashlib.md5(ATTACHMENT_DATA).digest()
    assert params['/CreationDate'] == generic.pdf_date(created)
    assert '/ModDate' not in params


def test_embed_without_data():
    pdf = PdfDocument.create_blank()
    with pytest.raises(misc.PdfWriteError):
        embed.embed_file(pdf, embed.FileSpec(file_spec_string='nothing.txt'))


def test_embed_params_disabled():
    pdf = PdfDocument.create_blank()
    ef_obj = embed.EmbeddedFileObject.from_file_data(
        pdf, data=b'abc', compress=False,
        params=embed.EmbeddedFileParams(
            embed_size=False, embed_checksum=False
        ),
    )
    assert ef_obj['/Params'] == {}
    assert '/DL' not in ef_obj
    assert ef_obj.encoded_data == b'abc'
    assert ef_obj['/Length'] == 3


def test_add_attachment(attachment_file):
    pdf = PdfDocument.create_blank()
    spec_ref = embed.add_attachment(pdf, attachment_file)

    assert embed.list_attachments(pdf) == ['hello.txt']
    spec_obj = spec_ref.get_object()
    assert spec_obj['/F'] == 'hello.txt'
    assert spec_obj['/UF'] == 'hello.txt'

    # the /Names, /EmbeddedFiles and /EF dictionaries and the name array
    # are all indirect
    root = pdf.root
    assert isinstance(root.raw_get('/Names'), generic.IndirectObject)
    names = root['/Names']
    assert isinstance(
        names.raw_get('/EmbeddedFiles'), generic.IndirectObject
    )
    ef_tree = names['/EmbeddedFiles']
    assert isinstance(ef_tree.raw_get('/Names'), generic.IndirectObject)
    assert isinstance(spec_obj.raw_get('/EF'), generic.IndirectObject)

    ef_dict = spec_obj['/EF']
    assert ef_dict.raw_get('/F') == ef_dict.raw_get('/UF')

    stream_ref = embed.embedded_file_ref(pdf, 'hello.txt')
    stream = pdf.get_stream(stream_ref)
    assert stream.data == ATTACHMENT_DATA
    params = stream['/Params']
    assert params['/Size'] == len(ATTACHMENT_DATA)
    assert params['/CheckSum'] == hashlib.md5(ATTACHMENT_DATA).digest()
    expected_mtime = datetime.fromtimestamp(
        os.stat(attachment_file).st_mtime, tz=tzlocal.get_localzone()
    )
    assert params['/ModDate'] == generic.pdf_date(expected_mtime)

    # nothing added is garbage
    assert pdf.prune_objects() == []


def test_add_attachment_round_trip(attachment_file, tmp_path):
    pdf = PdfDocument.create_blank()
    embed.add_attachment(pdf, attachment_file)
    stream_ref = embed.embedded_file_ref(pdf, 'hello.txt')
    out = pdf.extract_stream(stream_ref, True, out_dir=tmp_path)
    with open(out, 'rb') as inf:
        assert inf.read() == ATTACHMENT_DATA


def test_add_multiple_attachments(tmp_path):
    pdf = PdfDocument.create_blank()
    for name in ('b.txt', 'a.txt', 'c.bin'):
        path = tmp_path / name
        path.write_bytes(name.encode('ascii'))
        embed.add_attachment(pdf, path)
    assert embed.list_attachments(pdf) == ['b.txt', 'a.txt', 'c.bin']
    for name in ('b.txt', 'a.txt', 'c.bin'):
        data = pdf.get_stream(embed.embedded_file_ref(pdf, name)).data
        assert data == name.encode('ascii')
    assert embed.embedded_file_ref(pdf, 'd.txt') is None


def test_add_attachment_uncompressed(attachment_file):
    pdf = PdfDocument.create_blank()
    embed.add_attachment(pdf, attachment_file, compress=False)
    stream = pdf.get_stream(embed.embedded_file_ref(pdf, 'hello.txt'))
    assert stream.filter_names == ()
    assert stream.encoded_data == ATTACHMENT_DATA


@freeze_time('2020-11-01')
def test_add_attachment_explicit_dates(attachment_file):
    pdf = PdfDocument.create_blank()
    now = datetime.now(tz=tzlocal.get_localzone())
    embed.add_attachment(
        pdf, attachment_file,
        params=embed.EmbeddedFileParams(
            creation_date=now, modification_date=now
        )
    )
    stream = pdf.get_stream(embed.embedded_file_ref(pdf, 'hello.txt'))
    assert stream['/Params']['/ModDate'] == generic.pdf_date(now)
    assert stream['/Params']['/CreationDate'] == generic.pdf_date(now)


def test_add_attachment_existing_direct_names(attachment_file):
    pdf = PdfDocument.create_blank()
    names_arr = generic.ArrayObject()
    pdf.root['/Names'] = generic.DictionaryObject({
        pdf_name('/EmbeddedFiles'): generic.DictionaryObject({
            pdf_name('/Names'): names_arr
        })
    })
    embed.add_attachment(pdf, attachment_file)
    assert len(names_arr) == 2
    assert embed.list_attachments(pdf) == ['hello.txt']


def test_add_attachment_missing_file(tmp_path):
    pdf = PdfDocument.create_blank()
    objects_before = dict(pdf.objects)
    root_before = dict(pdf.root)
    with pytest.raises(OSError):
        embed.add_attachment(pdf, tmp_path / 'does-not-exist.txt')
    assert pdf.objects == objects_before
    assert dict(pdf.root) == root_before
    assert pdf.max_id == 2


def test_add_attachment_hierarchical_name_tree(attachment_file):
    pdf = PdfDocument.create_blank()
    pdf.root['/Names'] = generic.DictionaryObject({
        pdf_name('/EmbeddedFiles'): generic.DictionaryObject({
            pdf_name('/Kids'): generic.ArrayObject()
        })
    })
    with pytest.raises(NotImplementedError):
        embed.add_attachment(pdf, attachment_file)


def test_add_attachment_without_catalog(attachment_file):
    pdf = PdfDocument()
    with pytest.raises(misc.PdfError):
        embed.add_attachment(pdf, attachment_file)
    # the embedded file stream was never created
    assert pdf.objects == {}
    assert pdf.max_id == 0


def test_add_attachment_uses_config(attachment_file):
    pdf = PdfDocument.create_blank(
        config=SurgeryConfig(
            compress_attachments=False, embed_checksum=False
        )
    )
    pdf.add_attachment(attachment_file)
    stream = pdf.get_stream(embed.embedded_file_ref(pdf, 'hello.txt'))
    assert stream.filter_names == ()
    assert '/CheckSum' not in stream['/Params']
    assert stream['/Params']['/Size'] == len(ATTACHMENT_DATA)
    assert pdf.list_attachments() == ['hello.txt']


def test_list_attachments_empty():
    assert embed.list_attachments(PdfDocument.create_blank()) == []
    assert embed.list_attachments(PdfDocument()) == []


@pytest.mark.parametrize('names_entry', [
    generic.NumberObject(1),
    generic.DictionaryObject(),
    generic.DictionaryObject({
        pdf_name('/EmbeddedFiles'): generic.ArrayObject()
    }),
    generic.DictionaryObject({
        pdf_name('/EmbeddedFiles'): generic.DictionaryObject({
            pdf_name('/Names'): generic.DictionaryObject()
        })
    }),
])
def test_list_attachments_malformed(names_entry):
    pdf = PdfDocument.create_blank()
    pdf.root['/Names'] = names_entry
    assert embed.list_attachments(pdf) == []


def test_list_attachments_byte_string_names():
    pdf = PdfDocument.create_blank()
    pdf.root['/Names'] = generic.DictionaryObject({
        pdf_name('/EmbeddedFiles'): generic.DictionaryObject({
            pdf_name('/Names'): generic.ArrayObject([
                generic.ByteStringObject(b'raw.bin'),
                generic.NullObject(),
                generic.pdf_string('text.txt'),
                generic.NullObject(),
            ])
        })
    })
    assert embed.list_attachments(pdf) == ['raw.bin', 'text.txt']
