from pathlib import Path
import sys

import pytest
from lxml import etree

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from _documents import DOCUMENTS, debit_note, invoice, summary, voided

from app.sunat_client.config import BuilderOptions
from app.sunat_client.exceptions import UnrecognizedDocumentType, UnsupportedDocumentKind
from app.sunat_client.models import DocumentKind
from app.sunat_client.registry import DocumentTypeRegistry
from app.sunat_client.xml_builder import DS_NS, InvoiceBuilder, SummaryBuilder
from app.sunat_client.xml_resolver import XmlFilenameExtractor, XmlTypeResolver, parse_xml


def _build(document) -> bytes:
    builder = DocumentTypeRegistry().resolve(document.kind).builder_class()
    return builder.build(document)


@pytest.mark.parametrize("kind", list(DocumentKind))
def test_classify_round_trip(kind):
    document = DOCUMENTS[kind]()
    assert XmlTypeResolver().get_type(parse_xml(_build(document))) is kind


@pytest.mark.parametrize("kind", list(DocumentKind))
def test_filename_matches_document_name(kind):
    document = DOCUMENTS[kind]()
    assert XmlFilenameExtractor().get_filename(parse_xml(_build(document))) == document.get_name()


def test_debit_note_round_trip():
    document = debit_note()
    doc = parse_xml(_build(document))
    assert etree.QName(doc.getroot()).localname == "DebitNote"
    assert XmlTypeResolver().get_type(doc) is DocumentKind.NOTE
    assert XmlFilenameExtractor().get_filename(doc) == "20000000001-08-FD01-7"


def test_expected_names():
    assert invoice().get_name() == "20000000001-01-F001-123"
    assert summary().get_name() == "20000000001-RC-20240315-001"
    assert voided().get_name() == "20000000001-RA-20240315-002"


def test_builder_leaves_signature_placeholder():
    root = etree.fromstring(_build(invoice()))
    placeholder = root.find(f".//{{{DS_NS}}}Signature")
    assert placeholder is not None
    assert placeholder.get("Id") == "placeholder"


def test_builder_rejects_other_document_type():
    with pytest.raises(UnsupportedDocumentKind):
        SummaryBuilder().build(invoice())


def test_builder_options_pretty_print():
    xml = InvoiceBuilder(BuilderOptions(pretty_print=True)).build(invoice())
    assert xml.startswith(b"<?xml")
    assert b"\n  <cbc:ID>F001-123</cbc:ID>" in xml


def test_parse_xml_accepts_str_with_declaration():
    text = _build(invoice()).decode("utf-8")
    assert text.startswith("<?xml")
    assert XmlTypeResolver().get_type(parse_xml(text)) is DocumentKind.INVOICE


def test_unknown_root_is_unrecognized():
    doc = parse_xml(b"<Order xmlns='urn:oasis:names:specification:ubl:schema:xsd:Order-2'/>")
    with pytest.raises(UnrecognizedDocumentType, match="Order"):
        XmlTypeResolver().get_type(doc)


def test_known_name_in_wrong_namespace_is_unrecognized():
    with pytest.raises(UnrecognizedDocumentType):
        XmlTypeResolver().get_type(parse_xml(b"<Invoice/>"))


def test_invalid_xml_is_unrecognized():
    with pytest.raises(UnrecognizedDocumentType):
        parse_xml(b"<Invoice")


def test_filename_without_issuer_is_unrecognized():
    xml = (
        b"<Invoice xmlns='urn:oasis:names:specification:ubl:schema:xsd:Invoice-2' "
        b"xmlns:cbc='urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2'>"
        b"<cbc:ID>F001-1</cbc:ID><cbc:InvoiceTypeCode>01</cbc:InvoiceTypeCode></Invoice>"
    )
    with pytest.raises(UnrecognizedDocumentType, match="RUC"):
        XmlFilenameExtractor().get_filename(parse_xml(xml))


def test_invoice_issuer_fallback_to_customer_assigned_account():
    xml = (
        b"<Invoice xmlns='urn:oasis:names:specification:ubl:schema:xsd:Invoice-2' "
        b"xmlns:cbc='urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2' "
        b"xmlns:cac='urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2'>"
        b"<cbc:ID>B001-9</cbc:ID><cbc:InvoiceTypeCode>03</cbc:InvoiceTypeCode>"
        b"<cac:AccountingSupplierParty><cbc:CustomerAssignedAccountID>20111111111"
        b"</cbc:CustomerAssignedAccountID></cac:AccountingSupplierParty></Invoice>"
    )
    assert XmlFilenameExtractor().get_filename(parse_xml(xml)) == "20111111111-03-B001-9"
