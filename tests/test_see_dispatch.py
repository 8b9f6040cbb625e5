from dataclasses import replace
from pathlib import Path
import re
import sys

import pytest
from lxml import etree

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from _documents import cdr_xml, cdr_zip, invoice, retention, reversion, summary, voided

from app.sunat_client.config import SeeConfig
from app.sunat_client.error_codes import ErrorCodeCatalog
from app.sunat_client.exceptions import SigningError, TransportFault, UnrecognizedDocumentType
from app.sunat_client.models import BillResult, DocumentKind, SummaryResult, VoidedDetail
from app.sunat_client.registry import DocumentTypeRegistry
from app.sunat_client.xml_builder import SAC_NS
from app.sunat_client.zip_utils import decompress_last_file
from sunat_see import See


class StubClient:
    """Transporte sin red: registra las llamadas y devuelve respuestas fijas."""

    def __init__(self, fault=None):
        self.calls = []
        self.fault = fault
        self.responses = {
            "sendBill": cdr_zip(("R-20000000001-01-F001-123.xml", cdr_xml())),
            "sendSummary": {"ticket": "1703154974517"},
            "getStatus": {"statusCode": "98", "content": None},
        }

    def call(self, operation, **params):
        self.calls.append((operation, params))
        if self.fault is not None:
            raise self.fault
        return self.responses[operation]


class PassThroughSigner:
    def __init__(self):
        self.signed = []

    def sign(self, xml):
        self.signed.append(xml)
        return xml


def _see(client=None, signer=None):
    return See(
        SeeConfig(username="20000000001MODDATOS", password="moddatos"),
        client=client or StubClient(),
        signer=signer or PassThroughSigner(),
        code_provider=ErrorCodeCatalog({160: "El archivo XML está vacío"}),
    )


def _signed_xml(document) -> bytes:
    builder = DocumentTypeRegistry().resolve(document.kind).builder_class()
    return builder.build(document)


def test_get_xml_signed_makes_no_remote_call():
    client, signer = StubClient(), PassThroughSigner()
    xml = _see(client, signer).get_xml_signed(invoice())
    assert client.calls == []
    assert signer.signed == [xml]
    assert b"<cbc:ID>F001-123</cbc:ID>" in xml


def test_send_invoice_uses_send_bill():
    client = StubClient()
    result = _see(client).send(invoice())

    assert isinstance(result, BillResult)
    assert result.success
    assert result.error is None
    assert result.cdr_response.response_code == "0"
    assert len(client.calls) == 1
    operation, params = client.calls[0]
    assert operation == "sendBill"
    assert params["fileName"] == "20000000001-01-F001-123.zip"


def test_send_summary_uses_send_summary():
    client = StubClient()
    result = _see(client).send(summary())

    assert isinstance(result, SummaryResult)
    assert result.success
    assert result.ticket == "1703154974517"
    assert [c[0] for c in client.calls] == ["sendSummary"]
    assert client.calls[0][1]["fileName"] == "20000000001-RC-20240315-001.zip"


def test_send_xml_dispatches_by_category():
    client = StubClient()
    see = _see(client)

    see.send_xml(DocumentKind.SUMMARY, "20000000001-RC-20240315-001", b"<x/>")
    see.send_xml(DocumentKind.INVOICE, "20000000001-01-F001-123", b"<x/>")
    see.send_xml("reversion", "20000000001-RR-20240315-003", "<x/>")

    assert [c[0] for c in client.calls] == ["sendSummary", "sendBill", "sendSummary"]


def test_send_xml_skips_builder_and_signer():
    client, signer = StubClient(), PassThroughSigner()
    _see(client, signer).send_xml(DocumentKind.INVOICE, "20000000001-01-F001-123", b"<x/>")
    assert signer.signed == []


def test_send_xml_file_classifies_and_names():
    client = StubClient()
    see = _see(client)

    see.send_xml_file(_signed_xml(retention()))
    see.send_xml_file(_signed_xml(reversion()).decode("utf-8"))

    assert client.calls[0][0] == "sendBill"
    assert client.calls[0][1]["fileName"] == "20000000001-20-R001-123.zip"
    assert client.calls[1][0] == "sendSummary"
    assert client.calls[1][1]["fileName"] == "20000000001-RR-20240315-003.zip"


def _latin1_voided_text() -> str:
    document = replace(voided(), details=(VoidedDetail("01", "F001", "120", "Baja por anulación"),))
    text = _signed_xml(document).decode("utf-8")
    return re.sub(r"^<\?xml[^>]*\?>", "<?xml version=\"1.0\" encoding=\"ISO-8859-1\"?>", text, count=1)


def test_send_xml_file_keeps_declared_encoding():
    client = StubClient()
    _see(client).send_xml_file(_latin1_voided_text())

    operation, params = client.calls[0]
    assert operation == "sendSummary"
    name, content = decompress_last_file(params["contentFile"])
    assert name == "20000000001-RA-20240315-002.xml"
    assert "anulación".encode("iso-8859-1") in content
    reason = etree.fromstring(content).find(f".//{{{SAC_NS}}}VoidReasonDescription")
    assert reason.text == "Baja por anulación"


def test_send_xml_str_not_representable_in_declared_encoding():
    client = StubClient()
    xml = _latin1_voided_text().replace("anulación", "anulación \u20ac")
    with pytest.raises(UnrecognizedDocumentType):
        _see(client).send_xml(DocumentKind.VOIDED, "20000000001-RA-20240315-002", xml)
    assert client.calls == []


def test_send_xml_file_unrecognized_root_makes_no_call():
    client = StubClient()
    with pytest.raises(UnrecognizedDocumentType):
        _see(client).send_xml_file(b"<Order/>")
    assert client.calls == []


def test_fault_becomes_result_error():
    client = StubClient(fault=TransportFault("soap-env:Client.0160", "El ZIP está vacío"))
    result = _see(client).send(invoice())

    assert not result.success
    assert result.error.code == "0160"
    assert result.error.message == "El archivo XML está vacío"
    assert result.cdr_response is None


def test_fault_on_summary_becomes_result_error():
    client = StubClient(fault=TransportFault("soap-env:Server", "Internal Error", "detalle"))
    result = _see(client).send(summary())

    assert isinstance(result, SummaryResult)
    assert result.ticket is None
    assert result.error.code == "soap-env:Server"
    assert result.error.message == "detalle"


def test_get_status_single_call_no_validation():
    client = StubClient()
    result = _see(client).get_status("")

    assert client.calls == [("getStatus", {"ticket": ""})]
    assert result.is_pending
    assert not result.success


def test_missing_certificate_raises_signing_error():
    client = StubClient()
    see = See(SeeConfig(), client=client)
    with pytest.raises(SigningError):
        see.send(invoice())
    assert client.calls == []


def test_signer_error_propagates():
    class FailingSigner:
        def sign(self, xml):
            raise SigningError("clave inválida")

    client = StubClient()
    with pytest.raises(SigningError, match="clave inválida"):
        _see(client, FailingSigner()).send(invoice())
    assert client.calls == []
