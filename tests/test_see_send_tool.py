from pathlib import Path
import json
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from _documents import invoice

from app.sunat_client.config import SunatEndpoints
from app.sunat_client.models import BillResult, CdrResponse, Error, StatusResult, SummaryResult
from app.sunat_client.xml_builder import InvoiceBuilder
from tools import see_send


def test_result_to_dict_bill():
    result = BillResult(
        success=True,
        cdr_response=CdrResponse("0", "aceptada", ["4252 - nota"]),
        cdr_zip=b"1234",
    )
    out = see_send.result_to_dict(result)
    assert out["type"] == "BillResult"
    assert out["cdr_zip_bytes"] == 4
    assert out["cdr_response"]["notes"] == ["4252 - nota"]
    json.dumps(out)


def test_result_to_dict_status_pending():
    out = see_send.result_to_dict(StatusResult(code="98"))
    assert out["pending"] is True
    assert out["cdr_zip_bytes"] == 0


class FakeSee:
    sent = []

    def __init__(self, config):
        self.config = config

    def send_xml_file(self, xml):
        FakeSee.sent.append(xml)
        return SummaryResult(success=True, ticket="123")

    def get_status(self, ticket):
        return StatusResult(code="0127", error=Error("127", "El ticket no existe"))


def test_main_send(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(see_send, "See", FakeSee)
    xml_file = tmp_path / "20000000001-01-F001-123.xml"
    xml_file.write_bytes(InvoiceBuilder().build(invoice()))

    assert see_send.main(["--env", "beta", "send", str(xml_file)]) == 0
    assert FakeSee.sent[-1] == xml_file.read_bytes()
    assert json.loads(capsys.readouterr().out)["ticket"] == "123"


def test_main_status_error_exit_code(monkeypatch, capsys):
    monkeypatch.setattr(see_send, "See", FakeSee)
    assert see_send.main(["--env", "beta", "status", "0"]) == 1
    assert json.loads(capsys.readouterr().out)["error"]["code"] == "127"


def test_main_missing_file(monkeypatch, tmp_path):
    monkeypatch.setattr(see_send, "See", FakeSee)
    assert see_send.main(["--env", "beta", "send", str(tmp_path / "nada.xml")]) == 1


def test_main_service_selects_endpoint(monkeypatch, capsys):
    created = []

    class RecordingSee(FakeSee):
        def __init__(self, config):
            super().__init__(config)
            created.append(config)

    monkeypatch.delenv("SUNAT_ENDPOINT", raising=False)
    monkeypatch.delenv("SUNAT_CERT_PATH", raising=False)
    monkeypatch.setattr(see_send, "See", RecordingSee)
    see_send.main(["--env", "prod", "--service", "guia", "status", "1"])
    assert created[0].endpoint == SunatEndpoints.GUIA_PRODUCCION


def test_main_missing_certificate_reports_error(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(see_send, "See", FakeSee)
    monkeypatch.setenv("SUNAT_CERT_PATH", str(tmp_path / "no-existe.pem"))

    assert see_send.main(["--env", "beta", "status", "1"]) == 1
    err = capsys.readouterr().err
    assert err.startswith("ERROR")
    assert "Certificado no encontrado" in err


def test_main_invalid_timeout_reports_error(monkeypatch, capsys):
    monkeypatch.setattr(see_send, "See", FakeSee)
    monkeypatch.delenv("SUNAT_CERT_PATH", raising=False)
    monkeypatch.setenv("SUNAT_REQUEST_TIMEOUT", "treinta")

    assert see_send.main(["--env", "beta", "status", "1"]) == 1
    assert capsys.readouterr().err.startswith("ERROR")
