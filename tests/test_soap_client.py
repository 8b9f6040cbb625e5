from pathlib import Path
import sys

import pytest
import requests
from lxml import etree
from zeep.exceptions import Fault

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.sunat_client.config import SeeConfig, SunatEndpoints
from app.sunat_client.exceptions import SunatClientError, TransportFault
from app.sunat_client.soap_client import WSDL_PATH, SoapClient, fault_detail_message


class FakeService:
    def __init__(self, exc=None, response=None):
        self.exc = exc
        self.response = response
        self.params = None

    def sendBill(self, **params):
        self.params = params
        if self.exc is not None:
            raise self.exc
        return self.response


def _client(service) -> SoapClient:
    client = SoapClient(SeeConfig())
    client._service = service
    return client


def test_wsdl_is_bundled():
    assert WSDL_PATH.exists()


def test_service_bound_to_configured_endpoint():
    client = SoapClient(SeeConfig(endpoint=SunatEndpoints.GUIA_BETA, username="u", password="p"))
    service = client._get_service()
    assert service._binding_options["address"] == SunatEndpoints.GUIA_BETA
    assert client._get_service() is service


def test_call_returns_response():
    service = FakeService(response=b"zip")
    assert _client(service).call("sendBill", fileName="a.zip", contentFile=b"x") == b"zip"
    assert service.params == {"fileName": "a.zip", "contentFile": b"x"}


def test_fault_is_translated_to_transport_fault():
    detail = etree.fromstring(b"<detail><message>El nombre del archivo ZIP es incorrecto</message></detail>")
    service = FakeService(exc=Fault("0151", code="soap-env:Client.0151", detail=detail))

    with pytest.raises(TransportFault) as excinfo:
        _client(service).call("sendBill", fileName="a.zip", contentFile=b"x")

    fault = excinfo.value
    assert fault.code == "soap-env:Client.0151"
    assert fault.message == "0151"
    assert fault.detail_message == "El nombre del archivo ZIP es incorrecto"


def test_network_error_is_client_error():
    service = FakeService(exc=requests.exceptions.ConnectionError("sin red"))
    with pytest.raises(SunatClientError, match="sendBill"):
        _client(service).call("sendBill", fileName="a.zip", contentFile=b"x")


def test_fault_detail_message_missing():
    assert fault_detail_message(None) is None
    assert fault_detail_message(etree.fromstring(b"<detail/>")) is None
