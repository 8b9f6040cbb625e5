"""
Envío de comprobantes al billService y consulta de tickets

BillSender      sendBill    -> CDR inmediato (facturas, notas, guías, retenciones, percepciones)
SummarySender   sendSummary -> ticket (resúmenes diarios, bajas, reversiones)
ExtService      getStatus   -> estado del ticket y CDR cuando terminó
"""
import logging
from typing import Any, Optional, Protocol, Union

from .cdr_reader import extract_response
from .error_codes import (
    CDR_NOT_FOUND_CODE,
    CDR_NOT_FOUND_MESSAGE,
    STATUS_NOT_FOUND_CODE,
    STATUS_NOT_FOUND_MESSAGE,
    TICKET_NOT_FOUND_CODE,
    TICKET_NOT_FOUND_MESSAGE,
    ErrorCodeCatalog,
)
from .exceptions import TransportFault
from .fault import error_from_fault
from .models import BillResult, Error, StatusResult, SummaryResult
from .xml_resolver import xml_to_bytes
from .zip_utils import compress

logger = logging.getLogger(__name__)

STATUS_PROCESSED = ("0", "99")
STATUS_PENDING = "98"


class WsClient(Protocol):
    def call(self, operation: str, **params: Any) -> Any:
        ...


def _unwrap(response: Any, name: str) -> Any:
    """zeep devuelve directamente el único hijo del mensaje de respuesta"""
    if isinstance(response, dict):
        return response[name] if name in response else response
    if hasattr(response, name):
        return getattr(response, name)
    return response


def _field(value: Any, name: str) -> Any:
    if isinstance(value, dict):
        return value.get(name)
    return getattr(value, name, None)


def _normalize_code(code: Any) -> str:
    text = str(code).strip() if code is not None else ""
    if text.isdigit():
        return str(int(text))
    return text


def is_exception_code(code: Optional[str]) -> bool:
    """Códigos 100..1999: excepción de SUNAT, el comprobante no fue procesado"""
    if code is None or not str(code).isdigit():
        return False
    return 100 <= int(code) <= 1999


class BaseSunat:
    """Base de los servicios: cliente SOAP, catálogo de errores y traducción de faults"""

    def __init__(self, client: WsClient, catalog: Optional[ErrorCodeCatalog] = None):
        self.client = client
        self.catalog = catalog

    def get_error_from_fault(self, fault: TransportFault) -> Error:
        error = error_from_fault(fault, self.catalog)
        logger.warning(f"SOAP Fault SUNAT: code={error.code} message={error.message}")
        return error

    def get_message_error(self, code: str) -> str:
        if self.catalog is None:
            return ""
        return self.catalog.lookup(code) or ""

    @staticmethod
    def zip_content(filename: str, content: Union[bytes, str]) -> bytes:
        return compress(f"{filename}.xml", xml_to_bytes(content))


class BillSender(BaseSunat):
    def send(self, filename: str, content: Union[bytes, str]) -> BillResult:
        result = BillResult()
        try:
            response = self.client.call(
                "sendBill",
                fileName=f"{filename}.zip",
                contentFile=self.zip_content(filename, content),
            )
        except TransportFault as fault:
            result.error = self.get_error_from_fault(fault)
            return result

        cdr_zip = _unwrap(response, "applicationResponse")
        if not cdr_zip:
            result.error = Error(CDR_NOT_FOUND_CODE, CDR_NOT_FOUND_MESSAGE)
            return result

        result.cdr_zip = cdr_zip
        result.cdr_response = extract_response(cdr_zip)
        result.success = True
        logger.info(
            f"CDR {filename}: code={result.cdr_response.response_code} "
            f"{result.cdr_response.description}"
        )
        return result


class SummarySender(BaseSunat):
    def send(self, filename: str, content: Union[bytes, str]) -> SummaryResult:
        result = SummaryResult()
        try:
            response = self.client.call(
                "sendSummary",
                fileName=f"{filename}.zip",
                contentFile=self.zip_content(filename, content),
            )
        except TransportFault as fault:
            result.error = self.get_error_from_fault(fault)
            return result

        ticket = _unwrap(response, "ticket")
        if not ticket:
            result.error = Error(TICKET_NOT_FOUND_CODE, TICKET_NOT_FOUND_MESSAGE)
            return result

        result.ticket = str(ticket)
        result.success = True
        logger.info(f"Ticket {filename}: {result.ticket}")
        return result


class ExtService(BaseSunat):
    def get_status(self, ticket: str) -> StatusResult:
        result = StatusResult()
        try:
            response = self.client.call("getStatus", ticket=ticket)
        except TransportFault as fault:
            result.error = self.get_error_from_fault(fault)
            return result

        status = _unwrap(response, "status")
        code = _normalize_code(_field(status, "statusCode"))
        if not code:
            result.error = Error(STATUS_NOT_FOUND_CODE, STATUS_NOT_FOUND_MESSAGE)
            return result
        result.code = code

        if code == STATUS_PENDING:
            logger.info(f"Ticket {ticket}: en proceso")
            return result

        if code in STATUS_PROCESSED:
            cdr_zip = _field(status, "content")
            if not cdr_zip:
                result.error = Error(CDR_NOT_FOUND_CODE, CDR_NOT_FOUND_MESSAGE)
                return result
            result.cdr_zip = cdr_zip
            result.cdr_response = extract_response(cdr_zip)
            result.success = True
            code = _normalize_code(result.cdr_response.response_code)

            if not is_exception_code(code):
                return result

        self._load_error_by_code(result, code)
        return result

    def _load_error_by_code(self, result: StatusResult, code: str) -> None:
        message = self.get_message_error(code)
        if not message and result.cdr_response is not None:
            message = result.cdr_response.description
        result.error = Error(code, message)
        logger.warning(f"Ticket con error: code={code} message={message}")
