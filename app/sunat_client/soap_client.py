"""
Cliente SOAP 1.1 Document/Literal para el billService de SUNAT

Requisitos:
- WSDL local (el WSDL remoto exige autenticación y referencia XSD externos)
- WS-Security UsernameToken (RUC + usuario SOL, clave SOL)
- Un SOAP Fault se traduce a TransportFault; los errores de red a SunatClientError
"""
import logging
from pathlib import Path
from typing import Any, Optional, Union

import requests
from lxml import etree
from requests import Session
from requests.adapters import HTTPAdapter
from zeep import Client, Settings
from zeep.exceptions import Error as ZeepError
from zeep.exceptions import Fault, TransportError
from zeep.transports import Transport
from zeep.wsse.username import UsernameToken

from .config import SeeConfig
from .exceptions import SunatClientError, TransportFault

logger = logging.getLogger(__name__)

SERVICE_NS = "http://service.sunat.gob.pe"
BINDING_NAME = f"{{{SERVICE_NS}}}BillServicePortBinding"
WSDL_PATH = Path(__file__).resolve().parent / "wsdl" / "billService.wsdl"


def fault_detail_message(detail: Optional[etree._Element]) -> Optional[str]:
    """Texto de <detail><message> de un SOAP Fault SUNAT, si existe"""
    if detail is None:
        return None
    node = detail.find(".//{*}message")
    if node is None or node.text is None:
        return None
    return node.text.strip()


class SoapClient:
    """Cliente SOAP para sendBill / sendSummary / getStatus."""

    def __init__(self, config: SeeConfig, wsdl_path: Optional[Union[str, Path]] = None):
        self.config = config
        self.wsdl_path = Path(wsdl_path) if wsdl_path else WSDL_PATH
        self._service: Any = None

    # ---------------------------------------------------------------------
    # Transport
    # ---------------------------------------------------------------------
    def _create_transport(self) -> Transport:
        session = Session()
        session.verify = True
        session.mount("https://", HTTPAdapter())
        return Transport(
            session=session,
            timeout=self.config.timeout,
            operation_timeout=self.config.timeout,
        )

    def _get_service(self) -> Any:  # ServiceProxy de Zeep
        if self._service is not None:
            return self._service

        logger.info(f"Cargando WSDL local: {self.wsdl_path.name} -> {self.config.endpoint}")
        try:
            client = Client(
                wsdl=str(self.wsdl_path),
                transport=self._create_transport(),
                settings=Settings(strict=False, xml_huge_tree=True),
                wsse=UsernameToken(self.config.username, self.config.password),
            )
            self._service = client.create_service(BINDING_NAME, self.config.endpoint)
        except (ZeepError, OSError) as e:
            raise SunatClientError(f"Error al crear cliente SOAP: {e}") from e
        return self._service

    # ---------------------------------------------------------------------
    # Operaciones
    # ---------------------------------------------------------------------
    def call(self, operation: str, **params: Any) -> Any:
        """
        Invoca una operación del billService.

        Args:
            operation: sendBill, sendSummary o getStatus
            **params: Parámetros de la operación (fileName, contentFile, ticket)

        Returns:
            Respuesta deserializada por zeep

        Raises:
            TransportFault: Si SUNAT responde con SOAP Fault
            SunatClientError: Si falla la conexión o el HTTP
        """
        service = self._get_service()
        logger.debug(f"SOAP {operation} -> {self.config.endpoint}")
        try:
            return getattr(service, operation)(**params)
        except Fault as e:
            raise TransportFault(
                code=str(e.code or ""),
                message=e.message or "",
                detail_message=fault_detail_message(e.detail),
            ) from e
        except (TransportError, requests.exceptions.RequestException) as e:
            raise SunatClientError(f"Error de conexión en {operation}: {e}") from e
