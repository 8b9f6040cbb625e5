"""
Orquestador de envíos al SEE de SUNAT.

Flujo: registro (builder + categoría) -> builder -> firma -> sender -> CDR / ticket / Error.
Un SOAP Fault llega como result.error; los errores estructurales, de
clasificación o de firma se propagan como excepción.
"""
import logging
from typing import Optional, Union

from app.sunat_client.config import SeeConfig
from app.sunat_client.error_codes import ErrorCodeCatalog
from app.sunat_client.exceptions import SigningError
from app.sunat_client.models import BaseResult, Document, DocumentKind, StatusResult
from app.sunat_client.registry import DocumentTypeRegistry, SenderCategory, SubmissionStrategy
from app.sunat_client.senders import BaseSunat, BillSender, ExtService, SummarySender, WsClient
from app.sunat_client.soap_client import SoapClient
from app.sunat_client.xml_resolver import XmlFilenameExtractor, XmlTypeResolver, parse_xml
from app.sunat_client.xml_signer import XmlSigner

logger = logging.getLogger(__name__)


class See:
    """
    Sistema de Emisión Electrónica desde los sistemas del contribuyente.

    Args:
        config: Configuración inmutable (endpoint, credenciales SOL, certificado)
        client: Cliente SOAP; por defecto SoapClient(config)
        signer: Firmador con sign(xml) -> bytes; por defecto XmlSigner(config.certificate)
        registry: Registro de estrategias por tipo de documento
        code_provider: Catálogo de códigos de error; None usa el catálogo incorporado
    """

    def __init__(
        self,
        config: Optional[SeeConfig] = None,
        client: Optional[WsClient] = None,
        signer: Optional[XmlSigner] = None,
        registry: Optional[DocumentTypeRegistry] = None,
        code_provider: Optional[ErrorCodeCatalog] = None,
    ):
        self.config = config or SeeConfig()
        self.client = client if client is not None else SoapClient(self.config)
        self.registry = registry or DocumentTypeRegistry()
        self.code_provider = code_provider if code_provider is not None else ErrorCodeCatalog.default()
        self.resolver = XmlTypeResolver()
        self.extractor = XmlFilenameExtractor(self.resolver)
        self._signer = signer

    @property
    def signer(self) -> XmlSigner:
        if self._signer is None:
            if not self.config.certificate:
                raise SigningError("Certificado no configurado (SUNAT_CERT_PATH)")
            self._signer = XmlSigner(self.config.certificate)
        return self._signer

    # ---------------------------------------------------------------------
    # Operaciones
    # ---------------------------------------------------------------------
    def get_xml_signed(self, document: Document) -> bytes:
        """Construye y firma el XML del documento sin enviarlo."""
        return self._build_signed(self.registry.resolve(document.kind), document)

    def send(self, document: Document) -> BaseResult:
        """
        Construye, firma y envía el documento.

        Returns:
            BillResult (CDR) o SummaryResult (ticket); un rechazo de SUNAT
            viene en result.error
        """
        strategy = self.registry.resolve(document.kind)
        signed = self._build_signed(strategy, document)
        return self._submit(strategy, document.get_name(), signed)

    def send_xml(self, kind: Union[DocumentKind, str], filename: str, xml: Union[bytes, str]) -> BaseResult:
        """Envía un XML ya generado (y firmado) sin pasar por el builder."""
        strategy = self.registry.resolve(kind)
        return self._submit(strategy, filename, xml)

    def send_xml_file(self, xml: Union[bytes, str]) -> BaseResult:
        """
        Envía un XML firmado deduciendo su tipo y nombre desde el contenido.

        Raises:
            UnrecognizedDocumentType: Si la raíz no corresponde a un documento conocido
        """
        doc = parse_xml(xml)
        kind = self.resolver.get_type(doc)
        filename = self.extractor.get_filename(doc)
        logger.debug(f"XML clasificado como {kind.value}: {filename}")
        return self.send_xml(kind, filename, xml)

    def get_status(self, ticket: str) -> StatusResult:
        """Consulta una vez el estado de un ticket (sin validar su formato)."""
        logger.info(f"Consultando ticket {ticket!r}")
        result = ExtService(self.client, self.code_provider).get_status(ticket)
        self._log_result(f"ticket {ticket}", result)
        return result

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------
    def _build_signed(self, strategy: SubmissionStrategy, document: Document) -> bytes:
        builder = strategy.builder_class(self.config.builder_options)
        xml = builder.build(document)
        return self.signer.sign(xml)

    def _get_sender(self, category: SenderCategory) -> BaseSunat:
        if category is SenderCategory.SUMMARY:
            return SummarySender(self.client, self.code_provider)
        return BillSender(self.client, self.code_provider)

    def _submit(
        self,
        strategy: SubmissionStrategy,
        filename: str,
        xml: Union[bytes, str],
    ) -> BaseResult:
        category = strategy.sender_category
        logger.info(f"Enviando {filename} por {category.value}")
        result = self._get_sender(category).send(filename, xml)
        self._log_result(filename, result)
        return result

    @staticmethod
    def _log_result(label: str, result: BaseResult) -> None:
        if result.error is not None:
            logger.warning(f"{label}: rechazado code={result.error.code} message={result.error.message}")
        else:
            logger.info(f"{label}: success={result.success}")
