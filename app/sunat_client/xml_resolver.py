"""
Clasificación de XML crudo: tipo de documento y nombre de archivo canónico
"""
import re
from typing import Dict, Optional, Tuple, Union

from lxml import etree

from .exceptions import UnrecognizedDocumentType
from .models import DocumentKind
from .xml_builder import (
    CAC_NS,
    CBC_NS,
    CREDIT_NOTE_NS,
    DEBIT_NOTE_NS,
    DESPATCH_NS,
    INVOICE_NS,
    PERCEPTION_NS,
    RETENTION_NS,
    SUMMARY_NS,
    VOIDED_NS,
)

_XML_ENCODING_RE = re.compile(r"""^\s*<\?xml[^>]*\bencoding\s*=\s*["']([A-Za-z0-9._-]+)["']""", re.I)

NSMAP = {"cbc": CBC_NS, "cac": CAC_NS}

# {namespace}root -> tipo
ROOT_TYPES: Dict[str, DocumentKind] = {
    f"{{{INVOICE_NS}}}Invoice": DocumentKind.INVOICE,
    f"{{{CREDIT_NOTE_NS}}}CreditNote": DocumentKind.NOTE,
    f"{{{DEBIT_NOTE_NS}}}DebitNote": DocumentKind.NOTE,
    f"{{{DESPATCH_NS}}}DespatchAdvice": DocumentKind.DESPATCH,
    f"{{{SUMMARY_NS}}}SummaryDocuments": DocumentKind.SUMMARY,
    f"{{{VOIDED_NS}}}VoidedDocuments": DocumentKind.VOIDED,
    f"{{{RETENTION_NS}}}Retention": DocumentKind.RETENTION,
    f"{{{PERCEPTION_NS}}}Perception": DocumentKind.PERCEPTION,
}

REVERSION_PREFIX = "RR-"


def xml_to_bytes(content: Union[bytes, str]) -> bytes:
    """
    Bytes del XML tal como se envían. Un str se codifica con el encoding
    de su declaración (UTF-8 si no declara ninguno).

    Raises:
        UnrecognizedDocumentType: Si el encoding declarado no existe o no
            puede representar el texto
    """
    if not isinstance(content, str):
        return content
    match = _XML_ENCODING_RE.match(content)
    encoding = match.group(1) if match else "utf-8"
    try:
        return content.encode(encoding)
    except (LookupError, UnicodeEncodeError) as e:
        raise UnrecognizedDocumentType(f"No se puede codificar el XML como {encoding}: {e}") from e


def parse_xml(content: Union[bytes, str]) -> etree._ElementTree:
    """
    Parsea XML crudo sin resolver entidades ni acceder a la red.

    Raises:
        UnrecognizedDocumentType: Si el contenido no es XML bien formado
    """
    # lxml rechaza str con declaración de encoding
    content = xml_to_bytes(content)

    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        return etree.ElementTree(etree.fromstring(content, parser))
    except (etree.XMLSyntaxError, ValueError) as e:
        raise UnrecognizedDocumentType(f"XML inválido: {e}") from e


def _root(doc: Union[etree._ElementTree, etree._Element]) -> etree._Element:
    if isinstance(doc, etree._ElementTree):
        return doc.getroot()
    return doc


def _find_text(root: etree._Element, path: str) -> Optional[str]:
    node = root.find(path, NSMAP)
    if node is None or node.text is None:
        return None
    text = node.text.strip()
    return text or None


class XmlTypeResolver:
    """Determina el DocumentKind por el nombre calificado del elemento raíz"""

    def get_type(self, doc: Union[etree._ElementTree, etree._Element]) -> DocumentKind:
        root = _root(doc)
        kind = ROOT_TYPES.get(root.tag)
        if kind is None:
            raise UnrecognizedDocumentType(f"Tipo de documento no reconocido: {root.tag}")

        if kind is DocumentKind.VOIDED:
            doc_id = _find_text(root, "cbc:ID") or ""
            if doc_id.startswith(REVERSION_PREFIX):
                return DocumentKind.REVERSION
        return kind


# tipo -> rutas del RUC emisor en orden de preferencia
_ISSUER_PATHS: Dict[DocumentKind, Tuple[str, ...]] = {
    DocumentKind.INVOICE: (
        "cac:AccountingSupplierParty/cac:Party/cac:PartyIdentification/cbc:ID",
        "cac:AccountingSupplierParty/cbc:CustomerAssignedAccountID",
    ),
    DocumentKind.NOTE: (
        "cac:AccountingSupplierParty/cac:Party/cac:PartyIdentification/cbc:ID",
        "cac:AccountingSupplierParty/cbc:CustomerAssignedAccountID",
    ),
    DocumentKind.DESPATCH: (
        "cac:DespatchSupplierParty/cac:Party/cac:PartyIdentification/cbc:ID",
        "cac:DespatchSupplierParty/cbc:CustomerAssignedAccountID",
    ),
    DocumentKind.RETENTION: ("cac:AgentParty/cac:PartyIdentification/cbc:ID",),
    DocumentKind.PERCEPTION: ("cac:AgentParty/cac:PartyIdentification/cbc:ID",),
    DocumentKind.SUMMARY: ("cac:AccountingSupplierParty/cbc:CustomerAssignedAccountID",),
    DocumentKind.VOIDED: ("cac:AccountingSupplierParty/cbc:CustomerAssignedAccountID",),
    DocumentKind.REVERSION: ("cac:AccountingSupplierParty/cbc:CustomerAssignedAccountID",),
}

_FIXED_TYPE_CODES: Dict[str, str] = {
    "CreditNote": "07",
    "DebitNote": "08",
    "DespatchAdvice": "09",
    "Retention": "20",
    "Perception": "40",
}


class XmlFilenameExtractor:
    """
    Reconstruye el nombre canónico ({ruc}-{tipo}-{serie}-{correlativo}) desde el XML.

    Para resúmenes y comunicaciones de baja el cbc:ID (RC-/RA-/RR-) ya incluye
    el tipo, por lo que el nombre es {ruc}-{cbc:ID}.
    """

    def __init__(self, resolver: Optional[XmlTypeResolver] = None):
        self.resolver = resolver or XmlTypeResolver()

    def get_filename(self, doc: Union[etree._ElementTree, etree._Element]) -> str:
        root = _root(doc)
        kind = self.resolver.get_type(root)

        ruc = None
        for path in _ISSUER_PATHS[kind]:
            ruc = _find_text(root, path)
            if ruc:
                break
        doc_id = _find_text(root, "cbc:ID")
        if not ruc or not doc_id:
            raise UnrecognizedDocumentType(
                f"No se encontró RUC emisor o cbc:ID en {etree.QName(root).localname}"
            )

        parts = [ruc]
        type_code = self._type_code(root, kind)
        if type_code:
            parts.append(type_code)
        parts.append(doc_id)
        return "-".join(parts)

    @staticmethod
    def _type_code(root: etree._Element, kind: DocumentKind) -> Optional[str]:
        if kind is DocumentKind.INVOICE:
            code = _find_text(root, "cbc:InvoiceTypeCode")
            if code is None:
                raise UnrecognizedDocumentType("Factura sin cbc:InvoiceTypeCode")
            return code
        if kind is DocumentKind.DESPATCH:
            return _find_text(root, "cbc:DespatchAdviceTypeCode") or _FIXED_TYPE_CODES["DespatchAdvice"]
        return _FIXED_TYPE_CODES.get(etree.QName(root).localname)
