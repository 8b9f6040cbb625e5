"""
Lectura de la Constancia de Recepción (CDR) devuelta por SUNAT
"""
import logging
from typing import Optional

from lxml import etree

from .exceptions import MalformedCdr
from .models import CdrResponse
from .zip_utils import decompress_last_file

logger = logging.getLogger(__name__)

CBC_NS = "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2"
CAC_NS = "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2"

NSMAP = {"cbc": CBC_NS, "cac": CAC_NS}

_RESPONSE_PATH = "cac:DocumentResponse/cac:Response"


def read_cdr(xml_bytes: bytes) -> CdrResponse:
    """
    Parsea el XML ApplicationResponse del CDR.

    Raises:
        MalformedCdr: Si no es XML o no es un ApplicationResponse con ResponseCode
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml_bytes, parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise MalformedCdr(f"CDR no es XML válido: {e}") from e

    if etree.QName(root).localname != "ApplicationResponse":
        raise MalformedCdr(
            f"CDR inesperado: root={etree.QName(root).localname!r}, esperado='ApplicationResponse'"
        )

    def find_text(path: str) -> Optional[str]:
        node = root.find(path, NSMAP)
        if node is None or node.text is None:
            return None
        return node.text.strip()

    code = find_text(f"{_RESPONSE_PATH}/cbc:ResponseCode")
    if code is None:
        raise MalformedCdr("CDR sin cbc:ResponseCode")

    notes = [(n.text or "").strip() for n in root.findall("cbc:Note", NSMAP)]

    return CdrResponse(
        response_code=code,
        description=find_text(f"{_RESPONSE_PATH}/cbc:Description") or "",
        notes=notes,
        id=find_text("cbc:ID"),
        reference=find_text(f"{_RESPONSE_PATH}/cbc:ReferenceID"),
    )


def extract_response(zip_bytes: bytes) -> CdrResponse:
    """Descomprime el ZIP del CDR (última entrada) y lo parsea."""
    name, xml_bytes = decompress_last_file(zip_bytes)
    logger.debug(f"CDR extraído del ZIP: {name} ({len(xml_bytes)} bytes)")
    return read_cdr(xml_bytes)
