"""
Catálogo de códigos de error SUNAT
"""
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from lxml import etree

logger = logging.getLogger(__name__)

CDR_NOT_FOUND_CODE = "HTTPCDR"
CDR_NOT_FOUND_MESSAGE = "No se recibió el CDR del comprobante"
TICKET_NOT_FOUND_CODE = "HTTPTKT"
TICKET_NOT_FOUND_MESSAGE = "No se recibió el ticket del envío"
STATUS_NOT_FOUND_CODE = "HTTPSTS"
STATUS_NOT_FOUND_MESSAGE = "No se recibió el estado del ticket"

# Códigos de error SUNAT (parciales)
ERROR_CODES: Dict[int, str] = {
    102: "Usuario o contraseña incorrectos",
    109: "El sistema no puede responder su solicitud. (El servicio de autenticación no está disponible)",
    111: "No tiene el perfil para enviar comprobantes electrónicos",
    127: "El ticket no existe",
    130: "El sistema no puede responder su solicitud. (No se pudo obtener el ticket de proceso)",
    151: "El nombre del archivo ZIP es incorrecto",
    154: "El RUC del archivo no corresponde al RUC del usuario",
    155: "El archivo ZIP está vacío",
    156: "El archivo ZIP está corrupto",
    160: "El archivo XML está vacío",
    200: "No se pudo procesar su solicitud. (Ocurrió un error en el batch)",
    1032: "El comprobante fue informado previamente en una comunicación de baja",
    1033: "El comprobante fue registrado previamente con otros datos",
    2335: "El documento electrónico ingresado ha sido alterado",
    2800: "El dato ingresado en el tipo de documento de identidad del receptor no está permitido",
}


def _as_int(code: Union[int, str]) -> Optional[int]:
    if isinstance(code, int):
        return code
    digits = str(code).strip()
    if not digits.isdigit():
        return None
    return int(digits)


class ErrorCodeCatalog:
    """Busca el mensaje de un código numérico ("0160" y 160 son equivalentes)"""

    def __init__(self, messages: Mapping[int, str]):
        self._messages = dict(messages)

    @classmethod
    def default(cls) -> "ErrorCodeCatalog":
        return cls(ERROR_CODES)

    @classmethod
    def from_xml(cls, path: Union[str, Path]) -> "ErrorCodeCatalog":
        """
        Carga un catálogo con entradas <error code="0160">mensaje</error>

        Args:
            path: Ruta al XML del catálogo

        Returns:
            Catálogo con los códigos leídos
        """
        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        root = etree.parse(str(path), parser).getroot()

        messages: Dict[int, str] = {}
        for node in root.iter("{*}error"):
            code = _as_int(node.get("code", ""))
            if code is None:
                logger.warning(f"Código de error inválido en catálogo {path}: {node.get('code')!r}")
                continue
            messages[code] = (node.text or "").strip()
        return cls(messages)

    def lookup(self, code: Union[int, str]) -> Optional[str]:
        number = _as_int(code)
        if number is None:
            return None
        return self._messages.get(number)

    def __len__(self) -> int:
        return len(self._messages)
