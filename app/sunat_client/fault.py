"""
Traducción de SOAP Faults a errores de negocio
"""
import re
from typing import Optional

from .error_codes import ErrorCodeCatalog
from .exceptions import TransportFault
from .models import Error

_NON_DIGITS_RE = re.compile(r"[^0-9]+")


def code_from_fault_code(fault_code: Optional[str]) -> str:
    """Dígitos del faultcode ("soap-env:Client.0160" -> "0160")"""
    return _NON_DIGITS_RE.sub("", fault_code or "")


def code_from_message(message: Optional[str]) -> str:
    """Dígitos del faultstring ("Error 2028: firma inválida" -> "2028")"""
    return _NON_DIGITS_RE.sub("", message or "")


def error_from_fault(fault: TransportFault, catalog: Optional[ErrorCodeCatalog] = None) -> Error:
    """
    Convierte un SOAP Fault en Error.

    El código numérico se busca primero en el faultcode y luego en el
    faultstring; el catálogo solo se consulta si hay código numérico. El
    texto crudo del fault (detail antes que faultstring) es el último recurso.
    """
    error = Error(code=fault.code or "")
    code = code_from_fault_code(fault.code)
    if not code:
        code = code_from_message(fault.message)

    message: Optional[str] = None
    if code:
        error.code = code
        if catalog is not None:
            message = catalog.lookup(code)

    if not message:
        message = fault.detail_message if fault.detail_message is not None else fault.message

    error.message = message or ""
    return error
