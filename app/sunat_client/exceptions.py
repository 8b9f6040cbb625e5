"""
Excepciones personalizadas para el cliente SUNAT
"""
from typing import Optional


class SunatException(Exception):
    """Excepción base para errores SUNAT"""
    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class SunatClientError(SunatException):
    """Error del cliente SUNAT (red, HTTP, WSDL)"""
    pass


class UnsupportedDocumentKind(SunatException):
    """Tipo de documento sin estrategia registrada"""
    pass


class UnrecognizedDocumentType(SunatException):
    """El XML no corresponde a ningún tipo de documento conocido"""
    pass


class SigningError(SunatException):
    """Error en la firma digital"""
    pass


class MalformedArchive(SunatException):
    """ZIP de respuesta vacío o ilegible"""
    pass


class MalformedCdr(SunatException):
    """El contenido del ZIP no es una Constancia de Recepción válida"""
    pass


class TransportFault(SunatException):
    """SOAP Fault devuelto por el servicio de SUNAT"""
    def __init__(self, code: str, message: str, detail_message: Optional[str] = None):
        self.detail_message = detail_message
        super().__init__(message, code)

    def __str__(self) -> str:
        return f"SOAP Fault: code={self.code!r} message={self.message!r}"
