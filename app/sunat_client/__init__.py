"""
Módulo cliente para el Sistema de Emisión Electrónica (SEE) de SUNAT
Perú - billService
"""
from .config import BuilderOptions, SeeConfig, SunatEndpoints, get_see_config
from .error_codes import ERROR_CODES, ErrorCodeCatalog
from .exceptions import (
    MalformedArchive,
    MalformedCdr,
    SigningError,
    SunatClientError,
    SunatException,
    TransportFault,
    UnrecognizedDocumentType,
    UnsupportedDocumentKind,
)
from .models import (
    BillResult,
    CdrResponse,
    DocumentKind,
    Error,
    StatusResult,
    SummaryResult,
)
from .registry import DocumentTypeRegistry, SenderCategory, SubmissionStrategy
from .soap_client import SoapClient
from .xml_resolver import XmlFilenameExtractor, XmlTypeResolver, parse_xml
from .xml_signer import XmlSigner

__all__ = [
    'BuilderOptions',
    'SeeConfig',
    'SunatEndpoints',
    'get_see_config',
    'ERROR_CODES',
    'ErrorCodeCatalog',
    'SunatException',
    'SunatClientError',
    'UnsupportedDocumentKind',
    'UnrecognizedDocumentType',
    'SigningError',
    'MalformedArchive',
    'MalformedCdr',
    'TransportFault',
    'DocumentKind',
    'Error',
    'CdrResponse',
    'BillResult',
    'SummaryResult',
    'StatusResult',
    'DocumentTypeRegistry',
    'SenderCategory',
    'SubmissionStrategy',
    'SoapClient',
    'XmlTypeResolver',
    'XmlFilenameExtractor',
    'parse_xml',
    'XmlSigner',
]
