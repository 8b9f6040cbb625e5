"""
Modelos de datos para comprobantes electrónicos SUNAT
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, List, Optional, Tuple


class DocumentKind(str, Enum):
    """Tipos de documento que maneja el sistema de emisión"""
    INVOICE = "invoice"
    NOTE = "note"
    SUMMARY = "summary"
    VOIDED = "voided"
    REVERSION = "reversion"
    DESPATCH = "despatch"
    RETENTION = "retention"
    PERCEPTION = "perception"


# ---------------------------------------------------------------------
# Entidades
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class Address:
    ubigeo: str
    departamento: str
    provincia: str
    distrito: str
    direccion: str
    cod_local: str = "0000"


@dataclass(frozen=True)
class Company:
    ruc: str
    razon_social: str
    nombre_comercial: str = ""
    address: Optional[Address] = None


@dataclass(frozen=True)
class Client:
    tipo_doc: str  # 6 = RUC, 1 = DNI
    num_doc: str
    rzn_social: str


class Document(ABC):
    """Base de los comprobantes: expone su tipo y su nombre canónico"""

    kind: ClassVar[DocumentKind]

    @abstractmethod
    def get_name(self) -> str:
        """Nombre canónico del archivo, sin extensión"""


def _join_name(*parts: str) -> str:
    return "-".join(parts)


# ---------------------------------------------------------------------
# Venta (factura, boleta, notas)
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class SaleDetail:
    cod_producto: str
    unidad: str
    cantidad: Decimal
    descripcion: str
    mto_valor_unitario: Decimal
    mto_valor_venta: Decimal
    igv: Decimal = Decimal("0")
    tip_afe_igv: str = "10"


@dataclass(frozen=True)
class Invoice(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.INVOICE

    company: Company
    client: Client
    serie: str
    correlativo: str
    fecha_emision: datetime
    tipo_doc: str = "01"  # 01 factura, 03 boleta
    tipo_moneda: str = "PEN"
    details: Tuple[SaleDetail, ...] = ()
    mto_oper_gravadas: Decimal = Decimal("0")
    mto_igv: Decimal = Decimal("0")
    mto_imp_venta: Decimal = Decimal("0")

    def get_name(self) -> str:
        return _join_name(self.company.ruc, self.tipo_doc, self.serie, self.correlativo)


@dataclass(frozen=True)
class Note(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.NOTE

    company: Company
    client: Client
    serie: str
    correlativo: str
    fecha_emision: datetime
    tip_doc_afectado: str
    num_doc_afectado: str
    cod_motivo: str
    des_motivo: str
    tipo_doc: str = "07"  # 07 crédito, 08 débito
    tipo_moneda: str = "PEN"
    details: Tuple[SaleDetail, ...] = ()
    mto_oper_gravadas: Decimal = Decimal("0")
    mto_igv: Decimal = Decimal("0")
    mto_imp_venta: Decimal = Decimal("0")

    def get_name(self) -> str:
        return _join_name(self.company.ruc, self.tipo_doc, self.serie, self.correlativo)


# ---------------------------------------------------------------------
# Resumen diario y comunicaciones de baja
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class SummaryDetail:
    tipo_doc: str
    serie_nro: str
    estado: str  # 1 adicionar, 2 modificar, 3 anulado
    clt_tipo_doc: str
    clt_num_doc: str
    total: Decimal
    mto_oper_gravadas: Decimal = Decimal("0")
    mto_igv: Decimal = Decimal("0")


@dataclass(frozen=True)
class Summary(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.SUMMARY
    type_code: ClassVar[str] = "RC"

    company: Company
    correlativo: str
    fec_generacion: date
    fec_resumen: date
    moneda: str = "PEN"
    details: Tuple[SummaryDetail, ...] = ()

    @property
    def doc_id(self) -> str:
        return _join_name(self.type_code, self.fec_resumen.strftime("%Y%m%d"), self.correlativo)

    def get_name(self) -> str:
        return _join_name(self.company.ruc, self.doc_id)


@dataclass(frozen=True)
class VoidedDetail:
    tipo_doc: str
    serie: str
    correlativo: str
    des_motivo_baja: str


@dataclass(frozen=True)
class Voided(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.VOIDED
    type_code: ClassVar[str] = "RA"

    company: Company
    correlativo: str
    fec_generacion: date
    fec_comunicacion: date
    details: Tuple[VoidedDetail, ...] = ()

    @property
    def doc_id(self) -> str:
        return _join_name(self.type_code, self.fec_comunicacion.strftime("%Y%m%d"), self.correlativo)

    def get_name(self) -> str:
        return _join_name(self.company.ruc, self.doc_id)


@dataclass(frozen=True)
class Reversion(Voided):
    """Comunicación de reversión (retenciones y percepciones)"""
    kind: ClassVar[DocumentKind] = DocumentKind.REVERSION
    type_code: ClassVar[str] = "RR"


# ---------------------------------------------------------------------
# Guía de remisión
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class Direction:
    ubigeo: str
    direccion: str


@dataclass(frozen=True)
class Shipment:
    cod_traslado: str
    des_traslado: str
    peso_total: Decimal
    und_peso_total: str
    fec_traslado: date
    partida: Direction
    llegada: Direction
    mod_traslado: str = "01"


@dataclass(frozen=True)
class DespatchDetail:
    codigo: str
    descripcion: str
    unidad: str
    cantidad: Decimal


@dataclass(frozen=True)
class Despatch(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.DESPATCH
    type_code: ClassVar[str] = "09"

    company: Company
    destinatario: Client
    serie: str
    correlativo: str
    fecha_emision: datetime
    envio: Shipment
    observacion: str = ""
    details: Tuple[DespatchDetail, ...] = ()

    def get_name(self) -> str:
        return _join_name(self.company.ruc, self.type_code, self.serie, self.correlativo)


# ---------------------------------------------------------------------
# Retención y percepción
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RetentionDetail:
    tipo_doc: str
    num_doc: str
    fecha_emision: date
    fecha_retencion: date
    imp_total: Decimal
    imp_retenido: Decimal
    imp_pagar: Decimal
    moneda: str = "PEN"


@dataclass(frozen=True)
class Retention(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.RETENTION
    type_code: ClassVar[str] = "20"

    company: Company
    proveedor: Client
    serie: str
    correlativo: str
    fecha_emision: datetime
    regimen: str
    tasa: Decimal
    imp_retenido: Decimal
    imp_pagado: Decimal
    observacion: str = ""
    details: Tuple[RetentionDetail, ...] = ()

    def get_name(self) -> str:
        return _join_name(self.company.ruc, self.type_code, self.serie, self.correlativo)


@dataclass(frozen=True)
class PerceptionDetail:
    tipo_doc: str
    num_doc: str
    fecha_emision: date
    fecha_percepcion: date
    imp_total: Decimal
    imp_percibido: Decimal
    imp_cobrar: Decimal
    moneda: str = "PEN"


@dataclass(frozen=True)
class Perception(Document):
    kind: ClassVar[DocumentKind] = DocumentKind.PERCEPTION
    type_code: ClassVar[str] = "40"

    company: Company
    proveedor: Client
    serie: str
    correlativo: str
    fecha_emision: datetime
    regimen: str
    tasa: Decimal
    imp_percibido: Decimal
    imp_cobrado: Decimal
    observacion: str = ""
    details: Tuple[PerceptionDetail, ...] = ()

    def get_name(self) -> str:
        return _join_name(self.company.ruc, self.type_code, self.serie, self.correlativo)


# ---------------------------------------------------------------------
# Respuestas
# ---------------------------------------------------------------------
@dataclass
class Error:
    """Rechazo informado por SUNAT"""
    code: str
    message: str = ""


@dataclass
class CdrResponse:
    """Constancia de Recepción (CDR)"""
    response_code: str
    description: str
    notes: List[str] = field(default_factory=list)
    id: Optional[str] = None
    reference: Optional[str] = None

    @property
    def is_accepted(self) -> bool:
        return self.response_code.isdigit() and int(self.response_code) == 0


@dataclass
class BaseResult:
    success: bool = False
    error: Optional[Error] = None


@dataclass
class BillResult(BaseResult):
    cdr_response: Optional[CdrResponse] = None
    cdr_zip: Optional[bytes] = None


@dataclass
class SummaryResult(BaseResult):
    ticket: Optional[str] = None


@dataclass
class StatusResult(BaseResult):
    code: Optional[str] = None
    cdr_response: Optional[CdrResponse] = None
    cdr_zip: Optional[bytes] = None

    @property
    def is_pending(self) -> bool:
        return self.code == "98"
