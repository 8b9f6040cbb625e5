"""
Registro de estrategias de envío por tipo de documento
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Type, Union

from .exceptions import UnsupportedDocumentKind
from .models import DocumentKind
from .xml_builder import (
    DespatchBuilder,
    InvoiceBuilder,
    NoteBuilder,
    PerceptionBuilder,
    RetentionBuilder,
    SummaryBuilder,
    VoidedBuilder,
    XmlBuilder,
)


class SenderCategory(str, Enum):
    BILL = "bill"  # sendBill: CDR sincrónico
    SUMMARY = "summary"  # sendSummary: ticket asincrónico


@dataclass(frozen=True)
class SubmissionStrategy:
    builder_class: Type[XmlBuilder]
    sender_category: SenderCategory


STRATEGIES: Mapping[DocumentKind, SubmissionStrategy] = MappingProxyType({
    DocumentKind.INVOICE: SubmissionStrategy(InvoiceBuilder, SenderCategory.BILL),
    DocumentKind.NOTE: SubmissionStrategy(NoteBuilder, SenderCategory.BILL),
    DocumentKind.DESPATCH: SubmissionStrategy(DespatchBuilder, SenderCategory.BILL),
    DocumentKind.RETENTION: SubmissionStrategy(RetentionBuilder, SenderCategory.BILL),
    DocumentKind.PERCEPTION: SubmissionStrategy(PerceptionBuilder, SenderCategory.BILL),
    DocumentKind.SUMMARY: SubmissionStrategy(SummaryBuilder, SenderCategory.SUMMARY),
    DocumentKind.VOIDED: SubmissionStrategy(VoidedBuilder, SenderCategory.SUMMARY),
    DocumentKind.REVERSION: SubmissionStrategy(VoidedBuilder, SenderCategory.SUMMARY),
})

_missing = [kind.value for kind in DocumentKind if kind not in STRATEGIES]
if _missing:
    raise RuntimeError(f"Tipos de documento sin estrategia de envío: {_missing}")


class DocumentTypeRegistry:
    """Resuelve builder y categoría de envío para cada DocumentKind"""

    def __init__(self, strategies: Mapping[DocumentKind, SubmissionStrategy] = STRATEGIES):
        self._strategies = strategies

    def resolve(self, kind: Union[DocumentKind, str]) -> SubmissionStrategy:
        """
        Raises:
            UnsupportedDocumentKind: Si el tipo no está registrado
        """
        try:
            kind = DocumentKind(kind.lower() if isinstance(kind, str) else kind)
        except ValueError as e:
            raise UnsupportedDocumentKind(f"Tipo de documento no soportado: {kind!r}") from e

        strategy = self._strategies.get(kind)
        if strategy is None:
            raise UnsupportedDocumentKind(f"Tipo de documento sin estrategia: {kind.value}")
        return strategy
