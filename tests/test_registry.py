from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.sunat_client.exceptions import UnsupportedDocumentKind
from app.sunat_client.models import Document, DocumentKind
from app.sunat_client.registry import STRATEGIES, DocumentTypeRegistry, SenderCategory
from app.sunat_client.xml_builder import VoidedBuilder, XmlBuilder

BILL_KINDS = {
    DocumentKind.INVOICE,
    DocumentKind.NOTE,
    DocumentKind.DESPATCH,
    DocumentKind.RETENTION,
    DocumentKind.PERCEPTION,
}
SUMMARY_KINDS = {DocumentKind.SUMMARY, DocumentKind.VOIDED, DocumentKind.REVERSION}


@pytest.mark.parametrize("kind", list(DocumentKind))
def test_every_kind_has_builder_and_category(kind):
    strategy = DocumentTypeRegistry().resolve(kind)
    assert issubclass(strategy.builder_class, XmlBuilder)
    expected = SenderCategory.BILL if kind in BILL_KINDS else SenderCategory.SUMMARY
    assert strategy.sender_category is expected


def test_categories_partition_all_kinds():
    assert BILL_KINDS | SUMMARY_KINDS == set(DocumentKind)
    assert set(STRATEGIES) == set(DocumentKind)


def test_voided_and_reversion_share_builder():
    registry = DocumentTypeRegistry()
    assert registry.resolve(DocumentKind.VOIDED).builder_class is VoidedBuilder
    assert registry.resolve(DocumentKind.REVERSION).builder_class is VoidedBuilder


def test_resolve_accepts_string_values():
    registry = DocumentTypeRegistry()
    assert registry.resolve("summary").sender_category is SenderCategory.SUMMARY
    assert registry.resolve("Invoice").sender_category is SenderCategory.BILL


@pytest.mark.parametrize("kind", ["boleta", "", None, 3])
def test_resolve_rejects_unknown_kind(kind):
    with pytest.raises(UnsupportedDocumentKind):
        DocumentTypeRegistry().resolve(kind)


def test_registry_missing_kind_raises():
    partial = {DocumentKind.INVOICE: STRATEGIES[DocumentKind.INVOICE]}
    with pytest.raises(UnsupportedDocumentKind, match="perception"):
        DocumentTypeRegistry(partial).resolve(DocumentKind.PERCEPTION)


def test_strategies_are_read_only():
    with pytest.raises(TypeError):
        STRATEGIES[DocumentKind.INVOICE] = STRATEGIES[DocumentKind.SUMMARY]  # type: ignore[index]


def test_document_requires_get_name():
    class Incomplete(Document):
        kind = DocumentKind.INVOICE

    with pytest.raises(TypeError):
        Document()
    with pytest.raises(TypeError):
        Incomplete()
