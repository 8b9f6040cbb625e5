"""
Generadores de XML UBL para comprobantes electrónicos SUNAT

Cada builder produce el XML sin firmar de una familia de documentos. En
ext:ExtensionContent se deja un <ds:Signature Id="placeholder"/> que el
firmador reemplaza por la firma enveloped.
"""
from decimal import Decimal
from typing import Optional, Tuple, Type

from lxml import etree

from .config import BuilderOptions
from .exceptions import UnsupportedDocumentKind
from .models import (
    Client,
    Company,
    Despatch,
    Document,
    Invoice,
    Note,
    Perception,
    Retention,
    SaleDetail,
    Summary,
    Voided,
)

# Namespaces UBL / SUNAT
INVOICE_NS = "urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"
CREDIT_NOTE_NS = "urn:oasis:names:specification:ubl:schema:xsd:CreditNote-2"
DEBIT_NOTE_NS = "urn:oasis:names:specification:ubl:schema:xsd:DebitNote-2"
DESPATCH_NS = "urn:oasis:names:specification:ubl:schema:xsd:DespatchAdvice-2"
SUMMARY_NS = "urn:sunat:names:specification:ubl:peru:schema:xsd:SummaryDocuments-1"
VOIDED_NS = "urn:sunat:names:specification:ubl:peru:schema:xsd:VoidedDocuments-1"
RETENTION_NS = "urn:sunat:names:specification:ubl:peru:schema:xsd:Retention-1"
PERCEPTION_NS = "urn:sunat:names:specification:ubl:peru:schema:xsd:Perception-1"

CBC_NS = "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2"
CAC_NS = "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2"
EXT_NS = "urn:oasis:names:specification:ubl:schema:xsd:CommonExtensionComponents-2"
SAC_NS = "urn:sunat:names:specification:ubl:peru:schema:xsd:SunatAggregateComponents-1"
DS_NS = "http://www.w3.org/2000/09/xmldsig#"

SIGNATURE_URI = "#SignSUNAT"


def _el(parent: etree._Element, ns: str, tag: str, text: Optional[str] = None, **attrib: str) -> etree._Element:
    node = etree.SubElement(parent, etree.QName(ns, tag), attrib)
    if text is not None:
        node.text = text
    return node


def _cbc(parent: etree._Element, tag: str, text: Optional[str] = None, **attrib: str) -> etree._Element:
    return _el(parent, CBC_NS, tag, text, **attrib)


def _cac(parent: etree._Element, tag: str) -> etree._Element:
    return _el(parent, CAC_NS, tag)


def _sac(parent: etree._Element, tag: str, text: Optional[str] = None, **attrib: str) -> etree._Element:
    return _el(parent, SAC_NS, tag, text, **attrib)


def _amount(value: Decimal) -> str:
    return f"{value:.2f}"


class XmlBuilder:
    """Base de los builders: root, extensiones y serialización"""

    root_ns: str = ""
    root_tag: str = ""
    ubl_version: str = "2.0"
    customization_id: str = "1.0"
    document_types: Tuple[Type[Document], ...] = ()

    def __init__(self, options: Optional[BuilderOptions] = None):
        self.options = options or BuilderOptions()

    def build(self, document: Document) -> bytes:
        if not isinstance(document, self.document_types):
            raise UnsupportedDocumentKind(
                f"{type(document).__name__} no es soportado por {type(self).__name__}"
            )

        root = self._create_root(document)
        exts = _el(root, EXT_NS, "UBLExtensions")
        content = _el(_el(exts, EXT_NS, "UBLExtension"), EXT_NS, "ExtensionContent")
        _el(content, DS_NS, "Signature", Id="placeholder")
        _cbc(root, "UBLVersionID", self.ubl_version)
        _cbc(root, "CustomizationID", self.customization_id)
        self._fill(root, document)

        return etree.tostring(
            root,
            xml_declaration=True,
            encoding=self.options.encoding,
            pretty_print=self.options.pretty_print,
        )

    def _root_name(self, document: Document) -> Tuple[str, str]:
        return self.root_ns, self.root_tag

    def _create_root(self, document: Document) -> etree._Element:
        root_ns, root_tag = self._root_name(document)
        nsmap = {
            None: root_ns,
            "cac": CAC_NS,
            "cbc": CBC_NS,
            "ext": EXT_NS,
            "ds": DS_NS,
            "sac": SAC_NS,
        }
        return etree.Element(etree.QName(root_ns, root_tag), nsmap=nsmap)

    def _fill(self, root: etree._Element, document: Document) -> None:
        raise NotImplementedError

    # -----------------------------------------------------------------
    # Bloques comunes
    # -----------------------------------------------------------------
    @staticmethod
    def _signature(root: etree._Element, company: Company) -> None:
        sign = _cac(root, "Signature")
        _cbc(sign, "ID", company.ruc)
        party = _cac(sign, "SignatoryParty")
        _cbc(_cac(party, "PartyIdentification"), "ID", company.ruc)
        _cbc(_cac(party, "PartyName"), "Name", company.razon_social)
        ref = _cac(_cac(sign, "DigitalSignatureAttachment"), "ExternalReference")
        _cbc(ref, "URI", SIGNATURE_URI)

    @staticmethod
    def _party(parent: etree._Element, ruc: str, scheme: str, name: str, company: Optional[Company] = None) -> None:
        party = _cac(parent, "Party")
        _cbc(_cac(party, "PartyIdentification"), "ID", ruc, schemeID=scheme)
        if company is not None and company.nombre_comercial:
            _cbc(_cac(party, "PartyName"), "Name", company.nombre_comercial)
        legal = _cac(party, "PartyLegalEntity")
        _cbc(legal, "RegistrationName", name)
        if company is not None and company.address is not None:
            address = _cac(legal, "RegistrationAddress")
            _cbc(address, "ID", company.address.ubigeo)
            _cbc(address, "AddressTypeCode", company.address.cod_local)
            _cbc(address, "CityName", company.address.provincia)
            _cbc(address, "CountrySubentity", company.address.departamento)
            _cbc(address, "District", company.address.distrito)
            _cbc(_cac(address, "AddressLine"), "Line", company.address.direccion)

    def _supplier(self, root: etree._Element, tag: str, company: Company) -> None:
        self._party(_cac(root, tag), company.ruc, "6", company.razon_social, company)

    def _customer(self, root: etree._Element, tag: str, client: Client) -> None:
        self._party(_cac(root, tag), client.num_doc, client.tipo_doc, client.rzn_social)

    @staticmethod
    def _legacy_supplier(root: etree._Element, company: Company) -> None:
        """AccountingSupplierParty de UBL 2.0 (resúmenes y bajas)"""
        supplier = _cac(root, "AccountingSupplierParty")
        _cbc(supplier, "CustomerAssignedAccountID", company.ruc)
        _cbc(supplier, "AdditionalAccountID", "6")
        party = _cac(supplier, "Party")
        _cbc(_cac(party, "PartyLegalEntity"), "RegistrationName", company.razon_social)

    @staticmethod
    def _tax_total(parent: etree._Element, igv: Decimal, base: Decimal, currency: str) -> None:
        total = _cac(parent, "TaxTotal")
        _cbc(total, "TaxAmount", _amount(igv), currencyID=currency)
        sub = _cac(total, "TaxSubtotal")
        _cbc(sub, "TaxableAmount", _amount(base), currencyID=currency)
        _cbc(sub, "TaxAmount", _amount(igv), currencyID=currency)
        scheme = _cac(_cac(sub, "TaxCategory"), "TaxScheme")
        _cbc(scheme, "ID", "1000")
        _cbc(scheme, "Name", "IGV")
        _cbc(scheme, "TaxTypeCode", "VAT")

    @staticmethod
    def _sale_line(
        root: etree._Element,
        line_tag: str,
        quantity_tag: str,
        index: int,
        detail: SaleDetail,
        currency: str,
    ) -> None:
        line = _cac(root, line_tag)
        _cbc(line, "ID", str(index))
        _cbc(line, quantity_tag, str(detail.cantidad), unitCode=detail.unidad)
        _cbc(line, "LineExtensionAmount", _amount(detail.mto_valor_venta), currencyID=currency)
        XmlBuilder._tax_total(line, detail.igv, detail.mto_valor_venta, currency)
        item = _cac(line, "Item")
        _cbc(item, "Description", detail.descripcion)
        _cbc(_cac(item, "SellersItemIdentification"), "ID", detail.cod_producto)
        _cbc(_cac(line, "Price"), "PriceAmount", _amount(detail.mto_valor_unitario), currencyID=currency)


class InvoiceBuilder(XmlBuilder):
    root_ns = INVOICE_NS
    root_tag = "Invoice"
    ubl_version = "2.1"
    customization_id = "2.0"
    document_types = (Invoice,)

    def _fill(self, root: etree._Element, doc: Invoice) -> None:
        _cbc(root, "ID", f"{doc.serie}-{doc.correlativo}")
        _cbc(root, "IssueDate", doc.fecha_emision.strftime("%Y-%m-%d"))
        _cbc(root, "IssueTime", doc.fecha_emision.strftime("%H:%M:%S"))
        _cbc(root, "InvoiceTypeCode", doc.tipo_doc, listID="0101")
        _cbc(root, "DocumentCurrencyCode", doc.tipo_moneda)
        self._signature(root, doc.company)
        self._supplier(root, "AccountingSupplierParty", doc.company)
        self._customer(root, "AccountingCustomerParty", doc.client)
        self._tax_total(root, doc.mto_igv, doc.mto_oper_gravadas, doc.tipo_moneda)
        total = _cac(root, "LegalMonetaryTotal")
        _cbc(total, "LineExtensionAmount", _amount(doc.mto_oper_gravadas), currencyID=doc.tipo_moneda)
        _cbc(total, "PayableAmount", _amount(doc.mto_imp_venta), currencyID=doc.tipo_moneda)
        for index, detail in enumerate(doc.details, start=1):
            self._sale_line(root, "InvoiceLine", "InvoicedQuantity", index, detail, doc.tipo_moneda)


class NoteBuilder(XmlBuilder):
    ubl_version = "2.1"
    customization_id = "2.0"
    document_types = (Note,)

    def _is_credit(self, doc: Note) -> bool:
        return doc.tipo_doc == "07"

    def _root_name(self, doc: Note) -> Tuple[str, str]:
        if self._is_credit(doc):
            return CREDIT_NOTE_NS, "CreditNote"
        return DEBIT_NOTE_NS, "DebitNote"

    def _fill(self, root: etree._Element, doc: Note) -> None:
        credit = self._is_credit(doc)
        _cbc(root, "ID", f"{doc.serie}-{doc.correlativo}")
        _cbc(root, "IssueDate", doc.fecha_emision.strftime("%Y-%m-%d"))
        _cbc(root, "IssueTime", doc.fecha_emision.strftime("%H:%M:%S"))
        _cbc(root, "DocumentCurrencyCode", doc.tipo_moneda)

        discrepancy = _cac(root, "DiscrepancyResponse")
        _cbc(discrepancy, "ReferenceID", doc.num_doc_afectado)
        _cbc(discrepancy, "ResponseCode", doc.cod_motivo)
        _cbc(discrepancy, "Description", doc.des_motivo)
        reference = _cac(_cac(root, "BillingReference"), "InvoiceDocumentReference")
        _cbc(reference, "ID", doc.num_doc_afectado)
        _cbc(reference, "DocumentTypeCode", doc.tip_doc_afectado)

        self._signature(root, doc.company)
        self._supplier(root, "AccountingSupplierParty", doc.company)
        self._customer(root, "AccountingCustomerParty", doc.client)
        self._tax_total(root, doc.mto_igv, doc.mto_oper_gravadas, doc.tipo_moneda)
        total = _cac(root, "LegalMonetaryTotal" if credit else "RequestedMonetaryTotal")
        _cbc(total, "PayableAmount", _amount(doc.mto_imp_venta), currencyID=doc.tipo_moneda)

        line_tag, quantity_tag = (
            ("CreditNoteLine", "CreditedQuantity") if credit else ("DebitNoteLine", "DebitedQuantity")
        )
        for index, detail in enumerate(doc.details, start=1):
            self._sale_line(root, line_tag, quantity_tag, index, detail, doc.tipo_moneda)


class SummaryBuilder(XmlBuilder):
    root_ns = SUMMARY_NS
    root_tag = "SummaryDocuments"
    customization_id = "1.1"
    document_types = (Summary,)

    def _fill(self, root: etree._Element, doc: Summary) -> None:
        _cbc(root, "ID", doc.doc_id)
        _cbc(root, "ReferenceDate", doc.fec_generacion.strftime("%Y-%m-%d"))
        _cbc(root, "IssueDate", doc.fec_resumen.strftime("%Y-%m-%d"))
        self._signature(root, doc.company)
        self._legacy_supplier(root, doc.company)
        for index, det in enumerate(doc.details, start=1):
            line = _sac(root, "SummaryDocumentsLine")
            _cbc(line, "LineID", str(index))
            _cbc(line, "DocumentTypeCode", det.tipo_doc)
            _cbc(line, "ID", det.serie_nro)
            customer = _cac(line, "AccountingCustomerParty")
            _cbc(customer, "CustomerAssignedAccountID", det.clt_num_doc)
            _cbc(customer, "AdditionalAccountID", det.clt_tipo_doc)
            _cbc(_cac(line, "Status"), "ConditionCode", det.estado)
            _sac(line, "TotalAmount", _amount(det.total), currencyID=doc.moneda)
            payment = _sac(line, "BillingPayment")
            _cbc(payment, "PaidAmount", _amount(det.mto_oper_gravadas), currencyID=doc.moneda)
            _cbc(payment, "InstructionID", "01")
            self._tax_total(line, det.mto_igv, det.mto_oper_gravadas, doc.moneda)


class VoidedBuilder(XmlBuilder):
    """Comunicación de baja (RA) y de reversión (RR)"""
    root_ns = VOIDED_NS
    root_tag = "VoidedDocuments"
    document_types = (Voided,)

    def _fill(self, root: etree._Element, doc: Voided) -> None:
        _cbc(root, "ID", doc.doc_id)
        _cbc(root, "ReferenceDate", doc.fec_generacion.strftime("%Y-%m-%d"))
        _cbc(root, "IssueDate", doc.fec_comunicacion.strftime("%Y-%m-%d"))
        self._signature(root, doc.company)
        self._legacy_supplier(root, doc.company)
        for index, det in enumerate(doc.details, start=1):
            line = _sac(root, "VoidedDocumentsLine")
            _cbc(line, "LineID", str(index))
            _cbc(line, "DocumentTypeCode", det.tipo_doc)
            _sac(line, "DocumentSerialID", det.serie)
            _sac(line, "DocumentNumberID", det.correlativo)
            _sac(line, "VoidReasonDescription", det.des_motivo_baja)


class DespatchBuilder(XmlBuilder):
    root_ns = DESPATCH_NS
    root_tag = "DespatchAdvice"
    ubl_version = "2.1"
    document_types = (Despatch,)

    def _fill(self, root: etree._Element, doc: Despatch) -> None:
        _cbc(root, "ID", f"{doc.serie}-{doc.correlativo}")
        _cbc(root, "IssueDate", doc.fecha_emision.strftime("%Y-%m-%d"))
        _cbc(root, "IssueTime", doc.fecha_emision.strftime("%H:%M:%S"))
        _cbc(root, "DespatchAdviceTypeCode", doc.type_code)
        if doc.observacion:
            _cbc(root, "Note", doc.observacion)
        self._signature(root, doc.company)
        self._supplier(root, "DespatchSupplierParty", doc.company)
        self._customer(root, "DeliveryCustomerParty", doc.destinatario)

        envio = doc.envio
        shipment = _cac(root, "Shipment")
        _cbc(shipment, "ID", "SUNAT_Envio")
        _cbc(shipment, "HandlingCode", envio.cod_traslado)
        _cbc(shipment, "HandlingInstructions", envio.des_traslado)
        _cbc(shipment, "GrossWeightMeasure", _amount(envio.peso_total), unitCode=envio.und_peso_total)
        stage = _cac(shipment, "ShipmentStage")
        _cbc(stage, "TransportModeCode", envio.mod_traslado)
        _cbc(_cac(stage, "TransitPeriod"), "StartDate", envio.fec_traslado.strftime("%Y-%m-%d"))
        delivery = _cac(shipment, "Delivery")
        arrival = _cac(delivery, "DeliveryAddress")
        _cbc(arrival, "ID", envio.llegada.ubigeo)
        _cbc(_cac(arrival, "AddressLine"), "Line", envio.llegada.direccion)
        departure = _cac(_cac(delivery, "Despatch"), "DespatchAddress")
        _cbc(departure, "ID", envio.partida.ubigeo)
        _cbc(_cac(departure, "AddressLine"), "Line", envio.partida.direccion)

        for index, det in enumerate(doc.details, start=1):
            line = _cac(root, "DespatchLine")
            _cbc(line, "ID", str(index))
            _cbc(line, "DeliveredQuantity", str(det.cantidad), unitCode=det.unidad)
            _cbc(_cac(line, "OrderLineReference"), "LineID", str(index))
            item = _cac(line, "Item")
            _cbc(item, "Description", det.descripcion)
            _cbc(_cac(item, "SellersItemIdentification"), "ID", det.codigo)


class RetentionBuilder(XmlBuilder):
    root_ns = RETENTION_NS
    root_tag = "Retention"
    document_types = (Retention,)

    def _fill(self, root: etree._Element, doc: Retention) -> None:
        self._signature(root, doc.company)
        _cbc(root, "ID", f"{doc.serie}-{doc.correlativo}")
        _cbc(root, "IssueDate", doc.fecha_emision.strftime("%Y-%m-%d"))
        _cbc(root, "IssueTime", doc.fecha_emision.strftime("%H:%M:%S"))
        agent = _cac(root, "AgentParty")
        _cbc(_cac(agent, "PartyIdentification"), "ID", doc.company.ruc, schemeID="6")
        _cbc(_cac(agent, "PartyLegalEntity"), "RegistrationName", doc.company.razon_social)
        receiver = _cac(root, "ReceiverParty")
        _cbc(_cac(receiver, "PartyIdentification"), "ID", doc.proveedor.num_doc, schemeID=doc.proveedor.tipo_doc)
        _cbc(_cac(receiver, "PartyLegalEntity"), "RegistrationName", doc.proveedor.rzn_social)
        _sac(root, "SUNATRetentionSystemCode", doc.regimen)
        _sac(root, "SUNATRetentionPercent", _amount(doc.tasa))
        if doc.observacion:
            _cbc(root, "Note", doc.observacion)
        _cbc(root, "TotalInvoiceAmount", _amount(doc.imp_retenido), currencyID="PEN")
        _sac(root, "SUNATTotalPaid", _amount(doc.imp_pagado), currencyID="PEN")
        for det in doc.details:
            ref = _sac(root, "SUNATRetentionDocumentReference")
            _cbc(ref, "ID", det.num_doc, schemeID=det.tipo_doc)
            _cbc(ref, "IssueDate", det.fecha_emision.strftime("%Y-%m-%d"))
            _cbc(ref, "TotalInvoiceAmount", _amount(det.imp_total), currencyID=det.moneda)
            info = _sac(ref, "SUNATRetentionInformation")
            _sac(info, "SUNATRetentionAmount", _amount(det.imp_retenido), currencyID="PEN")
            _sac(info, "SUNATRetentionDate", det.fecha_retencion.strftime("%Y-%m-%d"))
            _sac(info, "SUNATNetTotalPaid", _amount(det.imp_pagar), currencyID="PEN")


class PerceptionBuilder(XmlBuilder):
    root_ns = PERCEPTION_NS
    root_tag = "Perception"
    document_types = (Perception,)

    def _fill(self, root: etree._Element, doc: Perception) -> None:
        self._signature(root, doc.company)
        _cbc(root, "ID", f"{doc.serie}-{doc.correlativo}")
        _cbc(root, "IssueDate", doc.fecha_emision.strftime("%Y-%m-%d"))
        _cbc(root, "IssueTime", doc.fecha_emision.strftime("%H:%M:%S"))
        agent = _cac(root, "AgentParty")
        _cbc(_cac(agent, "PartyIdentification"), "ID", doc.company.ruc, schemeID="6")
        _cbc(_cac(agent, "PartyLegalEntity"), "RegistrationName", doc.company.razon_social)
        receiver = _cac(root, "ReceiverParty")
        _cbc(_cac(receiver, "PartyIdentification"), "ID", doc.proveedor.num_doc, schemeID=doc.proveedor.tipo_doc)
        _cbc(_cac(receiver, "PartyLegalEntity"), "RegistrationName", doc.proveedor.rzn_social)
        _sac(root, "SUNATPerceptionSystemCode", doc.regimen)
        _sac(root, "SUNATPerceptionPercent", _amount(doc.tasa))
        if doc.observacion:
            _cbc(root, "Note", doc.observacion)
        _cbc(root, "TotalInvoiceAmount", _amount(doc.imp_percibido), currencyID="PEN")
        _sac(root, "SUNATTotalCashed", _amount(doc.imp_cobrado), currencyID="PEN")
        for det in doc.details:
            ref = _sac(root, "SUNATPerceptionDocumentReference")
            _cbc(ref, "ID", det.num_doc, schemeID=det.tipo_doc)
            _cbc(ref, "IssueDate", det.fecha_emision.strftime("%Y-%m-%d"))
            _cbc(ref, "TotalInvoiceAmount", _amount(det.imp_total), currencyID=det.moneda)
            info = _sac(ref, "SUNATPerceptionInformation")
            _sac(info, "SUNATPerceptionAmount", _amount(det.imp_percibido), currencyID="PEN")
            _sac(info, "SUNATPerceptionDate", det.fecha_percepcion.strftime("%Y-%m-%d"))
            _sac(info, "SUNATNetTotalCashed", _amount(det.imp_cobrar), currencyID="PEN")
