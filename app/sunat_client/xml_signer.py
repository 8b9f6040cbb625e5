"""
Firma digital XML para comprobantes SUNAT

Requisitos:
- XML Digital Signature Enveloped dentro de ext:ExtensionContent
- Certificado X.509 incluido en KeyInfo
- RSA-SHA256, digest SHA-256, C14N inclusivo 1.0
"""
import logging
import re
from typing import List, Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from lxml import etree
from signxml import CanonicalizationMethod, DigestAlgorithm, SignatureMethod, XMLSigner, methods

from .exceptions import SigningError

logger = logging.getLogger(__name__)

_PEM_BLOCK_RE = re.compile(
    r"-----BEGIN (?P<label>[A-Z0-9 ]+)-----.+?-----END (?P=label)-----",
    re.S,
)


def split_pem(pem_text: str) -> List[tuple]:
    """Devuelve [(label, bloque)] en el orden del archivo"""
    return [(m.group("label"), m.group(0)) for m in _PEM_BLOCK_RE.finditer(pem_text)]


class XmlSigner:
    """
    Firma XML con el certificado digital del emisor.

    Args:
        certificate_pem: Texto PEM con la clave privada y el certificado
        password: Contraseña de la clave privada, si está cifrada
    """

    def __init__(self, certificate_pem: str, password: Optional[str] = None):
        blocks = split_pem(certificate_pem or "")
        key_blocks = [b for label, b in blocks if label.endswith("PRIVATE KEY")]
        cert_blocks = [b for label, b in blocks if label == "CERTIFICATE"]
        if not key_blocks:
            raise SigningError("No se encontró la clave privada en el PEM")
        if not cert_blocks:
            raise SigningError("No se encontró el certificado en el PEM")

        try:
            self.private_key = serialization.load_pem_private_key(
                key_blocks[0].encode("ascii"),
                password=password.encode() if password else None,
            )
            self.certificate = x509.load_pem_x509_certificate(cert_blocks[0].encode("ascii"))
        except (ValueError, TypeError) as e:
            raise SigningError(f"Error al cargar certificado/clave: {e}") from e

        if not isinstance(self.private_key, rsa.RSAPrivateKey):
            raise SigningError("La clave privada debe ser RSA")

        self.certificate_pem = cert_blocks[0]

    def sign(self, xml: Union[bytes, str]) -> bytes:
        """
        Firma el XML en el placeholder <ds:Signature Id="placeholder"/>.

        Returns:
            XML firmado (UTF-8 con declaración)
        """
        if isinstance(xml, str):
            xml = xml.encode("utf-8")

        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        try:
            root = etree.fromstring(xml, parser)
        except (etree.XMLSyntaxError, ValueError) as e:
            raise SigningError(f"XML inválido para firmar: {e}") from e

        signer = XMLSigner(
            method=methods.enveloped,
            signature_algorithm=SignatureMethod.RSA_SHA256,
            digest_algorithm=DigestAlgorithm.SHA256,
            c14n_algorithm=CanonicalizationMethod.CANONICAL_XML_1_0,
        )
        try:
            signed_root = signer.sign(root, key=self.private_key, cert=self.certificate_pem)
        except Exception as e:
            raise SigningError(f"Error al firmar XML: {e}") from e

        logger.debug(f"XML firmado: root={etree.QName(signed_root).localname}")
        return etree.tostring(signed_root, xml_declaration=True, encoding="UTF-8")
