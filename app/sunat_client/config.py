"""
Configuración para cliente SUNAT (SEE - Sistema de Emisión del Contribuyente)
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


class SunatEndpoints:
    """URLs del servicio billService por ambiente"""

    FE_BETA = "https://e-beta.sunat.gob.pe/ol-ti-itcpfegem-beta/billService"
    FE_PRODUCCION = "https://e-factura.sunat.gob.pe/ol-ti-itcpfegem/billService"

    GUIA_BETA = "https://e-beta.sunat.gob.pe/ol-ti-itemision-guia-gem-beta/billService"
    GUIA_PRODUCCION = "https://e-guiaremision.sunat.gob.pe/ol-ti-itemision-guia-gem/billService"

    RETENCION_BETA = "https://e-beta.sunat.gob.pe/ol-ti-itemision-otroscpe-gem-beta/billService"
    RETENCION_PRODUCCION = "https://e-factura.sunat.gob.pe/ol-ti-itemision-otroscpe-gem/billService"

    # servicio -> ambiente -> URL
    BY_SERVICE = {
        "fe": {"beta": FE_BETA, "prod": FE_PRODUCCION},
        "guia": {"beta": GUIA_BETA, "prod": GUIA_PRODUCCION},
        "retencion": {"beta": RETENCION_BETA, "prod": RETENCION_PRODUCCION},
    }

    @classmethod
    def get(cls, service: str, env: str) -> str:
        return cls.BY_SERVICE[service][env]


@dataclass(frozen=True)
class BuilderOptions:
    """Opciones de serialización de los builders XML"""
    pretty_print: bool = False
    encoding: str = "UTF-8"


@dataclass(frozen=True)
class SeeConfig:
    """
    Configuración inmutable del emisor.

    Se construye una sola vez y se pasa al constructor de See; para enviar
    con credenciales distintas se crea otra instancia.
    """
    endpoint: str = SunatEndpoints.FE_BETA
    username: str = ""
    password: str = ""
    certificate: Optional[str] = None  # PEM con clave privada y certificado
    timeout: int = 30
    builder_options: BuilderOptions = field(default_factory=BuilderOptions)


def _read_certificate(cert_path: Optional[str]) -> Optional[str]:
    if not cert_path:
        return None
    path = Path(cert_path).expanduser()
    if not path.exists() or not path.is_file():
        raise RuntimeError(f"Certificado no encontrado: {path}")
    return path.read_text(encoding="utf-8")


def get_see_config(env: Optional[str] = None, service: Optional[str] = None) -> SeeConfig:
    """
    Obtiene la configuración SEE desde variables de entorno

    Args:
        env: Ambiente ('beta' o 'prod'). Si None, usa SUNAT_ENV
        service: Servicio ('fe', 'guia' o 'retencion'). Si None, usa SUNAT_SERVICE

    Returns:
        Configuración SEE

    Raises:
        ValueError: Si el ambiente o el servicio no son válidos
        RuntimeError: Si SUNAT_CERT_PATH apunta a un archivo inexistente
    """
    if env is None:
        env = os.getenv("SUNAT_ENV", "beta")
    env = env.strip().lower()
    if env not in ("beta", "prod"):
        raise ValueError(f"Ambiente inválido: {env}. Debe ser 'beta' o 'prod'")

    if service is None:
        service = os.getenv("SUNAT_SERVICE", "fe")
    service = service.strip().lower()
    if service not in SunatEndpoints.BY_SERVICE:
        raise ValueError(f"Servicio inválido: {service}. Debe ser 'fe', 'guia' o 'retencion'")

    endpoint = (os.getenv("SUNAT_ENDPOINT") or "").strip() or SunatEndpoints.get(service, env)

    return SeeConfig(
        endpoint=endpoint,
        username=os.getenv("SUNAT_SOL_USER", ""),
        password=os.getenv("SUNAT_SOL_PASSWORD", ""),
        certificate=_read_certificate(os.getenv("SUNAT_CERT_PATH")),
        timeout=int(os.getenv("SUNAT_REQUEST_TIMEOUT", "30")),
        builder_options=BuilderOptions(
            pretty_print=os.getenv("SUNAT_XML_PRETTY", "false").lower() == "true",
        ),
    )
