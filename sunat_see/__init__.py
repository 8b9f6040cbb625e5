"""
Fachada de emisión electrónica SUNAT: construir, firmar, enviar y consultar
"""
from .see import See

__all__ = ["See"]
