"""
Empaquetado ZIP de comprobantes y lectura de CDR
"""
import zipfile
from io import BytesIO
from typing import List, Tuple

from .exceptions import MalformedArchive


def compress(filename: str, content: bytes) -> bytes:
    """Empaqueta un único archivo en un ZIP (deflated) en memoria."""
    mem = BytesIO()
    with zipfile.ZipFile(mem, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(filename, content)
    return mem.getvalue()


def _open(zip_bytes: bytes) -> zipfile.ZipFile:
    if not zip_bytes:
        raise MalformedArchive("ZIP vacío (0 bytes)")
    try:
        return zipfile.ZipFile(BytesIO(zip_bytes))
    except zipfile.BadZipFile as e:
        raise MalformedArchive(f"ZIP ilegible: {e}") from e


def list_entries(zip_bytes: bytes) -> List[str]:
    with _open(zip_bytes) as zf:
        return zf.namelist()


def decompress_last_file(zip_bytes: bytes) -> Tuple[str, bytes]:
    """
    Extrae la última entrada del ZIP.

    SUNAT puede anteponer entradas auxiliares (p. ej. una carpeta 'dummy');
    por convención el CDR es la última entrada del listado.

    Returns:
        Tupla (nombre, contenido)

    Raises:
        MalformedArchive: Si el ZIP está vacío o no se puede leer
    """
    with _open(zip_bytes) as zf:
        names = zf.namelist()
        if not names:
            raise MalformedArchive("ZIP sin entradas")
        name = names[-1]
        try:
            return name, zf.read(name)
        except (zipfile.BadZipFile, OSError) as e:
            raise MalformedArchive(f"No se pudo descomprimir {name}: {e}") from e
