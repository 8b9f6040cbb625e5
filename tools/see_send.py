#!/usr/bin/env python3
"""
Envía un XML firmado al billService de SUNAT o consulta un ticket.

Uso:
    python tools/see_send.py --env beta send 20123456789-01-F001-1.xml
    python tools/see_send.py --env beta status 1703154974517
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, List, Optional

# Asegurar import "app.*" aunque ejecutes desde tools/
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from app.sunat_client.config import get_see_config
from app.sunat_client.exceptions import SunatException
from app.sunat_client.models import BaseResult
from sunat_see import See


def result_to_dict(result: BaseResult) -> dict:
    """Resultado serializable a JSON (el ZIP del CDR se resume por tamaño)"""
    out: dict[str, Any] = {"type": type(result).__name__}
    for key, value in asdict(result).items():
        if key == "cdr_zip":
            out["cdr_zip_bytes"] = len(value) if value else 0
            continue
        out[key] = value
    pending = getattr(result, "is_pending", None)
    if pending is not None:
        out["pending"] = pending
    return out


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Envío de comprobantes al SEE de SUNAT (billService)")
    ap.add_argument("--env", choices=["beta", "prod"], default=None, help="Ambiente (default SUNAT_ENV)")
    ap.add_argument(
        "--service", choices=["fe", "guia", "retencion"], default=None, help="Servicio (default SUNAT_SERVICE)"
    )
    ap.add_argument("-v", "--verbose", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    send_p = sub.add_parser("send", help="Enviar XML firmado (tipo y nombre se deducen del XML)")
    send_p.add_argument("xml_path")

    status_p = sub.add_parser("status", help="Consultar estado de un ticket")
    status_p.add_argument("ticket")

    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = get_see_config(env=args.env, service=args.service)
    except (RuntimeError, ValueError) as exc:
        print(f"ERROR configuración: {exc}", file=sys.stderr)
        return 1

    see = See(config)

    try:
        if args.command == "send":
            xml_file = Path(args.xml_path).expanduser()
            if not xml_file.exists() or not xml_file.is_file():
                print(f"ERROR: XML no existe o no es archivo: {xml_file}", file=sys.stderr)
                return 1
            result = see.send_xml_file(xml_file.read_bytes())
        else:
            result = see.get_status(args.ticket)
    except SunatException as exc:
        print(f"ERROR {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result_to_dict(result), ensure_ascii=False, indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
