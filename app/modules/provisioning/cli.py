# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/cli.py

Línea de comandos para operadores.

Uso:
    python -m app.modules.provisioning.cli retry --order-id 42
    python -m app.modules.provisioning.cli retry-batch

Códigos de salida:
    0  completado
    1  falló el aprovisionamiento
    2  no elegible o bloqueado por otro proceso

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from app.shared.config import settings
from app.shared.config.logging_config import setup_logging
from app.modules.provisioning.services import ProvisioningRetryService, RetryStatus

logger = logging.getLogger(__name__)

_EXIT_CODES = {
    RetryStatus.COMPLETED: 0,
    RetryStatus.FAILED: 1,
    RetryStatus.NOT_ELIGIBLE: 2,
    RetryStatus.SKIPPED_LOCKED: 2,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m app.modules.provisioning.cli",
        description="Reintento de aprovisionamiento en Partner Center",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    retry = sub.add_parser("retry", help="Reintenta una orden (ignora el límite automático)")
    retry.add_argument("--order-id", type=int, required=True)

    sub.add_parser("retry-batch", help="Ejecuta una corrida del job automático")
    return parser


async def run(args: argparse.Namespace, service: Optional[ProvisioningRetryService] = None) -> int:
    service = service or ProvisioningRetryService()

    if args.command == "retry":
        result = await service.retry_order(args.order_id, manual=True)
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return _EXIT_CODES[result.status]

    report = await service.retry_batch()
    print(json.dumps([r.to_dict() for r in report.results], ensure_ascii=False, indent=2))
    return 1 if report.count(RetryStatus.FAILED) else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings.log_level, settings.log_format)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
