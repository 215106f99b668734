# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/services/provisioning_retry_service.py

Reintento de aprovisionamiento para órdenes pagadas en processing.

Entradas:
- Job del scheduler (retry_batch): respeta PROVISIONING_MAX_AUTO_ATTEMPTS.
- Endpoint interno y CLI (retry_order manual=True): ignoran el límite.

Cada intento:
    1. Toma el lease (UPDATE condicional) y hace commit para que sea
       visible a otros procesos. Sin lease -> skipped_locked.
    2. Ejecuta el orquestador y hace commit del resultado
       (éxito o error registrado en la orden).
    3. Libera el lease siempre.

Al agotar los intentos automáticos se envía una sola notificación
"reintentos agotados" (retries_exhausted_notified_at).

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.shared.config import ProvisioningSettings, get_provisioning_settings
from app.shared.database.base import utcnow
from app.shared.database.database import SessionLocal
from app.modules.notifications.services import NotificationFanout
from app.modules.orders.models import Order
from app.modules.orders.repositories import OrderRepository
from app.modules.provisioning.client import get_partner_center_client
from app.modules.provisioning.errors import OrderNotEligibleError, ProvisioningError
from app.modules.provisioning.models import CustomerAccount

from .provisioning_orchestrator import ProvisioningOrchestrator, alert_context

logger = logging.getLogger(__name__)


class RetryStatus(StrEnum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED_LOCKED = "skipped_locked"
    NOT_ELIGIBLE = "not_eligible"


@dataclass(frozen=True)
class RetryResult:
    order_id: int
    status: RetryStatus
    attempts: Optional[int] = None
    error: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "status": self.status.value,
            "attempts": self.attempts,
            "error": self.error,
        }


@dataclass
class BatchReport:
    results: list[RetryResult] = field(default_factory=list)

    def count(self, status: RetryStatus) -> int:
        return sum(1 for r in self.results if r.status == status)


class ProvisioningRetryService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
        orchestrator_factory: Optional[Callable[[], ProvisioningOrchestrator]] = None,
        settings: Optional[ProvisioningSettings] = None,
        order_repo: Optional[OrderRepository] = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_provisioning_settings()
        self.order_repo = order_repo or OrderRepository()
        self._orchestrator_factory = orchestrator_factory or self._default_orchestrator
        self._orchestrator: Optional[ProvisioningOrchestrator] = None

    def _default_orchestrator(self) -> ProvisioningOrchestrator:
        return ProvisioningOrchestrator(
            client=get_partner_center_client(),
            fanout=NotificationFanout.from_settings(),
            settings=self.settings,
            order_repo=self.order_repo,
        )

    @property
    def orchestrator(self) -> ProvisioningOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = self._orchestrator_factory()
        return self._orchestrator

    # ------------------------------------------------------------------
    # Una orden
    # ------------------------------------------------------------------

    async def retry_order(self, order_id: int, manual: bool = False) -> RetryResult:
        async with self.session_factory() as session:
            acquired = await self.order_repo.try_acquire_lease(
                session, order_id, self.settings.provisioning_lease_seconds
            )
            await session.commit()
            if not acquired:
                if await self.order_repo.get(session, order_id) is None:
                    logger.warning("provisioning_retry_not_eligible order_id=%s reason=no existe", order_id)
                    return RetryResult(
                        order_id=order_id,
                        status=RetryStatus.NOT_ELIGIBLE,
                        error={"message": f"Orden {order_id} no elegible: no existe"},
                    )
                logger.info("provisioning_retry_skipped order_id=%s reason=locked", order_id)
                return RetryResult(order_id=order_id, status=RetryStatus.SKIPPED_LOCKED)

            try:
                logger.info("provisioning_retry_started order_id=%s manual=%s", order_id, manual)
                try:
                    await self.orchestrator.provision(session, order_id)
                    await session.commit()
                    attempts = await self._attempts(session, order_id)
                    return RetryResult(order_id=order_id, status=RetryStatus.COMPLETED, attempts=attempts)
                except ProvisioningError as e:
                    await session.commit()
                    attempts = await self._attempts(session, order_id)
                    if not manual:
                        await self._notify_if_exhausted(session, order_id)
                    return RetryResult(
                        order_id=order_id,
                        status=RetryStatus.FAILED,
                        attempts=attempts,
                        error=e.to_dict(),
                    )
                except OrderNotEligibleError as e:
                    await session.rollback()
                    logger.warning("provisioning_retry_not_eligible order_id=%s reason=%s", order_id, e.reason)
                    return RetryResult(
                        order_id=order_id,
                        status=RetryStatus.NOT_ELIGIBLE,
                        error={"message": str(e)},
                    )
            finally:
                await session.rollback()
                await self.order_repo.release_lease(session, order_id)
                await session.commit()

    # ------------------------------------------------------------------
    # Lote (scheduler)
    # ------------------------------------------------------------------

    async def retry_batch(self) -> BatchReport:
        async with self.session_factory() as session:
            candidates = await self.order_repo.list_retry_candidates(
                session,
                max_attempts=self.settings.provisioning_max_auto_attempts,
                limit=self.settings.provisioning_retry_batch_size,
            )

        report = BatchReport()
        for order_id in candidates:
            try:
                report.results.append(await self.retry_order(order_id))
            except Exception as e:
                # una orden rota no detiene el lote
                logger.exception("provisioning_retry_order_crashed order_id=%s", order_id)
                report.results.append(
                    RetryResult(
                        order_id=order_id,
                        status=RetryStatus.FAILED,
                        error={"message": f"{type(e).__name__}: {e}", "error_type": "unexpected"},
                    )
                )

        if candidates:
            logger.info(
                "provisioning_retry_batch_done candidates=%d completed=%d failed=%d skipped=%d",
                len(candidates),
                report.count(RetryStatus.COMPLETED),
                report.count(RetryStatus.FAILED),
                report.count(RetryStatus.SKIPPED_LOCKED),
            )
        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _attempts(self, session: AsyncSession, order_id: int) -> Optional[int]:
        order = await self.order_repo.get(session, order_id)
        return order.provisioning_attempts if order else None

    async def _notify_if_exhausted(self, session: AsyncSession, order_id: int) -> None:
        order = await self.order_repo.get_with_items(session, order_id)
        if order is None:
            return
        if order.provisioning_attempts < self.settings.provisioning_max_auto_attempts:
            return
        if order.retries_exhausted_notified_at is not None:
            return

        account = None
        if order.customer_account_id is not None:
            account = await session.get(CustomerAccount, order.customer_account_id)

        message = (
            f"Se agotaron los {self.settings.provisioning_max_auto_attempts} reintentos automáticos; "
            "la orden requiere reintento manual"
        )
        details = dict(order.last_provisioning_error or {})
        details["attempts"] = order.provisioning_attempts
        await self.orchestrator.fanout.notify(alert_context(order, order.items, account), message, details)

        order.retries_exhausted_notified_at = utcnow()
        await session.commit()
        logger.warning(
            "provisioning_retries_exhausted order_id=%s attempts=%d",
            order.id, order.provisioning_attempts,
        )


__all__ = ["ProvisioningRetryService", "RetryResult", "RetryStatus", "BatchReport"]
# Fin del archivo backend/app/modules/provisioning/services/provisioning_retry_service.py
