# backend/tests/modules/provisioning/test_provisioning_retry_service.py
# -*- coding: utf-8 -*-
"""
Tests del servicio de reintentos de aprovisionamiento.

Cubre:
- Lease: un segundo intento concurrente -> skipped_locked
- completed / failed y liberación del lease en ambos casos
- Notificación "reintentos agotados" una sola vez
- Lote: solo órdenes processing/paid por debajo del límite
- not_eligible: orden inexistente o cancelada
- Job programado como envoltura del lote
- Excepciones no tipadas: intento contado y el lote continúa
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.shared.database.base import utcnow
from app.modules.orders.models import Order
from app.modules.provisioning.client import FakePartnerCenterClient
from app.modules.provisioning.errors import ProvisioningError, ProvisioningErrorDetail, ProvisioningStep
from app.modules.provisioning.jobs import retry_pending_provisioning
from app.modules.provisioning.models import Subscription
from app.modules.provisioning.services import ProvisioningOrchestrator, ProvisioningRetryService, RetryStatus

EXHAUSTED_MARKER = "Se agotaron los 3 reintentos"


class RejectingPartnerCenterClient(FakePartnerCenterClient):
    async def checkout(self, customer_id, cart_id, token):
        raise ProvisioningError(
            ProvisioningStep.CHECKOUT,
            ProvisioningErrorDetail(
                message="Checkout rechazado: HTTP 400",
                http_status=400,
                error_code="BadInput",
                description="Invalid catalog item",
            ),
        )


@pytest.fixture
def retry_service(session_factory, fanout, provisioning_settings):
    def _build(client=None) -> ProvisioningRetryService:
        return ProvisioningRetryService(
            session_factory=session_factory,
            orchestrator_factory=lambda: ProvisioningOrchestrator(
                client or FakePartnerCenterClient(), fanout, provisioning_settings
            ),
            settings=provisioning_settings,
        )

    return _build


@pytest.fixture
def paid_order_id(session_factory, make_paid_order):
    async def _create(**order_values) -> int:
        async with session_factory() as session:
            order = await make_paid_order(session)
            for key, value in order_values.items():
                setattr(order, key, value)
            await session.commit()
            return order.id

    return _create


async def load_order(session_factory, order_id: int) -> Order:
    async with session_factory() as session:
        return await session.get(Order, order_id)


class TestRetryOrder:
    async def test_completed(self, session_factory, retry_service, paid_order_id):
        order_id = await paid_order_id()

        result = await retry_service().retry_order(order_id)

        assert result.status == RetryStatus.COMPLETED
        assert result.attempts == 1
        order = await load_order(session_factory, order_id)
        assert order.status == "completed"
        assert order.provisioning_locked_until is None
        async with session_factory() as session:
            assert await session.scalar(select(func.count()).select_from(Subscription)) == 1

    async def test_failed_keeps_order_processing(self, session_factory, retry_service, paid_order_id, alert_email):
        order_id = await paid_order_id()

        result = await retry_service(RejectingPartnerCenterClient()).retry_order(order_id)

        assert result.status == RetryStatus.FAILED
        assert result.attempts == 1
        assert result.error["error_code"] == "BadInput"
        assert result.error["step"] == "checkout"

        order = await load_order(session_factory, order_id)
        assert order.status == "processing"
        assert order.provisioning_attempts == 1
        assert order.last_provisioning_error["description"] == "Invalid catalog item"
        assert order.provisioning_locked_until is None
        assert len(alert_email.sent) == 1

    async def test_lease_held_by_another_process(self, session_factory, retry_service, paid_order_id):
        """Con el lease vigente el intento se omite sin tocar la orden."""
        order_id = await paid_order_id(provisioning_locked_until=utcnow() + timedelta(minutes=5))

        result = await retry_service().retry_order(order_id)

        assert result.status == RetryStatus.SKIPPED_LOCKED
        order = await load_order(session_factory, order_id)
        assert order.provisioning_attempts == 0
        assert order.status == "processing"

    async def test_expired_lease_is_taken(self, retry_service, paid_order_id):
        order_id = await paid_order_id(provisioning_locked_until=utcnow() - timedelta(minutes=1))
        result = await retry_service().retry_order(order_id)
        assert result.status == RetryStatus.COMPLETED

    async def test_unknown_order(self, retry_service):
        result = await retry_service().retry_order(9999)
        assert result.status == RetryStatus.NOT_ELIGIBLE

    async def test_cancelled_order(self, session_factory, retry_service, paid_order_id):
        order_id = await paid_order_id(status="cancelled")

        result = await retry_service().retry_order(order_id)

        assert result.status == RetryStatus.NOT_ELIGIBLE
        order = await load_order(session_factory, order_id)
        assert order.provisioning_locked_until is None
        assert order.provisioning_attempts == 0


class TestExhaustedRetries:
    async def test_notified_once(self, session_factory, retry_service, paid_order_id, alert_email):
        """Al llegar al límite se envía la alerta de agotados una sola vez."""
        order_id = await paid_order_id(provisioning_attempts=2)
        service = retry_service(RejectingPartnerCenterClient())

        first = await service.retry_order(order_id)
        second = await service.retry_order(order_id)

        assert first.attempts == 3
        assert second.attempts == 4
        exhausted = [mail for mail in alert_email.sent if EXHAUSTED_MARKER in mail["html"]]
        assert len(exhausted) == 1
        assert len(alert_email.sent) == 3

        order = await load_order(session_factory, order_id)
        assert order.retries_exhausted_notified_at is not None
        assert order.status == "processing"

    async def test_manual_retry_does_not_send_exhausted_alert(
        self, retry_service, paid_order_id, alert_email
    ):
        order_id = await paid_order_id(provisioning_attempts=5)

        result = await retry_service(RejectingPartnerCenterClient()).retry_order(order_id, manual=True)

        assert result.status == RetryStatus.FAILED
        assert result.attempts == 6
        assert not any(EXHAUSTED_MARKER in mail["html"] for mail in alert_email.sent)

    async def test_manual_retry_ignores_limit(self, session_factory, retry_service, paid_order_id):
        order_id = await paid_order_id(provisioning_attempts=3)

        result = await retry_service().retry_order(order_id, manual=True)

        assert result.status == RetryStatus.COMPLETED
        assert (await load_order(session_factory, order_id)).status == "completed"


class TestRetryBatch:
    async def test_only_eligible_candidates(self, session_factory, retry_service, paid_order_id):
        fresh = await paid_order_id()
        await paid_order_id(provisioning_attempts=3)
        await paid_order_id(status="cancelled")
        await paid_order_id(provisioning_locked_until=utcnow() + timedelta(minutes=5))

        report = await retry_service().retry_batch()

        assert [r.order_id for r in report.results] == [fresh]
        assert report.count(RetryStatus.COMPLETED) == 1

    async def test_batch_size(self, retry_service, paid_order_id, provisioning_settings):
        provisioning_settings.provisioning_retry_batch_size = 2
        for _ in range(3):
            await paid_order_id()

        report = await retry_service().retry_batch()
        assert len(report.results) == 2

    async def test_scheduled_job(self, retry_service, paid_order_id):
        order_id = await paid_order_id()
        report = await retry_pending_provisioning(retry_service())
        assert [r.status for r in report.results] == [RetryStatus.COMPLETED]
        assert report.results[0].order_id == order_id

    async def test_crashing_order_does_not_stop_batch(
        self, session_factory, paid_order_id, fanout, provisioning_settings
    ):
        broken = await paid_order_id()
        healthy = await paid_order_id()

        class CrashingOrchestrator(ProvisioningOrchestrator):
            async def provision(self, session, order_id):
                if order_id == broken:
                    raise RuntimeError("conexión perdida")
                return await super().provision(session, order_id)

        service = ProvisioningRetryService(
            session_factory=session_factory,
            orchestrator_factory=lambda: CrashingOrchestrator(
                FakePartnerCenterClient(), fanout, provisioning_settings
            ),
            settings=provisioning_settings,
        )

        report = await service.retry_batch()

        statuses = {r.order_id: r.status for r in report.results}
        assert statuses == {broken: RetryStatus.FAILED, healthy: RetryStatus.COMPLETED}
        crashed = next(r for r in report.results if r.order_id == broken)
        assert crashed.error["error_type"] == "unexpected"
        assert (await load_order(session_factory, broken)).provisioning_locked_until is None


class TestUnexpectedFailures:
    async def test_attempt_is_counted(self, session_factory, retry_service, paid_order_id, alert_email):
        """Una excepción no tipada también consume un intento y queda registrada."""
        class CartWithoutId(FakePartnerCenterClient):
            async def create_cart(self, customer_id, line_items, token):
                return {}

        order_id = await paid_order_id()

        result = await retry_service(CartWithoutId()).retry_order(order_id)

        assert result.status == RetryStatus.FAILED
        assert result.attempts == 1
        assert result.error["error_type"] == "unexpected"
        order = await load_order(session_factory, order_id)
        assert order.provisioning_attempts == 1
        assert order.last_provisioning_error["step"] == "create_cart"
        assert order.provisioning_locked_until is None
        assert len(alert_email.sent) == 1

# Fin del archivo backend/tests/modules/provisioning/test_provisioning_retry_service.py
