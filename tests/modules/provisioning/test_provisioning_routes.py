# backend/tests/modules/provisioning/test_provisioning_routes.py
# -*- coding: utf-8 -*-
"""
Tests del reintento manual (HTTP y CLI).

Verifica:
- POST /api/provisioning/orders/{id}/retry protegido con token interno
- 200 completed / 502 failed / 409 skipped_locked / 422 not_eligible
- CLI: códigos de salida 0 / 1 / 2 y salida JSON
"""

import argparse
import json
from datetime import timedelta

import pytest

from app.shared.database.base import utcnow
from app.modules.provisioning.cli import build_parser, run
from app.modules.provisioning.client import FakePartnerCenterClient
from app.modules.provisioning.errors import ProvisioningError, ProvisioningErrorDetail, ProvisioningStep
from app.modules.provisioning.routes import get_retry_service
from app.modules.provisioning.services import ProvisioningOrchestrator, ProvisioningRetryService


class BrokenTokenClient(FakePartnerCenterClient):
    async def get_token(self):
        raise ProvisioningError(
            ProvisioningStep.TOKEN,
            ProvisioningErrorDetail(message="No se obtuvo token: HTTP 503", http_status=503),
        )


@pytest.fixture
def client_holder():
    return {"client": FakePartnerCenterClient()}


@pytest.fixture
def retry_service(session_factory, fanout, provisioning_settings, client_holder) -> ProvisioningRetryService:
    return ProvisioningRetryService(
        session_factory=session_factory,
        orchestrator_factory=lambda: ProvisioningOrchestrator(
            client_holder["client"], fanout, provisioning_settings
        ),
        settings=provisioning_settings,
    )


@pytest.fixture
async def client(app, retry_service, async_client):
    app.dependency_overrides[get_retry_service] = lambda: retry_service
    return async_client


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


def retry_url(order_id: int) -> str:
    return f"/api/provisioning/orders/{order_id}/retry"


class TestRetryRoute:
    async def test_requires_internal_token(self, client):
        response = await client.post(retry_url(1))
        assert response.status_code == 401

    async def test_wrong_token(self, client):
        response = await client.post(retry_url(1), headers={"Authorization": "Bearer otro"})
        assert response.status_code == 403

    async def test_completed(self, client, internal_headers, paid_order_id):
        order_id = await paid_order_id()

        response = await client.post(retry_url(order_id), headers=internal_headers)

        assert response.status_code == 200
        assert response.json() == {"order_id": order_id, "status": "completed", "attempts": 1, "error": None}

    async def test_failed_is_502(self, client, internal_headers, paid_order_id, client_holder):
        client_holder["client"] = BrokenTokenClient()
        order_id = await paid_order_id()

        response = await client.post(retry_url(order_id), headers=internal_headers)

        assert response.status_code == 502
        body = response.json()
        assert body["status"] == "failed"
        assert body["error"]["step"] == "token"
        assert body["error"]["http_status"] == 503

    async def test_locked_is_409(self, client, internal_headers, paid_order_id):
        order_id = await paid_order_id(provisioning_locked_until=utcnow() + timedelta(minutes=5))
        response = await client.post(retry_url(order_id), headers=internal_headers)
        assert response.status_code == 409

    async def test_not_eligible_is_422(self, client, internal_headers):
        response = await client.post(retry_url(9999), headers=internal_headers)
        assert response.status_code == 422
        assert response.json()["status"] == "not_eligible"


class TestCli:
    def test_parser(self):
        args = build_parser().parse_args(["retry", "--order-id", "42"])
        assert args.command == "retry"
        assert args.order_id == 42

    async def test_retry_completed(self, retry_service, paid_order_id, capsys):
        order_id = await paid_order_id()

        code = await run(argparse.Namespace(command="retry", order_id=order_id), retry_service)

        assert code == 0
        assert json.loads(capsys.readouterr().out)["status"] == "completed"

    async def test_retry_failed(self, retry_service, paid_order_id, client_holder):
        client_holder["client"] = BrokenTokenClient()
        order_id = await paid_order_id()
        assert await run(argparse.Namespace(command="retry", order_id=order_id), retry_service) == 1

    async def test_retry_not_eligible(self, retry_service):
        assert await run(argparse.Namespace(command="retry", order_id=9999), retry_service) == 2

    async def test_retry_batch(self, retry_service, paid_order_id, capsys):
        await paid_order_id()
        code = await run(argparse.Namespace(command="retry-batch"), retry_service)
        assert code == 0
        assert [r["status"] for r in json.loads(capsys.readouterr().out)] == ["completed"]

# Fin del archivo backend/tests/modules/provisioning/test_provisioning_routes.py
