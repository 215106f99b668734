# backend/tests/conftest.py
# -*- coding: utf-8 -*-
"""
Config global de tests para Readymarket.

- PYTHON_ENV=test antes de importar la app (settings de pruebas, sin scheduler)
- Engine aiosqlite en memoria por test (StaticPool: todas las sesiones
  comparten la misma conexión y por tanto los mismos datos)
- SAVEPOINT real en SQLite: se desactiva el BEGIN implícito del driver y
  se emite BEGIN explícito (receta documentada de SQLAlchemy)
- JSONB -> JSON para que los modelos se creen sobre SQLite
- Fábrica de datos (catálogo, carrito, cuenta, pago, orden) y cliente httpx
  con LifespanManager y dependencias sobreescritas
"""

import os

os.environ["PYTHON_ENV"] = "test"
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")
os.environ.setdefault("REDIS_URL", "")

from decimal import Decimal
from typing import Optional, Sequence

import pytest
from pydantic import SecretStr
from sqlalchemy import JSON, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.shared.config import PaymentsSettings, ProvisioningSettings
from app.shared.config.settings_payments import reset_payments_settings
from app.shared.config.settings_provisioning import reset_provisioning_settings
from app.shared.database.base import Base

# Registro de modelos en Base.metadata
from app.modules.orders.models import Cart, CartItem, Category, Product
from app.modules.payments.enums import PaymentResponseStatus, ResolutionPath
from app.modules.payments.models import PaymentResponse, PaymentSession  # noqa: F401
from app.modules.provisioning.models import CustomerAccount, Subscription  # noqa: F401

TEST_KEY_HEX = "0123456789abcdef0123456789abcdef"
INTERNAL_TOKEN = "test-internal-token"


# -----------------------------------------------------------------------------
# 1) Esquema SQLite
# -----------------------------------------------------------------------------
def _patch_pg_types_for_sqlite(metadata) -> None:
    """JSONB no existe en SQLite; se sustituye por JSON genérico."""
    for table in metadata.tables.values():
        for column in table.columns:
            if isinstance(column.type, JSONB):
                column.type = JSON()


_patch_pg_types_for_sqlite(Base.metadata)


# -----------------------------------------------------------------------------
# 2) Settings deterministas
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _reset_settings_singletons():
    reset_payments_settings()
    reset_provisioning_settings()
    yield
    reset_payments_settings()
    reset_provisioning_settings()


@pytest.fixture
def payments_settings() -> PaymentsSettings:
    return PaymentsSettings(
        mitec_key_hex=SecretStr(TEST_KEY_HEX),
        mitec_id_company="0ABC",
        mitec_id_branch="001",
        mitec_country="MEX",
        mitec_user="RM_USER",
        mitec_password=SecretStr("RM_PWD"),
        mitec_data0="9265655555",
        mitec_merchant="123456",
        mitec_3ds_url="https://gateway.test/ws3dsecure/Auth3dsecure",
        mitec_response_url="http://api.test/api/payments/mitec/callback",
        frontend_url="http://frontend.test",
        mitec_allow_synthetic_callbacks=True,
        mitec_simulate_gateway=False,
    )


@pytest.fixture
def provisioning_settings() -> ProvisioningSettings:
    return ProvisioningSettings(
        partner_center_base_url="https://partner.test/v1",
        partner_center_token_url="https://token.test/partner-center/token",
        partner_center_token_api_key=SecretStr("token-api-key"),
        provisioning_max_auto_attempts=3,
        provisioning_retry_batch_size=10,
        provisioning_lease_seconds=600,
        notification_emails="ops@readymarket.test",
        notification_whatsapp_numbers="",
    )


# -----------------------------------------------------------------------------
# 3) Base de datos
# -----------------------------------------------------------------------------
@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # el driver no emite BEGIN por su cuenta; SQLAlchemy lo hace abajo
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


# -----------------------------------------------------------------------------
# 4) Fábrica de datos
# -----------------------------------------------------------------------------
class Seed:
    """Crea filas mínimas válidas. Solo hace flush; el test decide el commit."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._counter = 0

    async def category(self, name: str = "Productividad") -> Category:
        category = Category(name=name)
        self.session.add(category)
        await self.session.flush()
        return category

    async def product(
        self,
        title: str = "Microsoft 365 Business Basic",
        unit_price: Decimal | str = "115.98",
        *,
        product_code: str = "CFQ7TTC0LH18",
        sku_id: Optional[str] = None,
        availability_id: str = "CFQ7TTC0LH1G",
        term_duration: Optional[str] = "P1Y",
        billing_plan: Optional[str] = "Monthly",
        category: Optional[Category] = None,
    ) -> Product:
        self._counter += 1
        product = Product(
            product_code=product_code,
            sku_id=sku_id or f"{self._counter:04d}",
            availability_id=availability_id,
            title=title,
            sku_title=f"{title} SKU",
            publisher="Microsoft Corporation",
            term_duration=term_duration,
            billing_plan=billing_plan,
            unit_price=Decimal(str(unit_price)),
            list_price=Decimal(str(unit_price)),
            category_id=category.id if category is not None else None,
        )
        self.session.add(product)
        await self.session.flush()
        return product

    async def account(
        self,
        microsoft_id: Optional[str] = "a1b2c3d4-0000-4000-8000-000000000001",
        domain: str = "contoso.onmicrosoft.com",
        user_id: int = 7,
    ) -> CustomerAccount:
        account = CustomerAccount(
            user_id=user_id,
            microsoft_id=microsoft_id,
            domain=domain,
            company_name="Contoso SA de CV",
            contact_email="admin@contoso.test",
        )
        self.session.add(account)
        await self.session.flush()
        return account

    async def cart(
        self,
        lines: Sequence[tuple[Product, int]],
        *,
        user_id: Optional[int] = 7,
        account: Optional[CustomerAccount] = None,
        status: str = "active",
    ) -> Cart:
        cart = Cart(
            user_id=user_id,
            customer_account_id=account.id if account is not None else None,
            status=status,
            currency="MXN",
        )
        self.session.add(cart)
        await self.session.flush()
        subtotal = Decimal("0.00")
        for product, quantity in lines:
            line_total = product.unit_price * quantity
            subtotal += line_total
            self.session.add(CartItem(
                cart_id=cart.id,
                product_id=product.id,
                quantity=quantity,
                unit_price=product.unit_price,
                list_price=product.list_price,
                line_total=line_total,
            ))
        cart.subtotal = subtotal
        cart.total_amount = subtotal
        await self.session.flush()
        return cart

    async def payment_response(
        self,
        cart: Optional[Cart],
        *,
        reference: str = "MKT1760000000000000_ABCDEF01",
        status: PaymentResponseStatus = PaymentResponseStatus.APPROVED,
        amount: Optional[Decimal] = None,
        **extra,
    ) -> PaymentResponse:
        payment_response = PaymentResponse(
            transaction_reference=reference,
            cart_id=cart.id if cart is not None else None,
            user_id=cart.user_id if cart is not None else None,
            customer_account_id=cart.customer_account_id if cart is not None else None,
            resolution_path=ResolutionPath.EXACT_SESSION.value,
            payment_status=status.value,
            amount=amount if amount is not None else (cart.total_amount if cart is not None else None),
            currency="MXN",
            **extra,
        )
        self.session.add(payment_response)
        await self.session.flush()
        return payment_response


@pytest.fixture
def seed(db_session) -> Seed:
    return Seed(db_session)


@pytest.fixture
def seed_factory() -> type[Seed]:
    """Para tests que abren sus propias sesiones (rutas, jobs)."""
    return Seed


# -----------------------------------------------------------------------------
# 5) App FastAPI y cliente httpx (httpx>=0.28, con ciclo de vida)
# -----------------------------------------------------------------------------
from httpx import ASGITransport, AsyncClient  # noqa: E402
from asgi_lifespan import LifespanManager  # noqa: E402


@pytest.fixture
def app(session_factory):
    """App con la sesión de BD apuntando al engine del test."""
    from app.main import app as fastapi_app
    from app.shared.database.database import get_async_session

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
            finally:
                if session.in_transaction():
                    await session.rollback()

    fastapi_app.dependency_overrides[get_async_session] = _override_session
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app):
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


@pytest.fixture
def internal_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {INTERNAL_TOKEN}"}

# Fin del archivo backend/tests/conftest.py
