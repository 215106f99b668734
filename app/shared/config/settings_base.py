# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_base.py

Base de configuración (Pydantic v2) para el backend de Readymarket.
- Esta clase NO instancia singletons ni resuelve .env; eso lo hace config_loader.
- Es la base para settings_dev.py, settings_testing.py y settings_prod.py.
- La configuración de la pasarela (MITEC) y del aprovisionamiento (Partner Center)
  vive en settings_payments.py y settings_provisioning.py.

Autor: Ixchel Beristain
Fecha: 2026-10-06
"""

from typing import Literal, Optional
from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Tipos de entorno soportados
EnvName = Literal["development", "test", "production"]


class BaseAppSettings(BaseSettings):
    # =========================
    # Núcleo de la aplicación
    # =========================
    python_env: EnvName = Field(default="development", validation_alias="PYTHON_ENV")
    app_name: str = Field(default="Readymarket", validation_alias="APP_NAME")
    app_version: str = Field(default="0.1.0", validation_alias="APP_VERSION")
    app_host: str = Field(default="0.0.0.0", validation_alias="APP_HOST")
    app_port: int = Field(default=8000, validation_alias="APP_PORT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # =========================
    # Base de datos (PostgreSQL)
    # =========================
    db_user: str = Field(default="postgres", validation_alias="DB_USER")
    db_password: SecretStr = Field(default=SecretStr("postgres"), validation_alias="DB_PASSWORD")
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="readymarket", validation_alias="DB_NAME")
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=5, validation_alias="DB_MAX_OVERFLOW")
    db_pool_timeout: int = Field(default=5, validation_alias="DB_POOL_TIMEOUT")
    db_pool_recycle: int = Field(default=1800, validation_alias="DB_POOL_RECYCLE")
    db_echo_sql: bool = Field(default=False, validation_alias="DB_ECHO_SQL")
    db_sslmode: str = Field(default="prefer", validation_alias="DB_SSLMODE")  # prefer|require|disable
    db_command_timeout_s: float = Field(default=10.0, validation_alias="DB_COMMAND_TIMEOUT_S")
    db_url: Optional[str] = Field(default=None, validation_alias="DB_URL")

    @computed_field  # type: ignore[misc]
    @property
    def database_url(self) -> str:
        """
        Genera la URL de conexión completa para SQLAlchemy + asyncpg.
        Prioriza DB_URL si existe, sino construye desde componentes individuales.
        """
        from urllib.parse import quote_plus

        if self.db_url:
            url = self.db_url
            if url.startswith("sqlite"):
                return url
            return (
                url.replace("postgres://", "postgresql+asyncpg://")
                   .replace("postgresql://", "postgresql+asyncpg://")
            )

        pw = quote_plus(self.db_password.get_secret_value())
        return (
            f"postgresql+asyncpg://{self.db_user}:{pw}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================
    # Redis (caché compartida del token de aprovisionamiento)
    # =========================
    redis_url: Optional[str] = Field(default=None, validation_alias="REDIS_URL")

    # =========================
    # CORS / Frontend
    # =========================
    allowed_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")
    frontend_url: str = Field(default="http://localhost:5173", validation_alias="FRONTEND_URL")

    # =========================
    # Email
    # =========================
    email_mode: Literal["console", "api"] = Field(default="console", validation_alias="EMAIL_MODE")
    email_provider: Literal["mailersend", ""] = Field(default="", validation_alias="EMAIL_PROVIDER")
    email_timeout_sec: int = Field(default=30, validation_alias="EMAIL_TIMEOUT_SEC")
    email_from: str = Field(default="no-reply@readymarket.mx", validation_alias="EMAIL_FROM")
    support_email: str = Field(default="soporte@readymarket.mx", validation_alias="SUPPORT_EMAIL")

    # MailerSend API (solo aplica si email_mode == "api")
    mailersend_api_key: Optional[SecretStr] = Field(default=None, validation_alias="MAILERSEND_API_KEY")
    mailersend_from_email: Optional[str] = Field(default=None, validation_alias="MAILERSEND_FROM_EMAIL")
    mailersend_from_name: Optional[str] = Field(default="Readymarket", validation_alias="MAILERSEND_FROM_NAME")

    # =========================
    # Internal Service Auth
    # =========================
    internal_service_token: Optional[SecretStr] = Field(default=None, validation_alias="APP_SERVICE_TOKEN")

    # =========================
    # Scheduler
    # =========================
    scheduler_enabled: bool = Field(default=True, validation_alias="SCHEDULER_ENABLED")

    # =========================
    # Observabilidad / Logging
    # =========================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["json", "pretty", "plain"] = Field(default="pretty", validation_alias="LOG_FORMAT")
    metrics_enabled: bool = Field(default=True, validation_alias="METRICS_ENABLED")

    # ===== Helpers de entorno =====
    @computed_field  # type: ignore[misc]
    @property
    def is_dev(self) -> bool:
        return self.python_env == "development"

    @computed_field  # type: ignore[misc]
    @property
    def is_test(self) -> bool:
        return self.python_env == "test"

    @computed_field  # type: ignore[misc]
    @property
    def is_prod(self) -> bool:
        return self.python_env == "production"

    # ===== Utilidad para normalizar CORS =====
    def get_cors_origins(self) -> list[str]:
        """Convierte allowed_origins en lista procesable para CORS middleware."""
        if not self.allowed_origins or self.allowed_origins == "*":
            return ["*"]
        return [o.strip().strip('"').strip("'") for o in self.allowed_origins.split(",") if o.strip()]

    def _security_checks(self) -> None:
        """
        Validaciones mínimas de seguridad y coherencia.
        Se invoca desde config_loader tras instanciar el settings.
        """
        import logging
        logger = logging.getLogger(__name__)

        if self.is_prod:
            if self.db_sslmode != "require":
                raise ValueError("DB_SSLMODE debe ser 'require' en producción")
            if not self.internal_service_token or not self.internal_service_token.get_secret_value():
                raise ValueError("APP_SERVICE_TOKEN es requerido en producción (webhook interno y reintentos)")

        if self.is_dev and not self.internal_service_token:
            logger.info("ℹ️ APP_SERVICE_TOKEN vacío - los endpoints internos responderán 500")

        if self.email_mode == "api":
            if not self.mailersend_api_key or not self.mailersend_from_email:
                raise ValueError("EMAIL_MODE=api requiere MAILERSEND_API_KEY y MAILERSEND_FROM_EMAIL.")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


__all__ = ["BaseAppSettings", "EnvName"]
# Fin del archivo backend/app/shared/config/settings_base.py
