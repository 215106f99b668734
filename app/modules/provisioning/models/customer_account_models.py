# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/models/customer_account_models.py

Cuenta de cliente en Microsoft Partner Center (tenant destino de las licencias).

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, utcnow


class CustomerAccount(Base):
    __tablename__ = "customer_accounts"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True, index=True)

    microsoft_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        doc="Customer id del tenant en Partner Center. NULL mientras la cuenta está pendiente.",
    )
    domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("microsoft_id", name="uq_customer_accounts_microsoft_id"),
    )

    def __repr__(self) -> str:
        return f"<CustomerAccount(id={self.id}, microsoft_id={self.microsoft_id}, domain={self.domain})>"


__all__ = ["CustomerAccount"]
# Fin del archivo backend/app/modules/provisioning/models/customer_account_models.py
