# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/gateway/request_builder.py

Construcción del documento TRANSACTION3DS que se envía a MITEC.

- El parser de MITEC es sensible a espacios: el XML se serializa compacto,
  sin indentación y con etiquetas vacías en forma <tag></tag>.
- Los campos se copian tal cual; solo el monto se formatea con dos
  decimales y sin separador de miles (redondeo HALF_UP).
- El documento cifrado se envuelve en <pgs><data0/><data/></pgs> y este,
  a su vez, en un formulario HTML que se auto-envía al endpoint 3DS.

La persistencia de la PaymentSession la hace CheckoutService antes de
devolver el formulario al navegador.

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from __future__ import annotations

import base64
import html
import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from . import crypto_codec

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'


# =============================================================================
# DTOs
# =============================================================================

@dataclass(frozen=True)
class CardData:
    holder_name: str
    number: str
    exp_month: str
    exp_year: str
    cvv: str

    @property
    def last_four(self) -> str:
        return self.number[-4:]

    def __repr__(self) -> str:
        # Nunca exponer PAN/CVV en logs o tracebacks
        return f"CardData(holder_name={self.holder_name!r}, last_four={self.last_four!r})"


@dataclass(frozen=True)
class BillingData:
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class MerchantConfig:
    """Credenciales del bloque <business> y datos fijos de la transacción."""
    key_hex: str
    id_company: str
    id_branch: str
    country: str
    user: str
    password: str
    data0: str
    merchant: str
    gateway_url: str
    response_url: str
    tx_cobro: str = "1"

    @classmethod
    def from_settings(cls, s) -> "MerchantConfig":
        return cls(
            key_hex=s.mitec_key_hex.get_secret_value(),
            id_company=s.mitec_id_company,
            id_branch=s.mitec_id_branch,
            country=s.mitec_country,
            user=s.mitec_user,
            password=s.mitec_password.get_secret_value(),
            data0=s.mitec_data0,
            merchant=s.mitec_merchant,
            gateway_url=s.mitec_3ds_url,
            response_url=s.mitec_response_url,
            tx_cobro=s.mitec_tx_cobro,
        )

    def __repr__(self) -> str:
        return f"MerchantConfig(id_company={self.id_company!r}, merchant={self.merchant!r})"


@dataclass(frozen=True)
class BuiltRequest:
    reference: str
    xml_document: str
    form_payload: str
    html_form: str
    gateway_url: str


# =============================================================================
# Helpers
# =============================================================================

def format_amount(amount: Decimal | str | float) -> str:
    """'1234.5' -> '1234.50'. Sin separador de miles."""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{value:.2f}"


def _append(parent: ET.Element, tag: str, text: Optional[str] = "") -> ET.Element:
    node = ET.SubElement(parent, tag)
    node.text = text or ""
    return node


def build_transaction_xml(
    merchant: MerchantConfig,
    reference: str,
    amount: Decimal | str,
    currency: str,
    card: CardData,
    billing: BillingData,
    browser_ip: str,
) -> str:
    """Documento TRANSACTION3DS en claro, una sola línea."""
    root = ET.Element("TRANSACTION3DS")

    business = ET.SubElement(root, "business")
    _append(business, "bs_idCompany", merchant.id_company)
    _append(business, "bs_idBranch", merchant.id_branch)
    _append(business, "bs_country", merchant.country)
    _append(business, "bs_user", merchant.user)
    _append(business, "bs_pwd", merchant.password)

    tx = ET.SubElement(root, "transaction")
    _append(tx, "tx_merchant", merchant.merchant)
    _append(tx, "tx_reference", reference)
    _append(tx, "tx_amount", format_amount(amount))
    _append(tx, "tx_currency", currency)

    cc = ET.SubElement(tx, "creditcard")
    _append(cc, "cc_name", card.holder_name)
    _append(cc, "cc_number", card.number)
    _append(cc, "cc_expMonth", card.exp_month)
    _append(cc, "cc_expYear", card.exp_year)
    _append(cc, "cc_cvv", card.cvv)

    bl = ET.SubElement(tx, "billing")
    _append(bl, "bl_billingPhone", billing.phone)
    _append(bl, "bl_billingEmail", billing.email)

    _append(tx, "tx_urlResponse", f"{merchant.response_url}?token={reference}")
    _append(tx, "tx_cobro", merchant.tx_cobro)
    _append(tx, "tx_browserIP", browser_ip)

    body = ET.tostring(root, encoding="unicode", short_empty_elements=False)
    return XML_HEADER + body


def build_form_payload(data0: str, encrypted: str) -> str:
    """<pgs><data0>ID</data0><data>BASE64</data></pgs>"""
    root = ET.Element("pgs")
    _append(root, "data0", data0)
    _append(root, "data", encrypted)
    return ET.tostring(root, encoding="unicode", short_empty_elements=False)


def build_autosubmit_html(action_url: str, fields: dict[str, str], form_id: str = "mitecForm") -> str:
    """Formulario oculto con envío inmediato por script."""
    inputs = "\n".join(
        f'        <input type="hidden" name="{html.escape(name)}" value="{html.escape(value, quote=True)}">'
        for name, value in fields.items()
    )
    return (
        "<!doctype html>\n"
        '<html lang="es">\n'
        "<head>\n"
        '    <meta charset="utf-8">\n'
        "    <title>Procesando Pago</title>\n"
        "</head>\n"
        "<body>\n"
        f'    <form id="{form_id}" name="cliente" action="{html.escape(action_url, quote=True)}" '
        'method="post" style="display:none;">\n'
        f"{inputs}\n"
        "    </form>\n"
        "    <script>\n"
        f'        document.getElementById("{form_id}").submit();\n'
        "    </script>\n"
        "</body>\n"
        "</html>"
    )


# =============================================================================
# Builder
# =============================================================================

class MitecRequestBuilder:
    """Arma XML -> cifra -> envuelve en <pgs> -> formulario auto-submit."""

    def __init__(self, merchant: MerchantConfig):
        self.merchant = merchant

    def build(
        self,
        reference: str,
        amount: Decimal | str,
        currency: str,
        card: CardData,
        billing: BillingData,
        browser_ip: str,
    ) -> BuiltRequest:
        xml_document = build_transaction_xml(
            self.merchant, reference, amount, currency, card, billing, browser_ip
        )
        encrypted = crypto_codec.encrypt(xml_document, self.merchant.key_hex)
        form_payload = build_form_payload(self.merchant.data0, encrypted)
        html_form = build_autosubmit_html(self.merchant.gateway_url, {"xml": form_payload})
        return BuiltRequest(
            reference=reference,
            xml_document=xml_document,
            form_payload=form_payload,
            html_form=html_form,
            gateway_url=self.merchant.gateway_url,
        )

    def build_synthetic(
        self,
        reference: str,
        amount: Decimal | str,
        card: CardData,
        approved: bool = True,
    ) -> BuiltRequest:
        """
        Formulario de simulación: publica directamente al callback con
        fake_mode=1 y xml=base64(JSON), sin pasar por la pasarela.
        Solo se usa cuando MITEC_SIMULATE_GATEWAY está activo (nunca en producción).
        """
        data = {
            "reference": reference,
            "response": "approved" if approved else "declined",
            "auth": f"SIM{reference[-6:]}" if approved else "",
            "cd_response": "00" if approved else "05",
            "cd_error": "" if approved else "05",
            "nb_error": "" if approved else "Transaccion declinada (simulada)",
            "amount": format_amount(amount),
            "card_last_four": card.last_four,
        }
        payload = base64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")
        callback_url = f"{self.merchant.response_url}?token={reference}"
        html_form = build_autosubmit_html(
            callback_url, {"xml": payload, "reference": reference, "fake_mode": "1"}, form_id="fakeForm"
        )
        return BuiltRequest(
            reference=reference,
            xml_document="",
            form_payload=payload,
            html_form=html_form,
            gateway_url=callback_url,
        )


__all__ = [
    "CardData",
    "BillingData",
    "MerchantConfig",
    "BuiltRequest",
    "MitecRequestBuilder",
    "format_amount",
    "build_transaction_xml",
    "build_form_payload",
    "build_autosubmit_html",
]
# Fin del archivo backend/app/modules/payments/gateway/request_builder.py
