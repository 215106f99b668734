# backend/tests/modules/payments/test_request_builder.py
# -*- coding: utf-8 -*-
"""
Tests del armado de la petición TRANSACTION3DS.

Verifica:
- Formato del monto (dos decimales, sin miles, HALF_UP)
- Orden de bloques y etiquetas del XML, serializado compacto
- Etiquetas vacías como <tag></tag>
- tx_urlResponse con ?token=<referencia>
- Envoltura <pgs> cifrada y formulario auto-submit
- Formulario de simulación (fake_mode=1)
"""

import base64
import json
import re
import xml.etree.ElementTree as ET
from decimal import Decimal

import pytest

from app.modules.payments.gateway import crypto_codec
from app.modules.payments.gateway.references import generate_reference, reference_base
from app.modules.payments.gateway.request_builder import (
    BillingData,
    CardData,
    MerchantConfig,
    MitecRequestBuilder,
    build_transaction_xml,
    format_amount,
)

REFERENCE = "MKT1760000000000000_ABCDEF01"


@pytest.fixture
def merchant(payments_settings) -> MerchantConfig:
    return MerchantConfig.from_settings(payments_settings)


@pytest.fixture
def card() -> CardData:
    return CardData(
        holder_name="JUAN PEREZ",
        number="4111111111111111",
        exp_month="09",
        exp_year="28",
        cvv="123",
    )


class TestFormatAmount:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("115.98"), "115.98"),
            ("1234.5", "1234.50"),
            (Decimal("1234567.891"), "1234567.89"),
            (Decimal("0.005"), "0.01"),
            (10, "10.00"),
        ],
    )
    def test_two_decimals_no_thousands_separator(self, value, expected):
        assert format_amount(value) == expected


class TestTransactionXml:
    def test_layout_and_values(self, merchant, card):
        """Bloques business/transaction/creditcard/billing en orden fijo."""
        xml = build_transaction_xml(
            merchant, REFERENCE, Decimal("115.98"), "MXN", card,
            BillingData(phone="5512345678", email="cliente@test.mx"), "10.0.0.1",
        )
        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?><TRANSACTION3DS>')
        assert "\n" not in xml and "  " not in xml

        root = ET.fromstring(xml)
        assert [child.tag for child in root] == ["business", "transaction"]
        assert [c.tag for c in root.find("business")] == [
            "bs_idCompany", "bs_idBranch", "bs_country", "bs_user", "bs_pwd",
        ]
        tx = root.find("transaction")
        assert [c.tag for c in tx] == [
            "tx_merchant", "tx_reference", "tx_amount", "tx_currency",
            "creditcard", "billing", "tx_urlResponse", "tx_cobro", "tx_browserIP",
        ]
        assert tx.findtext("tx_amount") == "115.98"
        assert tx.findtext("tx_reference") == REFERENCE
        assert tx.findtext("tx_urlResponse") == f"http://api.test/api/payments/mitec/callback?token={REFERENCE}"
        assert tx.findtext("creditcard/cc_number") == "4111111111111111"
        assert tx.findtext("billing/bl_billingEmail") == "cliente@test.mx"
        assert tx.findtext("tx_browserIP") == "10.0.0.1"

    def test_empty_fields_use_open_close_tags(self, merchant, card):
        """Un campo vacío se serializa <tag></tag>, nunca <tag/>."""
        xml = build_transaction_xml(merchant, REFERENCE, "1", "MXN", card, BillingData(), "127.0.0.1")
        assert "<bl_billingPhone></bl_billingPhone>" in xml
        assert "/>" not in xml


class TestBuilder:
    def test_build_wraps_encrypted_document(self, merchant, card, payments_settings):
        """<pgs><data0/><data/></pgs> con el XML cifrado con la llave del comercio."""
        built = MitecRequestBuilder(merchant).build(
            REFERENCE, Decimal("115.98"), "MXN", card, BillingData(), "127.0.0.1"
        )
        pgs = ET.fromstring(built.form_payload)
        assert pgs.tag == "pgs"
        assert pgs.findtext("data0") == "9265655555"

        decrypted = crypto_codec.decrypt(pgs.findtext("data"), payments_settings.mitec_key_hex.get_secret_value())
        assert decrypted == built.xml_document

        assert built.gateway_url == "https://gateway.test/ws3dsecure/Auth3dsecure"
        assert 'action="https://gateway.test/ws3dsecure/Auth3dsecure"' in built.html_form
        assert 'name="xml"' in built.html_form
        assert ".submit();" in built.html_form

    def test_card_repr_hides_pan(self, card):
        """El repr de la tarjeta no expone número ni CVV."""
        text = repr(card)
        assert "4111111111111111" not in text
        assert "123" not in text
        assert "1111" in text

    def test_synthetic_form_posts_to_callback(self, merchant, card):
        """Simulación: fake_mode=1 y xml=base64(JSON) hacia el callback."""
        built = MitecRequestBuilder(merchant).build_synthetic(REFERENCE, Decimal("115.98"), card)

        assert built.gateway_url.endswith(f"/callback?token={REFERENCE}")
        assert 'name="fake_mode" value="1"' in built.html_form
        data = json.loads(base64.b64decode(built.form_payload))
        assert data["reference"] == REFERENCE
        assert data["response"] == "approved"
        assert data["amount"] == "115.98"
        assert data["card_last_four"] == "1111"
        assert data["cd_error"] == ""

    def test_synthetic_declined(self, merchant, card):
        built = MitecRequestBuilder(merchant).build_synthetic(REFERENCE, "50", card, approved=False)
        data = json.loads(base64.b64decode(built.form_payload))
        assert data["response"] == "declined"
        assert data["cd_error"] == "05"


class TestReferences:
    def test_format(self):
        """MKT + microsegundos + '_' + 8 hex en mayúsculas."""
        assert re.fullmatch(r"MKT\d{16,}_[0-9A-F]{8}", generate_reference())

    def test_unique(self):
        assert len({generate_reference() for _ in range(50)}) == 50

    def test_reference_base(self):
        assert reference_base(REFERENCE) == "MKT1760000000000000"
        assert reference_base("SINSEPARADOR") == "SINSEPARADOR"

# Fin del archivo backend/tests/modules/payments/test_request_builder.py
