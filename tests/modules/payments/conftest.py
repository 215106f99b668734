# backend/tests/modules/payments/conftest.py
# -*- coding: utf-8 -*-
"""
Fixtures del módulo Payments: XML de respuesta de la pasarela.
"""

import pytest

from app.modules.payments.gateway import crypto_codec

DEFAULT_REFERENCE = "MKT1760000000000000_ABCDEF01"


def build_gateway_xml(
    *,
    reference: str = DEFAULT_REFERENCE,
    response: str = "approved",
    auth: str = "123456",
    cd_error: str = "",
    nb_error: str = "",
    response_code: str = "",
    amount: str = "115.98",
) -> str:
    """Respuesta TRANSACTION3DS ya descifrada, como la arma MITEC."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        "<TRANSACTION3DS_RESPONSE>"
        f"<r3ds_reference>{reference}</r3ds_reference>"
        "<r3ds_eci>05</r3ds_eci>"
        "<r3ds_transStatus>Y</r3ds_transStatus>"
        f"<r3ds_responseCode>{response_code}</r3ds_responseCode>"
        "<r3ds_cc_number>411111******1111</r3ds_cc_number>"
        "<CENTEROFPAYMENTS>"
        f"<reference>{reference}</reference>"
        f"<response>{response}</response>"
        f"<auth>{auth}</auth>"
        "<cd_response>00</cd_response>"
        f"<cd_error>{cd_error}</cd_error>"
        f"<nb_error>{nb_error}</nb_error>"
        "<time>14:05:09</time>"
        "<date>19/10/2026</date>"
        "<cc_type>CREDITO/VISA</cc_type>"
        f"<amount>{amount}</amount>"
        "</CENTEROFPAYMENTS>"
        "</TRANSACTION3DS_RESPONSE>"
    )


@pytest.fixture
def gateway_xml():
    return build_gateway_xml


@pytest.fixture
def encrypted_callback(payments_settings):
    """Formulario del callback con strResponse cifrado con la llave del comercio."""
    key_hex = payments_settings.mitec_key_hex.get_secret_value()

    def _build(reference: str, **xml_values) -> dict[str, str]:
        xml = build_gateway_xml(reference=reference, **xml_values)
        return {
            "strResponse": crypto_codec.encrypt(xml, key_hex),
            "strIdCompany": payments_settings.mitec_id_company,
            "strIdMerchant": payments_settings.mitec_merchant,
        }

    return _build

# Fin del archivo backend/tests/modules/payments/conftest.py
