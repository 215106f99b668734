# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/gateway/__init__.py

Protocolo MITEC: cifrado, construcción del request y decodificación del callback.

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from .callback_decoder import CallbackDecoder, DecodedCallback, classify_status
from .crypto_codec import decrypt, encrypt, strip_xml_preamble
from .errors import (
    DecryptionFailedError,
    GatewayError,
    InvalidGatewayKeyError,
    MalformedPayloadError,
    MalformedXmlError,
    SyntheticCallbackRejectedError,
)
from .references import generate_reference, reference_base
from .request_builder import (
    BillingData,
    BuiltRequest,
    CardData,
    MerchantConfig,
    MitecRequestBuilder,
    format_amount,
)

__all__ = [
    "CallbackDecoder",
    "DecodedCallback",
    "classify_status",
    "encrypt",
    "decrypt",
    "strip_xml_preamble",
    "GatewayError",
    "InvalidGatewayKeyError",
    "MalformedPayloadError",
    "DecryptionFailedError",
    "MalformedXmlError",
    "SyntheticCallbackRejectedError",
    "generate_reference",
    "reference_base",
    "CardData",
    "BillingData",
    "MerchantConfig",
    "BuiltRequest",
    "MitecRequestBuilder",
    "format_amount",
]
