# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/gateway/callback_decoder.py

Decodificación del callback de MITEC a un conjunto normalizado de campos.

Formas aceptadas:
(a) Producción: campo `strResponse` cifrado -> crypto_codec.decrypt ->
    recorte del preámbulo -> XML.
(b) Simulación: `fake_mode=1` + `xml=base64(JSON)`. Solo se acepta con la
    bandera explícita en el request Y con MITEC_ALLOW_SYNTHETIC_CALLBACKS.

Todos los campos son opcionales (cadena vacía por defecto); solo se falla
si no se obtiene ningún árbol XML (MalformedXmlError).

Clasificación del estado, en este orden y sin que una regla posterior
revierta un error ya marcado:
    1. cd_error no vacío                      -> error
    2. r3ds_responseCode que inicia con "E"   -> error
    3. payment_response approved/aprobada     -> approved; otro texto -> error
    4. nada de lo anterior                    -> pending

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from app.modules.payments.enums import PaymentResponseStatus

from . import crypto_codec
from .errors import (
    MalformedPayloadError,
    MalformedXmlError,
    SyntheticCallbackRejectedError,
    truncate_payload,
)

logger = logging.getLogger(__name__)

SYNTHETIC_RAW_XML = "<!-- FAKE MODE -->"
APPROVED_RESPONSES = frozenset({"approved", "aprobada"})

# campo normalizado -> etiqueta directa bajo la raíz
ROOT_FIELDS: dict[str, str] = {
    "r3ds_reference": "r3ds_reference",
    "r3ds_dsTransId": "r3ds_dsTransId",
    "r3ds_eci": "r3ds_eci",
    "r3ds_cavv": "r3ds_cavv",
    "r3ds_transStatus": "r3ds_transStatus",
    "r3ds_responseCode": "r3ds_responseCode",
    "r3ds_responseDescription": "r3ds_responseDescription",
    "cc_name": "r3ds_cc_name",
    "cc_number": "r3ds_cc_number",
    "branch": "r3ds_idBranch",
    "auth_bancaria": "r3ds_autorizacion_bancaria",
    "auth_full": "r3ds_auth_full",
    "protocolo": "r3ds_protocolo",
    "version": "r3ds_version",
}

# campo normalizado -> etiqueta dentro de <CENTEROFPAYMENTS>
CENTER_FIELDS: dict[str, str] = {
    "payment_folio": "reference",
    "payment_response": "response",
    "payment_auth": "auth",
    "cd_response": "cd_response",
    "cd_error": "cd_error",
    "nb_error": "nb_error",
    "time": "time",
    "date": "date",
    "voucher": "voucher",
    "voucher_comercio": "voucher_comercio",
    "voucher_cliente": "voucher_cliente",
    "cc_type": "cc_type",
    "amount": "amount",
    "friendly_response": "friendly_response",
}

# clave JSON del callback simulado -> campo normalizado
SYNTHETIC_FIELDS: dict[str, str] = {
    "reference": "r3ds_reference",
    "response": "payment_response",
    "auth": "payment_auth",
    "cd_response": "cd_response",
    "cd_error": "cd_error",
    "nb_error": "nb_error",
    "time": "time",
    "date": "date",
    "voucher": "voucher",
    "amount": "amount",
    "card_last_four": "cc_number",
}

ALL_FIELDS: tuple[str, ...] = tuple(ROOT_FIELDS) + tuple(CENTER_FIELDS)

_DATE_FORMATS = ("%d/%m/%Y %H:%M:%S", "%Y-%m-%d %H:%M:%S", "%d/%m/%Y", "%Y-%m-%d")


# =============================================================================
# Resultado
# =============================================================================

@dataclass(frozen=True)
class DecodedCallback:
    """Campos normalizados del callback (todas las claves de ALL_FIELDS presentes)."""

    fields: Mapping[str, str]
    raw_xml: str
    status: PaymentResponseStatus
    is_synthetic: bool = False
    extras: Mapping[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str:
        return self.fields.get(name, "")

    @property
    def reference(self) -> str:
        """r3ds_reference con respaldo en el folio del centro de pagos."""
        return self.get("r3ds_reference") or self.get("payment_folio")

    @property
    def amount(self) -> Optional[Decimal]:
        raw = self.get("amount").replace(",", "").replace("$", "").strip()
        if not raw:
            return None
        try:
            return Decimal(raw).quantize(Decimal("0.01"))
        except InvalidOperation:
            return None

    @property
    def card_last_four(self) -> str:
        digits = "".join(ch for ch in self.get("cc_number") if ch.isdigit())
        return digits[-4:]

    @property
    def mitec_datetime(self) -> Optional[datetime]:
        date_part, time_part = self.get("date"), self.get("time")
        candidate = f"{date_part} {time_part}".strip()
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt)
            except ValueError:
                continue
        return None

    def as_dict(self) -> dict[str, str]:
        data = dict(self.fields)
        data.update(self.extras)
        return data


# =============================================================================
# Reglas
# =============================================================================

def classify_status(fields: Mapping[str, str]) -> PaymentResponseStatus:
    """Aplica las cuatro reglas en orden estricto."""
    if (fields.get("cd_error") or "").strip():
        return PaymentResponseStatus.ERROR

    if (fields.get("r3ds_responseCode") or "").strip().upper().startswith("E"):
        return PaymentResponseStatus.ERROR

    response = (fields.get("payment_response") or "").strip().lower()
    if response:
        if response in APPROVED_RESPONSES:
            return PaymentResponseStatus.APPROVED
        return PaymentResponseStatus.ERROR

    return PaymentResponseStatus.PENDING


def _text(node: Optional[ET.Element]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.strip()


def parse_response_xml(xml_text: str) -> dict[str, str]:
    """
    XML descifrado -> campos normalizados (vacíos si faltan).

    Raises:
        MalformedXmlError: si el texto no produce un árbol XML
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.warning("mitec_xml_malformed excerpt=%s", truncate_payload(xml_text))
        raise MalformedXmlError(f"XML ilegible: {e}", raw_excerpt=truncate_payload(xml_text)) from e

    fields = {name: _text(root.find(tag)) for name, tag in ROOT_FIELDS.items()}

    center = root.find("CENTEROFPAYMENTS")
    for name, tag in CENTER_FIELDS.items():
        fields[name] = _text(center.find(tag)) if center is not None else ""

    if not fields["amount"]:
        fields["amount"] = _text(root.find("amount"))

    return fields


# =============================================================================
# Decoder
# =============================================================================

class CallbackDecoder:
    """Convierte el cuerpo del callback en un DecodedCallback."""

    def __init__(self, key_hex: str, allow_synthetic: bool = False):
        self._key_hex = key_hex
        self._allow_synthetic = allow_synthetic

    def decode(self, form: Mapping[str, str]) -> DecodedCallback:
        if (form.get("fake_mode") or "").strip() == "1":
            return self._decode_synthetic(form)

        encrypted = (form.get("strResponse") or "").strip()
        if not encrypted:
            raise MalformedPayloadError("Callback sin strResponse")

        plaintext = crypto_codec.decrypt(encrypted, self._key_hex)
        xml_text = crypto_codec.strip_xml_preamble(plaintext)
        fields = parse_response_xml(xml_text)

        extras = {
            "company": (form.get("strIdCompany") or "").strip(),
            "merchant": (form.get("strIdMerchant") or "").strip(),
        }
        return DecodedCallback(
            fields=fields,
            raw_xml=xml_text,
            status=classify_status(fields),
            extras=extras,
        )

    def decode_xml(self, xml_text: str) -> DecodedCallback:
        """Para el webhook interno: el XML ya viene descifrado."""
        xml_text = crypto_codec.strip_xml_preamble(xml_text)
        fields = parse_response_xml(xml_text)
        return DecodedCallback(fields=fields, raw_xml=xml_text, status=classify_status(fields))

    def _decode_synthetic(self, form: Mapping[str, str]) -> DecodedCallback:
        if not self._allow_synthetic:
            logger.warning("mitec_synthetic_callback_rejected reference=%s", form.get("reference", ""))
            raise SyntheticCallbackRejectedError("Callback simulado no permitido en este entorno")

        raw = form.get("xml") or ""
        try:
            data = json.loads(base64.b64decode(raw, validate=True))
        except (binascii.Error, ValueError) as e:
            raise MalformedPayloadError("Callback simulado ilegible", raw_excerpt=truncate_payload(raw)) from e
        if not isinstance(data, dict):
            raise MalformedPayloadError("Callback simulado debe ser un objeto JSON")

        fields = {name: "" for name in ALL_FIELDS}
        for key, name in SYNTHETIC_FIELDS.items():
            value = data.get(key)
            if value is not None:
                fields[name] = str(value).strip()
        fields["payment_folio"] = fields["r3ds_reference"]

        logger.info("mitec_synthetic_callback_decoded reference=%s", fields["r3ds_reference"])
        return DecodedCallback(
            fields=fields,
            raw_xml=SYNTHETIC_RAW_XML,
            status=classify_status(fields),
            is_synthetic=True,
        )


__all__ = [
    "DecodedCallback",
    "CallbackDecoder",
    "classify_status",
    "parse_response_xml",
    "ALL_FIELDS",
    "SYNTHETIC_RAW_XML",
]
# Fin del archivo backend/app/modules/payments/gateway/callback_decoder.py
