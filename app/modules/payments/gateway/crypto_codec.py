# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/gateway/crypto_codec.py

Cifrado simétrico del payload MITEC: AES-128-CBC, IV aleatorio de 16 bytes,
PKCS#7 y marco base64(IV || ciphertext). La llave es hex sin derivación.

Tras descifrar, la pasarela puede anteponer bytes basura al documento;
el llamador debe descartar todo lo previo al primer "<?xml"
(strip_xml_preamble).

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from __future__ import annotations

import base64
import binascii
import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import (
    DecryptionFailedError,
    InvalidGatewayKeyError,
    MalformedPayloadError,
    truncate_payload,
)

logger = logging.getLogger(__name__)

KEY_SIZE_BYTES = 16
IV_SIZE_BYTES = 16
BLOCK_SIZE_BITS = 128
XML_DECLARATION = "<?xml"


def parse_key(key_hex: str) -> bytes:
    """Decodifica la llave hex. Debe producir exactamente 16 bytes (AES-128)."""
    try:
        key = bytes.fromhex((key_hex or "").strip())
    except ValueError as e:
        raise InvalidGatewayKeyError("La llave MITEC no es hexadecimal") from e
    if len(key) != KEY_SIZE_BYTES:
        raise InvalidGatewayKeyError(
            f"La llave MITEC debe medir {KEY_SIZE_BYTES} bytes (recibidos {len(key)})"
        )
    return key


def encrypt(plaintext: str, key_hex: str) -> str:
    """Cifra `plaintext` (UTF-8) y devuelve base64(IV || ciphertext)."""
    key = parse_key(key_hex)
    iv = os.urandom(IV_SIZE_BYTES)

    padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return base64.b64encode(iv + ciphertext).decode("ascii")


def decrypt(payload: str, key_hex: str) -> str:
    """
    Descifra base64(IV || ciphertext).

    Raises:
        MalformedPayloadError: base64 inválido o menos de 16 bytes
        DecryptionFailedError: ciphertext o padding rechazados
    """
    key = parse_key(key_hex)
    excerpt = truncate_payload(payload)

    try:
        raw = base64.b64decode((payload or "").strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning("mitec_payload_malformed reason=base64 payload=%s", excerpt)
        raise MalformedPayloadError("Payload base64 inválido", raw_excerpt=excerpt) from e

    if len(raw) < IV_SIZE_BYTES:
        logger.warning("mitec_payload_malformed reason=short length=%d payload=%s", len(raw), excerpt)
        raise MalformedPayloadError("Payload más corto que el IV", raw_excerpt=excerpt)

    iv, ciphertext = raw[:IV_SIZE_BYTES], raw[IV_SIZE_BYTES:]

    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
        plain = unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        # ciphertext no múltiplo de bloque o padding inválido
        logger.warning("mitec_decryption_failed payload=%s", excerpt)
        raise DecryptionFailedError("No se pudo descifrar el payload", raw_excerpt=excerpt) from e

    return plain.decode("utf-8", errors="replace")


def strip_xml_preamble(text: str) -> str:
    """Descarta todo lo anterior al primer '<?xml'. Sin declaración, devuelve el texto recortado."""
    idx = text.find(XML_DECLARATION)
    if idx > 0:
        return text[idx:]
    return text.strip() if idx < 0 else text


__all__ = [
    "KEY_SIZE_BYTES",
    "IV_SIZE_BYTES",
    "parse_key",
    "encrypt",
    "decrypt",
    "strip_xml_preamble",
]
# Fin del archivo backend/app/modules/payments/gateway/crypto_codec.py
