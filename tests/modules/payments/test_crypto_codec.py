# backend/tests/modules/payments/test_crypto_codec.py
# -*- coding: utf-8 -*-
"""
Tests del códec AES-128-CBC de MITEC.

Cubre:
- Marco base64(IV || ciphertext) y IV aleatorio por mensaje
- Descifrado de payloads producidos por la pasarela (vector fijo)
- Validación de la llave
- Payloads ilegibles: base64 inválido, más corto que el IV, padding roto
- Recorte del preámbulo basura antes de "<?xml"
"""

import base64
import logging

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from app.modules.payments.gateway import crypto_codec
from app.modules.payments.gateway.errors import (
    DecryptionFailedError,
    GatewayError,
    InvalidGatewayKeyError,
    MalformedPayloadError,
)

KEY_HEX = "0123456789abcdef0123456789abcdef"
FIXED_IV = bytes(range(16))


def _gateway_encrypt(plaintext: bytes, key_hex: str = KEY_HEX, iv: bytes = FIXED_IV) -> str:
    """Cifra como lo hace la pasarela, con IV conocido."""
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(bytes.fromhex(key_hex)), modes.CBC(iv)).encryptor()
    return base64.b64encode(iv + encryptor.update(padded) + encryptor.finalize()).decode("ascii")


class TestEncryptDecrypt:
    def test_roundtrip_preserves_utf8(self):
        """Cifrar y descifrar devuelve el texto original, incluidos acentos."""
        xml = '<?xml version="1.0" encoding="UTF-8"?><r><n>JOSÉ PÉREZ</n></r>'
        assert crypto_codec.decrypt(crypto_codec.encrypt(xml, KEY_HEX), KEY_HEX) == xml

    def test_frame_is_iv_plus_block_aligned_ciphertext(self):
        """El marco decodificado mide 16 bytes de IV más bloques completos."""
        raw = base64.b64decode(crypto_codec.encrypt("x" * 20, KEY_HEX))
        assert len(raw) == 16 + 32

    def test_iv_is_random_per_message(self):
        """Dos cifrados del mismo texto no comparten IV."""
        first = base64.b64decode(crypto_codec.encrypt("same", KEY_HEX))
        second = base64.b64decode(crypto_codec.encrypt("same", KEY_HEX))
        assert first[:16] != second[:16]

    def test_decrypts_gateway_vector(self):
        """Un payload cifrado con IV fijo se descifra al texto original."""
        payload = _gateway_encrypt(b"<?xml version='1.0'?><ok/>")
        assert crypto_codec.decrypt(payload, KEY_HEX) == "<?xml version='1.0'?><ok/>"

    def test_whitespace_around_payload_is_ignored(self):
        """Saltos de línea alrededor del base64 no afectan."""
        payload = "\n  " + _gateway_encrypt(b"hola") + "\n"
        assert crypto_codec.decrypt(payload, KEY_HEX) == "hola"


class TestKeyValidation:
    @pytest.mark.parametrize("key", ["", "zz" * 16, "0123456789abcdef", "00" * 32])
    def test_invalid_keys_are_rejected(self, key):
        """Llaves no hex o de longitud distinta a 16 bytes."""
        with pytest.raises(InvalidGatewayKeyError):
            crypto_codec.parse_key(key)

    def test_invalid_key_fails_before_encrypting(self):
        """encrypt valida la llave antes de tocar el texto."""
        with pytest.raises(InvalidGatewayKeyError):
            crypto_codec.encrypt("<x/>", "abc")


class TestMalformedPayloads:
    def test_invalid_base64(self, caplog):
        """Base64 inválido -> MalformedPayloadError con extracto acotado."""
        garbage = "***no-es-base64***" * 10
        with caplog.at_level(logging.WARNING):
            with pytest.raises(MalformedPayloadError) as exc_info:
                crypto_codec.decrypt(garbage, KEY_HEX)
        assert len(exc_info.value.raw_excerpt) <= 64
        assert "mitec_payload_malformed" in caplog.text

    def test_shorter_than_iv(self):
        """Menos de 16 bytes decodificados no alcanzan para el IV."""
        short = base64.b64encode(b"123").decode()
        with pytest.raises(MalformedPayloadError):
            crypto_codec.decrypt(short, KEY_HEX)

    def test_ciphertext_not_block_aligned(self):
        """Ciphertext que no es múltiplo de 16 -> DecryptionFailedError."""
        payload = base64.b64encode(FIXED_IV + b"\x01" * 10).decode()
        with pytest.raises(DecryptionFailedError):
            crypto_codec.decrypt(payload, KEY_HEX)

    def test_wrong_key_never_yields_plaintext(self):
        """Con otra llave se rechaza el padding o sale texto distinto al original."""
        original = "<?xml version='1.0'?><ok/>"
        payload = _gateway_encrypt(original.encode())
        try:
            result = crypto_codec.decrypt(payload, "fedcba9876543210fedcba9876543210")
        except DecryptionFailedError:
            return
        assert result != original

    def test_errors_share_gateway_base(self):
        """Todos los errores de transporte derivan de GatewayError."""
        for cls in (MalformedPayloadError, DecryptionFailedError, InvalidGatewayKeyError):
            assert issubclass(cls, GatewayError)


class TestStripXmlPreamble:
    def test_drops_garbage_before_declaration(self):
        """Bytes previos a '<?xml' se descartan."""
        assert crypto_codec.strip_xml_preamble("\x00\x07junk<?xml version='1.0'?><a/>") == "<?xml version='1.0'?><a/>"

    def test_keeps_text_starting_with_declaration(self):
        text = "<?xml version='1.0'?><a/>"
        assert crypto_codec.strip_xml_preamble(text) == text

    def test_without_declaration_returns_trimmed_text(self):
        assert crypto_codec.strip_xml_preamble("  <a/>  ") == "<a/>"

# Fin del archivo backend/tests/modules/payments/test_crypto_codec.py
