"""
Encrypted Envelopes
===================
AES-256-GCM encryption of opaque payloads.

Envelope format: ``hex(iv):hex(ciphertext):hex(tag)``. The key is derived
from a secret with scrypt (N=16384, r=8, p=1), which keeps envelopes
readable by the storefront's Node backend.
"""

import os
from functools import lru_cache
from typing import Union

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..errors import AuthenticationFailed, InvalidEnvelope

logger = structlog.get_logger(__name__)

IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32
DEFAULT_KDF_SALT = b"salt"


@lru_cache(maxsize=32)
def derive_key(secret: str, salt: bytes = DEFAULT_KDF_SALT) -> bytes:
    """Derive a 256-bit key from a secret with scrypt."""
    kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=2 ** 14, r=8, p=1)
    return kdf.derive(secret.encode("utf-8"))


class EnvelopeCipher:
    """Authenticated encryption keyed by a secret."""

    def __init__(self, secret: str, salt: bytes = DEFAULT_KDF_SALT):
        if not secret:
            raise ValueError("Encryption secret cannot be empty")
        self._key = derive_key(secret, salt)

    def encrypt(self, plaintext: Union[str, bytes]) -> str:
        """
        Encrypt a payload with a fresh random IV.

        Args:
            plaintext: Text (UTF-8 encoded) or raw bytes

        Returns:
            ``iv:ciphertext:tag`` envelope, hex encoded
        """
        data = plaintext.encode("utf-8") if isinstance(plaintext, str) else plaintext
        iv = os.urandom(IV_LENGTH)

        encryptor = Cipher(algorithms.AES(self._key), modes.GCM(iv)).encryptor()
        ciphertext = encryptor.update(data) + encryptor.finalize()

        return f"{iv.hex()}:{ciphertext.hex()}:{encryptor.tag.hex()}"

    def decrypt_bytes(self, envelope: str) -> bytes:
        """
        Decrypt an envelope, verifying its tag first.

        Raises:
            InvalidEnvelope: Not an ``iv:ciphertext:tag`` triple
            AuthenticationFailed: Ciphertext or tag was tampered with
        """
        segments = envelope.split(":") if isinstance(envelope, str) else []
        if len(segments) != 3:
            raise InvalidEnvelope("Envelope must be iv:ciphertext:tag")

        # Ciphertext may be empty for an empty plaintext
        iv_hex, ciphertext_hex, tag_hex = segments
        if not iv_hex or not tag_hex:
            raise InvalidEnvelope("Envelope is missing its IV or tag")
        try:
            iv = bytes.fromhex(iv_hex)
        except ValueError as e:
            raise InvalidEnvelope("Envelope IV is not hex") from e
        if len(iv) != IV_LENGTH:
            raise InvalidEnvelope("Envelope IV has the wrong length")

        try:
            ciphertext = bytes.fromhex(ciphertext_hex)
            tag = bytes.fromhex(tag_hex)
            if len(tag) != TAG_LENGTH:
                raise ValueError("Authentication tag has the wrong length")
            decryptor = Cipher(algorithms.AES(self._key), modes.GCM(iv, tag)).decryptor()
            return decryptor.update(ciphertext) + decryptor.finalize()
        except (InvalidTag, ValueError) as e:
            logger.warning("envelope_authentication_failed", error_type=type(e).__name__)
            raise AuthenticationFailed("Envelope failed authentication") from e

    def decrypt(self, envelope: str) -> str:
        """Decrypt an envelope holding UTF-8 text."""
        data = self.decrypt_bytes(envelope)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidEnvelope("Envelope does not hold UTF-8 text") from e


def encrypt_data(plaintext: Union[str, bytes], secret: str) -> str:
    return EnvelopeCipher(secret).encrypt(plaintext)


def decrypt_data(envelope: str, secret: str) -> str:
    return EnvelopeCipher(secret).decrypt(envelope)
