"""
Envelope Tests
==============
AES-256-GCM envelopes keyed by scrypt.
"""

import hashlib

import pytest

from storefront_guard.errors import AuthenticationFailed, InvalidEnvelope
from storefront_guard.tokens import EnvelopeCipher, decrypt_data, derive_key, encrypt_data

SECRET = "envelope-secret"


class TestEnvelopeCipher:
    """Tests for encrypt/decrypt."""

    def test_roundtrip(self):
        """Should decrypt what it encrypted."""
        cipher = EnvelopeCipher(SECRET)
        assert cipher.decrypt(cipher.encrypt("card ending 4242")) == "card ending 4242"

    def test_roundtrip_unicode_and_empty(self):
        """Should handle non-ASCII and empty payloads."""
        cipher = EnvelopeCipher(SECRET)
        assert cipher.decrypt(cipher.encrypt("привет")) == "привет"
        assert cipher.decrypt(cipher.encrypt("")) == ""

    def test_envelope_format(self):
        """Should be hex iv (16 bytes), ciphertext and tag (16 bytes)."""
        iv_hex, ct_hex, tag_hex = EnvelopeCipher(SECRET).encrypt("hello").split(":")
        assert len(iv_hex) == 32
        assert len(tag_hex) == 32
        assert len(ct_hex) == 2 * len("hello")
        bytes.fromhex(iv_hex + ct_hex + tag_hex)

    def test_fresh_iv_per_call(self):
        """Same plaintext should never produce the same envelope."""
        cipher = EnvelopeCipher(SECRET)
        assert cipher.encrypt("same") != cipher.encrypt("same")

    def test_key_matches_scrypt(self):
        """Key derivation should match scrypt(N=16384, r=8, p=1) with the fixed salt."""
        expected = hashlib.scrypt(SECRET.encode(), salt=b"salt", n=2 ** 14, r=8, p=1, dklen=32)
        assert derive_key(SECRET) == expected

    def test_wrong_secret_fails_authentication(self):
        """Should reject an envelope sealed with another key."""
        envelope = EnvelopeCipher("other").encrypt("data")
        with pytest.raises(AuthenticationFailed):
            EnvelopeCipher(SECRET).decrypt(envelope)

    def test_tampered_ciphertext(self):
        """Flipping a ciphertext bit should fail authentication."""
        cipher = EnvelopeCipher(SECRET)
        iv_hex, ct_hex, tag_hex = cipher.encrypt("payload").split(":")
        flipped = f"{int(ct_hex[:2], 16) ^ 0x01:02x}{ct_hex[2:]}"

        with pytest.raises(AuthenticationFailed):
            cipher.decrypt(f"{iv_hex}:{flipped}:{tag_hex}")

    def test_truncated_tag(self):
        """A truncated tag should fail authentication."""
        cipher = EnvelopeCipher(SECRET)
        iv_hex, ct_hex, tag_hex = cipher.encrypt("payload").split(":")

        with pytest.raises(AuthenticationFailed):
            cipher.decrypt(f"{iv_hex}:{ct_hex}:{tag_hex[:-2]}")

    @pytest.mark.parametrize("position", [0, 7, 15])
    def test_flipped_tag_byte(self, position):
        """Flipping one byte of a full-length tag should fail authentication."""
        cipher = EnvelopeCipher(SECRET)
        iv_hex, ct_hex, tag_hex = cipher.encrypt("payload").split(":")
        tag = bytearray.fromhex(tag_hex)
        tag[position] ^= 0x80

        with pytest.raises(AuthenticationFailed):
            cipher.decrypt(f"{iv_hex}:{ct_hex}:{tag.hex()}")

    @pytest.mark.parametrize("envelope", ["", "abc", "a:b", "a:b:c:d", ":00:00"])
    def test_not_a_triple(self, envelope):
        """Should reject envelopes without an iv:ciphertext:tag shape."""
        with pytest.raises(InvalidEnvelope):
            EnvelopeCipher(SECRET).decrypt(envelope)

    def test_bad_iv(self):
        """Should reject a non-hex or short IV."""
        cipher = EnvelopeCipher(SECRET)
        _, ct_hex, tag_hex = cipher.encrypt("x").split(":")
        with pytest.raises(InvalidEnvelope):
            cipher.decrypt(f"zz:{ct_hex}:{tag_hex}")
        with pytest.raises(InvalidEnvelope):
            cipher.decrypt(f"00ff:{ct_hex}:{tag_hex}")

    def test_empty_secret_rejected(self):
        """Should refuse an empty secret."""
        with pytest.raises(ValueError):
            EnvelopeCipher("")

    def test_module_helpers(self):
        """encrypt_data/decrypt_data should interoperate."""
        assert decrypt_data(encrypt_data("secret note", SECRET), SECRET) == "secret note"
