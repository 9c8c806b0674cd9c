"""
Token Codec
===========
Compact HS256 tokens and AES-256-GCM envelopes.
"""

# Re-export all public APIs
from .encoding import b64url_encode, b64url_decode
from .codec import (
    TokenCodec,
    issue_token,
    verify_token,
    generate_secure_token,
    TOKEN_ALGORITHM,
    TOKEN_TYPE,
)
from .envelope import EnvelopeCipher, encrypt_data, decrypt_data, derive_key

__all__ = [
    # Encoding
    "b64url_encode",
    "b64url_decode",
    # Tokens
    "TokenCodec",
    "issue_token",
    "verify_token",
    "generate_secure_token",
    "TOKEN_ALGORITHM",
    "TOKEN_TYPE",
    # Envelopes
    "EnvelopeCipher",
    "encrypt_data",
    "decrypt_data",
    "derive_key",
]
