"""
Token Codec
===========
Issues and verifies compact signed tokens.

Wire format: ``base64url(header).base64url(payload).base64url(signature)``,
unpadded, where the signature is HMAC-SHA256 over the first two segments
joined by a dot. The format is JWT compatible (HS256) so clients can verify
tokens independently.
"""

import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Callable, Dict, Optional, Union

import structlog

from ..config import parse_duration
from ..errors import Expired, InvalidSignature, MalformedToken, NotYetValid
from .encoding import b64url_decode, b64url_encode

logger = structlog.get_logger(__name__)

TOKEN_ALGORITHM = "HS256"
TOKEN_TYPE = "JWT"
DEFAULT_TTL_SECONDS = 86400

# Claims the codec owns; caller-supplied values are overwritten
ISSUED_AT = "iat"
EXPIRES_AT = "exp"
NOT_BEFORE = "nbf"


def _json_segment(data: Dict[str, Any]) -> str:
    return b64url_encode(json.dumps(data, separators=(",", ":")).encode("utf-8"))


class TokenCodec:
    """
    Signs and verifies tokens with a shared secret.

    Tokens are immutable once issued and are never stored server side; a
    token is valid exactly while ``nbf <= now <= exp``.
    """

    def __init__(
        self,
        secret: str,
        default_ttl: Union[int, str] = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            secret: HMAC signing secret
            default_ttl: Lifetime used when ``issue`` gets no ttl
            clock: Returns the current epoch time in seconds
        """
        if not secret:
            raise ValueError("Token secret cannot be empty")
        self._key = secret.encode("utf-8")
        self.default_ttl = parse_duration(default_ttl)
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def _sign(self, signing_input: str) -> str:
        digest = hmac.new(self._key, signing_input.encode("ascii"), hashlib.sha256).digest()
        return b64url_encode(digest)

    def issue(self, claims: Dict[str, Any], ttl_seconds: Optional[Union[int, str]] = None) -> str:
        """
        Issue a signed token.

        Args:
            claims: Claims to embed (must be JSON serializable)
            ttl_seconds: Lifetime in seconds or a duration string like ``"1d"``

        Returns:
            The ``header.payload.signature`` token
        """
        ttl = self.default_ttl if ttl_seconds is None else parse_duration(ttl_seconds)
        now = self._now()

        header = {"alg": TOKEN_ALGORITHM, "typ": TOKEN_TYPE}
        payload = {
            **claims,
            ISSUED_AT: now,
            EXPIRES_AT: now + ttl,
            NOT_BEFORE: now,
        }

        signing_input = f"{_json_segment(header)}.{_json_segment(payload)}"
        return f"{signing_input}.{self._sign(signing_input)}"

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Verify a token and return its claims.

        Raises:
            MalformedToken: Token is not three decodable segments
            InvalidSignature: Signature does not match
            Expired: Token is past its expiry
            NotYetValid: Token is not valid yet
        """
        if not isinstance(token, str):
            raise MalformedToken("Token must be a string")

        parts = token.split(".")
        if len(parts) != 3:
            raise MalformedToken(f"Expected 3 segments, got {len(parts)}")

        header_b64, payload_b64, signature = parts
        try:
            expected = self._sign(f"{header_b64}.{payload_b64}")
        except UnicodeEncodeError as e:
            raise MalformedToken("Token contains non-ASCII characters") from e

        if not hmac.compare_digest(
            expected.encode("ascii"),
            signature.encode("utf-8", errors="replace"),
        ):
            raise InvalidSignature("Token signature mismatch")

        try:
            header = json.loads(b64url_decode(header_b64))
            payload = json.loads(b64url_decode(payload_b64))
        except ValueError as e:
            raise MalformedToken(f"Undecodable token segment: {e}") from e

        if not isinstance(header, dict) or header.get("alg") != TOKEN_ALGORITHM:
            raise MalformedToken("Unsupported token header")
        if not isinstance(payload, dict):
            raise MalformedToken("Token payload must be an object")

        timestamps = [payload.get(name) for name in (ISSUED_AT, EXPIRES_AT, NOT_BEFORE)]
        if not all(isinstance(ts, (int, float)) and not isinstance(ts, bool) for ts in timestamps):
            raise MalformedToken("Token is missing timestamp claims")

        now = self._now()
        if now > payload[EXPIRES_AT]:
            raise Expired("Token has expired", expired_at=payload[EXPIRES_AT])
        if now < payload[NOT_BEFORE]:
            raise NotYetValid("Token is not valid yet", not_before=payload[NOT_BEFORE])

        return payload


def issue_token(claims: Dict[str, Any], secret: str, ttl_seconds: Union[int, str] = DEFAULT_TTL_SECONDS) -> str:
    """Issue a token with the wall clock."""
    return TokenCodec(secret).issue(claims, ttl_seconds)


def verify_token(token: str, secret: str) -> Dict[str, Any]:
    """Verify a token with the wall clock."""
    return TokenCodec(secret).verify(token)


def generate_secure_token(length: int = 32) -> str:
    """Generate ``length`` random bytes as hex (password resets, email links)."""
    return secrets.token_hex(length)
