"""
Base64url Helpers
=================
Unpadded base64url, as used by the token wire format.
"""

import base64
import binascii


def b64url_encode(data: bytes) -> str:
    """Encode bytes as base64url without ``=`` padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str) -> bytes:
    """
    Decode an unpadded base64url segment.

    Raises:
        ValueError: If the segment is not valid base64url
    """
    if any(ch in segment for ch in "+/="):
        raise ValueError("Segment is not unpadded base64url")
    padded = segment + "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"Invalid base64url segment: {e}") from e
