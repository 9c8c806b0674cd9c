"""
Pattern Sentinel
================
Malicious-signature detection for inbound requests.
"""

# Re-export all public APIs
from .models import Severity, Verdict, Surface, Signature, ScanResult
from .signatures import DEFAULT_SIGNATURES, DEFAULT_BLOCK_SIGNATURES
from .scanner import PatternSentinel

__all__ = [
    # Models
    "Severity",
    "Verdict",
    "Surface",
    "Signature",
    "ScanResult",
    # Signatures
    "DEFAULT_SIGNATURES",
    "DEFAULT_BLOCK_SIGNATURES",
    # Scanner
    "PatternSentinel",
]
