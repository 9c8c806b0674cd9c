"""
Default Signatures
==================
Ordered malicious-request signatures. Order matters: the first match wins.
"""

from typing import Tuple

from ..audit import SecurityEventType
from .models import Severity, Signature, Surface

_PATH_ONLY = (Surface.PATH,)

DEFAULT_SIGNATURES: Tuple[Signature, ...] = (
    # Path traversal (raw, backslash and URL-encoded forms)
    Signature.compile(
        "path_traversal",
        r"(\.\.|%2e%2e)(/|\\|%2f|%5c)",
        severity=Severity.HIGH,
        event_type=SecurityEventType.SUSPICIOUS_REQUEST,
    ),
    # SQL injection
    Signature.compile(
        "sql_union_select",
        r"union(\s|/\*.*?\*/)+(all(\s|/\*.*?\*/)+)?select(\s|/\*.*?\*/)+",
        severity=Severity.HIGH,
        event_type=SecurityEventType.SQL_INJECTION,
    ),
    Signature.compile(
        "sql_tautology",
        r"['\"]\s*(or|and)\s+['\"]?[\w]+['\"]?\s*=\s*['\"]?[\w]+",
        severity=Severity.HIGH,
        event_type=SecurityEventType.SQL_INJECTION,
    ),
    Signature.compile(
        "sql_select_from",
        r"\bselect\s+.+\s+from\s+",
        event_type=SecurityEventType.SQL_INJECTION,
    ),
    # XSS
    Signature.compile(
        "xss_script_tag",
        r"<script.*?>.*?</script>",
        event_type=SecurityEventType.XSS,
    ),
    Signature.compile(
        "xss_javascript_uri",
        r"javascript:",
        event_type=SecurityEventType.XSS,
    ),
    Signature.compile(
        "xss_event_handler",
        r"on(error|load)\s*=",
        event_type=SecurityEventType.XSS,
    ),
    Signature.compile(
        "cookie_theft",
        r"document\.cookie",
        event_type=SecurityEventType.XSS,
    ),
    Signature.compile("code_eval", r"eval\("),
    # Remote code lookup (Log4Shell)
    Signature.compile(
        "jndi_lookup",
        r"\$\{\s*jndi:",
        severity=Severity.HIGH,
    ),
    # Template injection
    Signature.compile("template_injection", r"\{\{.*?\}\}|\$\{[^}]*\}"),
    # Known CMS / admin scans
    Signature.compile("wordpress_scan", r"^/wp-", surfaces=_PATH_ONLY),
    Signature.compile("admin_scan", r"^/admin/", surfaces=_PATH_ONLY),
    Signature.compile("phpmyadmin_scan", r"^/phpmyadmin", surfaces=_PATH_ONLY),
)

DEFAULT_BLOCK_SIGNATURES = frozenset(
    s.name for s in DEFAULT_SIGNATURES if s.severity == Severity.HIGH
)
