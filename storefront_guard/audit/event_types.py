"""
Security Event Types
====================
Types of security events recorded in the audit trail.
"""

from enum import Enum


class SecurityEventType(str, Enum):
    """Security event types."""
    # Throttling
    BRUTE_FORCE = "BRUTE_FORCE"
    RATE_LIMIT = "RATE_LIMIT"

    # Request inspection
    SQL_INJECTION = "SQL_INJECTION"
    XSS = "XSS"
    SUSPICIOUS_REQUEST = "SUSPICIOUS_REQUEST"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    CSRF = "CSRF"

    # Authentication
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    AUTHENTICATION_FAILURE = "AUTHENTICATION_FAILURE"
    AUTHENTICATION_SUCCESS = "AUTHENTICATION_SUCCESS"
    AUTH_FAILURE = "AUTH_FAILURE"

    # Account changes
    FILE_UPLOAD = "FILE_UPLOAD"
    PERMISSION_CHANGE = "PERMISSION_CHANGE"
    ACCOUNT_CHANGE = "ACCOUNT_CHANGE"
