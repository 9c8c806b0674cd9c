"""
Sensitive Data Masking
======================
Scrubs credentials and payment data from event details before they are
written anywhere.
"""

from typing import Any

MASK = "***MASKED***"

SENSITIVE_FIELDS = (
    "password",
    "token",
    "refreshtoken",
    "secret",
    "apikey",
    "creditcard",
    "cardnumber",
    "cvv",
    "ssn",
    "passport",
)


def _is_sensitive(key: Any) -> bool:
    lower_key = str(key).lower()
    return any(name in lower_key for name in SENSITIVE_FIELDS)


def _masked_value(value: Any) -> Any:
    if isinstance(value, str):
        return MASK
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return 0
    return None


def mask_sensitive_data(data: Any) -> Any:
    """
    Return a copy of ``data`` with sensitive fields masked.

    Keys are matched case-insensitively by substring, so ``userPassword`` and
    ``X-Api-Token`` are both masked. Dicts and lists are walked recursively;
    other values are returned unchanged.
    """
    if isinstance(data, dict):
        return {
            key: _masked_value(value) if _is_sensitive(key) else mask_sensitive_data(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [mask_sensitive_data(item) for item in data]
    return data
