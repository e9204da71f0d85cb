"""Logging filters that scrub credentials from log output."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Bearer\s+[\w\.-]+"
    r"|eyJ[\w-]+\.[\w-]+\.[\w-]+"
    r"|access_token\"?\s*[:=]\s*\"?[^\"\s,}]+"
    r"|password\"?\s*[:=]\s*\"?[^\"\s,}]+)",
    re.IGNORECASE,
)
_REDACTED = "**REDACTED**"


def scrub(value: str) -> str:
    return _SENSITIVE_PATTERN.sub(_REDACTED, value)


class SensitiveFilter(logging.Filter):
    """Replace bearer tokens, JWTs and passwords in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = scrub(record.getMessage())
            record.args = None
        elif isinstance(record.msg, str):
            record.msg = scrub(record.msg)
        return True


__all__ = ["SensitiveFilter", "scrub"]
