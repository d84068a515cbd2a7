"""Redaction of credentials in log messages and structured log fields."""

from __future__ import annotations

import base64
import logging
import re
from typing import Any, List, Optional, Pattern

__all__ = ["LOG_RECORD_FIELDS", "RedactingFilter", "Redactor"]

REDACTED = "[REDACTED]"

# Attributes every LogRecord carries; anything else came in through ``extra``.
LOG_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_SENSITIVE_KEYS = (
    "token",
    "secret",
    "password",
    "authorization",
    "credential",
    "access_key",
    "accesskey",
    "cookie",
)

_PATTERNS = [
    re.compile(r"(?i)(authorization\s*:\s*Bearer)\s+[A-Za-z0-9._\-]+"),
    re.compile(r"\b(?:AKIA|ASIA)[A-Z0-9]{16}\b"),
    re.compile(r"(?i)(aws_secret_access_key|aws_session_token)\s*[:=]\s*\S+"),
    re.compile(r'(?i)"?token(?:value)?"?\s*[:=]\s*"?[A-Za-z0-9+/=._\-]{8,}"?'),
]

_JWT_CANDIDATE_RE = re.compile(
    r"(?<![A-Za-z0-9_-])([A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+)(?![A-Za-z0-9_-])"
)


def _redact_jwts(text: str) -> str:
    """Replace likely JWTs with a redaction marker without touching hostnames."""

    def _decode(segment: str) -> Optional[bytes]:
        padding = "=" * (-len(segment) % 4)
        try:
            return base64.urlsafe_b64decode(segment + padding)
        except (ValueError, TypeError):
            return None

    def _maybe_redact(match: "re.Match[str]") -> str:
        token = match.group(1)
        header, payload, _ = token.split(".")
        header_bytes = _decode(header)
        payload_bytes = _decode(payload)
        if not header_bytes or not payload_bytes:
            return token
        if not header_bytes.strip().startswith(b"{"):
            return token
        return REDACTED

    return _JWT_CANDIDATE_RE.sub(_maybe_redact, text)


class Redactor:
    """Redact sensitive values: field-name redaction plus a pattern sweep."""

    def __init__(self, custom_patterns: Optional[List[str]] = None) -> None:
        self._custom: List[Pattern] = []
        if custom_patterns:
            self.set_custom_patterns(custom_patterns)

    def set_custom_patterns(self, patterns: List[str]) -> None:
        compiled: List[Pattern] = []
        for pat in patterns or []:
            try:
                compiled.append(re.compile(pat))
            except re.error:
                continue
        self._custom = compiled

    def sanitize(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {
                k: (REDACTED if self._is_sensitive_key(k) else self.sanitize(v))
                for k, v in obj.items()
            }
        if isinstance(obj, (list, tuple)):
            return type(obj)(self.sanitize(v) for v in obj)
        if isinstance(obj, str):
            return self.scrub(obj)
        return obj

    def scrub(self, value: str) -> str:
        out = value
        for pat in _PATTERNS + self._custom:
            if pat.pattern.lower().startswith("(?i)(authorization"):
                out = pat.sub(r"\1 " + REDACTED, out)
            elif pat.pattern.lower().startswith("(?i)(aws_"):
                out = pat.sub(r"\1=" + REDACTED, out)
            else:
                out = pat.sub(REDACTED, out)
        return _redact_jwts(out)

    @staticmethod
    def _is_sensitive_key(key: Any) -> bool:
        lowered = str(key).lower()
        return any(s in lowered for s in _SENSITIVE_KEYS)


class RedactingFilter(logging.Filter):
    """Scrub the message and ``extra`` fields of each record a handler emits."""

    def __init__(self, redactor: Optional[Redactor] = None) -> None:
        super().__init__()
        self.redactor = redactor or Redactor()

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        scrubbed = self.redactor.scrub(message)
        if scrubbed != message:
            record.msg = scrubbed
            record.args = None
        extras = {k: v for k, v in vars(record).items() if k not in LOG_RECORD_FIELDS}
        if extras:
            record.__dict__.update(self.redactor.sanitize(extras))
        return True
