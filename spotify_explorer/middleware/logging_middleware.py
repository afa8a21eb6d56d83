"""Redaction of secrets from logged URLs and form bodies."""

import re

SENSITIVE_PARAMS = [
    "code",
    "code_verifier",
    "code_challenge",
    "state",
    "client_secret",
    "access_token",
    "refresh_token",
    "token",
    "password",
    "authorization",
]

_PATTERNS = [re.compile(rf"(?<![A-Za-z_]){param}=([^&\s\"]+)", re.IGNORECASE) for param in SENSITIVE_PARAMS]


def redact_sensitive_data(url: str) -> str:
    """Replace the value of every sensitive query parameter with ``***REDACTED***``."""
    redacted = url
    for param, pattern in zip(SENSITIVE_PARAMS, _PATTERNS):
        redacted = pattern.sub(f"{param}=***REDACTED***", redacted)
    return redacted
