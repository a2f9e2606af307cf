"""Credential screening for tool arguments.

Tool arguments are plain identifiers: an organization login, owner/repo names,
an issue number and GraphQL node ids (``PVT_...``, ``PVTI_...``, ``I_kw...``).
Credentials only ever come from the host environment, so an argument that looks
like one is rejected outright and never echoed back or audited verbatim.
"""

from __future__ import annotations

import re
from typing import Any

from .errors import user_input_error

# Argument names an agent might use to smuggle credentials in.
_CREDENTIAL_KEYS = frozenset(
    {"token", "access_token", "authorization", "password", "private_key", "pem", "jwt", "secret"}
)

# Personal, OAuth, user-to-server, installation, refresh and fine-grained tokens.
_GITHUB_TOKEN_RE = re.compile(r"^(gh[pousr]_|github_pat_)", re.IGNORECASE)
_JWT_RE = re.compile(r"^[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}$")
_PEM_MARKER = "-----BEGIN "

# GraphQL global ids as handed out by the Projects API; never credentials.
_NODE_ID_RE = re.compile(r"^(PVT|PVTI|PVTF|PVTSSF|PVTIF|I|PR|DI)_[A-Za-z0-9_-]+$")


def _normalize_key(key: Any) -> str:
    return str(key).strip().lower().replace("-", "_")


def looks_like_secret_value(value: str) -> bool:
    """True for strings shaped like a GitHub token, bearer header, JWT or PEM block."""
    if not isinstance(value, str):
        return False
    candidate = value.strip()
    if _NODE_ID_RE.match(candidate):
        return False
    if candidate.lower().startswith("bearer "):
        return True
    if _GITHUB_TOKEN_RE.match(candidate):
        return True
    if _PEM_MARKER in candidate:
        return True
    return bool(_JWT_RE.match(candidate))


def validate_no_secrets(arguments: Any) -> None:
    """Reject tool arguments that name or carry a credential.

    Raises:
        SafeError: ``UserInput``; the offending value is not included.
    """
    if isinstance(arguments, dict):
        for key, value in arguments.items():
            if _normalize_key(key) in _CREDENTIAL_KEYS:
                raise user_input_error("Credential-like fields are not allowed")
            validate_no_secrets(value)
    elif isinstance(arguments, list):
        for value in arguments:
            validate_no_secrets(value)
    elif looks_like_secret_value(arguments):
        raise user_input_error("Credential-like values are not allowed")


def redact_text(text: str) -> str:
    if not isinstance(text, str):
        return "<non-string>"
    return "<redacted>" if looks_like_secret_value(text) else text
