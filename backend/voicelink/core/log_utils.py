# backend/voicelink/core/log_utils.py
"""Helpers for logging user-controlled values.

Emails, transcripts, voice names and identity keys all come from the client.
They are passed through ``sanitize_for_log`` so a crafted value cannot forge
log lines or smuggle terminal escape sequences.

Always log with ``logger.info("%s", value)`` or an f-string around the
sanitized value, never with the raw value as the format string.
"""

from __future__ import annotations

import re
from typing import Any

# CSI, OSC and single-character ESC sequences
_ANSI_RE = re.compile(
    r"""
    \x1B
    (?:
        [@-Z\\-_]
      | \[ [0-?]* [ -/]* [@-~]
      | \] (?: [^\x07\x1B]* (?:\x07|\x1B\\))
    )
    """,
    re.VERBOSE,
)

# Control characters other than \t, \n and \r, which are escaped separately
_UNSAFE_CTRL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

# Bidirectional overrides (Trojan Source style spoofing)
_BIDI_RE = re.compile(r"[\u202A-\u202E\u2066-\u2069\u200E\u200F]")

_TRUNCATED_SUFFIX = "...[truncated]"

# Opaque ids (guest sessions) are shortened to this many characters in logs
_ID_PREVIEW_LEN = 8


def sanitize_for_log(value: Any, max_length: int | None = 500) -> str:
    """Return ``value`` as a single printable log-safe line.

    Examples:
        >>> sanitize_for_log("Hello\\nWorld")
        'Hello\\\\nWorld'
        >>> sanitize_for_log("User: \\x1b[31mRED\\x1b[0m")
        'User: RED'
        >>> sanitize_for_log(None)
        '<None>'
    """
    if value is None:
        return "<None>"

    try:
        text = str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"

    text = _ANSI_RE.sub("", text)
    text = (
        text.replace("\\", "\\\\")
        .replace("\r", "\\r")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
    text = _UNSAFE_CTRL_RE.sub("", text)
    text = _BIDI_RE.sub("", text)

    if max_length is not None and len(text) > max_length:
        keep = max(0, max_length - len(_TRUNCATED_SUFFIX))
        text = text[:keep] + _TRUNCATED_SUFFIX

    return text


def mask_identity_key(identity_key: str) -> str:
    """Shorten the secret part of a ``session:<id>`` key before logging it.

    User ids and IP addresses are logged as-is; a guest session id doubles as
    the cookie value and must not end up in log files in full.

        >>> mask_identity_key("session:abcdefghijklmnop")
        'session:abcdefgh...'
        >>> mask_identity_key("ip:1.2.3.4")
        'ip:1.2.3.4'
    """
    kind, sep, raw = identity_key.partition(":")
    if kind == "session" and sep and len(raw) > _ID_PREVIEW_LEN:
        return f"session:{sanitize_for_log(raw[:_ID_PREVIEW_LEN])}..."
    return sanitize_for_log(identity_key, max_length=300)
