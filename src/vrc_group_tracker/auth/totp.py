"""Time-based one-time codes (RFC 6238 / 4226) for the 2FA step."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import struct

from vrc_group_tracker.errors import InputError

DEFAULT_DIGITS = 6
DEFAULT_PERIOD_SECONDS = 30


def normalize_secret(secret: str) -> str:
    # Secrets are usually pasted in groups of four: "ABCD EFGH ..."
    return "".join(secret.split()).upper()


def _secret_bytes(secret: str) -> bytes:
    candidate = normalize_secret(secret)
    if not candidate:
        raise InputError("2FA secret is empty")
    padding = "=" * ((8 - len(candidate) % 8) % 8)
    try:
        return base64.b32decode(candidate + padding, casefold=True)
    except binascii.Error as exc:
        raise InputError("2FA secret is not valid base32") from exc


def _hotp(secret: bytes, counter: int, *, digits: int = DEFAULT_DIGITS) -> str:
    message = struct.pack(">Q", counter)
    digest = hmac.new(secret, message, hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    code_int = struct.unpack(">I", digest[offset : offset + 4])[0] & 0x7FFFFFFF
    return str(code_int % (10**digits)).zfill(digits)


class Totp:
    def __init__(
        self,
        secret: str,
        *,
        period_seconds: int = DEFAULT_PERIOD_SECONDS,
        digits: int = DEFAULT_DIGITS,
    ):
        self._secret = _secret_bytes(secret)
        self.period_seconds = period_seconds
        self.digits = digits

    def counter(self, timestamp: float) -> int:
        return int(timestamp) // self.period_seconds

    def code(self, timestamp: float) -> str:
        return _hotp(self._secret, self.counter(timestamp), digits=self.digits)

    def remaining_seconds(self, timestamp: float) -> int:
        """Whole seconds until the code for `timestamp` stops being current."""
        return self.period_seconds - int(timestamp) % self.period_seconds
