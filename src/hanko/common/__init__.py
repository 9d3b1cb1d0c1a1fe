"""Common utilities for the Hanko SDK."""

from hanko.common.hmac import HmacEnvelope, decode_envelope, encode_envelope
from hanko.common.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "HmacEnvelope",
    "encode_envelope",
    "decode_envelope",
]
