"""
Hanko SDK: Python client for the Hanko Authentication API.

Requests are authenticated with an HMAC-SHA256 signature over the method,
path, body, timestamp and a per-request nonce.
"""

from hanko.client import ClientConfig, HankoClient
from hanko.common.errors import ApiError, ConfigurationError
from hanko.common.hmac import sign, verify

__version__ = "1.0.0"

__all__ = [
    "ApiError",
    "ClientConfig",
    "ConfigurationError",
    "HankoClient",
    "sign",
    "verify",
]
