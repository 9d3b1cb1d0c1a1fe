"""HMAC request signing for the Hanko Authentication API.

A signed request carries an ``Authorization: hanko <token>`` header where
``<token>`` is the unpadded base64 of a compact JSON envelope::

    {"apiKeyId": "...", "time": "<unix seconds>", "nonce": "...", "signature": "..."}

The signature is the hex HMAC-SHA256 over the canonical message::

    <apiKeyId>:<time>:<method>:<path>:<nonce>[:<hex sha256(body)>]

The body hash is only appended when the request has a body.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import re
import time
import uuid
from dataclasses import dataclass, field

from hanko.common.errors import ConfigurationError

AUTH_SCHEME = "hanko"
DELIMITER = ":"

_ENVELOPE_FIELDS = ("apiKeyId", "time", "nonce", "signature")
_TIME_PATTERN = re.compile(r"0|-?[1-9][0-9]*")


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


@dataclass(frozen=True)
class SigningInput:
    """Per-request attributes covered by the signature."""

    api_key_id: str
    api_secret: str | bytes = field(repr=False)
    method: str
    path: str
    body: bytes = b""

    def __post_init__(self) -> None:
        if not self.api_secret:
            raise ConfigurationError("API secret is required for HMAC signing")
        if not self.api_key_id:
            raise ConfigurationError("API key id is required for HMAC signing")
        object.__setattr__(self, "body", _to_bytes(self.body))


@dataclass(frozen=True)
class HmacEnvelope:
    """Decoded contents of a ``hanko`` authorization token."""

    api_key_id: str
    time: int
    nonce: str
    signature: str

    def to_dict(self) -> dict[str, str]:
        return {
            "apiKeyId": self.api_key_id,
            "time": str(self.time),
            "nonce": self.nonce,
            "signature": self.signature,
        }


def hash_body(body: str | bytes) -> str:
    """Hex-encoded SHA-256 digest of a request body."""
    return hashlib.sha256(_to_bytes(body)).hexdigest()


def build_message(
    api_key_id: str,
    timestamp: int,
    method: str,
    path: str,
    nonce: str,
    body: str | bytes = b"",
) -> str:
    """Build the canonical message an HMAC signature is computed over."""
    parts = [api_key_id, str(timestamp), method, path, nonce]
    if body:
        parts.append(hash_body(body))
    return DELIMITER.join(parts)


def compute_signature(secret: str | bytes, message: str) -> str:
    """Create a hex-encoded HMAC-SHA256 signature."""
    return hmac.new(_to_bytes(secret), message.encode("utf-8"), hashlib.sha256).hexdigest()


def new_nonce() -> str:
    """Generate a fresh random nonce."""
    return str(uuid.uuid4())


def create_envelope(
    signing_input: SigningInput,
    timestamp: int | None = None,
    nonce: str | None = None,
) -> HmacEnvelope:
    """
    Sign a request and return the resulting envelope.

    Args:
        signing_input: Request attributes and credentials
        timestamp: Signing time in Unix seconds (defaults to now)
        nonce: Replay-protection nonce (defaults to a new UUIDv4)

    Returns:
        Envelope carrying the key id, time, nonce and signature
    """
    if timestamp is None:
        timestamp = int(time.time())
    if nonce is None:
        nonce = new_nonce()

    message = build_message(
        signing_input.api_key_id,
        timestamp,
        signing_input.method,
        signing_input.path,
        nonce,
        signing_input.body,
    )
    return HmacEnvelope(
        api_key_id=signing_input.api_key_id,
        time=timestamp,
        nonce=nonce,
        signature=compute_signature(signing_input.api_secret, message),
    )


def encode_envelope(envelope: HmacEnvelope) -> str:
    """Serialize an envelope to compact JSON and base64 without padding."""
    raw = json.dumps(envelope.to_dict(), separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii").rstrip("=")


def decode_envelope(token: str) -> HmacEnvelope:
    """
    Decode a token produced by ``encode_envelope``.

    A leading ``hanko`` scheme is stripped, so a raw Authorization header
    value is accepted as well.

    Raises:
        ValueError: If the token is not a well-formed envelope
    """
    token = token.strip()
    scheme, _, rest = token.partition(" ")
    if rest and scheme.lower() == AUTH_SCHEME:
        token = rest.strip()

    padded = token + "=" * (-len(token) % 4)
    try:
        data = json.loads(base64.b64decode(padded, validate=True))
    except ValueError as e:
        raise ValueError(f"Malformed HMAC token: {e}") from e

    if not isinstance(data, dict) or set(data) != set(_ENVELOPE_FIELDS):
        raise ValueError("HMAC token must contain exactly apiKeyId, time, nonce and signature")
    if not all(isinstance(data[name], str) for name in _ENVELOPE_FIELDS):
        raise ValueError("HMAC token fields must be strings")

    # canonical ASCII integer, exactly as encode_envelope writes it
    if not _TIME_PATTERN.fullmatch(data["time"]):
        raise ValueError(f"Invalid HMAC time: {data['time']!r}")
    timestamp = int(data["time"])

    return HmacEnvelope(
        api_key_id=data["apiKeyId"],
        time=timestamp,
        nonce=data["nonce"],
        signature=data["signature"],
    )


def sign(
    api_secret: str | bytes,
    api_key_id: str,
    method: str,
    path: str,
    body: str | bytes = b"",
    *,
    timestamp: int | None = None,
    nonce: str | None = None,
) -> str:
    """
    Produce the credential for a ``hanko`` Authorization header.

    Args:
        api_secret: Shared API secret (never transmitted)
        api_key_id: Identifier of the API key
        method: HTTP method exactly as sent
        path: Request path without query string
        body: Exact request body bytes, empty if there is none
        timestamp: Fixed signing time, for reproducible tokens
        nonce: Fixed nonce, for reproducible tokens

    Returns:
        Base64 token to be sent as ``hanko <token>``

    Raises:
        ConfigurationError: If the secret or key id is empty
    """
    signing_input = SigningInput(
        api_key_id=api_key_id,
        api_secret=api_secret,
        method=method,
        path=path,
        body=_to_bytes(body),
    )
    return encode_envelope(create_envelope(signing_input, timestamp=timestamp, nonce=nonce))


def verify(
    api_secret: str | bytes,
    token: str,
    method: str,
    path: str,
    body: str | bytes = b"",
    *,
    max_age: int | None = None,
    now: int | None = None,
) -> bool:
    """Verify a token against a request in constant time."""
    try:
        envelope = decode_envelope(token)
    except ValueError:
        return False

    if max_age is not None:
        current = int(time.time()) if now is None else now
        if abs(current - envelope.time) > max_age:
            return False

    message = build_message(
        envelope.api_key_id,
        envelope.time,
        method,
        path,
        envelope.nonce,
        body,
    )
    expected = compute_signature(api_secret, message)
    return hmac.compare_digest(expected.encode("ascii"), envelope.signature.encode("utf-8"))
