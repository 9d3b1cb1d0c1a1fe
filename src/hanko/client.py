"""HTTP client for the Hanko Authentication API."""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import aiohttp

from hanko.common.errors import ApiError, ConfigurationError, wrap_error
from hanko.common.hmac import AUTH_SCHEME, sign
from hanko.common.logging import get_logger
from hanko.common.settings import Settings

logger = get_logger(__name__)

SECRET_SCHEME = "secret"


@dataclass(frozen=True)
class ClientConfig:
    """Immutable connection and credential settings for a HankoClient."""

    base_url: str
    api_secret: str = field(repr=False)
    api_key_id: str | None = None
    api_version: str = "v1"
    timeout: float = 10.0

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConfigurationError("base_url is required")
        if not self.api_secret:
            raise ConfigurationError("api_secret is required")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def hmac_enabled(self) -> bool:
        return bool(self.api_key_id)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        """Build a config from environment-driven settings."""
        if not settings.api_secret:
            raise ConfigurationError("HANKO_API_SECRET is not set")
        return cls(
            base_url=settings.base_url,
            api_secret=settings.api_secret,
            api_key_id=settings.api_key_id or None,
            api_version=settings.api_version,
            timeout=settings.http_timeout,
        )


class HankoClient:
    """
    Base client for the Hanko Authentication API.

    Every request carries an Authorization header. With an api key id
    configured the header is an HMAC token (``hanko <token>``), otherwise
    the API secret is sent as-is (``secret <api secret>``).
    """

    def __init__(
        self,
        config: ClientConfig,
        session: aiohttp.ClientSession | None = None,
        log: Any | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Connection and credential settings
            session: Optional externally managed aiohttp session
            log: Optional structlog logger to use instead of the module logger
        """
        self._config = config
        self._timeout = aiohttp.ClientTimeout(total=config.timeout)
        self._session = session
        self._owns_session = session is None
        self._log = log or logger

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> "HankoClient":
        """Enter async context."""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session exists."""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    def url(self, *parts: str) -> str:
        """Build ``<base_url>/<api_version>/<parts...>``."""
        segments = [self._config.base_url, self._config.api_version]
        segments.extend(part.strip("/") for part in parts if part)
        return "/".join(segments)

    def authorization_header(self, method: str, path: str, body: bytes = b"") -> str:
        """
        Build the Authorization header value for a request.

        Args:
            method: HTTP method as sent
            path: Request path without query string
            body: Exact body bytes that will be sent

        Returns:
            Authorization header value
        """
        if self._config.hmac_enabled:
            token = sign(
                self._config.api_secret,
                self._config.api_key_id or "",
                method,
                path,
                body,
            )
            return f"{AUTH_SCHEME} {token}"
        return f"{SECRET_SCHEME} {self._config.api_secret}"

    async def request(
        self,
        action: str,
        method: str,
        url: str,
        payload: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an authenticated request and decode the JSON response.

        Args:
            action: Short description of the operation, used in logs
            method: HTTP method
            url: Absolute request URL (see ``url``)
            payload: JSON-serializable request body, or None for no body
            params: Optional query parameters (not covered by the signature)

        Returns:
            Decoded JSON response, or None if the response has no body

        Raises:
            ApiError: On non-2xx responses and on SDK-side failures
        """
        method = method.upper()
        log = self._log.bind(action=action, method=method, url=url)
        log.debug("New http request")

        try:
            body = b"" if payload is None else json.dumps(payload, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            log.error("Failed to encode http request body", error=str(e))
            raise wrap_error(e) from e

        headers = {
            "Authorization": self.authorization_header(method, urlsplit(url).path, body),
            "Content-Type": "application/json",
        }

        session = self._ensure_session()
        try:
            response = await session.request(
                method,
                url,
                data=body or None,
                headers=headers,
                params=params,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error("Hanko api call failed", error=str(e) or type(e).__name__)
            raise wrap_error(e) from e

        try:
            async with response:
                text = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
            log.error("Failed to read the hanko api response", error=str(e) or type(e).__name__)
            raise wrap_error(e) from e

        if not 200 <= status < 300:
            error = ApiError.from_response(status, _try_json(text))
            log.error("Hanko api call failed", status=status, error=str(error))
            raise error

        if not text.strip():
            log.info("Hanko api call succeeded", status=status)
            return None

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            log.error("Failed to decode the hanko api response", status=status)
            raise wrap_error(e) from e

        log.debug("Http response body decoded", response_type=type(data).__name__)
        log.info("Hanko api call succeeded", status=status)
        return data


def _try_json(text: str) -> Any:
    try:
        return json.loads(text) if text else None
    except json.JSONDecodeError:
        return text
