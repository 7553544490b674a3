"""
Shared Razorpay HTTP plumbing.

Basic-auth aiohttp session, circuit breaker, latency metrics and the
translation of HTTP failures into gateway exceptions. Payouts and
checkout orders build on it.
"""

import asyncio
import time
from dataclasses import replace
from typing import Any, Dict, Optional

import aiohttp

from tresorier.domain.exceptions import (
    GatewayDeclinedError,
    GatewayError,
    GatewayTimeoutError,
)
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import (
    gateway_request_duration_seconds,
    gateway_requests_total,
)
from tresorier.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerOpenError,
)

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.razorpay.com/v1"


class _ServerError(aiohttp.ClientError):
    """5xx from Razorpay; counted by the circuit breaker."""

    def __init__(self, status: int, body: str):
        super().__init__(f"Server error {status}: {body}")
        self.status = status


class RazorpayClient:
    """
    Base for Razorpay API clients.

    Error mapping:
    - 4xx: GatewayDeclinedError (not counted by the breaker)
    - 5xx / network error / open breaker: GatewayError
    - timeout: GatewayTimeoutError (outcome unknown)
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        gateway_name: str,
        base_url: str = DEFAULT_BASE_URL,
        total_timeout: float = 30.0,
        connect_timeout: float = 10.0,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
    ):
        """
        Args:
            key_id: API key id (basic auth user)
            key_secret: API key secret (basic auth password)
            gateway_name: Breaker name and metrics label
            base_url: API base URL
            total_timeout: Per-request timeout (default: 30s)
            connect_timeout: Connection timeout (default: 10s)
            circuit_breaker_config: Optional Circuit Breaker config
        """
        self.gateway_name = gateway_name
        self.base_url = base_url.rstrip("/")
        self.total_timeout = total_timeout
        self.auth = aiohttp.BasicAuth(key_id, key_secret)
        self.timeout = aiohttp.ClientTimeout(
            total=total_timeout,
            connect=connect_timeout,
        )
        self._session: Optional[aiohttp.ClientSession] = None

        cb_config = replace(
            circuit_breaker_config or CircuitBreakerConfig(),
            tracked_exceptions=(aiohttp.ClientError, asyncio.TimeoutError),
        )
        self.circuit_breaker = CircuitBreaker(gateway_name, cb_config)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                auth=self.auth,
                connector=aiohttp.TCPConnector(
                    limit=50,
                    limit_per_host=20,
                    ttl_dns_cache=300,
                ),
            )
        return self._session

    async def _post(
        self,
        endpoint: str,
        payload: dict,
        operation: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        POST through the circuit breaker and translate failures.

        Args:
            endpoint: API endpoint path
            payload: Request JSON payload
            operation: Operation name for metrics
            headers: Extra request headers

        Returns:
            Parsed JSON body
        """
        start = time.perf_counter()
        try:
            data = await self.circuit_breaker.call(
                self._post_once, endpoint, payload, headers
            )
            self._record(operation, "success", start)
            return data

        except CircuitBreakerOpenError as e:
            self._record(operation, "circuit_open", start)
            raise GatewayError(f"Razorpay unavailable: {e}") from e

        except GatewayDeclinedError:
            self._record(operation, "declined", start)
            raise

        except asyncio.TimeoutError as e:
            self._record(operation, "timeout", start)
            logger.error(f"Razorpay {operation} timed out")
            raise GatewayTimeoutError(operation, self.total_timeout) from e

        except aiohttp.ClientError as e:
            self._record(operation, "error", start)
            logger.error(f"Razorpay {operation} failed: {e}")
            raise GatewayError(
                f"Razorpay error during {operation}",
                status_code=getattr(e, "status", None),
            ) from e

    async def _post_once(
        self,
        endpoint: str,
        payload: dict,
        headers: Optional[Dict[str, str]],
    ) -> Dict[str, Any]:
        """Single HTTP request attempt (called by circuit breaker)."""
        session = await self._get_session()
        url = f"{self.base_url}{endpoint}"

        async with session.post(url, json=payload, headers=headers) as response:
            if response.status >= 500:
                raise _ServerError(response.status, await response.text())

            if response.status >= 400:
                reason = await self._error_description(response)
                raise GatewayDeclinedError(reason, status_code=response.status)

            return await response.json()

    @staticmethod
    async def _error_description(response: aiohttp.ClientResponse) -> str:
        try:
            body = await response.json()
        except (aiohttp.ContentTypeError, ValueError):
            return (await response.text())[:200] or f"HTTP {response.status}"
        error = body.get("error") or {}
        return error.get("description") or f"HTTP {response.status}"

    def _record(self, operation: str, status: str, start: float) -> None:
        gateway_requests_total.labels(
            gateway=self.gateway_name, operation=operation, status=status
        ).inc()
        gateway_request_duration_seconds.labels(
            gateway=self.gateway_name, operation=operation
        ).observe(time.perf_counter() - start)

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
