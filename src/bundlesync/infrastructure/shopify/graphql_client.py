"""GraphQL client for the Shopify Admin API.

Transport and protocol failures are translated into the domain's
InventoryServiceError hierarchy here, so adapters above this layer never
see httpx exceptions.  The mapping is driven by one question: could the
request have been applied?

  connect error / pool timeout       -> ServiceUnavailableError (not sent)
  HTTP 429, GraphQL THROTTLED        -> ThrottledError           (not applied)
  other 4xx, GraphQL errors          -> PermanentServiceError    (refused)
  read/write timeout, 5xx, bad body  -> AmbiguousResponseError   (unknown)
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from bundlesync.domain.exceptions import (
    AmbiguousResponseError,
    PermanentServiceError,
    ServiceUnavailableError,
    ThrottledError,
)
from bundlesync.infrastructure.config import ShopConnection

logger = structlog.get_logger(__name__)


class ShopifyGraphQLClient:
    """One shop's Admin API handle.  Safe to share between threads."""

    def __init__(
        self,
        connection: ShopConnection,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._connection = connection
        self._http = httpx.Client(
            base_url=f"https://{connection.shop}/admin/api/{connection.api_version}",
            headers={
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": connection.access_token,
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def shop(self) -> str:
        return self._connection.shop

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a query or mutation and return its ``data`` object."""
        try:
            response = self._http.post(
                "/graphql.json",
                json={"query": query, "variables": variables or {}},
            )
        except (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout) as exc:
            raise ServiceUnavailableError(f"Could not reach {self.shop}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise AmbiguousResponseError(f"Request to {self.shop} timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise AmbiguousResponseError(f"Request to {self.shop} failed: {exc}") from exc

        self._raise_for_status(response)

        try:
            payload = response.json()
        except ValueError as exc:
            raise AmbiguousResponseError(
                f"Unreadable response from {self.shop}: {exc}"
            ) from exc

        self._raise_for_errors(payload)
        return payload.get("data") or {}

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ShopifyGraphQLClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- Error classification -------------------------------------------------

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 429:
            raise ThrottledError(
                f"Rate limited by {self.shop}",
                retry_after=_retry_after_header(response),
            )
        if status >= 500:
            raise AmbiguousResponseError(f"{self.shop} returned HTTP {status}")
        raise PermanentServiceError(f"{self.shop} returned HTTP {status}: {response.text[:200]}")

    def _raise_for_errors(self, payload: dict[str, Any]) -> None:
        errors = payload.get("errors") or []
        if not errors:
            return
        if any(_error_code(error) == "THROTTLED" for error in errors):
            raise ThrottledError(
                f"Query cost throttled by {self.shop}",
                retry_after=_retry_after_cost(payload),
            )
        messages = "; ".join(str(error.get("message", error)) for error in errors)
        logger.error("GraphQL request rejected", shop=self.shop, errors=messages)
        raise PermanentServiceError(f"GraphQL errors: {messages}")


def raise_for_user_errors(user_errors: list[dict[str, Any]] | None, action: str) -> None:
    """Raise PermanentServiceError for a mutation's ``userErrors`` list."""
    if not user_errors:
        return
    messages = "; ".join(error.get("message", "unknown error") for error in user_errors)
    raise PermanentServiceError(f"{action} rejected: {messages}")


def _error_code(error: Any) -> str | None:
    if not isinstance(error, dict):
        return None
    return (error.get("extensions") or {}).get("code")


def _retry_after_header(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    try:
        return float(raw) if raw is not None else None
    except ValueError:
        return None


def _retry_after_cost(payload: dict[str, Any]) -> float | None:
    """Seconds until the leaky bucket can afford the query again."""
    cost = (payload.get("extensions") or {}).get("cost") or {}
    throttle = cost.get("throttleStatus") or {}
    requested = cost.get("requestedQueryCost")
    available = throttle.get("currentlyAvailable")
    restore_rate = throttle.get("restoreRate")
    if requested is None or available is None or not restore_rate:
        return None
    return max(requested - available, 0) / restore_rate
