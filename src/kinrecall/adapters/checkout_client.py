"""HTTP client for the checkout endpoint."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class CheckoutClient(Protocol):
    """Interface for creating checkout sessions."""

    async def create_checkout_session(
        self, payload: dict[str, str]
    ) -> dict[str, object]:
        """Post the checkout request and return the decoded JSON body."""


@dataclass
class HttpxCheckoutClient(CheckoutClient):
    """HTTPX-backed checkout client."""

    endpoint: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10

    @classmethod
    def create(
        cls, endpoint: str, timeout_seconds: float = 10
    ) -> "HttpxCheckoutClient":
        """Create a checkout client with a managed httpx session."""
        return cls(
            endpoint=endpoint,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def create_checkout_session(
        self, payload: dict[str, str]
    ) -> dict[str, object]:
        """Create a checkout session.

        Error bodies such as ``{"error": ...}`` are returned as-is whatever
        the status code; only transport failures and undecodable bodies
        raise.
        """
        response = await self.http_client.post(
            self.endpoint, json=payload, timeout=self.timeout_seconds
        )
        try:
            body = response.json()
        except ValueError as exc:
            raise httpx.DecodingError(
                f"Checkout returned a non-JSON body ({response.status_code})",
                request=response.request,
            ) from exc
        return body if isinstance(body, dict) else {}

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
