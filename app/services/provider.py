import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.core.errors import ProviderResponseError, ProviderUnreachable

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

class ProviderClient:
    """
    Shared transport for outbound provider calls.

    Every call carries a timeout. Transport failures and 5xx answers are
    retried only for calls flagged idempotent; anything else is attempted once.
    """
    provider_name = "provider"
    retry_backoff_seconds = 0.5

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        max_retries: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.transport = transport

    def get_headers(self) -> Dict[str, str]:
        raise NotImplementedError

    async def fetch_float_balance(self) -> Decimal:
        """
        Provider-side prepaid balance backing outbound spend, in major units.
        """
        raise NotImplementedError

    async def _send(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        idempotent: bool = False,
    ) -> httpx.Response:
        attempts = 1 + (self.max_retries if idempotent else 0)
        last_error = ""
        for attempt in range(attempts):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    response = await client.request(method, url, json=json, params=params, headers=self.get_headers())
            except httpx.TransportError as e:
                last_error = f"{type(e).__name__}: {e}"
            else:
                if response.status_code < 500:
                    return response
                last_error = f"HTTP {response.status_code}"

            logger.warning(f"{self.provider_name} {method} {url} failed on attempt {attempt+1}/{attempts}: {last_error}")
            if attempt < attempts - 1:
                await asyncio.sleep(self.retry_backoff_seconds * (attempt + 1))

        raise ProviderUnreachable(f"{self.provider_name} is unreachable: {last_error}")

    def _decode(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            raise ProviderResponseError(
                f"{self.provider_name} returned a non-JSON response (HTTP {response.status_code})",
                result=response.text[:500],
            )
        if not isinstance(payload, dict):
            raise ProviderResponseError(f"{self.provider_name} returned an unexpected payload")
        return payload

    def _parse(self, model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ProviderResponseError(
                f"Unexpected {self.provider_name} response: {e.error_count()} invalid field(s)",
                result=data if isinstance(data, (dict, list)) else None,
            )
