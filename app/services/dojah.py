import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.errors import ProviderRejected, ProviderResponseError
from app.schemas.dojah import DataPlan, DojahBalance, PhotoIdVerdict, PurchaseEntity
from app.services.provider import ProviderClient
from app.utils.money import to_major

logger = logging.getLogger(__name__)

def format_amount(amount: Decimal) -> str:
    amount = to_major(amount)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount, "f")

class DojahService(ProviderClient):
    """
    Client for the Dojah billing and identity API.

    Dojah wraps results in `entity` and reports failures in `error`.
    """
    provider_name = "Dojah"

    def __init__(
        self,
        app_id: Optional[str],
        secret_key: Optional[str],
        base_url: str = "https://api.dojah.io",
        kyc_base_url: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(base_url, **kwargs)
        self.app_id = app_id
        self.secret_key = secret_key
        self.kyc_base_url = (kyc_base_url or base_url).rstrip("/")

    @classmethod
    def from_settings(cls) -> "DojahService":
        return cls(
            settings.DOJAH_APP_ID,
            settings.DOJAH_SECRET_KEY,
            settings.DOJAH_BASE_URL,
            settings.DOJAH_KYC_BASE_URL,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            max_retries=settings.PROVIDER_MAX_RETRIES,
        )

    def get_headers(self) -> Dict[str, str]:
        return {
            "AppId": self.app_id or "",
            "Authorization": self.secret_key or "",
            "accept": "application/json",
            "content-type": "application/json",
        }

    async def _call(self, method: str, url: str, *, json: Any = None, idempotent: bool = False) -> Dict[str, Any]:
        response = await self._send(method, url, json=json, idempotent=idempotent)
        payload = self._decode(response)
        error = payload.get("error")
        if response.status_code != 200 or error:
            if isinstance(error, dict):
                error = error.get("message") or str(error)
            raise ProviderRejected(
                error or payload.get("message") or f"Dojah returned HTTP {response.status_code}",
                code=str(response.status_code),
            )
        return payload

    async def fetch_float_balance(self) -> Decimal:
        payload = await self._call("GET", f"{self.base_url}/api/v1/balance", idempotent=True)
        balance = self._parse(DojahBalance, payload.get("entity"))
        return to_major(balance.wallet_balance)

    async def purchase_airtime(self, *, amount: Decimal, destination: str) -> PurchaseEntity:
        # Not idempotent upstream: never retried
        payload = await self._call(
            "POST", f"{self.base_url}/api/v1/purchase/airtime",
            json={"amount": format_amount(amount), "destination": destination},
        )
        return self._parse(PurchaseEntity, payload.get("entity"))

    async def purchase_data(self, *, plan: str, destination: str) -> PurchaseEntity:
        payload = await self._call(
            "POST", f"{self.base_url}/api/v1/purchase/data",
            json={"plan": plan, "destination": destination},
        )
        return self._parse(PurchaseEntity, payload.get("entity", payload.get("result")))

    async def list_data_plans(self) -> List[DataPlan]:
        payload = await self._call("GET", f"{self.base_url}/api/v1/purchase/data/plans", idempotent=True)
        entity = payload.get("entity")
        if not isinstance(entity, list):
            raise ProviderResponseError("Unexpected Dojah data plan response")
        return [self._parse(DataPlan, raw) for raw in entity]

    async def verify_photo_id(self, *, photoid_image: str, selfie_image: str) -> PhotoIdVerdict:
        payload = await self._call(
            "POST", f"{self.kyc_base_url}/api/v1/kyc/photoid/verify",
            json={"photoid_image": photoid_image, "selfie_image": selfie_image},
        )
        return self._parse(PhotoIdVerdict, payload.get("entity"))
