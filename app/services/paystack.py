import hmac
import hashlib
import logging
from decimal import Decimal
from typing import Dict, Any, List, Optional

from app.core.config import settings
from app.core.errors import ProviderRejected, ProviderResponseError
from app.schemas.paystack import (
    BalanceEntry,
    Bank,
    DedicatedAccount,
    InitiatedTransfer,
    PaystackCustomer,
    ResolvedAccount,
    TransferRecipient,
    VerifiedTransfer,
)
from app.services.provider import ProviderClient
from app.utils.money import from_minor_units

logger = logging.getLogger(__name__)

class PaystackService(ProviderClient):
    """
    Client for the Paystack REST API.

    Transfer amounts are sent in kobo; callers pass them already converted.
    """
    provider_name = "Paystack"

    def __init__(self, secret_key: Optional[str], base_url: str = "https://api.paystack.co", **kwargs):
        super().__init__(base_url, **kwargs)
        self.secret_key = secret_key

    @classmethod
    def from_settings(cls) -> "PaystackService":
        return cls(
            settings.PAYSTACK_SECRET_KEY,
            settings.PAYSTACK_BASE_URL,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            max_retries=settings.PROVIDER_MAX_RETRIES,
        )

    def get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def verify_signature(data: bytes, signature: str, secret_key: Optional[str] = None) -> bool:
        """
        Verify the Paystack webhook signature over the raw request body.
        """
        secret_key = secret_key or settings.PAYSTACK_SECRET_KEY
        if not secret_key or not signature:
            return False

        hash_object = hmac.new(
            secret_key.encode('utf-8'),
            msg=data,
            digestmod=hashlib.sha512
        )
        expected_signature = hash_object.hexdigest()
        return hmac.compare_digest(expected_signature, signature)

    async def _call(self, method: str, path: str, *, json: Any = None, params: Optional[Dict[str, Any]] = None, idempotent: bool = False) -> Any:
        response = await self._send(method, f"{self.base_url}{path}", json=json, params=params, idempotent=idempotent)
        payload = self._decode(response)
        if not payload.get("status"):
            raise ProviderRejected(
                payload.get("message") or f"Paystack returned HTTP {response.status_code}",
                code=str(response.status_code),
            )
        return payload.get("data")

    async def resolve_account(self, account_number: str, bank_code: str) -> ResolvedAccount:
        data = await self._call(
            "GET", "/bank/resolve",
            params={"account_number": account_number, "bank_code": bank_code},
            idempotent=True,
        )
        return self._parse(ResolvedAccount, data)

    async def create_transfer_recipient(self, name: str, account_number: str, bank_code: str) -> TransferRecipient:
        # Paystack returns the existing recipient for an already registered account
        data = await self._call(
            "POST", "/transferrecipient",
            json={
                "type": "nuban",
                "name": name,
                "account_number": account_number,
                "bank_code": bank_code,
                "currency": "NGN",
            },
            idempotent=True,
        )
        return self._parse(TransferRecipient, data)

    async def initiate_transfer(
        self,
        *,
        amount_kobo: int,
        recipient_code: str,
        reference: str,
        reason: Optional[str] = None,
        source: str = "balance",
    ) -> InitiatedTransfer:
        data = await self._call(
            "POST", "/transfer",
            json={
                "source": source,
                "reason": reason or "",
                "amount": amount_kobo,
                "recipient": recipient_code,
                "reference": reference,
            },
            idempotent=True,
        )
        transfer = self._parse(InitiatedTransfer, data)
        logger.info(f"Transfer {transfer.transfer_code} initiated with reference {transfer.reference or reference}")
        return transfer

    async def verify_transfer(self, reference: str) -> VerifiedTransfer:
        data = await self._call("GET", f"/transfer/verify/{reference}", idempotent=True)
        return self._parse(VerifiedTransfer, data)

    async def fetch_float_balance(self) -> Decimal:
        data = await self._call("GET", "/balance", idempotent=True)
        if not isinstance(data, list):
            raise ProviderResponseError("Unexpected Paystack balance response")
        for raw in data:
            entry = self._parse(BalanceEntry, raw)
            if entry.currency == "NGN":
                return from_minor_units(entry.balance)
        return Decimal("0.00")

    async def create_customer(self, *, email: str, first_name: str, last_name: str, phone: str) -> PaystackCustomer:
        # Paystack returns the existing customer for a known email
        data = await self._call(
            "POST", "/customer",
            json={"email": email, "first_name": first_name, "last_name": last_name, "phone": phone},
            idempotent=True,
        )
        return self._parse(PaystackCustomer, data)

    async def create_dedicated_account(self, customer_code: str, preferred_bank: str) -> DedicatedAccount:
        data = await self._call(
            "POST", "/dedicated_account",
            json={"customer": customer_code, "preferred_bank": preferred_bank},
        )
        return self._parse(DedicatedAccount, data)

    async def list_banks(self) -> List[Bank]:
        data = await self._call("GET", "/bank", idempotent=True)
        if not isinstance(data, list):
            raise ProviderResponseError("Unexpected Paystack bank list response")
        return [self._parse(Bank, raw) for raw in data]

    async def fetch_customer(self, email_or_code: str) -> Dict[str, Any]:
        return await self._call("GET", f"/customer/{email_or_code}", idempotent=True)

    async def fetch_dedicated_account(self, dedicated_account_id: int) -> Dict[str, Any]:
        return await self._call("GET", f"/dedicated_account/{dedicated_account_id}", idempotent=True)
