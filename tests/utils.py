import hashlib
import hmac
import json
import uuid
from decimal import Decimal
from typing import Any, Callable, List, Optional

import httpx
from sqlmodel import select

from app.core import security
from app.core.config import settings
from app.models.transaction import TransferAttempt, UserTransaction
from app.models.user import User
from app.models.wallet import Wallet
from app.services.dojah import DojahService
from app.services.paystack import PaystackService

PAYSTACK_URL = "https://paystack.test"
DOJAH_URL = "https://dojah.test"
DOJAH_KYC_URL = "https://kyc.dojah.test"

class ProviderStub:
    """
    Routes requests made through an httpx.MockTransport to canned answers and
    records every request. A route ending in "/" matches any path below it.
    """

    def __init__(self):
        self.routes: List[tuple] = []
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, payload: Any = None, status_code: int = 200, handler: Optional[Callable] = None):
        # Later registrations win
        self.routes.insert(0, (method, path, payload, status_code, handler))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for method, path, payload, status_code, handler in self.routes:
            if method != request.method:
                continue
            if request.url.path == path or (path.endswith("/") and request.url.path.startswith(path)):
                if handler is not None:
                    return handler(request)
                return httpx.Response(status_code, json=payload)
        return httpx.Response(404, json={"status": False, "message": f"No stub for {request.method} {request.url.path}"})

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and (r.url.path == path or (path.endswith("/") and r.url.path.startswith(path)))
        ]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)

def _echo_transfer(request: httpx.Request) -> httpx.Response:
    body = request_json(request)
    return httpx.Response(200, json={
        "status": True,
        "message": "Transfer has been queued",
        "data": {
            "transfer_code": "TRF_test123",
            "reference": body["reference"],
            "status": "success",
            "amount": body["amount"],
            "recipient": 4521,
        },
    })

def _verified_transfer(status: str) -> Callable:
    def handler(request: httpx.Request) -> httpx.Response:
        reference = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, json={
            "status": True,
            "message": "Transfer retrieved",
            "data": {
                "status": status,
                "reference": reference,
                "transfer_code": "TRF_test123",
                "recipient": {
                    "recipient_code": "RCP_test123",
                    "name": "JANE DOE",
                    "details": {"account_number": "0123456789", "bank_code": "058", "bank_name": "Guaranty Trust Bank"},
                },
            },
        })
    return handler

def stub_paystack_balance(stub: ProviderStub, kobo: int):
    stub.on("GET", "/balance", {"status": True, "message": "Balances retrieved", "data": [{"currency": "NGN", "balance": kobo}]})

def stub_verified_status(stub: ProviderStub, status: str):
    stub.on("GET", "/transfer/verify/", handler=_verified_transfer(status))

def stub_paystack_defaults(stub: ProviderStub):
    stub_paystack_balance(stub, 50_000_000)
    stub.on("GET", "/bank/resolve", {
        "status": True,
        "message": "Account number resolved",
        "data": {"account_number": "0123456789", "account_name": "JANE DOE", "bank_id": 9},
    })
    stub.on("POST", "/transferrecipient", {
        "status": True,
        "message": "Transfer recipient created successfully",
        "data": {"recipient_code": "RCP_test123", "name": "JANE DOE", "active": True},
    })
    stub.on("POST", "/transfer", handler=_echo_transfer)
    stub_verified_status(stub, "success")
    stub.on("POST", "/customer", {
        "status": True,
        "message": "Customer created",
        "data": {"customer_code": "CUS_test123", "email": "jane@example.com", "id": 1173},
    })
    stub.on("POST", "/dedicated_account", {
        "status": True,
        "message": "NUBAN successfully created",
        "data": {
            "id": 253,
            "account_name": "GOLLET/JANE DOE",
            "account_number": "9930000737",
            "bank": {"name": "Wema Bank", "id": 20, "slug": "wema-bank"},
            "customer": {"customer_code": "CUS_test123"},
        },
    })
    stub.on("GET", "/bank", {
        "status": True,
        "message": "Banks retrieved",
        "data": [
            {"name": "Guaranty Trust Bank", "slug": "guaranty-trust-bank", "code": "058", "id": 9},
            {"name": "Wema Bank", "slug": "wema-bank", "code": "035", "id": 20},
        ],
    })

def stub_dojah_balance(stub: ProviderStub, balance: str):
    stub.on("GET", "/api/v1/balance", {"entity": {"wallet_balance": balance}})

def stub_dojah_defaults(stub: ProviderStub):
    stub_dojah_balance(stub, "10000.00")
    stub.on("POST", "/api/v1/purchase/airtime", {
        "entity": {"data": [{"destination": "08012345678", "status": "Sent"}], "reference_id": "DJ-AIR-0001"},
    })
    stub.on("POST", "/api/v1/purchase/data", {
        "entity": {"data": [{"destination": "08012345678", "status": "Sent"}], "reference_id": "DJ-DATA-0001"},
    })
    stub.on("GET", "/api/v1/purchase/data/plans", {
        "entity": [
            {"plan": "MTN-1GB-30D", "amount": 300, "description": "MTN 1GB, 30 days"},
            {"plan": "MTN-2GB-30D", "amount": 1200, "description": "MTN 2GB, 30 days"},
        ],
    })
    stub.on("POST", "/api/v1/kyc/photoid/verify", {
        "entity": {"selfie": {"match": True, "confidence_value": 99.8}},
    })

def make_paystack(stub: ProviderStub, max_retries: int = 0) -> PaystackService:
    service = PaystackService(settings.PAYSTACK_SECRET_KEY, PAYSTACK_URL, transport=stub.transport, max_retries=max_retries)
    service.retry_backoff_seconds = 0
    return service

def make_dojah(stub: ProviderStub, max_retries: int = 0) -> DojahService:
    service = DojahService("app-id", "test-secret", DOJAH_URL, DOJAH_URL, transport=stub.transport, max_retries=max_retries)
    service.retry_backoff_seconds = 0
    return service

async def seed_user(session_factory, email: str = None, password: str = "password123", fullname: str = "Jane Doe") -> User:
    if not email:
        email = f"user_{uuid.uuid4().hex[:8]}@example.com"
    async with session_factory() as session:
        user = User(
            fullname=fullname,
            email=email,
            phone="08012345678",
            password=security.get_password_hash(password),
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

async def seed_wallet(session_factory, user_id: int, balance: Decimal = Decimal("0.00"), customer_code: str = None) -> Wallet:
    async with session_factory() as session:
        wallet = Wallet(
            user_id=user_id,
            customer_code=customer_code or f"CUS_{uuid.uuid4().hex[:10]}",
            account_number="9930000737",
            bank_name="Wema Bank",
            current_balance=balance,
        )
        session.add(wallet)
        await session.commit()
        await session.refresh(wallet)
        return wallet

async def seed_funded_user(session_factory, balance: str = "1000.00"):
    user = await seed_user(session_factory)
    wallet = await seed_wallet(session_factory, user.user_id, Decimal(balance))
    return user, wallet

async def seed_attempt(session_factory, user_id: int, amount: Decimal, status: str) -> TransferAttempt:
    async with session_factory() as session:
        attempt = TransferAttempt(
            reference=f"trf_{uuid.uuid4().hex}",
            user_id=user_id,
            amount=amount,
            account_number="0123456789",
            bank_code="058",
            status=status,
        )
        session.add(attempt)
        await session.commit()
        await session.refresh(attempt)
        return attempt

async def get_wallet(session_factory, wallet_id: int) -> Wallet:
    async with session_factory() as session:
        return await session.get(Wallet, wallet_id)

async def get_ledger(session_factory, user_id: int = None) -> List[UserTransaction]:
    async with session_factory() as session:
        query = select(UserTransaction).order_by(UserTransaction.id)
        if user_id is not None:
            query = query.where(UserTransaction.user_id == user_id)
        result = await session.execute(query)
        return list(result.scalars().all())

async def get_attempts(session_factory) -> List[TransferAttempt]:
    async with session_factory() as session:
        result = await session.execute(select(TransferAttempt).order_by(TransferAttempt.id))
        return list(result.scalars().all())

def sign(body: bytes, secret: str = None) -> str:
    secret = secret or settings.PAYSTACK_SECRET_KEY
    return hmac.new(secret.encode("utf-8"), msg=body, digestmod=hashlib.sha512).hexdigest()

def charge_event(customer_code: str, amount_kobo: int, reference: str = None, event: str = "charge.success", status: str = "success") -> bytes:
    return json.dumps({
        "event": event,
        "data": {
            "status": status,
            "reference": reference or f"ref_{uuid.uuid4().hex[:12]}",
            "amount": amount_kobo,
            "paid_at": "2024-05-01T10:15:00.000Z",
            "customer": {"customer_code": customer_code, "email": "jane@example.com"},
            "authorization": {"bank": "Wema Bank", "account_name": "JANE DOE"},
        },
    }).encode("utf-8")
