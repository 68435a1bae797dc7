from fastapi import APIRouter
from app.api.v1.endpoints import auth, bills, kyc, transactions, users, wallet, webhook

api_router = APIRouter()
api_router.include_router(users.router, prefix="/user", tags=["users"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
api_router.include_router(transactions.router, prefix="/transaction", tags=["transactions"])
api_router.include_router(bills.router, prefix="/bill", tags=["bills"])
api_router.include_router(kyc.router, prefix="/kyc", tags=["kyc"])
api_router.include_router(webhook.router, prefix="/webhook", tags=["webhooks"])
