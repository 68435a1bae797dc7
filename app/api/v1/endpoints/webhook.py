import json
import logging
from typing import Any, Dict
from fastapi import APIRouter, Request
from pydantic import ValidationError as PydanticValidationError

from app.api.deps import SessionDep
from app.core.errors import NotFoundError, SignatureInvalid, ValidationError
from app.models.user import User
from app.schemas.paystack import ChargeData, PaystackEvent
from app.schemas.response import APIResponse
from app.services.ledger import LedgerService
from app.services.notifications import dispatch_credit_notification
from app.services.paystack import PaystackService
from app.utils.money import from_minor_units

router = APIRouter()
logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"

@router.post("", response_model=APIResponse[Dict[str, Any]])
async def paystack_webhook(request: Request, session: SessionDep) -> Any:
    """
    Handle Paystack webhooks.

    The signature is checked against the raw body before anything is
    decoded. Every verified event is acknowledged with 200 unless the
    credit could not be stored, so Paystack only redelivers what we failed
    to record.
    """
    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    if not signature:
        raise ValidationError("No signature provided")
    if not PaystackService.verify_signature(body, signature):
        logger.warning(f"Rejected Paystack webhook with invalid signature from {request.client.host if request.client else 'unknown'}")
        raise SignatureInvalid()

    try:
        event = PaystackEvent.model_validate(json.loads(body))
    except (ValueError, PydanticValidationError):
        raise ValidationError("Malformed event payload")

    if not event.is_successful_charge:
        logger.info(f"Ignoring Paystack event '{event.event}'")
        return APIResponse(message="Event ignored", result={"event": event.event})

    try:
        charge = ChargeData.model_validate(event.data)
    except PydanticValidationError:
        raise ValidationError("Malformed charge payload")

    if not charge.customer.customer_code:
        logger.error(f"Charge {charge.reference} has no customer code")
        return APIResponse(message="Event ignored", result={"reference": charge.reference})

    amount = from_minor_units(charge.amount)
    try:
        entry = await LedgerService(session).record_credit(
            charge.customer.customer_code,
            amount,
            charge.reference,
            bank=charge.authorization.bank,
            account_name=charge.authorization.account_name,
            paid_at=charge.paid_at,
        )
    except NotFoundError:
        logger.error(f"No wallet for customer {charge.customer.customer_code}; charge {charge.reference} of {amount} not credited")
        return APIResponse(message="Event ignored", result={"reference": charge.reference})

    if entry is None:
        return APIResponse(message="Event already processed", result={"reference": charge.reference})

    user = await session.get(User, entry.user_id)
    if user:
        dispatch_credit_notification(
            email=user.email,
            name=user.fullname,
            amount=entry.amount,
            reference=charge.reference,
            date=entry.created_at,
        )

    return APIResponse(message="Wallet credited", result={"reference": charge.reference, "amount": amount})
