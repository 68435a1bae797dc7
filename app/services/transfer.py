import logging
import uuid
from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import settings
from app.core.errors import NotFoundError, ProviderRejected, ServiceError
from app.models.enums import Narration, TransferStatus
from app.models.transaction import TransferAttempt, UserTransaction
from app.schemas.transaction import FundTransferRequest
from app.services.ledger import LedgerService
from app.services.paystack import PaystackService
from app.utils.clock import utcnow
from app.utils.money import to_minor_units

logger = logging.getLogger(__name__)

# Verify statuses that mean Paystack accepted the transfer; anything else
# (failed, reversed, abandoned, rejected, blocked, otp, ...) is not debited
ACCEPTED_TRANSFER_STATES = {"success", "pending", "received"}

# Once a recipient exists the next call moves money, so a failure that is not
# an explicit rejection leaves the outcome unknown
IN_FLIGHT_STATES = {TransferStatus.RECIPIENT_CREATED, TransferStatus.INITIATED, TransferStatus.VERIFIED}

def new_transfer_reference() -> str:
    return f"trf_{uuid.uuid4().hex}"

class TransferWorkflow:
    """
    Fund transfer: resolve account, create recipient, initiate, verify, then
    debit the ledger.

    Each step feeds the next and the first failure aborts the rest. Provider
    steps cannot be rolled back; progress is kept on a TransferAttempt row,
    which also holds the amount against the wallet until it is recorded or
    fails.
    """

    def __init__(self, session: AsyncSession, paystack: PaystackService):
        self.session = session
        self.paystack = paystack
        self.ledger = LedgerService(session)

    async def execute(self, request: FundTransferRequest) -> Tuple[TransferAttempt, UserTransaction]:
        attempt = await self._reserve(request)
        try:
            return await self._run(attempt)
        except ServiceError as exc:
            await self._record_failure(attempt, exc)
            raise

    async def _reserve(self, request: FundTransferRequest) -> TransferAttempt:
        """
        Run both guards and open the attempt in one transaction under the
        wallet row lock, so concurrent spends see the hold.
        """
        try:
            await self.ledger.require_sufficient_balance(request.user_id, request.amount, for_update=True)
            await self.ledger.require_provider_float(self.paystack, request.amount)
            attempt = TransferAttempt(
                reference=new_transfer_reference(),
                user_id=request.user_id,
                amount=request.amount,
                account_number=request.account_number,
                bank_code=request.bank_code,
                reason=request.reason,
            )
            self.session.add(attempt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(attempt)
        return attempt

    async def _run(self, attempt: TransferAttempt) -> Tuple[TransferAttempt, UserTransaction]:
        resolved = await self.paystack.resolve_account(attempt.account_number, attempt.bank_code)
        await self._advance(attempt, TransferStatus.RESOLVED, account_name=resolved.account_name)

        recipient = await self.paystack.create_transfer_recipient(
            resolved.account_name, attempt.account_number, attempt.bank_code
        )
        await self._advance(attempt, TransferStatus.RECIPIENT_CREATED, recipient_code=recipient.recipient_code)

        transfer = await self.paystack.initiate_transfer(
            amount_kobo=to_minor_units(attempt.amount),
            recipient_code=recipient.recipient_code,
            reference=attempt.reference,
            reason=attempt.reason,
            source=settings.TRANSFER_SOURCE,
        )
        await self._advance(attempt, TransferStatus.INITIATED, transfer_code=transfer.transfer_code)

        verified = await self.paystack.verify_transfer(transfer.reference or attempt.reference)
        if verified.status not in ACCEPTED_TRANSFER_STATES:
            raise ProviderRejected(f"Transfer {verified.status}", code=verified.status)
        await self._advance(attempt, TransferStatus.VERIFIED, bank_name=verified.bank_name)

        # Committed together with the ledger entry, releasing the hold
        attempt.status = TransferStatus.RECORDED
        attempt.updated_at = utcnow()
        self.session.add(attempt)
        entry = await self.ledger.settle_debit(
            attempt.user_id,
            attempt.amount,
            transfer.reference or attempt.reference,
            Narration.TRANSFER,
            recipient_code=attempt.recipient_code,
            transfer_code=attempt.transfer_code,
            account_name=attempt.account_name,
            bank=attempt.bank_name,
            bank_code=attempt.bank_code,
        )
        logger.info(f"Transfer {attempt.reference} of {attempt.amount} for user {attempt.user_id} recorded")
        return attempt, entry

    async def _advance(self, attempt: TransferAttempt, status: TransferStatus, **changes) -> None:
        for key, value in changes.items():
            setattr(attempt, key, value)
        attempt.status = status
        attempt.updated_at = utcnow()
        self.session.add(attempt)
        await self.session.commit()

    async def _record_failure(self, attempt: TransferAttempt, exc: ServiceError) -> None:
        # A failed ledger write rolls the session back; reload before touching the row
        await self.session.refresh(attempt)
        if isinstance(exc, ProviderRejected) or attempt.status not in IN_FLIGHT_STATES:
            attempt.status = TransferStatus.FAILED
        else:
            logger.error(f"Transfer {attempt.reference} interrupted at '{attempt.status}': {exc.message}")
        attempt.error = exc.message
        attempt.updated_at = utcnow()
        self.session.add(attempt)
        await self.session.commit()

async def get_transfer_attempt(session: AsyncSession, reference: str) -> TransferAttempt:
    result = await session.execute(select(TransferAttempt).where(TransferAttempt.reference == reference))
    attempt = result.scalars().first()
    if not attempt:
        raise NotFoundError(f"No transfer found with reference {reference}")
    return attempt
