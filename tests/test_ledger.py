import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.core.errors import InsufficientLocalBalance, InsufficientProviderFloat, NotFoundError, ReconciliationGap
from app.models.enums import Narration, TransactionType, TransferStatus
from app.models.transaction import TransferAttempt
from app.services.ledger import LedgerService, SpendOutcome
from tests.utils import get_ledger, get_wallet, seed_attempt, seed_funded_user, seed_user, seed_wallet, stub_dojah_balance

@pytest.mark.asyncio
async def test_record_debit_snapshots_previous_balance(session_factory):
    user, wallet = await seed_funded_user(session_factory, "1000.00")

    async with session_factory() as session:
        entry = await LedgerService(session).record_debit(user.user_id, Decimal("250.50"), "ref-1", Narration.AIRTIME)

    assert entry.transaction_type == TransactionType.DEBIT
    assert entry.amount == Decimal("250.50")
    assert entry.customer_code == wallet.customer_code

    updated = await get_wallet(session_factory, wallet.wallet_id)
    assert updated.current_balance == Decimal("749.50")
    assert updated.previous_balance == Decimal("1000.00")

@pytest.mark.asyncio
async def test_record_debit_refuses_overdraft(session_factory):
    user, wallet = await seed_funded_user(session_factory, "100.00")

    async with session_factory() as session:
        with pytest.raises(InsufficientLocalBalance) as exc_info:
            await LedgerService(session).record_debit(user.user_id, Decimal("100.01"), "ref-2", Narration.AIRTIME)

    assert exc_info.value.current_balance == Decimal("100.00")
    assert (await get_wallet(session_factory, wallet.wallet_id)).current_balance == Decimal("100.00")
    assert await get_ledger(session_factory, user.user_id) == []

@pytest.mark.asyncio
async def test_balance_check_without_wallet(session_factory):
    user = await seed_user(session_factory)

    async with session_factory() as session:
        with pytest.raises(NotFoundError):
            await LedgerService(session).check_sufficient_balance(user.user_id, Decimal("1"))

@pytest.mark.asyncio
async def test_debits_draw_on_oldest_wallet(session_factory):
    user = await seed_user(session_factory)
    first = await seed_wallet(session_factory, user.user_id, Decimal("50.00"))
    second = await seed_wallet(session_factory, user.user_id, Decimal("500.00"))

    async with session_factory() as session:
        sufficient, balance = await LedgerService(session).check_sufficient_balance(user.user_id, Decimal("60"))

    assert not sufficient
    assert balance == Decimal("50.00")
    assert (await get_wallet(session_factory, second.wallet_id)).current_balance == Decimal("500.00")
    assert first.wallet_id < second.wallet_id

@pytest.mark.asyncio
async def test_concurrent_debits_never_overdraw(session_factory):
    """
    Five concurrent 300.00 debits against 1000.00: exactly three succeed.
    """
    user, wallet = await seed_funded_user(session_factory, "1000.00")

    async def debit(i):
        async with session_factory() as session:
            return await LedgerService(session).record_debit(
                user.user_id, Decimal("300.00"), f"concurrent-{i}", Narration.TRANSFER
            )

    results = await asyncio.gather(*(debit(i) for i in range(5)), return_exceptions=True)

    succeeded = [r for r in results if not isinstance(r, Exception)]
    refused = [r for r in results if isinstance(r, InsufficientLocalBalance)]
    assert len(succeeded) == 3
    assert len(refused) == 2

    updated = await get_wallet(session_factory, wallet.wallet_id)
    assert updated.current_balance == Decimal("100.00")
    assert len(await get_ledger(session_factory, user.user_id)) == 3

@pytest.mark.asyncio
async def test_record_credit_is_idempotent_on_reference(session_factory):
    user, wallet = await seed_funded_user(session_factory, "10.00")

    async with session_factory() as session:
        first = await LedgerService(session).record_credit(wallet.customer_code, Decimal("500.00"), "charge-1")
    async with session_factory() as session:
        second = await LedgerService(session).record_credit(wallet.customer_code, Decimal("500.00"), "charge-1")

    assert first is not None
    assert first.user_id == user.user_id
    assert first.transaction_type == TransactionType.CREDIT
    assert second is None

    updated = await get_wallet(session_factory, wallet.wallet_id)
    assert updated.current_balance == Decimal("510.00")
    assert updated.previous_balance == Decimal("10.00")
    assert len(await get_ledger(session_factory, user.user_id)) == 1

@pytest.mark.asyncio
async def test_record_credit_unknown_customer(session_factory):
    async with session_factory() as session:
        with pytest.raises(NotFoundError):
            await LedgerService(session).record_credit("CUS_missing", Decimal("10"), "charge-x")

    assert await get_ledger(session_factory) == []

@pytest.mark.asyncio
async def test_float_shortfall_alerts_operator(session_factory, dojah, dojah_stub, email_queue, monkeypatch):
    from app.core.config import settings
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "ops@gollet.test")
    stub_dojah_balance(dojah_stub, "50.00")

    async with session_factory() as session:
        with pytest.raises(InsufficientProviderFloat):
            await LedgerService(session).require_provider_float(dojah, Decimal("80"))

    email_queue.apply_async.assert_called_once()
    kwargs = email_queue.apply_async.call_args.kwargs["kwargs"]
    assert kwargs["email_to"] == "ops@gollet.test"
    assert kwargs["html_template"] == "float_alert.html"
    assert kwargs["environment"]["provider"] == "Dojah"

@pytest.mark.asyncio
async def test_float_alert_failure_does_not_mask_shortfall(session_factory, dojah, dojah_stub, email_queue, monkeypatch):
    from app.core.config import settings
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "ops@gollet.test")
    email_queue.apply_async.side_effect = ConnectionError("broker down")
    stub_dojah_balance(dojah_stub, "0.00")

    async with session_factory() as session:
        assert await LedgerService(session).check_provider_float(dojah, Decimal("1")) is False

@pytest.mark.asyncio
async def test_spend_skips_purchase_when_balance_short(session_factory, dojah):
    user, _ = await seed_funded_user(session_factory, "20.00")
    purchased = []

    async def purchase():
        purchased.append(True)
        return SpendOutcome(result={}, reference="never")

    async with session_factory() as session:
        with pytest.raises(InsufficientLocalBalance):
            await LedgerService(session).spend(
                user_id=user.user_id, amount=Decimal("50"), float_provider=dojah,
                purchase=purchase, narration=Narration.AIRTIME,
            )

    assert purchased == []

@pytest.mark.asyncio
async def test_spend_failed_ledger_write_is_reconciliation_gap(session_factory, dojah, monkeypatch):
    user, wallet = await seed_funded_user(session_factory, "500.00")

    async def broken_record_debit(self, *args, **kwargs):
        await self.session.rollback()
        raise RuntimeError("database went away")

    monkeypatch.setattr(LedgerService, "record_debit", broken_record_debit)

    async def purchase():
        return SpendOutcome(result={"ok": True}, reference="DJ-LOST")

    async with session_factory() as session:
        with pytest.raises(ReconciliationGap) as exc_info:
            await LedgerService(session).spend(
                user_id=user.user_id, amount=Decimal("100"), float_provider=dojah,
                purchase=purchase, narration=Narration.AIRTIME,
            )

    assert exc_info.value.reference == "DJ-LOST"
    assert exc_info.value.amount == Decimal("100.00")
    assert (await get_wallet(session_factory, wallet.wallet_id)).current_balance == Decimal("500.00")
    assert await get_ledger(session_factory, user.user_id) == []

@pytest.mark.asyncio
async def test_concurrent_spends_purchase_once(session_factory, dojah):
    """
    Two spends of the whole balance: only one reaches the provider.
    """
    user, wallet = await seed_funded_user(session_factory, "100.00")
    purchased = []

    async def spend(i):
        async def purchase():
            purchased.append(i)
            return SpendOutcome(result={}, reference=f"DJ-{i}")

        async with session_factory() as session:
            return await LedgerService(session).spend(
                user_id=user.user_id, amount=Decimal("100"), float_provider=dojah,
                purchase=purchase, narration=Narration.AIRTIME,
            )

    results = await asyncio.gather(spend(1), spend(2), return_exceptions=True)

    assert len(purchased) == 1
    assert len([r for r in results if isinstance(r, InsufficientLocalBalance)]) == 1
    assert (await get_wallet(session_factory, wallet.wallet_id)).current_balance == Decimal("0.00")
    assert len(await get_ledger(session_factory, user.user_id)) == 1

@pytest.mark.asyncio
async def test_open_transfer_holds_funds(session_factory, dojah):
    user, wallet = await seed_funded_user(session_factory, "1000.00")
    attempt = await seed_attempt(session_factory, user.user_id, Decimal("800.00"), TransferStatus.INITIATED)
    purchased = []

    async def purchase():
        purchased.append(True)
        return SpendOutcome(result={}, reference="never")

    async with session_factory() as session:
        ledger = LedgerService(session)
        assert await ledger.held_amount(user.user_id) == Decimal("800.00")
        sufficient, available = await ledger.check_sufficient_balance(user.user_id, Decimal("300"))
        assert not sufficient
        assert available == Decimal("200.00")

        with pytest.raises(InsufficientLocalBalance) as exc_info:
            await ledger.spend(
                user_id=user.user_id, amount=Decimal("300"), float_provider=dojah,
                purchase=purchase, narration=Narration.AIRTIME,
            )

    assert exc_info.value.current_balance == Decimal("200.00")
    assert purchased == []
    assert (await get_wallet(session_factory, wallet.wallet_id)).current_balance == Decimal("1000.00")

    async with session_factory() as session:
        attempt = await session.get(TransferAttempt, attempt.id)
        attempt.status = TransferStatus.FAILED
        session.add(attempt)
        await session.commit()

    async with session_factory() as session:
        ledger = LedgerService(session)
        assert await ledger.held_amount(user.user_id) == Decimal("0.00")
        assert await ledger.check_sufficient_balance(user.user_id, Decimal("300")) == (True, Decimal("1000.00"))

@pytest.mark.asyncio
async def test_recorded_transfer_releases_hold(session_factory):
    user, _ = await seed_funded_user(session_factory, "1000.00")
    await seed_attempt(session_factory, user.user_id, Decimal("400.00"), TransferStatus.RECORDED)
    await seed_attempt(session_factory, user.user_id, Decimal("100.00"), TransferStatus.PENDING)

    async with session_factory() as session:
        assert await LedgerService(session).held_amount(user.user_id) == Decimal("100.00")

@pytest.mark.asyncio
async def test_concurrent_duplicate_credits_apply_once(session_factory):
    user, wallet = await seed_funded_user(session_factory, "0.00")

    async def credit():
        async with session_factory() as session:
            return await LedgerService(session).record_credit(wallet.customer_code, Decimal("250.00"), "charge-dup")

    results = await asyncio.gather(credit(), credit())

    assert len([r for r in results if r is not None]) == 1
    assert (await get_wallet(session_factory, wallet.wallet_id)).current_balance == Decimal("250.00")
    assert len(await get_ledger(session_factory, user.user_id)) == 1

@pytest.mark.asyncio
async def test_credit_unique_violation_is_a_duplicate(session_factory, monkeypatch):
    user, wallet = await seed_funded_user(session_factory, "0.00")

    async with session_factory() as session:
        assert await LedgerService(session).record_credit(wallet.customer_code, Decimal("250.00"), "charge-late") is not None

    # A delivery that passed the lookup before the first one committed
    async def not_recorded(self, reference):
        return False

    monkeypatch.setattr(LedgerService, "_already_recorded", not_recorded)

    async with session_factory() as session:
        assert await LedgerService(session).record_credit(wallet.customer_code, Decimal("250.00"), "charge-late") is None

    updated = await get_wallet(session_factory, wallet.wallet_id)
    assert updated.current_balance == Decimal("250.00")
    assert updated.previous_balance == Decimal("0.00")
    assert len(await get_ledger(session_factory, user.user_id)) == 1

@pytest.mark.asyncio
async def test_timestamps_are_naive_utc(session_factory):
    user, wallet = await seed_funded_user(session_factory, "100.00")

    async with session_factory() as session:
        entry = await LedgerService(session).record_debit(user.user_id, Decimal("10"), "ref-ts", Narration.AIRTIME)

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    assert wallet.created_at.tzinfo is None
    assert entry.created_at.tzinfo is None
    assert now - entry.created_at < timedelta(minutes=1)
