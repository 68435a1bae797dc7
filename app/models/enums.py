from enum import StrEnum

class TransactionType(StrEnum):
    DEBIT = "debit"
    CREDIT = "credit"

class TransferStatus(StrEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    RECIPIENT_CREATED = "recipient_created"
    INITIATED = "initiated"
    VERIFIED = "verified"
    RECORDED = "recorded"
    FAILED = "failed"

class Narration(StrEnum):
    AIRTIME = "Airtime purchase"
    DATA = "Data purchase"
    TRANSFER = "Fund transfer"
    FUNDING = "Wallet funding"

# Transfers not yet recorded or failed; their amounts stay held against the wallet
OPEN_TRANSFER_STATES = frozenset({
    TransferStatus.PENDING,
    TransferStatus.RESOLVED,
    TransferStatus.RECIPIENT_CREATED,
    TransferStatus.INITIATED,
    TransferStatus.VERIFIED,
})
