"""Application use cases."""

from tresorier.application.use_cases.add_bank_account import AddBankAccount
from tresorier.application.use_cases.auto_verify_bank_account import (
    AutoVerifyBankAccount,
    AutoVerifyResult,
)
from tresorier.application.use_cases.confirm_penny_drop import ConfirmPennyDrop
from tresorier.application.use_cases.create_recharge_order import (
    CreateRechargeOrder,
    RechargeOrder,
)
from tresorier.application.use_cases.get_balances import BalancesResult, GetBalances
from tresorier.application.use_cases.get_bank_account import (
    GetBankAccount,
    ListBankAccounts,
)
from tresorier.application.use_cases.initiate_otp import InitiateOtp, OtpChallenge
from tresorier.application.use_cases.initiate_penny_drop import (
    InitiatePennyDrop,
    PennyDropChallenge,
)
from tresorier.application.use_cases.list_transactions import (
    ListTransactions,
    TransactionPage,
)
from tresorier.application.use_cases.process_payment_webhook import (
    ProcessPaymentWebhook,
    WebhookResult,
)
from tresorier.application.use_cases.purge_expired_verifications import (
    PurgeExpiredVerifications,
)
from tresorier.application.use_cases.record_deposit import (
    DepositResult,
    RecordDeposit,
)
from tresorier.application.use_cases.record_refund import RecordRefund, RefundResult
from tresorier.application.use_cases.remove_bank_account import RemoveBankAccount
from tresorier.application.use_cases.request_withdrawal import (
    RequestWithdrawal,
    WithdrawalResult,
)
from tresorier.application.use_cases.reset_verification import ResetVerification
from tresorier.application.use_cases.set_primary_bank_account import (
    SetPrimaryBankAccount,
)
from tresorier.application.use_cases.settle_session_payment import (
    SessionSettlementResult,
    SettleSessionPayment,
)
from tresorier.application.use_cases.settle_withdrawal import (
    ListPendingWithdrawals,
    SettleWithdrawal,
)
from tresorier.application.use_cases.update_bank_account import (
    UpdateBankAccount,
)
from tresorier.application.use_cases.verify_checkout_payment import (
    VerifyCheckoutPayment,
)
from tresorier.application.use_cases.verify_otp import VerifyOtp

__all__ = [
    # Ledger
    "RecordDeposit",
    "DepositResult",
    "RecordRefund",
    "RefundResult",
    "SettleSessionPayment",
    "SessionSettlementResult",
    "GetBalances",
    "BalancesResult",
    "ListTransactions",
    "TransactionPage",
    "ProcessPaymentWebhook",
    "WebhookResult",
    # Recharge
    "CreateRechargeOrder",
    "RechargeOrder",
    "VerifyCheckoutPayment",
    # Bank accounts
    "AddBankAccount",
    "GetBankAccount",
    "ListBankAccounts",
    "UpdateBankAccount",
    "SetPrimaryBankAccount",
    "RemoveBankAccount",
    # Verification
    "InitiateOtp",
    "OtpChallenge",
    "VerifyOtp",
    "AutoVerifyBankAccount",
    "AutoVerifyResult",
    "InitiatePennyDrop",
    "PennyDropChallenge",
    "ConfirmPennyDrop",
    "ResetVerification",
    "PurgeExpiredVerifications",
    # Withdrawals
    "RequestWithdrawal",
    "WithdrawalResult",
    "SettleWithdrawal",
    "ListPendingWithdrawals",
]
