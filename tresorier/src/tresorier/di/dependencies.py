"""
FastAPI dependency injection.

Provides dependencies for FastAPI routes using the DI container.
One database session (and one unit of work) per request.
"""

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tresorier.config.settings import get_settings
from tresorier.di.container import get_container
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork

# ================================================================
# Database Dependencies
# ================================================================


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session dependency.

    Yields async database session from container.
    Session is automatically closed after request.
    """
    container = get_container()
    async with container.database.session() as session:
        yield session


def get_uow(session: AsyncSession = Depends(get_db_session)) -> IUnitOfWork:
    """Get request-scoped unit of work."""
    return get_container().get_unit_of_work(session)


# ================================================================
# Service Dependencies
# ================================================================


def get_lock_manager():
    """Get per-account lock manager."""
    return get_container().lock_manager


def get_balance_cache():
    """Get balance cache."""
    return get_container().balance_cache


def get_event_publisher():
    """Get domain event publisher."""
    return get_container().event_publisher


def get_payout_gateway():
    """Get payout gateway."""
    return get_container().payout_gateway


def get_order_gateway():
    """Get checkout order gateway."""
    return get_container().order_gateway


def get_bank_verification_service():
    """Get bank registry lookup service."""
    return get_container().bank_verification_service


def get_otp_dispatcher():
    """Get OTP dispatcher."""
    return get_container().otp_dispatcher


# ================================================================
# Ledger Use Case Dependencies
# ================================================================


def get_get_balances(
    uow: IUnitOfWork = Depends(get_uow),
    balance_cache=Depends(get_balance_cache),
):
    """Get GetBalances use case dependency."""
    from tresorier.application.use_cases.get_balances import GetBalances

    return GetBalances(ledger_repository=uow.ledger, balance_cache=balance_cache)


def get_list_transactions(uow: IUnitOfWork = Depends(get_uow)):
    """Get ListTransactions use case dependency."""
    from tresorier.application.use_cases.list_transactions import ListTransactions

    return ListTransactions(ledger_repository=uow.ledger)


def get_record_deposit(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    event_publisher=Depends(get_event_publisher),
    balance_cache=Depends(get_balance_cache),
):
    """Get RecordDeposit use case dependency."""
    from tresorier.application.use_cases.record_deposit import RecordDeposit

    return RecordDeposit(
        uow=uow,
        locks=locks,
        event_publisher=event_publisher,
        balance_cache=balance_cache,
    )


def get_record_refund(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    balance_cache=Depends(get_balance_cache),
):
    """Get RecordRefund use case dependency."""
    from tresorier.application.use_cases.record_refund import RecordRefund

    return RecordRefund(uow=uow, locks=locks, balance_cache=balance_cache)


def get_settle_session_payment(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    event_publisher=Depends(get_event_publisher),
    balance_cache=Depends(get_balance_cache),
):
    """Get SettleSessionPayment use case dependency."""
    from tresorier.application.use_cases.settle_session_payment import (
        SettleSessionPayment,
    )

    return SettleSessionPayment(
        uow=uow,
        locks=locks,
        event_publisher=event_publisher,
        balance_cache=balance_cache,
    )


def get_process_payment_webhook(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    event_publisher=Depends(get_event_publisher),
    balance_cache=Depends(get_balance_cache),
):
    """Get ProcessPaymentWebhook use case dependency."""
    from tresorier.application.use_cases.process_payment_webhook import (
        ProcessPaymentWebhook,
    )

    return ProcessPaymentWebhook(
        uow=uow,
        locks=locks,
        event_publisher=event_publisher,
        webhook_secret=get_settings().PAYMENT_WEBHOOK_SECRET,
        balance_cache=balance_cache,
    )


# ================================================================
# Recharge Use Case Dependencies
# ================================================================


def get_create_recharge_order(
    uow: IUnitOfWork = Depends(get_uow),
    order_gateway=Depends(get_order_gateway),
):
    """Get CreateRechargeOrder use case dependency."""
    from tresorier.application.use_cases.create_recharge_order import (
        CreateRechargeOrder,
    )

    settings = get_settings()
    return CreateRechargeOrder(
        uow=uow,
        order_gateway=order_gateway,
        key_id=settings.RAZORPAY_KEY_ID,
        min_amount=settings.MIN_RECHARGE_AMOUNT,
        max_amount=settings.MAX_RECHARGE_AMOUNT,
    )


def get_verify_checkout_payment(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    event_publisher=Depends(get_event_publisher),
    balance_cache=Depends(get_balance_cache),
):
    """Get VerifyCheckoutPayment use case dependency."""
    from tresorier.application.use_cases.verify_checkout_payment import (
        VerifyCheckoutPayment,
    )

    return VerifyCheckoutPayment(
        uow=uow,
        locks=locks,
        event_publisher=event_publisher,
        key_secret=get_settings().RAZORPAY_KEY_SECRET,
        balance_cache=balance_cache,
    )


# ================================================================
# Withdrawal Use Case Dependencies
# ================================================================


def get_request_withdrawal(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    payout_gateway=Depends(get_payout_gateway),
    event_publisher=Depends(get_event_publisher),
    balance_cache=Depends(get_balance_cache),
):
    """Get RequestWithdrawal use case dependency."""
    from tresorier.application.use_cases.request_withdrawal import (
        RequestWithdrawal,
    )

    settings = get_settings()
    return RequestWithdrawal(
        uow=uow,
        locks=locks,
        payout_gateway=payout_gateway,
        event_publisher=event_publisher,
        balance_cache=balance_cache,
        min_amount=settings.MIN_WITHDRAWAL_AMOUNT,
        max_amount=settings.MAX_WITHDRAWAL_AMOUNT,
        mode=settings.WITHDRAWAL_MODE,
        manual_threshold=settings.MANUAL_WITHDRAWAL_THRESHOLD,
    )


def get_settle_withdrawal(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    event_publisher=Depends(get_event_publisher),
    balance_cache=Depends(get_balance_cache),
):
    """Get SettleWithdrawal use case dependency."""
    from tresorier.application.use_cases.settle_withdrawal import SettleWithdrawal

    return SettleWithdrawal(
        uow=uow,
        locks=locks,
        event_publisher=event_publisher,
        balance_cache=balance_cache,
    )


def get_list_pending_withdrawals(uow: IUnitOfWork = Depends(get_uow)):
    """Get ListPendingWithdrawals use case dependency."""
    from tresorier.application.use_cases.settle_withdrawal import (
        ListPendingWithdrawals,
    )

    return ListPendingWithdrawals(ledger_repository=uow.ledger)


# ================================================================
# Bank Account Use Case Dependencies
# ================================================================


def get_add_bank_account(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
):
    """Get AddBankAccount use case dependency."""
    from tresorier.application.use_cases.add_bank_account import AddBankAccount

    return AddBankAccount(uow=uow, locks=locks)


def get_get_bank_account(uow: IUnitOfWork = Depends(get_uow)):
    """Get GetBankAccount use case dependency."""
    from tresorier.application.use_cases.get_bank_account import GetBankAccount

    return GetBankAccount(bank_account_repository=uow.bank_accounts)


def get_list_bank_accounts(uow: IUnitOfWork = Depends(get_uow)):
    """Get ListBankAccounts use case dependency."""
    from tresorier.application.use_cases.get_bank_account import ListBankAccounts

    return ListBankAccounts(bank_account_repository=uow.bank_accounts)


def get_update_bank_account(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
):
    """Get UpdateBankAccount use case dependency."""
    from tresorier.application.use_cases.update_bank_account import (
        UpdateBankAccount,
    )

    return UpdateBankAccount(uow=uow, locks=locks)


def get_set_primary_bank_account(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
):
    """Get SetPrimaryBankAccount use case dependency."""
    from tresorier.application.use_cases.set_primary_bank_account import (
        SetPrimaryBankAccount,
    )

    return SetPrimaryBankAccount(uow=uow, locks=locks)


def get_remove_bank_account(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
):
    """Get RemoveBankAccount use case dependency."""
    from tresorier.application.use_cases.remove_bank_account import (
        RemoveBankAccount,
    )

    return RemoveBankAccount(uow=uow, locks=locks)


# ================================================================
# Verification Use Case Dependencies
# ================================================================


def get_initiate_otp(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    otp_dispatcher=Depends(get_otp_dispatcher),
):
    """Get InitiateOtp use case dependency."""
    from tresorier.application.use_cases.initiate_otp import InitiateOtp

    settings = get_settings()
    return InitiateOtp(
        uow=uow,
        locks=locks,
        otp_dispatcher=otp_dispatcher,
        hash_secret=settings.OTP_HASH_SECRET,
        code_length=settings.OTP_LENGTH,
        expiry_seconds=settings.OTP_EXPIRY_SECONDS,
        max_attempts=settings.OTP_MAX_ATTEMPTS,
    )


def get_verify_otp(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    event_publisher=Depends(get_event_publisher),
):
    """Get VerifyOtp use case dependency."""
    from tresorier.application.use_cases.verify_otp import VerifyOtp

    return VerifyOtp(
        uow=uow,
        locks=locks,
        event_publisher=event_publisher,
        hash_secret=get_settings().OTP_HASH_SECRET,
    )


def get_auto_verify_bank_account(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    bank_verification_service=Depends(get_bank_verification_service),
    event_publisher=Depends(get_event_publisher),
):
    """Get AutoVerifyBankAccount use case dependency."""
    from tresorier.application.use_cases.auto_verify_bank_account import (
        AutoVerifyBankAccount,
    )

    return AutoVerifyBankAccount(
        uow=uow,
        locks=locks,
        bank_verification_service=bank_verification_service,
        event_publisher=event_publisher,
    )


def get_initiate_penny_drop(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    payout_gateway=Depends(get_payout_gateway),
):
    """Get InitiatePennyDrop use case dependency."""
    from tresorier.application.use_cases.initiate_penny_drop import (
        InitiatePennyDrop,
    )

    settings = get_settings()
    return InitiatePennyDrop(
        uow=uow,
        locks=locks,
        payout_gateway=payout_gateway,
        expiry_seconds=settings.MICRO_DEPOSIT_EXPIRY_SECONDS,
        max_attempts=settings.MICRO_DEPOSIT_MAX_ATTEMPTS,
        min_minor=settings.PENNY_DROP_MIN_MINOR,
        max_minor=settings.PENNY_DROP_MAX_MINOR,
    )


def get_confirm_penny_drop(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
    event_publisher=Depends(get_event_publisher),
):
    """Get ConfirmPennyDrop use case dependency."""
    from tresorier.application.use_cases.confirm_penny_drop import (
        ConfirmPennyDrop,
    )

    return ConfirmPennyDrop(uow=uow, locks=locks, event_publisher=event_publisher)


def get_reset_verification(
    uow: IUnitOfWork = Depends(get_uow),
    locks=Depends(get_lock_manager),
):
    """Get ResetVerification use case dependency."""
    from tresorier.application.use_cases.reset_verification import (
        ResetVerification,
    )

    return ResetVerification(uow=uow, locks=locks)
