"""Shared test doubles and builders."""

from tests.helpers.fakes import (
    OTP_SECRET,
    WEBHOOK_SECRET,
    FakeBankVerificationService,
    FakePayoutGateway,
    FakeUnitOfWork,
    InMemoryStore,
    RecordingOtpDispatcher,
    WalletHarness,
    make_account,
    make_bank_account,
)

__all__ = [
    "OTP_SECRET",
    "WEBHOOK_SECRET",
    "FakeBankVerificationService",
    "FakePayoutGateway",
    "FakeUnitOfWork",
    "InMemoryStore",
    "RecordingOtpDispatcher",
    "WalletHarness",
    "make_account",
    "make_bank_account",
]
