"""
Bank registry lookup interface (automatic bank_api verification).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BankLookupResult:
    """Outcome of a registry lookup."""

    matched: bool
    reason_code: Optional[str] = None
    registered_name: Optional[str] = None


class IBankVerificationService(ABC):
    """Abstract interface for synchronous account/name/IFSC matching."""

    @abstractmethod
    async def lookup(
        self,
        account_holder_name: str,
        account_number: str,
        ifsc_code: str,
    ) -> BankLookupResult:
        """
        Check the account details against the bank registry.

        Returns:
            BankLookupResult with matched flag and reason code on mismatch

        Raises:
            GatewayError: If the registry cannot be reached
        """

    async def close(self) -> None:
        """Release network resources."""
