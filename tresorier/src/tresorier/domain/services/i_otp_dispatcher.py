"""
OTP dispatch channel interface.
"""

from abc import ABC, abstractmethod

from tresorier.domain.entities.bank_account import VerificationMethod


class IOtpDispatcher(ABC):
    """
    Abstract interface for delivering one-time codes by SMS or email.

    Fire-and-forget: delivery failures are logged by implementations and
    never raised to the verification engine.
    """

    @abstractmethod
    async def send(
        self,
        channel: VerificationMethod,
        destination: str,
        code: str,
    ) -> None:
        """
        Deliver a code.

        Args:
            channel: SMS or EMAIL
            destination: Phone number or email address
            code: Plaintext one-time code
        """

    async def close(self) -> None:
        """Release network resources."""
