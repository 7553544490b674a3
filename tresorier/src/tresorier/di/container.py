"""
Dependency Injection Container for Tresorier.

Manages all service instances and their dependencies.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tresorier.application.use_cases.purge_expired_verifications import (
    PurgeExpiredVerifications,
)
from tresorier.config.settings import get_settings
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.services.i_bank_verification_service import (
    IBankVerificationService,
)
from tresorier.domain.services.i_event_publisher import IEventPublisher
from tresorier.domain.services.i_lock_manager import ILockManager
from tresorier.domain.services.i_otp_dispatcher import IOtpDispatcher
from tresorier.domain.services.i_payment_order_gateway import IPaymentOrderGateway
from tresorier.domain.services.i_payout_gateway import IPayoutGateway
from tresorier.infrastructure.cache.memory_balance_cache import MemoryBalanceCache
from tresorier.infrastructure.cache.redis_balance_cache import RedisBalanceCache
from tresorier.infrastructure.concurrency.keyed_lock_manager import KeyedLockManager
from tresorier.infrastructure.event_bus.http_event_publisher import (
    HttpEventPublisher,
)
from tresorier.infrastructure.event_bus.logging_event_publisher import (
    LoggingEventPublisher,
)
from tresorier.infrastructure.gateways.bank_verification_service import (
    HttpBankVerificationService,
    OfflineBankVerificationService,
)
from tresorier.infrastructure.gateways.razorpay_order_gateway import (
    RazorpayOrderGateway,
)
from tresorier.infrastructure.gateways.razorpay_payout_gateway import (
    RazorpayPayoutGateway,
)
from tresorier.infrastructure.gateways.simulated_order_gateway import (
    SimulatedOrderGateway,
)
from tresorier.infrastructure.gateways.simulated_payout_gateway import (
    SimulatedPayoutGateway,
)
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.notifications.otp_dispatcher import (
    HttpOtpDispatcher,
    LoggingOtpDispatcher,
)
from tresorier.infrastructure.persistence.database import Database
from tresorier.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork
from tresorier.infrastructure.resilience.circuit_breaker import CircuitBreakerConfig
from tresorier.infrastructure.scheduling.expiry_sweeper import ExpirySweeper

logger = get_logger(__name__)


class DIContainer:
    """
    Dependency Injection Container.

    Manages singleton instances of infrastructure services. Units of work
    are session-scoped and created per request.
    """

    def __init__(self):
        """Initialize container with None instances."""
        # Infrastructure
        self._database: Optional[Database] = None
        self._balance_cache: Optional[IBalanceCache] = None
        self._lock_manager: Optional[ILockManager] = None
        self._sweeper: Optional[ExpirySweeper] = None

        # Domain Services
        self._payout_gateway: Optional[IPayoutGateway] = None
        self._order_gateway: Optional[IPaymentOrderGateway] = None
        self._bank_verification_service: Optional[IBankVerificationService] = None
        self._otp_dispatcher: Optional[IOtpDispatcher] = None
        self._event_publisher: Optional[IEventPublisher] = None

    async def initialize(self) -> None:
        """Initialize all services and establish connections."""
        settings = get_settings()

        await self.database.connect()
        if settings.DATABASE_CREATE_TABLES:
            await self.database.create_tables()

        if settings.REDIS_ENABLED:
            await self.balance_cache.connect()

        if settings.SWEEPER_ENABLED:
            self.sweeper.start()

    async def shutdown(self) -> None:
        """Cleanup resources and close connections."""
        if self._sweeper:
            await self._sweeper.stop()

        if self._payout_gateway:
            await self._payout_gateway.close()

        if self._order_gateway:
            await self._order_gateway.close()

        if self._bank_verification_service:
            await self._bank_verification_service.close()

        if self._otp_dispatcher:
            await self._otp_dispatcher.close()

        if self._event_publisher:
            await self._event_publisher.close()

        if isinstance(self._balance_cache, RedisBalanceCache):
            await self._balance_cache.disconnect()

        if self._database:
            await self._database.disconnect()

    # Infrastructure Getters

    @property
    def database(self) -> Database:
        """Get database instance."""
        if self._database is None:
            self._database = Database(
                database_url=get_settings().DATABASE_URL,
                echo=get_settings().DATABASE_ECHO,
                pool_size=get_settings().DATABASE_POOL_SIZE,
            )
        return self._database

    @property
    def balance_cache(self) -> IBalanceCache:
        """Get balance cache (Redis when enabled, in-process otherwise)."""
        if self._balance_cache is None:
            settings = get_settings()
            if settings.REDIS_ENABLED:
                self._balance_cache = RedisBalanceCache(
                    host=settings.REDIS_HOST,
                    port=settings.REDIS_PORT,
                    db=settings.REDIS_DB,
                    password=settings.REDIS_PASSWORD or None,
                    ttl_seconds=settings.BALANCE_CACHE_TTL_SECONDS,
                )
            else:
                self._balance_cache = MemoryBalanceCache(
                    ttl_seconds=settings.BALANCE_CACHE_TTL_SECONDS,
                )
        return self._balance_cache

    @property
    def lock_manager(self) -> ILockManager:
        """Get per-account lock manager."""
        if self._lock_manager is None:
            self._lock_manager = KeyedLockManager()
        return self._lock_manager

    @property
    def sweeper(self) -> ExpirySweeper:
        """Get verification attempt expiry sweeper."""
        if self._sweeper is None:
            self._sweeper = ExpirySweeper(
                job=self.purge_expired_verifications,
                interval_seconds=get_settings().SWEEPER_INTERVAL_SECONDS,
            )
        return self._sweeper

    # Domain Service Getters

    @property
    def payout_gateway(self) -> IPayoutGateway:
        """Get payout gateway (Razorpay or simulated)."""
        if self._payout_gateway is None:
            settings = get_settings()
            if settings.PAYOUT_GATEWAY == "razorpay":
                self._payout_gateway = RazorpayPayoutGateway(
                    key_id=settings.RAZORPAY_KEY_ID,
                    key_secret=settings.RAZORPAY_KEY_SECRET,
                    account_number=settings.RAZORPAY_ACCOUNT_NUMBER,
                    base_url=settings.RAZORPAY_BASE_URL,
                    total_timeout=settings.GATEWAY_TIMEOUT_SECONDS,
                    connect_timeout=settings.GATEWAY_CONNECT_TIMEOUT_SECONDS,
                    circuit_breaker_config=CircuitBreakerConfig(
                        failure_threshold=settings.CB_FAILURE_THRESHOLD,
                        success_threshold=settings.CB_SUCCESS_THRESHOLD,
                        timeout=settings.CB_TIMEOUT_SECONDS,
                    ),
                )
            else:
                logger.warning("Using simulated payout gateway")
                self._payout_gateway = SimulatedPayoutGateway()
        return self._payout_gateway

    @property
    def order_gateway(self) -> IPaymentOrderGateway:
        """Get checkout order gateway (follows PAYOUT_GATEWAY)."""
        if self._order_gateway is None:
            settings = get_settings()
            if settings.PAYOUT_GATEWAY == "razorpay":
                self._order_gateway = RazorpayOrderGateway(
                    key_id=settings.RAZORPAY_KEY_ID,
                    key_secret=settings.RAZORPAY_KEY_SECRET,
                    base_url=settings.RAZORPAY_BASE_URL,
                    total_timeout=settings.GATEWAY_TIMEOUT_SECONDS,
                    connect_timeout=settings.GATEWAY_CONNECT_TIMEOUT_SECONDS,
                    circuit_breaker_config=CircuitBreakerConfig(
                        failure_threshold=settings.CB_FAILURE_THRESHOLD,
                        success_threshold=settings.CB_SUCCESS_THRESHOLD,
                        timeout=settings.CB_TIMEOUT_SECONDS,
                    ),
                )
            else:
                logger.warning("Using simulated order gateway")
                self._order_gateway = SimulatedOrderGateway()
        return self._order_gateway

    @property
    def bank_verification_service(self) -> IBankVerificationService:
        """Get bank registry lookup service."""
        if self._bank_verification_service is None:
            settings = get_settings()
            if settings.BANK_VERIFICATION_URL:
                self._bank_verification_service = HttpBankVerificationService(
                    base_url=settings.BANK_VERIFICATION_URL,
                    total_timeout=settings.GATEWAY_TIMEOUT_SECONDS,
                    connect_timeout=settings.GATEWAY_CONNECT_TIMEOUT_SECONDS,
                )
            else:
                self._bank_verification_service = OfflineBankVerificationService()
        return self._bank_verification_service

    @property
    def otp_dispatcher(self) -> IOtpDispatcher:
        """Get OTP dispatcher."""
        if self._otp_dispatcher is None:
            settings = get_settings()
            if settings.OTP_DISPATCH_URL:
                self._otp_dispatcher = HttpOtpDispatcher(
                    dispatch_url=settings.OTP_DISPATCH_URL,
                    timeout=settings.EVENTS_TIMEOUT_SECONDS,
                )
            else:
                self._otp_dispatcher = LoggingOtpDispatcher(
                    log_codes=settings.ENV != "production",
                )
        return self._otp_dispatcher

    @property
    def event_publisher(self) -> IEventPublisher:
        """Get event publisher instance."""
        if self._event_publisher is None:
            settings = get_settings()
            if settings.EVENTS_URL:
                self._event_publisher = HttpEventPublisher(
                    events_url=settings.EVENTS_URL,
                    timeout=settings.EVENTS_TIMEOUT_SECONDS,
                )
            else:
                self._event_publisher = LoggingEventPublisher()
        return self._event_publisher

    # Unit of Work (Session-scoped)

    def get_unit_of_work(self, session: AsyncSession) -> IUnitOfWork:
        """
        Get unit of work bound to a request session.

        Args:
            session: Active database session

        Returns:
            SqlAlchemyUnitOfWork instance
        """
        return SqlAlchemyUnitOfWork(session)

    # Background jobs

    async def purge_expired_verifications(self) -> int:
        """Delete expired verification attempts in a fresh session."""
        async with self.database.session() as session:
            use_case = PurgeExpiredVerifications(self.get_unit_of_work(session))
            return await use_case.execute()


# Global container instance
_container: Optional[DIContainer] = None


def get_container() -> DIContainer:
    """Get global DI container instance."""
    global _container
    if _container is None:
        _container = DIContainer()
    return _container


def set_container(container: Optional[DIContainer]) -> None:
    """Replace the global container (tests)."""
    global _container
    _container = container


async def initialize_container() -> DIContainer:
    """Initialize and return DI container."""
    container = get_container()
    await container.initialize()
    return container


async def shutdown_container() -> None:
    """Shutdown DI container."""
    container = get_container()
    await container.shutdown()
