"""
Service Container
=================

Purpose
-------
Centralized construction of the economy components and services with their
dependencies wired once.

Responsibilities
----------------
- Build policy objects from configuration (reward table, mastery levels,
  daily cap, streak tiers, wheel segments) and fail fast on invalid values
- Build the lock manager, ledger, streak, wheel and orchestrator services
- Expose them through guarded properties
- Minimal observability: per-component init timing and a health snapshot

Non-Responsibilities
--------------------
- Database and Redis lifecycle (DatabaseService / RedisService)
- Loading YAML (ConfigManager.initialize)

Architecture Notes
------------------
- Receives dependencies (ConfigManager, EventBus) via constructor injection
- Domain services follow one constructor pattern: (..., config_manager, event_bus, logger)
- Random source, clock and games-played reader are injectable for tests
"""

from __future__ import annotations

import random
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, TypeVar

from golden_credits.core.clock import Clock, ReferenceCalendar, system_clock
from golden_credits.core.config.config import Config
from golden_credits.core.config.manager import ConfigManager
from golden_credits.core.locking.account_lock import AccountLockManager
from golden_credits.core.logging.logger import get_logger
from golden_credits.modules.ledger.service import LedgerService
from golden_credits.modules.orchestrator.service import RewardOrchestrator
from golden_credits.modules.rewards.daily_cap import DailyCapPolicy
from golden_credits.modules.rewards.mastery import MasteryCalculator
from golden_credits.modules.rewards.policy import RewardPolicyTable
from golden_credits.modules.rewards.stats import GamesPlayedReader, InMemoryGamesPlayed
from golden_credits.modules.streak.logic import StreakTracker
from golden_credits.modules.streak.service import StreakService
from golden_credits.modules.wheel.logic import ProbabilityWheel
from golden_credits.modules.wheel.service import WheelService

if TYPE_CHECKING:
    from logging import Logger

    from golden_credits.core.event.bus import EventBus

logger = get_logger(__name__)

T = TypeVar("T")

COMPONENT_COUNT = 12


class ServiceContainer:
    """
    Dependency container for the reward economy.

    Usage:
        container = ServiceContainer(ConfigManager, event_bus, logger)
        await container.initialize()

        result = await container.orchestrator.claim_daily_login("tg:42")
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        *,
        games_played: Optional[GamesPlayedReader] = None,
        clock: Clock = system_clock,
        rng: Optional[random.Random] = None,
        use_redis_locks: Optional[bool] = None,
    ) -> None:
        self._config_manager = config_manager
        self._event_bus = event_bus
        self._logger = logger
        self._games_played_override = games_played
        self._clock = clock
        self._rng = rng
        self._use_redis_locks = use_redis_locks

        # Policy components
        self._calendar: Optional[ReferenceCalendar] = None
        self._policy: Optional[RewardPolicyTable] = None
        self._mastery: Optional[MasteryCalculator] = None
        self._daily_cap: Optional[DailyCapPolicy] = None
        self._streak_tracker: Optional[StreakTracker] = None
        self._wheel_logic: Optional[ProbabilityWheel] = None
        self._games_played: Optional[GamesPlayedReader] = None

        # Services
        self._lock_manager: Optional[AccountLockManager] = None
        self._ledger: Optional[LedgerService] = None
        self._streak: Optional[StreakService] = None
        self._wheel: Optional[WheelService] = None
        self._orchestrator: Optional[RewardOrchestrator] = None

        self._initialized = False

        self._service_init_times: Dict[str, float] = {}
        self._init_start: Optional[float] = None
        self._init_end: Optional[float] = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def initialize(self) -> None:
        """
        Build every component.

        Raises:
            InvalidConfigurationError: a policy table failed validation
        """
        if self._initialized:
            self._logger.warning("ServiceContainer already initialized")
            return

        self._init_start = time.perf_counter()
        self._logger.info("Service container initialization starting...")

        cfg = self._config_manager

        try:
            self._calendar = self._create_component(
                "calendar",
                lambda: ReferenceCalendar(str(cfg.get("engine.day_boundary_timezone", "UTC"))),
            )
            self._policy = self._create_component(
                "reward_policy",
                lambda: RewardPolicyTable.from_config(cfg.get("rewards.games", {}) or {}),
            )
            self._mastery = self._create_component(
                "mastery",
                lambda: MasteryCalculator.from_config(cfg.get("rewards.mastery.levels")),
            )
            self._daily_cap = self._create_component(
                "daily_cap",
                lambda: DailyCapPolicy.from_config(cfg.get("rewards.daily_cap")),
            )
            calendar = self._calendar
            self._streak_tracker = self._create_component(
                "streak_tracker",
                lambda: StreakTracker.from_config(cfg.get("streak"), calendar),
            )
            self._wheel_logic = self._create_component(
                "wheel_logic",
                lambda: ProbabilityWheel.from_config(cfg.get("wheel")),
            )
            self._games_played = self._create_component(
                "games_played",
                lambda: self._games_played_override or InMemoryGamesPlayed(),
            )

            use_redis = (
                self._use_redis_locks
                if self._use_redis_locks is not None
                else Config.REDIS_LOCKS_ENABLED
            )
            self._lock_manager = self._create_component(
                "lock_manager",
                lambda: AccountLockManager(
                    wait_timeout=float(cfg.get("engine.locks.wait_timeout_seconds", 5.0)),
                    use_redis=use_redis,
                ),
            )

            self._ledger = self._create_service("ledger", LedgerService)

            ledger = self._ledger
            self._streak = self._create_component(
                "streak",
                lambda: StreakService(
                    ledger=ledger,
                    tracker=self._streak_tracker,
                    config_manager=cfg,
                    event_bus=self._event_bus,
                    logger=get_logger(f"{StreakService.__module__}.StreakService"),
                ),
            )
            self._wheel = self._create_component(
                "wheel",
                lambda: WheelService(
                    ledger=ledger,
                    wheel=self._wheel_logic,
                    calendar=calendar,
                    config_manager=cfg,
                    event_bus=self._event_bus,
                    logger=get_logger(f"{WheelService.__module__}.WheelService"),
                    rng=self._rng,
                ),
            )

            if not self._streak or not self._wheel:
                raise RuntimeError("Streak and wheel services must be initialized before the orchestrator")

            self._orchestrator = self._create_component(
                "orchestrator",
                lambda: RewardOrchestrator(
                    ledger=ledger,
                    streak=self._streak,
                    wheel=self._wheel,
                    policy=self._policy,
                    mastery=self._mastery,
                    daily_cap=self._daily_cap,
                    calendar=calendar,
                    lock_manager=self._lock_manager,
                    games_played=self._games_played,
                    config_manager=cfg,
                    event_bus=self._event_bus,
                    logger=get_logger(f"{RewardOrchestrator.__module__}.RewardOrchestrator"),
                    clock=self._clock,
                ),
            )

            self._init_end = time.perf_counter()
            self._initialized = True

            extra_data: Dict[str, Any] = {
                "total_time_seconds": round(self._init_end - self._init_start, 3),
                "component_count": len(self._service_init_times),
                "reward_games": len(self._policy.games()),
                "day_boundary_timezone": self._calendar.timezone_name,
                "redis_locks": use_redis,
            }

            if self._service_init_times:
                slowest = max(
                    self._service_init_times,
                    key=self._service_init_times.__getitem__,
                )
                extra_data["slowest_component"] = slowest
                extra_data["slowest_duration"] = round(self._service_init_times[slowest], 3)

            self._logger.info(
                "Service container initialized successfully",
                extra=extra_data,
            )

        except Exception as e:
            self._logger.critical(
                "Service container initialization failed - engine cannot start",
                exc_info=True,
                extra={"error": str(e)},
            )
            raise

    def _create_component(self, name: str, factory: Callable[[], T]) -> T:
        start = time.perf_counter()

        try:
            instance = factory()
        except Exception:
            self._logger.error(f"Failed to initialize {name}", exc_info=True)
            raise

        duration = time.perf_counter() - start
        self._service_init_times[name] = duration
        self._logger.debug(f"Initialized {name} in {duration:.3f}s")
        return instance

    def _create_service(self, name: str, cls: type) -> Any:
        """Construct a service that only needs (config_manager, event_bus, logger)."""
        return self._create_component(
            name,
            lambda: cls(
                config_manager=self._config_manager,
                event_bus=self._event_bus,
                logger=get_logger(f"{cls.__module__}.{cls.__name__}"),
            ),
        )

    async def shutdown(self) -> None:
        if not self._initialized:
            return

        self._logger.info("Shutting down service container...")
        self._initialized = False
        self._logger.info("Service container shut down")

    async def health_check(self) -> Dict[str, Any]:
        return {
            "initialized": self._initialized,
            "component_count": len(self._service_init_times),
            "total_init_time_seconds": (
                round(self._init_end - self._init_start, 3)
                if self._init_start and self._init_end
                else None
            ),
            "all_components_available": self._initialized
            and len(self._service_init_times) == COMPONENT_COUNT,
            "tracked_account_locks": (
                self._lock_manager.tracked_accounts if self._lock_manager else 0
            ),
        }

    def _require(self, value: Optional[T]) -> T:
        if not self._initialized or value is None:
            raise RuntimeError("ServiceContainer not initialized. Call initialize() first.")
        return value

    # ========================================================================
    # Policy Components
    # ========================================================================

    @property
    def calendar(self) -> ReferenceCalendar:
        return self._require(self._calendar)

    @property
    def reward_policy(self) -> RewardPolicyTable:
        return self._require(self._policy)

    @property
    def mastery(self) -> MasteryCalculator:
        return self._require(self._mastery)

    @property
    def daily_cap(self) -> DailyCapPolicy:
        return self._require(self._daily_cap)

    @property
    def streak_tracker(self) -> StreakTracker:
        return self._require(self._streak_tracker)

    @property
    def wheel_logic(self) -> ProbabilityWheel:
        return self._require(self._wheel_logic)

    @property
    def games_played(self) -> GamesPlayedReader:
        return self._require(self._games_played)

    # ========================================================================
    # Services
    # ========================================================================

    @property
    def lock_manager(self) -> AccountLockManager:
        return self._require(self._lock_manager)

    @property
    def ledger(self) -> LedgerService:
        return self._require(self._ledger)

    @property
    def streak(self) -> StreakService:
        return self._require(self._streak)

    @property
    def wheel(self) -> WheelService:
        return self._require(self._wheel)

    @property
    def orchestrator(self) -> RewardOrchestrator:
        return self._require(self._orchestrator)
