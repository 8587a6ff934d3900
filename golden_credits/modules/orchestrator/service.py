"""
Reward Orchestrator - single entry point for Golden Credits state changes

Purpose
-------
Coordinate the economy components for every external operation: validate
input, take the account's exclusive scope, run the work in one database
transaction, and publish events once the transaction has committed.

Control flow for a game event:

    policy lookup -> base amount
    -> x mastery multiplier x streak multiplier (round half up, once)
    -> daily cap and diminishing returns
    -> ledger append + daily summary update (same transaction)

Responsibilities
----------------
- Game rewards, daily logins, streak milestones, wheel spins and purchases,
  game unlocks, referral bonuses and manual adjustments
- Cross-module effects (wheel spins granted by logins and milestones land
  in the same transaction as the credit)
- Read models: balance, history, wallet statistics, CSV export, mastery,
  wheel and login state, ledger reconciliation

Error Handling
--------------
- Domain exceptions propagate unchanged and are logged at their declared
  severity, never as errors
- SQLAlchemyError is wrapped in DatabaseError after rollback
- AccountLockTimeoutError propagates for the caller to retry

Events (published after commit)
-------------------------------
- wallet.credited / wallet.debited
- game_reward.awarded, daily_login.claimed, streak.milestone_claimed
- wheel.spun, wheel.reward_claimed, wheel.spins_purchased
- game.unlocked, referral.bonus_granted
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from golden_credits.core.clock import Clock, ReferenceCalendar, system_clock
from golden_credits.core.database.service import DatabaseService
from golden_credits.core.exceptions import DatabaseError, GoldenInfrastructureException
from golden_credits.core.logging.logger import LogContext
from golden_credits.core.validation.input_validator import (
    MAX_DESCRIPTION_LENGTH,
    InputValidator,
)
from golden_credits.database.models.economy.game_unlock import GameUnlock
from golden_credits.database.models.enums import ClaimType, SpinType, TransactionSource
from golden_credits.modules.ledger.schemas import (
    HistoryFilter,
    ReconciliationReport,
    TransactionView,
    WalletStats,
)
from golden_credits.modules.orchestrator.repository import GameUnlockRepository
from golden_credits.modules.orchestrator.results import (
    AdjustmentResult,
    GamePurchaseResult,
    GameRewardResult,
    ReferralResult,
)
from golden_credits.modules.rewards.daily_cap import DailyCapPolicy
from golden_credits.modules.rewards.mastery import MasteryCalculator, MasteryInfo
from golden_credits.modules.rewards.policy import RewardPolicyTable
from golden_credits.modules.rewards.repository import DailyRewardSummaryRepository
from golden_credits.modules.rewards.stats import GamesPlayedReader
from golden_credits.modules.shared.account_repository import AccountRepository
from golden_credits.modules.shared.base_service import BaseService
from golden_credits.modules.shared.claim_repository import RewardClaimRepository
from golden_credits.modules.shared.exceptions import (
    GameAlreadyUnlockedError,
    GoldenDomainException,
    ValidationError,
)
from golden_credits.modules.streak.schemas import (
    DailyLoginResult,
    LoginStateView,
    MilestoneResult,
)
from golden_credits.modules.wheel.schemas import (
    SpinClaimResult,
    SpinPurchaseResult,
    SpinResult,
    WheelStateView,
)

if TYPE_CHECKING:
    from logging import Logger

    from golden_credits.core.config.manager import ConfigManager
    from golden_credits.core.event.bus import EventBus
    from golden_credits.core.locking.account_lock import AccountLockManager
    from golden_credits.modules.ledger.service import LedgerService
    from golden_credits.modules.streak.service import StreakService
    from golden_credits.modules.wheel.service import WheelService

T = TypeVar("T")

REFERRAL_CLAIM_KEY = "referral"
MAX_EVENT_TYPE_LENGTH = 64


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class RewardOrchestrator(BaseService):
    """
    Facade over the economy services.

    All mutating methods hold the account's exclusive scope for the whole
    read-modify-write and commit before returning.

    Configuration:
        engine.referral.bonus_amount   (default 50)
    """

    def __init__(
        self,
        ledger: LedgerService,
        streak: StreakService,
        wheel: WheelService,
        policy: RewardPolicyTable,
        mastery: MasteryCalculator,
        daily_cap: DailyCapPolicy,
        calendar: ReferenceCalendar,
        lock_manager: AccountLockManager,
        games_played: GamesPlayedReader,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        clock: Clock = system_clock,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self.ledger = ledger
        self.streak = streak
        self.wheel = wheel
        self.policy = policy
        self.mastery = mastery
        self.daily_cap = daily_cap
        self.calendar = calendar
        self._locks = lock_manager
        self._games_played = games_played
        self._clock = clock

        self._accounts = AccountRepository(logger)
        self._summaries = DailyRewardSummaryRepository(logger)
        self._unlocks = GameUnlockRepository(logger)
        self._claims = RewardClaimRepository(logger)

        self.referral_bonus = int(self.get_config("engine.referral.bonus_amount", 50))

    # =========================================================================
    # EXECUTION SCOPES
    # =========================================================================

    async def _mutate(
        self,
        account_id: str,
        operation: str,
        work: Callable[[AsyncSession, datetime], Awaitable[T]],
    ) -> T:
        """Run `work(session, now)` under the account scope in one transaction."""

        async def critical_section() -> T:
            now = self._clock()
            async with DatabaseService.get_transaction() as session:
                await self._accounts.lock_or_create(session, account_id, now)
                return await work(session, now)

        async with LogContext(account_id=account_id, operation=operation):
            try:
                return await self._locks.run_exclusive(account_id, operation, critical_section)
            except GoldenDomainException as exc:
                self.log_outcome(operation, exc, account_id=account_id)
                raise
            except GoldenInfrastructureException as exc:
                self.log_error(operation, exc, account_id=account_id)
                raise
            except SQLAlchemyError as exc:
                self.log_error(operation, exc, account_id=account_id)
                raise DatabaseError(operation, exc) from exc

    async def _read(
        self,
        account_id: str,
        operation: str,
        work: Callable[[AsyncSession, datetime], Awaitable[T]],
    ) -> T:
        async with LogContext(account_id=account_id, operation=operation):
            try:
                async with DatabaseService.get_session() as session:
                    return await work(session, self._clock())
            except SQLAlchemyError as exc:
                self.log_error(operation, exc, account_id=account_id)
                raise DatabaseError(operation, exc) from exc

    async def _wallet_event(
        self,
        account_id: str,
        amount: int,
        source: TransactionSource,
        transaction_id: Optional[int],
        balance: int,
    ) -> None:
        if not amount or transaction_id is None:
            return
        await self.emit_event(
            "wallet.credited" if amount > 0 else "wallet.debited",
            {
                "account_id": account_id,
                "amount": amount,
                "source": source.value,
                "transaction_id": transaction_id,
                "balance": balance,
            },
        )

    # =========================================================================
    # GAME REWARDS
    # =========================================================================

    async def award_game_event(
        self,
        account_id: str,
        game_id: str,
        event_type: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> GameRewardResult:
        """
        Credit the reward for a gameplay event.

        Raises:
            UnknownRewardTypeError: no rule for (game_id, event_type); no state changes
            ValidationError: malformed identifiers or parameters
        """
        account_id = InputValidator.validate_account_id(account_id)
        game_id = InputValidator.validate_game_id(game_id)
        event_type = InputValidator.validate_string(
            event_type, "event_type", min_length=1, max_length=MAX_EVENT_TYPE_LENGTH
        )
        params = InputValidator.validate_params(params)

        try:
            rule = self.policy.lookup(game_id, event_type)
        except GoldenDomainException as exc:
            self.log_outcome("award_game_event", exc, account_id=account_id)
            raise

        games_played = await self._games_played.games_played(account_id, game_id)
        mastery_multiplier = self.mastery.multiplier(games_played)

        async def work(session: AsyncSession, now: datetime) -> GameRewardResult:
            day = self.calendar.day_of(now)
            summary = await self._summaries.for_day(session, account_id, day)

            first_wins: List[str] = []
            if summary is not None:
                first_wins = ((summary.per_game or {}).get(game_id) or {}).get("first_win", [])
            first_of_day = rule.first_of_day_bonus > 0 and event_type not in first_wins

            base = rule.compute(params, first_of_day=first_of_day)
            streak_multiplier = await self.streak.streak_multiplier(session, account_id, now)
            multiplier = Decimal(str(mastery_multiplier)) * Decimal(str(streak_multiplier))
            proposed = round_half_up(base * multiplier)

            decision = self.daily_cap.adjust(summary, game_id, proposed)

            if decision.final <= 0:
                self.log.info(
                    "Game reward absorbed",
                    extra={
                        "account_id": account_id,
                        "game_id": game_id,
                        "event_type": event_type,
                        "base_amount": float(base),
                        "proposed": proposed,
                        "remaining_before": decision.remaining_before,
                        "reduction_factor": decision.reduction_factor,
                    },
                )
                return GameRewardResult(
                    amount_credited=0,
                    base_amount=float(base),
                    multiplier=float(multiplier),
                    capped=decision.capped,
                    transaction_id=None,
                    balance=await self.ledger.get_balance(account_id, session=session),
                )

            tx = await self.ledger.append(
                session,
                account_id,
                decision.final,
                TransactionSource.GAME_REWARD,
                now,
                game_id=game_id,
                description=f"{game_id}: {event_type}",
            )
            await self._summaries.record_award(
                session,
                account_id,
                day,
                game_id,
                decision.final,
                first_win_rule=event_type if first_of_day else None,
            )

            self.log.info(
                "Game reward credited",
                extra={
                    "account_id": account_id,
                    "game_id": game_id,
                    "event_type": event_type,
                    "base_amount": float(base),
                    "multiplier": float(multiplier),
                    "amount": decision.final,
                    "capped": decision.capped,
                    "first_of_day_bonus": first_of_day,
                },
            )
            return GameRewardResult(
                amount_credited=decision.final,
                base_amount=float(base),
                multiplier=float(multiplier),
                capped=decision.capped,
                transaction_id=tx.id,
                balance=tx.balance_after,
                first_of_day_bonus_applied=first_of_day,
            )

        result = await self._mutate(account_id, "award_game_event", work)

        await self.emit_event(
            "game_reward.awarded",
            {
                "account_id": account_id,
                "game_id": game_id,
                "event_type": event_type,
                "amount_credited": result.amount_credited,
                "base_amount": result.base_amount,
                "multiplier": result.multiplier,
                "capped": result.capped,
            },
        )
        await self._wallet_event(
            account_id,
            result.amount_credited,
            TransactionSource.GAME_REWARD,
            result.transaction_id,
            result.balance,
        )
        return result

    # =========================================================================
    # DAILY LOGIN & MILESTONES
    # =========================================================================

    async def claim_daily_login(self, account_id: str) -> DailyLoginResult:
        """
        Raises:
            AlreadyClaimedError: already claimed on this reference day
        """
        account_id = InputValidator.validate_account_id(account_id)

        async def work(session: AsyncSession, now: datetime) -> DailyLoginResult:
            result = await self.streak.claim_daily_login(session, account_id, now)
            if result.wheel_spins_granted:
                await self.wheel.grant_spins(session, account_id, result.wheel_spins_granted)
            return result

        result = await self._mutate(account_id, "claim_daily_login", work)

        await self.emit_event(
            "daily_login.claimed",
            {
                "account_id": account_id,
                "amount": result.amount_credited,
                "new_streak": result.new_streak,
                "streak_continued": result.streak_continued,
                "wheel_spins_granted": result.wheel_spins_granted,
            },
        )
        await self._wallet_event(
            account_id,
            result.amount_credited,
            TransactionSource.DAILY_LOGIN,
            result.transaction_id,
            result.balance,
        )
        return result

    async def claim_milestone(self, account_id: str, days: int) -> MilestoneResult:
        """
        Raises:
            NotFoundError: no milestone defined for `days`
            MilestoneNotReachedError: effective streak below `days`
            AlreadyClaimedError: milestone already claimed
        """
        account_id = InputValidator.validate_account_id(account_id)
        days = InputValidator.validate_positive_integer(days, "days")

        async def work(session: AsyncSession, now: datetime) -> MilestoneResult:
            result = await self.streak.claim_milestone(session, account_id, days, now)
            if result.wheel_spins_granted:
                await self.wheel.grant_spins(session, account_id, result.wheel_spins_granted)
            return result

        result = await self._mutate(account_id, "claim_milestone", work)

        await self.emit_event(
            "streak.milestone_claimed",
            {
                "account_id": account_id,
                "threshold_days": result.threshold_days,
                "amount": result.amount_credited,
                "wheel_spins_granted": result.wheel_spins_granted,
                "cosmetic_rewards": result.cosmetic_rewards,
            },
        )
        await self._wallet_event(
            account_id,
            result.amount_credited,
            TransactionSource.MILESTONE,
            result.transaction_id,
            result.balance,
        )
        return result

    # =========================================================================
    # WHEEL
    # =========================================================================

    async def spin_wheel(self, account_id: str, spin_type: str = SpinType.FREE.value) -> SpinResult:
        """
        Raises:
            NoSpinAvailableError: free spin used today, or no paid spins left
        """
        account_id = InputValidator.validate_account_id(account_id)
        spin = SpinType(
            InputValidator.validate_choice(
                getattr(spin_type, "value", spin_type),
                "spin_type",
                [member.value for member in SpinType],
            )
        )

        async def work(session: AsyncSession, now: datetime) -> SpinResult:
            return await self.wheel.spin(session, account_id, spin, now)

        result = await self._mutate(account_id, "spin_wheel", work)

        await self.emit_event(
            "wheel.spun",
            {
                "account_id": account_id,
                "spin_id": result.spin_id,
                "spin_type": result.spin_type.value,
                "segment_id": result.segment_id,
                "reward_amount": result.reward_amount,
                "guaranteed": result.guaranteed,
            },
        )
        return result

    async def claim_spin_reward(self, account_id: str, spin_id: str) -> SpinClaimResult:
        """
        Raises:
            NotFoundError: unknown spin or a spin of another account
            AlreadyClaimedError: reward already claimed
        """
        account_id = InputValidator.validate_account_id(account_id)
        spin_id = InputValidator.validate_string(spin_id, "spin_id", min_length=1, max_length=36)

        async def work(session: AsyncSession, now: datetime) -> SpinClaimResult:
            return await self.wheel.claim_spin_reward(session, account_id, spin_id, now)

        result = await self._mutate(account_id, "claim_spin_reward", work)

        await self.emit_event(
            "wheel.reward_claimed",
            {
                "account_id": account_id,
                "spin_id": result.spin_id,
                "amount": result.amount_credited,
            },
        )
        await self._wallet_event(
            account_id,
            result.amount_credited,
            TransactionSource.WHEEL_SPIN,
            result.transaction_id,
            result.balance,
        )
        return result

    async def purchase_spins(self, account_id: str, quantity: int) -> SpinPurchaseResult:
        """
        Raises:
            InsufficientFundsError: balance below quantity x unit cost; nothing changes
        """
        account_id = InputValidator.validate_account_id(account_id)
        quantity = InputValidator.validate_positive_integer(
            quantity, "quantity", max_value=self.wheel.max_purchase_quantity
        )

        async def work(session: AsyncSession, now: datetime) -> SpinPurchaseResult:
            return await self.wheel.purchase_spins(session, account_id, quantity, now)

        result = await self._mutate(account_id, "purchase_spins", work)

        await self.emit_event(
            "wheel.spins_purchased",
            {
                "account_id": account_id,
                "quantity": result.quantity,
                "cost": result.cost,
                "new_spin_count": result.new_spin_count,
            },
        )
        await self._wallet_event(
            account_id,
            -result.cost,
            TransactionSource.WHEEL_PURCHASE,
            result.transaction_id,
            result.balance,
        )
        return result

    # =========================================================================
    # PURCHASES, REFERRALS, ADJUSTMENTS
    # =========================================================================

    async def purchase_game(self, account_id: str, game_id: str, cost: int) -> GamePurchaseResult:
        """
        Unlock a game for `cost` Golden Credits.

        Raises:
            GameAlreadyUnlockedError: the account already owns the game
            InsufficientFundsError: balance below cost; nothing changes
        """
        account_id = InputValidator.validate_account_id(account_id)
        game_id = InputValidator.validate_game_id(game_id)
        cost = InputValidator.validate_non_negative_integer(cost, "cost")

        async def work(session: AsyncSession, now: datetime) -> GamePurchaseResult:
            if await self._unlocks.find(session, account_id, game_id) is not None:
                raise GameAlreadyUnlockedError(game_id)

            transaction_id: Optional[int] = None
            if cost > 0:
                tx = await self.ledger.append(
                    session,
                    account_id,
                    -cost,
                    TransactionSource.GAME_UNLOCK,
                    now,
                    game_id=game_id,
                    description=f"Unlocked {game_id}",
                )
                transaction_id = tx.id
                balance = tx.balance_after
            else:
                balance = await self.ledger.get_balance(account_id, session=session)

            unlock = self._unlocks.add(
                session,
                GameUnlock(account_id=account_id, game_id=game_id, cost=cost, unlocked_at=now),
            )
            await self._unlocks.flush(session)

            self.log.info(
                "Game unlocked",
                extra={"account_id": account_id, "game_id": game_id, "cost": cost},
            )
            return GamePurchaseResult(
                game_id=game_id,
                cost=cost,
                transaction_id=transaction_id,
                balance=balance,
                unlocked_at=unlock.unlocked_at,
            )

        result = await self._mutate(account_id, "purchase_game", work)

        await self.emit_event(
            "game.unlocked",
            {"account_id": account_id, "game_id": game_id, "cost": cost},
        )
        await self._wallet_event(
            account_id,
            -cost,
            TransactionSource.GAME_UNLOCK,
            result.transaction_id,
            result.balance,
        )
        return result

    async def grant_referral_bonus(
        self,
        account_id: str,
        referrer_id: Optional[str] = None,
    ) -> ReferralResult:
        """
        Credit the one-time welcome bonus for an account that joined by referral.

        Raises:
            AlreadyClaimedError: the account already received its referral bonus
            ValidationError: an account cannot refer itself
        """
        account_id = InputValidator.validate_account_id(account_id)
        if referrer_id is not None:
            referrer_id = InputValidator.validate_account_id(referrer_id, "referrer_id")
            if referrer_id == account_id:
                raise ValidationError("referrer_id", "An account cannot refer itself")

        amount = self.referral_bonus

        async def work(session: AsyncSession, now: datetime) -> ReferralResult:
            await self._claims.record(
                session,
                account_id,
                ClaimType.REFERRAL_BONUS,
                REFERRAL_CLAIM_KEY,
                now,
                details={"referrer_id": referrer_id, "amount": amount},
            )
            tx = await self.ledger.append(
                session,
                account_id,
                amount,
                TransactionSource.REFERRAL,
                now,
                description="Referral welcome bonus",
            )
            return ReferralResult(
                amount_credited=amount,
                referrer_id=referrer_id,
                transaction_id=tx.id,
                balance=tx.balance_after,
            )

        result = await self._mutate(account_id, "grant_referral_bonus", work)

        await self.emit_event(
            "referral.bonus_granted",
            {
                "account_id": account_id,
                "referrer_id": referrer_id,
                "amount": result.amount_credited,
            },
        )
        await self._wallet_event(
            account_id,
            result.amount_credited,
            TransactionSource.REFERRAL,
            result.transaction_id,
            result.balance,
        )
        return result

    async def adjust_balance(self, account_id: str, amount: int, reason: str) -> AdjustmentResult:
        """
        Append a manual correction. Negative amounts may not overdraw.

        Raises:
            ValidationError: zero amount or empty reason
            InsufficientFundsError: the debit would leave the balance below zero
        """
        account_id = InputValidator.validate_account_id(account_id)
        amount = InputValidator.validate_integer(amount, "amount", allow_zero=False)
        reason = InputValidator.validate_string(
            reason, "reason", min_length=1, max_length=MAX_DESCRIPTION_LENGTH
        )

        async def work(session: AsyncSession, now: datetime) -> AdjustmentResult:
            tx = await self.ledger.append(
                session,
                account_id,
                amount,
                TransactionSource.MANUAL_ADJUSTMENT,
                now,
                description=reason,
            )
            self.log.warning(
                "Manual balance adjustment",
                extra={
                    "account_id": account_id,
                    "amount": amount,
                    "reason": reason,
                    "balance_after": tx.balance_after,
                },
            )
            return AdjustmentResult(
                amount=amount,
                reason=reason,
                transaction_id=tx.id,
                balance=tx.balance_after,
            )

        result = await self._mutate(account_id, "adjust_balance", work)

        await self._wallet_event(
            account_id,
            result.amount,
            TransactionSource.MANUAL_ADJUSTMENT,
            result.transaction_id,
            result.balance,
        )
        return result

    # =========================================================================
    # READS
    # =========================================================================

    async def get_balance(self, account_id: str) -> int:
        account_id = InputValidator.validate_account_id(account_id)

        async def work(session: AsyncSession, now: datetime) -> int:
            return await self.ledger.get_balance(account_id, session=session)

        return await self._read(account_id, "get_balance", work)

    async def get_history(
        self,
        account_id: str,
        criteria: Optional[HistoryFilter] = None,
    ) -> List[TransactionView]:
        account_id = InputValidator.validate_account_id(account_id)
        try:
            return await self.ledger.history(account_id, criteria).to_list()
        except SQLAlchemyError as exc:
            self.log_error("get_history", exc, account_id=account_id)
            raise DatabaseError("get_history", exc) from exc

    async def get_wallet_stats(self, account_id: str) -> WalletStats:
        account_id = InputValidator.validate_account_id(account_id)
        try:
            return await self.ledger.get_stats(account_id)
        except SQLAlchemyError as exc:
            self.log_error("get_wallet_stats", exc, account_id=account_id)
            raise DatabaseError("get_wallet_stats", exc) from exc

    async def export_history_csv(
        self,
        account_id: str,
        criteria: Optional[HistoryFilter] = None,
    ) -> str:
        account_id = InputValidator.validate_account_id(account_id)
        try:
            return await self.ledger.export_csv(account_id, criteria)
        except SQLAlchemyError as exc:
            self.log_error("export_history_csv", exc, account_id=account_id)
            raise DatabaseError("export_history_csv", exc) from exc

    async def reconcile(self, account_id: str) -> ReconciliationReport:
        account_id = InputValidator.validate_account_id(account_id)
        try:
            return await self.ledger.reconcile(account_id)
        except SQLAlchemyError as exc:
            self.log_error("reconcile", exc, account_id=account_id)
            raise DatabaseError("reconcile", exc) from exc

    async def get_mastery_info(self, account_id: str, game_id: str) -> MasteryInfo:
        account_id = InputValidator.validate_account_id(account_id)
        game_id = InputValidator.validate_game_id(game_id)
        return self.mastery.info(await self._games_played.games_played(account_id, game_id))

    async def get_wheel_state(self, account_id: str) -> WheelStateView:
        account_id = InputValidator.validate_account_id(account_id)

        async def work(session: AsyncSession, now: datetime) -> WheelStateView:
            return await self.wheel.get_state(session, account_id, now)

        return await self._read(account_id, "get_wheel_state", work)

    async def get_login_state(self, account_id: str) -> LoginStateView:
        account_id = InputValidator.validate_account_id(account_id)

        async def work(session: AsyncSession, now: datetime) -> LoginStateView:
            return await self.streak.get_state(session, account_id, now)

        return await self._read(account_id, "get_login_state", work)

    async def get_unlocked_games(self, account_id: str) -> List[str]:
        account_id = InputValidator.validate_account_id(account_id)

        async def work(session: AsyncSession, now: datetime) -> List[str]:
            return [row.game_id for row in await self._unlocks.unlocked_games(session, account_id)]

        return await self._read(account_id, "get_unlocked_games", work)
