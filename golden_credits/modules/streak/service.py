"""
Streak Service - daily login claims and streak milestones

Purpose
-------
Persist the login streak and turn claims into ledger credits. Runs inside
a transaction and account scope supplied by the orchestrator; emits no
events itself (the orchestrator publishes after commit).

Responsibilities
----------------
- Daily login: continuation law, tiered reward, longest streak tracking
- Milestones: eligibility on the effective streak, claim-once guard via
  reward_claims, GC credit with source "milestone"
- Streak multiplier lookups for game rewards
- Login calendar read model

Wheel spins granted by logins or milestones are reported in the results;
the orchestrator adds them to the wheel state in the same transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from golden_credits.database.models.enums import ClaimType, TransactionSource
from golden_credits.modules.shared.base_service import BaseService
from golden_credits.modules.shared.claim_repository import RewardClaimRepository
from golden_credits.modules.shared.exceptions import MilestoneNotReachedError
from golden_credits.modules.streak.logic import StreakTracker
from golden_credits.modules.streak.repository import DailyLoginStateRepository
from golden_credits.modules.streak.schemas import (
    DailyLoginResult,
    LoginStateView,
    MilestoneResult,
)

if TYPE_CHECKING:
    from logging import Logger

    from golden_credits.core.config.manager import ConfigManager
    from golden_credits.core.event.bus import EventBus
    from golden_credits.modules.ledger.service import LedgerService


class StreakService(BaseService):
    def __init__(
        self,
        ledger: LedgerService,
        tracker: StreakTracker,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._ledger = ledger
        self.tracker = tracker
        self._states = DailyLoginStateRepository(logger)
        self._claims = RewardClaimRepository(logger)

    # =========================================================================
    # DAILY LOGIN
    # =========================================================================

    async def claim_daily_login(
        self,
        session: AsyncSession,
        account_id: str,
        now: datetime,
    ) -> DailyLoginResult:
        """
        Claim today's login reward.

        Raises:
            AlreadyClaimedError: already claimed on this reference day
        """
        state = await self._states.get_or_create(session, account_id)
        decision = self.tracker.evaluate_claim(state.current_streak, state.last_claim_at, now)

        tx = await self._ledger.append(
            session,
            account_id,
            decision.amount,
            TransactionSource.DAILY_LOGIN,
            now,
            description=f"Daily login reward (day {decision.new_streak})",
        )

        state.current_streak = decision.new_streak
        state.longest_streak = max(state.longest_streak, decision.new_streak)
        state.total_claims += 1
        state.last_claim_at = now

        self.log.info(
            "Daily login claimed",
            extra={
                "account_id": account_id,
                "new_streak": decision.new_streak,
                "streak_continued": decision.continued,
                "amount": decision.amount,
                "wheel_spins_granted": decision.wheel_spins,
            },
        )

        return DailyLoginResult(
            amount_credited=decision.amount,
            new_streak=decision.new_streak,
            longest_streak=state.longest_streak,
            wheel_spins_granted=decision.wheel_spins,
            streak_continued=decision.continued,
            transaction_id=tx.id,
            balance=tx.balance_after,
        )

    # =========================================================================
    # MILESTONES
    # =========================================================================

    async def claim_milestone(
        self,
        session: AsyncSession,
        account_id: str,
        days: int,
        now: datetime,
    ) -> MilestoneResult:
        """
        Claim a streak milestone once.

        Raises:
            NotFoundError: no milestone for `days`
            MilestoneNotReachedError: effective streak below `days`
            AlreadyClaimedError: milestone already claimed
        """
        milestone = self.tracker.milestone(days)

        state = await self._states.get(session, account_id)
        effective = (
            self.tracker.effective_streak(state.current_streak, state.last_claim_at, now)
            if state is not None
            else 0
        )
        if effective < milestone.days:
            raise MilestoneNotReachedError(milestone.days, effective)

        await self._claims.record(
            session,
            account_id,
            ClaimType.STREAK_MILESTONE,
            str(milestone.days),
            now,
            details={
                "golden_credits": milestone.golden_credits,
                "wheel_spins": milestone.wheel_spins,
                "cosmetics": dict(milestone.cosmetics),
                "streak_at_claim": effective,
            },
        )

        transaction_id: Optional[int] = None
        if milestone.golden_credits > 0:
            tx = await self._ledger.append(
                session,
                account_id,
                milestone.golden_credits,
                TransactionSource.MILESTONE,
                now,
                description=f"{milestone.days}-day streak milestone",
            )
            transaction_id = tx.id
            balance = tx.balance_after
        else:
            balance = await self._ledger.get_balance(account_id, session=session)

        self.log.info(
            "Streak milestone claimed",
            extra={
                "account_id": account_id,
                "threshold_days": milestone.days,
                "amount": milestone.golden_credits,
                "wheel_spins_granted": milestone.wheel_spins,
            },
        )

        return MilestoneResult(
            threshold_days=milestone.days,
            amount_credited=milestone.golden_credits,
            wheel_spins_granted=milestone.wheel_spins,
            cosmetic_rewards=dict(milestone.cosmetics),
            transaction_id=transaction_id,
            balance=balance,
        )

    # =========================================================================
    # READS
    # =========================================================================

    async def effective_streak(self, session: AsyncSession, account_id: str, now: datetime) -> int:
        state = await self._states.get(session, account_id)
        if state is None:
            return 0
        return self.tracker.effective_streak(state.current_streak, state.last_claim_at, now)

    async def streak_multiplier(self, session: AsyncSession, account_id: str, now: datetime) -> float:
        return self.tracker.multiplier(await self.effective_streak(session, account_id, now))

    async def get_state(self, session: AsyncSession, account_id: str, now: datetime) -> LoginStateView:
        state = await self._states.get(session, account_id)
        current = state.current_streak if state is not None else 0
        last_claim_at = state.last_claim_at if state is not None else None
        longest = state.longest_streak if state is not None else 0

        effective = self.tracker.effective_streak(current, last_claim_at, now)
        claimed_today = self.tracker.claimed_today(last_claim_at, now)
        next_streak = current + 1 if effective > 0 else 1

        claimed = sorted(
            int(key)
            for key in await self._claims.claimed_keys(
                session, account_id, ClaimType.STREAK_MILESTONE
            )
        )
        claimable = [
            m.days
            for m in self.tracker.milestones()
            if m.days <= effective and m.days not in claimed
        ]

        return LoginStateView(
            current_streak=current,
            effective_streak=effective,
            longest_streak=longest,
            last_claim_at=last_claim_at,
            claimed_today=claimed_today,
            next_reward=self.tracker.daily_reward(next_streak),
            streak_multiplier=self.tracker.multiplier(effective),
            claimed_milestones=claimed,
            claimable_milestones=claimable,
        )
