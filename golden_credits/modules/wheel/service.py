"""
Wheel Service - free/paid spins, spin claims, spin purchases

Purpose
-------
Persist wheel state and spin records around the pure `ProbabilityWheel`.
Runs inside the transaction and account scope supplied by the orchestrator.

Responsibilities
----------------
- Spin: one free spin per reference day, paid spins consumed at spin time,
  first-ever spin drawn from the attractive band
- Claim: credit a spin's reward once (source "wheel-spin"); zero-reward
  spins are marked claimed without a ledger row
- Purchase: debit quantity x unit cost (source "wheel-purchase") and add
  paid spins in the same transaction
- Grant: add spins awarded by logins and milestones

Configuration:
    wheel.paid_spin_cost          (default 100)
    wheel.max_purchase_quantity   (default 100)
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from golden_credits.core.validation.input_validator import InputValidator
from golden_credits.database.models.enums import SpinType, TransactionSource
from golden_credits.database.models.progression.wheel import SpinRecord
from golden_credits.modules.shared.base_service import BaseService
from golden_credits.modules.shared.exceptions import (
    AlreadyClaimedError,
    NoSpinAvailableError,
    NotFoundError,
)
from golden_credits.modules.wheel.logic import ProbabilityWheel
from golden_credits.modules.wheel.repository import SpinRecordRepository, WheelStateRepository
from golden_credits.modules.wheel.schemas import (
    SpinClaimResult,
    SpinPurchaseResult,
    SpinResult,
    WheelStateView,
)

if TYPE_CHECKING:
    from logging import Logger

    from golden_credits.core.clock import ReferenceCalendar
    from golden_credits.core.config.manager import ConfigManager
    from golden_credits.core.event.bus import EventBus
    from golden_credits.modules.ledger.service import LedgerService


class WheelService(BaseService):
    def __init__(
        self,
        ledger: LedgerService,
        wheel: ProbabilityWheel,
        calendar: ReferenceCalendar,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._ledger = ledger
        self.wheel = wheel
        self._calendar = calendar
        self._rng = rng or random.Random()
        self._states = WheelStateRepository(logger)
        self._spins = SpinRecordRepository(logger)

        self.paid_spin_cost = int(self.get_config("wheel.paid_spin_cost", 100))
        self.max_purchase_quantity = int(self.get_config("wheel.max_purchase_quantity", 100))

    def free_spin_available(self, last_free_spin_at: Optional[datetime], now: datetime) -> bool:
        return last_free_spin_at is None or not self._calendar.same_day(last_free_spin_at, now)

    # =========================================================================
    # SPIN
    # =========================================================================

    async def spin(
        self,
        session: AsyncSession,
        account_id: str,
        spin_type: SpinType,
        now: datetime,
    ) -> SpinResult:
        """
        Spin the wheel. The outcome is recorded unclaimed.

        Raises:
            NoSpinAvailableError: free spin already used today, or no paid spins
        """
        spin_type = SpinType(spin_type)
        state = await self._states.get_or_create(session, account_id)

        if spin_type is SpinType.FREE:
            if not self.free_spin_available(state.last_free_spin_at, now):
                raise NoSpinAvailableError(spin_type.value, state.paid_spins_available)
            state.last_free_spin_at = now
        else:
            if state.paid_spins_available <= 0:
                raise NoSpinAvailableError(spin_type.value, 0)
            state.paid_spins_available -= 1

        first_spin = not await self._spins.has_history(session, account_id)
        segment, guaranteed = self.wheel.spin(self._rng, first_spin=first_spin)

        record = self._spins.add(
            session,
            SpinRecord(
                account_id=account_id,
                timestamp=now,
                spin_type=spin_type.value,
                segment_id=segment.id,
                segment_label=segment.label,
                reward_amount=segment.reward_amount,
                guaranteed=guaranteed,
                claimed=False,
            ),
        )
        await self._spins.flush(session)

        self.log.info(
            "Wheel spun",
            extra={
                "account_id": account_id,
                "spin_id": record.id,
                "spin_type": spin_type.value,
                "segment_id": segment.id,
                "reward_amount": segment.reward_amount,
                "guaranteed": guaranteed,
            },
        )

        return SpinResult(
            spin_id=record.id,
            spin_type=spin_type,
            segment_id=segment.id,
            segment_label=segment.label,
            reward_amount=segment.reward_amount,
            guaranteed=guaranteed,
            paid_spins_remaining=state.paid_spins_available,
            timestamp=record.timestamp,
        )

    # =========================================================================
    # CLAIM
    # =========================================================================

    async def claim_spin_reward(
        self,
        session: AsyncSession,
        account_id: str,
        spin_id: str,
        now: datetime,
    ) -> SpinClaimResult:
        """
        Raises:
            NotFoundError: unknown spin, or a spin of another account
            AlreadyClaimedError: reward already claimed
        """
        record = await self._spins.get_for_update(session, spin_id)
        if record is None or record.account_id != account_id:
            raise NotFoundError("Spin", spin_id)
        if record.claimed:
            raise AlreadyClaimedError("spin_reward", spin_id)

        record.claimed = True
        record.claimed_at = now

        transaction_id: Optional[int] = None
        if record.reward_amount > 0:
            tx = await self._ledger.append(
                session,
                account_id,
                record.reward_amount,
                TransactionSource.WHEEL_SPIN,
                now,
                description=f"Wheel of Destiny: {record.segment_label}",
            )
            transaction_id = tx.id
            balance = tx.balance_after
        else:
            await self._spins.flush(session)
            balance = await self._ledger.get_balance(account_id, session=session)

        self.log.info(
            "Spin reward claimed",
            extra={
                "account_id": account_id,
                "spin_id": spin_id,
                "amount": record.reward_amount,
            },
        )

        return SpinClaimResult(
            spin_id=spin_id,
            amount_credited=record.reward_amount,
            transaction_id=transaction_id,
            balance=balance,
        )

    # =========================================================================
    # PURCHASE & GRANTS
    # =========================================================================

    async def purchase_spins(
        self,
        session: AsyncSession,
        account_id: str,
        quantity: int,
        now: datetime,
    ) -> SpinPurchaseResult:
        """
        Raises:
            ValidationError: quantity outside 1..max_purchase_quantity
            InsufficientFundsError: balance below quantity x unit cost
        """
        quantity = InputValidator.validate_positive_integer(
            quantity, "quantity", max_value=self.max_purchase_quantity
        )
        cost = quantity * self.paid_spin_cost

        tx = await self._ledger.append(
            session,
            account_id,
            -cost,
            TransactionSource.WHEEL_PURCHASE,
            now,
            description=f"Purchased {quantity} wheel spin(s)",
        )

        state = await self._states.get_or_create(session, account_id)
        state.paid_spins_available += quantity

        self.log.info(
            "Wheel spins purchased",
            extra={
                "account_id": account_id,
                "quantity": quantity,
                "cost": cost,
                "new_spin_count": state.paid_spins_available,
            },
        )

        return SpinPurchaseResult(
            quantity=quantity,
            cost=cost,
            new_spin_count=state.paid_spins_available,
            transaction_id=tx.id,
            balance=tx.balance_after,
        )

    async def grant_spins(self, session: AsyncSession, account_id: str, count: int) -> int:
        """Add `count` paid spins; returns the new paid spin count."""
        state = await self._states.get_or_create(session, account_id)
        if count > 0:
            state.paid_spins_available += count
            self.log.debug(
                "Wheel spins granted",
                extra={"account_id": account_id, "count": count},
            )
        return state.paid_spins_available

    # =========================================================================
    # READS
    # =========================================================================

    async def get_state(self, session: AsyncSession, account_id: str, now: datetime) -> WheelStateView:
        state = await self._states.get(session, account_id)
        last_free = state.last_free_spin_at if state is not None else None
        unclaimed = await self._spins.unclaimed(session, account_id)
        total = await self._spins.count(session, SpinRecord.account_id == account_id)

        return WheelStateView(
            free_spin_available=self.free_spin_available(last_free, now),
            paid_spins_available=state.paid_spins_available if state is not None else 0,
            last_free_spin_at=last_free,
            total_spins=total,
            unclaimed_spin_ids=tuple(record.id for record in unclaimed),
        )
