"""
Service tests for game unlocks, referral bonuses, manual adjustments and
the wallet read models exposed by the orchestrator.
"""

import pytest

from golden_credits.database.models.enums import TransactionSource
from golden_credits.modules.ledger.schemas import HistoryFilter
from golden_credits.modules.shared.exceptions import (
    AlreadyClaimedError,
    GameAlreadyUnlockedError,
    InsufficientFundsError,
    ValidationError,
)

ACCOUNT = "tg:4001"


@pytest.mark.asyncio
@pytest.mark.database
class TestGamePurchases:

    async def test_unlock_debits_cost(self, orchestrator, recorded_events):
        await orchestrator.adjust_balance(ACCOUNT, 300, "Test funds")
        recorded_events.clear()

        result = await orchestrator.purchase_game(ACCOUNT, "sacred-tapping", 250)

        assert result.cost == 250
        assert result.balance == 50
        assert await orchestrator.get_unlocked_games(ACCOUNT) == ["sacred-tapping"]
        assert [name for name, _ in recorded_events] == ["game.unlocked", "wallet.debited"]
        assert recorded_events[1][1]["amount"] == -250

    async def test_second_unlock_rejected(self, orchestrator):
        await orchestrator.purchase_game(ACCOUNT, "sacred-tapping", 0)

        with pytest.raises(GameAlreadyUnlockedError):
            await orchestrator.purchase_game(ACCOUNT, "sacred-tapping", 0)

    async def test_insufficient_funds_unlocks_nothing(self, orchestrator):
        await orchestrator.adjust_balance(ACCOUNT, 99, "Test funds")

        with pytest.raises(InsufficientFundsError):
            await orchestrator.purchase_game(ACCOUNT, "gates-of-knowledge", 100)

        assert await orchestrator.get_unlocked_games(ACCOUNT) == []
        assert await orchestrator.get_balance(ACCOUNT) == 99

    async def test_free_unlock_writes_no_row(self, orchestrator, recorded_events):
        result = await orchestrator.purchase_game(ACCOUNT, "flame-of-wisdom", 0)

        assert result.transaction_id is None
        assert await orchestrator.get_history(ACCOUNT) == []
        assert [name for name, _ in recorded_events] == ["game.unlocked"]

    async def test_negative_cost_rejected(self, orchestrator):
        with pytest.raises(ValidationError):
            await orchestrator.purchase_game(ACCOUNT, "flame-of-wisdom", -5)


@pytest.mark.asyncio
@pytest.mark.database
class TestReferralBonus:

    async def test_bonus_credited_once(self, orchestrator):
        result = await orchestrator.grant_referral_bonus(ACCOUNT, referrer_id="tg:4999")

        assert result.amount_credited == 50
        assert result.referrer_id == "tg:4999"
        assert result.balance == 50

        with pytest.raises(AlreadyClaimedError):
            await orchestrator.grant_referral_bonus(ACCOUNT, referrer_id="tg:5000")
        assert await orchestrator.get_balance(ACCOUNT) == 50

    async def test_self_referral_rejected(self, orchestrator):
        with pytest.raises(ValidationError):
            await orchestrator.grant_referral_bonus(ACCOUNT, referrer_id=ACCOUNT)

        assert await orchestrator.get_balance(ACCOUNT) == 0

    async def test_referral_source(self, orchestrator):
        await orchestrator.grant_referral_bonus(ACCOUNT)

        [tx] = await orchestrator.get_history(ACCOUNT)

        assert tx.source is TransactionSource.REFERRAL
        assert tx.description == "Referral welcome bonus"


@pytest.mark.asyncio
@pytest.mark.database
class TestManualAdjustments:

    async def test_credit_and_debit(self, orchestrator, clock):
        await orchestrator.adjust_balance(ACCOUNT, 40, "Compensation for outage")
        clock.advance(seconds=1)
        debit = await orchestrator.adjust_balance(ACCOUNT, -15, "Duplicate reward reversal")

        assert debit.balance == 25
        [latest, _] = await orchestrator.get_history(ACCOUNT)
        assert latest.source is TransactionSource.MANUAL_ADJUSTMENT
        assert latest.description == "Duplicate reward reversal"

    async def test_debit_may_not_overdraw(self, orchestrator):
        await orchestrator.adjust_balance(ACCOUNT, 10, "Test funds")

        with pytest.raises(InsufficientFundsError):
            await orchestrator.adjust_balance(ACCOUNT, -11, "Too much")

    @pytest.mark.parametrize("amount, reason", [(0, "Nothing"), (5, ""), (5, "r" * 256)])
    async def test_invalid_adjustment(self, orchestrator, amount, reason):
        with pytest.raises(ValidationError):
            await orchestrator.adjust_balance(ACCOUNT, amount, reason)

    async def test_publishes_wallet_event_only(self, orchestrator, recorded_events):
        await orchestrator.adjust_balance(ACCOUNT, 5, "Goodwill")

        assert [name for name, _ in recorded_events] == ["wallet.credited"]
        assert recorded_events[0][1]["source"] == "manual-adjustment"


@pytest.mark.asyncio
@pytest.mark.database
class TestWalletReads:

    async def test_stats_csv_and_reconcile(self, orchestrator, clock):
        await orchestrator.claim_daily_login(ACCOUNT)
        clock.advance(minutes=5)
        await orchestrator.award_game_event(ACCOUNT, "flame-of-wisdom", "participation")
        clock.advance(minutes=5)
        await orchestrator.adjust_balance(ACCOUNT, -7, "Correction")

        stats = await orchestrator.get_wallet_stats(ACCOUNT)
        csv_text = await orchestrator.export_history_csv(
            ACCOUNT, HistoryFilter(source=TransactionSource.DAILY_LOGIN)
        )
        report = await orchestrator.reconcile(ACCOUNT)

        assert (stats.balance, stats.total_earned, stats.total_spent) == (5, 12, 7)
        assert csv_text.strip().split("\n")[1] == (
            "2025-03-10,12:00:00,daily-login,10,10,Daily login reward (day 1)"
        )
        assert report.consistent
        assert report.ledger_sum == 5


@pytest.mark.asyncio
@pytest.mark.database
class TestContainer:

    async def test_health_check(self, container):
        health = await container.health_check()

        assert health["initialized"] is True
        assert health["all_components_available"] is True
        assert health["tracked_account_locks"] == 0
