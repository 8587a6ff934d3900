"""
One-time claim records (reward_claims) used as idempotency guards.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from golden_credits.database.models.economy.reward_claim import RewardClaim
from golden_credits.database.models.enums import ClaimType
from golden_credits.modules.shared.base_repository import BaseRepository
from golden_credits.modules.shared.exceptions import AlreadyClaimedError

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class RewardClaimRepository(BaseRepository[RewardClaim]):
    def __init__(self, logger: Logger) -> None:
        super().__init__(RewardClaim, logger)

    async def find(
        self,
        session: AsyncSession,
        account_id: str,
        claim_type: ClaimType,
        claim_key: str,
    ) -> Optional[RewardClaim]:
        return await self.get(session, (account_id, claim_type.value, claim_key))

    async def claimed_keys(
        self,
        session: AsyncSession,
        account_id: str,
        claim_type: ClaimType,
    ) -> List[str]:
        rows = await self.find_many_where(
            session,
            RewardClaim.account_id == account_id,
            RewardClaim.claim_type == claim_type.value,
        )
        return [row.claim_key for row in rows]

    async def record(
        self,
        session: AsyncSession,
        account_id: str,
        claim_type: ClaimType,
        claim_key: str,
        now: datetime,
        details: Optional[Dict[str, Any]] = None,
    ) -> RewardClaim:
        """
        Record a claim, raising AlreadyClaimedError if it exists.

        Callers hold the account's exclusive scope, so check-then-insert is
        race free; the composite primary key backs it up.
        """
        if await self.find(session, account_id, claim_type, claim_key) is not None:
            raise AlreadyClaimedError(claim_type.value, claim_key)

        claim = self.add(
            session,
            RewardClaim(
                account_id=account_id,
                claim_type=claim_type.value,
                claim_key=claim_key,
                details=details or {},
                claimed_at=now,
            ),
        )
        await self.flush(session)
        return claim
