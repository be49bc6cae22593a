"""Database storage service for rounds, donations and matches"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from amanah_matching.models.contribution import CampaignAllocation
from amanah_matching.models.db import Campaign, CampaignMatch, Donation, FundingRound
from amanah_matching.models.round import Round, RoundNotFoundError, RoundStateError, RoundStatus
from amanah_matching.scoring import AmountLike, InvalidArgumentError, parse_amount

logger = logging.getLogger(__name__)


class RoundOverlapError(Exception):
    """Raised when a new round would overlap an existing one"""
    pass


class RoundStorageService:
    """Handles all database operations"""

    def __init__(self, session: Session):
        if not session:
            raise ValueError("Database session is required")
        self.session = session

    @staticmethod
    def _to_round(row: FundingRound) -> Round:
        return Round(
            id=row.id,
            name=row.name,
            description=row.description,
            start_time=row.start_time,
            end_time=row.end_time,
            matching_pool=int(row.matching_pool),
            status=RoundStatus.DISTRIBUTED if row.is_distributed else RoundStatus.OPEN,
            distributed_at=row.distributed_at,
            settlement_reference=row.settlement_reference
        )

    def _get_round_row(self, round_id: int) -> FundingRound:
        row = self.session.get(FundingRound, round_id)
        if row is None:
            raise RoundNotFoundError(f"Funding round {round_id} not found")
        return row

    def _all_rounds(self) -> List[Round]:
        rows = self.session.query(FundingRound).order_by(FundingRound.start_time).all()
        return [self._to_round(row) for row in rows]

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error {action}: {e}")
            raise

    def create_campaign(self, name: str, charity_id: Optional[int] = None, is_active: bool = True) -> int:
        campaign = Campaign(name=name, charity_id=charity_id, is_active=is_active)
        self.session.add(campaign)
        self._commit("creating campaign")
        return campaign.id

    def campaign_exists(self, campaign_id: int) -> bool:
        return self.session.get(Campaign, campaign_id) is not None

    def get_campaign_details(self, campaign_ids: Iterable[int]) -> Dict[int, Tuple[str, Optional[int]]]:
        """Name and charity id for each known campaign"""
        ids = list(campaign_ids)
        if not ids:
            return {}
        rows = self.session.query(Campaign).filter(Campaign.id.in_(ids)).all()
        return {row.id: (row.name, row.charity_id) for row in rows}

    def create_round(self, name: str, start_time: datetime, end_time: datetime,
                     matching_pool: AmountLike, description: Optional[str] = None) -> Round:
        """
        Create a funding round.

        Raises:
            InvalidArgumentError: If the window is empty or the pool is invalid
            RoundOverlapError: If another round overlaps the window
        """
        if end_time <= start_time:
            raise InvalidArgumentError("Round end_time must be after start_time")
        pool = parse_amount(matching_pool, "matching_pool")

        for existing in self._all_rounds():
            if existing.overlaps(start_time, end_time):
                raise RoundOverlapError(
                    f"Round '{existing.name}' is already active during this period"
                )

        row = FundingRound(
            name=name,
            description=description,
            start_time=start_time,
            end_time=end_time,
            matching_pool=str(pool)
        )
        self.session.add(row)
        self._commit("creating round")
        logger.info(f"Created round {row.id} '{name}' with matching pool {pool}")
        return self._to_round(row)

    def get_round(self, round_id: int) -> Optional[Round]:
        row = self.session.get(FundingRound, round_id)
        return self._to_round(row) if row else None

    def get_current_round(self, now: datetime) -> Optional[Round]:
        """The undistributed round whose window contains now"""
        active = [r for r in self._all_rounds() if r.is_active(now)]
        return max(active, key=lambda r: r.start_time) if active else None

    def fund_round(self, round_id: int, amount: AmountLike) -> Round:
        """Add funds to a round's matching pool"""
        row = self._get_round_row(round_id)
        funded = self._to_round(row).fund(amount)
        row.matching_pool = str(funded.matching_pool)
        self._commit("funding round")
        logger.info(f"Round {round_id} matching pool is now {funded.matching_pool}")
        return funded

    def record_donation(self, round_id: int, campaign_id: int, amount: AmountLike,
                        donor_address: Optional[str] = None) -> int:
        """
        Store a confirmed donation.

        Raises:
            RoundNotFoundError: If the round does not exist
            RoundStateError: If the round was already distributed
            InvalidArgumentError: If the campaign is missing or inactive, or the amount is invalid
        """
        value = parse_amount(amount, "amount")
        row = self._get_round_row(round_id)
        if row.is_distributed:
            raise RoundStateError(f"Round {round_id} has already been distributed")

        campaign = self.session.get(Campaign, campaign_id)
        if campaign is None:
            raise InvalidArgumentError(f"Campaign {campaign_id} not found")
        if not campaign.is_active:
            raise InvalidArgumentError(f"Campaign {campaign_id} is not active")

        donation = Donation(
            round_id=round_id,
            campaign_id=campaign_id,
            donor_address=donor_address,
            amount=str(value)
        )
        self.session.add(donation)
        self._commit("recording donation")
        return donation.id

    def load_campaign_contributions(self, round_id: int) -> Dict[int, List[int]]:
        """Donation amounts of a round grouped by campaign, in donation order"""
        contributions: Dict[int, List[int]] = {}
        rows = self.session.query(Donation.campaign_id, Donation.amount).filter_by(
            round_id=round_id
        ).order_by(Donation.id).all()
        for campaign_id, amount in rows:
            contributions.setdefault(campaign_id, []).append(int(amount))
        return contributions

    def load_campaign_donations(self, round_id: int, campaign_id: int) -> List[int]:
        rows = self.session.query(Donation.amount).filter_by(
            round_id=round_id, campaign_id=campaign_id
        ).order_by(Donation.id).all()
        return [int(amount) for (amount,) in rows]

    def load_all_donation_amounts(self, round_id: int) -> List[int]:
        rows = self.session.query(Donation.amount).filter_by(
            round_id=round_id
        ).order_by(Donation.id).all()
        return [int(amount) for (amount,) in rows]

    def store_allocations(self, funding_round: Round, allocations: List[CampaignAllocation],
                          now: datetime, reference: Optional[str] = None) -> Round:
        """
        Persist settled matches and mark the round distributed.

        A round can only be distributed once.

        Raises:
            RoundStateError: If the round was already distributed or has not ended
        """
        row = self._get_round_row(funding_round.id)
        if row.is_distributed:
            raise RoundStateError(f"Round {row.id} has already been distributed")

        distributed = self._to_round(row).mark_distributed(now, reference)

        for allocation in allocations:
            self.session.add(CampaignMatch(
                round_id=row.id,
                campaign_id=allocation.campaign_id,
                matched_amount=str(allocation.matched_amount),
                donation_count=allocation.donation_count,
                total_direct_donations=str(allocation.total_direct_donations)
            ))

        row.is_distributed = True
        row.distributed_at = distributed.distributed_at
        row.settlement_reference = reference
        self._commit("storing allocations")
        logger.info(f"Stored {len(allocations)} campaign matches for round {row.id}")
        return distributed

    def get_matches(self, round_id: int) -> Dict[int, int]:
        """Settled matched amount per campaign for a distributed round"""
        rows = self.session.query(CampaignMatch).filter_by(round_id=round_id).all()
        return {row.campaign_id: int(row.matched_amount) for row in rows}
