"""Matching job logic: round settlement and donation impact estimates"""
import logging
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel

from amanah_matching.allocation import AllocationDistributor
from amanah_matching.config import JobType, Settings
from amanah_matching.impact import ImpactEstimator
from amanah_matching.models.contribution import CampaignAllocation
from amanah_matching.models.db import utcnow
from amanah_matching.models.response import (
    CampaignAllocationRecord,
    DistributionResponse,
    DonationSummary,
    ImpactEstimateResponse,
    MatchingPoolSummary,
    MatchingSummary,
)
from amanah_matching.models.round import RoundNotFoundError, RoundStateError
from amanah_matching.scoring import InvalidArgumentError
from amanah_matching.services.storage import RoundStorageService
from amanah_matching.units import parse_ether

logger = logging.getLogger(__name__)


class MatchingJob:
    """Runs distribute and estimate jobs against stored round data"""

    def __init__(self, settings: Settings, storage: RoundStorageService, now: Optional[datetime] = None):
        """Initialize the job; now pins the clock, otherwise UTC now is read per call"""
        self.settings = settings
        self.storage = storage
        self.distributor = AllocationDistributor()
        self.estimator = ImpactEstimator(self.distributor)
        self._now = now

    def now(self) -> datetime:
        return self._now or utcnow()

    def run(self, job_type: JobType) -> BaseModel:
        """Run the job selected by job_type using the configured parameters"""
        if job_type == JobType.DISTRIBUTE:
            if self.settings.ROUND_ID is None:
                raise ValueError("ROUND_ID is required for a distribute job")
            return self.distribute(self.settings.ROUND_ID)
        elif job_type == JobType.ESTIMATE:
            if not self.settings.ESTIMATE_AMOUNT or self.settings.ESTIMATE_CAMPAIGN_ID is None:
                raise ValueError("ESTIMATE_AMOUNT and ESTIMATE_CAMPAIGN_ID are required for an estimate job")
            return self.estimate(self.settings.ESTIMATE_AMOUNT, self.settings.ESTIMATE_CAMPAIGN_ID)
        else:
            raise ValueError(f"Unsupported job type: {job_type}")

    def _build_allocations(self, contributions, matched) -> List[CampaignAllocation]:
        details = self.storage.get_campaign_details(contributions.keys())
        allocations = []
        for campaign_id, donations in contributions.items():
            name, charity_id = details.get(campaign_id, ("Unknown Campaign", None))
            allocations.append(CampaignAllocation(
                campaign_id=campaign_id,
                matched_amount=matched[campaign_id],
                donation_count=len(donations),
                total_direct_donations=sum(donations),
                campaign_name=name,
                charity_id=charity_id
            ))

        # Largest match first
        allocations.sort(key=lambda a: (-a.matched_amount, a.campaign_id))
        return allocations

    def distribute(self, round_id: int, reference: Optional[str] = None) -> DistributionResponse:
        """
        Settle an ended round: allocate its matching pool and persist the result.

        Raises:
            RoundNotFoundError: If the round does not exist
            RoundStateError: If the round is already distributed or still running
        """
        now = self.now()
        funding_round = self.storage.get_round(round_id)
        if funding_round is None:
            raise RoundNotFoundError(f"Funding round {round_id} not found")
        if funding_round.is_distributed:
            raise RoundStateError(f"Funding round {round_id} has already been distributed")
        if not funding_round.has_ended(now):
            raise RoundStateError(f"Funding round {round_id} has not ended yet")

        try:
            contributions = self.storage.load_campaign_contributions(round_id)
            logger.info(
                f"Distributing round {round_id}: {sum(len(d) for d in contributions.values())} "
                f"donations across {len(contributions)} campaigns"
            )

            matched = self.distributor.allocate(contributions, funding_round.matching_pool)
            allocations = self._build_allocations(contributions, matched)
            distributed = self.storage.store_allocations(funding_round, allocations, now, reference)

            total_allocated = sum(matched.values())
            remainder = self.distributor.remainder(matched, funding_round.matching_pool)
            logger.info(f"Round {round_id} distributed {total_allocated}, remainder {remainder}")

            return DistributionResponse(
                round_id=distributed.id,
                round_name=distributed.name,
                matching_pool=str(distributed.matching_pool),
                total_allocated=str(total_allocated),
                undistributed_remainder=str(remainder),
                distributed_at=distributed.distributed_at,
                settlement_reference=distributed.settlement_reference,
                allocations=[
                    CampaignAllocationRecord(
                        campaign_id=a.campaign_id,
                        campaign_name=a.campaign_name,
                        charity_id=a.charity_id,
                        matched_amount=str(a.matched_amount),
                        donation_count=a.donation_count,
                        total_direct_donations=str(a.total_direct_donations)
                    )
                    for a in allocations
                ]
            )

        except Exception as e:
            logger.error(f"Error distributing round {round_id}: {e}")
            raise

    def estimate(self, amount: Union[str, int], campaign_id: int) -> ImpactEstimateResponse:
        """
        Estimate how a donation of amount ether would change a campaign's matching
        in the current round.

        Raises:
            RoundNotFoundError: If no round is currently active
            InvalidArgumentError: If the campaign does not exist or the amount is invalid
        """
        donation_amount = parse_ether(amount)

        current_round = self.storage.get_current_round(self.now())
        if current_round is None:
            raise RoundNotFoundError("No active funding round found")
        if not self.storage.campaign_exists(campaign_id):
            raise InvalidArgumentError(f"Campaign {campaign_id} not found")

        existing_donations = self.storage.load_campaign_donations(current_round.id, campaign_id)
        all_donations = self.storage.load_all_donation_amounts(current_round.id)

        report = self.estimator.estimate_impact(
            donation_amount,
            existing_donations,
            all_donations,
            current_round.matching_pool
        )
        logger.info(
            f"Estimated impact of {amount} on campaign {campaign_id} "
            f"in round {current_round.id}: {report.impact}"
        )

        return ImpactEstimateResponse(
            donation=DonationSummary(
                amount=str(amount),
                campaignId=campaign_id,
                roundId=current_round.id
            ),
            matching=MatchingSummary(
                beforeDonation=str(report.before_matching),
                afterDonation=str(report.after_matching),
                impact=str(report.impact)
            ),
            matchingPool=MatchingPoolSummary(
                total=str(current_round.matching_pool),
                roundEndsAt=current_round.end_time
            )
        )
