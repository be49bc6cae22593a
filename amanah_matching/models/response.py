"""Job response model definitions"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class DonationSummary(BaseModel):
    amount: str
    campaignId: int
    roundId: int


class MatchingSummary(BaseModel):
    beforeDonation: str
    afterDonation: str
    impact: str


class MatchingPoolSummary(BaseModel):
    total: str
    roundEndsAt: datetime


class ImpactEstimateResponse(BaseModel):
    """
    Result of an estimate job, laid out like the donations API response.

    Attributes:
        donation: The prospective donation (amount in ether as given)
        matching: Campaign matching in wei before and after the donation, and the difference
        matchingPool: The current round's pool in wei and its end time
    """
    donation: DonationSummary
    matching: MatchingSummary
    matchingPool: MatchingPoolSummary


class CampaignAllocationRecord(BaseModel):
    campaign_id: int
    campaign_name: str
    charity_id: Optional[int] = None
    matched_amount: str
    donation_count: int
    total_direct_donations: str


class DistributionResponse(BaseModel):
    """
    Result of settling a round.

    All amounts are wei as decimal strings so they survive JSON without
    losing precision.
    """
    round_id: int
    round_name: str
    matching_pool: str
    total_allocated: str
    undistributed_remainder: str
    distributed_at: datetime
    settlement_reference: Optional[str] = None
    allocations: List[CampaignAllocationRecord] = []
