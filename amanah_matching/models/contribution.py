"""Domain models for matching results"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ImpactReport:
    """Campaign matching before and after a hypothetical donation"""
    before_matching: int
    after_matching: int
    impact: int  # after - before, may be negative


@dataclass
class CampaignAllocation:
    """Matched funds settled for one campaign in a round"""
    campaign_id: int
    matched_amount: int
    donation_count: int
    total_direct_donations: int
    campaign_name: str = "Unknown Campaign"
    charity_id: Optional[int] = None
