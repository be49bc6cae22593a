"""What-if estimates for a prospective donation"""
from typing import Optional, Sequence

from amanah_matching.allocation import AllocationDistributor
from amanah_matching.models.contribution import ImpactReport
from amanah_matching.scoring import AmountLike, parse_amount


class ImpactEstimator:
    """Estimates how much a new donation changes a campaign's matching"""

    def __init__(self, distributor: Optional[AllocationDistributor] = None):
        self.distributor = distributor or AllocationDistributor()

    def estimate_impact(
            self,
            candidate_amount: AmountLike,
            existing_campaign_donations: Sequence[AmountLike],
            existing_all_donations: Sequence[AmountLike],
            matching_pool: AmountLike
    ) -> ImpactReport:
        """
        Matching before and after adding candidate_amount to the campaign.

        The candidate is appended to copies of both donation lists. Impact is a
        plain subtraction and may be negative.
        """
        amount = parse_amount(candidate_amount, "candidate_amount")

        before_matching = self.distributor.allocate_for_campaign(
            existing_campaign_donations, existing_all_donations, matching_pool
        )

        updated_campaign_donations = [*existing_campaign_donations, amount]
        updated_all_donations = [*existing_all_donations, amount]

        after_matching = self.distributor.allocate_for_campaign(
            updated_campaign_donations, updated_all_donations, matching_pool
        )

        return ImpactReport(
            before_matching=before_matching,
            after_matching=after_matching,
            impact=after_matching - before_matching
        )
