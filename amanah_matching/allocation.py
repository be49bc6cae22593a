"""Matching pool distribution across campaigns"""
import logging
from typing import Dict, Hashable, Mapping, Optional, Sequence, TypeVar

from amanah_matching.scoring import AmountLike, ContributionScorer, parse_amount, parse_amounts

logger = logging.getLogger(__name__)

CampaignId = TypeVar("CampaignId", bound=Hashable)


class AllocationDistributor:
    """Distributes a matching pool proportionally to contribution scores"""

    def __init__(self, scorer: Optional[ContributionScorer] = None):
        self.scorer = scorer or ContributionScorer()

    def calculate_scores(
            self,
            contributions_by_campaign: Mapping[CampaignId, Sequence[AmountLike]]
    ) -> Dict[CampaignId, int]:
        """Contribution score for every campaign, keeping the input order"""
        return {
            campaign_id: self.scorer.calculate_score(donations)
            for campaign_id, donations in contributions_by_campaign.items()
        }

    def allocate(
            self,
            contributions_by_campaign: Mapping[CampaignId, Sequence[AmountLike]],
            matching_pool: AmountLike
    ) -> Dict[CampaignId, int]:
        """
        Split the matching pool between campaigns by score / total score.

        Each share is floored after multiplying by the pool, so the sum never
        exceeds the pool. The floor-division remainder is left undistributed.
        When no campaign has a positive score every share is 0.

        Raises:
            InvalidArgumentError: On a negative pool or any invalid donation
        """
        pool = parse_amount(matching_pool, "matching_pool")
        scores = self.calculate_scores(contributions_by_campaign)
        total_score = sum(scores.values())
        logger.debug(f"Allocating pool {pool} across {len(scores)} campaigns (total score {total_score})")

        if total_score == 0:
            return {campaign_id: 0 for campaign_id in scores}

        return {
            campaign_id: score * pool // total_score
            for campaign_id, score in scores.items()
        }

    def allocate_for_campaign(
            self,
            campaign_donations: Sequence[AmountLike],
            all_donations: Sequence[AmountLike],
            matching_pool: AmountLike
    ) -> int:
        """
        Matching for one campaign against a single pooled score of all donations.

        The denominator scores every donation in the round as one flat list,
        which is not the sum of per-campaign scores used by allocate(). Only
        impact estimates use this; round settlement goes through allocate().
        A campaign with no donations gets 0, and the first donations of a
        round (pooled score 0) get the whole pool.
        """
        pool = parse_amount(matching_pool, "matching_pool")
        campaign_amounts = parse_amounts(campaign_donations, "campaign_donations")
        all_amounts = parse_amounts(all_donations, "all_donations")
        if not campaign_amounts:
            return 0

        campaign_score = self.scorer.calculate_score(campaign_amounts)
        all_donations_score = self.scorer.calculate_score(all_amounts)

        if all_donations_score == 0:
            return pool

        return campaign_score * pool // all_donations_score

    @staticmethod
    def remainder(allocations: Mapping[CampaignId, int], matching_pool: AmountLike) -> int:
        """Part of the pool left over after floor division"""
        pool = parse_amount(matching_pool, "matching_pool")
        return pool - sum(parse_amounts(allocations.values(), "allocation"))
