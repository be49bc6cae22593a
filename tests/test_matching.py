"""Tests for MatchingJob: round settlement and impact estimates."""

from datetime import datetime, timedelta, timezone

import pytest

from amanah_matching.config import JobType, Settings
from amanah_matching.matching import MatchingJob
from amanah_matching.models.round import Round, RoundNotFoundError, RoundStateError
from amanah_matching.scoring import InvalidArgumentError
from amanah_matching.services.storage import RoundStorageService
from tests.conftest import AFTER_ROUND, DURING_ROUND, ROUND_END, ROUND_START


def make_job(storage: RoundStorageService, now, **overrides) -> MatchingJob:
    return MatchingJob(Settings(**overrides), storage, now=now)


@pytest.fixture
def small_vs_large(storage: RoundStorageService, funding_round: Round):
    """Campaign A: 100 donations of 1. Campaign B: one donation of 100."""
    a = storage.create_campaign("Many Donors", charity_id=1)
    b = storage.create_campaign("One Donor", charity_id=2)
    storage.record_donation(funding_round.id, b, 100)
    for _ in range(100):
        storage.record_donation(funding_round.id, a, 1)
    return a, b


class TestDistribute:
    def test_many_small_donors_win(self, storage: RoundStorageService, funding_round: Round,
                                   small_vs_large) -> None:
        a, b = small_vs_large
        response = make_job(storage, AFTER_ROUND).distribute(funding_round.id, reference="batch-7")

        assert [r.campaign_id for r in response.allocations] == [a, b]
        first, second = response.allocations
        assert first.matched_amount == "9900"
        assert first.campaign_name == "Many Donors"
        assert first.charity_id == 1
        assert first.donation_count == 100
        assert first.total_direct_donations == "100"
        assert second.matched_amount == "99"
        assert second.donation_count == 1

        assert response.matching_pool == "10000"
        assert response.total_allocated == "9999"
        assert response.undistributed_remainder == "1"
        assert response.settlement_reference == "batch-7"
        assert response.distributed_at == AFTER_ROUND

        assert storage.get_round(funding_round.id).is_distributed
        assert storage.get_matches(funding_round.id) == {a: 9900, b: 99}

    def test_second_distribution_rejected(self, storage: RoundStorageService, funding_round: Round,
                                          small_vs_large) -> None:
        job = make_job(storage, AFTER_ROUND)
        job.distribute(funding_round.id)
        with pytest.raises(RoundStateError, match="already been distributed"):
            job.distribute(funding_round.id)

    def test_running_round_rejected(self, storage: RoundStorageService, funding_round: Round) -> None:
        with pytest.raises(RoundStateError, match="not ended"):
            make_job(storage, DURING_ROUND).distribute(funding_round.id)

    def test_unknown_round(self, storage: RoundStorageService) -> None:
        with pytest.raises(RoundNotFoundError):
            make_job(storage, AFTER_ROUND).distribute(123)

    def test_round_without_donations(self, storage: RoundStorageService, funding_round: Round) -> None:
        response = make_job(storage, AFTER_ROUND).distribute(funding_round.id)
        assert response.allocations == []
        assert response.total_allocated == "0"
        assert response.undistributed_remainder == "10000"

    def test_response_serializes_to_json(self, storage: RoundStorageService, funding_round: Round,
                                         small_vs_large) -> None:
        data = make_job(storage, AFTER_ROUND).distribute(funding_round.id).model_dump(mode="json")
        assert data["allocations"][0]["matched_amount"] == "9900"
        assert isinstance(data["distributed_at"], str)


class TestEstimate:
    @pytest.fixture
    def wei_round(self, storage: RoundStorageService):
        funding_round = storage.create_round("Wei Round", ROUND_START, ROUND_END, 10 ** 19)
        target = storage.create_campaign("Target")
        other = storage.create_campaign("Other")
        storage.record_donation(funding_round.id, target, 10 ** 18)
        storage.record_donation(funding_round.id, other, 4 * 10 ** 18)
        return funding_round, target

    def test_estimate_one_ether(self, storage: RoundStorageService, wei_round) -> None:
        funding_round, target = wei_round
        response = make_job(storage, DURING_ROUND).estimate("1", target)

        assert response.donation.amount == "1"
        assert response.donation.campaignId == target
        assert response.donation.roundId == funding_round.id
        assert response.matching.beforeDonation == "1111111111111111111"
        assert response.matching.afterDonation == "2500000000000000000"
        assert response.matching.impact == "1388888888888888889"
        assert response.matchingPool.total == str(10 ** 19)
        assert response.matchingPool.roundEndsAt == ROUND_END

    def test_estimate_does_not_store_donation(self, storage: RoundStorageService, wei_round) -> None:
        funding_round, target = wei_round
        make_job(storage, DURING_ROUND).estimate("2.5", target)
        assert storage.load_campaign_donations(funding_round.id, target) == [10 ** 18]

    def test_json_shape(self, storage: RoundStorageService, wei_round) -> None:
        _, target = wei_round
        data = make_job(storage, DURING_ROUND).estimate("1", target).model_dump(mode="json")
        assert set(data) == {"donation", "matching", "matchingPool"}
        assert set(data["donation"]) == {"amount", "campaignId", "roundId"}
        assert set(data["matching"]) == {"beforeDonation", "afterDonation", "impact"}
        assert set(data["matchingPool"]) == {"total", "roundEndsAt"}

    def test_no_active_round(self, storage: RoundStorageService, wei_round) -> None:
        _, target = wei_round
        with pytest.raises(RoundNotFoundError):
            make_job(storage, AFTER_ROUND).estimate("1", target)

    def test_unknown_campaign(self, storage: RoundStorageService, wei_round) -> None:
        with pytest.raises(InvalidArgumentError, match="not found"):
            make_job(storage, DURING_ROUND).estimate("1", 9999)

    def test_invalid_amount(self, storage: RoundStorageService, wei_round) -> None:
        _, target = wei_round
        with pytest.raises(InvalidArgumentError):
            make_job(storage, DURING_ROUND).estimate("-1", target)


class TestRun:
    def test_distribute_requires_round_id(self, storage: RoundStorageService) -> None:
        with pytest.raises(ValueError, match="ROUND_ID"):
            make_job(storage, AFTER_ROUND).run(JobType.DISTRIBUTE)

    def test_estimate_requires_parameters(self, storage: RoundStorageService) -> None:
        with pytest.raises(ValueError, match="ESTIMATE_AMOUNT"):
            make_job(storage, DURING_ROUND).run(JobType.ESTIMATE)

    def test_dispatches_distribute(self, storage: RoundStorageService, funding_round: Round,
                                   small_vs_large) -> None:
        job = make_job(storage, AFTER_ROUND, ROUND_ID=funding_round.id)
        assert job.run(JobType.DISTRIBUTE).total_allocated == "9999"

    def test_dispatches_estimate(self, storage: RoundStorageService, funding_round: Round,
                                 small_vs_large) -> None:
        a, _ = small_vs_large
        job = make_job(storage, DURING_ROUND, ESTIMATE_AMOUNT="0.000000000000000001", ESTIMATE_CAMPAIGN_ID=a)
        response = job.run(JobType.ESTIMATE)
        assert response.donation.campaignId == a

    def test_unsupported_job_type(self, storage: RoundStorageService) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            make_job(storage, AFTER_ROUND).run("refund")


class TestClock:
    def test_pinned_time(self, storage: RoundStorageService) -> None:
        assert make_job(storage, DURING_ROUND).now() == DURING_ROUND

    def test_unpinned_time_is_naive_utc(self, storage: RoundStorageService) -> None:
        now = MatchingJob(Settings(), storage).now()
        assert now.tzinfo is None
        expected = datetime.now(timezone.utc).replace(tzinfo=None)
        assert abs(expected - now) < timedelta(minutes=1)
