"""Funding round value object and lifecycle"""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from amanah_matching.scoring import AmountLike, parse_amount


class RoundStatus(Enum):
    """Lifecycle of a funding round: open -> ended -> distributed"""
    OPEN = "open"
    ENDED = "ended"
    DISTRIBUTED = "distributed"


class RoundStateError(Exception):
    """Raised when a round is asked to make a transition it cannot make"""
    pass


class RoundNotFoundError(Exception):
    """Raised when no matching funding round exists"""
    pass


@dataclass(frozen=True)
class Round:
    """
    A bounded window in which donations accumulate against one matching pool.

    Rounds are immutable. Every transition returns a new Round.
    """
    id: Optional[int]
    name: str
    start_time: datetime
    end_time: datetime
    matching_pool: int
    status: RoundStatus = RoundStatus.OPEN
    description: Optional[str] = None
    distributed_at: Optional[datetime] = None
    settlement_reference: Optional[str] = None

    @property
    def is_distributed(self) -> bool:
        return self.status is RoundStatus.DISTRIBUTED

    def is_active(self, now: datetime) -> bool:
        """Whether donations can be made to this round at the given time"""
        return not self.is_distributed and self.start_time < now < self.end_time

    def has_ended(self, now: datetime) -> bool:
        return now >= self.end_time

    def overlaps(self, start_time: datetime, end_time: datetime) -> bool:
        """Whether [start_time, end_time) intersects this round's window"""
        return self.start_time < end_time and self.end_time > start_time

    def close(self, now: datetime) -> "Round":
        """Move an open round to ended once its end time has passed"""
        if self.status is not RoundStatus.OPEN:
            raise RoundStateError(f"Round {self.id} is {self.status.value}, cannot close it")
        if not self.has_ended(now):
            raise RoundStateError(f"Round {self.id} has not ended yet")
        return replace(self, status=RoundStatus.ENDED)

    def mark_distributed(self, now: datetime, reference: Optional[str] = None) -> "Round":
        """Record the one-time settlement of an ended round"""
        current = self
        if current.status is RoundStatus.OPEN:
            current = current.close(now)
        if current.status is RoundStatus.DISTRIBUTED:
            raise RoundStateError(f"Round {self.id} has already been distributed")
        return replace(
            current,
            status=RoundStatus.DISTRIBUTED,
            distributed_at=now,
            settlement_reference=reference
        )

    def fund(self, amount: AmountLike) -> "Round":
        """Add funds to the matching pool"""
        if self.is_distributed:
            raise RoundStateError(f"Round {self.id} has already been distributed")
        return replace(self, matching_pool=self.matching_pool + parse_amount(amount, "amount"))
