"""SQLAlchemy database models for rounds, donations and matches"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form every stored timestamp uses"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Campaign(Base):
    """A fundraising campaign that can receive donations and matching"""
    __tablename__ = 'campaigns'

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    charity_id = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)


class FundingRound(Base):
    """
    A quadratic funding round.
    Amounts are wei stored as decimal strings.
    """
    __tablename__ = 'funding_rounds'

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    matching_pool = Column(String, nullable=False, default='0')
    is_distributed = Column(Boolean, nullable=False, default=False)
    distributed_at = Column(DateTime, nullable=True)
    settlement_reference = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Donation(Base):
    """A confirmed donation to a campaign within a round"""
    __tablename__ = 'donations'

    id = Column(Integer, primary_key=True)
    round_id = Column(Integer, ForeignKey('funding_rounds.id'), nullable=False, index=True)
    campaign_id = Column(Integer, ForeignKey('campaigns.id'), nullable=False, index=True)
    donor_address = Column(String, nullable=True)
    amount = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class CampaignMatch(Base):
    """Matched amount settled for a campaign when its round was distributed"""
    __tablename__ = 'campaign_matches'

    id = Column(Integer, primary_key=True)
    round_id = Column(Integer, ForeignKey('funding_rounds.id'), nullable=False, index=True)
    campaign_id = Column(Integer, ForeignKey('campaigns.id'), nullable=False)
    matched_amount = Column(String, nullable=False)
    donation_count = Column(Integer, nullable=False)
    total_direct_donations = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
