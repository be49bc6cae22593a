"""Application configuration and environment settings"""
from enum import Enum
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class JobType(Enum):
    """Kind of work a matching job performs"""
    DISTRIBUTE = "distribute"
    ESTIMATE = "estimate"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    DATABASE_URL: str = Field("sqlite:///amanah_matching.db", description="SQLAlchemy database URL")

    # Job selection
    JOB_TYPE: Optional[JobType] = Field(None, description="distribute or estimate; inferred when unset")
    ROUND_ID: Optional[int] = Field(None, description="Round to distribute")

    # Estimate settings
    ESTIMATE_AMOUNT: Optional[str] = Field(None, description="Prospective donation in ether")
    ESTIMATE_CAMPAIGN_ID: Optional[int] = Field(None, description="Campaign receiving the prospective donation")

    OUTPUT_DIR: str = Field("/output", description="Directory for output files")
    LOG_LEVEL: str = Field("INFO", description="Root logging level")

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )


settings = Settings()
