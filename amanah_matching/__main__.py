"""Entry point for matching jobs"""
import json
import logging
import os
import sys
import traceback

from amanah_matching.config import JobType, settings
from amanah_matching.matching import MatchingJob
from amanah_matching.db import db
from amanah_matching.services.storage import RoundStorageService

logging.basicConfig(level=settings.LOG_LEVEL, format='%(message)s')
logger = logging.getLogger(__name__)


def determine_job_type() -> JobType:
    """
    Determine the job to run from settings.
    An explicit JOB_TYPE wins. Otherwise a campaign and amount mean an
    estimate, and everything else distributes.
    """
    if settings.JOB_TYPE is not None:
        return settings.JOB_TYPE
    if settings.ESTIMATE_AMOUNT and settings.ESTIMATE_CAMPAIGN_ID is not None:
        return JobType.ESTIMATE
    return JobType.DISTRIBUTE


def run() -> None:
    """Run the configured matching job and write results.json."""
    try:
        # Initialize database connection
        db.init(settings.DATABASE_URL)

        job_type = determine_job_type()
        logger.info(f"Running {job_type.value} job")

        # Log config (excluding sensitive data)
        safe_config = settings.model_dump(mode='json', exclude={'DATABASE_URL'})
        logger.info("Using configuration:")
        logger.info(json.dumps(safe_config, indent=2))

        with db.session() as session:
            job = MatchingJob(settings, RoundStorageService(session))
            response = job.run(job_type)

        os.makedirs(settings.OUTPUT_DIR, exist_ok=True)
        output_path = os.path.join(settings.OUTPUT_DIR, "results.json")
        with open(output_path, 'w') as f:
            json.dump(response.model_dump(mode='json'), f, indent=2)

        logger.info(f"Matching job complete: {response.model_dump(mode='json')}")

    except Exception as e:
        logger.error(f"Error during matching job: {e}")
        traceback.print_exc()
        sys.exit(1)
    finally:
        db.dispose()


if __name__ == "__main__":
    run()
