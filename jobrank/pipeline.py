"""
Run controller: fetch -> normalize -> track -> persist for one analysis job.
"""

import time
from typing import Callable, List

from .logger import get_logger
from .models import Posting
from .tracker import GROUP_PAUSE, track_positions

logger = get_logger()


class AnalysisError(Exception):
    """Raised when an analysis run ends in the failed state."""

    def __init__(self, job_id: str, message: str):
        super().__init__(message)
        self.job_id = job_id


def run_analysis(
    job_id: str,
    employer_id: str,
    board,
    normalizer,
    store,
    pause: float = GROUP_PAUSE,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Posting]:
    """
    Analyze every active posting of an employer and persist the outcome.

    The job record moves to ``processing`` first and then to exactly one
    of ``completed`` or ``failed``.

    Args:
        job_id: Identifier of the job record to update
        employer_id: Employer whose postings are analyzed
        board: ``JobBoardClient`` (or compatible) for listing and search
        normalizer: ``TitleNormalizer`` (or compatible)
        store: ``JobRecordStore`` (or compatible)
        pause: Seconds between consecutive group searches
        sleep: Function used for the pause

    Returns:
        The annotated postings

    Raises:
        AnalysisError: If fetching, normalizing or saving fails
    """
    logger.reset_metrics()
    logger.info("Starting analysis", job_id=str(job_id), employer_id=str(employer_id))
    try:
        store.mark_processing(job_id, employer_id)
    except Exception as e:
        # No terminal status can be recorded when the first write fails
        logger.critical("Could not mark job as processing", job_id=str(job_id), error=str(e))
        raise AnalysisError(str(job_id), f"Could not update job record: {e}") from e

    try:
        logger.info("Step 1: fetching postings")
        postings = board.fetch_all_postings(employer_id)
        if postings:
            logger.info(f"Fetched {len(postings)} active postings")
            logger.info("Step 2: normalizing titles")
            normalizer.normalize(postings)
            logger.info("Step 3: tracking positions")
            track_positions(postings, board, pause=pause, sleep=sleep)
        else:
            logger.info("No active postings found", employer_id=str(employer_id))

        logger.info("Analysis complete, saving result")
        store.mark_completed(job_id, [p.to_dict() for p in postings])
    except Exception as e:
        logger.critical("Analysis failed", job_id=str(job_id), error=str(e))
        logger.record_error(type(e).__name__)
        store.mark_failed(job_id, str(e))
        raise AnalysisError(str(job_id), str(e)) from e
    finally:
        logger.log_metrics_summary()

    logger.info("Result saved", job_id=str(job_id), postings=len(postings))
    return postings
