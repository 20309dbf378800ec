from datetime import datetime
from typing import Any, Dict, List, Optional

from .database import (
    AnalysisJob,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PROCESSING,
)


class JobRecordStore:
    """Status transitions of analysis job records.

    Every method commits; a failed commit is rolled back before the error
    propagates so the session stays usable for a follow-up update.
    """

    def __init__(self, session):
        self.session = session

    def get(self, job_id: str) -> Optional[AnalysisJob]:
        return self.session.get(AnalysisJob, str(job_id))

    def _update(self, job_id: str, **fields: Any) -> AnalysisJob:
        job = self.get(job_id)
        if job is None:
            job = AnalysisJob(id=str(job_id))
            self.session.add(job)
        for name, value in fields.items():
            setattr(job, name, value)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return job

    def mark_processing(self, job_id: str, employer_id: Optional[str] = None) -> AnalysisJob:
        fields: Dict[str, Any] = {"status": STATUS_PROCESSING, "error_message": None}
        if employer_id is not None:
            fields["employer_id"] = str(employer_id)
        return self._update(job_id, **fields)

    def mark_completed(self, job_id: str, vacancies: List[Dict[str, Any]]) -> AnalysisJob:
        return self._update(
            job_id,
            status=STATUS_COMPLETED,
            result_data={"vacancies": vacancies},
            completed_at=datetime.now(),
        )

    def mark_failed(self, job_id: str, message: str) -> AnalysisJob:
        return self._update(
            job_id,
            status=STATUS_FAILED,
            error_message=message,
            completed_at=datetime.now(),
        )
