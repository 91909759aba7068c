"""Job service - the outbound task queue backed by the jobs table."""

import logging
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.enums import JobStatus, JobType
from app.db.models import Job
from app.utils.datetimes import utc_now

logger = logging.getLogger(__name__)

# Delay before retry n is RETRY_BASE_SECONDS * 2 ** (n - 1)
RETRY_BASE_SECONDS = 30


def schedule_job(
    db: Session,
    job_type: JobType,
    payload: dict,
    run_at: datetime | None = None,
    max_attempts: int | None = None,
) -> Job:
    """
    Queue a background job in the caller's transaction.

    The job becomes visible to the worker only when the caller commits, so a
    rolled-back workflow action never sends its message.
    """
    job = Job(
        job_type=job_type.value,
        payload=payload,
        run_at=run_at or utc_now(),
        status=JobStatus.PENDING.value,
        attempts=0,
    )
    if max_attempts is not None:
        job.max_attempts = max_attempts
    db.add(job)
    return job


def get_pending_jobs(db: Session, limit: int = 10) -> list[Job]:
    """
    Get pending jobs that are due to run.

    Returns jobs where status='pending' and run_at <= now, ordered by run_at.
    """
    now = utc_now()
    return (
        db.query(Job)
        .filter(
            Job.status == JobStatus.PENDING.value,
            Job.run_at <= now,
        )
        .order_by(Job.run_at)
        .limit(limit)
        .all()
    )


def requeue_stale_jobs(db: Session) -> int:
    """
    Recover jobs left in running by a worker that died mid-job.

    A stale job with attempts left goes back to pending; one that used its
    last attempt is marked failed. Returns the number of recovered jobs.
    """
    now = utc_now()
    cutoff = now - timedelta(seconds=settings.WORKER_STALE_JOB_SECONDS)
    stale = (
        Job.status == JobStatus.RUNNING.value,
        Job.started_at.is_not(None),
        Job.started_at < cutoff,
    )
    error = "Worker stopped before the job finished"

    requeued = db.execute(
        update(Job)
        .where(*stale, Job.attempts < Job.max_attempts)
        .values(status=JobStatus.PENDING.value, run_at=now, last_error=error)
        .execution_options(synchronize_session=False)
    ).rowcount
    failed = db.execute(
        update(Job)
        .where(*stale, Job.attempts >= Job.max_attempts)
        .values(status=JobStatus.FAILED.value, last_error=error)
        .execution_options(synchronize_session=False)
    ).rowcount
    if requeued or failed:
        logger.warning("Recovered stale jobs: %s requeued, %s failed", requeued, failed)
    return requeued + failed


def claim_pending_jobs(db: Session, limit: int = 10) -> list[Job]:
    """
    Claim due jobs for this worker.

    Each job is claimed with a conditional update (pending -> running), so
    two workers polling at once never run the same job. Stale running jobs
    are recovered first.
    """
    requeue_stale_jobs(db)
    claimed: list[Job] = []
    for job in get_pending_jobs(db, limit=limit):
        result = db.execute(
            update(Job)
            .where(Job.id == job.id, Job.status == JobStatus.PENDING.value)
            .values(
                status=JobStatus.RUNNING.value,
                attempts=Job.attempts + 1,
                started_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            claimed.append(job)
    db.commit()
    for job in claimed:
        db.refresh(job)
    return claimed


def mark_job_completed(db: Session, job: Job) -> Job:
    """Mark a job as completed."""
    job.status = JobStatus.COMPLETED.value
    job.completed_at = utc_now()
    job.last_error = None
    db.commit()
    db.refresh(job)
    return job


def mark_job_failed(db: Session, job: Job, error: str) -> Job:
    """
    Mark a job as failed.

    If attempts < max_attempts, reset to pending with exponential backoff.
    """
    job.last_error = error[:2000]
    if job.attempts < job.max_attempts:
        job.status = JobStatus.PENDING.value
        job.run_at = utc_now() + timedelta(seconds=RETRY_BASE_SECONDS * 2 ** max(job.attempts - 1, 0))
    else:
        job.status = JobStatus.FAILED.value
        logger.error(
            "Job %s (%s) failed permanently after %s attempts: %s",
            job.id,
            job.job_type,
            job.attempts,
            job.last_error,
        )
    db.commit()
    db.refresh(job)
    return job
