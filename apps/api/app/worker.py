"""
Background worker for the outbound message queue.

Usage:
    python -m app.worker

The worker polls the jobs table, claims due jobs and delivers them.
For production, run this as a separate process (e.g., systemd service, Docker container).
"""

import asyncio
import logging

import httpx

from app.core.config import settings
from app.db.enums import JobType
from app.db.session import SessionLocal
from app.services import job_service, whatsapp_service
from app.utils.normalization import mask_phone

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# Worker configuration
POLL_INTERVAL_SECONDS = settings.WORKER_POLL_INTERVAL
BATCH_SIZE = settings.WORKER_BATCH_SIZE


async def process_job(job, client: httpx.AsyncClient | None = None) -> None:
    """Process a single job based on its type."""
    logger.info("Processing job %s (type=%s, attempt=%s)", job.id, job.job_type, job.attempts)

    if job.job_type == JobType.SEND_WHATSAPP.value:
        payload = job.payload or {}
        phone = payload.get("phone")
        message = payload.get("message")
        if not phone or not message:
            raise ValueError("Missing phone or message in job payload")

        result = await whatsapp_service.send_message(phone, message, client=client)
        if result.dry_run:
            logger.info("Job %s: message to %s logged (dry run)", job.id, mask_phone(phone))
    else:
        raise ValueError(f"Unknown job type: {job.job_type}")


async def run_once(db, client: httpx.AsyncClient | None = None) -> int:
    """Claim and process one batch of due jobs. Returns the number processed."""
    jobs = job_service.claim_pending_jobs(db, limit=BATCH_SIZE)
    if jobs:
        logger.info("Claimed %s pending job(s)", len(jobs))

    for job in jobs:
        try:
            await process_job(job, client=client)
            job_service.mark_job_completed(db, job)
            logger.info("Job %s completed successfully", job.id)
        except Exception as e:
            job_service.mark_job_failed(db, job, f"{type(e).__name__}: {e}")
            logger.error("Job %s failed: %s", job.id, type(e).__name__)
    return len(jobs)


async def worker_loop() -> None:
    """Main worker loop - polls for and processes pending jobs."""
    logger.info(
        "Worker starting (poll interval: %ss, batch size: %s)", POLL_INTERVAL_SECONDS, BATCH_SIZE
    )
    if not settings.twilio_enabled:
        logger.warning("Twilio credentials not set - WhatsApp messages will be logged but not sent")

    async with httpx.AsyncClient(timeout=settings.MESSAGING_TIMEOUT_SECONDS) as client:
        while True:
            with SessionLocal() as db:
                try:
                    await run_once(db, client=client)
                except Exception:
                    logger.exception("Error in worker loop")
            await asyncio.sleep(POLL_INTERVAL_SECONDS)


def main() -> None:
    """Entry point for the worker."""
    try:
        asyncio.run(worker_loop())
    except KeyboardInterrupt:
        logger.info("Worker shutting down")


if __name__ == "__main__":
    main()
