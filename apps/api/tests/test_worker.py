"""Tests for the message queue worker and WhatsApp delivery."""

from datetime import timedelta

import httpx
import pytest

from app import worker
from app.core.config import settings
from app.core.errors import UpstreamError, ValidationError
from app.db.enums import JobStatus, JobType
from app.db.models import Job
from app.services import job_service, whatsapp_service
from app.utils.datetimes import ensure_utc, utc_now


def _queue(db, phone: str = "0612345678", message: str = "مرحبا", **kwargs) -> Job:
    job = job_service.schedule_job(db, JobType.SEND_WHATSAPP, {"phone": phone, "message": message}, **kwargs)
    db.commit()
    return job


def _make_due(db, job: Job) -> None:
    job.run_at = utc_now() - timedelta(seconds=1)
    db.commit()


# =============================================================================
# Worker
# =============================================================================


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_delivers_and_completes(self, db, sent_messages):
        job = _queue(db)

        assert await worker.run_once(db) == 1

        db.refresh(job)
        assert job.status == JobStatus.COMPLETED.value
        assert job.attempts == 1
        assert job.completed_at is not None
        assert [(m.phone, m.body) for m in sent_messages] == [("0612345678", "مرحبا")]

    @pytest.mark.asyncio
    async def test_nothing_due(self, db, sent_messages):
        _queue(db, run_at=utc_now() + timedelta(hours=1))

        assert await worker.run_once(db) == 0
        assert sent_messages == []

    @pytest.mark.asyncio
    async def test_failure_is_retried_later_then_fails(self, db, monkeypatch):
        async def broken_send(phone, body, *, client=None):
            raise UpstreamError("WhatsApp gateway returned 503: unavailable")

        monkeypatch.setattr(whatsapp_service, "send_message", broken_send)
        job = _queue(db)

        await worker.run_once(db)
        db.refresh(job)
        assert job.status == JobStatus.PENDING.value
        assert job.attempts == 1
        assert ensure_utc(job.run_at) > utc_now()
        assert job.last_error.startswith("UpstreamError: WhatsApp gateway returned 503")

        # Not due yet
        assert await worker.run_once(db) == 0

        for expected_attempts in (2, 3):
            _make_due(db, job)
            await worker.run_once(db)
            db.refresh(job)
            assert job.attempts == expected_attempts

        assert job.status == JobStatus.FAILED.value
        _make_due(db, job)
        assert await worker.run_once(db) == 0

    @pytest.mark.asyncio
    async def test_missing_payload_fields_fail_the_job(self, db, sent_messages):
        job = _queue(db, message="", max_attempts=1)

        await worker.run_once(db)

        db.refresh(job)
        assert job.status == JobStatus.FAILED.value
        assert "Missing phone or message" in job.last_error
        assert sent_messages == []

    @pytest.mark.asyncio
    async def test_unknown_job_type(self, db, sent_messages):
        job = Job(job_type="send_email", payload={}, run_at=utc_now(), max_attempts=1)
        db.add(job)
        db.commit()

        await worker.run_once(db)

        db.refresh(job)
        assert job.status == JobStatus.FAILED.value
        assert job.last_error == "ValueError: Unknown job type: send_email"

    @pytest.mark.asyncio
    async def test_claimed_job_is_not_claimed_twice(self, db):
        job = _queue(db)

        first = job_service.claim_pending_jobs(db)
        second = job_service.claim_pending_jobs(db)

        assert [j.id for j in first] == [job.id]
        assert second == []
        assert first[0].status == JobStatus.RUNNING.value
        assert first[0].started_at is not None

    def test_stale_running_job_is_claimed_again(self, db):
        job = _queue(db)
        job_service.claim_pending_jobs(db)
        job.started_at = utc_now() - timedelta(seconds=settings.WORKER_STALE_JOB_SECONDS + 60)
        db.commit()

        reclaimed = job_service.claim_pending_jobs(db)

        assert [j.id for j in reclaimed] == [job.id]
        assert reclaimed[0].attempts == 2
        assert reclaimed[0].last_error == "Worker stopped before the job finished"

    def test_stale_job_on_last_attempt_fails(self, db):
        job = _queue(db, max_attempts=1)
        job_service.claim_pending_jobs(db)
        job.started_at = utc_now() - timedelta(seconds=settings.WORKER_STALE_JOB_SECONDS + 60)
        db.commit()

        assert job_service.claim_pending_jobs(db) == []

        db.refresh(job)
        assert job.status == JobStatus.FAILED.value

    def test_recent_running_job_is_left_alone(self, db):
        job = _queue(db)
        job_service.claim_pending_jobs(db)

        assert job_service.requeue_stale_jobs(db) == 0
        db.refresh(job)
        assert job.status == JobStatus.RUNNING.value


# =============================================================================
# WhatsApp gateway
# =============================================================================


@pytest.fixture
def twilio(monkeypatch):
    monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(settings, "TWILIO_WHATSAPP_NUMBER", "+14155238886")
    monkeypatch.setattr(whatsapp_service, "_backoff", lambda attempt: 0)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestWhatsAppService:
    @pytest.mark.asyncio
    async def test_dry_run_without_credentials(self):
        result = await whatsapp_service.send_message("0612345678", "hello")

        assert result.dry_run is True
        assert result.sid is None

    @pytest.mark.asyncio
    async def test_invalid_phone(self):
        with pytest.raises(ValidationError):
            await whatsapp_service.send_message("", "hello")

    @pytest.mark.asyncio
    async def test_posts_formatted_numbers(self, twilio):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"sid": "SM42"})

        async with _client(handler) as client:
            result = await whatsapp_service.send_message("0612345678", "hello", client=client)

        assert result.sid == "SM42"
        assert seen[0].url.path == "/2010-04-01/Accounts/AC123/Messages.json"
        form = dict(httpx.QueryParams(seen[0].content.decode()))
        assert form == {"From": "whatsapp:+14155238886", "To": "whatsapp:+212612345678", "Body": "hello"}

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, twilio):
        responses = iter([httpx.Response(503), httpx.Response(201, json={"sid": "SM7"})])

        async with _client(lambda request: next(responses)) as client:
            result = await whatsapp_service.send_message("0612345678", "hello", client=client)

        assert result.sid == "SM7"

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, twilio):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400, json={"message": "bad number"})

        async with _client(handler) as client:
            with pytest.raises(UpstreamError) as exc:
                await whatsapp_service.send_message("0612345678", "hello", client=client)

        assert len(calls) == 1
        assert "400" in exc.value.message

    @pytest.mark.asyncio
    async def test_unreachable_gateway(self, twilio):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(UpstreamError) as exc:
                await whatsapp_service.send_message("0612345678", "hello", client=client)

        assert exc.value.message.startswith("WhatsApp gateway unreachable")
