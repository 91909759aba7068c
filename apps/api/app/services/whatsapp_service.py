"""WhatsApp delivery through the Twilio Messages REST API.

Called only by the worker; request handlers enqueue messages through
notification_service.queue_applicant_message instead of sending inline.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass

import httpx

from app.core.config import settings
from app.core.errors import UpstreamError, ValidationError
from app.utils.normalization import format_whatsapp_number, mask_phone

logger = logging.getLogger(__name__)

RETRY_STATUSES = {429, 500, 502, 503, 504}
BASE_DELAY_SECONDS = 0.5
MAX_DELAY_SECONDS = 4.0


@dataclass(frozen=True)
class SendResult:
    sid: str | None
    dry_run: bool = False


def _sender() -> str:
    number = settings.TWILIO_WHATSAPP_NUMBER
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


def _messages_url() -> str:
    base = settings.TWILIO_API_BASE.rstrip("/")
    return f"{base}/Accounts/{settings.TWILIO_ACCOUNT_SID}/Messages.json"


def _backoff(attempt: int) -> float:
    delay = min(MAX_DELAY_SECONDS, BASE_DELAY_SECONDS * (2**attempt))
    return delay + random.uniform(0, delay / 2)


async def _post_with_retries(
    client: httpx.AsyncClient, data: dict[str, str], max_attempts: int
) -> httpx.Response:
    """POST to Twilio, retrying transport errors and 429/5xx with backoff."""
    for attempt in range(max_attempts):
        try:
            response = await client.post(
                _messages_url(),
                data=data,
                auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN),
            )
        except httpx.RequestError as exc:
            if attempt >= max_attempts - 1:
                raise UpstreamError(f"WhatsApp gateway unreachable: {exc}") from exc
            logger.warning("WhatsApp request failed, retrying", exc_info=exc)
            await asyncio.sleep(_backoff(attempt))
            continue

        if response.status_code in RETRY_STATUSES and attempt < max_attempts - 1:
            logger.warning("WhatsApp gateway returned %s, retrying", response.status_code)
            await asyncio.sleep(_backoff(attempt))
            continue
        return response

    raise UpstreamError("WhatsApp gateway retries exhausted")


async def send_message(
    phone: str,
    body: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> SendResult:
    """
    Send one WhatsApp message.

    Logs instead of sending when Twilio is not configured.

    Raises:
        ValidationError: phone number cannot be formatted
        UpstreamError: gateway unreachable or rejected the message
    """
    to = format_whatsapp_number(phone)
    if not to:
        raise ValidationError("Invalid phone number")

    if not settings.twilio_enabled:
        logger.info("[DRY RUN] WhatsApp message to %s skipped (Twilio not configured)", mask_phone(phone))
        return SendResult(sid=None, dry_run=True)

    data = {"From": _sender(), "To": to, "Body": body}
    max_attempts = max(settings.MESSAGING_MAX_ATTEMPTS, 1)

    if client is not None:
        response = await _post_with_retries(client, data, max_attempts)
    else:
        async with httpx.AsyncClient(timeout=settings.MESSAGING_TIMEOUT_SECONDS) as owned:
            response = await _post_with_retries(owned, data, max_attempts)

    if response.status_code >= 400:
        detail = response.text[:500]
        raise UpstreamError(f"WhatsApp gateway returned {response.status_code}: {detail}")

    sid = response.json().get("sid")
    logger.info("WhatsApp message sent to %s sid=%s", mask_phone(phone), sid)
    return SendResult(sid=sid)
