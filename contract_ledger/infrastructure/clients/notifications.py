"""Notification webhook client with exponential backoff retry logic"""

import asyncio
import logging
import httpx
from typing import Dict, Any
from contract_ledger.config import settings
from contract_ledger.infrastructure.observability.metrics import (
    notification_latency_histogram,
    notification_failure_counter,
)


class NotificationClient:
    """Client for delivering notifications to the notification service"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None):
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    async def send(self, payload: Dict[str, Any]) -> bool:
        """
        Deliver one notification, fire-and-forget.

        Retry strategy:
        - Exponential backoff between attempts: base, 2*base, 4*base ...
          (base * 2^(attempt - 1))
        - Retries on error status codes and transport failures
        - A malformed webhook URL is not retried
        - Final failure is logged and counted, never raised

        Returns:
            True when the notification service accepted the payload
        """
        notification_type = payload.get("notification_type")
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with notification_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return True

                except httpx.InvalidURL as e:
                    notification_failure_counter.inc()
                    logging.warning(
                        f"Notification webhook URL {self.webhook_url!r} is invalid: {e}",
                        extra={"notification_type": notification_type},
                    )
                    return False

                except httpx.HTTPError as e:
                    attempt += 1
                    notification_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logging.warning(
                            f"Notification delivery failed after {attempt} attempts: {e}",
                            extra={"notification_type": notification_type},
                        )
                        return False

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)

        return False
