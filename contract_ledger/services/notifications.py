"""Notification dispatch seam shared by the contract services"""

import logging
from dataclasses import asdict
from typing import Any, Dict, Optional, Protocol

from contract_ledger.domain.models import Notification


class NotificationDispatcher(Protocol):
    """Fire-and-forget sink for notifications"""

    def notify(self, notification: Notification) -> None:
        ...


def notification_payload(notification: Notification) -> Dict[str, Any]:
    """Wire format expected by the notification service"""
    payload = asdict(notification)
    payload["status"] = "unread"
    return payload


def dispatch_safely(dispatcher: Optional[NotificationDispatcher], notification: Notification) -> None:
    """Hand a notification to the dispatcher; failures are logged, never raised"""
    if dispatcher is None:
        return
    try:
        dispatcher.notify(notification)
    except Exception as e:
        logging.warning(
            f"Could not dispatch notification: {e}",
            extra={"notification_type": notification.notification_type},
        )
