"""Dependency injection for FastAPI endpoints"""

from fastapi import BackgroundTasks, Depends, Request
from contract_ledger.domain.models import Notification
from contract_ledger.infrastructure.clients.notifications import NotificationClient
from contract_ledger.services.notifications import NotificationDispatcher, notification_payload


class BackgroundNotificationDispatcher:
    """Delivers notifications after the response is sent"""

    def __init__(self, background_tasks: BackgroundTasks, client: NotificationClient):
        self.background_tasks = background_tasks
        self.client = client

    def notify(self, notification: Notification) -> None:
        self.background_tasks.add_task(self.client.send, notification_payload(notification))


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_notification_client() -> NotificationClient:
    """Provide notification webhook client instance"""
    return NotificationClient()


def get_notifier(
    background_tasks: BackgroundTasks,
    client: NotificationClient = Depends(get_notification_client),
) -> NotificationDispatcher:
    """Provide the dispatcher handed to contract services"""
    return BackgroundNotificationDispatcher(background_tasks, client)
