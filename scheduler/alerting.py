"""
Alerting system for schedule change notifications.

This module provides:
- A notification channel interface
- A chat webhook channel posting report text
- Log-based alerting fanned out to every channel
"""

from abc import ABC, abstractmethod
from typing import List, Optional

import httpx
import structlog

from scheduler.models import AlertConfig, ChangeReport
from scheduler.report import split_message

logger = structlog.get_logger(__name__)


class NotificationChannel(ABC):
    """
    Destination for change report text.

    ``send`` must not raise; it returns False when delivery failed.
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Identifier used in logs."""

    @abstractmethod
    async def send(self, text: str) -> bool:
        """Deliver ``text``. Returns True if the remote end accepted it."""


class WebhookChannel(NotificationChannel):
    """
    Posts report text to a Discord-compatible webhook.

    Long reports are split into several messages so each stays under the
    channel's message limit.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        message_limit: int = 2000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not url:
            raise ValueError("Webhook url must not be empty")
        self.url = url
        self.timeout = timeout
        self.message_limit = message_limit
        self.transport = transport
        self.logger = logger.bind(component="webhook_channel")

    @property
    def channel_name(self) -> str:
        return "webhook"

    async def send(self, text: str) -> bool:
        chunks = [chunk for chunk in split_message(text, self.message_limit) if chunk.strip()]
        if not chunks:
            return True

        client_kwargs = {"timeout": self.timeout}
        if self.transport is not None:
            client_kwargs["transport"] = self.transport

        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                for index, chunk in enumerate(chunks):
                    response = await client.post(self.url, json={"content": chunk})
                    if not response.is_success:
                        self.logger.warning(
                            "Webhook rejected message",
                            status_code=response.status_code,
                            body=response.text[:200],
                            chunk=index + 1,
                            chunks=len(chunks)
                        )
                        return False
        except httpx.TimeoutException:
            self.logger.warning("Webhook request timed out", chunks=len(chunks))
            return False
        except httpx.HTTPError as e:
            self.logger.warning("Webhook request failed", error=str(e))
            return False

        return True


class AlertManager:
    """Manager for handling schedule change alerts."""

    def __init__(self, alert_config: AlertConfig, channels: Optional[List[NotificationChannel]] = None):
        """
        Initialize alert manager.

        Args:
            alert_config: Alert configuration
            channels: Delivery channels; a webhook channel is created from
                the config when none are given
        """
        self.config = alert_config
        self.logger = logger.bind(component="alert_manager")

        if channels is None:
            channels = []
            if alert_config.webhook_url:
                channels.append(WebhookChannel(
                    alert_config.webhook_url,
                    timeout=alert_config.webhook_timeout,
                    message_limit=alert_config.message_limit
                ))
        self.channels = channels

    async def process_report(self, report: ChangeReport) -> bool:
        """
        Log a change report and deliver it to every channel.

        Args:
            report: Assembled change report

        Returns:
            True if at least one channel accepted the report
        """
        if not report.has_changes:
            return False

        if not self.config.enabled:
            self.logger.debug("Alerting is disabled")
            return False

        if self.config.log_enabled:
            self.logger.warning(
                "Schedule change alert",
                event_name=report.event,
                report_id=report.report_id,
                field_changes=len(report.field_changes),
                order_changes=len(report.order_changes),
                message=report.text
            )

        delivered = False
        for channel in self.channels:
            if await channel.send(report.text):
                delivered = True
            else:
                self.logger.error(
                    "Failed to deliver change report",
                    channel=channel.channel_name,
                    report_id=report.report_id
                )

        self.logger.info(
            "Processed change report",
            report_id=report.report_id,
            channels=len(self.channels),
            delivered=delivered
        )
        return delivered
