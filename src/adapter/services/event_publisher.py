"""Event Publisher Implementations

Provides concrete implementations for announcing billing events.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
import httpx
from src.app.services.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class LoggingEventPublisher(EventPublisher):
    """
    Publisher that logs events

    Useful for development and testing, or as a fallback.
    """

    async def publish(self, event_type: str, payload: Dict[str, Any]) -> bool:
        logger.info(f"[BILLING EVENT] {event_type}: {payload}")
        return True


class WebhookEventPublisher(EventPublisher):
    """
    Publisher that POSTs events to an HTTP webhook

    Body: {"type": ..., "occurred_at": ..., "data": payload}
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize webhook publisher

        Args:
            webhook_url: URL to POST events to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def publish(self, event_type: str, payload: Dict[str, Any]) -> bool:
        """
        Send event via webhook

        Returns:
            True if webhook call succeeded, False otherwise
        """
        body = {
            "type": event_type,
            "occurred_at": datetime.utcnow().isoformat(),
            "data": payload,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(f"Published {event_type} to {self.webhook_url}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to publish {event_type} to {self.webhook_url}: {e}")
            return False


class CompositeEventPublisher(EventPublisher):
    """
    Publisher that delegates to multiple publishers

    Useful for sending to multiple channels (e.g., log + webhook).
    """

    def __init__(self, publishers: List[EventPublisher]):
        self.publishers = publishers

    async def publish(self, event_type: str, payload: Dict[str, Any]) -> bool:
        """
        Publish to every configured publisher

        Returns:
            True if at least one publisher succeeded, False otherwise
        """
        success = False
        for publisher in self.publishers:
            try:
                if await publisher.publish(event_type, payload):
                    success = True
            except Exception as e:
                logger.error(f"Event publisher {type(publisher).__name__} failed: {e}")
        return success


def create_event_publisher(
    webhook_url: Optional[str] = None, timeout: float = 10.0
) -> EventPublisher:
    """
    Factory function to create appropriate event publisher

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     publisher with logging + webhook. Otherwise, just logging.

    Returns:
        Configured EventPublisher
    """
    publishers: List[EventPublisher] = [LoggingEventPublisher()]

    if webhook_url:
        publishers.append(WebhookEventPublisher(webhook_url, timeout=timeout))

    if len(publishers) == 1:
        return publishers[0]

    return CompositeEventPublisher(publishers)
