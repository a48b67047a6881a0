"""Domain event names and post-commit publishing"""

import logging
from typing import Any, Dict, Optional
from src.app.services.event_publisher import EventPublisher

logger = logging.getLogger(__name__)

SUBSCRIPTION_UPDATED = "subscription.updated"
SNAPSHOT_CREATED = "placement.snapshot_created"
PAYOUT_CREATED = "payout.created"
PAYOUT_UPDATED = "payout.updated"


async def publish_event(
    publisher: Optional[EventPublisher], event_type: str, payload: Dict[str, Any]
) -> bool:
    """
    Publish after the transaction committed

    A delivery failure is logged and reported as False; the committed
    operation stands.
    """
    if publisher is None:
        return False
    try:
        return await publisher.publish(event_type, payload)
    except Exception as e:
        logger.error(f"Failed to publish {event_type}: {e}")
        return False
