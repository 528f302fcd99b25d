"""Fire-and-forget webhook notifications for funnel events.

Delivery is best effort: one POST per subscribed webhook, no retries. Failures
are logged and dropped so they never affect the request that caused them.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from inscribo.app.core.settings import get_settings
from inscribo.app.core.time import utc_now
from inscribo.app.models.webhook import Webhook

logger = logging.getLogger(__name__)

EVENT_HEADER = "X-Inscribo-Event"


def build_payload(event: str, institution_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "event": event,
        "institution_id": institution_id,
        "sent_at": utc_now().isoformat(),
        "data": data,
    }


def deliver(url: str, event: str, payload: Dict[str, Any], *, client: Optional[httpx.Client] = None) -> bool:
    """POST ``payload`` to ``url``; return True when the receiver answered 2xx."""
    timeout = get_settings().webhook_timeout_seconds
    owns_client = client is None
    http = client or httpx.Client(timeout=timeout)
    try:
        response = http.post(url, json=payload, headers={EVENT_HEADER: event})
    except httpx.HTTPError as exc:
        logger.warning("Webhook %s delivery to %s failed: %s", event, url, exc)
        return False
    finally:
        if owns_client:
            http.close()
    if response.is_success:
        return True
    logger.warning("Webhook %s delivery to %s answered %s", event, url, response.status_code)
    return False


def subscribers(db: Session, *, institution_id: int, event: str) -> list[Webhook]:
    hooks = (
        db.query(Webhook)
        .filter(Webhook.institution_id == institution_id, Webhook.active.is_(True))
        .order_by(Webhook.id.asc())
        .all()
    )
    return [hook for hook in hooks if event in (hook.events or [])]


def notify(
    background_tasks: BackgroundTasks,
    db: Session,
    *,
    institution_id: int,
    event: str,
    data: Dict[str, Any],
) -> int:
    """Queue ``event`` for every active subscriber; returns how many deliveries were queued."""
    hooks = subscribers(db, institution_id=institution_id, event=event)
    if not hooks:
        return 0
    payload = build_payload(event, institution_id, data)
    for hook in hooks:
        background_tasks.add_task(deliver, hook.url, event, payload)
    logger.debug("Queued %s for %d webhook(s) of institution %s", event, len(hooks), institution_id)
    return len(hooks)
