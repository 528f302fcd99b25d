"""Admin endpoints for outgoing webhook subscriptions."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from inscribo.app.crud.crud_webhook import webhook_crud
from inscribo.app.db.session import get_db
from inscribo.app.dependencies.auth import get_current_admin
from inscribo.app.models.user import User
from inscribo.app.schemas.webhook import WebhookCreate, WebhookRead, WebhookTestResult, WebhookUpdate
from inscribo.app.services import notifications

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _get_webhook(db: Session, webhook_id: int, institution_id: int):
    webhook = webhook_crud.get(db, webhook_id=webhook_id, institution_id=institution_id)
    if not webhook:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Webhook not found")
    return webhook


@router.get("/", response_model=list[WebhookRead])
async def list_webhooks(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return webhook_crud.get_multi(db, institution_id=current_admin.institution_id)


@router.post("/", response_model=WebhookRead, status_code=status.HTTP_201_CREATED)
async def create_webhook(
    webhook_in: WebhookCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return webhook_crud.create(db, obj_in=webhook_in, institution_id=current_admin.institution_id)


@router.get("/{webhook_id}", response_model=WebhookRead)
async def get_webhook(webhook_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return _get_webhook(db, webhook_id, current_admin.institution_id)


@router.put("/{webhook_id}", response_model=WebhookRead)
async def update_webhook(
    webhook_id: int,
    webhook_in: WebhookUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    webhook = _get_webhook(db, webhook_id, current_admin.institution_id)
    return webhook_crud.update(db, db_obj=webhook, obj_in=webhook_in)


@router.delete("/{webhook_id}")
async def delete_webhook(webhook_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    webhook = _get_webhook(db, webhook_id, current_admin.institution_id)
    webhook_crud.delete(db, db_obj=webhook)
    return {"status": "deleted", "id": webhook_id}


@router.post("/{webhook_id}/test", response_model=WebhookTestResult)
def send_test_event(webhook_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    webhook = _get_webhook(db, webhook_id, current_admin.institution_id)
    payload = notifications.build_payload("webhook.test", current_admin.institution_id, {"webhook_id": webhook.id})
    delivered = notifications.deliver(webhook.url, "webhook.test", payload)
    return {"id": webhook.id, "delivered": delivered}
