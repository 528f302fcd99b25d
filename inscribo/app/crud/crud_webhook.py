"""CRUD operations for outgoing webhooks."""

from typing import List, Optional

from sqlalchemy.orm import Session

from inscribo.app.models.webhook import Webhook
from inscribo.app.schemas.webhook import WebhookCreate, WebhookUpdate


class CRUDWebhook:
    def create(self, db: Session, *, obj_in: WebhookCreate, institution_id: int) -> Webhook:
        data = obj_in.model_dump()
        data["url"] = str(obj_in.url)
        obj = Webhook(institution_id=institution_id, **data)
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, webhook_id: int, institution_id: int) -> Optional[Webhook]:
        return (
            db.query(Webhook)
            .filter(Webhook.id == webhook_id, Webhook.institution_id == institution_id)
            .first()
        )

    def get_multi(self, db: Session, *, institution_id: int) -> List[Webhook]:
        return (
            db.query(Webhook)
            .filter(Webhook.institution_id == institution_id)
            .order_by(Webhook.created_at.desc(), Webhook.id.desc())
            .all()
        )

    def update(self, db: Session, *, db_obj: Webhook, obj_in: WebhookUpdate) -> Webhook:
        update_data = obj_in.model_dump(exclude_unset=True)
        if update_data.get("url") is not None:
            update_data["url"] = str(obj_in.url)
        for field, value in update_data.items():
            if value is not None:
                setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: Webhook) -> Webhook:
        db.delete(db_obj)
        db.commit()
        return db_obj


webhook_crud = CRUDWebhook()
