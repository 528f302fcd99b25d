"""Append-only interaction timeline for leads."""

from sqlalchemy.orm import Session

from inscribo.app.core.errors import InvalidArgument
from inscribo.app.core.time import utc_now
from inscribo.app.models.interaction import INTERACTION_TYPES, Interaction
from inscribo.app.models.user import User
from inscribo.app.services.lead_service import get_lead
from inscribo.app.services.store import run_unit


def clean_interaction(interaction_type: str, content: str | None) -> str:
    """Validate an interaction's type and return its trimmed content."""
    if interaction_type not in INTERACTION_TYPES:
        raise InvalidArgument(f"Unknown interaction type '{interaction_type}'")
    cleaned = (content or "").strip()
    if not cleaned:
        raise InvalidArgument("Interaction content is required")
    return cleaned


def stage_interaction(db: Session, *, lead_id: int, interaction_type: str, content: str, user_id: int | None) -> Interaction:
    """Add an already validated interaction to the current unit of work."""
    interaction = Interaction(
        lead_id=lead_id,
        user_id=user_id,
        type=interaction_type,
        content=content,
        created_at=utc_now(),
    )
    db.add(interaction)
    db.flush()
    return interaction


def append_interaction(
    db: Session, *, lead_id: int, interaction_type: str, content: str, acting_user: User
) -> Interaction:
    lead = get_lead(db, institution_id=acting_user.institution_id, lead_id=lead_id)
    cleaned = clean_interaction(interaction_type, content)

    interaction = run_unit(
        db,
        lambda: stage_interaction(
            db, lead_id=lead.id, interaction_type=interaction_type, content=cleaned, user_id=acting_user.id
        ),
        label="append interaction",
    )
    db.refresh(interaction)
    return interaction


def list_interactions(db: Session, *, institution_id: int, lead_id: int) -> list[Interaction]:
    get_lead(db, institution_id=institution_id, lead_id=lead_id)
    return (
        db.query(Interaction)
        .filter(Interaction.lead_id == lead_id)
        .order_by(Interaction.created_at.desc(), Interaction.id.desc())
        .all()
    )
