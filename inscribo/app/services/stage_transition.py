"""Stage transition engine: the only code path that moves a lead between funnel stages.

A move writes three rows as one transaction, always in the same order: the lead
itself, a StageChange audit record and the paired ``note`` Interaction that
describes the move. The no-op case (target equals current stage) writes nothing.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from inscribo.app.core.time import utc_now
from inscribo.app.models.interaction import Interaction
from inscribo.app.models.lead import Lead
from inscribo.app.models.lead_stage import LeadStage
from inscribo.app.models.stage_change import StageChange
from inscribo.app.models.user import User
from inscribo.app.services import stage_catalog
from inscribo.app.services.interaction_log import stage_interaction
from inscribo.app.services.lead_service import check_version, get_lead
from inscribo.app.services.store import run_unit

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    lead: Lead
    stage_change: Optional[StageChange] = None
    interaction: Optional[Interaction] = None
    entered_terminal_stage: bool = False

    @property
    def changed(self) -> bool:
        return self.stage_change is not None


def describe_transition(from_stage: LeadStage | None, to_stage: LeadStage) -> str:
    if from_stage is None:
        return f"Stage set to {to_stage.name}"
    return f"Stage changed from {from_stage.name} to {to_stage.name}"


def transition(
    db: Session,
    *,
    lead_id: int,
    to_stage_id: int,
    acting_user: User,
    expected_version: int | None = None,
) -> TransitionResult:
    institution_id = acting_user.institution_id
    lead = get_lead(db, institution_id=institution_id, lead_id=lead_id)
    target = stage_catalog.get_stage(db, institution_id=institution_id, stage_id=to_stage_id)
    check_version(lead, expected_version, "Lead")

    if lead.current_stage_id == target.id:
        return TransitionResult(lead=lead)

    change, interaction = run_unit(
        db, lambda: stage_move(db, lead=lead, target=target, acting_user=acting_user), label=f"move lead {lead.id}"
    )
    return build_result(db, lead=lead, change=change, interaction=interaction)


def stage_move(db: Session, *, lead: Lead, target: LeadStage, acting_user: User) -> tuple[StageChange, Interaction]:
    """Write a validated, non-empty move into the current unit of work. Does not commit.

    Callers check that ``target`` differs from the lead's current stage.
    """
    previous = lead.current_stage
    from_stage_id = previous.id if previous else None
    from_stage_name = previous.name if previous else None
    description = describe_transition(previous, target)

    now = utc_now()
    lead.current_stage_id = target.id
    lead.updated_at = now
    lead.version = lead.version + 1
    db.flush()

    change = StageChange(
        lead_id=lead.id,
        from_stage_id=from_stage_id,
        to_stage_id=target.id,
        from_stage_name=from_stage_name,
        to_stage_name=target.name,
        changed_by_id=acting_user.id,
        changed_by_name=acting_user.display_name,
        changed_at=now,
    )
    db.add(change)
    db.flush()

    interaction = stage_interaction(
        db, lead_id=lead.id, interaction_type="note", content=description, user_id=acting_user.id
    )
    change.interaction_id = interaction.id
    db.flush()
    return change, interaction


def build_result(db: Session, *, lead: Lead, change: StageChange, interaction: Interaction) -> TransitionResult:
    """Reload the committed rows of a move and flag entry into the terminal stage."""
    db.refresh(lead)
    db.refresh(change)
    db.refresh(interaction)

    terminal = stage_catalog.terminal_stage(stage_catalog.list_stages(db, institution_id=lead.institution_id))
    logger.info(
        "Lead %s moved from stage %s to %s by user %s",
        lead.id,
        change.from_stage_id,
        change.to_stage_id,
        change.changed_by_id,
    )
    return TransitionResult(
        lead=lead,
        stage_change=change,
        interaction=interaction,
        entered_terminal_stage=terminal is not None and terminal.id == change.to_stage_id,
    )


def list_stage_changes(db: Session, *, institution_id: int, lead_id: int) -> list[StageChange]:
    get_lead(db, institution_id=institution_id, lead_id=lead_id)
    return (
        db.query(StageChange)
        .filter(StageChange.lead_id == lead_id)
        .order_by(StageChange.changed_at.desc(), StageChange.id.desc())
        .all()
    )
