"""Workflows that compose the funnel components for the lead screens.

Each workflow validates everything it can before the first write, then stages
all of its rows in a single unit of work: either every row is committed or
none is. The outcome is reported as an ``OperationResult`` instead of raising
for expected failures.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from inscribo.app.models.lead import Lead
from inscribo.app.models.user import User
from inscribo.app.models.visit import Visit
from inscribo.app.schemas.lead import LeadCreate
from inscribo.app.schemas.visit import VisitCreate
from inscribo.app.services import interaction_log, lead_service, stage_catalog, stage_transition, visit_scheduler
from inscribo.app.services.results import OperationResult, capture
from inscribo.app.services.stage_transition import TransitionResult
from inscribo.app.services.store import run_unit

logger = logging.getLogger(__name__)


@dataclass
class IntakeOutcome:
    lead: Lead
    visit: Optional[Visit] = None


@dataclass
class VisitBookingOutcome:
    visit: Visit
    transition: Optional[TransitionResult] = None


def describe_visit(visit: Visit) -> str:
    when = visit.scheduled_at
    return f"Visit scheduled for {when.strftime('%d/%m/%Y')} at {when.strftime('%H:%M')}"


def _visit_fields(student_name: str, acting_user: User, visit_in: VisitCreate) -> dict:
    return visit_scheduler.visit_fields(
        student_name=student_name,
        scheduled_at=visit_in.scheduled_at,
        duration_minutes=visit_in.duration_minutes,
        acting_user=acting_user,
        title=visit_in.title,
        description=visit_in.description,
        notes=visit_in.notes,
    )


def _stage_booking(db: Session, acting_user: User, lead_id: int, fields: dict) -> Visit:
    # Visit and its "visit" interaction always land together
    visit = visit_scheduler.stage_visit(db, lead_id=lead_id, fields=fields)
    interaction_log.stage_interaction(
        db, lead_id=lead_id, interaction_type="visit", content=describe_visit(visit), user_id=acting_user.id
    )
    return visit


def _intake(db: Session, acting_user: User, lead_in: LeadCreate, visit_in: Optional[VisitCreate]) -> IntakeOutcome:
    fields = lead_service.lead_fields(db, acting_user=acting_user, lead_in=lead_in)
    visit_data = _visit_fields(fields["student_name"], acting_user, visit_in) if visit_in is not None else None

    def _apply() -> IntakeOutcome:
        lead = lead_service.stage_lead(db, fields)
        visit = _stage_booking(db, acting_user, lead.id, visit_data) if visit_data is not None else None
        return IntakeOutcome(lead=lead, visit=visit)

    outcome = run_unit(db, _apply, label="lead intake")
    db.refresh(outcome.lead)
    if outcome.visit is not None:
        db.refresh(outcome.visit)
    logger.info(
        "Lead %s taken in by user %s (visit: %s)",
        outcome.lead.id,
        acting_user.id,
        outcome.visit.id if outcome.visit is not None else None,
    )
    return outcome


def intake_lead(
    db: Session, *, acting_user: User, lead_in: LeadCreate, visit_in: Optional[VisitCreate] = None
) -> OperationResult[IntakeOutcome]:
    return capture(_intake, db, acting_user, lead_in, visit_in)


def _schedule_for_lead(
    db: Session, acting_user: User, lead_id: int, visit_in: VisitCreate, advance_to_stage_id: Optional[int]
) -> VisitBookingOutcome:
    institution_id = acting_user.institution_id
    lead = lead_service.get_lead(db, institution_id=institution_id, lead_id=lead_id)
    visit_data = _visit_fields(lead.student_name, acting_user, visit_in)
    target = None
    if advance_to_stage_id is not None:
        target = stage_catalog.get_stage(db, institution_id=institution_id, stage_id=advance_to_stage_id)

    def _apply():
        visit = _stage_booking(db, acting_user, lead.id, visit_data)
        move = None
        if target is not None and lead.current_stage_id != target.id:
            move = stage_transition.stage_move(db, lead=lead, target=target, acting_user=acting_user)
        return visit, move

    visit, move = run_unit(db, _apply, label=f"book visit for lead {lead.id}")
    db.refresh(visit)
    moved = None
    if move is not None:
        change, interaction = move
        moved = stage_transition.build_result(db, lead=lead, change=change, interaction=interaction)
    elif target is not None:
        db.refresh(lead)
        moved = TransitionResult(lead=lead)
    logger.info("Visit %s booked from lead %s (stage advanced: %s)", visit.id, lead.id, move is not None)
    return VisitBookingOutcome(visit=visit, transition=moved)


def schedule_visit_for_lead(
    db: Session,
    *,
    acting_user: User,
    lead_id: int,
    visit_in: VisitCreate,
    advance_to_stage_id: Optional[int] = None,
) -> OperationResult[VisitBookingOutcome]:
    return capture(_schedule_for_lead, db, acting_user, lead_id, visit_in, advance_to_stage_id)
