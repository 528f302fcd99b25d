"""Lead management endpoints: intake, kanban board, stage moves and lead timeline."""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from inscribo.app.db.session import get_db
from inscribo.app.dependencies.auth import get_current_user
from inscribo.app.models.lead import Lead
from inscribo.app.models.user import User
from inscribo.app.models.visit import Visit
from inscribo.app.schemas.interaction import InteractionCreate, InteractionRead
from inscribo.app.schemas.lead import (
    LeadBoard,
    LeadIntake,
    LeadIntakeRead,
    LeadRead,
    LeadUpdate,
    StageChangeRead,
    StageMoveRead,
    StageMoveRequest,
)
from inscribo.app.schemas.visit import LeadVisitRequest, VisitCreate, VisitRead
from inscribo.app.services import interaction_log, lead_service, notifications, stage_transition, workflows
from inscribo.app.services.stage_transition import TransitionResult

router = APIRouter(prefix="/leads", tags=["leads"])


def _lead_event_data(lead: Lead) -> dict:
    return LeadRead.model_validate(lead).model_dump(mode="json")


def _visit_event_data(visit: Visit) -> dict:
    return VisitRead.model_validate(visit).model_dump(mode="json")


def notify_transition(background_tasks: BackgroundTasks, db: Session, moved: TransitionResult) -> None:
    if not moved.changed:
        return
    change = moved.stage_change
    data = {
        "lead": _lead_event_data(moved.lead),
        "from_stage": change.from_stage_name,
        "to_stage": change.to_stage_name,
        "changed_by": change.changed_by_name,
    }
    notifications.notify(
        background_tasks, db, institution_id=moved.lead.institution_id, event="lead.stage_changed", data=data
    )
    if moved.entered_terminal_stage:
        notifications.notify(
            background_tasks, db, institution_id=moved.lead.institution_id, event="lead.enrolled", data=data
        )


@router.post("/", response_model=LeadIntakeRead, status_code=status.HTTP_201_CREATED)
async def create_lead(
    lead_in: LeadIntake,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    outcome = workflows.intake_lead(db, acting_user=current_user, lead_in=lead_in, visit_in=lead_in.visit).unwrap()

    institution_id = current_user.institution_id
    notifications.notify(
        background_tasks, db, institution_id=institution_id, event="lead.created", data=_lead_event_data(outcome.lead)
    )
    data = LeadRead.model_validate(outcome.lead).model_dump()
    if outcome.visit is not None:
        notifications.notify(
            background_tasks,
            db,
            institution_id=institution_id,
            event="visit.scheduled",
            data=_visit_event_data(outcome.visit),
        )
        data["visit"] = VisitRead.model_validate(outcome.visit).model_dump()
    return data


@router.get("/", response_model=list[LeadRead])
async def list_leads(
    stage_id: int | None = None,
    assigned_to_id: int | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
    sort_by: str | None = "created_at",
    sort_order: str | None = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return lead_service.list_leads(
        db,
        institution_id=current_user.institution_id,
        stage_id=stage_id,
        assigned_to_id=assigned_to_id,
        search=search,
        skip=skip,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/board", response_model=LeadBoard)
async def get_board(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return lead_service.get_board(db, institution_id=current_user.institution_id)


@router.get("/{lead_id}", response_model=LeadRead)
async def get_lead(lead_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return lead_service.get_lead(db, institution_id=current_user.institution_id, lead_id=lead_id)


@router.put("/{lead_id}", response_model=LeadRead)
async def update_lead(
    lead_id: int,
    lead_in: LeadUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return lead_service.update_lead(db, acting_user=current_user, lead_id=lead_id, lead_in=lead_in)


@router.post("/{lead_id}/stage", response_model=StageMoveRead)
async def move_lead(
    lead_id: int,
    move_in: StageMoveRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    moved = stage_transition.transition(
        db,
        lead_id=lead_id,
        to_stage_id=move_in.stage_id,
        acting_user=current_user,
        expected_version=move_in.expected_version,
    )
    notify_transition(background_tasks, db, moved)
    return {"lead": moved.lead, "stage_change": moved.stage_change}


@router.get("/{lead_id}/history", response_model=list[StageChangeRead])
async def get_stage_history(
    lead_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return stage_transition.list_stage_changes(db, institution_id=current_user.institution_id, lead_id=lead_id)


@router.get("/{lead_id}/interactions", response_model=list[InteractionRead])
async def list_interactions(
    lead_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return interaction_log.list_interactions(db, institution_id=current_user.institution_id, lead_id=lead_id)


@router.post("/{lead_id}/interactions", response_model=InteractionRead, status_code=status.HTTP_201_CREATED)
async def add_interaction(
    lead_id: int,
    interaction_in: InteractionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return interaction_log.append_interaction(
        db,
        lead_id=lead_id,
        interaction_type=interaction_in.type,
        content=interaction_in.content,
        acting_user=current_user,
    )


@router.post("/{lead_id}/visits", response_model=VisitRead, status_code=status.HTTP_201_CREATED)
async def schedule_lead_visit(
    lead_id: int,
    visit_in: LeadVisitRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    booking = workflows.schedule_visit_for_lead(
        db,
        acting_user=current_user,
        lead_id=lead_id,
        visit_in=VisitCreate(**visit_in.model_dump(exclude={"advance_to_stage_id"})),
        advance_to_stage_id=visit_in.advance_to_stage_id,
    ).unwrap()
    notifications.notify(
        background_tasks,
        db,
        institution_id=current_user.institution_id,
        event="visit.scheduled",
        data=_visit_event_data(booking.visit),
    )
    if booking.transition is not None:
        notify_transition(background_tasks, db, booking.transition)
    return booking.visit
